"""
Core schema node for vetta.

Provides the immutable Schema dataclass, its refinements and the
evaluation of every schema kind.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from .errors import SchemaError
from .types import (
    CheckFn,
    Err,
    IssueKind,
    Ok,
    Path,
    ValidationIssue,
    ValidationIssues,
    ValidationResult,
)

# local-part@domain.tld, no leading dot and no ".." in the local part
EMAIL_REGEX = (
    r"^(?!\.)(?!.*\.\.)[A-Z0-9_'+\-.]*[A-Z0-9_+\-]@"
    r"([A-Z0-9][A-Z0-9\-]*\.)+[A-Z]{2,}\Z"
)
EMAIL_PATTERN = re.compile(EMAIL_REGEX, re.IGNORECASE | re.ASCII)


class SchemaKind(Enum):
    """Closed set of schema variants."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    TUPLE = "tuple"
    UNION = "union"
    INTERSECTION = "intersection"


class Presence(Enum):
    """How a schema treats an absent (None) value."""

    DEFAULT = "default"  # optional as an object field, a type error elsewhere
    REQUIRED = "required"
    OPTIONAL = "optional"


_LENGTH_KINDS = frozenset({SchemaKind.STRING, SchemaKind.ARRAY})
_BOUNDED_KINDS = _LENGTH_KINDS | {SchemaKind.NUMBER}
_MEMBER_KINDS = frozenset({SchemaKind.UNION, SchemaKind.INTERSECTION})
_SEQUENCE_TYPES = (list, tuple)


@dataclass(frozen=True, slots=True)
class Refinement:
    """
    A constraint applied after the type check of a schema passed.

    Refinements sharing a `dimension` replace each other; the last one
    added wins. Refinements without a dimension accumulate. `bound`
    keeps the argument of `min`/`max` for export to Pydantic.
    """

    check: CheckFn
    kind: IssueKind
    message: str
    dimension: str | None = None
    bound: Any = None

    def apply(
        self, value: Any, path: Path, message: str | None = None
    ) -> ValidationIssue | None:
        try:
            passed = self.check(value)
        except Exception as e:
            return ValidationIssue(path, self.kind, f"Validation error: {e}")

        if passed:
            return None
        return ValidationIssue(path, self.kind, message or self.message)


@dataclass(frozen=True, slots=True)
class Schema:
    """
    Immutable schema node.

    Every builder method returns a new Schema; a schema can be shared
    freely between callers and threads.
    """

    kind: SchemaKind
    refinements: tuple[Refinement, ...] = ()
    fields: tuple[tuple[str, Schema], ...] = ()
    items: Schema | None = None
    positions: tuple[Schema, ...] = ()
    members: tuple[Schema, ...] = ()
    presence: Presence = Presence.DEFAULT
    message: str | None = None
    coerce: bool = False
    required_by_default: bool = False
    strict_keys: bool = False

    def __post_init__(self) -> None:
        if self.kind in _MEMBER_KINDS and not self.members:
            raise SchemaError(f"{self.kind.value} schema needs at least one member")
        if self.kind is SchemaKind.ARRAY and self.items is None:
            raise SchemaError("array schema needs an element schema")

    def __call__(self, value: Any, path: Path = ()) -> ValidationResult:
        """
        Validate a value.

        Returns:
            Ok(value) with the accepted, possibly normalized value
            Err([ValidationIssue, ...]) listing every problem found
        """
        if value is None:
            if self.presence is Presence.REQUIRED:
                return Err(
                    [
                        self._issue(
                            path, IssueKind.MISSING_FIELD, "Required field is missing"
                        )
                    ]
                )
            if self.presence is Presence.OPTIONAL:
                return Ok(None)

        match self.kind:
            case SchemaKind.STRING:
                return self._check_string(value, path)
            case SchemaKind.NUMBER:
                return self._check_number(value, path)
            case SchemaKind.BOOLEAN:
                return self._check_boolean(value, path)
            case SchemaKind.OBJECT:
                return self._check_object(value, path)
            case SchemaKind.ARRAY:
                return self._check_array(value, path)
            case SchemaKind.TUPLE:
                return self._check_tuple(value, path)
            case SchemaKind.UNION:
                return self._check_union(value, path)
            case SchemaKind.INTERSECTION:
                return self._check_intersection(value, path)

        raise SchemaError(f"Unknown schema kind: {self.kind}")

    def is_field_required(self, child: Schema) -> bool:
        """Whether `child`, declared as a field of this object, must be present."""
        if child.presence is Presence.DEFAULT:
            return self.required_by_default
        return child.presence is Presence.REQUIRED

    # -- refinements -------------------------------------------------------

    def required(self) -> Schema:
        """Reject absent values with a `missing_field` issue."""
        return replace(self, presence=Presence.REQUIRED)

    def optional(self) -> Schema:
        """Accept absent values anywhere, including tuple positions."""
        return replace(self, presence=Presence.OPTIONAL)

    def with_message(self, msg: str) -> Schema:
        """Return new schema with custom error message."""
        return replace(self, message=msg)

    def strict(self) -> Schema:
        """Report keys not declared by an object schema."""
        if self.kind is not SchemaKind.OBJECT:
            raise SchemaError(
                f"strict() applies to object schemas, not {self.kind.value}"
            )
        return replace(self, strict_keys=True)

    def email(self) -> Schema:
        if self.kind is not SchemaKind.STRING:
            raise SchemaError(
                f"email() applies to string schemas, not {self.kind.value}"
            )

        def check(x: str) -> bool:
            return EMAIL_PATTERN.fullmatch(x) is not None

        return self._refined(
            Refinement(
                check, IssueKind.FORMAT_MISMATCH, "Invalid email", dimension="email"
            )
        )

    def min(self, n: int | float) -> Schema:
        """Lower bound: value for numbers, length for strings and arrays."""
        return self._bounded("min", n)

    def max(self, n: int | float) -> Schema:
        """Upper bound: value for numbers, length for strings and arrays."""
        return self._bounded("max", n)

    def refine(self, check: CheckFn, message: str = "Invalid value") -> Schema:
        """
        Add an arbitrary predicate.

        Usage:
            number_schema().refine(lambda x: x % 2 == 0, "Must be even")
        """
        return self._refined(Refinement(check, IssueKind.CUSTOM, message))

    def _bounded(self, dimension: str, n: Any) -> Schema:
        if self.kind not in _BOUNDED_KINDS:
            raise SchemaError(
                f"{dimension}() does not apply to {self.kind.value} schemas"
            )
        if isinstance(n, bool) or not isinstance(n, (int, float)):
            raise SchemaError(
                f"{dimension}() bound must be a number, got {type(n).__name__}"
            )
        if isinstance(n, float) and math.isnan(n):
            raise SchemaError(f"{dimension}() bound cannot be NaN")

        if self.kind in _LENGTH_KINDS:
            if not isinstance(n, int) or n < 0:
                raise SchemaError(
                    f"{dimension}() length bound must be a non-negative int"
                )
            noun = "character(s)" if self.kind is SchemaKind.STRING else "item(s)"
            if dimension == "min":

                def check(x: Any) -> bool:
                    return len(x) >= n

                msg = f"Expected at least {n} {noun}"
            else:

                def check(x: Any) -> bool:
                    return len(x) <= n

                msg = f"Expected at most {n} {noun}"
            kind = IssueKind.LENGTH_OUT_OF_RANGE
        else:
            if dimension == "min":

                def check(x: Any) -> bool:
                    return x >= n

                msg = f"Must be >= {n}"
            else:

                def check(x: Any) -> bool:
                    return x <= n

                msg = f"Must be <= {n}"
            kind = IssueKind.VALUE_OUT_OF_RANGE

        return self._refined(
            Refinement(check, kind, msg, dimension=dimension, bound=n)
        )

    def _refined(self, refinement: Refinement) -> Schema:
        kept = self.refinements
        if refinement.dimension is not None:
            kept = tuple(r for r in kept if r.dimension != refinement.dimension)
        return replace(self, refinements=(*kept, refinement))

    # -- combinators -------------------------------------------------------

    def __or__(self, other: Schema | type | Any) -> Schema:
        """
        Combine with OR logic: at least one must pass.

        Usage:
            string_schema() | number_schema()
            string_schema() | int
        """
        # Import here to avoid circular dependency
        from .validators import union_schema

        return union_schema([*self._operands(SchemaKind.UNION), to_schema(other)])

    def __ror__(self, other: type | Any) -> Schema:
        """Support `str | string_schema()` where the shorthand comes first."""
        return to_schema(other) | self

    def __and__(self, other: Schema | type | Any) -> Schema:
        """
        Combine with AND logic: every member must pass.

        Usage:
            object_schema({"name": str}) & object_schema({"age": int})
        """
        from .validators import intersection_schema

        return intersection_schema(
            [*self._operands(SchemaKind.INTERSECTION), to_schema(other)]
        )

    def __rand__(self, other: type | Any) -> Schema:
        return to_schema(other) & self

    def _operands(self, kind: SchemaKind) -> tuple[Schema, ...]:
        # Only a bare combinator is flattened; modifiers keep it as one member
        bare = (
            self.presence is Presence.DEFAULT
            and self.message is None
            and not self.refinements
        )
        if self.kind is kind and bare:
            return self.members
        return (self,)

    # -- evaluation --------------------------------------------------------

    def _issue(self, path: Path, kind: IssueKind, message: str) -> ValidationIssue:
        return ValidationIssue(path, kind, self.message or message)

    def _type_mismatch(self, value: Any, path: Path) -> Err[ValidationIssues]:
        message = f"Expected {self.kind.value}, got {_describe(value)}"
        return Err([self._issue(path, IssueKind.TYPE_MISMATCH, message)])

    def _finish(
        self, value: Any, path: Path, issues: ValidationIssues
    ) -> ValidationResult:
        # Bounds always run; custom predicates only see structurally valid values
        for refinement in self.refinements:
            if refinement.dimension is None and issues:
                continue
            issue = refinement.apply(value, path, self.message)
            if issue is not None:
                issues.append(issue)

        return Err(issues) if issues else Ok(value)

    def _check_string(self, value: Any, path: Path) -> ValidationResult:
        if not isinstance(value, str):
            return self._type_mismatch(value, path)
        return self._finish(value, path, [])

    def _check_number(self, value: Any, path: Path) -> ValidationResult:
        if self.coerce and isinstance(value, str):
            value = _parse_number(value)
            if value is None:
                return Err(
                    [
                        self._issue(
                            path, IssueKind.TYPE_MISMATCH, "Expected numeric string"
                        )
                    ]
                )

        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return self._type_mismatch(value, path)
        if isinstance(value, float) and math.isnan(value):
            return Err(
                [
                    self._issue(
                        path, IssueKind.TYPE_MISMATCH, "Expected number, got NaN"
                    )
                ]
            )
        return self._finish(value, path, [])

    def _check_boolean(self, value: Any, path: Path) -> ValidationResult:
        if value is not True and value is not False:
            return self._type_mismatch(value, path)
        return self._finish(value, path, [])

    def _check_object(self, value: Any, path: Path) -> ValidationResult:
        if not isinstance(value, Mapping):
            return self._type_mismatch(value, path)

        issues: ValidationIssues = []
        # Undeclared keys pass through untouched
        output = dict(value)

        for key, child in self.fields:
            field_path = (*path, key)
            field_value = value.get(key)

            if field_value is None:
                if self.is_field_required(child):
                    issues.append(
                        ValidationIssue(
                            field_path,
                            IssueKind.MISSING_FIELD,
                            child.message or "Required field is missing",
                        )
                    )
                continue

            result = child(field_value, field_path)
            if isinstance(result, Err):
                issues.extend(result.error)
            else:
                output[key] = result.value

        if self.strict_keys:
            declared = {key for key, _ in self.fields}
            for key in value:
                if key not in declared:
                    issues.append(
                        self._issue(
                            (*path, key),
                            IssueKind.UNKNOWN_FIELD,
                            f"Unrecognized key: {key!r}",
                        )
                    )

        return self._finish(output, path, issues)

    def _check_array(self, value: Any, path: Path) -> ValidationResult:
        if not isinstance(value, _SEQUENCE_TYPES):
            return self._type_mismatch(value, path)

        items: Schema = self.items  # type: ignore[assignment]
        issues: ValidationIssues = []
        output = []

        for i, item in enumerate(value):
            result = items(item, (*path, i))
            if isinstance(result, Err):
                issues.extend(result.error)
            else:
                output.append(result.value)

        if issues:
            # Length bounds still apply to the raw input
            return self._finish(value, path, issues)
        return self._finish(_rebuild(value, output), path, issues)

    def _check_tuple(self, value: Any, path: Path) -> ValidationResult:
        if not isinstance(value, _SEQUENCE_TYPES):
            return self._type_mismatch(value, path)

        if len(value) != len(self.positions):
            message = (
                f"Expected exactly {len(self.positions)} item(s), got {len(value)}"
            )
            return Err([self._issue(path, IssueKind.LENGTH_MISMATCH, message)])

        issues: ValidationIssues = []
        output = []

        for i, (position, item) in enumerate(zip(self.positions, value)):
            result = position(item, (*path, i))
            if isinstance(result, Err):
                issues.extend(result.error)
            else:
                output.append(result.value)

        if issues:
            return Err(issues)
        return self._finish(_rebuild(value, output), path, issues)

    def _check_union(self, value: Any, path: Path) -> ValidationResult:
        attempted: ValidationIssues = []

        for member in self.members:
            result = member(value, path)
            if isinstance(result, Ok):
                return self._finish(result.value, path, [])
            attempted.extend(result.error)

        return Err(
            [
                ValidationIssue(
                    path,
                    IssueKind.NO_UNION_MEMBER_MATCHED,
                    self.message or "Value did not match any union member",
                    details=tuple(attempted),
                )
            ]
        )

    def _check_intersection(self, value: Any, path: Path) -> ValidationResult:
        issues: ValidationIssues = []
        outputs = []

        # Every branch runs; failures are never limited to shared fields
        for member in self.members:
            result = member(value, path)
            if isinstance(result, Err):
                issues.extend(result.error)
            else:
                outputs.append(result.value)

        if issues:
            return Err(issues)

        merged = outputs[0]
        for other in outputs[1:]:
            ok, merged = _merge(merged, other)
            if not ok:
                message = "Intersection results could not be merged"
                return Err([self._issue(path, IssueKind.MERGE_CONFLICT, message)])

        return self._finish(merged, path, [])


def _describe(value: Any) -> str:
    if value is None:
        return "None"
    return type(value).__name__


def _rebuild(value: Any, items: list[Any]) -> list[Any] | tuple[Any, ...]:
    """Plain list or tuple matching the input; subclasses are not rebuilt."""
    return tuple(items) if isinstance(value, tuple) else list(items)


def _parse_number(text: str) -> int | float | None:
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        parsed = float(text)
    except ValueError:
        return None
    return None if math.isnan(parsed) else parsed


def _merge(a: Any, b: Any) -> tuple[bool, Any]:
    """Deep-merge two accepted values; (False, None) when they disagree."""
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        merged = dict(a)
        for key, b_value in b.items():
            if key in merged:
                ok, value = _merge(merged[key], b_value)
                if not ok:
                    return False, None
                merged[key] = value
            else:
                merged[key] = b_value
        return True, merged

    if isinstance(a, _SEQUENCE_TYPES) and isinstance(b, _SEQUENCE_TYPES):
        if len(a) != len(b):
            return False, None
        items = []
        for a_item, b_item in zip(a, b):
            ok, value = _merge(a_item, b_item)
            if not ok:
                return False, None
            items.append(value)
        return True, _rebuild(a, items)

    if type(a) is type(b) and a == b:
        return True, a
    return False, None


def to_schema(v: Any) -> Schema:
    """
    Coerce a value to a schema.

    Conversion rules:
        Schema -> pass through
        str / int / float / bool -> primitive schema
        dict -> object schema with recursive conversion
        list -> array schema with element schema from list[0]
        tuple -> tuple schema with one schema per position
    """
    if isinstance(v, Schema):
        return v

    if isinstance(v, type):
        if v is bool:
            return Schema(kind=SchemaKind.BOOLEAN)
        if v is str:
            return Schema(kind=SchemaKind.STRING)
        if v in (int, float):
            return Schema(kind=SchemaKind.NUMBER)
        raise TypeError(f"No schema for type {v.__name__}")

    if isinstance(v, dict):
        from .validators import object_schema

        return object_schema(v)

    if isinstance(v, list):
        if len(v) == 0:
            raise SchemaError("Empty list cannot be converted to schema")
        if len(v) == 1:
            return Schema(kind=SchemaKind.ARRAY, items=to_schema(v[0]))
        # Multiple items = union of element types
        from .validators import union_schema

        return Schema(kind=SchemaKind.ARRAY, items=union_schema(v))

    if isinstance(v, tuple):
        from .validators import tuple_schema

        return tuple_schema(v)

    raise TypeError(f"Cannot convert {type(v).__name__} to schema")
