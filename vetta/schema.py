"""
Schema operations for vetta.

Provides validate() and its adapters, plus to_pydantic().
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Annotated, Any, Union
from typing import Optional as TypingOptional

from pydantic import (
    AfterValidator,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    create_model,
)

from .core import EMAIL_REGEX, Refinement, Schema, SchemaKind, to_schema
from .errors import SchemaValidationError
from .types import Err, ValidationResult

logger = logging.getLogger(__name__)


def validate(schema: Schema | Any, value: Any) -> ValidationResult:
    """
    Validate a value against a schema.

    Args:
        schema: A Schema, or a shorthand accepted by to_schema()
        value: The value to validate

    Returns:
        Ok(value) if validation passes, with the normalized value
        Err([ValidationIssue, ...]) if validation fails

    Usage:
        schema = object_schema({
            "name": string_schema().required(),
            "age": number_schema(),
        })
        result = validate(schema, {"name": "Alice"})
    """
    result = to_schema(schema)(value)
    if isinstance(result, Err):
        logger.debug("Validation failed with %d issue(s)", len(result.error))
    return result


def is_valid(schema: Schema | Any, value: Any) -> bool:
    """Return True when the value satisfies the schema."""
    return validate(schema, value).is_ok()


def parse(schema: Schema | Any, value: Any) -> Any:
    """
    Return the accepted value or raise.

    Raises:
        SchemaValidationError: carrying every issue found
    """
    result = validate(schema, value)
    if isinstance(result, Err):
        error = SchemaValidationError(result.error)
        logger.debug("%s", error)
        raise error
    return result.value


async def validate_async(schema: Schema | Any, value: Any) -> ValidationResult:
    """
    Awaitable validate().

    Yields to the event loop once, then resolves with the result of a
    single synchronous validation.
    """
    await asyncio.sleep(0)
    return validate(schema, value)


def to_pydantic(name: str, schema: Schema | Any) -> type:
    """
    Compile an object schema to a Pydantic model.

    Primitives compile to Pydantic's strict types (numbers stay lax when
    the schema coerces), bounds and email checks to `Field` constraints,
    and `refine()` predicates to after-validators.

    Args:
        name: Name of the generated model class
        schema: Object schema, or a dict shorthand

    Returns:
        A Pydantic BaseModel subclass

    Usage:
        User = to_pydantic("User", object_schema({
            "name": string_schema().required(),
            "age": number_schema(),
        }))
        user = User(name="Alice")
    """
    compiled = to_schema(schema)
    if compiled.kind is not SchemaKind.OBJECT:
        raise TypeError("Schema must be an object schema")
    return _model(name, compiled)


def _model(name: str, schema: Schema) -> type:
    fields: dict[str, Any] = {}

    for key, child in schema.fields:
        field_type = _annotation(f"{name}_{key}", child)
        if schema.is_field_required(child):
            fields[key] = (field_type, ...)
        else:
            fields[key] = (TypingOptional[field_type], None)

    config = ConfigDict(
        extra="forbid" if schema.strict_keys else "allow",
        # the email pattern uses lookaheads
        regex_engine="python-re",
    )
    return create_model(name, __config__=config, **fields)


def _annotation(name: str, schema: Schema) -> Any:
    """Pydantic field type for a schema."""
    constraints = _constraints(schema)
    metadata: list[Any] = [
        AfterValidator(_predicate(r)) for r in schema.refinements if r.dimension is None
    ]

    match schema.kind:
        case SchemaKind.STRING:
            base: Any = StrictStr
        case SchemaKind.NUMBER:
            # constraints go on each member; Pydantic cannot bound a union
            if schema.coerce:
                members = (int, float)
            else:
                members = (StrictInt, StrictFloat)
            bounded = tuple(_annotated(m, constraints) for m in members)
            base = Union[bounded]  # type: ignore[valid-type]
            metadata.insert(0, AfterValidator(_reject_nan))
            constraints = {}
        case SchemaKind.BOOLEAN:
            base = StrictBool
        case SchemaKind.OBJECT:
            base = _model(name, schema)
        case SchemaKind.ARRAY:
            base = list[_annotation(name, schema.items)]  # type: ignore[misc]
        case SchemaKind.TUPLE:
            positions = tuple(
                _annotation(f"{name}_{i}", p) for i, p in enumerate(schema.positions)
            )
            base = tuple[positions]  # type: ignore[misc]
        case SchemaKind.UNION:
            members = tuple(
                _annotation(f"{name}_{i}", m) for i, m in enumerate(schema.members)
            )
            base = Union[members]  # type: ignore[valid-type]
        case _:
            # Intersections have no Pydantic equivalent
            base = Any

    if constraints:
        metadata.insert(0, Field(**constraints))
    return _annotated(base, metadata)


def _constraints(schema: Schema) -> dict[str, Any]:
    """Field() keyword arguments for the min/max/email refinements."""
    constraints: dict[str, Any] = {}
    is_number = schema.kind is SchemaKind.NUMBER

    for refinement in schema.refinements:
        if refinement.dimension == "min":
            constraints["ge" if is_number else "min_length"] = refinement.bound
        elif refinement.dimension == "max":
            constraints["le" if is_number else "max_length"] = refinement.bound
        elif refinement.dimension == "email":
            constraints["pattern"] = f"(?ai){EMAIL_REGEX}"
    return constraints


def _annotated(base: Any, metadata: Any) -> Any:
    if isinstance(metadata, dict):
        metadata = [Field(**metadata)] if metadata else []
    if not metadata:
        return base
    return Annotated[(base, *metadata)]  # type: ignore[misc]


def _predicate(refinement: Refinement):
    def check(value: Any) -> Any:
        issue = refinement.apply(value, ())
        if issue is not None:
            raise ValueError(issue.message)
        return value

    return check


def _reject_nan(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        raise ValueError("Expected number, got NaN")
    return value
