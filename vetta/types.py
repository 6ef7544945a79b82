"""
Type definitions for vetta.

Provides a minimal Result type (Ok/Err), the issue record and type aliases.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success result containing the accepted value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Error result containing an error value."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True


class IssueKind(Enum):
    """What went wrong for a single issue."""

    TYPE_MISMATCH = "type_mismatch"
    FORMAT_MISMATCH = "format_mismatch"
    MISSING_FIELD = "missing_field"
    LENGTH_OUT_OF_RANGE = "length_out_of_range"
    LENGTH_MISMATCH = "length_mismatch"
    NO_UNION_MEMBER_MATCHED = "no_union_member_matched"
    VALUE_OUT_OF_RANGE = "value_out_of_range"
    UNKNOWN_FIELD = "unknown_field"
    MERGE_CONFLICT = "merge_conflict"
    CUSTOM = "custom"


# Type aliases
PathPart = Union[str, int]
Path = tuple[PathPart, ...]
CheckFn = Callable[[Any], bool]


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """
    A single problem found during validation.

    `path` locates the offending value from the root: field names for
    objects, integer indices for arrays and tuples. A root-level issue has
    the empty path.
    """

    path: Path
    kind: IssueKind
    message: str
    details: tuple[ValidationIssue, ...] = ()

    @property
    def location(self) -> str:
        """Render the path as `$`, `$.user.name` or `$.tags[0]`."""
        parts = ["$"]
        for part in self.path:
            if isinstance(part, int):
                parts.append(f"[{part}]")
            else:
                parts.append(f".{part}")
        return "".join(parts)

    def prefixed(self, prefix: Path) -> ValidationIssue:
        """Return a copy located under `prefix`."""
        return ValidationIssue(
            path=(*prefix, *self.path),
            kind=self.kind,
            message=self.message,
            details=tuple(d.prefixed(prefix) for d in self.details),
        )

    def __str__(self) -> str:
        return f"{self.location}: {self.message} ({self.kind.value})"


ValidationIssues = list[ValidationIssue]
ValidationResult = Union[Ok[Any], Err[ValidationIssues]]
