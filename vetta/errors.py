"""Exceptions raised by vetta."""

from __future__ import annotations

from typing import Iterable

from .types import ValidationIssue


class VettaError(Exception):
    """Base exception for vetta errors."""

    pass


class SchemaError(VettaError, ValueError):
    """A schema was built with arguments that can never validate anything."""

    pass


class SchemaValidationError(VettaError, ValueError):
    """Raised by `parse` when a value does not satisfy its schema."""

    def __init__(self, issues: Iterable[ValidationIssue]):
        self.issues = list(issues)
        lines = "\n".join(f"  {issue}" for issue in self.issues)
        super().__init__(
            f"Validation failed with {len(self.issues)} issue(s):\n{lines}"
        )
