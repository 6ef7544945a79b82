"""
vetta - small composable schema validation with Pydantic interop.

Usage:
    from vetta import object_schema, string_schema, number_schema, validate

    schema = object_schema({
        "name": string_schema().required(),
        "email": string_schema().email(),
        "tags": array_schema(string_schema()).max(5),
    })

    result = validate(schema, data)
    Model = to_pydantic("MyModel", schema)
"""

from .core import Presence, Refinement, Schema, SchemaKind, to_schema
from .errors import SchemaError, SchemaValidationError, VettaError
from .schema import is_valid, parse, to_pydantic, validate, validate_async
from .types import Err, IssueKind, Ok, ValidationIssue
from .validators import (
    array_schema,
    boolean_schema,
    intersection_schema,
    number_schema,
    object_schema,
    string_schema,
    tuple_schema,
    union_schema,
)

__all__ = [
    # Result types
    "Ok",
    "Err",
    "IssueKind",
    "ValidationIssue",
    # Core
    "Schema",
    "SchemaKind",
    "Presence",
    "Refinement",
    "to_schema",
    # Constructors
    "string_schema",
    "number_schema",
    "boolean_schema",
    "object_schema",
    "array_schema",
    "tuple_schema",
    "union_schema",
    "intersection_schema",
    # Operations
    "validate",
    "is_valid",
    "parse",
    "validate_async",
    "to_pydantic",
    # Errors
    "VettaError",
    "SchemaError",
    "SchemaValidationError",
]
