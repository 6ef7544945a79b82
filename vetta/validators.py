"""
Schema constructors for vetta.

Provides factory functions that return Schema instances.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Mapping

from .core import Schema, SchemaKind, to_schema
from .errors import SchemaError


def string_schema() -> Schema:
    """
    Accept `str` values.

    Usage:
        string_schema()
        string_schema().email()
        string_schema().min(1).max(80)
    """
    return Schema(kind=SchemaKind.STRING)


def number_schema(coerce: bool = False) -> Schema:
    """
    Accept `int` and `float` values (never `bool`, never NaN).

    With `coerce=True`, numeric strings are accepted and normalized:
    "3" becomes 3, "2.5" becomes 2.5.
    """
    return Schema(kind=SchemaKind.NUMBER, coerce=coerce)


def boolean_schema() -> Schema:
    """Accept only `True` and `False`."""
    return Schema(kind=SchemaKind.BOOLEAN)


def object_schema(
    fields: Mapping[str, Any], required_by_default: bool = False
) -> Schema:
    """
    Validate mappings field by field.

    Fields are optional unless marked `required()`; pass
    `required_by_default=True` to flip that for unmarked fields. Keys
    not declared here are accepted and passed through unexamined.

    Usage:
        object_schema({
            "name": string_schema().required(),
            "age": number_schema(),
        })
    """
    converted = []
    for key, value in fields.items():
        if not isinstance(key, str):
            raise SchemaError(
                f"Object field names must be str, got {type(key).__name__}"
            )
        converted.append((key, to_schema(value)))

    return Schema(
        kind=SchemaKind.OBJECT,
        fields=tuple(converted),
        required_by_default=required_by_default,
    )


def array_schema(element: Any) -> Schema:
    """
    Validate every element of a list or tuple.

    Usage:
        array_schema(number_schema()).min(2).max(4)
    """
    return Schema(kind=SchemaKind.ARRAY, items=to_schema(element))


def tuple_schema(positions: Iterable[Any]) -> Schema:
    """
    Validate a fixed-length sequence position by position.

    A sequence of any other length is rejected with a single
    `length_mismatch` issue.
    """
    return Schema(
        kind=SchemaKind.TUPLE, positions=tuple(to_schema(p) for p in positions)
    )


def union_schema(members: Iterable[Any]) -> Schema:
    """
    Accept a value matching at least one member, tried in order.

    Usage:
        union_schema([string_schema(), number_schema()])
        string_schema() | number_schema()
    """
    converted = tuple(to_schema(m) for m in members)
    if not converted:
        raise SchemaError("union_schema() needs at least one member")
    return Schema(kind=SchemaKind.UNION, members=converted)


def intersection_schema(members: Iterable[Any]) -> Schema:
    """
    Accept a value matching every member; outputs are deep-merged.

    Fields declared by an object member are required for that branch
    unless marked `optional()`, so a value missing a field only one
    branch declares still fails.

    Usage:
        intersection_schema([
            object_schema({"name": string_schema()}),
            object_schema({"age": number_schema()}),
        ])
    """
    converted = tuple(_as_branch(to_schema(m)) for m in members)
    if not converted:
        raise SchemaError("intersection_schema() needs at least one member")
    return Schema(kind=SchemaKind.INTERSECTION, members=converted)


def _as_branch(member: Schema) -> Schema:
    if member.kind is SchemaKind.OBJECT and not member.required_by_default:
        return replace(member, required_by_default=True)
    return member
