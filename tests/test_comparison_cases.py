"""
The cases a two-library comparison exercised, checked in both styles:
boolean (`is_valid`) and throwing (`parse`).
"""

import pytest

from vetta import (
    IssueKind,
    SchemaValidationError,
    array_schema,
    intersection_schema,
    is_valid,
    number_schema,
    object_schema,
    parse,
    string_schema,
    tuple_schema,
    union_schema,
)


def expect_failure(schema, value):
    with pytest.raises(SchemaValidationError) as exc_info:
        parse(schema, value)
    return [issue.kind for issue in exc_info.value.issues]


def test_string():
    schema = string_schema()
    assert is_valid(schema, "hi")
    assert parse(schema, "hi") == "hi"
    assert expect_failure(schema, 1) == [IssueKind.TYPE_MISMATCH]


def test_email():
    schema = string_schema().email()
    assert is_valid(schema, "a@b.com")
    assert not is_valid(schema, "hi")
    assert parse(schema, "a@b.com") == "a@b.com"
    assert expect_failure(schema, "hi") == [IssueKind.FORMAT_MISMATCH]


def test_object():
    schema = object_schema(
        {
            "name": string_schema().required(),
            "age": number_schema(),
        }
    )
    assert is_valid(schema, {"name": "John"})
    assert parse(schema, {"name": "John"}) == {"name": "John"}
    assert not is_valid(schema, {"name": "John", "age": True})
    assert expect_failure(schema, {}) == [IssueKind.MISSING_FIELD]


def test_array_chained_min():
    schema = array_schema(number_schema()).min(2).min(4)
    assert not is_valid(schema, [1, 2])
    assert is_valid(schema, [1, 2, 3, 4])
    assert not is_valid(schema, [1])
    assert is_valid(schema, [1, 2, 3, 4, 5])
    assert not is_valid(schema, ["foo", "bar"])


def test_array_min_max():
    schema = array_schema(number_schema()).min(2).max(4)
    assert parse(schema, [1, 2]) == [1, 2]
    assert parse(schema, [1, 2, 3, 4]) == [1, 2, 3, 4]
    assert expect_failure(schema, [1]) == [IssueKind.LENGTH_OUT_OF_RANGE]
    assert expect_failure(schema, [1, 2, 3, 4, 5]) == [IssueKind.LENGTH_OUT_OF_RANGE]
    assert expect_failure(schema, ["foo", "bar"]) == [IssueKind.TYPE_MISMATCH] * 2


def test_tuple():
    schema = tuple_schema([string_schema(), number_schema()])
    assert is_valid(schema, ["hi", 2])
    assert not is_valid(schema, [None, None])
    assert parse(schema, ["hi", 2]) == ["hi", 2]


def test_union():
    schema = union_schema([string_schema(), number_schema()])
    assert is_valid(schema, "hi")
    assert is_valid(schema, 1)
    assert not is_valid(schema, True)
    assert parse(schema, "hi") == "hi"
    assert parse(schema, 1) == 1
    assert expect_failure(schema, True) == [IssueKind.NO_UNION_MEMBER_MATCHED]


def test_intersection():
    schema = intersection_schema(
        [
            object_schema({"name": string_schema()}),
            object_schema({"age": number_schema()}),
        ]
    )
    assert parse(schema, {"name": "John", "age": 30}) == {"name": "John", "age": 30}
    # A field declared only by the second branch is still required
    assert expect_failure(schema, {"name": "John"}) == [IssueKind.MISSING_FIELD]
    assert expect_failure(schema, {"age": "John"}) == [
        IssueKind.MISSING_FIELD,
        IssueKind.TYPE_MISMATCH,
    ]
