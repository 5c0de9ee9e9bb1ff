"""Unit tests for the field equality index."""

from __future__ import annotations

import pytest

from store.field_index import FieldIndex, values_equal


def test_add_field_rebuilds_from_existing_records() -> None:
    """Registering a field should index records already stored."""
    index = FieldIndex()
    records = [{"id": "1", "name": "Alice"}, {"id": "2", "name": "Bob"}]

    index.add_field("name", records)

    assert index.lookup("name", "Bob") == "2"


def test_lookup_ignores_unregistered_fields() -> None:
    """Fields not opted into indexing should never resolve."""
    index = FieldIndex()
    index.add_field("name", [{"id": "1", "name": "Alice", "age": 30}])

    assert index.lookup("age", 30) is None


def test_on_insert_indexes_registered_fields_only() -> None:
    """Insert should add entries for registered fields present on the record."""
    index = FieldIndex()
    index.add_field("name", [])

    index.on_insert({"id": "1", "name": "Alice", "age": 30})

    assert index.lookup("name", "Alice") == "1" and len(index) == 1


def test_on_update_drops_entry_for_previous_value() -> None:
    """Changing an indexed value should remove the old mapping."""
    index = FieldIndex()
    index.add_field("name", [])
    previous = {"id": "1", "name": "Alice"}
    index.on_insert(previous)

    index.on_update(previous, {"id": "1", "name": "Alicia"})

    assert index.lookup("name", "Alice") is None and index.lookup("name", "Alicia") == "1"


def test_on_delete_removes_entries() -> None:
    """Deleted records should no longer resolve through the index."""
    index = FieldIndex()
    record = {"id": "1", "name": "Alice"}
    index.add_field("name", [record])

    index.on_delete(record)

    assert index.lookup("name", "Alice") is None


def test_on_delete_keeps_entry_owned_by_another_record() -> None:
    """Deleting an older duplicate should not drop the newer owner's entry."""
    index = FieldIndex()
    index.add_field("name", [])
    index.on_insert({"id": "1", "name": "Alice"})
    index.on_insert({"id": "2", "name": "Alice"})

    index.on_delete({"id": "1", "name": "Alice"})

    assert index.lookup("name", "Alice") == "2"


def test_keys_distinguish_value_types() -> None:
    """String and numeric values with the same text should not collide."""
    index = FieldIndex()
    index.add_field("code", [{"id": "num", "code": 1}, {"id": "str", "code": "1"}])

    assert (index.lookup("code", 1), index.lookup("code", "1")) == ("num", "str")


def test_none_values_are_not_indexed() -> None:
    """Missing or null values should produce no entries."""
    index = FieldIndex()

    index.add_field("name", [{"id": "1", "name": None}, {"id": "2"}])

    assert len(index) == 0


@pytest.mark.parametrize(
    ("left", "right", "expected"),
    [
        ("Alice", "Alice", True),
        ({"a": 1, "b": 2}, {"b": 2, "a": 1}, True),
        (True, 1, False),
        (1, 1.0, False),
        ([1], [True], False),
        ("1", 1, False),
    ],
)
def test_values_equal_matches_index_key_semantics(
    left: object, right: object, expected: bool
) -> None:
    """Value comparison should distinguish JSON kinds like index keys do."""
    assert values_equal(left, right) is expected
