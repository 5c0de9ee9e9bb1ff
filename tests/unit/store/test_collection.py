"""Unit tests for collection operations."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import date
import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from core.config import KoraConfig
from core.types import Status
from store.collection import Collection


async def _open_collection(
    tmp_path: Path,
    logger: MagicMock | None = None,
    **overrides: object,
) -> Collection:
    settings: dict[str, object] = {"synchronous_writes": True, "max_concurrent": 2}
    settings.update(overrides)
    config = replace(
        KoraConfig.from_env(), data_root=tmp_path, **settings  # type: ignore[arg-type]
    )
    collection = Collection("users", tmp_path, config, logger=logger or MagicMock())
    await collection.init()
    return collection


def _logged_events(logger: MagicMock, level: str) -> list[str]:
    return [call.args[0] for call in getattr(logger, level).call_args_list]


@pytest.mark.asyncio
async def test_insert_assigns_id_and_keeps_fields(tmp_path: Path) -> None:
    """Insert should return the payload plus a generated id."""
    logger = MagicMock()
    users = await _open_collection(tmp_path, logger)

    result = await users.insert({"name": "Alice", "age": 30})

    assert result.code == 200 and len(result.data["id"]) == 32
    assert (result.data["name"], result.data["age"]) == ("Alice", 30)
    assert "record_inserted" in _logged_events(logger, "info")


@pytest.mark.asyncio
async def test_insert_replaces_caller_supplied_id(tmp_path: Path) -> None:
    """Ids are always system-assigned."""
    users = await _open_collection(tmp_path)

    result = await users.insert({"id": "mine", "name": "Alice"})

    assert result.data["id"] != "mine"


@pytest.mark.parametrize("payload", [None, [], ["a"], "Alice", 3])
@pytest.mark.asyncio
async def test_insert_rejects_non_object_payload(tmp_path: Path, payload: object) -> None:
    """Only object-shaped payloads should be stored."""
    users = await _open_collection(tmp_path)

    result = await users.insert(payload)

    assert result.status is Status.INVALID_DATA and await users.count() == 0


@pytest.mark.asyncio
async def test_find_by_id_round_trips_through_disk(tmp_path: Path) -> None:
    """A fresh instance should read back exactly what was inserted."""
    users = await _open_collection(tmp_path)
    inserted = await users.insert({"name": "Bob", "tags": ["a", "b"]})
    reopened = await _open_collection(tmp_path)

    found = await reopened.find_by_id(inserted.data["id"])

    expected = {"name": "Bob", "tags": ["a", "b"], "id": inserted.data["id"]}
    assert found.ok and found.data == expected


@pytest.mark.asyncio
async def test_find_by_id_reports_missing_record(tmp_path: Path) -> None:
    """Unknown ids should return NotFound."""
    users = await _open_collection(tmp_path)

    result = await users.find_by_id("0" * 32)

    assert result.status is Status.NOT_FOUND and result.data is None


@pytest.mark.asyncio
async def test_find_by_field_scans_unindexed_fields(tmp_path: Path) -> None:
    """Unindexed lookups should return the first matching record."""
    users = await _open_collection(tmp_path)
    await users.insert({"name": "Carol", "age": 41})
    await users.insert({"name": "Dave", "age": 41})

    result = await users.find_by_field("age", 41)

    assert result.data["name"] == "Carol"


@pytest.mark.asyncio
async def test_find_by_field_reports_missing_value(tmp_path: Path) -> None:
    """Lookups without a match should return NotFound."""
    users = await _open_collection(tmp_path)
    await users.insert({"name": "Carol"})

    result = await users.find_by_field("name", "Zed")

    assert result.status is Status.NOT_FOUND


@pytest.mark.asyncio
async def test_indexed_lookup_matches_point_lookup(tmp_path: Path) -> None:
    """Index and id lookups should return identical records."""
    logger = MagicMock()
    users = await _open_collection(tmp_path, logger)
    await users.add_index_field("name")
    inserted = await users.insert({"name": "Eve", "age": 28})

    by_field = await users.find_by_field("name", "Eve")
    by_id = await users.find_by_id(inserted.data["id"])

    assert by_field.data == by_id.data == inserted.data
    assert "index_hit" in _logged_events(logger, "info")


@pytest.mark.asyncio
async def test_add_index_field_indexes_existing_records(tmp_path: Path) -> None:
    """Fields indexed after inserts should resolve earlier records."""
    logger = MagicMock()
    users = await _open_collection(tmp_path, logger)
    await users.insert({"email": "f@example.com"})

    await users.add_index_field("email")
    result = await users.find_by_field("email", "f@example.com")

    assert result.ok and "index_hit" in _logged_events(logger, "info")


@pytest.mark.asyncio
async def test_indexed_lookup_does_not_take_a_second_slot(tmp_path: Path) -> None:
    """Index hits resolve ids without re-entering admission control."""
    users = await _open_collection(tmp_path, max_concurrent=1)
    await users.add_index_field("name")
    await users.insert({"name": "Gus"})

    result = await users.find_by_field("name", "Gus")

    assert result.ok


@pytest.mark.asyncio
async def test_update_merges_fields_and_preserves_id(tmp_path: Path) -> None:
    """Update should merge new fields over the stored record."""
    users = await _open_collection(tmp_path)
    inserted = await users.insert({"name": "Charlie", "age": 40})
    record_id = inserted.data["id"]

    updated = await users.update(record_id, {"age": 41, "id": "other"})

    assert updated.data == {"name": "Charlie", "age": 41, "id": record_id}
    assert (await users.find_by_id(record_id)).data["age"] == 41


@pytest.mark.asyncio
async def test_update_drops_stale_index_entry(tmp_path: Path) -> None:
    """Changing an indexed value should make the old value unreachable."""
    users = await _open_collection(tmp_path)
    await users.add_index_field("name")
    inserted = await users.insert({"name": "Hal"})
    await users.update(inserted.data["id"], {"name": "Hank"})

    old_value = await users.find_by_field("name", "Hal")
    new_value = await users.find_by_field("name", "Hank")

    assert old_value.status is Status.NOT_FOUND and new_value.data["id"] == inserted.data["id"]


@pytest.mark.asyncio
async def test_update_reports_missing_record(tmp_path: Path) -> None:
    """Updating an unknown id should return NotFound."""
    users = await _open_collection(tmp_path)

    result = await users.update("0" * 32, {"age": 1})

    assert result.status is Status.NOT_FOUND


@pytest.mark.asyncio
async def test_update_rejects_non_object_updates(tmp_path: Path) -> None:
    """Updates must be object-shaped."""
    users = await _open_collection(tmp_path)
    inserted = await users.insert({"name": "Ivy"})

    result = await users.update(inserted.data["id"], ["age", 1])

    assert result.status is Status.INVALID_DATA


@pytest.mark.asyncio
async def test_delete_makes_record_unreachable(tmp_path: Path) -> None:
    """Deleted ids should return NotFound from every lookup path."""
    users = await _open_collection(tmp_path)
    await users.add_index_field("name")
    inserted = await users.insert({"name": "Dave", "age": 50})

    deleted = await users.delete(inserted.data["id"])
    by_id = await users.find_by_id(inserted.data["id"])
    by_field = await users.find_by_field("name", "Dave")

    assert deleted.ok and deleted.data is True
    assert by_id.status is Status.NOT_FOUND and by_field.status is Status.NOT_FOUND


@pytest.mark.asyncio
async def test_delete_reports_missing_record(tmp_path: Path) -> None:
    """Deleting an unknown id should return NotFound with False."""
    users = await _open_collection(tmp_path)

    result = await users.delete("0" * 32)

    assert result.status is Status.NOT_FOUND and result.data is False


@pytest.mark.parametrize("limit", [1, 2, 3])
@pytest.mark.asyncio
async def test_admission_rejects_exactly_one_of_limit_plus_one(tmp_path: Path, limit: int) -> None:
    """L+1 simultaneous inserts should yield L successes and one 429."""
    logger = MagicMock()
    users = await _open_collection(tmp_path, logger, max_concurrent=limit)

    results = await asyncio.gather(
        *(users.insert({"name": f"Test{position}"}) for position in range(limit + 1))
    )
    codes = sorted(result.code for result in results)

    assert codes == [200] * limit + [429]
    assert "admission_rejected" in _logged_events(logger, "warning")


@pytest.mark.asyncio
async def test_admission_slots_are_released_after_completion(tmp_path: Path) -> None:
    """Slots should be returned on success and on early returns."""
    users = await _open_collection(tmp_path, max_concurrent=1)
    await users.insert(None)
    await users.find_by_id("missing")

    result = await users.insert({"name": "After"})

    assert result.ok


@pytest.mark.asyncio
async def test_size_ceiling_rejects_the_next_write(tmp_path: Path) -> None:
    """Once the document exceeds the ceiling, further writes are rejected."""
    users = await _open_collection(tmp_path, max_size_bytes=64)
    first = await users.insert({"blob": "x" * 100})

    second = await users.insert({"name": "late"})

    assert first.ok and second.status is Status.SIZE_LIMIT_EXCEEDED
    assert await users.count() == 1


@pytest.mark.asyncio
async def test_debounced_inserts_are_all_persisted_on_flush(tmp_path: Path) -> None:
    """Sequential inserts within one window should all survive the coalesced write."""
    users = await _open_collection(
        tmp_path, synchronous_writes=False, write_debounce_seconds=10.0
    )
    for position in range(3):
        await users.insert({"position": position})

    before_flush = json.loads(users.path.read_text(encoding="utf-8"))
    await users.flush()
    after_flush = json.loads(users.path.read_text(encoding="utf-8"))

    assert before_flush == [] and [record["position"] for record in after_flush] == [0, 1, 2]


@pytest.mark.asyncio
async def test_returned_records_are_not_shared_with_storage(tmp_path: Path) -> None:
    """Mutating a returned record should not alter stored data."""
    users = await _open_collection(tmp_path)
    inserted = await users.insert({"name": "Jo"})
    inserted.data["name"] = "changed"

    found = await users.find_by_id(inserted.data["id"])

    assert found.data["name"] == "Jo"


@pytest.mark.parametrize("synchronous_writes", [True, False])
@pytest.mark.asyncio
async def test_insert_rejects_values_json_cannot_store(
    tmp_path: Path, synchronous_writes: bool
) -> None:
    """Unserializable values should be rejected without blocking later writes."""
    users = await _open_collection(
        tmp_path, synchronous_writes=synchronous_writes, write_debounce_seconds=0.01
    )

    rejected = await users.insert({"when": date(2024, 1, 1)})
    accepted = await users.insert({"name": "Kit"})
    await users.flush()
    on_disk = json.loads(users.path.read_text(encoding="utf-8"))

    assert rejected.status is Status.INVALID_DATA and accepted.ok
    assert [record["name"] for record in on_disk] == ["Kit"]


@pytest.mark.parametrize("synchronous_writes", [True, False])
@pytest.mark.asyncio
async def test_update_rejects_values_json_cannot_store(
    tmp_path: Path, synchronous_writes: bool
) -> None:
    """Updates carrying unserializable values should leave the record untouched."""
    users = await _open_collection(
        tmp_path, synchronous_writes=synchronous_writes, write_debounce_seconds=0.01
    )
    inserted = await users.insert({"name": "Lou"})

    result = await users.update(inserted.data["id"], {"tags": {"a", "b"}})
    await users.flush()
    on_disk = json.loads(users.path.read_text(encoding="utf-8"))

    assert result.status is Status.INVALID_DATA
    assert on_disk == [{"name": "Lou", "id": inserted.data["id"]}]


@pytest.mark.parametrize("indexed", [False, True])
@pytest.mark.asyncio
async def test_find_by_field_keeps_booleans_and_numbers_apart(
    tmp_path: Path, indexed: bool
) -> None:
    """Indexed and scanned lookups should agree that 1 does not match True."""
    users = await _open_collection(tmp_path)
    if indexed:
        await users.add_index_field("flag")
    await users.insert({"flag": True})

    by_number = await users.find_by_field("flag", 1)
    by_boolean = await users.find_by_field("flag", True)

    assert by_number.status is Status.NOT_FOUND and by_boolean.data["flag"] is True
