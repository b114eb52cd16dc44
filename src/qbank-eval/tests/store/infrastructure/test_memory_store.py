"""Tests for InMemoryDocumentStore and its JSON file subclass."""

import asyncio
import os
from pathlib import Path

import pytest

from qbank_eval.store.domain.document_store import Filter
from qbank_eval.store.infrastructure.errors import (
    DocumentExistsError,
    DocumentNotFoundError,
    StoreError,
)
from qbank_eval.store.infrastructure.json_file import JsonFileDocumentStore
from qbank_eval.store.infrastructure.memory import InMemoryDocumentStore


class TestBasicReadsAndWrites:
    async def test_get_missing_returns_none(self) -> None:
        store = InMemoryDocumentStore()

        assert await store.get("jobs", "nope") is None

    async def test_set_then_get_returns_copy(self) -> None:
        store = InMemoryDocumentStore()
        await store.set("jobs", "a", {"status": "pending", "nested": {"x": 1}})

        doc = await store.get("jobs", "a")
        assert doc is not None
        doc["nested"]["x"] = 99

        again = await store.get("jobs", "a")
        assert again == {"status": "pending", "nested": {"x": 1}}

    async def test_set_with_merge_keeps_untouched_fields(self) -> None:
        store = InMemoryDocumentStore()
        await store.set("jobs", "a", {"a": 1, "nested": {"x": 1, "y": 2}})

        await store.set("jobs", "a", {"nested": {"y": 3}}, merge=True)

        assert await store.get("jobs", "a") == {"a": 1, "nested": {"x": 1, "y": 3}}

    async def test_create_refuses_existing_id(self) -> None:
        store = InMemoryDocumentStore()
        await store.create("results", "test_0", {"v": 1})

        with pytest.raises(DocumentExistsError):
            await store.create("results", "test_0", {"v": 2})

        assert await store.get("results", "test_0") == {"v": 1}

    async def test_add_generates_distinct_ids(self) -> None:
        store = InMemoryDocumentStore()

        first = await store.add("queue", {"n": 1})
        second = await store.add("queue", {"n": 2})

        assert first != second
        assert len(await store.query("queue")) == 2

    async def test_update_missing_document_raises(self) -> None:
        store = InMemoryDocumentStore()

        with pytest.raises(DocumentNotFoundError):
            await store.update("jobs", "ghost", {"status": "running"})


class TestConditionalMutations:
    async def test_update_applies_dotted_paths(self) -> None:
        store = InMemoryDocumentStore()
        await store.set("jobs", "a", {"progress": {"completed": 0, "total": 3}})

        applied = await store.update("jobs", "a", {"progress.completed": 2})

        assert applied is True
        assert await store.get("jobs", "a") == {"progress": {"completed": 2, "total": 3}}

    async def test_update_skipped_when_precondition_fails(self) -> None:
        store = InMemoryDocumentStore()
        await store.set("jobs", "a", {"status": "cancelled"})

        applied = await store.update(
            "jobs",
            "a",
            {"status": "running"},
            require=[Filter("status", "in", ["pending", "running"])],
        )

        assert applied is False
        assert await store.get("jobs", "a") == {"status": "cancelled"}

    async def test_increment_starts_from_zero_for_missing_field(self) -> None:
        store = InMemoryDocumentStore()
        await store.set("jobs", "a", {})

        await store.increment("jobs", "a", "progress.completed")

        assert await store.get("jobs", "a") == {"progress": {"completed": 1}}

    async def test_increment_respects_upper_bound_filter(self) -> None:
        store = InMemoryDocumentStore()
        await store.set("jobs", "a", {"completed": 2})
        bound = [Filter("completed", "<", 2)]

        applied = await store.increment("jobs", "a", "completed", require=bound)

        assert applied is False
        assert await store.get("jobs", "a") == {"completed": 2}

    async def test_concurrent_increments_are_not_lost(self) -> None:
        store = InMemoryDocumentStore()
        await store.set("jobs", "a", {"completed": 0})

        await asyncio.gather(*(store.increment("jobs", "a", "completed") for _ in range(25)))

        assert await store.get("jobs", "a") == {"completed": 25}

    async def test_array_append_extends_list(self) -> None:
        store = InMemoryDocumentStore()
        await store.set("jobs", "a", {"results": {"errors": [{"m": 1}]}})

        await store.array_append("jobs", "a", "results.errors", [{"m": 2}])

        doc = await store.get("jobs", "a")
        assert doc is not None
        assert doc["results"]["errors"] == [{"m": 1}, {"m": 2}]


class TestQuery:
    async def _seeded(self) -> InMemoryDocumentStore:
        store = InMemoryDocumentStore()
        await store.set("r", "test_2", {"i": 2, "status": "running"})
        await store.set("r", "test_0", {"i": 0, "status": "pending"})
        await store.set("r", "test_1", {"i": 1, "status": "completed"})
        return store

    async def test_filters_with_in_operator(self) -> None:
        store = await self._seeded()

        rows = await store.query("r", filters=[Filter("status", "in", ["pending", "running"])])

        assert sorted(doc_id for doc_id, _ in rows) == ["test_0", "test_2"]

    async def test_orders_and_limits(self) -> None:
        store = await self._seeded()

        rows = await store.query("r", order_by="i", descending=True, limit=2)

        assert [doc["i"] for _, doc in rows] == [2, 1]

    async def test_unknown_collection_is_empty(self) -> None:
        store = InMemoryDocumentStore()

        assert await store.query("missing") == []


class TestJsonFileDocumentStore:
    async def test_second_instance_sees_writes(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        first = JsonFileDocumentStore(path=path)
        await first.set("jobs", "a", {"status": "pending"})
        await first.increment("jobs", "a", "progress.completed_tests")

        second = JsonFileDocumentStore(path=path)

        assert await second.get("jobs", "a") == {
            "status": "pending",
            "progress": {"completed_tests": 1},
        }

    async def test_missing_file_starts_empty(self, tmp_path: Path) -> None:
        store = JsonFileDocumentStore(path=tmp_path / "nested" / "store.json")

        assert await store.query("jobs") == []

    def test_corrupt_file_raises_store_error(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StoreError):
            JsonFileDocumentStore(path=path)

    async def test_round_trip_of_every_mutation(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        first = JsonFileDocumentStore(path=path)
        await first.create("jobs", "a", {"status": "running", "results": {"errors": []}})
        await first.update("jobs", "a", {"progress.current_topic": "Vitiligo"})
        await first.array_append("jobs", "a", "results.errors", [{"message": "boom"}])
        log_id = await first.add("jobs/a/liveLogs", {"message": "started"})
        await asyncio.gather(
            *(first.increment("jobs", "a", "progress.completed_tests") for _ in range(3))
        )

        second = JsonFileDocumentStore(path=path)

        assert await second.get("jobs", "a") == {
            "status": "running",
            "results": {"errors": [{"message": "boom"}]},
            "progress": {"current_topic": "Vitiligo", "completed_tests": 3},
        }
        assert await second.get("jobs/a/liveLogs", log_id) == {"message": "started"}
        with pytest.raises(DocumentExistsError):
            await second.create("jobs", "a", {})

    async def test_failed_write_keeps_previous_version(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = JsonFileDocumentStore(path=blocker / "store.json")

        with pytest.raises(StoreError, match="cannot write"):
            await store.set("jobs", "a", {"status": "pending"})

        assert await store.get("jobs", "a") is None

    async def test_failed_update_does_not_change_memory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "store.json"
        store = JsonFileDocumentStore(path=path)
        await store.set("jobs", "a", {"status": "pending"})

        def _refuse(src: str, dst: Path) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", _refuse)

        with pytest.raises(StoreError, match="disk full"):
            await store.update("jobs", "a", {"status": "running"})

        assert await store.get("jobs", "a") == {"status": "pending"}
        reloaded = JsonFileDocumentStore(path=path)
        assert await reloaded.get("jobs", "a") == {"status": "pending"}
        assert [p.name for p in tmp_path.iterdir()] == ["store.json"]
