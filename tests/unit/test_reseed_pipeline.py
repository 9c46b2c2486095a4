"""Unit tests for the reseed pipeline.

Runs against InMemoryStore; FlakyStore fails a chosen commit to exercise
partial progress.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from renoquote.catalog.store_io import fetch_definition
from renoquote.catalog.validation import validate
from renoquote.exceptions import BatchBuildError, BatchCommitError, PipelineError
from renoquote.pipeline.reseed import ReseedPipeline, chunked, reseed, reseed_catalog
from renoquote.pipeline.types import ReseedPhase, SeedTaskRecord
from renoquote.store.memory import InMemoryStore


class FlakyStore(InMemoryStore):
    """InMemoryStore whose Nth commit fails before applying anything."""

    def __init__(self, fail_on_commit: int, **kwargs):
        super().__init__(**kwargs)
        self.fail_on_commit = fail_on_commit
        self.attempts = 0

    def _apply(self, ops):
        self.attempts += 1
        if self.attempts == self.fail_on_commit:
            raise RuntimeError("deadline exceeded")
        super()._apply(ops)


def _existing(count: int) -> dict[str, dict]:
    return {f"old-{i}": {"name": f"Old task {i}"} for i in range(count)}


@pytest.fixture
def records() -> list[SeedTaskRecord]:
    return [
        SeedTaskRecord(name="Install only", description="Installation service only."),
        SeedTaskRecord(name="Grind & prepare", default_unit="m²"),
        SeedTaskRecord(name="Cut and chase", default_unit="lm"),
    ]


def _content(store: InMemoryStore, collection: str = "tasks") -> set[tuple]:
    return {
        (doc["name"], doc["name_lowercase"], doc["description"], doc["defaultUnit"])
        for doc in store.snapshot(collection).values()
    }


class TestChunked:
    def test_remainder_in_last_chunk(self):
        assert [len(chunk) for chunk in chunked(list(range(1200)), 500)] == [500, 500, 200]

    def test_empty(self):
        assert list(chunked([], 500)) == []


class TestReseed:
    """Test delete-then-insert replacement."""

    @pytest.mark.asyncio
    async def test_empty_collection(self, store, records):
        """Test an empty collection records zero deletions."""
        report = await reseed(store, records)

        assert report.deleted == 0
        assert report.delete_batches == 0
        assert report.inserted == 3
        assert report.insert_batches == 1
        assert store.count("tasks") == 3

    @pytest.mark.asyncio
    async def test_replaces_existing_documents(self, store, records):
        store.put("tasks", _existing(7))

        report = await reseed(store, records)

        assert report.deleted == 7
        assert not any(doc_id.startswith("old-") for doc_id in store.snapshot("tasks"))
        assert _content(store) == {
            ("Install only", "install only", "Installation service only.", "item"),
            ("Grind & prepare", "grind & prepare", "", "m²"),
            ("Cut and chase", "cut and chase", "", "lm"),
        }

    @pytest.mark.asyncio
    async def test_document_shape(self, store, records, now):
        await reseed(store, records[:1])

        (document,) = store.snapshot("tasks").values()
        assert document == {
            "name": "Install only",
            "name_lowercase": "install only",
            "description": "Installation service only.",
            "defaultUnit": "item",
            "createdAt": now,
            "updatedAt": now,
        }

    @pytest.mark.asyncio
    async def test_idempotent_final_state(self, store, records):
        """Test two runs leave the same content under fresh ids."""
        store.put("tasks", _existing(3))

        await reseed(store, records)
        first_ids = set(store.snapshot("tasks"))
        first_content = _content(store)

        report = await reseed(store, records)

        assert report.deleted == 3
        assert _content(store) == first_content
        assert set(store.snapshot("tasks")).isdisjoint(first_ids)

    @pytest.mark.asyncio
    async def test_batches_split_at_limit(self, store):
        """Test 1200 deletes and inserts go out as 500/500/200."""
        store.put("tasks", _existing(1200))
        many = [SeedTaskRecord(name=f"Task {i}") for i in range(1200)]

        report = await reseed(store, many, batch_limit=500)

        assert report.deleted == 1200
        assert report.delete_batches == 3
        assert report.inserted == 1200
        assert report.insert_batches == 3
        assert store.commit_count == 6
        assert report.total_operations == 2400

    @pytest.mark.asyncio
    async def test_smaller_batch_limit(self, store, records):
        store.put("tasks", _existing(5))

        report = await reseed(store, records, batch_limit=2)

        assert report.delete_batches == 3
        assert report.insert_batches == 2

    @pytest.mark.asyncio
    async def test_other_collection(self, store, records):
        store.put("tasks", _existing(2))

        await reseed(store, records, collection="globalTasks")

        assert store.count("globalTasks") == 3
        assert store.count("tasks") == 2


class TestReseedFailures:
    """Test partial progress when a commit fails."""

    @pytest.mark.asyncio
    async def test_second_delete_batch_fails(self, records):
        store = FlakyStore(fail_on_commit=2)
        store.put("tasks", _existing(1200))
        pipeline = ReseedPipeline(store, "tasks", batch_limit=500)

        with pytest.raises(BatchCommitError) as exc_info:
            await pipeline.run(records)

        error = exc_info.value
        assert error.phase == ReseedPhase.DELETING
        assert error.batch_number == 2
        assert error.report.deleted == 500
        assert error.report.inserted == 0
        assert "deadline exceeded" in str(error)
        assert pipeline.state == ReseedPhase.FAILED
        assert store.count("tasks") == 700

    @pytest.mark.asyncio
    async def test_failure_during_insert(self, records):
        store = FlakyStore(fail_on_commit=2)
        store.put("tasks", _existing(2))
        many = [SeedTaskRecord(name=f"Task {i}") for i in range(5)]
        pipeline = ReseedPipeline(store, "tasks", batch_limit=2)

        with pytest.raises(BatchCommitError) as exc_info:
            await pipeline.run(many)

        error = exc_info.value
        assert error.phase == ReseedPhase.INSERTING
        assert error.batch_number == 1
        assert error.report.deleted == 2
        assert error.report.inserted == 0
        assert store.count("tasks") == 0

    @pytest.mark.asyncio
    async def test_listing_failure_writes_nothing(self, store, records):
        store.put("tasks", _existing(4))
        pipeline = ReseedPipeline(store, "tasks")

        with patch.object(
            store, "list_documents", AsyncMock(side_effect=RuntimeError("unavailable"))
        ):
            with pytest.raises(PipelineError):
                await pipeline.run(records)

        assert pipeline.state == ReseedPhase.FAILED
        assert store.count("tasks") == 4
        assert store.commit_count == 0

    @pytest.mark.asyncio
    async def test_bad_records_checked_before_delete(self, store):
        """Test a failing record source leaves the collection untouched."""
        store.put("tasks", _existing(4))

        def broken():
            yield SeedTaskRecord(name="Remove")
            raise ValueError("bad seed row")

        with pytest.raises(ValueError):
            await reseed(store, broken())

        assert store.count("tasks") == 4


class TestReseedPipelineState:
    """Test the pipeline state machine."""

    @pytest.mark.asyncio
    async def test_states(self, store, records):
        pipeline = ReseedPipeline(store, "tasks")
        assert pipeline.state == ReseedPhase.IDLE

        await pipeline.run(records)

        assert pipeline.state == ReseedPhase.DONE

    @pytest.mark.asyncio
    async def test_single_use(self, store, records):
        pipeline = ReseedPipeline(store, "tasks")
        await pipeline.run(records)

        with pytest.raises(PipelineError, match="already ran"):
            await pipeline.run(records)

    def test_batch_limit_must_be_positive(self, store):
        with pytest.raises(ValueError):
            ReseedPipeline(store, "tasks", batch_limit=0)

    @pytest.mark.parametrize("limit", [501, 600])
    def test_batch_limit_capped(self, store, limit):
        with pytest.raises(ValueError, match="between 1 and 500"):
            ReseedPipeline(store, "tasks", batch_limit=limit)

    @pytest.mark.asyncio
    async def test_reseed_rejects_oversized_batch_limit(self, store, records):
        store.put("tasks", _existing(600))

        with pytest.raises(ValueError):
            await reseed(store, records, batch_limit=600)

        assert store.count("tasks") == 600

    @pytest.mark.asyncio
    async def test_delete_batch_build_failure(self, records):
        """Test a store that refuses a write while a batch is assembled."""
        store = InMemoryStore(max_batch_size=2)
        store.put("tasks", _existing(5))
        pipeline = ReseedPipeline(store, "tasks", batch_limit=3)

        with pytest.raises(BatchBuildError) as exc_info:
            await pipeline.run(records)

        error = exc_info.value
        assert isinstance(error, PipelineError)
        assert error.phase == ReseedPhase.DELETING
        assert error.batch_number == 1
        assert error.report.deleted == 0
        assert pipeline.state == ReseedPhase.FAILED
        assert store.count("tasks") == 5

    @pytest.mark.asyncio
    async def test_insert_batch_build_failure(self, store, records):
        store.put("tasks", _existing(4))
        pipeline = ReseedPipeline(store, "tasks")

        with patch.object(store, "document", side_effect=RuntimeError("bad path")):
            with pytest.raises(BatchBuildError) as exc_info:
                await pipeline.run(records)

        error = exc_info.value
        assert error.phase == ReseedPhase.INSERTING
        assert error.report.deleted == 4
        assert error.report.inserted == 0
        assert "bad path" in str(error)
        assert pipeline.state == ReseedPhase.FAILED
        assert store.count("tasks") == 0

    @pytest.mark.asyncio
    async def test_returned_report_is_a_copy(self, store, records):
        pipeline = ReseedPipeline(store, "tasks")

        report = await pipeline.run(records)
        report.inserted = 99

        assert pipeline.report.inserted == 3


class TestReseedCatalog:
    """Test reseeding the five catalog collections."""

    @pytest.mark.asyncio
    async def test_reports_in_hierarchy_order(self, store, catalog):
        reports = await reseed_catalog(store, catalog)

        assert list(reports) == ["areas", "categories", "tasks", "materials", "materialOptions"]
        assert [report.inserted for report in reports.values()] == [1, 2, 3, 2, 3]

    @pytest.mark.asyncio
    async def test_entity_ids_kept(self, store, catalog, now):
        await reseed_catalog(store, catalog)

        assert store.snapshot("categories")["category-1"] == {
            "name": "Plumbing",
            "name_lowercase": "plumbing",
            "areaId": "area-1",
            "tasks": ["task-1"],
            "createdAt": now,
            "updatedAt": now,
        }
        task = store.snapshot("tasks")["task-2"]
        assert task["pricingMethod"] == "meter_rate"
        assert task["meter_rate"] == 50.0
        assert "fixed_price" not in task

    @pytest.mark.asyncio
    async def test_round_trip(self, store, catalog):
        """Test a reseeded catalog reads back and validates to the same snapshot."""
        await reseed_catalog(store, catalog)

        fetched = validate(await fetch_definition(store)).unwrap()

        assert fetched == catalog

    @pytest.mark.asyncio
    async def test_reseed_replaces_previous_catalog(self, store, catalog):
        store.put("areas", {"area-old": {"name": "Garage", "categories": []}})

        reports = await reseed_catalog(store, catalog)

        assert reports["areas"].deleted == 1
        assert list(store.snapshot("areas")) == ["area-1"]
