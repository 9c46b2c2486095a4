"""Reseed pipeline - replaces a collection's contents in atomic batches.

A run deletes every existing document, then inserts one document per input
record. Writes are grouped into batches of at most ``batch_limit``; each
batch commits atomically and is awaited before the next is submitted.

Atomicity stops at the batch boundary. If a batch cannot be built or its
commit fails, the run stops and the batches already committed in that phase
stay committed. The raised ``BatchError`` reports how far the run got so
operators know the collection's partial state. There are no retries.

The pipeline assumes it owns the collection for the duration of a run;
concurrent runs against the same collection must be serialized by the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import replace
from typing import NoReturn, TypeVar

from renoquote.catalog.snapshot import ValidatedCatalog
from renoquote.catalog.store_io import catalog_documents
from renoquote.config import MAX_BATCH_LIMIT
from renoquote.exceptions import BatchBuildError, BatchCommitError, BatchError, PipelineError
from renoquote.pipeline.documents import build_document
from renoquote.pipeline.types import ReseedPhase, SeedRecord, SeedReport
from renoquote.store.base import DocumentRef, DocumentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Split ``items`` into consecutive slices of at most ``size``."""
    for start in range(0, len(items), size):
        yield items[start : start + size]


class ReseedPipeline:
    """Delete-then-insert replacement of one collection.

    Args:
        store: Store handle, constructed once by the caller
        collection: Target collection name
        batch_limit: Maximum writes per atomic batch
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        batch_limit: int = MAX_BATCH_LIMIT,
    ):
        if not 1 <= batch_limit <= MAX_BATCH_LIMIT:
            raise ValueError(
                f"batch_limit must be between 1 and {MAX_BATCH_LIMIT}, got {batch_limit}"
            )
        self.store = store
        self.collection = collection
        self.batch_limit = batch_limit
        self.state = ReseedPhase.IDLE
        self.report = SeedReport(collection=collection)

    async def run(self, records: Iterable[SeedRecord]) -> SeedReport:
        """Execute the full reseed.

        Args:
            records: Records to insert once the collection is empty

        Returns:
            SeedReport with deletion and insertion counts

        Raises:
            BatchBuildError: A batch could not be assembled (partial progress attached)
            BatchCommitError: A batch commit failed (partial progress attached)
            PipelineError: The run was already used, or listing failed
        """
        if self.state != ReseedPhase.IDLE:
            raise PipelineError(f"Reseed pipeline already ran (state={self.state.value})")

        # Fully materialized before the first delete
        records = list(records)

        logger.info(
            f"Reseeding '{self.collection}': {len(records)} record(s), "
            f"batch limit {self.batch_limit}"
        )

        self.state = ReseedPhase.DELETING
        await self._delete_all()

        self.state = ReseedPhase.INSERTING
        await self._insert_all(records)

        self.state = ReseedPhase.DONE
        logger.info(
            f"Reseed of '{self.collection}' complete: "
            f"{self.report.deleted} deleted, {self.report.inserted} inserted"
        )
        return replace(self.report)

    async def _delete_all(self) -> None:
        try:
            existing = await self.store.list_documents(self.collection)
        except Exception as e:
            self.state = ReseedPhase.FAILED
            logger.error(f"Could not list '{self.collection}': {e}")
            raise PipelineError(f"Could not list documents in '{self.collection}': {e}") from e

        if not existing:
            logger.info(f"No existing documents in '{self.collection}'")
            return

        refs = [document.ref for document in existing]
        for number, chunk in enumerate(chunked(refs, self.batch_limit), start=1):
            try:
                batch = self.store.batch()
                for ref in chunk:
                    batch.delete(ref)
            except Exception as e:
                self._fail(BatchBuildError, number, ReseedPhase.DELETING, e)
            await self._commit(batch, number, ReseedPhase.DELETING)
            self.report.deleted += len(chunk)
            self.report.delete_batches += 1
            logger.info(f"  Deleted batch {number}: {len(chunk)} document(s)")

    async def _insert_all(self, records: list[SeedRecord]) -> None:
        for number, chunk in enumerate(chunked(records, self.batch_limit), start=1):
            try:
                batch = self.store.batch()
                for record in chunk:
                    ref: DocumentRef = self.store.document(self.collection, record.document_id)
                    batch.set(ref, build_document(record, self.store.server_timestamp()))
            except Exception as e:
                self._fail(BatchBuildError, number, ReseedPhase.INSERTING, e)
            await self._commit(batch, number, ReseedPhase.INSERTING)
            self.report.inserted += len(chunk)
            self.report.insert_batches += 1
            logger.info(f"  Inserted batch {number}: {len(chunk)} document(s)")

    async def _commit(self, batch, number: int, phase: ReseedPhase) -> None:
        try:
            await batch.commit()
        except Exception as e:
            self._fail(BatchCommitError, number, phase, e)

    def _fail(
        self, error_cls: type[BatchError], number: int, phase: ReseedPhase, cause: Exception
    ) -> NoReturn:
        self.state = ReseedPhase.FAILED
        logger.error(
            f"✗ Batch {number} {error_cls.action} while {phase.value} '{self.collection}': {cause}",
            exc_info=True,
        )
        raise error_cls(phase, number, replace(self.report), cause) from cause


async def reseed(
    store: DocumentStore,
    new_records: Iterable[SeedRecord],
    *,
    collection: str = "tasks",
    batch_limit: int = MAX_BATCH_LIMIT,
) -> SeedReport:
    """Convenience function to run one reseed.

    Final collection state depends only on ``new_records``; every run deletes
    and re-inserts everything and generates fresh ids.
    """
    pipeline = ReseedPipeline(store, collection, batch_limit=batch_limit)
    return await pipeline.run(new_records)


async def reseed_catalog(
    store: DocumentStore,
    catalog: ValidatedCatalog,
    *,
    batch_limit: int = MAX_BATCH_LIMIT,
) -> dict[str, SeedReport]:
    """Reseed all five catalog collections, parents first.

    Entity ids are kept as document ids so references stay valid. Each
    collection is its own run; a failure stops before later collections.

    Returns:
        Report per collection name, in seeding order
    """
    reports: dict[str, SeedReport] = {}
    for entity_type, records in catalog_documents(catalog).items():
        reports[entity_type.value] = await reseed(
            store, records, collection=entity_type.value, batch_limit=batch_limit
        )
    return reports
