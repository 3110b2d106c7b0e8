"""Vector store for index entries, backed by a Qdrant collection."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Sequence
from typing import TypeVar

from qdrant_client import models as q

from vault_index.adapters import qdrant_mapper
from vault_index.core.constants import K_DOCUMENT_ID
from vault_index.core.exceptions import StorageError
from vault_index.core.logging import get_logger
from vault_index.core.models import DocumentState, IndexEntry
from vault_index.services.point_ids import chunk_point_id
from vault_index.services.qdrant_service import QdrantService

logger = get_logger(__name__)

T = TypeVar("T")


def _document_filter(document_id: str) -> q.Filter:
    return q.Filter(
        must=[
            q.FieldCondition(
                key=K_DOCUMENT_ID,
                match=q.MatchValue(value=document_id),
            )
        ]
    )


class VectorRepository:
    """Durable mapping from chunk id to entry, with lookup by document.

    Point ids derive from chunk ids, so the collection is keyed by chunk id; the
    keyword index on ``document_id`` serves as the secondary index. Mutations and
    multi-page scans share one lock, so a scan never observes half of a replace.
    """

    def __init__(self, qdrant_service: QdrantService, *, scroll_batch_size: int = 256):
        self._qdrant = qdrant_service
        self._scroll_batch_size = scroll_batch_size
        self._lock = asyncio.Lock()

    async def upsert(self, entries: Sequence[IndexEntry]) -> None:
        """Write a batch of entries in a single request.

        Raises:
            StorageError: If the write fails.
        """
        if not entries:
            return
        points = [qdrant_mapper.entry_to_point(entry) for entry in entries]
        async with self._lock:
            await self._guard("upsert entries", self._qdrant.upsert_points(points))

    async def replace_document(self, document_id: str, entries: Sequence[IndexEntry]) -> None:
        """Make ``entries`` the complete entry set of a document.

        New entries are written first and stale ones deleted afterwards. If either
        step fails, the previous entries are restored before ``StorageError`` is
        raised, so the document keeps its last good index.
        """
        for entry in entries:
            if entry.document_id != document_id:
                raise ValueError(
                    f"Entry {entry.chunk_id} belongs to {entry.document_id}, not {document_id}"
                )

        points = [qdrant_mapper.entry_to_point(entry) for entry in entries]
        keep_ids = [str(point.id) for point in points]

        async with self._lock:
            previous = await self._scan(_document_filter(document_id))
            try:
                await self._guard("upsert entries", self._qdrant.upsert_points(points))
                await self._guard("delete stale entries", self._delete_stale(document_id, keep_ids))
            except StorageError:
                await self._restore(document_id, previous, keep_ids)
                raise

        logger.debug(
            "Replaced %d entries of '%s' with %d", len(previous), document_id, len(entries)
        )

    async def delete_by_document(self, document_id: str) -> None:
        """Remove every entry of a document. Deleting nothing is not an error."""
        async with self._lock:
            await self._guard(
                "delete document entries",
                self._qdrant.delete_where(_document_filter(document_id)),
            )

    async def get(self, chunk_id: str) -> IndexEntry | None:
        """Point lookup by chunk id."""
        records = await self._guard(
            "retrieve entry",
            self._qdrant.retrieve([chunk_point_id(chunk_id)]),
        )
        if not records:
            return None
        return qdrant_mapper.record_to_entry(records[0])

    async def get_by_document(self, document_id: str) -> list[IndexEntry]:
        """Entries of a document in chunk order."""
        async with self._lock:
            entries = await self._scan(_document_filter(document_id))
        return sorted(entries, key=lambda entry: entry.ordinal)

    async def get_all(self) -> list[IndexEntry]:
        """Consistent snapshot of every entry, ordered by document then chunk."""
        async with self._lock:
            entries = await self._scan(None)
        return sorted(entries, key=lambda entry: (entry.document_id, entry.ordinal))

    async def get_document_state(self, document_id: str) -> DocumentState | None:
        """Checksum and model of a document's stored entries, if it has any."""
        records, _ = await self._guard(
            "read document state",
            self._qdrant.scroll_page(limit=1, filter_=_document_filter(document_id)),
        )
        if not records:
            return None
        return qdrant_mapper.record_to_state(records[0])

    async def count(self, document_id: str | None = None) -> int:
        """Number of stored entries, optionally for one document."""
        filter_ = _document_filter(document_id) if document_id is not None else None
        return await self._guard("count entries", self._qdrant.count(filter_))

    async def _scan(self, filter_: q.Filter | None) -> list[IndexEntry]:
        entries: list[IndexEntry] = []
        offset = None
        while True:
            records, offset = await self._guard(
                "scan entries",
                self._qdrant.scroll_page(
                    limit=self._scroll_batch_size,
                    offset=offset,
                    filter_=filter_,
                ),
            )
            for record in records:
                try:
                    entries.append(qdrant_mapper.record_to_entry(record))
                except ValueError as exc:
                    logger.warning("Skipping unreadable entry %s: %s", record.id, exc)
            if offset is None:
                return entries

    async def _delete_stale(self, document_id: str, keep_ids: list[str]) -> None:
        filter_ = _document_filter(document_id)
        if keep_ids:
            filter_.must_not = [q.HasIdCondition(has_id=list(keep_ids))]
        await self._qdrant.delete_where(filter_)

    async def _restore(
        self,
        document_id: str,
        previous: list[IndexEntry],
        written_ids: list[str],
    ) -> None:
        previous_points = [qdrant_mapper.entry_to_point(entry) for entry in previous]
        previous_ids = {str(point.id) for point in previous_points}
        added_ids = [point_id for point_id in written_ids if point_id not in previous_ids]
        try:
            await self._qdrant.delete_ids(added_ids)
            await self._qdrant.upsert_points(previous_points)
        except Exception:
            logger.error(
                "Rollback of '%s' failed; its entries may be incomplete",
                document_id,
                exc_info=True,
            )
        else:
            logger.warning("Rolled back '%s' to its %d previous entries", document_id, len(previous))

    @staticmethod
    async def _guard(action: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except StorageError:
            raise
        except Exception as exc:
            logger.error("Failed to %s: %s", action, exc, exc_info=True)
            raise StorageError(f"Failed to {action}: {exc}") from exc


__all__ = ["VectorRepository"]
