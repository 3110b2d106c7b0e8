"""Coordinates chunking, embedding and storage for individual documents."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from vault_index.core.constants import OP_INDEXED, OP_REMOVED, OP_SUPERSEDED, OP_UNCHANGED
from vault_index.core.logging import get_logger
from vault_index.core.models import Chunk, IndexEntry, ReindexStats
from vault_index.repositories.vector_repository import VectorRepository
from vault_index.services.embedding_client import EmbeddingClient
from vault_index.text_processing.checksum import compute_checksum
from vault_index.text_processing.chunker import Chunker

logger = get_logger(__name__)


class IndexCoordinator:
    """The only writer of the vector store on behalf of documents.

    Per document, at most one reindex or removal runs at a time; later requests
    wait their turn. Each request carries a version (supplied, or the next one in
    issue order), and a request older than one already requested or committed is
    skipped as superseded, so an older snapshot never overwrites a newer one.

    A reindex is all-or-nothing: every chunk is embedded before the store is
    touched, and any failure leaves the document's previous entries in place.
    """

    def __init__(
        self,
        *,
        chunker: Chunker,
        embedding_client: EmbeddingClient,
        vector_repository: VectorRepository,
        max_concurrent_documents: int = 4,
    ) -> None:
        self._chunker = chunker
        self._embedding_client = embedding_client
        self._vector_repository = vector_repository
        self._semaphore = asyncio.Semaphore(max(1, max_concurrent_documents))
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._requested: dict[str, int] = {}
        self._committed: dict[str, int] = {}

    async def reindex_document(
        self,
        document_id: str,
        text: str,
        *,
        version: int | None = None,
        force: bool = False,
    ) -> ReindexStats:
        """Rebuild a document's entries from ``text``.

        Args:
            document_id: Stable document identifier.
            text: Current content of the document.
            version: Content version; defaults to issue order.
            force: Re-embed even when the stored checksum matches.

        Raises:
            EmbeddingServiceError: If any chunk cannot be embedded.
            StorageError: If the new entries cannot be written.
        """
        version = self._claim_version(document_id, version)

        async with self._document_lock(document_id):
            if self._is_stale(document_id, version):
                return self._superseded(document_id, version)

            async with self._semaphore:
                return await self._reindex_locked(document_id, text, version, force)

    async def remove_document(
        self,
        document_id: str,
        *,
        version: int | None = None,
    ) -> ReindexStats:
        """Delete every entry of a document; removing an unknown document is a no-op."""
        version = self._claim_version(document_id, version)

        async with self._document_lock(document_id):
            if self._is_stale(document_id, version):
                return self._superseded(document_id, version)

            await self._vector_repository.delete_by_document(document_id)
            self._committed[document_id] = version

        logger.info("Removed document '%s' (version %s)", document_id, version)
        return ReindexStats(
            document_id=document_id,
            operation=OP_REMOVED,
            chunks=0,
            version=version,
        )

    def latest_version(self, document_id: str) -> int | None:
        """Newest version requested for a document, if any."""
        return self._requested.get(document_id)

    async def _reindex_locked(
        self,
        document_id: str,
        text: str,
        version: int,
        force: bool,
    ) -> ReindexStats:
        chunks = self._chunker.chunk(document_id, text)
        checksum = compute_checksum(text)
        model = self._embedding_client.model
        signature = self._chunker.signature

        logger.info(
            "Reindexing '%s' (version %s): %d chunks, %d chars",
            document_id,
            version,
            len(chunks),
            len(text),
        )

        if not force and await self._is_unchanged(document_id, chunks, checksum, model, signature):
            self._committed[document_id] = version
            logger.info("Content of '%s' unchanged; skipping embeddings", document_id)
            return ReindexStats(
                document_id=document_id,
                operation=OP_UNCHANGED,
                chunks=len(chunks),
                version=version,
            )

        vectors = await self._embedding_client.embed_many([chunk.text for chunk in chunks])

        entries = [
            IndexEntry(
                chunk_id=chunk.id,
                document_id=document_id,
                vector=vector,
                ordinal=chunk.ordinal,
                text=chunk.text,
                checksum=checksum,
                model=model,
                chunker=signature,
            )
            for chunk, vector in zip(chunks, vectors, strict=True)
        ]

        await self._vector_repository.replace_document(document_id, entries)
        self._committed[document_id] = version

        logger.info("Indexed '%s' with %d entries", document_id, len(entries))
        return ReindexStats(
            document_id=document_id,
            operation=OP_INDEXED,
            chunks=len(entries),
            version=version,
        )

    async def _is_unchanged(
        self,
        document_id: str,
        chunks: list[Chunk],
        checksum: str,
        model: str,
        signature: str,
    ) -> bool:
        state = await self._vector_repository.get_document_state(document_id)
        if state is None:
            # Nothing stored and nothing to store is also a no-op.
            return not chunks
        return (
            state.checksum == checksum
            and state.model == model
            and state.chunker == signature
        )

    def _claim_version(self, document_id: str, version: int | None) -> int:
        latest = self._requested.get(document_id)
        if version is None:
            version = (latest or 0) + 1
        if latest is None or version > latest:
            self._requested[document_id] = version
        return version

    def _is_stale(self, document_id: str, version: int) -> bool:
        if version < self._requested.get(document_id, version):
            return True
        committed = self._committed.get(document_id)
        return committed is not None and version < committed

    def _superseded(self, document_id: str, version: int) -> ReindexStats:
        logger.info(
            "Skipping '%s' version %s; a newer version was requested",
            document_id,
            version,
        )
        return ReindexStats(
            document_id=document_id,
            operation=OP_SUPERSEDED,
            chunks=0,
            version=version,
        )

    @asynccontextmanager
    async def _document_lock(self, document_id: str) -> AsyncIterator[None]:
        """Hold the document's lock; the lock is dropped once nobody uses or awaits it."""
        lock = self._locks.get(document_id)
        if lock is None:
            lock = self._locks[document_id] = asyncio.Lock()
        self._lock_users[document_id] = self._lock_users.get(document_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_users[document_id] - 1
            if remaining:
                self._lock_users[document_id] = remaining
            else:
                del self._lock_users[document_id]
                del self._locks[document_id]


__all__ = ["IndexCoordinator"]
