"""Wiring of the indexing components into one lifecycle-managed engine."""

from __future__ import annotations

from vault_index.config import Settings
from vault_index.core.exceptions import ValidationException
from vault_index.core.logging import get_logger
from vault_index.core.models import ReindexStats
from vault_index.repositories.vector_repository import VectorRepository
from vault_index.schemas.events import DocumentAction, DocumentChangeEvent
from vault_index.services.document_source import DocumentSource, VaultDocumentSource
from vault_index.services.embedding_client import EmbeddingClient
from vault_index.services.index_coordinator import IndexCoordinator
from vault_index.services.qdrant_service import QdrantService
from vault_index.services.search_service import SearchService
from vault_index.text_processing.chunker import Chunker
from vault_index.worker.handlers import DocumentChangeHandler
from vault_index.worker.index_queue import IndexQueue

logger = get_logger(__name__)


class IndexEngine:
    """Owns every component built from one ``Settings`` value.

    Collaborators can be injected (primarily for tests); anything not supplied is
    constructed from the settings.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        qdrant_service: QdrantService | None = None,
        embedding_client: EmbeddingClient | None = None,
        source: DocumentSource | None = None,
    ):
        self.settings = settings
        self.qdrant_service = qdrant_service or QdrantService(settings)
        self.embedding_client = embedding_client or EmbeddingClient(settings)
        if source is None and settings.vault_path:
            source = VaultDocumentSource(settings.vault_path, settings.vault_extensions)
        self.source = source

        self.vector_repository = VectorRepository(
            self.qdrant_service,
            scroll_batch_size=settings.qdrant_scroll_batch_size,
        )
        self.chunker = Chunker(
            max_tokens=settings.chunk_max_tokens,
            overlap=settings.chunk_overlap,
        )
        self.coordinator = IndexCoordinator(
            chunker=self.chunker,
            embedding_client=self.embedding_client,
            vector_repository=self.vector_repository,
            max_concurrent_documents=settings.index_max_concurrent_documents,
        )
        self.search_service = SearchService(self.vector_repository, self.embedding_client)
        self.handler = DocumentChangeHandler(self.coordinator, self.source)
        self.queue = IndexQueue(
            self.handler,
            workers=settings.index_max_concurrent_documents,
            maxsize=settings.index_queue_size,
        )

    async def start(self) -> None:
        """Prepare storage and start the queue workers."""
        await self.qdrant_service.ensure_schema()
        self.queue.start()
        logger.info("Index engine started")

    async def aclose(self) -> None:
        """Drain the queue and release clients."""
        await self.queue.stop(timeout=self.settings.worker_shutdown_timeout)
        await self.embedding_client.aclose()
        await self.qdrant_service.aclose()
        logger.info("Index engine stopped")

    async def reindex_from_source(
        self,
        document_id: str,
        *,
        version: int | None = None,
        force: bool = False,
    ) -> ReindexStats:
        """Read a document from the source and reindex it synchronously."""
        if self.source is None:
            raise ValidationException("No document source configured")
        content = await self.source.read(document_id)
        return await self.coordinator.reindex_document(
            document_id, content, version=version, force=force
        )

    async def rebuild(self) -> int:
        """Queue every document of the source for reindexing."""
        if self.source is None:
            raise ValidationException("No document source configured")
        document_ids = await self.source.list_documents()
        for document_id in document_ids:
            await self.queue.submit(
                DocumentChangeEvent(document_id=document_id, action=DocumentAction.MODIFIED)
            )
        logger.info("Queued %d documents for rebuild", len(document_ids))
        return len(document_ids)


__all__ = ["IndexEngine"]
