"""Handlers applying document change notifications to the index."""

from typing import Protocol

from vault_index.core.exceptions import NotFoundException
from vault_index.core.logging import get_logger
from vault_index.schemas.events import DocumentAction, DocumentChangeEvent
from vault_index.services.document_source import DocumentSource
from vault_index.services.index_coordinator import IndexCoordinator

logger = get_logger(__name__)


class ChangeHandler(Protocol):
    """Protocol for change handlers."""

    async def handle(self, event: DocumentChangeEvent) -> bool:
        """Handle an event.

        Args:
            event: The change notification to apply.

        Returns:
            bool: True if handled successfully, False otherwise.
        """
        ...


class DocumentChangeHandler:
    """Routes change notifications to the index coordinator."""

    def __init__(self, coordinator: IndexCoordinator, source: DocumentSource | None = None):
        """Initialize handler.

        Args:
            coordinator: Coordinator performing reindex/removal.
            source: Where content is read from when an event carries none.
        """
        self.coordinator = coordinator
        self.source = source

    async def handle(self, event: DocumentChangeEvent) -> bool:
        """Apply an event; failures are logged and reported as ``False``."""
        logger.info(
            "Processing %s for document '%s'",
            event.action.value,
            event.document_id,
        )

        if event.action in (DocumentAction.CREATED, DocumentAction.MODIFIED):
            return await self._handle_modified(event)
        elif event.action == DocumentAction.DELETED:
            return await self._handle_deleted(event.document_id, event.version)
        elif event.action == DocumentAction.RENAMED:
            return await self._handle_renamed(event)
        else:
            logger.warning("Unknown action: %s", event.action)
            return False

    async def _handle_modified(self, event: DocumentChangeEvent) -> bool:
        content = event.content
        if content is None:
            if self.source is None:
                logger.error(
                    "Event for '%s' carries no content and no source is configured",
                    event.document_id,
                )
                return False
            try:
                content = await self.source.read(event.document_id)
            except NotFoundException:
                logger.warning("Document '%s' vanished; removing it", event.document_id)
                return await self._handle_deleted(event.document_id, event.version)
            except Exception as exc:
                logger.error("Failed to read '%s': %s", event.document_id, exc, exc_info=True)
                return False

        try:
            stats = await self.coordinator.reindex_document(
                event.document_id,
                content,
                version=event.version,
            )
            logger.info("Reindex finished: %s", stats)
            return True
        except Exception as exc:
            logger.error("Failed to reindex '%s': %s", event.document_id, exc, exc_info=True)
            return False

    async def _handle_deleted(self, document_id: str, version: int | None) -> bool:
        try:
            stats = await self.coordinator.remove_document(document_id, version=version)
            logger.info("Removal finished: %s", stats)
            return True
        except Exception as exc:
            logger.error("Failed to remove '%s': %s", document_id, exc, exc_info=True)
            return False

    async def _handle_renamed(self, event: DocumentChangeEvent) -> bool:
        assert event.old_document_id is not None
        removed = await self._handle_deleted(event.old_document_id, None)
        indexed = await self._handle_modified(
            event.model_copy(update={"action": DocumentAction.MODIFIED})
        )
        return removed and indexed
