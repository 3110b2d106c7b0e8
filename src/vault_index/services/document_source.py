"""Access to document content held by the host application."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path, PurePosixPath
from typing import Protocol

from vault_index.core.exceptions import NotFoundException, ValidationException
from vault_index.core.logging import get_logger

logger = get_logger(__name__)


class DocumentSource(Protocol):
    """Protocol for document sources."""

    async def read(self, document_id: str) -> str:
        """Return the current text of a document.

        Raises:
            NotFoundException: If the document no longer exists.
        """
        ...

    async def list_documents(self) -> list[str]:
        """Return the ids of every indexable document."""
        ...


class VaultDocumentSource:
    """Documents stored as files under a vault directory.

    Document ids are POSIX paths relative to the vault root, e.g. ``notes/idea.md``.
    """

    def __init__(self, root: str | Path, extensions: Sequence[str] = (".md",)):
        self.root = Path(root).resolve()
        self.extensions = tuple(ext.lower() for ext in extensions)

    def path_for(self, document_id: str) -> Path:
        """Resolve a document id to a file path inside the vault."""
        relative = PurePosixPath(document_id)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise ValidationException(f"Invalid document id: {document_id!r}")
        path = (self.root / Path(*relative.parts)).resolve()
        if not path.is_relative_to(self.root):
            raise ValidationException(f"Document id escapes the vault: {document_id!r}")
        return path

    async def read(self, document_id: str) -> str:
        path = self.path_for(document_id)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError as exc:
            raise NotFoundException(f"Document not found: {document_id}") from exc

    async def list_documents(self) -> list[str]:
        return await asyncio.to_thread(self._scan)

    def _scan(self) -> list[str]:
        document_ids = [
            path.relative_to(self.root).as_posix()
            for path in self.root.rglob("*")
            if path.is_file() and path.suffix.lower() in self.extensions
        ]
        logger.debug("Found %d documents under %s", len(document_ids), self.root)
        return sorted(document_ids)


__all__ = ["DocumentSource", "VaultDocumentSource"]
