"""Paragraph chunking of document text."""

from __future__ import annotations

import re

from llama_index.core.node_parser import TokenTextSplitter

from vault_index.core.logging import get_logger
from vault_index.core.models import Chunk

logger = get_logger(__name__)

# A blank line is a newline followed by optional horizontal whitespace and another newline.
_PARAGRAPH_BREAK = re.compile(r"\n[ \t]*(?:\n[ \t]*)+")


def whitespace_tokenize(text: str) -> list[str]:
    """Count tokens as whitespace-delimited words."""
    return text.split()


def chunk_id_for(document_id: str, ordinal: int) -> str:
    """Chunk ids are stable for one chunking of one content snapshot."""
    return f"{document_id}-{ordinal}"


class Chunker:
    """Splits document text into ordered paragraph chunks.

    Paragraphs are separated by blank lines; empty or whitespace-only pieces are
    dropped and each chunk is trimmed. When ``max_tokens`` is set, paragraphs
    longer than that are split again with a token splitter before embedding.
    """

    def __init__(self, max_tokens: int | None = None, overlap: int = 0):
        self.max_tokens = max_tokens
        self.overlap = overlap
        self._splitter: TokenTextSplitter | None = None
        if max_tokens is not None:
            if max_tokens <= 0:
                raise ValueError("max_tokens must be positive")
            if not 0 <= overlap < max_tokens:
                raise ValueError("overlap must be non-negative and smaller than max_tokens")
            self._splitter = TokenTextSplitter(
                chunk_size=max_tokens,
                chunk_overlap=overlap,
                separator=" ",
                backup_separators=["\n"],
                tokenizer=whitespace_tokenize,
            )

    @property
    def signature(self) -> str:
        """Identifies the chunking settings; entries built under another one are stale."""
        if self.max_tokens is None:
            return "paragraph"
        return f"paragraph:{self.max_tokens}:{self.overlap}"

    def split(self, text: str) -> list[str]:
        """Return the ordered chunk texts of ``text``."""
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        paragraphs = [part.strip() for part in _PARAGRAPH_BREAK.split(text)]
        paragraphs = [part for part in paragraphs if part]

        if self._splitter is None:
            return paragraphs

        pieces: list[str] = []
        for paragraph in paragraphs:
            if len(whitespace_tokenize(paragraph)) <= self.max_tokens:  # type: ignore[operator]
                pieces.append(paragraph)
                continue
            parts = [part.strip() for part in self._splitter.split_text(paragraph)]
            logger.debug("Split long paragraph into %d pieces", len(parts))
            pieces.extend(part for part in parts if part)
        return pieces

    def chunk(self, document_id: str, text: str) -> list[Chunk]:
        """Chunk a document snapshot into ``Chunk`` objects with positional ids."""
        return [
            Chunk(
                id=chunk_id_for(document_id, ordinal),
                document_id=document_id,
                ordinal=ordinal,
                text=piece,
            )
            for ordinal, piece in enumerate(self.split(text))
        ]
