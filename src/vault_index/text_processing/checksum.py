"""Content hashes used for change detection and embedding cache keys."""

import hashlib

from .normalize_text import normalize_text


def compute_checksum(value: str) -> str:
    """SHA-256 hex digest of the normalized text.

    Texts that differ only cosmetically (line endings, trailing spaces, zero-width
    characters) share a checksum, so re-saving a note does not trigger re-embedding.
    """
    return hashlib.sha256(normalize_text(value).encode("utf-8")).hexdigest()


def text_cache_key(model: str, text: str) -> str:
    """Key an embedding by model and exact input text (no normalization)."""
    digest = hashlib.sha256()
    digest.update(model.encode("utf-8"))
    digest.update(b"\x00")
    digest.update(text.encode("utf-8"))
    return digest.hexdigest()
