"""Similarity search over the vector store."""

from __future__ import annotations

import warnings
from collections import defaultdict
from collections.abc import Collection

from vault_index.core.exceptions import DimensionMismatchWarning, ValidationException
from vault_index.core.logging import get_logger
from vault_index.core.models import DocumentMatch, SearchHit
from vault_index.repositories.vector_repository import VectorRepository
from vault_index.services.embedding_client import EmbeddingClient
from vault_index.services.similarity import cosine_similarity, rank

logger = get_logger(__name__)


class SearchService:
    """Ranks stored chunks against a query by cosine similarity.

    Every entry is scanned linearly; entries whose dimensionality differs from
    the query vector are skipped with a ``DimensionMismatchWarning``.
    """

    def __init__(
        self,
        vector_repository: VectorRepository,
        embedding_client: EmbeddingClient,
    ):
        """Initialize search service.

        Args:
            vector_repository: Store scanned for candidate entries.
            embedding_client: Client used to embed query text.
        """
        self.vector_repository = vector_repository
        self.embedding_client = embedding_client

    async def search(
        self,
        query: str,
        k: int = 10,
        min_score: float = 0.0,
        exclude_document_ids: Collection[str] = (),
    ) -> list[SearchHit]:
        """Return the ``k`` chunks most similar to ``query``, best first.

        Raises:
            ValidationException: If ``k`` is not positive.
            EmbeddingServiceError: If the query cannot be embedded.
            StorageError: If the store cannot be read.
        """
        if k < 1:
            raise ValidationException("k must be a positive integer")

        if not query or not query.strip():
            logger.warning("Empty query string provided, returning empty results")
            return []

        logger.info("Search: query='%s', k=%s, min_score=%s", query[:100], k, min_score)

        query_vector = await self.embedding_client.embed(query)
        hits = await self._score_all(query_vector, exclude_document_ids)
        results = rank(hits, k, min_score)

        logger.info("Search completed: %d of %d scored chunks returned", len(results), len(hits))
        return results

    async def search_documents(
        self,
        query: str,
        k: int = 10,
        min_score: float = 0.0,
        exclude_document_ids: Collection[str] = (),
    ) -> list[DocumentMatch]:
        """Group matching chunks per document and rank documents by their best chunk."""
        if k < 1:
            raise ValidationException("k must be a positive integer")

        if not query or not query.strip():
            logger.warning("Empty query string provided, returning empty results")
            return []

        query_vector = await self.embedding_client.embed(query)
        hits = await self._score_all(query_vector, exclude_document_ids)
        ranked = rank(hits, len(hits), min_score)

        grouped: dict[str, list[SearchHit]] = defaultdict(list)
        for hit in ranked:
            grouped[hit.document_id].append(hit)

        # dicts keep insertion order, so documents are already best-first
        matches = [
            DocumentMatch(document_id=document_id, max_score=chunks[0].score, chunks=chunks)
            for document_id, chunks in grouped.items()
        ]

        logger.info("Document search matched %d documents", len(matches))
        return matches[:k]

    async def _score_all(
        self,
        query_vector: list[float],
        exclude_document_ids: Collection[str],
    ) -> list[SearchHit]:
        entries = await self.vector_repository.get_all()
        hits: list[SearchHit] = []
        skipped = 0

        for entry in entries:
            if entry.document_id in exclude_document_ids:
                continue
            if entry.dimension != len(query_vector):
                skipped += 1
                message = (
                    f"Skipping chunk '{entry.chunk_id}': stored vector has "
                    f"{entry.dimension} dims, query has {len(query_vector)}"
                )
                logger.warning(message)
                warnings.warn(message, DimensionMismatchWarning, stacklevel=2)
                continue
            hits.append(
                SearchHit(
                    document_id=entry.document_id,
                    chunk_id=entry.chunk_id,
                    score=cosine_similarity(query_vector, entry.vector),
                    ordinal=entry.ordinal,
                    text=entry.text,
                )
            )

        if skipped:
            logger.warning("Skipped %d entries with mismatched dimensions", skipped)
        return hits


__all__ = ["SearchService"]
