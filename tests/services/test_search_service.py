"""Tests for the search service."""

from __future__ import annotations

import pytest
import pytest_asyncio

from vault_index.core.exceptions import (
    DimensionMismatchWarning,
    EmbeddingServiceError,
    ValidationException,
)
from vault_index.core.models import IndexEntry
from vault_index.repositories.vector_repository import VectorRepository
from vault_index.services.search_service import SearchService

pytestmark = pytest.mark.asyncio


def _entry(document_id: str, vector: list[float], ordinal: int = 0) -> IndexEntry:
    return IndexEntry(
        chunk_id=f"{document_id}-{ordinal}",
        document_id=document_id,
        vector=vector,
        ordinal=ordinal,
        text=f"text of {document_id} #{ordinal}",
    )


@pytest.fixture
def search_service(vector_repository: VectorRepository, fake_embedder) -> SearchService:
    fake_embedder.vectors["query"] = [1.0, 0.0]
    return SearchService(vector_repository, fake_embedder)


@pytest_asyncio.fixture
async def seeded(vector_repository: VectorRepository) -> None:
    await vector_repository.upsert(
        [
            _entry("a", [1.0, 0.0]),
            _entry("b", [1.0, 0.0]),
            _entry("c", [0.0, 1.0]),
            _entry("d", [-1.0, 0.0]),
        ]
    )


async def test_ranking_without_threshold(search_service: SearchService, seeded) -> None:
    hits = await search_service.search("query", k=4, min_score=-1.0)

    assert [(h.document_id, round(h.score, 6)) for h in hits] == [
        ("a", 1.0),
        ("b", 1.0),
        ("c", 0.0),
        ("d", -1.0),
    ]
    assert hits[0].text == "text of a #0"


async def test_min_score_filters(search_service: SearchService, seeded) -> None:
    hits = await search_service.search("query", k=4, min_score=0.5)
    assert [h.document_id for h in hits] == ["a", "b"]


async def test_k_truncates(search_service: SearchService, seeded) -> None:
    hits = await search_service.search("query", k=1, min_score=-1.0)
    assert [h.chunk_id for h in hits] == ["a-0"]


async def test_exclude_document_ids(search_service: SearchService, seeded) -> None:
    hits = await search_service.search("query", k=4, min_score=-1.0, exclude_document_ids={"a"})
    assert [h.document_id for h in hits] == ["b", "c", "d"]


async def test_empty_store_returns_nothing(search_service: SearchService) -> None:
    assert await search_service.search("query", k=5) == []


async def test_blank_query_returns_nothing_without_embedding(
    search_service: SearchService, fake_embedder
) -> None:
    assert await search_service.search("   ", k=5) == []
    assert fake_embedder.calls == []


async def test_non_positive_k_rejected(search_service: SearchService) -> None:
    with pytest.raises(ValidationException):
        await search_service.search("query", k=0)


async def test_dimension_mismatch_skipped_with_warning(
    search_service: SearchService, vector_repository: VectorRepository, seeded
) -> None:
    await vector_repository.upsert([_entry("e", [1.0, 0.0, 0.0])])

    with pytest.warns(DimensionMismatchWarning):
        hits = await search_service.search("query", k=10, min_score=-1.0)

    assert "e" not in {h.document_id for h in hits}
    assert len(hits) == 4


async def test_query_embedding_failure_propagates(
    search_service: SearchService, fake_embedder, seeded
) -> None:
    fake_embedder.failing.add("query")
    with pytest.raises(EmbeddingServiceError):
        await search_service.search("query")


async def test_search_documents_groups_by_document(
    search_service: SearchService, vector_repository: VectorRepository
) -> None:
    await vector_repository.upsert(
        [
            _entry("a", [0.6, 0.8], ordinal=0),
            _entry("a", [1.0, 0.0], ordinal=1),
            _entry("b", [0.8, 0.6], ordinal=0),
            _entry("c", [0.0, 1.0], ordinal=0),
        ]
    )

    matches = await search_service.search_documents("query", k=5, min_score=0.5)

    assert [m.document_id for m in matches] == ["a", "b"]
    assert [c.chunk_id for c in matches[0].chunks] == ["a-1", "a-0"]
    assert matches[0].max_score == pytest.approx(1.0)
    assert matches[1].max_score == pytest.approx(0.8)

    top = await search_service.search_documents("query", k=1, min_score=0.5)
    assert [m.document_id for m in top] == ["a"]
