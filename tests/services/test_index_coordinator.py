"""Tests for the per-document reindex coordinator."""

from __future__ import annotations

import asyncio

import pytest

from vault_index.core.constants import OP_INDEXED, OP_REMOVED, OP_SUPERSEDED, OP_UNCHANGED
from vault_index.core.exceptions import EmbeddingServiceError
from vault_index.repositories.vector_repository import VectorRepository
from vault_index.services.index_coordinator import IndexCoordinator
from vault_index.text_processing.chunker import Chunker

pytestmark = pytest.mark.asyncio

DOC = "notes/idea.md"


@pytest.fixture
def coordinator(vector_repository: VectorRepository, fake_embedder) -> IndexCoordinator:
    return IndexCoordinator(
        chunker=Chunker(),
        embedding_client=fake_embedder,
        vector_repository=vector_repository,
        max_concurrent_documents=2,
    )


async def _texts(repo: VectorRepository, document_id: str = DOC) -> list[str]:
    return [entry.text for entry in await repo.get_by_document(document_id)]


async def test_reindex_stores_one_entry_per_chunk(
    coordinator: IndexCoordinator, vector_repository: VectorRepository
) -> None:
    stats = await coordinator.reindex_document(DOC, "First.\n\nSecond.\n\nThird.")

    assert stats.operation == OP_INDEXED
    assert stats.chunks == 3
    entries = await vector_repository.get_by_document(DOC)
    assert [e.chunk_id for e in entries] == [f"{DOC}-0", f"{DOC}-1", f"{DOC}-2"]
    assert all(e.model == "fake-embed" and e.checksum for e in entries)


async def test_reindex_is_idempotent(
    coordinator: IndexCoordinator, vector_repository: VectorRepository, fake_embedder
) -> None:
    text = "One.\n\nTwo."
    await coordinator.reindex_document(DOC, text)
    before = await vector_repository.get_by_document(DOC)
    calls = len(fake_embedder.calls)

    stats = await coordinator.reindex_document(DOC, text)

    assert stats.operation == OP_UNCHANGED
    assert await vector_repository.get_by_document(DOC) == before
    assert len(fake_embedder.calls) == calls


async def test_force_reembeds_unchanged_content(
    coordinator: IndexCoordinator, fake_embedder
) -> None:
    await coordinator.reindex_document(DOC, "One.\n\nTwo.")
    calls = len(fake_embedder.calls)

    stats = await coordinator.reindex_document(DOC, "One.\n\nTwo.", force=True)

    assert stats.operation == OP_INDEXED
    assert len(fake_embedder.calls) == calls + 2


async def test_shrinking_document_drops_stale_chunks(
    coordinator: IndexCoordinator, vector_repository: VectorRepository
) -> None:
    await coordinator.reindex_document(DOC, "a\n\nb\n\nc\n\nd")
    await coordinator.reindex_document(DOC, "a\n\nz")

    assert await _texts(vector_repository) == ["a", "z"]


async def test_empty_content_clears_document(
    coordinator: IndexCoordinator, vector_repository: VectorRepository
) -> None:
    await coordinator.reindex_document(DOC, "a\n\nb")

    stats = await coordinator.reindex_document(DOC, "   \n\n ")

    assert stats.chunks == 0
    assert await vector_repository.get_by_document(DOC) == []


@pytest.mark.parametrize("failing_index", [0, 1, 2])
async def test_embedding_failure_keeps_previous_entries(
    coordinator: IndexCoordinator,
    vector_repository: VectorRepository,
    fake_embedder,
    failing_index: int,
) -> None:
    await coordinator.reindex_document(DOC, "p0\n\np1")
    before = await vector_repository.get_by_document(DOC)

    fake_embedder.failing = {f"n{failing_index}"}
    with pytest.raises(EmbeddingServiceError):
        await coordinator.reindex_document(DOC, "n0\n\nn1\n\nn2")

    assert await vector_repository.get_by_document(DOC) == before

    # A later retry succeeds once the service recovers
    fake_embedder.failing = set()
    stats = await coordinator.reindex_document(DOC, "n0\n\nn1\n\nn2")
    assert stats.operation == OP_INDEXED
    assert await _texts(vector_repository) == ["n0", "n1", "n2"]


async def test_newer_version_wins_when_older_is_slow(
    coordinator: IndexCoordinator, vector_repository: VectorRepository, fake_embedder
) -> None:
    fake_embedder.delays["old"] = 0.05

    slow = asyncio.create_task(coordinator.reindex_document(DOC, "old", version=1))
    await asyncio.sleep(0.01)
    fast = asyncio.create_task(coordinator.reindex_document(DOC, "new", version=2))
    results = await asyncio.gather(slow, fast)

    assert results[1].operation == OP_INDEXED
    assert await _texts(vector_repository) == ["new"]


async def test_late_older_version_is_superseded(
    coordinator: IndexCoordinator, vector_repository: VectorRepository
) -> None:
    await coordinator.reindex_document(DOC, "new", version=2)

    stats = await coordinator.reindex_document(DOC, "old", version=1)

    assert stats.operation == OP_SUPERSEDED
    assert await _texts(vector_repository) == ["new"]


async def test_queued_intermediate_versions_are_skipped(
    coordinator: IndexCoordinator, vector_repository: VectorRepository, fake_embedder
) -> None:
    fake_embedder.delays["v1"] = 0.05

    first = asyncio.create_task(coordinator.reindex_document(DOC, "v1", version=1))
    await asyncio.sleep(0.01)
    third = asyncio.create_task(coordinator.reindex_document(DOC, "v3", version=3))
    second = asyncio.create_task(coordinator.reindex_document(DOC, "v2", version=2))
    _, stats_third, stats_second = await asyncio.gather(first, third, second)

    assert stats_second.operation == OP_SUPERSEDED
    assert stats_third.operation == OP_INDEXED
    assert "v2" not in fake_embedder.calls
    assert await _texts(vector_repository) == ["v3"]
    assert coordinator.latest_version(DOC) == 3


async def test_auto_versions_follow_issue_order(
    coordinator: IndexCoordinator, vector_repository: VectorRepository, fake_embedder
) -> None:
    fake_embedder.delays["first"] = 0.03

    results = await asyncio.gather(
        coordinator.reindex_document(DOC, "first"),
        coordinator.reindex_document(DOC, "second"),
    )

    assert [r.version for r in results] == [1, 2]
    assert await _texts(vector_repository) == ["second"]


async def test_remove_document_is_idempotent(
    coordinator: IndexCoordinator, vector_repository: VectorRepository
) -> None:
    await coordinator.reindex_document(DOC, "a\n\nb")
    await coordinator.reindex_document("other.md", "keep me")

    first = await coordinator.remove_document(DOC)
    second = await coordinator.remove_document(DOC)

    assert first.operation == OP_REMOVED
    assert second.operation == OP_REMOVED
    assert await vector_repository.get_by_document(DOC) == []
    assert await _texts(vector_repository, "other.md") == ["keep me"]


async def test_remove_unknown_document(coordinator: IndexCoordinator) -> None:
    stats = await coordinator.remove_document("never-seen.md")
    assert stats.operation == OP_REMOVED


async def test_stale_removal_is_ignored(
    coordinator: IndexCoordinator, vector_repository: VectorRepository
) -> None:
    await coordinator.reindex_document(DOC, "content", version=5)

    stats = await coordinator.remove_document(DOC, version=3)

    assert stats.operation == OP_SUPERSEDED
    assert await _texts(vector_repository) == ["content"]


async def test_reindex_after_removal(
    coordinator: IndexCoordinator, vector_repository: VectorRepository
) -> None:
    await coordinator.reindex_document(DOC, "content")
    await coordinator.remove_document(DOC)

    stats = await coordinator.reindex_document(DOC, "content")

    assert stats.operation == OP_INDEXED
    assert await _texts(vector_repository) == ["content"]


async def test_logically_later_request_wins_when_issued_first(
    coordinator: IndexCoordinator, vector_repository: VectorRepository, fake_embedder
) -> None:
    fake_embedder.delays["later content"] = 0.05

    later = asyncio.create_task(coordinator.reindex_document(DOC, "later content", version=2))
    await asyncio.sleep(0.01)
    earlier = asyncio.create_task(coordinator.reindex_document(DOC, "earlier content", version=1))
    stats_later, stats_earlier = await asyncio.gather(later, earlier)

    assert stats_later.operation == OP_INDEXED
    assert stats_earlier.operation == OP_SUPERSEDED
    assert await _texts(vector_repository) == ["later content"]


async def test_chunker_change_reembeds_unchanged_text(
    coordinator: IndexCoordinator, vector_repository: VectorRepository, fake_embedder
) -> None:
    text = "one two three four\n\nfive"
    await coordinator.reindex_document(DOC, text)
    assert await _texts(vector_repository) == ["one two three four", "five"]

    rechunking = IndexCoordinator(
        chunker=Chunker(max_tokens=2),
        embedding_client=fake_embedder,
        vector_repository=vector_repository,
    )
    stats = await rechunking.reindex_document(DOC, text)

    assert stats.operation == OP_INDEXED
    entries = await vector_repository.get_by_document(DOC)
    assert len(entries) > 2
    assert all(len(e.text.split()) <= 2 for e in entries)
    assert {e.chunker for e in entries} == {"paragraph:2:0"}
    assert (await rechunking.reindex_document(DOC, text)).operation == OP_UNCHANGED


async def test_document_locks_released_when_idle(
    coordinator: IndexCoordinator, fake_embedder
) -> None:
    fake_embedder.delays["slow"] = 0.03

    await asyncio.gather(
        coordinator.reindex_document(DOC, "slow"),
        coordinator.reindex_document(DOC, "fast"),
        coordinator.reindex_document("other.md", "x"),
        coordinator.remove_document("gone.md"),
    )
    await coordinator.remove_document(DOC)

    assert coordinator._locks == {}
    assert coordinator._lock_users == {}
    assert coordinator.latest_version(DOC) == 3
