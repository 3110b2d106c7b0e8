# conftest.py
import asyncio
import hashlib
from collections.abc import Sequence

import pytest
import pytest_asyncio
from qdrant_client import AsyncQdrantClient

from vault_index.config import Settings
from vault_index.core.exceptions import EmbeddingServiceError
from vault_index.repositories.vector_repository import VectorRepository
from vault_index.services.qdrant_service import QdrantService


class FakeEmbeddingClient:
    """Deterministic stand-in for the embedding service.

    Texts listed in ``vectors`` get that vector; anything else gets a small vector
    derived from its hash. ``failing`` texts raise ``EmbeddingServiceError`` and
    ``delays`` lets a test hold a text in flight.
    """

    def __init__(self, model: str = "fake-embed", dim: int = 4):
        self.model = model
        self.dim = dim
        self.vectors: dict[str, list[float]] = {}
        self.failing: set[str] = set()
        self.delays: dict[str, float] = {}
        self.calls: list[str] = []
        self.closed = False

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        delay = self.delays.get(text)
        if delay:
            await asyncio.sleep(delay)
        if text in self.failing:
            raise EmbeddingServiceError(f"cannot embed {text!r}")
        if text in self.vectors:
            return list(self.vectors[text])
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [digest[i] / 255.0 + 0.01 for i in range(self.dim)]

    async def embed_many(self, texts: Sequence[str]) -> list[list[float]]:
        return list(await asyncio.gather(*(self.embed(text) for text in texts)))

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        qdrant_url=None,
        qdrant_path=":memory:",
        qdrant_collection_name="test-vault",
        qdrant_scroll_batch_size=2,
        embedding_initial_delay=0.0,
        embedding_max_delay=0.0,
        vault_path=None,
        worker_shutdown_timeout=5,
    )


@pytest_asyncio.fixture
async def aclient_local():
    """In-memory embedded Qdrant for tests."""
    client = AsyncQdrantClient(location=":memory:")
    try:
        yield client
    finally:
        await client.close()


@pytest_asyncio.fixture
async def qdrant_service(aclient_local: AsyncQdrantClient, test_settings: Settings):
    svc = QdrantService(settings=test_settings, aclient=aclient_local)
    await svc.ensure_schema()
    yield svc


@pytest.fixture
def vector_repository(qdrant_service: QdrantService) -> VectorRepository:
    # A tiny scroll batch forces multi-page scans.
    return VectorRepository(qdrant_service, scroll_batch_size=2)


@pytest.fixture
def fake_embedder() -> FakeEmbeddingClient:
    return FakeEmbeddingClient()
