"""Tests for the minimal Qdrant service."""

from __future__ import annotations

import pytest
from qdrant_client import AsyncQdrantClient
from qdrant_client import models as q

from vault_index.config import Settings
from vault_index.core.constants import K_DOCUMENT_ID, K_VECTOR
from vault_index.services.point_ids import chunk_point_id
from vault_index.services.qdrant_service import QdrantService, build_client

pytestmark = pytest.mark.asyncio


def _point(chunk_id: str, document_id: str, vector: list[float]) -> q.PointStruct:
    return q.PointStruct(
        id=chunk_point_id(chunk_id),
        payload={K_DOCUMENT_ID: document_id, K_VECTOR: vector},
        vector={},
    )


async def test_ensure_schema_creates_collection(
    aclient_local: AsyncQdrantClient, test_settings: Settings
) -> None:
    settings = test_settings.model_copy(update={"qdrant_collection_name": "test-schema"})
    svc = QdrantService(settings=settings, aclient=aclient_local)

    assert not await svc.collection_exists()
    await svc.ensure_schema()
    assert await svc.collection_exists()

    # Running it again is harmless
    await svc.ensure_schema()
    assert await svc.count() == 0


async def test_points_of_any_dimension_are_accepted(qdrant_service: QdrantService) -> None:
    await qdrant_service.upsert_points(
        [
            _point("a-0", "a", [1.0, 0.0]),
            _point("b-0", "b", [0.1, 0.2, 0.3, 0.4, 0.5]),
        ]
    )

    assert await qdrant_service.count() == 2
    records = await qdrant_service.retrieve([chunk_point_id("b-0")])
    assert records[0].payload is not None
    assert records[0].payload[K_VECTOR] == [0.1, 0.2, 0.3, 0.4, 0.5]


async def test_scroll_paginates(qdrant_service: QdrantService) -> None:
    await qdrant_service.upsert_points([_point(f"d-{i}", "d", [1.0]) for i in range(5)])

    seen = []
    offset = None
    while True:
        records, offset = await qdrant_service.scroll_page(limit=2, offset=offset)
        seen.extend(record.id for record in records)
        if offset is None:
            break

    assert len(seen) == 5
    assert len(set(seen)) == 5


async def test_delete_by_ids_and_filter(qdrant_service: QdrantService) -> None:
    await qdrant_service.upsert_points(
        [_point("a-0", "a", [1.0]), _point("a-1", "a", [1.0]), _point("b-0", "b", [1.0])]
    )

    await qdrant_service.delete_ids([chunk_point_id("a-0")])
    assert await qdrant_service.count() == 2

    doc_b = q.Filter(must=[q.FieldCondition(key=K_DOCUMENT_ID, match=q.MatchValue(value="b"))])
    await qdrant_service.delete_where(doc_b)
    assert await qdrant_service.count() == 1
    assert await qdrant_service.count(doc_b) == 0


async def test_delete_nothing_is_noop(qdrant_service: QdrantService) -> None:
    await qdrant_service.delete_ids([])
    none = q.Filter(must=[q.FieldCondition(key=K_DOCUMENT_ID, match=q.MatchValue(value="x"))])
    await qdrant_service.delete_where(none)
    assert await qdrant_service.count() == 0


async def test_build_client_memory_mode(test_settings: Settings) -> None:
    client = build_client(test_settings)
    try:
        assert not await client.collection_exists("anything")
    finally:
        await client.close()
