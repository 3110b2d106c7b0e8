"""Qdrant access for the index collection."""

from __future__ import annotations

from collections.abc import Sequence

from qdrant_client import AsyncQdrantClient
from qdrant_client import models as q
from qdrant_client.conversions.common_types import PointId

from vault_index.config import Settings
from vault_index.core.constants import K_CHECKSUM, K_DOCUMENT_ID
from vault_index.core.logging import get_logger

logger = get_logger(__name__)

# Payload fields that get a keyword index.
_KEYWORD_FIELDS = (K_DOCUMENT_ID, K_CHECKSUM)


def build_client(settings: Settings) -> AsyncQdrantClient:
    """Remote client when a URL is configured, embedded local mode otherwise."""
    if settings.qdrant_url:
        return AsyncQdrantClient(
            url=settings.qdrant_url,
            api_key=settings.qdrant_api_key,
            timeout=settings.qdrant_timeout,
        )
    if settings.qdrant_path == ":memory:":
        return AsyncQdrantClient(location=":memory:")
    return AsyncQdrantClient(path=settings.qdrant_path)


class QdrantService:
    """Owns the index collection and exposes the raw point operations on it.

    Points are payload-only: the collection declares no dense vectors, and each
    entry keeps its embedding in the payload so any dimensionality is accepted.
    """

    def __init__(self, settings: Settings, aclient: AsyncQdrantClient | None = None):
        self.settings = settings
        self.col = settings.qdrant_collection_name
        self.aclient = aclient or build_client(settings)

        logger.info("Using Qdrant collection '%s'", self.col)

    async def aclose(self) -> None:
        await self.aclient.close()

    async def ensure_schema(self) -> None:
        """Create the collection on first use; (re)apply payload indexes every time."""
        if not await self.collection_exists():
            await self.aclient.create_collection(
                collection_name=self.col,
                vectors_config={},
                on_disk_payload=True,
            )
            logger.info("Created payload-only collection '%s'", self.col)

        for field_name in _KEYWORD_FIELDS:
            await self._index_keyword(field_name)

    async def _index_keyword(self, field_name: str) -> None:
        try:
            await self.aclient.create_payload_index(
                collection_name=self.col,
                field_name=field_name,
                field_schema=q.PayloadSchemaType.KEYWORD,
            )
        except Exception as exc:  # pragma: no cover
            if "exists" not in str(exc).lower():
                logger.warning("Could not index payload field '%s': %s", field_name, exc)

    async def collection_exists(self) -> bool:
        return await self.aclient.collection_exists(self.col)

    async def upsert_points(self, points: Sequence[q.PointStruct]) -> None:
        """Write points and wait until they are visible to reads."""
        if not points:
            return
        await self.aclient.upsert(collection_name=self.col, points=list(points), wait=True)
        logger.debug("Wrote %d points to '%s'", len(points), self.col)

    async def retrieve(self, point_ids: Sequence[str]) -> list[q.Record]:
        """Payloads of the given points; unknown ids are simply absent."""
        if not point_ids:
            return []
        return await self.aclient.retrieve(
            collection_name=self.col,
            ids=list(point_ids),
            with_payload=True,
            with_vectors=False,
        )

    async def scroll_page(
        self,
        *,
        limit: int,
        offset: PointId | None = None,
        filter_: q.Filter | None = None,
    ) -> tuple[list[q.Record], PointId | None]:
        """One page of payloads plus the offset of the next page (None at the end)."""
        return await self.aclient.scroll(
            collection_name=self.col,
            scroll_filter=filter_,
            limit=limit,
            offset=offset,
            with_payload=True,
            with_vectors=False,
        )

    async def count(self, filter_: q.Filter | None = None) -> int:
        result = await self.aclient.count(
            collection_name=self.col,
            count_filter=filter_,
            exact=True,
        )
        return result.count

    async def delete_ids(self, point_ids: Sequence[str]) -> None:
        if not point_ids:
            return
        await self.aclient.delete(
            collection_name=self.col,
            points_selector=q.PointIdsList(points=list(point_ids)),
            wait=True,
        )

    async def delete_where(self, filter_: q.Filter) -> None:
        """Delete every point matching ``filter_``; matching nothing is fine."""
        await self.aclient.delete(
            collection_name=self.col,
            points_selector=q.FilterSelector(filter=filter_),
            wait=True,
        )


__all__ = ["QdrantService", "build_client"]
