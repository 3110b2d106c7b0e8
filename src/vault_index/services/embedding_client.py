"""Client for the external embedding service."""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from collections.abc import Sequence

import httpx
from pydantic import ValidationError

from vault_index.config import Settings
from vault_index.core.exceptions import EmbeddingServiceError
from vault_index.core.logging import get_logger
from vault_index.schemas.embeddings import EmbeddingRequest, EmbeddingResponse
from vault_index.text_processing.checksum import text_cache_key

logger = get_logger(__name__)

_RETRYABLE_STATUS = frozenset({408, 429, 500, 502, 503, 504})


class _RetryableError(Exception):
    """Internal marker for failures worth another attempt."""


class EmbeddingClient:
    """Turns text into vectors via an Ollama-compatible HTTP API.

    Every request, body included, must complete within ``embedding_timeout``. Timeouts, transport errors,
    429 and 5xx responses are retried with capped exponential backoff; anything
    still failing after ``embedding_max_retries`` attempts raises
    ``EmbeddingServiceError``. Identical inputs are served from an LRU cache.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        if settings.embedding_max_retries < 1:
            raise ValueError("embedding_max_retries must be at least 1")

        self.settings = settings
        self.model = settings.embedding_model
        self.max_retries = settings.embedding_max_retries
        self.initial_delay = settings.embedding_initial_delay
        self.max_delay = settings.embedding_max_delay
        self.cache_size = settings.embedding_cache_size

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.ollama_base_url,
            timeout=httpx.Timeout(settings.embedding_timeout),
        )
        self._semaphore = asyncio.Semaphore(max(1, settings.embedding_max_concurrency))
        self._cache: OrderedDict[str, list[float]] = OrderedDict()

        logger.info(
            "EmbeddingClient initialized for model '%s' at %s",
            self.model,
            settings.ollama_base_url,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            EmbeddingServiceError: If the service fails after all retries or
                returns something that is not a numeric vector.
        """
        key = text_cache_key(self.model, text)
        cached = self._cache_get(key)
        if cached is not None:
            return list(cached)

        async with self._semaphore:
            vector = await self._embed_with_retry(text)

        self._cache_put(key, vector)
        return list(vector)

    async def embed_many(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed texts concurrently, preserving input order.

        Fails as a whole on the first error; no partial result is returned.
        """
        if not texts:
            return []
        tasks = [asyncio.ensure_future(self.embed(text)) for text in texts]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

    async def _embed_with_retry(self, text: str) -> list[float]:
        delay = self.initial_delay
        last_error = "no attempt made"

        for attempt in range(1, self.max_retries + 1):
            start_time = time.perf_counter()
            try:
                vector = await self._request(text)
            except _RetryableError as exc:
                last_error = str(exc)
                logger.warning(
                    "Embedding attempt %d/%d failed: %s",
                    attempt,
                    self.max_retries,
                    last_error,
                )
                if attempt < self.max_retries:
                    await asyncio.sleep(delay)
                    delay = min(delay * 2, self.max_delay)
                continue

            logger.debug(
                "Embedded %d chars into %d dims in %.2fs",
                len(text),
                len(vector),
                time.perf_counter() - start_time,
            )
            return vector

        error_msg = (
            f"Failed to generate embedding after {self.max_retries} attempts. "
            f"Last error: {last_error}"
        )
        logger.error(error_msg)
        raise EmbeddingServiceError(error_msg)

    async def _request(self, text: str) -> list[float]:
        payload = EmbeddingRequest(model=self.model, prompt=text)
        try:
            # httpx bounds each phase separately; this bounds the whole exchange.
            async with asyncio.timeout(self.settings.embedding_timeout):
                response = await self._client.post("/api/embeddings", json=payload.model_dump())
        except TimeoutError as exc:
            raise _RetryableError(
                f"No response within {self.settings.embedding_timeout}s"
            ) from exc
        except httpx.TimeoutException as exc:
            raise _RetryableError(f"Request timeout: {exc!r}") from exc
        except httpx.TransportError as exc:
            raise _RetryableError(f"Network error: {exc!r}") from exc

        if response.status_code in _RETRYABLE_STATUS:
            raise _RetryableError(f"Service answered {response.status_code}")

        if not response.is_success:
            error_msg = (
                f"Embedding request failed with status {response.status_code}: "
                f"{response.text[:200]}"
            )
            logger.error(error_msg)
            raise EmbeddingServiceError(error_msg)

        try:
            decoded = EmbeddingResponse.model_validate_json(response.content)
        except ValidationError as exc:
            logger.error("Unparseable embedding response: %s", exc)
            raise EmbeddingServiceError(
                f"Embedding response is not a numeric vector: {exc.error_count()} error(s)"
            ) from exc

        return decoded.embedding

    def _cache_get(self, key: str) -> list[float] | None:
        if self.cache_size <= 0:
            return None
        vector = self._cache.get(key)
        if vector is not None:
            self._cache.move_to_end(key)
        return vector

    def _cache_put(self, key: str, vector: list[float]) -> None:
        if self.cache_size <= 0:
            return
        self._cache[key] = vector
        self._cache.move_to_end(key)
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)


__all__ = ["EmbeddingClient"]
