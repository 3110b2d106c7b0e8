"""Vector similarity and ranking helpers."""

from __future__ import annotations

import math
from collections.abc import Sequence

from vault_index.core.models import SearchHit


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors, in [-1, 1].

    Returns 0.0 when either vector has zero magnitude or the result is not finite.

    Raises:
        ValueError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise ValueError(f"Vector dimensions differ: {len(a)} != {len(b)}")
    if not all(math.isfinite(x) for x in a) or not all(math.isfinite(y) for y in b):
        return 0.0

    dot = math.fsum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(math.fsum(x * x for x in a))
    norm_b = math.sqrt(math.fsum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    score = dot / (norm_a * norm_b)
    if not math.isfinite(score):
        return 0.0

    # Rounding can push parallel vectors a hair past 1.
    return max(-1.0, min(1.0, score))


def rank(hits: Sequence[SearchHit], k: int, min_score: float) -> list[SearchHit]:
    """Drop hits below ``min_score`` and return the best ``k``, ties in scan order."""
    kept = [hit for hit in hits if hit.score >= min_score]
    kept.sort(key=lambda hit: hit.score, reverse=True)
    return kept[:k]
