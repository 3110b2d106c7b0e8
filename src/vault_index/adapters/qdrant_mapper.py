"""Helpers to translate between index entries and Qdrant transport objects."""

from __future__ import annotations

import math
from typing import Any, cast

from qdrant_client import models as q

from vault_index.core.constants import (
    K_CHECKSUM,
    K_CHUNK_ID,
    K_CHUNKER,
    K_DOCUMENT_ID,
    K_MODEL,
    K_ORDINAL,
    K_TEXT,
    K_VECTOR,
)
from vault_index.core.models import DocumentState, IndexEntry
from vault_index.services.point_ids import chunk_point_id


def entry_to_point(entry: IndexEntry) -> q.PointStruct:
    """Convert an index entry into a payload-only Qdrant point."""
    payload = {
        K_CHUNK_ID: entry.chunk_id,
        K_DOCUMENT_ID: entry.document_id,
        K_ORDINAL: entry.ordinal,
        K_TEXT: entry.text,
        K_VECTOR: [float(x) for x in entry.vector],
        K_CHECKSUM: entry.checksum,
        K_MODEL: entry.model,
        K_CHUNKER: entry.chunker,
    }
    return q.PointStruct(id=chunk_point_id(entry.chunk_id), payload=payload, vector={})


def record_to_entry(record: q.Record) -> IndexEntry:
    """Convert a Qdrant record into an index entry.

    Raises:
        ValueError: If the payload is missing its ids or holds a malformed vector.
    """
    payload = record.payload or {}
    chunk_id = payload.get(K_CHUNK_ID)
    document_id = payload.get(K_DOCUMENT_ID)
    if not isinstance(chunk_id, str) or not isinstance(document_id, str):
        raise ValueError(f"Record {record.id} is missing chunk_id/document_id")

    return IndexEntry(
        chunk_id=chunk_id,
        document_id=document_id,
        vector=_extract_vector(payload.get(K_VECTOR), record.id),
        ordinal=_coerce_int(payload.get(K_ORDINAL)),
        text=cast(str | None, payload.get(K_TEXT)) or "",
        checksum=cast(str | None, payload.get(K_CHECKSUM)) or "",
        model=cast(str | None, payload.get(K_MODEL)) or "",
        chunker=cast(str | None, payload.get(K_CHUNKER)) or "",
    )


def record_to_state(record: q.Record) -> DocumentState:
    """Read the checksum, model and chunker signature recorded on an entry."""
    payload = record.payload or {}
    return DocumentState(
        checksum=cast(str | None, payload.get(K_CHECKSUM)) or "",
        model=cast(str | None, payload.get(K_MODEL)) or "",
        chunker=cast(str | None, payload.get(K_CHUNKER)) or "",
    )


def _extract_vector(value: Any, point_id: Any) -> list[float]:
    if not isinstance(value, list) or not value:
        raise ValueError(f"Expected vector of record {point_id} to be a non-empty list")
    vector: list[float] = []
    for item in value:  # pyright: ignore[reportUnknownVariableType]
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise ValueError(f"Vector of record {point_id} holds a non-numeric value")
        if not math.isfinite(item):
            raise ValueError(f"Vector of record {point_id} holds a non-finite value")
        vector.append(float(item))
    return vector


def _coerce_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return 0
    return 0
