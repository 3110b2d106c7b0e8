"""Deterministic Qdrant point IDs."""

import uuid

# Fixed namespace so ids are stable across processes and restarts.
_POINT_NAMESPACE = uuid.UUID("6f1c2b9e-3d4a-5e8f-9a0b-1c2d3e4f5a6b")


def generate_point_id(point_type: str, *parts: object, extra: str | None = None) -> str:
    """Build a UUIDv5 from a point type and identifying parts."""
    name = ":".join([point_type, *(str(part) for part in parts)])
    if extra is not None:
        name = f"{name}#{extra}"
    return str(uuid.uuid5(_POINT_NAMESPACE, name))


def chunk_point_id(chunk_id: str) -> str:
    """Point id of an index entry, keyed by its chunk id."""
    return generate_point_id("chunk", chunk_id)
