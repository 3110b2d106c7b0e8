"""Central constants shared across the indexing and search stack."""

from typing import Final

# Payload keys of an index entry point.
K_CHUNK_ID: Final[str] = "chunk_id"
K_DOCUMENT_ID: Final[str] = "document_id"
K_ORDINAL: Final[str] = "ordinal"
K_TEXT: Final[str] = "text"
K_VECTOR: Final[str] = "vector"
K_CHECKSUM: Final[str] = "checksum"
K_MODEL: Final[str] = "model"
K_CHUNKER: Final[str] = "chunker"

# Reindex outcomes reported by the coordinator.
OP_INDEXED: Final[str] = "indexed"
OP_UNCHANGED: Final[str] = "unchanged"
OP_SUPERSEDED: Final[str] = "superseded"
OP_REMOVED: Final[str] = "removed"
