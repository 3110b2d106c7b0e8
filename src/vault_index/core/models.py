"""Domain models for chunks, index entries and search hits."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Chunk:
    """A contiguous, non-empty span of a document's text."""

    id: str
    document_id: str
    ordinal: int
    text: str


@dataclass(frozen=True)
class IndexEntry:
    """Persisted vector for one chunk of one document."""

    chunk_id: str
    document_id: str
    vector: list[float]
    ordinal: int = 0
    text: str = ""
    checksum: str = ""
    model: str = ""
    chunker: str = ""

    @property
    def dimension(self) -> int:
        return len(self.vector)


@dataclass(frozen=True)
class DocumentState:
    """Checksum, model and chunking recorded for a document's current entries."""

    checksum: str
    model: str
    chunker: str = ""


@dataclass(frozen=True)
class SearchHit:
    """One ranked chunk returned by a similarity query."""

    document_id: str
    chunk_id: str
    score: float
    ordinal: int = 0
    text: str = ""


@dataclass
class DocumentMatch:
    """Chunk hits of a single document, ranked by the best of them."""

    document_id: str
    max_score: float
    chunks: list[SearchHit] = field(default_factory=list)


@dataclass(slots=True)
class ReindexStats:
    """Outcome of a reindex or removal for a single document."""

    document_id: str
    operation: str
    chunks: int
    version: int
