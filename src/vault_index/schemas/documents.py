"""Document indexing request and response schemas."""

from pydantic import BaseModel, Field


class ReindexRequest(BaseModel):
    """Request model for a synchronous reindex."""

    document_id: str = Field(..., description="Document ID", min_length=1)
    content: str | None = Field(
        None, description="Document text; read from the vault when omitted"
    )
    version: int | None = Field(None, description="Monotonic content version", ge=0)
    force: bool = Field(False, description="Re-embed even if the content is unchanged")


class ReindexResponse(BaseModel):
    """Outcome of a reindex or removal."""

    document_id: str = Field(..., description="Document ID")
    operation: str = Field(..., description="indexed, unchanged, superseded or removed")
    chunks: int = Field(..., description="Number of chunks now indexed")
    version: int = Field(..., description="Version the operation ran as")


class IndexEntrySchema(BaseModel):
    """A stored entry, without its vector."""

    chunk_id: str
    ordinal: int
    text: str
    dimension: int
    checksum: str
    model: str


class DocumentEntriesResponse(BaseModel):
    """Entries currently stored for a document."""

    document_id: str
    entries: list[IndexEntrySchema]
    total_entries: int


class AcceptedResponse(BaseModel):
    """Acknowledgement for queued work."""

    status: str = Field("accepted", description="Always 'accepted'")
    queued: int = Field(..., description="Number of events queued")
