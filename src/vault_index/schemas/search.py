"""Search request and response schemas."""

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    """Request model for search endpoints."""

    query: str = Field(..., description="Search query text", min_length=1)
    k: int | None = Field(
        None, description="Maximum number of results to return", ge=1, le=100
    )
    min_score: float | None = Field(
        None, description="Drop results scoring below this cosine similarity", ge=-1.0, le=1.0
    )
    exclude_document_ids: list[str] = Field(
        default_factory=list, description="Documents to leave out of the results"
    )


class SearchHitSchema(BaseModel):
    """A ranked chunk."""

    document_id: str = Field(..., description="Owning document")
    chunk_id: str = Field(..., description="Chunk ID")
    score: float = Field(..., description="Cosine similarity to the query")
    ordinal: int = Field(..., description="Position of the chunk in its document")
    text: str = Field(..., description="Chunk text")


class SearchResponse(BaseModel):
    """Response model for chunk search."""

    query: str = Field(..., description="Original search query")
    results: list[SearchHitSchema] = Field(..., description="Chunks, best first")
    total_results: int = Field(..., description="Number of results returned")


class DocumentMatchSchema(BaseModel):
    """A document with its matching chunks."""

    document_id: str = Field(..., description="Document ID")
    max_score: float = Field(..., description="Best score among matching chunks")
    chunks: list[SearchHitSchema] = Field(..., description="Matching chunks, best first")


class DocumentSearchResponse(BaseModel):
    """Response model for document-level search."""

    query: str = Field(..., description="Original search query")
    results: list[DocumentMatchSchema] = Field(..., description="Documents, best first")
    total_results: int = Field(..., description="Number of documents returned")
