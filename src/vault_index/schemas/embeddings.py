"""Wire schemas for the Ollama-compatible embeddings endpoint."""

from pydantic import BaseModel, ConfigDict, Field


class EmbeddingRequest(BaseModel):
    """Request body for ``POST /api/embeddings``."""

    model: str
    prompt: str


class EmbeddingResponse(BaseModel):
    """Response body; only the vector is read, other fields are ignored.

    Components must be finite: ``NaN`` or ``Infinity`` fail decoding.
    """

    model_config = ConfigDict(strict=True, extra="ignore", allow_inf_nan=False)

    embedding: list[float] = Field(..., min_length=1)
