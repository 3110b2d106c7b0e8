"""Health check schemas."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Environment name")
    queue_running: bool = Field(..., description="Whether indexing workers are running")
    pending_documents: int = Field(..., description="Documents waiting to be indexed")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "healthy",
                    "version": "0.1.0",
                    "environment": "development",
                    "queue_running": True,
                    "pending_documents": 0,
                }
            ]
        }
    }
