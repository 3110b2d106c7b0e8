"""Health check endpoint."""

from fastapi import APIRouter

from vault_index.dependencies import EngineDep
from vault_index.schemas.health import HealthResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Reports the API version and whether the indexing workers are alive",
)
async def health_check(engine: EngineDep) -> HealthResponse:
    queue = engine.queue
    return HealthResponse(
        status="healthy" if queue.running else "degraded",
        version=engine.settings.app_version,
        environment=engine.settings.environment,
        queue_running=queue.running,
        pending_documents=queue.pending_count(),
    )
