"""Change notification endpoint."""

from fastapi import APIRouter, Request, status

from vault_index.core.logging import get_logger
from vault_index.dependencies import EngineDep
from vault_index.schemas.documents import AcceptedResponse
from vault_index.schemas.events import parse_change_event

logger = get_logger(__name__)

router = APIRouter(tags=["events"])


@router.post(
    "/events",
    response_model=AcceptedResponse,
    summary="Document Change Event",
    description=(
        "Accepts a created/modified/deleted/renamed notification and queues it; "
        "rapid events for the same document are coalesced"
    ),
    status_code=status.HTTP_202_ACCEPTED,
)
async def submit_event(request: Request, engine: EngineDep) -> AcceptedResponse:
    """Queue a change notification.

    The body is parsed strictly; malformed payloads are rejected with 422
    before anything is queued.
    """
    event = parse_change_event(await request.body())
    logger.info("Received %s event for '%s'", event.action.value, event.document_id)
    await engine.queue.submit(event)
    return AcceptedResponse(queued=1)
