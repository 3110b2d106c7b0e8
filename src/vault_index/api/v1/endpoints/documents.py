"""Document indexing endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, Query, status

from vault_index.core.logging import get_logger
from vault_index.dependencies import CoordinatorDep, EngineDep
from vault_index.schemas.documents import (
    AcceptedResponse,
    DocumentEntriesResponse,
    IndexEntrySchema,
    ReindexRequest,
    ReindexResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post(
    "/reindex",
    response_model=ReindexResponse,
    summary="Reindex Document",
    description="Chunks, embeds and stores a document, replacing its previous entries",
    status_code=status.HTTP_200_OK,
)
async def reindex_document(
    request: ReindexRequest,
    engine: EngineDep,
) -> ReindexResponse:
    """Reindex one document and wait for the outcome.

    When ``content`` is omitted the document is read from the configured vault.
    """
    if request.content is None:
        stats = await engine.reindex_from_source(
            request.document_id, version=request.version, force=request.force
        )
    else:
        stats = await engine.coordinator.reindex_document(
            request.document_id,
            request.content,
            version=request.version,
            force=request.force,
        )
    return ReindexResponse(**asdict(stats))


@router.post(
    "/rebuild",
    response_model=AcceptedResponse,
    summary="Rebuild Index",
    description="Queues every document of the vault for reindexing",
    status_code=status.HTTP_202_ACCEPTED,
)
async def rebuild_index(engine: EngineDep) -> AcceptedResponse:
    queued = await engine.rebuild()
    return AcceptedResponse(queued=queued)


@router.delete(
    "/{document_id:path}",
    response_model=ReindexResponse,
    summary="Remove Document",
    description="Deletes every entry of a document; unknown documents are a no-op",
)
async def remove_document(
    document_id: str,
    coordinator: CoordinatorDep,
    version: int | None = Query(None, ge=0, description="Removal version"),
) -> ReindexResponse:
    stats = await coordinator.remove_document(document_id, version=version)
    return ReindexResponse(**asdict(stats))


@router.get(
    "/{document_id:path}/entries",
    response_model=DocumentEntriesResponse,
    summary="Document Entries",
    description="Lists the stored entries of a document in chunk order",
)
async def list_entries(document_id: str, engine: EngineDep) -> DocumentEntriesResponse:
    entries = await engine.vector_repository.get_by_document(document_id)
    return DocumentEntriesResponse(
        document_id=document_id,
        entries=[
            IndexEntrySchema(
                chunk_id=entry.chunk_id,
                ordinal=entry.ordinal,
                text=entry.text,
                dimension=entry.dimension,
                checksum=entry.checksum,
                model=entry.model,
            )
            for entry in entries
        ],
        total_entries=len(entries),
    )
