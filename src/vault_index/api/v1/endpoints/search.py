"""Similarity search endpoints."""

from fastapi import APIRouter, status

from vault_index.core.logging import get_logger
from vault_index.dependencies import SearchServiceDep, SettingsDep
from vault_index.schemas.search import (
    DocumentMatchSchema,
    DocumentSearchResponse,
    SearchHitSchema,
    SearchRequest,
    SearchResponse,
)

logger = get_logger(__name__)

router = APIRouter(tags=["search"])


@router.post(
    "/search",
    response_model=SearchResponse,
    summary="Chunk Search",
    description="Ranks indexed chunks by cosine similarity to the query",
    status_code=status.HTTP_200_OK,
)
async def search(
    request: SearchRequest,
    search_service: SearchServiceDep,
    settings: SettingsDep,
) -> SearchResponse:
    """Return the best matching chunks.

    Errors from the embedding service or the store propagate to the
    application exception handlers (502 and 503 respectively).
    """
    hits = await search_service.search(
        query=request.query,
        k=request.k or settings.search_default_k,
        min_score=(
            settings.search_min_score if request.min_score is None else request.min_score
        ),
        exclude_document_ids=set(request.exclude_document_ids),
    )
    results = [SearchHitSchema.model_validate(hit, from_attributes=True) for hit in hits]
    return SearchResponse(query=request.query, results=results, total_results=len(results))


@router.post(
    "/search/documents",
    response_model=DocumentSearchResponse,
    summary="Document Search",
    description="Groups matching chunks per document, best document first",
    status_code=status.HTTP_200_OK,
)
async def search_documents(
    request: SearchRequest,
    search_service: SearchServiceDep,
    settings: SettingsDep,
) -> DocumentSearchResponse:
    matches = await search_service.search_documents(
        query=request.query,
        k=request.k or settings.search_default_k,
        min_score=(
            settings.search_min_score if request.min_score is None else request.min_score
        ),
        exclude_document_ids=set(request.exclude_document_ids),
    )
    results = [
        DocumentMatchSchema.model_validate(match, from_attributes=True) for match in matches
    ]
    return DocumentSearchResponse(
        query=request.query, results=results, total_results=len(results)
    )
