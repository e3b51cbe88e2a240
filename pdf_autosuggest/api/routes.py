"""
Autosuggest and health endpoints.

Handlers are plain functions, so the server runs each request on its
worker thread pool.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from ..core import get_logger, QueryParseError
from ..search import AutosuggestService

logger = get_logger(__name__)

router = APIRouter()


class AutosuggestResponse(BaseModel):
    """Ordered preview strings, most relevant first."""
    suggestions: List[str]


class HealthResponse(BaseModel):
    status: str
    documents: int
    generation: int


def get_service(request: Request) -> AutosuggestService:
    return request.app.state.service


@router.get("/autosuggest", response_model=AutosuggestResponse)
def autosuggest(
    prefix: str = Query(..., description="Query text"),
    limit: Optional[int] = Query(None, ge=1, description="Maximum number of suggestions"),
    service: AutosuggestService = Depends(get_service)
):
    """
    Suggest previews of the documents best matching ``prefix``.

    At most ``search.default_limit`` suggestions are returned; a larger
    ``limit`` is clamped to it.
    """
    if limit is not None:
        limit = min(limit, service.ranker.default_limit)

    try:
        suggestions = service.suggest(prefix, limit)
    except QueryParseError as e:
        logger.info(f"Rejected query {prefix!r}: {e.message}")
        raise HTTPException(
            status_code=400,
            detail={
                "error": "query_parse_error",
                "message": e.message,
                "query": e.query,
                "position": e.position
            }
        )

    return AutosuggestResponse(suggestions=suggestions)


@router.get("/health", response_model=HealthResponse)
def health(service: AutosuggestService = Depends(get_service)):
    return HealthResponse(
        status="ok",
        documents=service.num_docs(),
        generation=service.generation
    )
