"""
Search Routes

This module defines the query endpoint for all search modes. A query with
no matches returns 200 with an empty hit list; a failed provider call is
reported through the global ServiceError handler instead.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import Annotated

from .models import SearchRequest, SearchResponse
from .dependencies import get_dispatcher
from ..search.dispatcher import QueryDispatcher
from ..search.models import QueryMode

router = APIRouter(prefix="/search", tags=["search"])


@router.post(
    "/{mode}",
    response_model=SearchResponse,
    summary="Vector, filtered, hybrid or semantic search",
    status_code=status.HTTP_200_OK,
)
async def search(
    mode: QueryMode,
    req: SearchRequest,
    dispatcher: Annotated[QueryDispatcher, Depends(get_dispatcher)],
) -> SearchResponse:
    """
    Run one query in the requested mode.

    Parameters
    ----------
    mode : QueryMode
        vector, multi_vector, filtered, hybrid or semantic.

    req : SearchRequest
        Query text and optional k/top/filter/select/language.

    Returns
    -------
    SearchResponse
        Hits in service order, answers (semantic only) and the total count.
    """
    if mode is QueryMode.FILTERED and not req.filter:
        raise HTTPException(
            status_code=422,
            detail="Filtered search requires a 'filter' expression.",
        )

    result = await dispatcher.search(
        mode,
        req.query,
        k=req.k,
        top=req.top,
        filter=req.filter,
        select=req.select,
        language=req.language,
    )
    return SearchResponse.from_result(mode, result)
