"""
Index Routes

This module exposes endpoints for:
- Creating or updating the search index schema
- Vectorizing and uploading documents

Provider failures propagate to the global ServiceError handler, so a
rejected batch is reported as an explicit error response.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Annotated

from .models import OperationResult
from .dependencies import get_index_manager
from ..indexing import IndexManager
from ..search.models import SourceDocument

router = APIRouter(prefix="/index", tags=["index"])


@router.put(
    "",
    response_model=OperationResult,
    summary="Create or update the search index",
)
async def create_or_update_index(
    manager: Annotated[IndexManager, Depends(get_index_manager)],
) -> OperationResult:
    schema = await manager.ensure_index()
    return OperationResult(status="created", index=schema.name)


@router.post(
    "/documents",
    response_model=OperationResult,
    summary="Vectorize and upload documents",
    status_code=status.HTTP_200_OK,
)
async def upload_documents(
    documents: List[SourceDocument],
    manager: Annotated[IndexManager, Depends(get_index_manager)],
) -> OperationResult:
    """
    Attach title/content vectors to each document and upload them in one batch.

    A document without content is rejected with 422 before anything is embedded.
    """
    try:
        uploaded = await manager.index_sources(documents)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return OperationResult(status="uploaded", count=len(uploaded), index=manager.schema.name)
