from fastapi import APIRouter
from ..config import settings

router = APIRouter(tags=["health"])

@router.get("/health")
def health():
    return {
        "status": "ok",
        "search_endpoint": str(settings.azure_search_endpoint),
        "index": settings.azure_search_index_name,
    }
