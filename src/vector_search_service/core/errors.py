"""
Error Types and Global Error Handling

This module defines the exception hierarchy raised by the embedding,
indexing and query layers, plus the FastAPI exception handlers that turn
them into deterministic JSON error responses.

Design Goals
------------
- A failed provider call is always an exception, never an empty result
- Never leak internal exception details to clients
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Dict, Any, List, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("vss.errors")


# ---------------------------------------------------------------------
# Exception Hierarchy
# ---------------------------------------------------------------------

class ServiceError(RuntimeError):
    """Raised when a hosted service call fails."""

    status_code: int = 502
    error_code: str = "service_error"


class EmbeddingError(ServiceError):
    """Raised when embedding generation fails."""

    error_code = "embedding_failed"


class SearchRequestError(ServiceError):
    """
    Raised when the search service rejects or fails a request.

    ``status_code`` mirrors the provider's HTTP status where one exists
    (401/403 for authentication, 400 for malformed requests such as a bad
    filter expression) and falls back to 502 for transport failures.
    """

    error_code = "search_failed"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class IndexingError(ServiceError):
    """Raised when a document batch is not fully accepted by the index."""

    error_code = "indexing_failed"

    def __init__(self, message: str, failed_keys: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.failed_keys = list(failed_keys or [])


class DimensionMismatchError(ValueError):
    """Raised when a vector length differs from the schema dimension."""

    def __init__(self, key: str, field: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Document {key!r}: field {field!r} has {actual} dimensions, "
            f"index expects {expected}."
        )
        self.key = key
        self.field = field
        self.expected = expected
        self.actual = actual


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

def _error_payload(error: str, detail: str) -> Dict[str, Any]:
    return {"error": error, "detail": detail}


async def service_error_handler(
    request: Request,
    exc: ServiceError,
) -> JSONResponse:
    """
    Map provider failures to an explicit error response.

    Client-side problems reported by the provider (auth, malformed
    request) keep their 4xx status; everything else is a 502.
    """
    logger.error(
        "Service call failed during request %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )

    payload = _error_payload(exc.error_code, str(exc))
    if isinstance(exc, IndexingError) and exc.failed_keys:
        payload["failed_keys"] = exc.failed_keys

    return JSONResponse(status_code=exc.status_code, content=payload)


async def dimension_mismatch_handler(
    request: Request,
    exc: DimensionMismatchError,
) -> JSONResponse:
    logger.warning("Rejected document with bad vector: %s", exc)
    return JSONResponse(
        status_code=422,
        content=_error_payload("dimension_mismatch", str(exc)),
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    Behavior
    --------
    - Logs the full exception stack trace for internal diagnostics.
    - Returns a generic 500 error to the client with no internal details.

    Parameters
    ----------
    request : Request
        The incoming HTTP request that triggered the exception.

    exc : Exception
        The uncaught exception instance.

    Returns
    -------
    JSONResponse
        A JSON 500 response with a minimal error payload.
    """

    # Log full traceback internally (never returned to client)
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content=_error_payload("internal_server_error", "Internal server error"),
    )
