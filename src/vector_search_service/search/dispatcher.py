"""
Query Dispatcher

Builds one QueryRequest per query mode and hands it to the SearchProvider:

- vector:        query vector only, no search text
- multi_vector:  one vector against titleVector and contentVector
- filtered:      vector search plus an OData filter expression
- hybrid:        search text and vector, scores blended by the service
- semantic:      hybrid plus semantic reranking, captions and answers

Result order and scores come from the service unchanged.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from ..config import settings
from ..embeddings.embedder import Embedder
from .models import QueryMode, QueryRequest, QueryResult, SemanticOptions
from .provider import SearchProvider

logger = logging.getLogger("vss.search")


def equals_filter(field: str, value: Any) -> str:
    """
    Build an OData equality filter, e.g. ``category eq 'Databases'``.

    String values are quoted with embedded single quotes doubled.
    """
    if isinstance(value, bool):
        literal = "true" if value else "false"
    elif isinstance(value, (int, float)):
        literal = str(value)
    else:
        literal = "'" + str(value).replace("'", "''") + "'"
    return f"{field} eq {literal}"


class QueryDispatcher:

    def __init__(self, provider: SearchProvider, embedder: Embedder) -> None:
        self.provider = provider
        self.embedder = embedder

    # ------------------------------------------------------------------
    # Query modes
    # ------------------------------------------------------------------

    async def vector_search(
        self,
        query: str,
        k: Optional[int] = None,
        select: Optional[List[str]] = None,
    ) -> QueryResult:
        vector = await self.embedder.embed_one(query)
        request = QueryRequest(
            vector=vector,
            k=k or settings.default_k,
            select=select,
        )
        return await self._run(QueryMode.VECTOR, request)

    async def multi_vector_search(
        self,
        query: str,
        k: Optional[int] = None,
        select: Optional[List[str]] = None,
    ) -> QueryResult:
        vector = await self.embedder.embed_one(query)
        request = QueryRequest(
            vector=vector,
            k=k or settings.default_k,
            vector_fields=["titleVector", "contentVector"],
            select=select,
        )
        return await self._run(QueryMode.MULTI_VECTOR, request)

    async def filtered_vector_search(
        self,
        query: str,
        filter: str,
        k: Optional[int] = None,
        select: Optional[List[str]] = None,
    ) -> QueryResult:
        if not filter:
            raise ValueError("Filtered vector search needs a filter expression.")

        vector = await self.embedder.embed_one(query)
        request = QueryRequest(
            vector=vector,
            k=k or settings.default_k,
            filter=filter,
            select=select,
        )
        return await self._run(QueryMode.FILTERED, request)

    async def hybrid_search(
        self,
        query: str,
        k: Optional[int] = None,
        top: Optional[int] = None,
        select: Optional[List[str]] = None,
        filter: Optional[str] = None,
    ) -> QueryResult:
        vector = await self.embedder.embed_one(query)
        request = QueryRequest(
            search_text=query,
            vector=vector,
            k=k or settings.default_k,
            top=top or settings.default_top,
            select=select,
            filter=filter,
        )
        return await self._run(QueryMode.HYBRID, request)

    async def semantic_hybrid_search(
        self,
        query: str,
        k: Optional[int] = None,
        top: Optional[int] = None,
        language: Optional[str] = None,
        select: Optional[List[str]] = None,
        filter: Optional[str] = None,
    ) -> QueryResult:
        vector = await self.embedder.embed_one(query)
        request = QueryRequest(
            search_text=query,
            vector=vector,
            k=k or settings.default_k,
            top=top or settings.default_top,
            select=select,
            filter=filter,
            semantic=SemanticOptions(
                configuration_name=settings.semantic_config_name,
                language=language or settings.query_language,
            ),
        )
        return await self._run(QueryMode.SEMANTIC, request)

    async def search(
        self,
        mode: QueryMode,
        query: str,
        k: Optional[int] = None,
        top: Optional[int] = None,
        filter: Optional[str] = None,
        select: Optional[List[str]] = None,
        language: Optional[str] = None,
    ) -> QueryResult:
        """Dispatch to the query mode named by ``mode``."""
        mode = QueryMode(mode)

        if mode is QueryMode.VECTOR:
            return await self.vector_search(query, k=k, select=select)
        if mode is QueryMode.MULTI_VECTOR:
            return await self.multi_vector_search(query, k=k, select=select)
        if mode is QueryMode.FILTERED:
            return await self.filtered_vector_search(query, filter or "", k=k, select=select)
        if mode is QueryMode.HYBRID:
            return await self.hybrid_search(query, k=k, top=top, select=select, filter=filter)
        return await self.semantic_hybrid_search(
            query, k=k, top=top, language=language, select=select, filter=filter
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _run(self, mode: QueryMode, request: QueryRequest) -> QueryResult:
        result = await self.provider.query(request)
        logger.info(
            "%s search returned %d hits, %d answers",
            mode.value,
            len(result.hits),
            len(result.answers),
        )
        return result.model_copy(update={"mode": mode})


# ---------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------

def format_result(result: QueryResult) -> List[str]:
    """
    Render a QueryResult as printable lines.

    Answers come first, then one block per hit, then the total count.
    """
    lines: List[str] = []

    for answer in result.answers:
        lines.append(f"Semantic Answer: {answer.display_text or ''}")
        if answer.score is not None:
            lines.append(f"Semantic Answer Score: {answer.score}")
        lines.append("")

    for hit in result.hits:
        doc = hit.document
        if "title" in doc:
            lines.append(f"Title: {doc['title']}")
        lines.append(f"Score: {hit.score}")
        if hit.reranker_score is not None:
            lines.append(f"Reranker Score: {hit.reranker_score}")
        if "content" in doc:
            lines.append(f"Content: {doc['content']}")
        if "category" in doc:
            lines.append(f"Category: {doc['category']}")
        if hit.caption:
            lines.append(f"Caption: {hit.caption}")
        lines.append("")

    lines.append(f"Total Results: {result.count}")
    return lines
