"""
Azure AI Search Provider

SearchProvider implementation backed by the ``azure-search-documents``
async clients. This module only maps the provider-independent models to
SDK objects and back:

- IndexSchema  -> SearchIndex (fields, HNSW vector search, semantic config)
- Document     -> upload payload, IndexingResult -> IndexingError
- QueryRequest -> SearchClient.search kwargs, result pages -> QueryResult

All failures reported by the SDK are re-raised as ServiceError subclasses.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from azure.core.credentials import AzureKeyCredential
from azure.core.exceptions import AzureError, HttpResponseError
from azure.search.documents.aio import SearchClient
from azure.search.documents.indexes.aio import SearchIndexClient
from azure.search.documents.indexes.models import (
    ExhaustiveKnnAlgorithmConfiguration,
    ExhaustiveKnnParameters,
    HnswAlgorithmConfiguration,
    HnswParameters,
    SearchField,
    SearchFieldDataType,
    SearchIndex,
    SemanticConfiguration,
    SemanticField,
    SemanticPrioritizedFields,
    SemanticSearch,
    VectorSearch,
    VectorSearchProfile,
)
from azure.search.documents.models import (
    QueryAnswerType,
    QueryCaptionType,
    QueryType,
    VectorizedQuery,
)

from ..config import settings
from ..core.errors import IndexingError, SearchRequestError
from .models import (
    Answer,
    Caption,
    Document,
    FieldSpec,
    IndexSchema,
    QueryRequest,
    QueryResult,
    SearchHit,
)
from .provider import SearchProvider

logger = logging.getLogger("vss.search")


_SCALAR_TYPES = {
    "string": SearchFieldDataType.String,
    "int32": SearchFieldDataType.Int32,
    "int64": SearchFieldDataType.Int64,
    "double": SearchFieldDataType.Double,
    "boolean": SearchFieldDataType.Boolean,
    "datetime": SearchFieldDataType.DateTimeOffset,
}


# ---------------------------------------------------------------------
# Schema Mapping
# ---------------------------------------------------------------------

def _to_search_field(field: FieldSpec, schema: IndexSchema) -> SearchField:
    if field.type == "vector":
        return SearchField(
            name=field.name,
            type=SearchFieldDataType.Collection(SearchFieldDataType.Single),
            searchable=True,
            hidden=not field.retrievable,
            vector_search_dimensions=field.dimensions or schema.vector.dimensions,
            vector_search_profile_name=schema.vector.profile_name,
        )

    return SearchField(
        name=field.name,
        type=_SCALAR_TYPES[field.type],
        key=field.key,
        searchable=field.searchable,
        filterable=field.filterable,
        sortable=field.sortable,
        facetable=field.facetable,
        hidden=not field.retrievable,
    )


def _to_vector_search(schema: IndexSchema) -> VectorSearch:
    config = schema.vector
    if config.kind == "hnsw":
        algorithm = HnswAlgorithmConfiguration(
            name=config.algorithm_name,
            parameters=HnswParameters(metric=config.metric),
        )
    else:
        algorithm = ExhaustiveKnnAlgorithmConfiguration(
            name=config.algorithm_name,
            parameters=ExhaustiveKnnParameters(metric=config.metric),
        )

    return VectorSearch(
        algorithms=[algorithm],
        profiles=[
            VectorSearchProfile(
                name=config.profile_name,
                algorithm_configuration_name=config.algorithm_name,
            )
        ],
    )


def _to_semantic_search(schema: IndexSchema) -> Optional[SemanticSearch]:
    semantic = schema.semantic
    if semantic is None:
        return None

    prioritized = SemanticPrioritizedFields(
        title_field=SemanticField(field_name=semantic.title_field) if semantic.title_field else None,
        content_fields=[SemanticField(field_name=name) for name in semantic.content_fields],
        keywords_fields=[SemanticField(field_name=name) for name in semantic.keyword_fields],
    )
    return SemanticSearch(
        configurations=[
            SemanticConfiguration(name=semantic.name, prioritized_fields=prioritized)
        ]
    )


def to_search_index(schema: IndexSchema) -> SearchIndex:
    """Build the SDK index definition for a schema."""
    return SearchIndex(
        name=schema.name,
        fields=[_to_search_field(f, schema) for f in schema.fields],
        vector_search=_to_vector_search(schema),
        semantic_search=_to_semantic_search(schema),
    )


# ---------------------------------------------------------------------
# Query Mapping
# ---------------------------------------------------------------------

def build_search_kwargs(request: QueryRequest) -> Dict[str, Any]:
    """Translate a QueryRequest into SearchClient.search keyword arguments."""
    kwargs: Dict[str, Any] = {
        "search_text": request.search_text,
        "include_total_count": request.include_total_count,
    }

    if request.vector is not None:
        kwargs["vector_queries"] = [
            VectorizedQuery(
                vector=request.vector,
                k_nearest_neighbors=request.k,
                fields=",".join(request.vector_fields),
            )
        ]

    if request.top is not None:
        kwargs["top"] = request.top
    if request.filter:
        kwargs["filter"] = request.filter
    if request.select:
        kwargs["select"] = list(request.select)

    semantic = request.semantic
    if semantic is not None:
        kwargs["query_type"] = QueryType.SEMANTIC
        kwargs["semantic_configuration_name"] = semantic.configuration_name
        if semantic.captions:
            kwargs["query_caption"] = QueryCaptionType.EXTRACTIVE
            kwargs["query_caption_highlight_enabled"] = semantic.highlight
        if semantic.answers:
            kwargs["query_answer"] = QueryAnswerType.EXTRACTIVE
            if semantic.answer_count is not None:
                kwargs["query_answer_count"] = semantic.answer_count
        if semantic.language:
            kwargs["query_language"] = semantic.language

    return kwargs


def _to_hit(raw: Dict[str, Any]) -> SearchHit:
    captions = [
        Caption(
            text=getattr(c, "text", None),
            highlights=getattr(c, "highlights", None),
        )
        for c in (raw.get("@search.captions") or [])
    ]
    return SearchHit(
        document={k: v for k, v in raw.items() if not k.startswith("@search.")},
        score=float(raw.get("@search.score") or 0.0),
        reranker_score=raw.get("@search.reranker_score"),
        captions=captions,
    )


def _to_answer(raw: Any) -> Answer:
    return Answer(
        key=getattr(raw, "key", None),
        text=getattr(raw, "text", None),
        highlights=getattr(raw, "highlights", None),
        score=getattr(raw, "score", None),
    )


def _status_of(exc: AzureError) -> Optional[int]:
    # Only client errors (auth, malformed request) are passed through as-is
    status = getattr(exc, "status_code", None) if isinstance(exc, HttpResponseError) else None
    if status is not None and 400 <= status < 500:
        return status
    return None


# ---------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------

class AzureSearchProvider(SearchProvider):
    """
    Azure AI Search backend.

    SDK clients are created on first use and reused until close().
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        index_name: Optional[str] = None,
        search_client: Optional[SearchClient] = None,
        index_client: Optional[SearchIndexClient] = None,
    ) -> None:
        self.endpoint = endpoint or str(settings.azure_search_endpoint)
        self.index_name = index_name or settings.azure_search_index_name
        self._credential = AzureKeyCredential(
            api_key or settings.azure_search_key.get_secret_value()
        )
        self._search_client = search_client
        self._index_client = index_client

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    @property
    def search_client(self) -> SearchClient:
        if self._search_client is None:
            self._search_client = SearchClient(
                endpoint=self.endpoint,
                index_name=self.index_name,
                credential=self._credential,
            )
        return self._search_client

    @property
    def index_client(self) -> SearchIndexClient:
        if self._index_client is None:
            self._index_client = SearchIndexClient(
                endpoint=self.endpoint,
                credential=self._credential,
            )
        return self._index_client

    async def close(self) -> None:
        if self._search_client is not None:
            await self._search_client.close()
            self._search_client = None
        if self._index_client is not None:
            await self._index_client.close()
            self._index_client = None

    # ------------------------------------------------------------------
    # SearchProvider API
    # ------------------------------------------------------------------

    async def create_or_update_index(self, schema: IndexSchema) -> None:
        try:
            result = await self.index_client.create_or_update_index(to_search_index(schema))
        except AzureError as exc:
            logger.error("Index create/update failed for %s: %s", schema.name, exc)
            raise SearchRequestError(
                f"Index '{schema.name}' could not be created or updated: {type(exc).__name__}",
                status_code=_status_of(exc),
            ) from exc

        logger.info("Index %s created or updated", result.name)

    async def upload_documents(self, documents: List[Document]) -> int:
        if not documents:
            return 0

        try:
            results = await self.search_client.upload_documents(
                documents=[doc.to_upload() for doc in documents]
            )
        except AzureError as exc:
            logger.error(
                "Document upload failed: batch size=%d, error=%s",
                len(documents),
                exc,
            )
            raise IndexingError(
                f"Document upload failed: {type(exc).__name__}",
                failed_keys=[doc.id for doc in documents],
            ) from exc

        failed = [r for r in results if not r.succeeded]
        if failed:
            for r in failed:
                logger.error("Document %s rejected: %s", r.key, r.error_message)
            raise IndexingError(
                f"{len(failed)} of {len(documents)} documents were rejected.",
                failed_keys=[r.key for r in failed],
            )

        logger.info("Uploaded %d documents to %s", len(results), self.index_name)
        return len(results)

    async def query(self, request: QueryRequest) -> QueryResult:
        kwargs = build_search_kwargs(request)

        try:
            results = await self.search_client.search(**kwargs)
            pages = results.by_page()

            hits: List[SearchHit] = []
            answers: List[Answer] = []
            count = None
            first_page = True
            async for page in pages:
                if first_page:
                    answers, count = await self._first_page_metadata(pages, request)
                    first_page = False
                async for raw in page:
                    hits.append(_to_hit(raw))
        except AzureError as exc:
            logger.error("Search request failed: %s", exc)
            raise SearchRequestError(
                f"Search request failed: {type(exc).__name__}",
                status_code=_status_of(exc),
            ) from exc

        return QueryResult(
            hits=hits,
            answers=answers,
            count=count if count is not None else len(hits),
        )

    @staticmethod
    async def _first_page_metadata(pages: Any, request: QueryRequest) -> Tuple[List[Answer], Optional[int]]:
        """
        Read answers and total count from the page just fetched.

        The page iterator serves both from its current response, so no
        extra request is sent. Reading them clears the iterator's
        continuation token; it is restored so later pages still load.
        """
        token = pages.continuation_token

        answers: List[Answer] = []
        if request.semantic is not None and request.semantic.answers:
            answers = [_to_answer(a) for a in (await pages.get_answers() or [])]

        count = None
        if request.include_total_count:
            count = await pages.get_count()

        pages.continuation_token = token
        return answers, count
