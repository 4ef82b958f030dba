from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from azure.core.credentials import AzureKeyCredential
from azure.core.exceptions import ClientAuthenticationError, HttpResponseError, ServiceRequestError
from azure.search.documents.aio import SearchClient
from azure.search.documents.indexes.models import SearchFieldDataType
from azure.search.documents.models import QueryAnswerType, QueryCaptionType, QueryType
from azure.search.documents.models._models import SearchDocumentsResult

from vector_search_service.core.errors import IndexingError, SearchRequestError
from vector_search_service.search.azure import (
    AzureSearchProvider,
    build_search_kwargs,
    to_search_index,
)
from vector_search_service.search.models import (
    Document,
    QueryRequest,
    SemanticOptions,
)
from vector_search_service.search.schema import build_index_schema

ENDPOINT = "https://test-search.search.windows.net"


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def raw_hit(doc_id, score, **extra):
    raw = {"id": doc_id, "title": f"Doc {doc_id}", "@search.score": score}
    raw.update(extra)
    return raw


def search_page(hits, count=None, answers=None, next_skip=None):
    """Wire-format body of one search response page."""
    body = {"value": hits}
    if count is not None:
        body["@odata.count"] = count
    if answers is not None:
        body["@search.answers"] = answers
    if next_skip is not None:
        body["@search.nextPageParameters"] = {"search": "q", "skip": next_skip}
        body["@odata.nextLink"] = f"{ENDPOINT}/indexes('test-index')/docs/search.post.search"
    return SearchDocumentsResult(body)


def sdk_search_client(*pages):
    """Real async SearchClient whose HTTP call returns the given pages in order."""
    client = SearchClient(ENDPOINT, "test-index", AzureKeyCredential("key"))
    client._search_post = AsyncMock(side_effect=list(pages))
    return client


def make_provider(search_client=None, index_client=None):
    return AzureSearchProvider(
        endpoint=ENDPOINT,
        api_key="key",
        index_name="test-index",
        search_client=search_client or MagicMock(),
        index_client=index_client or MagicMock(),
    )


# ---------------------------------------------------------------------
# Schema mapping
# ---------------------------------------------------------------------

def test_to_search_index_maps_fields_and_configs():
    index = to_search_index(build_index_schema(name="docs", dimensions=1536))

    fields = {f.name: f for f in index.fields}
    assert fields["id"].key is True
    assert fields["category"].filterable is True
    assert fields["category"].facetable is True
    assert fields["contentVector"].type == SearchFieldDataType.Collection(SearchFieldDataType.Single)
    assert fields["contentVector"].vector_search_dimensions == 1536
    assert fields["titleVector"].vector_search_profile_name == index.vector_search.profiles[0].name

    assert index.vector_search.algorithms[0].name == index.vector_search.profiles[0].algorithm_configuration_name
    semantic = index.semantic_search.configurations[0]
    assert semantic.prioritized_fields.title_field.field_name == "title"
    assert [f.field_name for f in semantic.prioritized_fields.content_fields] == ["content"]
    assert [f.field_name for f in semantic.prioritized_fields.keywords_fields] == ["category"]


@pytest.mark.asyncio
async def test_create_or_update_index_calls_sdk():
    index_client = MagicMock()
    index_client.create_or_update_index = AsyncMock(return_value=SimpleNamespace(name="docs"))
    provider = make_provider(index_client=index_client)

    await provider.create_or_update_index(build_index_schema(name="docs"))

    sent = index_client.create_or_update_index.await_args.args[0]
    assert sent.name == "docs"


@pytest.mark.asyncio
async def test_create_index_auth_failure_keeps_status():
    index_client = MagicMock()
    error = ClientAuthenticationError(message="invalid api key")
    error.status_code = 403
    index_client.create_or_update_index = AsyncMock(side_effect=error)
    provider = make_provider(index_client=index_client)

    with pytest.raises(SearchRequestError) as excinfo:
        await provider.create_or_update_index(build_index_schema(name="docs"))
    assert excinfo.value.status_code == 403


# ---------------------------------------------------------------------
# Query mapping
# ---------------------------------------------------------------------

def test_vector_only_kwargs_have_no_search_text():
    kwargs = build_search_kwargs(QueryRequest(vector=[0.1, 0.2], k=5, select=["title"]))

    assert kwargs["search_text"] is None
    query = kwargs["vector_queries"][0]
    assert query.k_nearest_neighbors == 5
    assert query.fields == "contentVector"
    assert kwargs["select"] == ["title"]
    assert "query_type" not in kwargs
    assert "filter" not in kwargs


def test_multi_field_vector_kwargs():
    kwargs = build_search_kwargs(
        QueryRequest(vector=[0.1], vector_fields=["titleVector", "contentVector"])
    )
    assert kwargs["vector_queries"][0].fields == "titleVector,contentVector"


def test_semantic_kwargs():
    kwargs = build_search_kwargs(
        QueryRequest(
            search_text="what is azure search?",
            vector=[0.1],
            top=3,
            filter="category eq 'Analytics'",
            semantic=SemanticOptions(configuration_name="my-semantic-config"),
        )
    )

    assert kwargs["search_text"] == "what is azure search?"
    assert kwargs["top"] == 3
    assert kwargs["filter"] == "category eq 'Analytics'"
    assert kwargs["query_type"] == QueryType.SEMANTIC
    assert kwargs["semantic_configuration_name"] == "my-semantic-config"
    assert kwargs["query_caption"] == QueryCaptionType.EXTRACTIVE
    assert kwargs["query_answer"] == QueryAnswerType.EXTRACTIVE
    assert "query_language" not in kwargs


# ---------------------------------------------------------------------
# Query execution
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_query_concatenates_pages_in_arrival_order():
    search_client = sdk_search_client(
        search_page([raw_hit("4", 0.91), raw_hit("5", 0.88)], count=3, next_skip=2),
        search_page([raw_hit("6", 0.85)]),
    )
    provider = make_provider(search_client=search_client)

    result = await provider.query(QueryRequest(vector=[0.1], k=3))

    assert [h.document["id"] for h in result.hits] == ["4", "5", "6"]
    assert [h.score for h in result.hits] == [0.91, 0.88, 0.85]
    assert result.count == 3
    assert result.answers == []
    assert "@search.score" not in result.hits[0].document


@pytest.mark.asyncio
async def test_each_page_is_requested_once():
    search_client = sdk_search_client(
        search_page([raw_hit("1", 0.9), raw_hit("2", 0.8)], count=3, next_skip=2),
        search_page([raw_hit("3", 0.7)]),
    )
    provider = make_provider(search_client=search_client)

    await provider.query(QueryRequest(search_text="q", vector=[0.1]))

    assert search_client._search_post.await_count == 2
    second_body = search_client._search_post.await_args_list[1].kwargs["body"]
    assert second_body.skip == 2


@pytest.mark.asyncio
async def test_semantic_query_reads_answers_and_count_from_the_same_response():
    search_client = sdk_search_client(
        search_page(
            [
                raw_hit(
                    "3",
                    0.03,
                    **{
                        "@search.rerankerScore": 2.7,
                        "@search.captions": [
                            {"text": "plain caption", "highlights": "<em>Azure</em> caption"}
                        ],
                    },
                )
            ],
            count=1,
            answers=[{"key": "3", "text": "Search as a service", "highlights": "", "score": 0.97}],
        )
    )
    provider = make_provider(search_client=search_client)

    result = await provider.query(
        QueryRequest(
            search_text="what is azure search?",
            vector=[0.1],
            semantic=SemanticOptions(configuration_name="cfg"),
        )
    )

    search_client._search_post.assert_awaited_once()
    assert result.count == 1
    assert result.hits[0].reranker_score == 2.7
    assert result.hits[0].caption == "<em>Azure</em> caption"
    assert result.answers[0].display_text == "Search as a service"
    assert result.answers[0].score == 0.97


@pytest.mark.asyncio
async def test_answers_and_count_come_from_first_page():
    search_client = sdk_search_client(
        search_page(
            [raw_hit("1", 0.9)],
            count=2,
            answers=[{"key": "1", "text": "first page answer", "score": 0.8}],
            next_skip=1,
        ),
        search_page([raw_hit("2", 0.5)], count=99, answers=[{"key": "2", "text": "ignored"}]),
    )
    provider = make_provider(search_client=search_client)

    result = await provider.query(
        QueryRequest(search_text="q", vector=[0.1], semantic=SemanticOptions(configuration_name="cfg"))
    )

    assert search_client._search_post.await_count == 2
    assert [h.document["id"] for h in result.hits] == ["1", "2"]
    assert result.count == 2
    assert [a.text for a in result.answers] == ["first page answer"]


@pytest.mark.asyncio
async def test_semantic_query_without_answers_is_valid():
    search_client = sdk_search_client(search_page([raw_hit("1", 0.5)], count=1))
    provider = make_provider(search_client=search_client)

    result = await provider.query(
        QueryRequest(search_text="q", vector=[0.1], semantic=SemanticOptions(configuration_name="cfg"))
    )

    assert result.answers == []
    assert len(result.hits) == 1


@pytest.mark.asyncio
async def test_no_matches_is_empty_result():
    search_client = sdk_search_client(search_page([], count=0))
    provider = make_provider(search_client=search_client)

    result = await provider.query(QueryRequest(vector=[0.1], filter="category eq 'None'"))

    search_client._search_post.assert_awaited_once()
    assert result.is_empty
    assert result.count == 0


@pytest.mark.asyncio
async def test_count_falls_back_to_hits_when_not_requested():
    search_client = sdk_search_client(search_page([raw_hit("1", 0.5), raw_hit("2", 0.4)]))
    provider = make_provider(search_client=search_client)

    result = await provider.query(QueryRequest(vector=[0.1], include_total_count=False))

    assert result.count == 2


@pytest.mark.asyncio
async def test_malformed_filter_raises_instead_of_empty_result():
    error = HttpResponseError(message="Invalid expression: syntax error in filter")
    error.status_code = 400
    search_client = sdk_search_client(error)
    provider = make_provider(search_client=search_client)

    with pytest.raises(SearchRequestError) as excinfo:
        await provider.query(QueryRequest(vector=[0.1], filter="category eq"))
    assert excinfo.value.status_code == 400


@pytest.mark.asyncio
async def test_transport_failure_maps_to_bad_gateway():
    search_client = sdk_search_client(ServiceRequestError("connection reset"))
    provider = make_provider(search_client=search_client)

    with pytest.raises(SearchRequestError) as excinfo:
        await provider.query(QueryRequest(vector=[0.1]))
    assert excinfo.value.status_code == 502


# ---------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------

def make_docs(n):
    return [Document(id=str(i), content="c", contentVector=[0.1, 0.2]) for i in range(n)]


@pytest.mark.asyncio
async def test_upload_single_batch():
    search_client = MagicMock()
    search_client.upload_documents = AsyncMock(
        return_value=[SimpleNamespace(key=str(i), succeeded=True, error_message=None) for i in range(3)]
    )
    provider = make_provider(search_client=search_client)

    count = await provider.upload_documents(make_docs(3))

    assert count == 3
    search_client.upload_documents.assert_awaited_once()
    sent = search_client.upload_documents.await_args.kwargs["documents"]
    assert [d["id"] for d in sent] == ["0", "1", "2"]


@pytest.mark.asyncio
async def test_partial_batch_failure_surfaces_whole_batch():
    search_client = MagicMock()
    search_client.upload_documents = AsyncMock(
        return_value=[
            SimpleNamespace(key="0", succeeded=True, error_message=None),
            SimpleNamespace(key="1", succeeded=False, error_message="vector dimension mismatch"),
        ]
    )
    provider = make_provider(search_client=search_client)

    with pytest.raises(IndexingError) as excinfo:
        await provider.upload_documents(make_docs(2))
    assert excinfo.value.failed_keys == ["1"]
    search_client.upload_documents.assert_awaited_once()


@pytest.mark.asyncio
async def test_close_releases_clients():
    search_client = MagicMock()
    search_client.close = AsyncMock()
    index_client = MagicMock()
    index_client.close = AsyncMock()
    provider = make_provider(search_client=search_client, index_client=index_client)

    await provider.close()

    search_client.close.assert_awaited_once()
    index_client.close.assert_awaited_once()
