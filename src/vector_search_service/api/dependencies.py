from functools import lru_cache

from ..embeddings.embedder import Embedder
from ..indexing import IndexManager
from ..search.azure import AzureSearchProvider
from ..search.dispatcher import QueryDispatcher
from ..search.provider import SearchProvider


@lru_cache
def get_embedder() -> Embedder:
    return Embedder()


@lru_cache
def get_search_provider() -> SearchProvider:
    return AzureSearchProvider()


def get_index_manager() -> IndexManager:
    return IndexManager(provider=get_search_provider(), embedder=get_embedder())


def get_dispatcher() -> QueryDispatcher:
    return QueryDispatcher(provider=get_search_provider(), embedder=get_embedder())
