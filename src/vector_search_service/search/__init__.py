"""
Search Package

Provider-independent search models, the SearchProvider interface, the
Azure AI Search adapter and the query dispatcher.
"""

from .models import (
    Answer,
    Caption,
    Document,
    IndexSchema,
    QueryMode,
    QueryRequest,
    QueryResult,
    SearchHit,
    SourceDocument,
)
from .provider import SearchProvider
from .dispatcher import QueryDispatcher, equals_filter, format_result

__all__ = [
    "Answer",
    "Caption",
    "Document",
    "IndexSchema",
    "QueryMode",
    "QueryRequest",
    "QueryResult",
    "SearchHit",
    "SourceDocument",
    "SearchProvider",
    "QueryDispatcher",
    "equals_filter",
    "format_result",
]
