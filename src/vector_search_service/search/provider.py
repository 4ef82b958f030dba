"""
Search Provider Interface

Every hosted search backend is reached through this interface. Ranking,
reranking, captions and answers are computed by the provider; callers
only build requests and consume normalized results.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from .models import Document, IndexSchema, QueryRequest, QueryResult


class SearchProvider(ABC):

    @abstractmethod
    async def create_or_update_index(self, schema: IndexSchema) -> None:
        """Declare the index; reapplying the same name overwrites it."""

    @abstractmethod
    async def upload_documents(self, documents: List[Document]) -> int:
        """
        Upload documents in a single batch.

        Returns the number of documents accepted. Raises IndexingError if
        the batch is not fully accepted.
        """

    @abstractmethod
    async def query(self, request: QueryRequest) -> QueryResult:
        """
        Run one query and collect every result page.

        Zero matches is an empty QueryResult; a failed call raises
        SearchRequestError.
        """

    async def close(self) -> None:
        """Release any network clients held by the provider."""
