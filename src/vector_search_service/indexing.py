"""
Index Manager

Declares the index schema and turns loosely typed source records into
service-ready documents:

- Create-or-update the index (idempotent by name)
- Attach freshly computed title and content vectors
- Validate vector dimensions against the schema
- Upload the batch in a single call

A rejected batch is surfaced whole; nothing is split or retried here.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .embeddings.embedder import Embedder
from .search.models import Document, IndexSchema, SourceDocument
from .search.provider import SearchProvider
from .search.schema import build_index_schema

logger = logging.getLogger("vss.indexing")

# Vectors on a source record are recomputed, never reused
_VECTOR_KEYS = {"contentVector", "titleVector", "content_vector", "title_vector"}


# ---------------------------------------------------------------------
# File Helpers
# ---------------------------------------------------------------------

def load_source_documents(path: Union[str, Path]) -> List[SourceDocument]:
    """
    Read a JSON array of source records.

    Raises ValueError if the file does not contain a JSON array.
    """
    with Path(path).open("r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of documents.")

    return [SourceDocument.model_validate(item) for item in data]


def dump_documents(documents: Iterable[Document], path: Union[str, Path]) -> int:
    """Write vectorized documents to a JSON file. Returns the number written."""
    payload = [doc.to_upload() for doc in documents]
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as f:
        json.dump(payload, f)
    return len(payload)


# ---------------------------------------------------------------------
# Index Manager
# ---------------------------------------------------------------------

class IndexManager:

    def __init__(
        self,
        provider: SearchProvider,
        embedder: Embedder,
        schema: Optional[IndexSchema] = None,
    ) -> None:
        self.provider = provider
        self.embedder = embedder
        self.schema = schema or build_index_schema()

    async def ensure_index(self, schema: Optional[IndexSchema] = None) -> IndexSchema:
        """
        Create the index, or overwrite its configuration if it exists.

        The applied schema becomes the one used for dimension checks.
        """
        if schema is not None:
            self.schema = schema
        await self.provider.create_or_update_index(self.schema)
        return self.schema

    async def prepare_documents(
        self,
        sources: Iterable[Union[SourceDocument, Dict[str, Any]]],
    ) -> List[Document]:
        """
        Attach title and content vectors to each source record.

        Parameters
        ----------
        sources : Iterable[SourceDocument | dict]
            Records with at least an ``id``; dicts are validated first.

        Returns
        -------
        List[Document]
            Documents in input order.

        Raises
        ------
        ValueError
            Before any embedding call, if a record has no content.
        """
        records = [
            s if isinstance(s, SourceDocument) else SourceDocument.model_validate(s)
            for s in sources
        ]
        if not records:
            return []

        empty = [r.id for r in records if not r.content.strip()]
        if empty:
            raise ValueError(f"Documents without content cannot be vectorized: {', '.join(empty)}")

        contents = await self.embedder.embed([r.content for r in records])

        # Titles are optional; blank ones get no titleVector
        titles: List[Optional[List[float]]] = [None] * len(records)
        titled = [i for i, r in enumerate(records) if r.title.strip()]
        if titled:
            vectors = await self.embedder.embed([records[i].title for i in titled])
            for i, vector in zip(titled, vectors):
                titles[i] = vector

        documents = []
        for record, title_vector, content_vector in zip(records, titles, contents):
            data = {k: v for k, v in record.model_dump().items() if k not in _VECTOR_KEYS}
            data["contentVector"] = content_vector
            data["titleVector"] = title_vector
            documents.append(Document.model_validate(data))

        logger.info("Vectorized %d documents", len(documents))
        return documents

    async def upload(self, documents: List[Document]) -> int:
        """
        Upload documents in one batch after checking vector dimensions.

        Raises
        ------
        DimensionMismatchError
            Before any network call, if a vector does not match the schema.
        IndexingError
            If the service does not accept the whole batch.
        """
        dimensions = self.schema.vector_dimensions()
        for doc in documents:
            doc.check_dimensions(dimensions)

        return await self.provider.upload_documents(documents)

    async def index_sources(
        self,
        sources: Iterable[Union[SourceDocument, Dict[str, Any]]],
    ) -> List[Document]:
        """Vectorize and upload source records; returns the uploaded documents."""
        documents = await self.prepare_documents(sources)
        await self.upload(documents)
        return documents
