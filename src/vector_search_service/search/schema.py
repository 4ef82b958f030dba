"""
Default index schema for the document set handled by this service.
"""

from __future__ import annotations

from typing import Optional

from ..config import settings
from .models import FieldSpec, IndexSchema, SemanticConfig, VectorConfig


def build_index_schema(
    name: Optional[str] = None,
    dimensions: Optional[int] = None,
) -> IndexSchema:
    """
    Build the schema for {id, title, content, category, titleVector, contentVector}.

    ``category`` is filterable and facetable so it can be used in filter
    expressions; both vector fields share the configured HNSW profile.
    """
    return IndexSchema(
        name=name or settings.azure_search_index_name,
        fields=[
            FieldSpec(name="id", key=True, filterable=True, sortable=True, facetable=True),
            FieldSpec(name="title", searchable=True),
            FieldSpec(name="content", searchable=True),
            FieldSpec(name="category", searchable=True, filterable=True, facetable=True),
            FieldSpec(name="titleVector", type="vector"),
            FieldSpec(name="contentVector", type="vector"),
        ],
        vector=VectorConfig(
            algorithm_name=settings.vector_algorithm_name,
            profile_name=settings.vector_profile_name,
            dimensions=dimensions or settings.embedding_dimensions,
        ),
        semantic=SemanticConfig(
            name=settings.semantic_config_name,
            title_field="title",
            content_fields=["content"],
            keyword_fields=["category"],
        ),
    )
