"""
Search Data Models

This module defines the canonical data model shared by the index manager,
the query dispatcher and every SearchProvider implementation:

- Documents as they are written to the index
- The index schema (fields, vector configuration, semantic configuration)
- Query requests and normalized query results
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.errors import DimensionMismatchError


# ---------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------

class SourceDocument(BaseModel):
    """
    Loosely typed input record, before any vector is attached.

    Unknown keys are preserved and uploaded alongside the known fields.
    """
    id: str = Field(..., min_length=1)
    title: str = ""
    content: str = ""
    category: Optional[str] = None

    model_config = ConfigDict(extra="allow")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # The index key is a string field; numeric ids are common in source data.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class Document(SourceDocument):
    """
    A service-ready document carrying precomputed vectors.
    """
    content_vector: List[float] = Field(..., alias="contentVector")
    title_vector: Optional[List[float]] = Field(default=None, alias="titleVector")

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def vectors(self) -> Dict[str, List[float]]:
        """Return vector fields keyed by their index field name."""
        out = {"contentVector": self.content_vector}
        if self.title_vector is not None:
            out["titleVector"] = self.title_vector
        return out

    def check_dimensions(self, dimensions: Dict[str, int]) -> None:
        """
        Raise DimensionMismatchError unless every vector matches its field.

        Parameters
        ----------
        dimensions : Dict[str, int]
            Vector field name -> declared dimension.
        """
        for field, vector in self.vectors().items():
            expected = dimensions.get(field)
            if expected is not None and len(vector) != expected:
                raise DimensionMismatchError(self.id, field, expected, len(vector))

    def to_upload(self) -> Dict[str, Any]:
        """Serialize using index field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------
# Index Schema
# ---------------------------------------------------------------------

FieldType = Literal["string", "int32", "int64", "double", "boolean", "datetime", "vector"]


class FieldSpec(BaseModel):
    name: str = Field(..., min_length=1)
    type: FieldType = "string"
    key: bool = False
    searchable: bool = False
    filterable: bool = False
    sortable: bool = False
    facetable: bool = False
    retrievable: bool = True
    # Vector fields only; None means "use the schema's vector dimension"
    dimensions: Optional[int] = Field(default=None, gt=0)

    model_config = ConfigDict(extra="forbid")


class VectorConfig(BaseModel):
    algorithm_name: str
    profile_name: str
    kind: Literal["hnsw", "exhaustiveKnn"] = "hnsw"
    metric: Literal["cosine", "euclidean", "dotProduct"] = "cosine"
    dimensions: int = Field(..., gt=0)

    model_config = ConfigDict(extra="forbid")


class SemanticConfig(BaseModel):
    name: str
    title_field: Optional[str] = None
    content_fields: List[str] = Field(default_factory=list)
    keyword_fields: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class IndexSchema(BaseModel):
    """
    Declarative index definition.

    Created or updated once before any document write and left untouched
    while queries run.
    """
    name: str = Field(..., min_length=1)
    fields: List[FieldSpec] = Field(..., min_length=1)
    vector: VectorConfig
    semantic: Optional[SemanticConfig] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_fields(self) -> "IndexSchema":
        names = [f.name for f in self.fields]
        if len(set(names)) != len(names):
            raise ValueError("Field names must be unique.")
        if sum(1 for f in self.fields if f.key) != 1:
            raise ValueError("Exactly one key field is required.")
        if self.semantic is not None:
            referenced = list(self.semantic.content_fields) + list(self.semantic.keyword_fields)
            if self.semantic.title_field:
                referenced.append(self.semantic.title_field)
            missing = sorted(set(referenced) - set(names))
            if missing:
                raise ValueError(f"Semantic configuration references unknown fields: {missing}")
        return self

    @property
    def key_field(self) -> str:
        return next(f.name for f in self.fields if f.key)

    def vector_dimensions(self) -> Dict[str, int]:
        """Vector field name -> dimension."""
        return {
            f.name: f.dimensions or self.vector.dimensions
            for f in self.fields
            if f.type == "vector"
        }


# ---------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------

class QueryMode(str, Enum):
    VECTOR = "vector"
    MULTI_VECTOR = "multi_vector"
    FILTERED = "filtered"
    HYBRID = "hybrid"
    SEMANTIC = "semantic"


class SemanticOptions(BaseModel):
    configuration_name: str
    language: Optional[str] = None
    captions: bool = True
    answers: bool = True
    answer_count: Optional[int] = Field(default=None, ge=1)
    highlight: bool = True

    model_config = ConfigDict(extra="forbid")


class QueryRequest(BaseModel):
    """
    Provider-independent search request.

    ``search_text`` is absent for pure vector search; ``vector`` is absent
    for keyword-only search. At least one of them must be set.
    """
    search_text: Optional[str] = None
    vector: Optional[List[float]] = None
    k: int = Field(default=3, ge=1)
    vector_fields: List[str] = Field(default_factory=lambda: ["contentVector"], min_length=1)
    top: Optional[int] = Field(default=None, ge=1)
    filter: Optional[str] = None
    select: Optional[List[str]] = None
    semantic: Optional[SemanticOptions] = None
    include_total_count: bool = True

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_inputs(self) -> "QueryRequest":
        if self.search_text is None and self.vector is None:
            raise ValueError("A query needs search_text, a vector, or both.")
        if self.semantic is not None and not self.search_text:
            raise ValueError("Semantic ranking requires search_text.")
        return self


class Caption(BaseModel):
    text: Optional[str] = None
    highlights: Optional[str] = None

    @property
    def display_text(self) -> Optional[str]:
        """Highlighted snippet when present and non-empty, else plain text."""
        if self.highlights:
            return self.highlights
        return self.text


class Answer(BaseModel):
    key: Optional[str] = None
    text: Optional[str] = None
    highlights: Optional[str] = None
    score: Optional[float] = None

    @property
    def display_text(self) -> Optional[str]:
        if self.highlights:
            return self.highlights
        return self.text


class SearchHit(BaseModel):
    document: Dict[str, Any] = Field(default_factory=dict)
    score: float
    reranker_score: Optional[float] = None
    captions: List[Caption] = Field(default_factory=list)

    @property
    def caption(self) -> Optional[str]:
        for caption in self.captions:
            text = caption.display_text
            if text:
                return text
        return None


class QueryResult(BaseModel):
    """
    Normalized response of one query.

    Hits keep the order in which the service returned them. ``answers`` is
    independent of ``hits`` and may be empty on success. A failed request
    never produces a QueryResult; it raises instead.
    """
    mode: Optional[QueryMode] = None
    hits: List[SearchHit] = Field(default_factory=list)
    answers: List[Answer] = Field(default_factory=list)
    count: int = Field(default=0, ge=0)

    @property
    def is_empty(self) -> bool:
        return not self.hits
