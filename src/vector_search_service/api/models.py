"""
API Models

This module defines the Pydantic models used for request/response
validation on the index and search endpoints.

Design Goals
------------
- Strong typing
- Safe defaults (no shared mutable state)
- Explicit output contracts: an empty hit list is a successful response
"""

from __future__ import annotations

from typing import List, Optional, Literal
from pydantic import BaseModel, Field, ConfigDict

from ..search.models import Answer, QueryMode, QueryResult


# ---------------------------------------------------------------------
# Index Models
# ---------------------------------------------------------------------

class OperationResult(BaseModel):
    """
    Standardized mutation operation result.
    """
    status: Literal["created", "uploaded"]
    count: Optional[int] = Field(default=None, ge=0)
    index: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Search Models
# ---------------------------------------------------------------------

class SearchRequest(BaseModel):
    """
    Query payload shared by every search mode.

    ``filter`` is required by the filtered mode and optional for hybrid
    and semantic; ``top`` and ``language`` are ignored by vector-only modes.
    """
    query: str = Field(..., min_length=1)
    k: Optional[int] = Field(default=None, ge=1, le=1000)
    top: Optional[int] = Field(default=None, ge=1, le=1000)
    filter: Optional[str] = None
    select: Optional[List[str]] = None
    language: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class SearchHitOut(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    score: float
    reranker_score: Optional[float] = None
    caption: Optional[str] = None


class AnswerOut(BaseModel):
    key: Optional[str] = None
    text: Optional[str] = None
    score: Optional[float] = None

    @classmethod
    def from_answer(cls, answer: Answer) -> "AnswerOut":
        return cls(key=answer.key, text=answer.display_text, score=answer.score)


class SearchResponse(BaseModel):
    mode: QueryMode
    hits: List[SearchHitOut] = Field(default_factory=list)
    answers: List[AnswerOut] = Field(default_factory=list)
    count: int = Field(default=0, ge=0)

    @classmethod
    def from_result(cls, mode: QueryMode, result: QueryResult) -> "SearchResponse":
        hits = []
        for hit in result.hits:
            doc = hit.document
            hits.append(
                SearchHitOut(
                    id=doc.get("id"),
                    title=doc.get("title"),
                    content=doc.get("content"),
                    category=doc.get("category"),
                    score=hit.score,
                    reranker_score=hit.reranker_score,
                    caption=hit.caption,
                )
            )
        return cls(
            mode=mode,
            hits=hits,
            answers=[AnswerOut.from_answer(a) for a in result.answers],
            count=result.count,
        )
