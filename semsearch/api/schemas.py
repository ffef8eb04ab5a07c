"""
Request and response models for the search API.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional


class QueryRequest(BaseModel):
    text: str


class QueryAccepted(BaseModel):
    accepted: bool
    debounce_ms: int


class SearchRequest(BaseModel):
    text: str
    k: Optional[int] = Field(default=None, ge=1, le=100)


class SearchResultItem(BaseModel):
    id: int
    content: str
    distance: float


class SearchResponse(BaseModel):
    query: str
    results: List[SearchResultItem]
    embedder_ready: bool
    index_ready: bool


class ResultsResponse(BaseModel):
    generation: int
    results: List[SearchResultItem]


class CorpusRequest(BaseModel):
    documents: List[str]

    @field_validator('documents')
    @classmethod
    def documents_must_not_be_blank(cls, v):
        if any(not doc.strip() for doc in v):
            raise ValueError('documents cannot be blank')
        return v


class CorpusResponse(BaseModel):
    success: bool
    ids: List[int]
    document_count: int


class HealthResponse(BaseModel):
    status: str
    version: str
    embedder_ready: bool
    index_ready: bool
    document_count: int
    error: Optional[str] = None
