from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class IngestDocument(BaseModel):
    document_id: str = Field(min_length=1)
    title: str = ""
    content: str


class IngestRequest(BaseModel):
    documents: list[IngestDocument] = Field(min_length=1)


class IngestResponse(BaseModel):
    ingested: int
    chunks: dict[str, int]


class DeleteResponse(BaseModel):
    document_id: str
    deleted_chunks: int


class AnalyzeRequest(BaseModel):
    query: str


class EntityModel(BaseModel):
    type: str
    value: str
    normalized: str | None = None


class YearRangeModel(BaseModel):
    start: int | None = None
    end: int | None = None


class FiltersModel(BaseModel):
    courts: list[str] = Field(default_factory=list)
    law_numbers: list[str] = Field(default_factory=list)
    year_range: YearRangeModel | None = None
    law_areas: list[str] = Field(default_factory=list)


class AnalysisResponse(BaseModel):
    original_query: str
    intent: str
    entities: list[EntityModel]
    expanded_queries: list[str]
    keywords: list[str]
    filters: FiltersModel


class QueryRequest(BaseModel):
    query: str
    max_tokens: int | None = Field(default=None, ge=0)
    limit: int | None = Field(default=None, ge=1, le=100)


class SourceChunk(BaseModel):
    chunk_id: str
    document_id: str
    document_title: str
    section: str
    type: str
    content: str
    score: float
    match_type: str
    highlights: list[str] = Field(default_factory=list)


class CitationModel(BaseModel):
    label: str
    document_id: str
    document_title: str
    section: str
    chunk_id: str


class QueryResponse(BaseModel):
    status: Literal["ok", "no_match", "empty_query", "timed_out"]
    context: str
    sources: list[SourceChunk]
    citations: list[CitationModel]
    analysis: AnalysisResponse
    timed_out_stage: str | None = None
    request_id: str


class StatsResponse(BaseModel):
    backend: str
    document_count: int
    chunk_count: int
