from __future__ import annotations

"""Core data types for chunks, query analysis, and retrieval."""

from dataclasses import dataclass, field, replace
from typing import Literal

ChunkType = Literal["header", "paragraph", "list", "table", "citation", "article"]
EntityType = Literal["law", "article", "case", "court", "amount", "date", "concept"]
QueryIntent = Literal[
    "find_law",
    "find_case",
    "explain_concept",
    "compare",
    "procedure",
    "general",
]
MatchType = Literal["semantic", "keyword", "hybrid"]


@dataclass(frozen=True)
class SourceDocument:
    """Raw document text handed to the chunker."""
    document_id: str
    title: str
    content: str


@dataclass(frozen=True)
class ChunkMetadata:
    """Position, shape, and prior relevance of a chunk."""
    document_id: str
    document_title: str
    chunk_index: int
    total_chunks: int
    type: ChunkType
    char_start: int
    char_end: int
    section: str = ""
    entities: tuple[str, ...] = ()
    importance: float = 0.5


@dataclass(frozen=True)
class Chunk:
    """Bounded span of a single source document."""
    id: str
    content: str
    metadata: ChunkMetadata

    def with_total(self, total_chunks: int) -> Chunk:
        """Return a copy with the document's final chunk count."""
        return replace(self, metadata=replace(self.metadata, total_chunks=total_chunks))


@dataclass(frozen=True)
class ExtractedEntity:
    """Typed, pattern-recognized substring."""
    type: EntityType
    value: str
    normalized: str | None = None


@dataclass(frozen=True)
class YearRange:
    start: int | None = None
    end: int | None = None


@dataclass(frozen=True)
class QueryFilters:
    """Optional narrowing constraints derived from query entities."""
    courts: tuple[str, ...] = ()
    law_numbers: tuple[str, ...] = ()
    year_range: YearRange | None = None
    law_areas: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not (self.courts or self.law_numbers or self.year_range or self.law_areas)


@dataclass(frozen=True)
class QueryAnalysis:
    """Structured view of a single user query."""
    original_query: str
    intent: QueryIntent
    entities: tuple[ExtractedEntity, ...] = ()
    expanded_queries: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    filters: QueryFilters = field(default_factory=QueryFilters)


@dataclass(frozen=True)
class RetrievalResult:
    """Chunk paired with a query-dependent score."""
    chunk: Chunk
    score: float
    match_type: MatchType = "keyword"
    highlights: tuple[str, ...] = ()

    def with_score(self, score: float) -> RetrievalResult:
        return replace(self, score=score)
