from __future__ import annotations

"""Structure-aware chunking of legal documents into bounded, typed spans."""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Sequence

from legal_rag.rag.entities import CASE_PATTERN, LEGAL_TERMS, count_terms, extract_entity_values
from legal_rag.rag.types import Chunk, ChunkMetadata, ChunkType, SourceDocument

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

BLANK_LINE_PATTERN = re.compile(r"\n[ \t]{0,20}\n")
SENTENCE_END_PATTERN = re.compile(r"[.!?]\s{1,8}(?=[A-ZÇĞİÖŞÜ])")
ARTICLE_START_PATTERN = re.compile(r"(?=\b(?:Geçici\s{1,3}|GEÇİCİ\s{1,3})?(?:Madde|MADDE)\s{1,3}\d{1,4})")
LEGAL_STRUCTURE_PATTERN = re.compile(
    r"(?=^[ \t]{0,3}\(\d{1,2}\))|(?=\b(?:fıkra|bent|paragraf))",
    re.MULTILINE | re.IGNORECASE,
)

DEFAULT_BOUNDARY_PATTERNS: tuple[re.Pattern[str], ...] = (
    BLANK_LINE_PATTERN,
    SENTENCE_END_PATTERN,
    ARTICLE_START_PATTERN,
    LEGAL_STRUCTURE_PATTERN,
)

_ARTICLE_LINE_RE = re.compile(
    r"^[ \t]{0,3}((?:Geçici|GEÇİCİ)\s{1,3})?(?:Madde|MADDE)\s{1,3}(\d{1,4})",
    re.MULTILINE,
)
_LIST_LINE_RE = re.compile(r"^[ \t]{0,3}(?:[-*•]|\d{1,3}[.)]|[a-zçğıöşü]\))[ \t]", re.MULTILINE)
_TABLE_ROW_RE = re.compile(r"^[ \t]{0,3}\|[^\n]{0,2000}\|", re.MULTILINE)
_HEADING_RE = re.compile(r"^(?:#{1,6}[ \t]|\*\*)")
_CAPS_WORD_RE = re.compile(r"^[A-ZÇĞİÖŞÜ]{3,}(?![^\W\d_])")

TYPE_BONUS: dict[str, float] = {
    "article": 0.3,
    "citation": 0.2,
    "header": 0.1,
    "table": 0.1,
    "list": 0.05,
    "paragraph": 0.0,
}


class ChunkingConfigError(RuntimeError):
    """Raised when chunker size settings are inconsistent."""


def classify_chunk(content: str) -> ChunkType:
    """Assign a structural type; the first matching rule wins."""
    if _ARTICLE_LINE_RE.search(content):
        return "article"
    if _LIST_LINE_RE.search(content):
        return "list"
    if _TABLE_ROW_RE.search(content):
        return "table"
    if CASE_PATTERN.search(content):
        return "citation"
    if _HEADING_RE.match(content) or _CAPS_WORD_RE.match(content):
        return "header"
    return "paragraph"


def section_label(content: str) -> str:
    """Return the article label or heading text a chunk carries, if any."""
    article = _ARTICLE_LINE_RE.search(content)
    if article:
        prefix = "Geçici " if article.group(1) else ""
        return f"{prefix}Madde {article.group(2)}"
    first_line = content.split("\n", 1)[0].strip()
    if _HEADING_RE.match(first_line) or _CAPS_WORD_RE.match(first_line):
        heading = first_line.lstrip("#").strip().strip("*").strip()
        return _WHITESPACE_RE.sub(" ", heading)[:120]
    return ""


def score_importance(
    chunk_type: ChunkType,
    entity_count: int,
    legal_term_count: int,
) -> float:
    score = 0.5 + TYPE_BONUS.get(chunk_type, 0.0)
    score += min(0.2, 0.05 * entity_count)
    score += min(0.1, 0.02 * legal_term_count)
    return max(0.0, min(1.0, score))


class LegalChunker:
    """Split long legal text at natural boundaries within size bounds.

    Each window spans at most ``max_chunk_size`` characters. The break point
    is the furthest boundary match past ``min_chunk_size``; without one the
    window is hard-cut. Consecutive windows share at most ``overlap_size``
    characters.
    """

    def __init__(
        self,
        min_chunk_size: int = 100,
        max_chunk_size: int = 1500,
        overlap_size: int = 100,
        boundary_patterns: Sequence[re.Pattern[str]] = DEFAULT_BOUNDARY_PATTERNS,
        legal_terms: Iterable[str] = LEGAL_TERMS,
    ) -> None:
        if max_chunk_size <= 0:
            raise ChunkingConfigError("max_chunk_size must be positive")
        if min_chunk_size < 0:
            raise ChunkingConfigError("min_chunk_size must not be negative")
        if min_chunk_size > max_chunk_size:
            raise ChunkingConfigError("min_chunk_size must not exceed max_chunk_size")
        if overlap_size < 0:
            raise ChunkingConfigError("overlap_size must not be negative")
        if overlap_size >= max_chunk_size:
            raise ChunkingConfigError("overlap_size must be smaller than max_chunk_size")
        if not boundary_patterns:
            raise ChunkingConfigError("at least one boundary pattern is required")
        self.min_chunk_size = min_chunk_size
        self.max_chunk_size = max_chunk_size
        self.overlap_size = overlap_size
        self.boundary_patterns = tuple(boundary_patterns)
        self.legal_terms = tuple(legal_terms)

    def find_break(self, text: str, cursor: int) -> int:
        """Pick the furthest boundary inside the open window past the minimum."""
        lo = cursor + self.min_chunk_size
        hi = min(len(text), cursor + self.max_chunk_size)
        best: int | None = None
        for pattern in self.boundary_patterns:
            for match in pattern.finditer(text, lo, hi):
                candidate = match.end()
                if lo < candidate < hi and (best is None or candidate > best):
                    best = candidate
        return best if best is not None else hi

    def spans(self, text: str) -> list[tuple[int, int]]:
        """Return the ``(start, end)`` offsets of every emitted chunk.

        Consecutive spans never leave a gap. A window whose stripped text is
        shorter than ``min_chunk_size`` is widened to the hard cut instead of
        being dropped; only whitespace-only windows are skipped, and the next
        span starts where the previous one ended so the skipped run stays
        covered.
        """
        if not text or not text.strip():
            return []
        length = len(text)
        spans: list[tuple[int, int]] = []
        cursor = 0
        while True:
            start = min(cursor, spans[-1][1] if spans else 0)
            if cursor + self.max_chunk_size >= length:
                if spans and not text[spans[-1][1]:length].strip():
                    spans[-1] = (spans[-1][0], length)
                else:
                    spans.append((start, length))
                break
            end = self.find_break(text, cursor)
            window = text[cursor:end].strip()
            if not window:
                cursor = end
                continue
            if len(window) < self.min_chunk_size:
                end = cursor + self.max_chunk_size
            spans.append((start, end))
            cursor = max(cursor + 1, end - self.overlap_size)
        return spans

    def chunk(self, text: str, document_id: str, document_title: str = "") -> list[Chunk]:
        """Split a document into chunks with backfilled ``total_chunks``."""
        chunks: list[Chunk] = []
        for start, end in self.spans(text):
            content = text[start:end].strip()
            if not content:
                continue
            index = len(chunks)
            chunk_type = classify_chunk(content)
            entities = tuple(extract_entity_values(content))
            importance = score_importance(
                chunk_type,
                len(entities),
                count_terms(content, self.legal_terms),
            )
            metadata = ChunkMetadata(
                document_id=document_id,
                document_title=document_title,
                chunk_index=index,
                total_chunks=0,
                type=chunk_type,
                char_start=start,
                char_end=end,
                section=section_label(content),
                entities=entities,
                importance=importance,
            )
            chunks.append(Chunk(id=f"{document_id}_chunk_{index}", content=content, metadata=metadata))
        total = len(chunks)
        chunks = [chunk.with_total(total) for chunk in chunks]
        logger.info(
            "chunking_complete",
            extra={"document_id": document_id, "chunks": total, "chars": len(text)},
        )
        return chunks

    def chunk_document(self, document: SourceDocument) -> list[Chunk]:
        return self.chunk(document.content, document.document_id, document.title)


def chunk_documents(
    documents: Sequence[SourceDocument],
    chunker: LegalChunker,
    max_workers: int = 4,
) -> list[list[Chunk]]:
    """Chunk independent documents concurrently, preserving input order."""
    if not documents:
        return []
    if max_workers <= 1 or len(documents) == 1:
        return [chunker.chunk_document(document) for document in documents]
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(chunker.chunk_document, documents))
