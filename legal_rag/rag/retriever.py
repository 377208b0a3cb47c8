from __future__ import annotations

"""Lexical retrieval over the chunk corpus."""

import heapq
import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from legal_rag.rag.deadline import Deadline
from legal_rag.rag.entities import fold_case
from legal_rag.rag.highlights import build_highlights
from legal_rag.rag.types import Chunk, QueryAnalysis, RetrievalResult

logger = logging.getLogger(__name__)


class RetrievalConfigError(RuntimeError):
    """Raised when retriever weights or limits are invalid."""


@dataclass(frozen=True)
class KeywordRetriever:
    """Score chunks by keyword frequency and query entity presence."""

    keyword_weight: float = 0.1
    entity_weight: float = 0.3
    highlight_window: int = 50
    max_highlights: int = 3
    check_every: int = 256

    def __post_init__(self) -> None:
        if self.keyword_weight < 0 or self.entity_weight < 0:
            raise RetrievalConfigError("retrieval weights must not be negative")
        if self.highlight_window < 0 or self.max_highlights < 0:
            raise RetrievalConfigError("highlight settings must not be negative")
        if self.check_every < 1:
            raise RetrievalConfigError("check_every must be at least 1")

    def score(self, chunk: Chunk, keywords: Sequence[str], entity_values: Sequence[str]) -> float:
        folded = fold_case(chunk.content)
        keyword_hits = sum(folded.count(keyword) for keyword in keywords if keyword)
        entity_hits = sum(1 for value in entity_values if value and value in folded)
        return self.keyword_weight * keyword_hits + self.entity_weight * entity_hits

    def retrieve(
        self,
        corpus: Iterable[Chunk],
        analysis: QueryAnalysis,
        limit: int = 10,
        deadline: Deadline | None = None,
    ) -> list[RetrievalResult]:
        """Return up to ``limit`` chunks with positive score, best first.

        Ties keep corpus order.
        """
        if limit <= 0:
            return []
        deadline = deadline or Deadline.unbounded()
        keywords = analysis.keywords
        entity_values = _unique_folded(entity.value for entity in analysis.entities)
        scored: list[RetrievalResult] = []
        scanned = 0
        for scanned, chunk in enumerate(corpus, start=1):
            if scanned % self.check_every == 0:
                deadline.check("retrieve")
            score = self.score(chunk, keywords, entity_values)
            if score <= 0:
                continue
            highlights = build_highlights(
                chunk.content,
                keywords,
                max_snippets=self.max_highlights,
                window=self.highlight_window,
            )
            scored.append(
                RetrievalResult(
                    chunk=chunk,
                    score=score,
                    match_type="keyword",
                    highlights=tuple(highlights),
                )
            )
        results = sorted(scored, key=lambda result: result.score, reverse=True)[:limit]
        logger.info(
            "retrieval_complete",
            extra={"scanned": scanned, "matched": len(scored), "returned": len(results)},
        )
        return results


def merge_shard_results(
    shards: Sequence[Sequence[RetrievalResult]], limit: int
) -> list[RetrievalResult]:
    """Merge per-shard rankings; ties favour the earlier shard."""
    if limit <= 0:
        return []
    keyed = (
        [(-result.score, shard_index, position, result) for position, result in enumerate(shard)]
        for shard_index, shard in enumerate(shards)
    )
    merged = heapq.merge(*keyed, key=lambda item: item[:3])
    return [item[3] for _, item in zip(range(limit), merged)]


def _unique_folded(values: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        folded = fold_case(value)
        if folded and folded not in seen:
            seen.append(folded)
    return seen
