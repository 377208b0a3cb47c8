from __future__ import annotations

"""Signal-blending reranker applied to retrieval results."""

import logging
from dataclasses import dataclass
from typing import Sequence

from legal_rag.rag.deadline import Deadline
from legal_rag.rag.entities import fold_case
from legal_rag.rag.types import QueryAnalysis, RetrievalResult

logger = logging.getLogger(__name__)

# Intent -> chunk type that earns the boost.
INTENT_CHUNK_TYPES: dict[str, str] = {
    "find_law": "article",
    "find_case": "citation",
}


@dataclass(frozen=True)
class Reranker:
    entity_weight: float = 0.1
    keyword_weight: float = 0.2
    importance_weight: float = 0.1
    intent_boost: float = 0.15
    max_score: float = 1.0

    def rescore(self, result: RetrievalResult, analysis: QueryAnalysis) -> float:
        metadata = result.chunk.metadata
        query_values = [fold_case(entity.value) for entity in analysis.entities if entity.value]
        entity_overlap = sum(
            1
            for chunk_entity in metadata.entities
            if any(value in fold_case(chunk_entity) for value in query_values)
        )
        folded = fold_case(result.chunk.content)
        keywords = analysis.keywords
        keyword_hits = sum(1 for keyword in keywords if keyword and keyword in folded)
        keyword_ratio = keyword_hits / max(1, len(keywords))
        boost = (
            self.intent_boost
            if INTENT_CHUNK_TYPES.get(analysis.intent) == metadata.type
            else 0.0
        )
        score = (
            result.score
            + self.entity_weight * entity_overlap
            + self.keyword_weight * keyword_ratio
            + self.importance_weight * metadata.importance
            + boost
        )
        return min(self.max_score, score)

    def rerank(
        self,
        results: Sequence[RetrievalResult],
        analysis: QueryAnalysis,
        deadline: Deadline | None = None,
    ) -> list[RetrievalResult]:
        """Rescore and reorder results; equal scores keep their prior order."""
        deadline = deadline or Deadline.unbounded()
        rescored: list[RetrievalResult] = []
        for result in results:
            deadline.check("rerank")
            rescored.append(result.with_score(self.rescore(result, analysis)))
        ranked = sorted(rescored, key=lambda result: result.score, reverse=True)
        logger.info("rerank_complete", extra={"results": len(ranked), "intent": analysis.intent})
        return ranked
