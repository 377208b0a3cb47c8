from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from legal_rag.rag.types import RetrievalResult


@dataclass(frozen=True)
class GuardrailResult:
    allowed: bool
    reason: str


def require_query(query: str) -> GuardrailResult:
    if not query or not query.strip():
        return GuardrailResult(allowed=False, reason="empty_query")
    return GuardrailResult(allowed=True, reason="ok")


def require_results(results: Sequence[RetrievalResult]) -> GuardrailResult:
    if not results:
        return GuardrailResult(allowed=False, reason="no_match")
    if all(not result.chunk.content.strip() for result in results):
        return GuardrailResult(allowed=False, reason="no_match")
    return GuardrailResult(allowed=True, reason="ok")
