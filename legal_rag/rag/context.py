from __future__ import annotations

"""Token-bounded context assembly for downstream generation."""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from legal_rag.rag.types import RetrievalResult

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = "\n\n---\n\n"


class ContextConfigError(RuntimeError):
    """Raised when the token estimate settings are invalid."""


class TokenEstimator(Protocol):
    def estimate(self, text: str) -> int:
        """Return the token cost of text."""
        ...


@dataclass(frozen=True)
class CharRatioEstimator:
    """Approximate tokens as a fixed fraction of characters."""
    tokens_per_char: float = 0.25

    def __post_init__(self) -> None:
        if self.tokens_per_char <= 0:
            raise ContextConfigError("tokens_per_char must be positive")

    def estimate(self, text: str) -> int:
        return math.ceil(len(text) * self.tokens_per_char)


@dataclass
class TiktokenEstimator:
    """Count BPE tokens with a tiktoken encoding."""
    encoding_name: str = "cl100k_base"
    _encoding: Any = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        import tiktoken

        try:
            self._encoding = tiktoken.get_encoding(self.encoding_name)
        except ValueError as exc:
            raise ContextConfigError(f"unknown tiktoken encoding: {self.encoding_name}") from exc

    def estimate(self, text: str) -> int:
        return len(self._encoding.encode(text))


def format_header(result: RetrievalResult) -> str:
    metadata = result.chunk.metadata
    title = metadata.document_title or metadata.document_id
    if metadata.section:
        return f"[{title} - {metadata.section}]"
    return f"[{title}]"


class ContextAssembler:
    """Pack ranked results into a context string under a token budget.

    Packing stops at the first result that does not fit; later, smaller
    results are not pulled forward.
    """

    def __init__(
        self,
        tokens_per_char: float = 0.25,
        separator: str = DEFAULT_SEPARATOR,
        estimator: TokenEstimator | None = None,
    ) -> None:
        if tokens_per_char <= 0:
            raise ContextConfigError("tokens_per_char must be positive")
        self.tokens_per_char = tokens_per_char
        self.separator = separator
        self.estimator = estimator or CharRatioEstimator(tokens_per_char)

    def select(self, results: Sequence[RetrievalResult], max_tokens: int) -> list[RetrievalResult]:
        """Return the ranked prefix of results that fits the budget."""
        if max_tokens <= 0:
            return []
        selected: list[RetrievalResult] = []
        used = 0
        for result in results:
            cost = self.estimator.estimate(result.chunk.content)
            if used + cost > max_tokens:
                break
            used += cost
            selected.append(result)
        return selected

    def assemble(self, results: Sequence[RetrievalResult], max_tokens: int) -> str:
        selected = self.select(results, max_tokens)
        parts = [f"{format_header(result)}\n{result.chunk.content}" for result in selected]
        context = self.separator.join(parts)
        logger.info(
            "context_assembled",
            extra={"candidates": len(results), "included": len(selected), "chars": len(context)},
        )
        return context
