from __future__ import annotations

"""Citation helpers for attaching sources to assembled context."""

from dataclasses import dataclass
from typing import Sequence

from legal_rag.rag.types import RetrievalResult


@dataclass(frozen=True)
class Citation:
    """Citation metadata for a single ranked chunk."""
    label: str
    document_id: str
    document_title: str
    section: str
    chunk_id: str


def build_citations(results: Sequence[RetrievalResult]) -> list[Citation]:
    """Build ``[n]`` citation labels in ranked order."""
    citations: list[Citation] = []
    for idx, result in enumerate(results, start=1):
        metadata = result.chunk.metadata
        citations.append(
            Citation(
                label=f"[{idx}]",
                document_id=metadata.document_id,
                document_title=metadata.document_title,
                section=metadata.section,
                chunk_id=result.chunk.id,
            )
        )
    return citations


def format_citation(citation: Citation) -> str:
    """Render a citation as ``[n] title - section``."""
    title = citation.document_title or citation.document_id
    if citation.section:
        return f"{citation.label} {title} - {citation.section}"
    return f"{citation.label} {title}"
