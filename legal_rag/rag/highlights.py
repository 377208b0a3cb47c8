from __future__ import annotations

"""Highlight extraction for query keywords in chunk content."""

from typing import Sequence

from legal_rag.rag.entities import fold_case

ELLIPSIS = "..."
MAX_SNIPPET_CHARS = 120


def build_highlights(
    content: str,
    keywords: Sequence[str],
    max_snippets: int = 3,
    window: int = 50,
    max_chars: int = MAX_SNIPPET_CHARS,
) -> list[str]:
    """Extract a snippet around the first occurrence of each keyword."""
    if not content or not keywords or max_snippets <= 0:
        return []
    folded = fold_case(content)
    highlights: list[str] = []
    for keyword in keywords:
        if not keyword:
            continue
        idx = folded.find(keyword)
        if idx == -1:
            continue
        start = max(0, idx - window)
        end = min(len(content), idx + len(keyword) + window)
        if end - start > max_chars:
            # center the match, keeping its start in view
            start = max(0, idx - max(0, max_chars - len(keyword)) // 2)
            end = min(len(content), start + max_chars)
        snippet = content[start:end].strip()
        if not snippet:
            continue
        prefix = ELLIPSIS if start > 0 else ""
        suffix = ELLIPSIS if end < len(content) else ""
        highlights.append(f"{prefix}{snippet}{suffix}")
        if len(highlights) >= max_snippets:
            break
    return highlights
