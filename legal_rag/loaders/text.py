from __future__ import annotations

"""Plain text and markdown loader for ingestion."""

from pathlib import Path

from legal_rag.rag.types import SourceDocument


def load_text_file(path: Path, document_id: str | None = None) -> SourceDocument:
    """Load a text file from disk into a SourceDocument."""
    content = path.read_text(encoding="utf-8")
    return SourceDocument(document_id=document_id or path.stem, title=path.stem, content=content)


def load_text_bytes(data: bytes, document_id: str, title: str) -> SourceDocument:
    """Decode UTF-8 bytes, dropping a byte-order mark and normalizing line endings."""
    content = data.decode("utf-8-sig", errors="replace").replace("\r\n", "\n")
    return SourceDocument(document_id=document_id, title=title, content=content)
