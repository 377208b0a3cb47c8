from __future__ import annotations

"""PDF text extraction and cleanup."""

import re
from pathlib import Path

from legal_rag.rag.types import SourceDocument


class PDFLoaderError(RuntimeError):
    """Raised when PDF loading fails."""
    pass


_HYPHEN_BREAK_RE = re.compile(r"([^\W\d_])-\n([^\W\d_])")
_INLINE_SPACE_RE = re.compile(r"[ \t\xa0]+")
_BLANK_LINES_RE = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")


def _clean_pdf_text(text: str) -> str:
    """Tidy extracted text while keeping the line structure chunking relies on."""
    if not text:
        return ""
    cleaned = text.replace("\r\n", "\n").replace("\x0c", "\n\n")
    cleaned = _HYPHEN_BREAK_RE.sub(r"\1\2", cleaned)
    cleaned = _INLINE_SPACE_RE.sub(" ", cleaned)
    cleaned = "\n".join(line.strip() for line in cleaned.split("\n"))
    cleaned = _BLANK_LINES_RE.sub("\n\n", cleaned)
    return cleaned.strip()


def _extract_text(reader) -> str:
    text_parts: list[str] = []
    for page in reader:
        text = page.get_text() or ""
        text_parts.append(text)
    return _clean_pdf_text("\n\n".join(text_parts))


def load_pdf_file(path: Path, document_id: str | None = None) -> SourceDocument:
    """Load a PDF from disk and return a SourceDocument."""
    try:
        import fitz
    except ImportError as exc:
        raise PDFLoaderError("PyMuPDF is required to load PDF files") from exc

    try:
        reader = fitz.open(str(path))
    except (RuntimeError, ValueError, OSError) as exc:
        raise PDFLoaderError(f"Could not open PDF: {path.name}") from exc
    with reader:
        content = _extract_text(reader)
    return SourceDocument(document_id=document_id or path.stem, title=path.stem, content=content)


def load_pdf_bytes(data: bytes, document_id: str, title: str) -> SourceDocument:
    """Load a PDF from bytes and return a SourceDocument."""
    try:
        import fitz
    except ImportError as exc:
        raise PDFLoaderError("PyMuPDF is required to load PDF files") from exc

    try:
        reader = fitz.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError, OSError) as exc:
        raise PDFLoaderError("Could not parse PDF upload") from exc
    with reader:
        content = _extract_text(reader)
    return SourceDocument(document_id=document_id, title=title, content=content)
