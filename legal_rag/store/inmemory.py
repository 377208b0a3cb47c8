from __future__ import annotations

"""In-memory chunk corpus with snapshot reads and swapped writes."""

import threading
from dataclasses import dataclass, field
from typing import Iterable

from legal_rag.rag.types import Chunk


@dataclass
class ChunkCorpus:
    """Holds every chunk as an immutable tuple.

    Writers build a new tuple and swap the reference under ``_lock``;
    readers call ``snapshot()`` and never block.
    """
    _chunks: tuple[Chunk, ...] = ()
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def snapshot(self) -> tuple[Chunk, ...]:
        return self._chunks

    def add_chunks(self, chunks: Iterable[Chunk], document_ids: Iterable[str] = ()) -> int:
        """Store chunks; chunks of an already ingested document replace it.

        Ids in ``document_ids`` are cleared even when no chunk carries them,
        so a document re-ingested with empty text drops out of the corpus.
        """
        incoming = tuple(chunks)
        document_ids = set(document_ids) | {chunk.metadata.document_id for chunk in incoming}
        if not document_ids:
            return 0
        with self._lock:
            kept = tuple(
                chunk for chunk in self._chunks if chunk.metadata.document_id not in document_ids
            )
            self._chunks = kept + incoming
        return len(incoming)

    def delete_document(self, document_id: str) -> int:
        """Remove a document's chunks and return how many were dropped."""
        with self._lock:
            kept = tuple(
                chunk for chunk in self._chunks if chunk.metadata.document_id != document_id
            )
            removed = len(self._chunks) - len(kept)
            self._chunks = kept
        return removed

    def document_ids(self) -> list[str]:
        seen: dict[str, None] = {}
        for chunk in self._chunks:
            seen.setdefault(chunk.metadata.document_id, None)
        return list(seen)

    def clear(self) -> None:
        with self._lock:
            self._chunks = ()

    def stats(self) -> dict[str, int | str]:
        """Return basic stats for the corpus."""
        chunks = self._chunks
        return {
            "backend": "memory",
            "document_count": len({chunk.metadata.document_id for chunk in chunks}),
            "chunk_count": len(chunks),
        }

    def health(self) -> dict[str, str | bool]:
        return {
            "backend": "memory",
            "ok": True,
        }
