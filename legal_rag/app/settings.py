from __future__ import annotations

import json
import os
from dataclasses import dataclass

try:
    from dotenv import load_dotenv
except ImportError:  # pragma: no cover - optional in minimal setups
    load_dotenv = None

if load_dotenv is not None:
    load_dotenv()


@dataclass(frozen=True)
class Settings:
    min_chunk_size: int = int(os.getenv("RAG_MIN_CHUNK_SIZE", "100"))
    max_chunk_size: int = int(os.getenv("RAG_MAX_CHUNK_SIZE", "1500"))
    chunk_overlap: int = int(os.getenv("RAG_CHUNK_OVERLAP", "100"))
    tokens_per_char: float = float(os.getenv("RAG_TOKENS_PER_CHAR", "0.25"))
    token_estimator: str = os.getenv("RAG_TOKEN_ESTIMATOR", "chars")
    tiktoken_encoding: str = os.getenv("RAG_TIKTOKEN_ENCODING", "cl100k_base")
    max_context_tokens: int = int(os.getenv("RAG_MAX_CONTEXT_TOKENS", "4000"))
    retrieval_limit: int = int(os.getenv("RAG_RETRIEVAL_LIMIT", "10"))
    query_timeout: float = float(os.getenv("RAG_QUERY_TIMEOUT", "2.0"))
    chunk_workers: int = int(os.getenv("RAG_CHUNK_WORKERS", "4"))
    max_upload_bytes: int = int(os.getenv("RAG_MAX_UPLOAD_BYTES", "10485760"))
    metrics_enabled: bool = os.getenv("RAG_METRICS_ENABLED", "true").lower() in {"1", "true", "yes"}
    extra_stop_words_raw: str = os.getenv("RAG_EXTRA_STOP_WORDS", "")
    synonyms_raw: str = os.getenv("RAG_SYNONYMS", "")
    api_keys_raw: str = os.getenv("RAG_API_KEYS", "")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def api_keys(self) -> set[str]:
        raw = os.getenv("RAG_API_KEYS", self.api_keys_raw)
        return {value.strip() for value in raw.split(",") if value.strip()}

    @property
    def allow_anonymous(self) -> bool:
        return os.getenv("RAG_ALLOW_ANONYMOUS", "true").lower() in {"1", "true", "yes"}

    @property
    def extra_stop_words(self) -> set[str]:
        raw = os.getenv("RAG_EXTRA_STOP_WORDS", self.extra_stop_words_raw)
        return {value.strip().lower() for value in raw.split(",") if value.strip()}

    @property
    def synonyms(self) -> dict[str, tuple[str, ...]]:
        raw = os.getenv("RAG_SYNONYMS", self.synonyms_raw).strip()
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        if not isinstance(data, dict):
            return {}
        result: dict[str, tuple[str, ...]] = {}
        for key, value in data.items():
            if not isinstance(key, str) or not key.strip():
                continue
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, list):
                continue
            terms = tuple(item.strip() for item in value if isinstance(item, str) and item.strip())
            if terms:
                result[key.strip()] = terms
        return result


settings = Settings()
