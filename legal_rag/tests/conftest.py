from __future__ import annotations

"""Shared pytest fixtures and test environment defaults."""

import os
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("RAG_ALLOW_ANONYMOUS", "true")
os.environ.pop("RAG_API_KEYS", None)
os.environ["RAG_TOKEN_ESTIMATOR"] = "chars"
os.environ["RAG_MAX_UPLOAD_BYTES"] = "4096"
os.environ["RAG_QUERY_TIMEOUT"] = "0"
os.environ["RAG_CHUNK_WORKERS"] = "2"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
