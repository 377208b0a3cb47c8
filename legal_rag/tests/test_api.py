from __future__ import annotations

import httpx
import pytest

from legal_rag.app.dependencies import reset_pipeline_cache
from legal_rag.app.main import app

pytestmark = pytest.mark.anyio

LAW_TEXT = (
    "Madde 17 - Belirsiz süreli iş sözleşmelerinin feshinden önce durumun diğer tarafa "
    "bildirilmesi gerekir. İş sözleşmeleri bildirim sürelerine uyularak feshedilir."
)


def get_client() -> httpx.AsyncClient:
    reset_pipeline_cache()
    transport = httpx.ASGITransport(app=app)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


async def test_health_endpoint() -> None:
    async with get_client() as client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_ingest_and_query() -> None:
    async with get_client() as client:
        ingest_response = await client.post(
            "/ingest",
            json={"documents": [{"document_id": "is-kanunu", "title": "İş Kanunu", "content": LAW_TEXT}]},
        )
        assert ingest_response.status_code == 200
        assert ingest_response.json() == {"ingested": 1, "chunks": {"is-kanunu": 1}}

        query_response = await client.post(
            "/query", json={"query": "4857 sayılı İş Kanunu madde 17 nedir"}
        )
    assert query_response.status_code == 200
    payload = query_response.json()
    assert payload["status"] == "ok"
    assert payload["context"].startswith("[İş Kanunu - Madde 17]")
    assert payload["sources"][0]["chunk_id"] == "is-kanunu_chunk_0"
    assert payload["sources"][0]["highlights"]
    assert payload["citations"][0]["label"] == "[1]"
    assert payload["analysis"]["intent"] == "find_law"
    assert payload["analysis"]["filters"]["law_numbers"] == ["4857"]
    assert payload["request_id"]


async def test_query_without_documents_reports_no_match() -> None:
    async with get_client() as client:
        response = await client.post("/query", json={"query": "kira artışı"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "no_match"
    assert payload["context"] == ""
    assert payload["sources"] == []


async def test_empty_query_status() -> None:
    async with get_client() as client:
        response = await client.post("/query", json={"query": ""})
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "empty_query"
    assert payload["analysis"]["expanded_queries"] == [""]


async def test_analyze_endpoint() -> None:
    async with get_client() as client:
        response = await client.post(
            "/analyze", json={"query": "2020 yılından sonra Yargıtay kıdem tazminatı kararları"}
        )
    assert response.status_code == 200
    payload = response.json()
    assert payload["intent"] == "find_case"
    assert payload["filters"]["courts"] == ["yargıtay"]
    assert payload["filters"]["year_range"] == {"start": 2020, "end": None}
    assert any(entity["type"] == "concept" for entity in payload["entities"])


async def test_stats_and_delete() -> None:
    async with get_client() as client:
        await client.post(
            "/ingest",
            json={"documents": [{"document_id": "a", "content": LAW_TEXT}]},
        )
        stats = await client.get("/stats")
        assert stats.json() == {"backend": "memory", "document_count": 1, "chunk_count": 1}

        deleted = await client.delete("/documents/a")
        assert deleted.status_code == 200
        assert deleted.json() == {"document_id": "a", "deleted_chunks": 1}

        missing = await client.delete("/documents/a")
    assert missing.status_code == 404


async def test_ingest_files_text() -> None:
    async with get_client() as client:
        files = {"files": ("kanun.txt", LAW_TEXT.encode("utf-8"), "text/plain")}
        response = await client.post("/ingest/files", files=files)
        assert response.status_code == 200
        assert response.json()["chunks"] == {"kanun": 1}

        query_response = await client.post("/query", json={"query": "bildirim süreleri fesih"})
    assert query_response.json()["sources"][0]["document_title"] == "kanun"


async def test_ingest_files_rejects_oversized_upload() -> None:
    async with get_client() as client:
        files = {"files": ("buyuk.txt", b"a" * 5000, "text/plain")}
        response = await client.post("/ingest/files", files=files)
    assert response.status_code == 413


async def test_ingest_files_rejects_unknown_type() -> None:
    async with get_client() as client:
        files = {"files": ("tablo.xlsx", b"data", "application/octet-stream")}
        response = await client.post("/ingest/files", files=files)
    assert response.status_code == 400


async def test_metrics_endpoint() -> None:
    async with get_client() as client:
        await client.post("/query", json={"query": "nafaka"})
        response = await client.get("/metrics")
    assert response.status_code == 200
    assert "rag_query_outcomes_total" in response.text
    assert "http_requests_total" in response.text
