from __future__ import annotations

"""FastAPI application entrypoint for the legal retrieval service."""

import logging
import uuid
from pathlib import Path

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile

from legal_rag.app.dependencies import get_pipeline
from legal_rag.app.metrics import metrics_middleware, metrics_response, record_ingest, record_query
from legal_rag.app.schemas import (
    AnalysisResponse,
    AnalyzeRequest,
    CitationModel,
    DeleteResponse,
    EntityModel,
    FiltersModel,
    IngestRequest,
    IngestResponse,
    QueryRequest,
    QueryResponse,
    SourceChunk,
    StatsResponse,
    YearRangeModel,
)
from legal_rag.app.security import AuthContext, require_api_key
from legal_rag.app.settings import settings
from legal_rag.loaders.pdf import PDFLoaderError, load_pdf_bytes
from legal_rag.loaders.text import load_text_bytes
from legal_rag.rag.types import QueryAnalysis, RetrievalResult, SourceDocument

logger = logging.getLogger(__name__)

app = FastAPI(title="Legal RAG Retrieval", version="0.1.0")

TEXT_SUFFIXES = {".txt", ".md", ".markdown"}


def _configure_logging() -> None:
    """Configure root logging using environment settings."""
    level_name = settings.log_level.strip().upper()
    level = getattr(logging, level_name, logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    logger.setLevel(level)


_configure_logging()


async def _read_upload_bytes(upload: UploadFile, max_bytes: int | None) -> bytes:
    """Stream upload bytes with a hard size limit."""
    if not max_bytes or max_bytes <= 0:
        return await upload.read()
    buffer = bytearray()
    while True:
        chunk = await upload.read(65536)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File exceeds maximum size of {max_bytes} bytes",
            )
    return bytes(buffer)


def _analysis_payload(analysis: QueryAnalysis) -> AnalysisResponse:
    filters = analysis.filters
    year_range = None
    if filters.year_range is not None:
        year_range = YearRangeModel(start=filters.year_range.start, end=filters.year_range.end)
    return AnalysisResponse(
        original_query=analysis.original_query,
        intent=analysis.intent,
        entities=[
            EntityModel(type=entity.type, value=entity.value, normalized=entity.normalized)
            for entity in analysis.entities
        ],
        expanded_queries=list(analysis.expanded_queries),
        keywords=list(analysis.keywords),
        filters=FiltersModel(
            courts=list(filters.courts),
            law_numbers=list(filters.law_numbers),
            year_range=year_range,
            law_areas=list(filters.law_areas),
        ),
    )


def _source_payload(result: RetrievalResult) -> SourceChunk:
    metadata = result.chunk.metadata
    return SourceChunk(
        chunk_id=result.chunk.id,
        document_id=metadata.document_id,
        document_title=metadata.document_title,
        section=metadata.section,
        type=metadata.type,
        content=result.chunk.content,
        score=result.score,
        match_type=result.match_type,
        highlights=list(result.highlights),
    )


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Attach or create a request ID for traceability."""
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    """Capture request metrics before returning the response."""
    return await metrics_middleware(request, call_next)


@app.get("/metrics")
async def metrics():
    """Expose Prometheus-style metrics."""
    return metrics_response()


@app.get("/health")
async def health() -> dict[str, str]:
    """Simple health probe for uptime checks."""
    return {"status": "ok"}


@app.get("/stats", response_model=StatsResponse)
async def stats(auth: AuthContext = Depends(require_api_key)) -> StatsResponse:
    """Return corpus document and chunk counts."""
    data = get_pipeline().corpus.stats()
    return StatsResponse(
        backend=str(data["backend"]),
        document_count=int(data["document_count"]),
        chunk_count=int(data["chunk_count"]),
    )


@app.post("/ingest", response_model=IngestResponse)
async def ingest(
    request: IngestRequest,
    auth: AuthContext = Depends(require_api_key),
) -> IngestResponse:
    """Chunk and store JSON documents; re-ingesting an id replaces it."""
    documents = [
        SourceDocument(
            document_id=document.document_id,
            title=document.title or document.document_id,
            content=document.content,
        )
        for document in request.documents
    ]
    counts = get_pipeline().ingest_many(documents)
    record_ingest(sum(counts.values()))
    return IngestResponse(ingested=len(counts), chunks=counts)


@app.post("/ingest/files", response_model=IngestResponse)
async def ingest_files(
    http_request: Request,
    files: list[UploadFile] = File(...),
    auth: AuthContext = Depends(require_api_key),
) -> IngestResponse:
    """Ingest uploaded text, markdown, or PDF files."""
    if not files:
        raise HTTPException(status_code=400, detail="No files provided")
    request_id = getattr(http_request.state, "request_id", str(uuid.uuid4()))
    documents: list[SourceDocument] = []
    for idx, upload in enumerate(files, start=1):
        filename = upload.filename or f"upload-{idx}"
        suffix = Path(filename).suffix.lower()
        try:
            data = await _read_upload_bytes(upload, settings.max_upload_bytes)
        except HTTPException as exc:
            logger.error(
                "file_ingest_failed",
                extra={"request_id": request_id, "source_name": filename, "detail": exc.detail},
            )
            raise
        if not data:
            continue
        document_id = Path(filename).stem
        title = Path(filename).stem
        if suffix in TEXT_SUFFIXES:
            documents.append(load_text_bytes(data, document_id=document_id, title=title))
        elif suffix == ".pdf":
            try:
                documents.append(load_pdf_bytes(data, document_id=document_id, title=title))
            except PDFLoaderError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
        else:
            raise HTTPException(status_code=400, detail=f"Unsupported file type: {suffix}")
    if not documents:
        raise HTTPException(status_code=400, detail="No valid file content provided")
    counts = get_pipeline().ingest_many(documents)
    record_ingest(sum(counts.values()))
    logger.info(
        "file_ingest_complete",
        extra={"request_id": request_id, "files": len(documents), "chunks": sum(counts.values())},
    )
    return IngestResponse(ingested=len(counts), chunks=counts)


@app.delete("/documents/{document_id}", response_model=DeleteResponse)
async def delete_document(
    document_id: str,
    auth: AuthContext = Depends(require_api_key),
) -> DeleteResponse:
    """Remove every chunk of a document."""
    removed = get_pipeline().delete_document(document_id)
    if removed == 0:
        raise HTTPException(status_code=404, detail="Document not found")
    return DeleteResponse(document_id=document_id, deleted_chunks=removed)


@app.post("/analyze", response_model=AnalysisResponse)
async def analyze(
    request: AnalyzeRequest,
    auth: AuthContext = Depends(require_api_key),
) -> AnalysisResponse:
    """Return the structured analysis of a query without retrieving."""
    return _analysis_payload(get_pipeline().analyze(request.query))


@app.post("/query", response_model=QueryResponse)
async def query(
    request: QueryRequest,
    http_request: Request,
    auth: AuthContext = Depends(require_api_key),
) -> QueryResponse:
    """Retrieve, rerank, and pack context for a legal question."""
    request_id = getattr(http_request.state, "request_id", str(uuid.uuid4()))
    outcome = get_pipeline().query(request.query, max_tokens=request.max_tokens, limit=request.limit)
    record_query(outcome.status, outcome.timings)
    logger.info(
        "query_complete",
        extra={
            "request_id": request_id,
            "status": outcome.status,
            "results": len(outcome.results),
            "intent": outcome.analysis.intent,
        },
    )
    return QueryResponse(
        status=outcome.status,
        context=outcome.context,
        sources=[_source_payload(result) for result in outcome.results],
        citations=[CitationModel(**citation.__dict__) for citation in outcome.citations],
        analysis=_analysis_payload(outcome.analysis),
        timed_out_stage=outcome.timed_out_stage,
        request_id=request_id,
    )
