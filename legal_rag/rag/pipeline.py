from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, Literal

from legal_rag.loaders.chunking import LegalChunker, chunk_documents
from legal_rag.rag.citations import Citation, build_citations
from legal_rag.rag.context import ContextAssembler
from legal_rag.rag.deadline import Deadline, QueryTimeoutError
from legal_rag.rag.guardrails import require_query, require_results
from legal_rag.rag.query import QueryAnalyzer
from legal_rag.rag.reranker import Reranker
from legal_rag.rag.retriever import KeywordRetriever
from legal_rag.rag.types import Chunk, QueryAnalysis, RetrievalResult, SourceDocument
from legal_rag.store.inmemory import ChunkCorpus

logger = logging.getLogger(__name__)

QueryStatus = Literal["ok", "no_match", "empty_query", "timed_out"]


@dataclass
class QueryOutcome:
    status: QueryStatus
    analysis: QueryAnalysis
    results: list[RetrievalResult]
    context: str
    citations: list[Citation] = field(default_factory=list)
    timed_out_stage: str | None = None
    timings: dict[str, float] = field(default_factory=dict)


@dataclass
class RAGPipeline:
    corpus: ChunkCorpus = field(default_factory=ChunkCorpus)
    chunker: LegalChunker = field(default_factory=LegalChunker)
    analyzer: QueryAnalyzer = field(default_factory=QueryAnalyzer)
    retriever: KeywordRetriever = field(default_factory=KeywordRetriever)
    reranker: Reranker = field(default_factory=Reranker)
    assembler: ContextAssembler = field(default_factory=ContextAssembler)
    max_context_tokens: int = 4000
    retrieval_limit: int = 10
    query_timeout: float | None = 2.0
    chunk_workers: int = 4

    def ingest(self, document: SourceDocument) -> list[Chunk]:
        chunks = self.chunker.chunk_document(document)
        self.corpus.add_chunks(chunks, document_ids=[document.document_id])
        return chunks

    def ingest_many(self, documents: Iterable[SourceDocument]) -> dict[str, int]:
        """Chunk documents concurrently and return chunk counts per document."""
        documents = list(documents)
        counts: dict[str, int] = {}
        for document, chunks in zip(
            documents, chunk_documents(documents, self.chunker, self.chunk_workers)
        ):
            self.corpus.add_chunks(chunks, document_ids=[document.document_id])
            counts[document.document_id] = len(chunks)
        logger.info(
            "ingest_complete",
            extra={"documents": len(documents), "chunks": sum(counts.values())},
        )
        return counts

    def delete_document(self, document_id: str) -> int:
        return self.corpus.delete_document(document_id)

    def analyze(self, query: str) -> QueryAnalysis:
        return self.analyzer.analyze(query)

    def retrieve(
        self,
        analysis: QueryAnalysis,
        limit: int | None = None,
        deadline: Deadline | None = None,
    ) -> list[RetrievalResult]:
        results = self.retriever.retrieve(
            self.corpus.snapshot(),
            analysis,
            limit=self.retrieval_limit if limit is None else limit,
            deadline=deadline,
        )
        return self.reranker.rerank(results, analysis, deadline=deadline)

    def build_context(self, results: list[RetrievalResult], max_tokens: int | None = None) -> str:
        budget = self.max_context_tokens if max_tokens is None else max_tokens
        return self.assembler.assemble(results, budget)

    def query(
        self,
        query: str,
        max_tokens: int | None = None,
        limit: int | None = None,
    ) -> QueryOutcome:
        """Run analysis, retrieval, reranking, and packing for one query.

        A budget overrun keeps whatever was ranked so far; if reranking was
        cut short the retrieval order is used.
        """
        budget = self.max_context_tokens if max_tokens is None else max_tokens
        if not require_query(query).allowed:
            return QueryOutcome(
                status="empty_query",
                analysis=self.analyzer.analyze(query),
                results=[],
                context="",
            )

        deadline = Deadline(self.query_timeout)
        timings: dict[str, float] = {}
        analysis = QueryAnalysis(original_query=query, intent="general", expanded_queries=(query,))
        results: list[RetrievalResult] = []
        timed_out_stage: str | None = None
        try:
            started = time.perf_counter()
            analysis = self.analyzer.analyze(query, deadline)
            timings["analyze"] = time.perf_counter() - started

            started = time.perf_counter()
            results = self.retriever.retrieve(
                self.corpus.snapshot(),
                analysis,
                limit=self.retrieval_limit if limit is None else limit,
                deadline=deadline,
            )
            timings["retrieve"] = time.perf_counter() - started

            started = time.perf_counter()
            results = self.reranker.rerank(results, analysis, deadline=deadline)
            timings["rerank"] = time.perf_counter() - started
        except QueryTimeoutError as exc:
            timed_out_stage = exc.stage
            logger.warning(
                "query_timed_out",
                extra={"stage": exc.stage, "elapsed": exc.elapsed, "results": len(results)},
            )

        started = time.perf_counter()
        selected = self.assembler.select(results, budget)
        context = self.assembler.assemble(results, budget)
        timings["context"] = time.perf_counter() - started

        if timed_out_stage is not None:
            status: QueryStatus = "timed_out"
        elif not require_results(results).allowed:
            status = "no_match"
        else:
            status = "ok"
        return QueryOutcome(
            status=status,
            analysis=analysis,
            results=results,
            context=context,
            citations=build_citations(selected),
            timed_out_stage=timed_out_stage,
            timings=timings,
        )
