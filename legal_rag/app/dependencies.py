from __future__ import annotations

from functools import lru_cache

from legal_rag.app.settings import settings
from legal_rag.loaders.chunking import LegalChunker
from legal_rag.rag.context import ContextAssembler, ContextConfigError, TiktokenEstimator, TokenEstimator
from legal_rag.rag.entities import DEFAULT_STOP_WORDS
from legal_rag.rag.pipeline import RAGPipeline
from legal_rag.rag.query import DEFAULT_SYNONYMS, QueryAnalyzer
from legal_rag.store.inmemory import ChunkCorpus


@lru_cache
def get_corpus() -> ChunkCorpus:
    return ChunkCorpus()


@lru_cache
def get_pipeline() -> RAGPipeline:
    chunker = LegalChunker(
        min_chunk_size=settings.min_chunk_size,
        max_chunk_size=settings.max_chunk_size,
        overlap_size=settings.chunk_overlap,
    )
    synonyms = dict(DEFAULT_SYNONYMS)
    synonyms.update(settings.synonyms)
    analyzer = QueryAnalyzer(
        stop_words=DEFAULT_STOP_WORDS | settings.extra_stop_words,
        synonyms=synonyms,
    )
    assembler = ContextAssembler(
        tokens_per_char=settings.tokens_per_char,
        estimator=build_estimator(),
    )
    return RAGPipeline(
        corpus=get_corpus(),
        chunker=chunker,
        analyzer=analyzer,
        assembler=assembler,
        max_context_tokens=settings.max_context_tokens,
        retrieval_limit=settings.retrieval_limit,
        query_timeout=settings.query_timeout,
        chunk_workers=settings.chunk_workers,
    )


def reset_pipeline_cache() -> None:
    get_pipeline.cache_clear()
    get_corpus.cache_clear()


def build_estimator() -> TokenEstimator | None:
    mode = settings.token_estimator.lower().strip()
    if mode in {"", "chars", "char"}:
        return None
    if mode == "tiktoken":
        return TiktokenEstimator(encoding_name=settings.tiktoken_encoding)
    raise ContextConfigError(f"Unsupported token estimator: {mode}")
