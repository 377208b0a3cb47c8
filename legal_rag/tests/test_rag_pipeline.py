from __future__ import annotations

from legal_rag.loaders.chunking import LegalChunker
from legal_rag.rag.citations import format_citation
from legal_rag.rag.deadline import QueryTimeoutError
from legal_rag.rag.pipeline import RAGPipeline
from legal_rag.rag.reranker import Reranker
from legal_rag.rag.types import SourceDocument

IS_KANUNU = SourceDocument(
    document_id="is-kanunu",
    title="İş Kanunu",
    content=(
        "Madde 17 - Belirsiz süreli iş sözleşmelerinin feshinden önce durumun diğer tarafa "
        "bildirilmesi gerekir. İş sözleşmeleri bildirim sürelerine uyularak feshedilir.\n\n"
        "Madde 18 - Otuz veya daha fazla işçi çalıştıran işyerlerinde en az altı aylık "
        "kıdemi olan işçinin sözleşmesini fesheden işveren geçerli bir sebebe dayanmak zorundadır.\n"
    ),
)
AILE = SourceDocument(
    document_id="aile",
    title="Aile Hukuku Notları",
    content="Boşanma davasında nafaka ve velayet konuları ayrıca değerlendirilir.",
)


class ExpiringReranker(Reranker):
    def rerank(self, results, analysis, deadline=None):
        raise QueryTimeoutError("rerank", 0.5)


def build_pipeline(**kwargs) -> RAGPipeline:
    pipeline = RAGPipeline(query_timeout=None, **kwargs)
    pipeline.ingest_many([IS_KANUNU, AILE])
    return pipeline


def test_query_returns_context_and_citations() -> None:
    pipeline = build_pipeline()

    outcome = pipeline.query("4857 sayılı İş Kanunu madde 17 nedir")

    assert outcome.status == "ok"
    assert outcome.analysis.intent == "find_law"
    assert [result.chunk.metadata.document_id for result in outcome.results] == ["is-kanunu"]
    assert outcome.context.startswith("[İş Kanunu - Madde 17]\n")
    assert outcome.citations[0].label == "[1]"
    assert outcome.citations[0].section == "Madde 17"
    assert format_citation(outcome.citations[0]) == "[1] İş Kanunu - Madde 17"
    assert outcome.timed_out_stage is None


def test_unrelated_query_reports_no_match() -> None:
    outcome = build_pipeline().query("uzay aracı fırlatma")

    assert outcome.status == "no_match"
    assert outcome.results == []
    assert outcome.context == ""
    assert outcome.citations == []


def test_empty_query_is_reported() -> None:
    outcome = build_pipeline().query("   ")

    assert outcome.status == "empty_query"
    assert outcome.analysis.intent == "general"
    assert outcome.context == ""


def test_zero_budget_keeps_results_but_no_context() -> None:
    outcome = build_pipeline().query("nafaka velayet", max_tokens=0)

    assert outcome.status == "ok"
    assert outcome.results
    assert outcome.context == ""
    assert outcome.citations == []


def test_timeout_during_rerank_keeps_retrieval_order() -> None:
    pipeline = build_pipeline(reranker=ExpiringReranker())

    outcome = pipeline.query("nafaka velayet")

    assert outcome.status == "timed_out"
    assert outcome.timed_out_stage == "rerank"
    assert [result.chunk.id for result in outcome.results] == ["aile_chunk_0"]
    assert outcome.context


def test_reingest_replaces_and_delete_removes() -> None:
    pipeline = build_pipeline(chunker=LegalChunker(min_chunk_size=20, max_chunk_size=120, overlap_size=10))
    before = pipeline.corpus.stats()["chunk_count"]

    pipeline.ingest(IS_KANUNU)
    assert pipeline.corpus.stats()["chunk_count"] == before

    removed = pipeline.delete_document("is-kanunu")
    assert removed > 0
    assert pipeline.corpus.document_ids() == ["aile"]
    assert pipeline.query("madde 17 fesih").status == "no_match"


def test_retrieve_and_build_context_are_composable() -> None:
    pipeline = build_pipeline()
    analysis = pipeline.analyze("velayet")

    results = pipeline.retrieve(analysis, limit=5)
    context = pipeline.build_context(results, max_tokens=1000)

    assert results[0].chunk.metadata.document_id == "aile"
    assert "[Aile Hukuku Notları]" in context


def test_reingest_with_empty_text_removes_previous_version() -> None:
    pipeline = build_pipeline()

    pipeline.ingest(SourceDocument(document_id="aile", title="Aile Hukuku Notları", content=""))
    counts = pipeline.ingest_many([SourceDocument(document_id="is-kanunu", title="İş Kanunu", content="  ")])

    assert counts == {"is-kanunu": 0}
    assert pipeline.corpus.stats()["chunk_count"] == 0
    assert pipeline.query("nafaka").status == "no_match"


def test_zero_limit_returns_no_results() -> None:
    pipeline = build_pipeline()

    outcome = pipeline.query("nafaka", limit=0)

    assert outcome.status == "no_match"
    assert outcome.results == []
    assert pipeline.retrieve(pipeline.analyze("nafaka"), limit=0) == []


def test_missing_title_falls_back_to_document_id() -> None:
    pipeline = RAGPipeline(query_timeout=None)
    pipeline.ingest(
        SourceDocument(document_id="yonetmelik", title="", content="Madde 5 - Nafaka borcu aylık ödenir.")
    )

    outcome = pipeline.query("nafaka")

    assert outcome.context.startswith("[yonetmelik - Madde 5]\n")
