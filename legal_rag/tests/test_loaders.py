from __future__ import annotations

"""Loader tests for text and PDF ingestion."""

import pytest

from legal_rag.loaders.pdf import PDFLoaderError, _clean_pdf_text, load_pdf_bytes, load_pdf_file
from legal_rag.loaders.text import load_text_bytes, load_text_file


def test_text_bytes_strip_bom_and_normalize_newlines() -> None:
    data = "\ufeffMadde 1 - İşçi\r\n\r\nMadde 2 - Şirket".encode("utf-8")

    document = load_text_bytes(data, document_id="kanun", title="Kanun")

    assert document.content == "Madde 1 - İşçi\n\nMadde 2 - Şirket"
    assert document.document_id == "kanun"
    assert document.title == "Kanun"


def test_text_file_uses_stem(tmp_path) -> None:
    path = tmp_path / "yonetmelik.md"
    path.write_text("# Başlık\nmetin", encoding="utf-8")

    document = load_text_file(path)

    assert document.document_id == "yonetmelik"
    assert document.content.startswith("# Başlık")


def test_clean_pdf_text_keeps_structure() -> None:
    raw = "Madde 1 -  İşçinin  hük-\nmü saklıdır.\n\n\n\nMadde 2 - Şube\r\nmüdürü"

    cleaned = _clean_pdf_text(raw)

    assert cleaned == "Madde 1 - İşçinin hükmü saklıdır.\n\nMadde 2 - Şube\nmüdürü"


def test_pdf_round_trip() -> None:
    fitz = pytest.importorskip("fitz")
    pdf = fitz.open()
    page = pdf.new_page()
    page.insert_text((72, 72), "Madde 1 - Test metni")
    data = pdf.tobytes()
    pdf.close()

    document = load_pdf_bytes(data, document_id="belge", title="Belge")

    assert "Madde 1 - Test metni" in document.content


def test_invalid_pdf_raises_loader_error() -> None:
    pytest.importorskip("fitz")

    with pytest.raises(PDFLoaderError):
        load_pdf_bytes(b"not a pdf", document_id="bozuk", title="Bozuk")


def test_pdf_file_uses_stem(tmp_path) -> None:
    fitz = pytest.importorskip("fitz")
    path = tmp_path / "karar.pdf"
    pdf = fitz.open()
    page = pdf.new_page()
    page.insert_text((72, 72), "Madde 3 - Dosya metni")
    pdf.save(str(path))
    pdf.close()

    document = load_pdf_file(path)

    assert document.document_id == "karar"
    assert document.title == "karar"
    assert "Madde 3 - Dosya metni" in document.content


def test_missing_pdf_file_raises_loader_error(tmp_path) -> None:
    pytest.importorskip("fitz")

    with pytest.raises(PDFLoaderError):
        load_pdf_file(tmp_path / "yok.pdf")
