from __future__ import annotations

"""Entity and keyword extraction tests."""

import time

from legal_rag.rag.entities import (
    DOCUMENT_RULES,
    QUERY_RULES,
    count_terms,
    extract_entities,
    extract_entity_values,
    extract_keywords,
    fold_case,
)


def _by_type(entities, entity_type):
    return [entity for entity in entities if entity.type == entity_type]


def test_fold_case_handles_turkish_dotted_and_dotless_i() -> None:
    assert fold_case("İSTANBUL") == "istanbul"
    assert fold_case("IŞIK") == "ışık"
    assert len(fold_case("İİIIabc")) == len("İİIIabc")


def test_law_and_article_from_query() -> None:
    entities = extract_entities("4857 sayılı İş Kanunu madde 17 nedir", QUERY_RULES)

    laws = _by_type(entities, "law")
    articles = _by_type(entities, "article")
    assert [law.value for law in laws] == ["4857 sayılı İş Kanunu"]
    assert laws[0].normalized == "4857"
    assert [article.value for article in articles] == ["madde 17"]
    assert articles[0].normalized == "17"


def test_law_without_statute_word_takes_following_word() -> None:
    laws = _by_type(extract_entities("6698 sayılı KVKK kapsamında"), "law")

    assert [law.value for law in laws] == ["6698 sayılı KVKK"]


def test_article_reference_forms() -> None:
    entities = extract_entities("md. 25/2 ile 49. maddesi birlikte okunmalıdır")

    normalized = [entity.normalized for entity in _by_type(entities, "article")]
    assert normalized == ["25/2", "49"]


def test_case_number_and_court() -> None:
    entities = extract_entities("Yargıtay 9. HD 2023/1234 E. numaralı dosya")

    cases = _by_type(entities, "case")
    courts = _by_type(entities, "court")
    assert cases[0].normalized == "2023/1234 E"
    assert courts[0].normalized == "yargıtay"


def test_multiword_court_is_normalized() -> None:
    courts = _by_type(extract_entities("Anayasa  Mahkemesi bireysel başvuru"), "court")

    assert courts[0].normalized == "anayasa mahkemesi"


def test_amounts_are_normalized_with_currency() -> None:
    entities = extract_entities("Davacıya 12.500,50 TL ve 5000 TL ödenmesine")

    assert [entity.normalized for entity in _by_type(entities, "amount")] == [
        "12500.50 TRY",
        "5000.00 TRY",
    ]


def test_dates_and_concepts_are_query_only() -> None:
    text = "15.03.2021 tarihli kıdem tazminatı talebi"

    document_types = {entity.type for entity in extract_entities(text, DOCUMENT_RULES)}
    query_entities = extract_entities(text, QUERY_RULES)

    assert "date" not in document_types
    assert "concept" not in document_types
    assert _by_type(query_entities, "date")[0].normalized == "2021-03-15"
    assert _by_type(query_entities, "concept")[0].normalized == "kıdem tazminatı"


def test_named_month_date() -> None:
    dates = _by_type(extract_entities("1 Ocak 2020 itibarıyla", QUERY_RULES), "date")

    assert dates[0].normalized == "2020-01-01"


def test_entity_values_are_unique_in_rule_order() -> None:
    text = "Yargıtay kararı. Yargıtay ayrıca 2020/55 K. sayılı kararında"

    assert extract_entity_values(text) == ["2020/55 K.", "Yargıtay"]


def test_empty_text_has_no_entities() -> None:
    assert extract_entities("") == []
    assert extract_keywords("") == []


def test_keywords_fold_dedupe_and_drop_stop_words() -> None:
    assert extract_keywords("Kıdem tazminatı nedir?") == ["kıdem", "tazminatı"]
    assert extract_keywords("kanun Kanun KANUN") == ["kanun"]
    assert extract_keywords("ve de iş") == []


def test_keywords_strip_surrounding_punctuation() -> None:
    assert extract_keywords("(fesih), «ihbar»; 'süre'") == ["fesih", "ihbar", "süre"]


def test_count_terms_is_case_insensitive() -> None:
    assert count_terms("MAHKEME kararı ve mahkeme hükmü", ("mahkeme", "karar")) == 3


def test_adversarial_input_stays_fast() -> None:
    hostile = ("1234 sayılı " * 5000) + ("madde " * 20000) + ("9" * 50000)

    started = time.monotonic()
    extract_entities(hostile, QUERY_RULES)
    extract_keywords(hostile)

    assert time.monotonic() - started < 10.0
