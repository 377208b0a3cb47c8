from __future__ import annotations

"""Entity and keyword extraction for Turkish legal text.

Every pattern here uses bounded quantifiers only, so matching cost stays linear
in the input length even for adversarial text.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable

from legal_rag.rag.types import EntityType, ExtractedEntity

Normalizer = Callable[[re.Match[str]], "str | None"]

DEFAULT_STOP_WORDS: frozenset[str] = frozenset(
    {
        "ve",
        "veya",
        "ile",
        "için",
        "bu",
        "şu",
        "o",
        "bir",
        "de",
        "da",
        "mi",
        "mı",
        "mu",
        "mü",
        "ne",
        "nasıl",
        "hangi",
        "nerede",
        "neden",
        "gibi",
        "kadar",
        "daha",
        "en",
        "çok",
        "az",
        "her",
        "tüm",
        "bazı",
        "nedir",
        "nelerdir",
        "midir",
        "mıdır",
        "hakkında",
        "olan",
        "olarak",
        "ise",
        "ancak",
        "yani",
    }
)

LEGAL_TERMS: tuple[str, ...] = ("hüküm", "karar", "kanun", "mahkeme", "daire", "madde")

LEGAL_CONCEPTS: dict[str, str] = {
    "kıdem tazminat": "kıdem tazminatı",
    "ihbar tazminat": "ihbar tazminatı",
    "manevi tazminat": "manevi tazminat",
    "maddi tazminat": "maddi tazminat",
    "haksız fesih": "haksız fesih",
    "haklı fesih": "haklı fesih",
    "işe iade": "işe iade",
    "iş sözleşme": "iş sözleşmesi",
    "kira sözleşme": "kira sözleşmesi",
    "kişisel veri": "kişisel veri",
    "zamanaşım": "zamanaşımı",
    "hak düşürücü süre": "hak düşürücü süre",
    "ispat yük": "ispat yükü",
    "fazla mesai": "fazla mesai",
    "yıllık izin": "yıllık izin",
    "nafaka": "nafaka",
    "velayet": "velayet",
    "boşanma": "boşanma",
    "tapu iptal": "tapu iptali",
    "itirazın iptal": "itirazın iptali",
    "menfi tespit": "menfi tespit",
    "arabulucu": "arabuluculuk",
    "ihtiyati tedbir": "ihtiyati tedbir",
    "ihtiyati haciz": "ihtiyati haciz",
    "tebligat": "tebligat",
}

_KEYWORD_STRIP = "\"'`“”‘’.,;:!?()[]{}<>«»-–—\\|*#…"
_WHITESPACE_RE = re.compile(r"\s+")

_MONTHS = {
    "ocak": 1,
    "şubat": 2,
    "mart": 3,
    "nisan": 4,
    "mayıs": 5,
    "haziran": 6,
    "temmuz": 7,
    "ağustos": 8,
    "eylül": 9,
    "ekim": 10,
    "kasım": 11,
    "aralık": 12,
}

_CURRENCIES = {
    "tl": "TRY",
    "₺": "TRY",
    "lira": "TRY",
    "türk lirası": "TRY",
    "usd": "USD",
    "$": "USD",
    "eur": "EUR",
    "€": "EUR",
}


def fold_case(text: str) -> str:
    """Lowercase using Turkish I rules without changing string length."""
    return text.replace("İ", "i").replace("I", "ı").lower()


@dataclass(frozen=True)
class EntityRule:
    """Single row of the extraction table."""
    type: EntityType
    pattern: re.Pattern[str]
    normalizer: Normalizer | None = None


def _law_number(match: re.Match[str]) -> str | None:
    return match.group(1)


def _article_number(match: re.Match[str]) -> str | None:
    return match.group(1) or match.group(2)


def _case_number(match: re.Match[str]) -> str | None:
    return f"{match.group(1)}/{match.group(2)} {match.group(3).upper()}"


def _court_name(match: re.Match[str]) -> str | None:
    return _WHITESPACE_RE.sub(" ", fold_case(match.group(1)))


def _amount(match: re.Match[str]) -> str | None:
    whole = match.group(1).replace(".", "")
    fraction = (match.group(2) or "0").ljust(2, "0")
    currency = _CURRENCIES.get(_WHITESPACE_RE.sub(" ", fold_case(match.group(3))), "TRY")
    return f"{int(whole)}.{fraction} {currency}"


def _iso_date(day: int, month: int, year: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def _numeric_date(match: re.Match[str]) -> str | None:
    return _iso_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))


def _named_date(match: re.Match[str]) -> str | None:
    month = _MONTHS.get(fold_case(match.group(2)))
    if month is None:
        return None
    return _iso_date(int(match.group(1)), month, int(match.group(3)))


def _concept(match: re.Match[str]) -> str | None:
    stem = _WHITESPACE_RE.sub(" ", fold_case(match.group(1)))
    return LEGAL_CONCEPTS.get(stem, stem)


_WORD = r"[^\W\d_]{1,40}"

LAW_PATTERN = re.compile(
    r"\b(\d{3,5})\s{0,3}say[ıi]l[ıi]"
    r"(?:\s{1,3}(?:" + _WORD + r"\s{1,3}){0,6}?"
    r"(?:kanun|yasa|kararname|yönetmeli|tüzü)[^\W\d_]{0,8}"
    r"|\s{1,3}" + _WORD + r")",
    re.IGNORECASE,
)
ARTICLE_PATTERN = re.compile(
    r"\b(?:(?:madde|md\.|m\.)\s{0,3}(\d{1,4}(?:/\d{1,3})?)"
    r"|(\d{1,4})\.\s{0,2}madde(?:si|de|ye)?\b)",
    re.IGNORECASE,
)
CASE_PATTERN = re.compile(r"\b(\d{4})/(\d{1,7})\s{0,3}([EK])\b\.?", re.IGNORECASE)
COURT_PATTERN = re.compile(
    r"\b(Yargıtay|Danıştay|Sayıştay"
    r"|Anayasa\s{1,3}Mahkemesi"
    r"|Uyuşmazlık\s{1,3}Mahkemesi"
    r"|Bölge\s{1,3}Adliye\s{1,3}Mahkemesi"
    r"|Bölge\s{1,3}İdare\s{1,3}Mahkemesi)",
    re.IGNORECASE,
)
AMOUNT_PATTERN = re.compile(
    r"\b(\d{1,3}(?:\.\d{3}){1,5}|\d{1,15})(?:,(\d{1,2}))?\s{0,2}"
    r"(TL(?![^\W\d_])|₺|Türk\s{1,3}Lirası|lira(?![^\W\d_])|USD|EUR|€|\$)",
    re.IGNORECASE,
)
NUMERIC_DATE_PATTERN = re.compile(r"\b(\d{1,2})[./](\d{1,2})[./](\d{4})\b")
NAMED_DATE_PATTERN = re.compile(
    r"\b(\d{1,2})\s{1,3}(" + "|".join(_MONTHS) + r")\s{1,3}(\d{4})\b",
    re.IGNORECASE,
)
CONCEPT_PATTERN = re.compile(
    r"\b("
    + "|".join(
        r"\s{1,3}".join(re.escape(part) for part in stem.split())
        for stem in sorted(LEGAL_CONCEPTS, key=len, reverse=True)
    )
    + r")[^\W\d_]{0,8}",
    re.IGNORECASE,
)

DOCUMENT_RULES: tuple[EntityRule, ...] = (
    EntityRule("law", LAW_PATTERN, _law_number),
    EntityRule("article", ARTICLE_PATTERN, _article_number),
    EntityRule("case", CASE_PATTERN, _case_number),
    EntityRule("court", COURT_PATTERN, _court_name),
    EntityRule("amount", AMOUNT_PATTERN, _amount),
)

QUERY_RULES: tuple[EntityRule, ...] = DOCUMENT_RULES + (
    EntityRule("date", NUMERIC_DATE_PATTERN, _numeric_date),
    EntityRule("date", NAMED_DATE_PATTERN, _named_date),
    EntityRule("concept", CONCEPT_PATTERN, _concept),
)


def extract_entities(
    text: str, rules: Iterable[EntityRule] = DOCUMENT_RULES
) -> list[ExtractedEntity]:
    """Run the rule table over text; each match yields one entity."""
    if not text:
        return []
    entities: list[ExtractedEntity] = []
    for rule in rules:
        for match in rule.pattern.finditer(text):
            value = match.group(0).strip()
            if not value:
                continue
            normalized = rule.normalizer(match) if rule.normalizer else None
            entities.append(ExtractedEntity(type=rule.type, value=value, normalized=normalized))
    return entities


def extract_entity_values(
    text: str, rules: Iterable[EntityRule] = DOCUMENT_RULES
) -> list[str]:
    """Return unique entity values in order of discovery."""
    seen: set[str] = set()
    values: list[str] = []
    for entity in extract_entities(text, rules):
        if entity.value in seen:
            continue
        seen.add(entity.value)
        values.append(entity.value)
    return values


def extract_keywords(text: str, stop_words: Iterable[str] = DEFAULT_STOP_WORDS) -> list[str]:
    """Return folded content words longer than two characters, stop-words removed."""
    if not text:
        return []
    stops = stop_words if isinstance(stop_words, (set, frozenset)) else frozenset(stop_words)
    seen: set[str] = set()
    keywords: list[str] = []
    for raw in fold_case(text).split():
        word = raw.strip(_KEYWORD_STRIP)
        if len(word) <= 2 or word in stops or word in seen:
            continue
        seen.add(word)
        keywords.append(word)
    return keywords


def count_terms(text: str, terms: Iterable[str]) -> int:
    """Count case-folded substring occurrences of each term."""
    folded = fold_case(text)
    return sum(folded.count(term) for term in terms if term)
