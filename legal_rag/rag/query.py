from __future__ import annotations

"""Query analysis: intent, entities, keywords, expansions, and filters."""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from legal_rag.rag.deadline import Deadline
from legal_rag.rag.entities import (
    DEFAULT_STOP_WORDS,
    QUERY_RULES,
    EntityRule,
    extract_entities,
    extract_keywords,
    fold_case,
)
from legal_rag.rag.types import (
    ExtractedEntity,
    QueryAnalysis,
    QueryFilters,
    QueryIntent,
    YearRange,
)

logger = logging.getLogger(__name__)

DEFAULT_SYNONYMS: dict[str, tuple[str, ...]] = {
    "tazminat": ("zarar", "bedel", "ödeme"),
    "fesih": ("sona erdirme", "iptal", "bozma"),
    "sözleşme": ("akit", "mukavele", "kontrat"),
    "dava": ("yargılama", "muhakeme", "duruşma"),
    "kanun": ("yasa", "mevzuat", "hukuk"),
    "mahkeme": ("yargı", "hakim", "savcı"),
    "hüküm": ("karar", "sonuç", "netice"),
    "delil": ("kanıt", "ispat", "belge"),
}

# Patterns run against the case-folded query; order is precedence.
DEFAULT_INTENT_PATTERNS: tuple[tuple[QueryIntent, tuple[str, ...]], ...] = (
    (
        "find_law",
        (
            r"(?:hangi|ne)\s{0,3}(?:kanun|mevzuat|madde)",
            r"\d{3,5}\s{0,3}sayılı",
            r"madde\s{0,3}\d{1,4}",
        ),
    ),
    (
        "find_case",
        (
            r"emsal|içtihat|karar|yargıtay|danıştay",
            r"\d{4}/\d{1,7}\s{0,3}[ek]\b",
            r"(?:mahkeme|daire)\s{0,3}kararı",
        ),
    ),
    (
        "explain_concept",
        (
            r"ne\s{0,3}demek|nedir|açıkla|tanımla",
            r"kavram|terim|anlam",
        ),
    ),
    (
        "compare",
        (
            r"fark|karşılaştır|arasında",
            r"hangisi|tercih",
        ),
    ),
    (
        "procedure",
        (
            r"nasıl|süre[çc]|prosedür|adım",
            r"başvur|müracaat|dilekçe",
        ),
    ),
)

DEFAULT_INTENT_SUFFIXES: dict[str, tuple[str, ...]] = {
    "find_case": ("Yargıtay kararı", "emsal içtihat"),
    "find_law": ("mevzuat", "kanun maddesi"),
}

DEFAULT_LAW_AREAS: dict[str, tuple[str, ...]] = {
    "iş hukuku": ("işçi", "işveren", "kıdem", "ihbar", "fazla mesai", "iş sözleşme", "işe iade"),
    "borçlar hukuku": ("borç", "sözleşme", "tazminat", "kira"),
    "aile hukuku": ("boşanma", "nafaka", "velayet", "evlilik"),
    "ceza hukuku": ("suç", "ceza", "sanık"),
    "idare hukuku": ("danıştay", "idari", "idare"),
    "kişisel verilerin korunması": ("kişisel veri", "kvkk"),
    "miras hukuku": ("miras", "vasiyet"),
    "ticaret hukuku": ("şirket", "ticari", "çek", "senet"),
}

_YEAR = r"\b(\d{4})(?:['’]?(?:den|dan|ten|tan))?(?:\s{1,3}yılı(?:ndan|na)?)?\s{1,3}"
_SINCE_RE = re.compile(_YEAR + r"(?:ve\s{1,3})?(?:sonrası|sonra|itibaren|beri)")
_UNTIL_RE = re.compile(_YEAR + r"(?:ve\s{1,3})?(?:öncesi|önce)")
_MIN_YEAR = 1900
_MAX_YEAR = 2100


class AnalyzerConfigError(RuntimeError):
    """Raised when the analyzer tables are missing or malformed."""


def _word_pattern(term: str) -> re.Pattern[str]:
    return re.compile(r"(?<![^\W_])" + re.escape(term) + r"(?![^\W_])")


def _prefix_pattern(term: str) -> re.Pattern[str]:
    return re.compile(r"(?<![^\W_])" + re.escape(term))


def _replace_word(query: str, term: str, replacement: str) -> str:
    """Replace whole-word occurrences of term, matched on the folded query."""
    folded = fold_case(query)
    pieces: list[str] = []
    last = 0
    for match in _word_pattern(term).finditer(folded):
        pieces.append(query[last : match.start()])
        pieces.append(replacement)
        last = match.end()
    if not pieces:
        return query
    pieces.append(query[last:])
    return "".join(pieces)


def _first_year(pattern: re.Pattern[str], folded: str) -> int | None:
    for match in pattern.finditer(folded):
        year = int(match.group(1))
        if _MIN_YEAR <= year < _MAX_YEAR:
            return year
    return None


@dataclass
class QueryAnalyzer:
    """Rule-based analyzer turning a free-text question into a QueryAnalysis."""

    stop_words: Iterable[str] = DEFAULT_STOP_WORDS
    synonyms: Mapping[str, Sequence[str]] = field(default_factory=lambda: dict(DEFAULT_SYNONYMS))
    intent_patterns: Sequence[tuple[QueryIntent, Sequence[str]]] = DEFAULT_INTENT_PATTERNS
    intent_suffixes: Mapping[str, Sequence[str]] = field(
        default_factory=lambda: dict(DEFAULT_INTENT_SUFFIXES)
    )
    law_areas: Mapping[str, Sequence[str]] = field(default_factory=lambda: dict(DEFAULT_LAW_AREAS))
    entity_rules: Sequence[EntityRule] = QUERY_RULES
    max_expansions: int = 5

    def __post_init__(self) -> None:
        self.stop_words = frozenset(fold_case(word) for word in self.stop_words)
        if not self.stop_words:
            raise AnalyzerConfigError("stop-word set must not be empty")
        if not self.intent_patterns:
            raise AnalyzerConfigError("intent pattern table must not be empty")
        if self.max_expansions < 1:
            raise AnalyzerConfigError("max_expansions must be at least 1")
        try:
            self._intent_table = [
                (intent, [re.compile(pattern) for pattern in patterns])
                for intent, patterns in self.intent_patterns
            ]
        except re.error as exc:
            raise AnalyzerConfigError(f"invalid intent pattern: {exc}") from exc
        self._synonyms = {
            fold_case(term): tuple(values) for term, values in self.synonyms.items() if values
        }
        self._law_areas = [
            (area, [_prefix_pattern(fold_case(term)) for term in terms])
            for area, terms in self.law_areas.items()
        ]

    def analyze(self, query: str, deadline: Deadline | None = None) -> QueryAnalysis:
        """Analyze a query; an empty query yields a neutral ``general`` analysis."""
        if not query or not query.strip():
            return QueryAnalysis(original_query=query, intent="general", expanded_queries=(query,))
        deadline = deadline or Deadline.unbounded()
        folded = fold_case(query)
        intent = self.detect_intent(folded)
        deadline.check("analyze")
        entities = tuple(extract_entities(query, self.entity_rules))
        keywords = tuple(extract_keywords(query, self.stop_words))
        deadline.check("analyze")
        expanded = tuple(self.expand(query, intent, entities, keywords))
        filters = self.extract_filters(folded, entities)
        analysis = QueryAnalysis(
            original_query=query,
            intent=intent,
            entities=entities,
            expanded_queries=expanded,
            keywords=keywords,
            filters=filters,
        )
        logger.info(
            "query_analyzed",
            extra={
                "intent": intent,
                "entities": len(entities),
                "keywords": len(keywords),
                "expansions": len(expanded),
            },
        )
        return analysis

    def detect_intent(self, folded_query: str) -> QueryIntent:
        for intent, patterns in self._intent_table:
            if any(pattern.search(folded_query) for pattern in patterns):
                return intent
        return "general"

    def expand(
        self,
        query: str,
        intent: QueryIntent,
        entities: Sequence[ExtractedEntity],
        keywords: Sequence[str],
    ) -> list[str]:
        """Build query variants, original first, capped at ``max_expansions``."""
        candidates = [query]
        for keyword in keywords:
            for synonym in self._synonyms.get(keyword, ()):
                candidates.append(_replace_word(query, keyword, synonym))
        has_law = any(entity.type == "law" for entity in entities)
        if intent == "find_law" or (intent == "find_case" and has_law):
            for suffix in self.intent_suffixes.get(intent, ()):
                candidates.append(f"{query} {suffix}")

        expanded: list[str] = []
        seen: set[str] = set()
        for candidate in candidates:
            if candidate in seen:
                continue
            seen.add(candidate)
            expanded.append(candidate)
            if len(expanded) >= self.max_expansions:
                break
        return expanded

    def extract_filters(
        self, folded_query: str, entities: Sequence[ExtractedEntity]
    ) -> QueryFilters:
        courts = _unique(entity.normalized for entity in entities if entity.type == "court")
        law_numbers = _unique(entity.normalized for entity in entities if entity.type == "law")
        start = _first_year(_SINCE_RE, folded_query)
        end = _first_year(_UNTIL_RE, folded_query)
        year_range = YearRange(start=start, end=end) if start or end else None
        areas = tuple(
            area
            for area, patterns in self._law_areas
            if any(pattern.search(folded_query) for pattern in patterns)
        )
        return QueryFilters(
            courts=courts,
            law_numbers=law_numbers,
            year_range=year_range,
            law_areas=areas,
        )


def _unique(values: Iterable[str | None]) -> tuple[str, ...]:
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return tuple(seen)
