from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .kana import canonical_forms, strip_symbols
from .records import CardRecord

__all__ = [
    "MatchResult",
    "NameForms",
    "QueryForms",
    "SearchIndex",
    "match_name",
    "match_record",
    "matches",
]


@dataclass(frozen=True, slots=True)
class MatchResult:
    raw: bool = False
    loose: bool = False
    reading: bool = False

    def __bool__(self) -> bool:
        return self.raw or self.loose or self.reading


@dataclass(frozen=True, slots=True)
class NameForms:
    katakana: str
    hiragana: str
    katakana_stripped: str
    hiragana_stripped: str

    @classmethod
    def from_text(cls, text: str) -> NameForms:
        forms = canonical_forms(text)
        return cls(
            katakana=forms.katakana,
            hiragana=forms.hiragana,
            katakana_stripped=strip_symbols(forms.katakana),
            hiragana_stripped=strip_symbols(forms.hiragana),
        )


@dataclass(frozen=True, slots=True)
class QueryForms:
    katakana: str
    hiragana: str
    # Only the katakana form is stripped; see _loose_match.
    stripped: str

    @classmethod
    def from_text(cls, text: str) -> QueryForms:
        forms = canonical_forms(text)
        return cls(
            katakana=forms.katakana,
            hiragana=forms.hiragana,
            stripped=strip_symbols(forms.katakana),
        )

    @property
    def is_empty(self) -> bool:
        return not self.katakana


def _raw_match(name: NameForms, query: QueryForms) -> bool:
    return query.katakana in name.katakana or query.hiragana in name.hiragana


def _loose_match(name: NameForms, query: QueryForms) -> bool:
    # The stripped katakana query is compared against both stripped name
    # forms, so a query containing hiragana can miss the katakana side here.
    return query.stripped in name.katakana_stripped or query.stripped in name.hiragana_stripped


def _match_forms(name: NameForms, query: QueryForms) -> MatchResult:
    return MatchResult(raw=_raw_match(name, query), loose=_loose_match(name, query))


def _reading_members(reading: str | Iterable[str] | None) -> list[str]:
    if not reading:
        return []
    if isinstance(reading, str):
        return reading.split()
    return [member for member in reading if member]


def match_name(name: str, query: str) -> MatchResult:
    """Match ``query`` against ``name`` with the raw and loose policies."""
    return _match_forms(NameForms.from_text(name), QueryForms.from_text(query))


def match_record(
    record: CardRecord | str,
    query: str,
    reading: str | Iterable[str] | None = None,
) -> MatchResult:
    if isinstance(record, CardRecord):
        name = record.name
        if reading is None:
            reading = record.reading
    else:
        name = record
    query_forms = QueryForms.from_text(query)
    result = _match_forms(NameForms.from_text(name), query_forms)
    reading_hit = any(
        _match_forms(NameForms.from_text(member), query_forms)
        for member in _reading_members(reading)
    )
    return MatchResult(raw=result.raw, loose=result.loose, reading=reading_hit)


def matches(name: str, query: str, reading: str | Iterable[str] | None = None) -> bool:
    return bool(match_record(name, query, reading))


@dataclass(frozen=True, slots=True)
class _IndexedCard:
    record: CardRecord
    name: NameForms
    readings: tuple[NameForms, ...]

    def match(self, query: QueryForms) -> MatchResult:
        result = _match_forms(self.name, query)
        reading_hit = any(_match_forms(forms, query) for forms in self.readings)
        return MatchResult(raw=result.raw, loose=result.loose, reading=reading_hit)


class SearchIndex:
    """
    Per-record canonical forms computed once and reused for every query.

    Rebuild the index after an enrich pass; readings are captured when the
    index is created.
    """

    def __init__(self, records: Sequence[CardRecord]) -> None:
        self._cards = [
            _IndexedCard(
                record=record,
                name=NameForms.from_text(record.name),
                readings=tuple(NameForms.from_text(member) for member in _reading_members(record.reading)),
            )
            for record in records
        ]

    def __len__(self) -> int:
        return len(self._cards)

    def search_with_results(self, query: str) -> list[tuple[CardRecord, MatchResult]]:
        query_forms = QueryForms.from_text(query)
        if query_forms.is_empty:
            return [(card.record, MatchResult()) for card in self._cards]
        hits: list[tuple[CardRecord, MatchResult]] = []
        for card in self._cards:
            result = card.match(query_forms)
            if result:
                hits.append((card.record, result))
        return hits

    def search(self, query: str) -> list[CardRecord]:
        return [record for record, _ in self.search_with_results(query)]
