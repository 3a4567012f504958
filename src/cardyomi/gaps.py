from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Sequence

from .dictionary import ReadingDictionary
from .kana import is_kana_only, is_numeric_token
from .records import ANALYSIS_FIELDS, CardRecord, searchable_text

__all__ = [
    "GapEntry",
    "GapReport",
    "UnreadName",
    "count_keywords",
    "count_term_occurrences",
    "find_gaps",
    "find_unread_records",
    "split_keywords",
]

DEFAULT_MIN_COUNT = 2

# Brackets, colon/slash/hash/ampersand in narrow and wide forms, comma and
# period variants, exclamation and question marks, and the name middle dot.
KEYWORD_DELIMITERS = re.compile(r"[\s/／#＃\[\]［］【】()（）「」『』!！?？:：&＆・,，、.。]+")


def split_keywords(text: str) -> list[str]:
    tokens: list[str] = []
    for part in KEYWORD_DELIMITERS.split(text):
        token = part.strip()
        if len(token) > 1 and not is_numeric_token(token):
            tokens.append(token)
    return tokens


def count_keywords(records: Iterable[CardRecord], fields: Iterable[str] = ANALYSIS_FIELDS) -> Counter[str]:
    """Count how many records contain each candidate keyword."""
    field_names = tuple(fields)
    counts: Counter[str] = Counter()
    for record in records:
        counts.update(set(split_keywords(searchable_text(record, field_names))))
    return counts


@dataclass(frozen=True, slots=True)
class GapEntry:
    word: str
    count: int


@dataclass
class GapReport:
    entries: list[GapEntry]
    total_records: int
    total_candidates: int
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __len__(self) -> int:
        return len(self.entries)

    def as_dict(self) -> dict[str, int]:
        return {entry.word: entry.count for entry in self.entries}

    def worth_curating(self, min_count: int = DEFAULT_MIN_COUNT) -> GapReport:
        return GapReport(
            entries=[entry for entry in self.entries if entry.count >= min_count],
            total_records=self.total_records,
            total_candidates=self.total_candidates,
            generated_at=self.generated_at,
        )

    def to_payload(self) -> dict[str, object]:
        return {
            "timestamp": self.generated_at.isoformat(),
            "total_records": self.total_records,
            "total_candidates": self.total_candidates,
            "keywords": [{"word": entry.word, "count": entry.count} for entry in self.entries],
        }


def find_gaps(
    records: Sequence[CardRecord],
    dictionary: ReadingDictionary,
    *,
    fields: Iterable[str] = ANALYSIS_FIELDS,
) -> GapReport:
    """
    List keywords that still need a reading, most frequent first.

    Tokens already in ``dictionary`` and kana-only tokens are left out. The
    dictionary is only read.
    """
    counts = count_keywords(records, fields)
    entries = [
        GapEntry(word=word, count=count)
        for word, count in counts.items()
        if word not in dictionary and not is_kana_only(word)
    ]
    entries.sort(key=lambda entry: (-entry.count, entry.word))
    return GapReport(entries=entries, total_records=len(records), total_candidates=len(counts))


@dataclass
class UnreadName:
    name: str
    count: int
    example_id: str


def find_unread_records(records: Iterable[CardRecord]) -> list[UnreadName]:
    """Group names that need a reading but have an empty reading index."""
    grouped: dict[str, UnreadName] = {}
    for record in records:
        if record.reading.strip() or not record.name or is_kana_only(record.name):
            continue
        item = grouped.get(record.name)
        if item is None:
            grouped[record.name] = UnreadName(name=record.name, count=1, example_id=record.id)
        else:
            item.count += 1
    return sorted(grouped.values(), key=lambda item: -item.count)


def count_term_occurrences(
    records: Iterable[CardRecord],
    terms: Iterable[str],
    *,
    fields: Iterable[str] = ("name", "tags", "expansion"),
) -> list[tuple[str, int]]:
    """Case-insensitive count of records mentioning each term; zero counts dropped."""
    field_names = tuple(fields)
    term_list = [term for term in dict.fromkeys(terms) if term]
    counts: Counter[str] = Counter({term: 0 for term in term_list})
    for record in records:
        text = searchable_text(record, field_names).lower()
        for term in term_list:
            if term.lower() in text:
                counts[term] += 1
    return [(term, count) for term, count in counts.most_common() if count > 0]
