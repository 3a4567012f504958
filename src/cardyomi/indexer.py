from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from .dictionary import ReadingDictionary
from .records import INDEX_FIELDS, CardRecord, searchable_text

__all__ = [
    "EnrichSummary",
    "compute_reading",
    "enrich_records",
    "format_reading",
    "set_debug_logging",
]

ProgressCallback = Callable[[dict[str, object]], None]

_DEBUG_LOG = False


def set_debug_logging(enabled: bool) -> None:
    global _DEBUG_LOG
    _DEBUG_LOG = enabled


def _debug_log(message: str) -> None:
    if _DEBUG_LOG:
        print(f"[cardyomi enrich debug] {message}")


@dataclass
class EnrichSummary:
    total: int = 0
    changed: int = 0
    unchanged: int = 0
    empty: int = 0


def compute_reading(
    record: CardRecord,
    dictionary: ReadingDictionary,
    *,
    fields: Iterable[str] = INDEX_FIELDS,
) -> set[str]:
    """
    Collect the reading of every dictionary key found in the record's text.

    Keys are visited longest first, but a match never consumes text: a key
    nested inside a longer matched key still contributes its own reading.
    """
    text = searchable_text(record, fields)
    readings: set[str] = set()
    if not text:
        return readings
    for entry in dictionary.entries_by_descending_key_length():
        if entry.key in text and entry.reading:
            readings.add(entry.reading)
    return readings


def format_reading(readings: Iterable[str]) -> str:
    return " ".join(sorted(set(readings)))


def enrich_records(
    records: Sequence[CardRecord],
    dictionary: ReadingDictionary,
    *,
    fields: Iterable[str] = INDEX_FIELDS,
    progress: ProgressCallback | None = None,
) -> EnrichSummary:
    """Recompute and overwrite ``reading`` for every record."""
    field_names = tuple(fields)
    summary = EnrichSummary(total=len(records))
    if progress:
        progress({"event": "start", "total": summary.total})
    for index, record in enumerate(records, start=1):
        previous = record.reading
        record.reading = format_reading(compute_reading(record, dictionary, fields=field_names))
        if record.reading == previous:
            summary.unchanged += 1
        else:
            summary.changed += 1
            _debug_log(f"{record.id} {record.name!r}: {previous!r} -> {record.reading!r}")
        if not record.reading:
            summary.empty += 1
        if progress:
            progress(
                {
                    "event": "record",
                    "index": index,
                    "total": summary.total,
                    "id": record.id,
                    "name": record.name,
                    "changed": record.reading != previous,
                }
            )
    if progress:
        progress(
            {
                "event": "done",
                "total": summary.total,
                "changed": summary.changed,
                "empty": summary.empty,
            }
        )
    return summary
