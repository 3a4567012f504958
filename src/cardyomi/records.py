from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from .dictionary import ParseError, SourceNotFoundError

__all__ = [
    "ANALYSIS_FIELDS",
    "INDEX_FIELDS",
    "CardRecord",
    "deserialize_records",
    "load_records",
    "save_records",
    "searchable_text",
    "serialize_records",
]

# Fields scanned when computing readings, and the wider set scanned for gaps.
INDEX_FIELDS = ("name", "tags")
ANALYSIS_FIELDS = ("name", "tags", "expansion", "card_type")

_FIELD_KEYS = {
    "id": "id",
    "name": "name",
    "tags": "tags",
    "expansion": "expansion",
    "card_type": "cardType",
    "reading": "kana",
}
_KNOWN_KEYS = set(_FIELD_KEYS.values())


@dataclass
class CardRecord:
    """
    One catalog entry.

    ``reading`` holds the space-joined reading index written by the enrich
    pass; everything else is owned by the catalog scraper. The text fields
    are normalized for searching only: ``source`` keeps the object exactly as
    it was loaded, and saving writes it back with just ``kana`` replaced.
    """

    id: str
    name: str
    tags: str = ""
    expansion: str = ""
    card_type: str = ""
    reading: str = ""
    extra: dict[str, object] = field(default_factory=dict)
    source: dict[str, object] = field(default_factory=dict, repr=False, compare=False)

    def field_text(self, name: str) -> str:
        value = getattr(self, name, "")
        return value if isinstance(value, str) else ""


def searchable_text(record: CardRecord, fields: Iterable[str] = INDEX_FIELDS) -> str:
    parts = [record.field_text(name) for name in fields]
    return " ".join(part for part in parts if part)


def _text_value(entry: Mapping[str, object], key: str) -> str:
    value = entry.get(key)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(str(item) for item in value if item is not None)
    return str(value)


def deserialize_records(data: Iterable[object]) -> list[CardRecord]:
    records: list[CardRecord] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, Mapping):
            raise ParseError(f"Record #{index} is not an object.")
        record_id = entry.get("id")
        name = entry.get("name")
        if isinstance(record_id, int) and not isinstance(record_id, bool):
            record_id = str(record_id)
        if not isinstance(record_id, str) or not record_id:
            raise ParseError(f"Record #{index} is missing a string 'id'.")
        if not isinstance(name, str):
            raise ParseError(f"Record {record_id} is missing a string 'name'.")
        extra = {key: value for key, value in entry.items() if key not in _KNOWN_KEYS}
        records.append(
            CardRecord(
                id=record_id,
                name=name,
                tags=_text_value(entry, "tags"),
                expansion=_text_value(entry, "expansion"),
                card_type=_text_value(entry, "cardType"),
                reading=_text_value(entry, "kana"),
                extra=extra,
                source=dict(entry),
            )
        )
    return records


def serialize_records(records: Iterable[CardRecord]) -> list[dict[str, object]]:
    payload: list[dict[str, object]] = []
    for record in records:
        entry: dict[str, object]
        if record.source:
            entry = dict(record.source)
        else:
            entry = {"id": record.id, "name": record.name}
            if record.card_type:
                entry["cardType"] = record.card_type
            if record.tags:
                entry["tags"] = record.tags
            if record.expansion:
                entry["expansion"] = record.expansion
        entry.update(record.extra)
        entry["kana"] = record.reading
        payload.append(entry)
    return payload


def load_records(path: Path) -> list[CardRecord]:
    path = Path(path)
    if not path.exists():
        raise SourceNotFoundError(f"Card data file not found: {path}")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ParseError(f"Failed to parse card data file: {path}") from exc
    if not isinstance(raw, list):
        raise ParseError(f"{path.name} must contain a JSON array of cards.")
    return deserialize_records(raw)


def save_records(records: Iterable[CardRecord], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(serialize_records(records), ensure_ascii=False, indent=2)
    path.write_text(payload + "\n", encoding="utf-8")
    return path
