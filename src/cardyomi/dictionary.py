from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Mapping

from .kana import is_kana_only

__all__ = [
    "DictionaryEntry",
    "LoadError",
    "MergeResult",
    "ParseError",
    "ReadingDictionary",
    "SourceNotFoundError",
    "load_dictionary",
    "merge_entries",
    "prune_kana_only",
    "save_dictionary",
]


class LoadError(RuntimeError):
    """Raised when a dictionary or record source cannot be loaded."""


class SourceNotFoundError(LoadError, FileNotFoundError):
    """Raised when the source file does not exist."""


class ParseError(LoadError, ValueError):
    """Raised when the source file exists but its content is malformed."""


@dataclass(frozen=True, slots=True)
class DictionaryEntry:
    key: str
    reading: str

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("Dictionary keys must be non-empty.")


class ReadingDictionary:
    """
    Curated table of literal substrings and their hiragana readings.

    The table is the only source of readings. Lookups never cache the
    length-ordered view, so edits made through ``add``/``remove`` are visible
    to the next traversal.
    """

    def __init__(self, entries: Mapping[str, str] | Iterable[DictionaryEntry] | None = None) -> None:
        self._table: dict[str, str] = {}
        if entries is None:
            return
        if isinstance(entries, Mapping):
            for key, reading in entries.items():
                self.add(key, reading)
        else:
            for entry in entries:
                self.add(entry.key, entry.reading)

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, key: object) -> bool:
        return key in self._table

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReadingDictionary):
            return NotImplemented
        return self._table == other._table

    def __repr__(self) -> str:
        return f"ReadingDictionary({len(self._table)} entries)"

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._table.get(key, default)

    def add(self, key: str, reading: str) -> None:
        if not isinstance(key, str) or not key:
            raise ValueError("Dictionary keys must be non-empty strings.")
        if not isinstance(reading, str):
            raise ValueError(f"Reading for {key!r} must be a string.")
        self._table[key] = reading

    def remove(self, key: str) -> bool:
        return self._table.pop(key, None) is not None

    def keys(self) -> list[str]:
        return sorted(self._table)

    def items(self) -> list[tuple[str, str]]:
        return sorted(self._table.items())

    def entries(self) -> list[DictionaryEntry]:
        return [DictionaryEntry(key, reading) for key, reading in self.items()]

    def entries_by_descending_key_length(self) -> Iterator[DictionaryEntry]:
        # Equal lengths fall back to lexicographic key order.
        ordered = sorted(self._table.items(), key=lambda item: (-len(item[0]), item[0]))
        for key, reading in ordered:
            yield DictionaryEntry(key, reading)

    def copy(self) -> ReadingDictionary:
        return ReadingDictionary(dict(self._table))

    def to_dict(self) -> dict[str, str]:
        return {key: self._table[key] for key in sorted(self._table)}


def load_dictionary(path: Path) -> ReadingDictionary:
    path = Path(path)
    if not path.exists():
        raise SourceNotFoundError(f"Dictionary file not found: {path}")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ParseError(f"Failed to parse dictionary file: {path}") from exc
    if not isinstance(raw, dict):
        raise ParseError(f"{path.name} must contain a JSON object of key/reading pairs.")
    dictionary = ReadingDictionary()
    for key, reading in raw.items():
        if not key:
            raise ParseError(f"{path.name} contains an empty key.")
        if not isinstance(reading, str):
            raise ParseError(f"{path.name}: reading for {key!r} must be a string.")
        dictionary.add(key, reading)
    return dictionary


def save_dictionary(dictionary: ReadingDictionary, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(dictionary.to_dict(), ensure_ascii=False, indent=2)
    path.write_text(payload + "\n", encoding="utf-8")
    return path


@dataclass
class MergeResult:
    dictionary: ReadingDictionary
    added: list[str] = field(default_factory=list)
    kept: list[str] = field(default_factory=list)
    replaced: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.replaced)


def merge_entries(
    dictionary: ReadingDictionary,
    additions: Mapping[str, str] | ReadingDictionary,
    *,
    overwrite: bool = False,
) -> MergeResult:
    """
    Return a new dictionary with ``additions`` folded in.

    Existing readings win unless ``overwrite`` is set; the input dictionary
    is left untouched.
    """
    merged = dictionary.copy()
    result = MergeResult(dictionary=merged)
    pairs = additions.items() if isinstance(additions, ReadingDictionary) else sorted(additions.items())
    for key, reading in pairs:
        current = merged.get(key)
        if current is None:
            merged.add(key, reading)
            result.added.append(key)
        elif current == reading:
            result.kept.append(key)
        elif overwrite:
            merged.add(key, reading)
            result.replaced.append(key)
        else:
            result.kept.append(key)
    return result


def prune_kana_only(dictionary: ReadingDictionary) -> tuple[ReadingDictionary, list[str]]:
    pruned = ReadingDictionary()
    removed: list[str] = []
    for entry in dictionary.entries():
        if is_kana_only(entry.key):
            removed.append(entry.key)
            continue
        pruned.add(entry.key, entry.reading)
    return pruned, removed
