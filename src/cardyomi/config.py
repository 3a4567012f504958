from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

__all__ = [
    "CARDS_FILE_ENV",
    "DATA_DIR_ENV",
    "DEFAULT_CARDS_FILENAME",
    "DEFAULT_DICTIONARY_FILENAME",
    "DICTIONARY_FILE_ENV",
    "CatalogPaths",
    "resolve_paths",
]

DATA_DIR_ENV = "CARDYOMI_DATA_DIR"
CARDS_FILE_ENV = "CARDYOMI_CARDS_FILE"
DICTIONARY_FILE_ENV = "CARDYOMI_DICTIONARY_FILE"

DEFAULT_DATA_DIR = Path("data")
DEFAULT_CARDS_FILENAME = "cards.json"
DEFAULT_DICTIONARY_FILENAME = "kana-dictionary.json"


@dataclass(frozen=True)
class CatalogPaths:
    data_dir: Path
    cards: Path
    dictionary: Path


def _env_path(name: str) -> Path | None:
    value = os.environ.get(name)
    if not value or not value.strip():
        return None
    return Path(value.strip()).expanduser()


def resolve_paths(
    data_dir: Path | str | None = None,
    *,
    cards: Path | str | None = None,
    dictionary: Path | str | None = None,
) -> CatalogPaths:
    """Explicit arguments win over environment variables, which win over defaults."""
    base = Path(data_dir).expanduser() if data_dir else _env_path(DATA_DIR_ENV) or DEFAULT_DATA_DIR
    cards_path = Path(cards).expanduser() if cards else _env_path(CARDS_FILE_ENV) or base / DEFAULT_CARDS_FILENAME
    dictionary_path = (
        Path(dictionary).expanduser()
        if dictionary
        else _env_path(DICTIONARY_FILE_ENV) or base / DEFAULT_DICTIONARY_FILENAME
    )
    return CatalogPaths(data_dir=base, cards=cards_path, dictionary=dictionary_path)
