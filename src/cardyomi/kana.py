from __future__ import annotations

import unicodedata
from typing import NamedTuple

__all__ = [
    "CanonicalForms",
    "canonical_forms",
    "is_kana_only",
    "is_numeric_token",
    "strip_symbols",
    "to_hiragana",
    "to_katakana",
]

HIRAGANA_START = 0x3041
HIRAGANA_END = 0x3096
KATAKANA_START = 0x30A1
KATAKANA_END = 0x30F6
KANA_OFFSET = KATAKANA_START - HIRAGANA_START

# Decorative characters ignored by loose matching.
STRIP_CHARS = frozenset("・ー-!?")


class CanonicalForms(NamedTuple):
    katakana: str
    hiragana: str


def to_katakana(text: str) -> str:
    result_chars: list[str] = []
    for ch in text:
        code = ord(ch)
        if HIRAGANA_START <= code <= HIRAGANA_END:
            result_chars.append(chr(code + KANA_OFFSET))
        else:
            result_chars.append(ch)
    return "".join(result_chars)


def to_hiragana(text: str) -> str:
    result_chars: list[str] = []
    for ch in text:
        code = ord(ch)
        if KATAKANA_START <= code <= KATAKANA_END:
            result_chars.append(chr(code - KANA_OFFSET))
        else:
            result_chars.append(ch)
    return "".join(result_chars)


def canonical_forms(text: str) -> CanonicalForms:
    """
    Fold width, case and kana script so two spellings compare equal.

    The hiragana form is derived from the katakana form rather than from the
    raw input, which keeps both forms script-pure for mixed input.
    """
    folded = unicodedata.normalize("NFKC", text).lower().strip()
    katakana = to_katakana(folded)
    return CanonicalForms(katakana=katakana, hiragana=to_hiragana(katakana))


def strip_symbols(form: str) -> str:
    return "".join(ch for ch in form if ch not in STRIP_CHARS and not ch.isspace())


def _is_kana_char(ch: str) -> bool:
    code = ord(ch)
    return (
        0x3040 <= code <= 0x309F  # Hiragana
        or 0x30A0 <= code <= 0x30FF  # Katakana, including ー and ・
    )


def is_kana_only(text: str) -> bool:
    """True when ``text`` needs no dictionary reading."""
    if not text:
        return False
    for ch in text:
        if ch.isspace() or "0" <= ch <= "9":
            continue
        if _is_kana_char(ch):
            continue
        return False
    return True


def is_numeric_token(value: str) -> bool:
    if not value:
        return False
    return all(ch.isdigit() for ch in value)
