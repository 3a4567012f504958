from .dictionary import (
    DictionaryEntry,
    LoadError,
    ParseError,
    ReadingDictionary,
    SourceNotFoundError,
    load_dictionary,
    save_dictionary,
)
from .gaps import GapReport, find_gaps, find_unread_records
from .indexer import compute_reading, enrich_records
from .kana import canonical_forms, is_kana_only, strip_symbols
from .matcher import MatchResult, SearchIndex, match_name, match_record, matches
from .records import CardRecord, load_records, save_records

__all__ = [
    "CardRecord",
    "load_records",
    "save_records",
    "canonical_forms",
    "strip_symbols",
    "is_kana_only",
    "DictionaryEntry",
    "ReadingDictionary",
    "load_dictionary",
    "save_dictionary",
    "LoadError",
    "SourceNotFoundError",
    "ParseError",
    "compute_reading",
    "enrich_records",
    "MatchResult",
    "SearchIndex",
    "match_name",
    "match_record",
    "matches",
    "GapReport",
    "find_gaps",
    "find_unread_records",
]
