from __future__ import annotations

import json
from pathlib import Path

import pytest

from cardyomi.dictionary import (
    DictionaryEntry,
    LoadError,
    ParseError,
    ReadingDictionary,
    SourceNotFoundError,
    load_dictionary,
    merge_entries,
    prune_kana_only,
    save_dictionary,
)


def _write_json(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def test_entries_visit_longest_keys_first_with_lexicographic_ties() -> None:
    dictionary = ReadingDictionary({"ab": "あぶ", "b": "び", "abc": "あぶく", "aa": "ああ"})
    keys = [entry.key for entry in dictionary.entries_by_descending_key_length()]
    assert keys == ["abc", "aa", "ab", "b"]


def test_length_ordered_view_is_restartable_and_sees_edits() -> None:
    dictionary = ReadingDictionary({"ホロライブ": "ほろらいぶ"})
    first = list(dictionary.entries_by_descending_key_length())
    assert first == list(dictionary.entries_by_descending_key_length())

    dictionary.add("ホロライブ4期生", "ほろらいぶよんきせい")
    keys = [entry.key for entry in dictionary.entries_by_descending_key_length()]
    assert keys == ["ホロライブ4期生", "ホロライブ"]

    assert dictionary.remove("ホロライブ")
    assert not dictionary.remove("ホロライブ")
    assert [entry.key for entry in dictionary.entries_by_descending_key_length()] == ["ホロライブ4期生"]


def test_empty_keys_are_rejected() -> None:
    with pytest.raises(ValueError):
        DictionaryEntry("", "から")
    with pytest.raises(ValueError):
        ReadingDictionary({"": "から"})


def test_load_dictionary_reads_json_object(tmp_path: Path) -> None:
    path = _write_json(tmp_path / "kana-dictionary.json", {"雪民": "ゆきみん", "SSRB": "えすえすあーるびー"})
    dictionary = load_dictionary(path)
    assert len(dictionary) == 2
    assert dictionary.get("雪民") == "ゆきみん"
    assert "SSRB" in dictionary


def test_load_dictionary_missing_file(tmp_path: Path) -> None:
    missing = tmp_path / "absent.json"
    with pytest.raises(SourceNotFoundError) as excinfo:
        load_dictionary(missing)
    assert str(missing) in str(excinfo.value)
    assert isinstance(excinfo.value, FileNotFoundError)
    assert isinstance(excinfo.value, LoadError)


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps(["雪民", "ゆきみん"]),
        json.dumps({"雪民": 3}),
        json.dumps({"": "から"}),
    ],
)
def test_load_dictionary_malformed(tmp_path: Path, content: str) -> None:
    path = tmp_path / "kana-dictionary.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ParseError):
        load_dictionary(path)


def test_save_dictionary_sorts_by_key(tmp_path: Path) -> None:
    dictionary = ReadingDictionary()
    dictionary.add("雪民", "ゆきみん")
    dictionary.add("Myth", "みす")
    dictionary.add("ホロライブ4期生", "ほろらいぶよんきせい")
    path = save_dictionary(dictionary, tmp_path / "out" / "kana-dictionary.json")

    text = path.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert "ゆきみん" in text
    keys = list(json.loads(text).keys())
    assert keys == sorted(keys)
    assert load_dictionary(path) == dictionary


def test_merge_keeps_existing_readings_by_default() -> None:
    dictionary = ReadingDictionary({"座員": "ざいん", "雪民": "ゆきみん"})
    result = merge_entries(dictionary, {"座員": "ざいんX", "Myth": "みす", "雪民": "ゆきみん"})

    assert result.added == ["Myth"]
    assert sorted(result.kept) == ["座員", "雪民"]
    assert result.replaced == []
    assert result.changed
    assert result.dictionary.get("座員") == "ざいん"
    assert result.dictionary.get("Myth") == "みす"
    assert "Myth" not in dictionary


def test_merge_overwrite_replaces_readings() -> None:
    dictionary = ReadingDictionary({"常闇トワ": "とこやみトワ"})
    result = merge_entries(dictionary, {"常闇トワ": "とこやみとわ"}, overwrite=True)
    assert result.replaced == ["常闇トワ"]
    assert result.dictionary.get("常闇トワ") == "とこやみとわ"
    assert dictionary.get("常闇トワ") == "とこやみトワ"


def test_prune_kana_only_returns_new_dictionary() -> None:
    dictionary = ReadingDictionary(
        {"あやふぶみ": "あやふぶみ", "しらけん": "しらけん", "不知火建設": "しらぬいけんせつ"}
    )
    pruned, removed = prune_kana_only(dictionary)
    assert removed == ["あやふぶみ", "しらけん"]
    assert pruned.keys() == ["不知火建設"]
    assert len(dictionary) == 3


def test_entries_are_key_sorted() -> None:
    dictionary = ReadingDictionary({"雪民": "ゆきみん", "SSRB": "えすえすあーるびー"})
    assert dictionary.entries() == [
        DictionaryEntry("SSRB", "えすえすあーるびー"),
        DictionaryEntry("雪民", "ゆきみん"),
    ]
