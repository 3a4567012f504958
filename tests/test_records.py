from __future__ import annotations

import json
from pathlib import Path

import pytest

from cardyomi.dictionary import ParseError, SourceNotFoundError
from cardyomi.records import (
    ANALYSIS_FIELDS,
    CardRecord,
    load_records,
    save_records,
    searchable_text,
)


def _write_cards(path: Path, cards: list[dict[str, object]]) -> Path:
    path.write_text(json.dumps(cards, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def test_load_and_save_preserve_scraped_fields(tmp_path: Path) -> None:
    path = _write_cards(
        tmp_path / "cards.json",
        [
            {
                "id": "hSD01-001",
                "name": "ときのそら",
                "cardType": "推しホロメン",
                "rarity": "OSR",
                "color": "白",
                "tags": "#JP #0期生 #歌",
                "expansion": "スタートデッキ",
                "imageUrl": "https://example.invalid/hSD01-001.png",
            },
            {"id": 42, "name": "AZKi", "tags": ["#JP", "#歌"], "kana": "あずき", "expansion": "", "cardType": None},
        ],
    )
    original = json.loads(path.read_text(encoding="utf-8"))
    records = load_records(path)
    assert records[0].card_type == "推しホロメン"
    assert records[0].reading == ""
    assert records[0].extra["rarity"] == "OSR"
    assert records[1].id == "42"
    assert records[1].tags == "#JP #歌"
    assert records[1].reading == "あずき"

    records[0].reading = "ときのそら"
    save_records(records, path)
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload[0]["kana"] == "ときのそら"
    assert payload[0]["imageUrl"] == "https://example.invalid/hSD01-001.png"
    assert payload[0]["cardType"] == "推しホロメン"
    assert "ときのそら" in path.read_text(encoding="utf-8")
    # Only the reading is written; ids, list tags and empty fields stay as scraped.
    assert payload[0] == {**original[0], "kana": "ときのそら"}
    assert payload[1] == original[1]
    assert list(payload[1]) == list(original[1])


def test_save_builds_objects_for_new_records(tmp_path: Path) -> None:
    path = tmp_path / "cards.json"
    save_records([CardRecord(id="1", name="雪花ラミィ", tags="#JP #5期生", reading="ゆきはならみぃ")], path)
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload == [{"id": "1", "name": "雪花ラミィ", "tags": "#JP #5期生", "kana": "ゆきはならみぃ"}]


def test_searchable_text_joins_non_empty_fields() -> None:
    record = CardRecord(id="1", name="雪花ラミィ", tags="#JP #5期生", card_type="ホロメン")
    assert searchable_text(record) == "雪花ラミィ #JP #5期生"
    assert searchable_text(record, ANALYSIS_FIELDS) == "雪花ラミィ #JP #5期生 ホロメン"


def test_load_records_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SourceNotFoundError):
        load_records(tmp_path / "cards.json")


@pytest.mark.parametrize(
    "content",
    [
        "[{",
        json.dumps({"id": "1", "name": "x"}),
        json.dumps([{"name": "no id"}]),
        json.dumps([{"id": "1"}]),
        json.dumps(["not an object"]),
    ],
)
def test_load_records_malformed(tmp_path: Path, content: str) -> None:
    path = tmp_path / "cards.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ParseError):
        load_records(path)
