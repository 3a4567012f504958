from __future__ import annotations

from cardyomi.dictionary import ReadingDictionary
from cardyomi.gaps import (
    GapEntry,
    count_keywords,
    count_term_occurrences,
    find_gaps,
    find_unread_records,
    split_keywords,
)
from cardyomi.records import CardRecord


def _records() -> list[CardRecord]:
    return [
        CardRecord(id="1", name="森カリオペ", tags="#EN #Myth #歌", expansion="ブースターパック「QUINTET SPECTRUM」"),
        CardRecord(id="2", name="小鳥遊キアラ", tags="#EN #Myth Myth", card_type="ホロメン"),
        CardRecord(id="3", name="一伊那尓栖", tags="#EN/#Myth/#絵", expansion="2024"),
        CardRecord(id="4", name="ときのそら", tags="#JP #0期生 #歌", card_type="推しホロメン"),
    ]


def test_split_keywords_uses_narrow_and_wide_delimiters() -> None:
    text = "【推しホロメン】星街すいせい／Myth＃EN & AZKi：歌姫、2024。x"
    assert split_keywords(text) == ["推しホロメン", "星街すいせい", "Myth", "EN", "AZKi", "歌姫"]


def test_split_keywords_drops_short_and_numeric_tokens() -> None:
    assert split_keywords("a 12 ２０２４ xyz123 (Q) ok") == ["xyz123", "ok"]


def test_count_keywords_counts_each_record_once() -> None:
    counts = count_keywords(_records())
    assert counts["Myth"] == 3
    assert counts["EN"] == 3
    assert counts["ホロメン"] == 1
    assert "2024" not in counts


def test_find_gaps_reports_uncovered_tokens_by_frequency() -> None:
    dictionary = ReadingDictionary({"EN": "いーえぬ"})
    report = find_gaps(_records(), dictionary)
    gaps = report.as_dict()

    assert gaps["Myth"] == 3
    assert "EN" not in gaps
    # Kana-only tokens need no reading.
    assert "ときのそら" not in gaps
    assert "ホロメン" not in gaps
    assert not any(word.isdigit() for word in gaps)
    assert report.entries[0] == GapEntry(word="Myth", count=3)
    counts = [entry.count for entry in report.entries]
    assert counts == sorted(counts, reverse=True)
    assert report.total_records == 4


def test_worth_curating_view_leaves_dictionary_alone() -> None:
    dictionary = ReadingDictionary({"EN": "いーえぬ"})
    snapshot = dictionary.copy()
    report = find_gaps(_records(), dictionary)
    view = report.worth_curating()

    assert view.as_dict() == {"Myth": 3}
    assert all(entry.count >= 2 for entry in view.entries)
    assert len(report) > len(view)
    assert dictionary == snapshot


def test_gap_report_payload() -> None:
    report = find_gaps(_records(), ReadingDictionary())
    payload = report.to_payload()
    assert payload["total_records"] == 4
    assert {"word": "Myth", "count": 3} in payload["keywords"]
    assert isinstance(payload["timestamp"], str)


def test_find_unread_records_groups_names() -> None:
    records = [
        CardRecord(id="hBP01-010", name="星街すいせい"),
        CardRecord(id="hBP01-011", name="星街すいせい"),
        CardRecord(id="hBP01-012", name="ホロライブ"),
        CardRecord(id="hBP01-013", name="AZKi", reading="あずき"),
        CardRecord(id="hBP01-014", name="白上フブキ"),
    ]
    unread = find_unread_records(records)
    assert [(item.name, item.count, item.example_id) for item in unread] == [
        ("星街すいせい", 2, "hBP01-010"),
        ("白上フブキ", 1, "hBP01-014"),
    ]


def test_count_term_occurrences_is_case_insensitive() -> None:
    found = count_term_occurrences(_records(), ["myth", "EN", "Council"])
    assert found == [("myth", 3), ("EN", 3)]
