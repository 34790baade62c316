from __future__ import annotations

from yomi.kanji import extract_kanji, has_kanji, kanji_cards, serialize_kanji_cards
from yomi.render import render_kanji_cards


def _kanji_record(literal: str, **misc) -> dict[str, object]:
    return {
        "literal": literal,
        "misc": misc,
        "readingmeaning": {
            "group": [
                {
                    "reading": [
                        {"type": "pinyin", "value": "xue2"},
                        {"type": "ja_on", "value": "ガク"},
                        {"type": "ja_kun", "value": "まな.ぶ"},
                    ],
                    "meaning": [
                        {"value": "study"},
                        {"value": "étude", "language": "fr"},
                        {"value": "learning"},
                    ],
                }
            ]
        },
    }


def test_extract_kanji_keeps_first_appearance_order() -> None:
    assert extract_kanji("学校で学ぶ") == ["学", "校"]
    assert extract_kanji("ひらがなだけ") == []
    assert has_kanji("日本")
    assert not has_kanji("カタカナ")


def test_kanji_cards_follow_word_order_and_filter_meanings() -> None:
    records = [
        _kanji_record("校", stroke_count=10, frequency=294),
        _kanji_record("学", stroke_count=8),
    ]
    cards = kanji_cards(records, "学校")
    assert [card.literal for card in cards] == ["学", "校"]
    first = cards[0]
    assert first.onyomi == ["ガク"]
    assert first.kunyomi == ["まな.ぶ"]
    assert first.meanings == ["study", "learning"]
    assert first.stroke_count == 8
    assert first.frequency is None
    assert cards[1].frequency == 294


def test_kanji_cards_skip_malformed_records() -> None:
    records = [
        "junk",
        {"literal": "学"},
        {"literal": "学", "readingmeaning": {"group": ["bad", {"reading": None}]}},
    ]
    cards = kanji_cards(records, "学")  # type: ignore[arg-type]
    assert len(cards) == 1
    assert cards[0].onyomi == []
    assert cards[0].meanings == []


def test_kanji_cards_repeated_characters_render_once() -> None:
    cards = kanji_cards([_kanji_record("人")], "人人")
    assert len(cards) == 1
    assert serialize_kanji_cards(cards)[0]["literal"] == "人"


def test_render_kanji_cards_includes_misc_only_when_known() -> None:
    html = render_kanji_cards(kanji_cards([_kanji_record("学", stroke_count=8)], "学"))
    assert '<span class="literal">学</span>' in html
    assert '<span class="kanji_reading">ガク</span>' in html
    assert "strokes: 8" in html
    assert "frequency" not in html
    assert "étude" not in html


def test_kanji_cards_ignore_unparseable_misc_numbers() -> None:
    cards = kanji_cards([_kanji_record("日", stroke_count="⁴", frequency="-3")], "日")
    assert cards[0].stroke_count is None
    assert cards[0].frequency is None
    cards = kanji_cards([_kanji_record("日", stroke_count=" 4 ")], "日")
    assert cards[0].stroke_count == 4
