from __future__ import annotations

from yomi.dictionary import Reading, entry_view, parse_word_search, serialize_entry_view
from yomi.mora import PitchDescriptor
from yomi.render import render_entry, render_reading, render_story_table
from yomi.stories import Story

_ENTRY = {
    "readings": [
        {"reading": "きょう", "pitch": "1,2"},
        {"reading": "こんにち"},
        {"reading": "けふ", "pitch": ""},
    ],
    "kanji_spellings": [{"kanji_spelling": "今日"}],
    "senses": [
        {
            "parts_of_speech": ["n-adv", "n-t"],
            "glosses": [{"value": "today"}, {"value": "this day"}],
        }
    ],
}


def test_entry_view_parses_pitch_per_reading() -> None:
    view = entry_view(_ENTRY)
    assert [reading.text for reading in view.readings] == ["きょう", "こんにち", "けふ"]
    assert view.readings[0].pitch == PitchDescriptor(1, 2)
    assert view.readings[0].segments == ("", "きょ", "う")
    assert view.readings[1].pitch is None
    assert view.readings[2].pitch is None
    assert view.kanji_spellings == ["今日"]
    assert view.senses[0].parts_of_speech == ["n-adv", "n-t"]
    assert view.senses[0].glosses == ["today", "this day"]


def test_entry_view_tolerates_missing_sections() -> None:
    view = entry_view({"readings": None})
    assert view.readings == []
    assert view.kanji_spellings == []
    assert view.senses == []


def test_render_reading_marks_drop_and_unknown_pitch() -> None:
    assert render_reading(Reading("はし", PitchDescriptor(2))) == (
        '<span class="reading">は<span class="high_pitch">し</span></span>'
    )
    assert render_reading(Reading("はし", PitchDescriptor(0))) == (
        '<span class="reading"><span class="high_pitch"></span>はし</span>'
    )
    assert render_reading(Reading("はし")) == '<span class="reading unknown_pitch">はし﹖</span>'


def test_render_entry_escapes_text() -> None:
    html = render_entry(
        entry_view(
            {
                "readings": [{"reading": "え", "pitch": "1"}],
                "senses": [{"parts_of_speech": ["n"], "glosses": [{"value": "<picture>"}]}],
            }
        )
    )
    assert "&lt;picture&gt;" in html
    assert '<span class="pos">n</span>' in html
    assert '<span class="high_pitch">え</span>' in html


def test_parse_word_search_decodes_both_match_groups() -> None:
    result = parse_word_search(
        {
            "entries_start": [_ENTRY],
            "count_start": 120,
            "entries_mid": None,
            "kanji": [{"literal": "今"}, "junk"],
        }
    )
    assert len(result.entries_start) == 1
    assert result.count_start == 120
    assert result.entries_mid == []
    assert result.count_mid == 0
    assert result.kanji == [{"literal": "今"}]


def test_serialize_entry_view_exposes_segments() -> None:
    payload = serialize_entry_view(entry_view(_ENTRY))
    assert payload["readings"][0] == {
        "reading": "きょう",
        "pitch": [1, 2],
        "segments": ["", "きょ", "う"],
    }
    assert payload["readings"][1]["pitch"] is None
    assert payload["readings"][1]["segments"] == ["", "", "こんにち"]


def test_render_story_table_rows_follow_given_order() -> None:
    stories = [
        Story(id=2, title="B & C", countdown=4, rank=1, read_count=3, date_last_read=0),
        Story(id=1, title="A", countdown=9, rank=0, read_count=0, date_last_read=86400),
    ]
    html = render_story_table(stories, now=86400 * 3)
    assert html.index('story_id="2"') < html.index('story_id="1"')
    assert "B &amp; C" in html
    assert 'min="0" max="9"' in html
    assert 'value="4"' in html
    assert '<span title="days since last read">2</span>' in html


def test_entry_view_superscript_pitch_field_does_not_raise() -> None:
    view = entry_view({"readings": [{"reading": "はし", "pitch": "²"}, {"reading": "はし", "pitch": "2,²"}]})
    assert view.readings[0].pitch is None
    assert view.readings[1].pitch == PitchDescriptor(2, None)
