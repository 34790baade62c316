from __future__ import annotations

import pytest

from yomi.mora import (
    SMALL_KANA,
    PitchDescriptor,
    is_small_kana,
    parse_pitch,
    segment,
    split_mora,
)


def test_small_kana_set_is_exactly_six_characters() -> None:
    assert SMALL_KANA == {"ゃ", "ゅ", "ょ", "ャ", "ュ", "ョ"}
    assert is_small_kana("ょ")
    assert is_small_kana("ャ")
    assert not is_small_kana("っ")
    assert not is_small_kana("ぁ")
    assert not is_small_kana("よ")
    assert not is_small_kana(None)


def test_split_mora_pairs_base_with_following_small_kana() -> None:
    assert split_mora("きょう") == ["きょ", "う"]
    assert split_mora("シャツ") == ["シャ", "ツ"]
    assert split_mora("りょこう") == ["りょ", "こ", "う"]


def test_split_mora_keeps_sokuon_as_own_mora() -> None:
    assert split_mora("がっこう") == ["が", "っ", "こ", "う"]


def test_split_mora_leading_and_trailing_small_kana_stand_alone() -> None:
    assert split_mora("ょう") == ["ょ", "う"]
    assert split_mora("あょ") == ["あょ"]
    assert split_mora("ょ") == ["ょ"]
    assert split_mora("") == []


def test_split_mora_consumes_paired_small_kana() -> None:
    # The second small kana has no unpaired base before it.
    assert split_mora("きょょ") == ["きょ", "ょ"]


@pytest.mark.parametrize("reading", ["", "きょう", "がっこう", "テレビ"])
def test_segment_flat_and_unknown_pitch_leave_reading_whole(reading: str) -> None:
    assert segment(reading, None) == ("", "", reading)
    assert segment(reading, PitchDescriptor(0, 1)) == ("", "", reading)
    assert segment(reading, PitchDescriptor(0)) == ("", "", reading)


def test_segment_counts_palatalized_mora_once() -> None:
    assert segment("きょう", PitchDescriptor(2, 3)) == ("きょ", "う", "")
    assert segment("きょう", PitchDescriptor(1, 2)) == ("", "きょ", "う")


def test_segment_first_mora_drop() -> None:
    result = segment("がっこう", PitchDescriptor(1, 2))
    assert result == ("", "が", "っこう")
    assert result.pre_drop == ""
    assert result.drop == "が"
    assert result.post_drop == "っこう"


def test_segment_is_lossless_when_drop_in_range() -> None:
    reading = "しゅっちょう"
    for drop in range(1, len(split_mora(reading)) + 1):
        pre_drop, drop_span, post_drop = segment(reading, PitchDescriptor(drop))
        assert pre_drop + drop_span + post_drop == reading
        assert drop_span == split_mora(reading)[drop - 1]


def test_segment_saturates_when_drop_past_end() -> None:
    assert segment("きょう", PitchDescriptor(5, 6)) == ("きょう", "", "")
    assert segment("", PitchDescriptor(2)) == ("", "", "")


def test_segment_negative_drop_is_treated_as_unmarked() -> None:
    assert segment("はし", PitchDescriptor(-1)) == ("", "", "はし")


def test_parse_pitch_reads_comma_separated_pairs() -> None:
    assert parse_pitch("2,3") == PitchDescriptor(2, 3)
    assert parse_pitch(" 1 , 2 ") == PitchDescriptor(1, 2)
    assert parse_pitch("0") == PitchDescriptor(0, None)
    assert parse_pitch("3,4,5") == PitchDescriptor(3, 4)
    assert parse_pitch([1, 2]) == PitchDescriptor(1, 2)
    assert parse_pitch(0) == PitchDescriptor(0, None)


def test_parse_pitch_unparseable_means_unknown() -> None:
    assert parse_pitch(None) is None
    assert parse_pitch("") is None
    assert parse_pitch("x,2") is None
    assert parse_pitch([]) is None
    assert parse_pitch(True) is None
    assert parse_pitch("2,?") == PitchDescriptor(2, None)


@pytest.mark.parametrize("raw", ["²", "⁴,1", "-²"])
def test_parse_pitch_superscript_digits_mean_unknown(raw: str) -> None:
    assert parse_pitch(raw) is None


def test_parse_pitch_superscript_rise_keeps_drop() -> None:
    assert parse_pitch("2,²") == PitchDescriptor(2, None)
