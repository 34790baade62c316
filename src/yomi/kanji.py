from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Mapping

__all__ = [
    "KanjiCard",
    "extract_kanji",
    "has_kanji",
    "kanji_cards",
    "serialize_kanji_cards",
]

# CJK unified ideographs as matched by the dictionary service.
_KANJI_RE = re.compile(r"[\u4e00-\u9faf]")


@dataclass(slots=True)
class KanjiCard:
    literal: str
    onyomi: list[str]
    kunyomi: list[str]
    meanings: list[str]
    stroke_count: int | None = None
    frequency: int | None = None


def has_kanji(text: str) -> bool:
    return _KANJI_RE.search(text) is not None


def extract_kanji(text: str) -> list[str]:
    seen: dict[str, None] = {}
    for ch in _KANJI_RE.findall(text):
        seen.setdefault(ch, None)
    return list(seen)


def _mapping(value: object) -> Mapping[str, object]:
    return value if isinstance(value, Mapping) else {}


def _entries(value: object) -> list[Mapping[str, object]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _positive_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int) and value > 0:
        return value
    if isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return None
        return parsed if parsed > 0 else None
    return None


def _readings_of_type(group: Mapping[str, object], reading_type: str) -> list[str]:
    values: list[str] = []
    for reading in _entries(group.get("reading")):
        value = reading.get("value")
        if reading.get("type") == reading_type and isinstance(value, str):
            values.append(value)
    return values


def _default_meanings(group: Mapping[str, object]) -> list[str]:
    values: list[str] = []
    for meaning in _entries(group.get("meaning")):
        value = meaning.get("value")
        # Untagged meanings are the default (English) glosses.
        if meaning.get("language") or not isinstance(value, str):
            continue
        values.append(value)
    return values


def kanji_cards(records: Iterable[Mapping[str, object]], word: str) -> list[KanjiCard]:
    """Project kanji records into one card per reading/meaning group.

    Cards follow the order characters first appear in ``word``.
    """
    records = [record for record in records if isinstance(record, Mapping)]
    cards: list[KanjiCard] = []
    for ch in dict.fromkeys(word):
        for record in records:
            if record.get("literal") != ch:
                continue
            misc = _mapping(record.get("misc"))
            readingmeaning = _mapping(record.get("readingmeaning"))
            for group in _entries(readingmeaning.get("group")):
                cards.append(
                    KanjiCard(
                        literal=ch,
                        onyomi=_readings_of_type(group, "ja_on"),
                        kunyomi=_readings_of_type(group, "ja_kun"),
                        meanings=_default_meanings(group),
                        stroke_count=_positive_int(misc.get("stroke_count")),
                        frequency=_positive_int(misc.get("frequency")),
                    )
                )
    return cards


def serialize_kanji_cards(cards: Iterable[KanjiCard]) -> list[dict[str, object]]:
    return [
        {
            "literal": card.literal,
            "onyomi": list(card.onyomi),
            "kunyomi": list(card.kunyomi),
            "meanings": list(card.meanings),
            "stroke_count": card.stroke_count,
            "frequency": card.frequency,
        }
        for card in cards
    ]
