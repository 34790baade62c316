from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from .mora import PitchDescriptor, PitchSegments, parse_pitch, segment

__all__ = [
    "EntryView",
    "Reading",
    "Sense",
    "WordSearchResult",
    "entry_view",
    "parse_word_search",
    "serialize_entry_view",
]


@dataclass(frozen=True, slots=True)
class Reading:
    text: str
    pitch: PitchDescriptor | None = None

    @property
    def pitch_known(self) -> bool:
        return self.pitch is not None

    @property
    def segments(self) -> PitchSegments:
        return segment(self.text, self.pitch)


@dataclass(slots=True)
class Sense:
    parts_of_speech: list[str] = field(default_factory=list)
    glosses: list[str] = field(default_factory=list)


@dataclass(slots=True)
class EntryView:
    readings: list[Reading] = field(default_factory=list)
    kanji_spellings: list[str] = field(default_factory=list)
    senses: list[Sense] = field(default_factory=list)


@dataclass(slots=True)
class WordSearchResult:
    entries_start: list[EntryView]
    count_start: int
    entries_mid: list[EntryView]
    count_mid: int
    kanji: list[Mapping[str, object]]


def _entries(value: object) -> list[Mapping[str, object]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _strings(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def entry_view(entry: Mapping[str, object]) -> EntryView:
    readings: list[Reading] = []
    for item in _entries(entry.get("readings")):
        text = item.get("reading")
        if not isinstance(text, str):
            continue
        readings.append(Reading(text=text, pitch=parse_pitch(item.get("pitch"))))

    spellings: list[str] = []
    for item in _entries(entry.get("kanji_spellings")):
        spelling = item.get("kanji_spelling")
        if isinstance(spelling, str):
            spellings.append(spelling)

    senses: list[Sense] = []
    for item in _entries(entry.get("senses")):
        glosses = [
            gloss["value"]
            for gloss in _entries(item.get("glosses"))
            if isinstance(gloss.get("value"), str)
        ]
        senses.append(Sense(parts_of_speech=_strings(item.get("parts_of_speech")), glosses=glosses))

    return EntryView(readings=readings, kanji_spellings=spellings, senses=senses)


def _count(value: object, fallback: int) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return fallback


def parse_word_search(data: Mapping[str, object]) -> WordSearchResult:
    entries_start = [entry_view(entry) for entry in _entries(data.get("entries_start"))]
    entries_mid = [entry_view(entry) for entry in _entries(data.get("entries_mid"))]
    return WordSearchResult(
        entries_start=entries_start,
        count_start=_count(data.get("count_start"), len(entries_start)),
        entries_mid=entries_mid,
        count_mid=_count(data.get("count_mid"), len(entries_mid)),
        kanji=_entries(data.get("kanji")),
    )


def serialize_entry_view(view: EntryView) -> dict[str, object]:
    readings: list[dict[str, object]] = []
    for reading in view.readings:
        pre_drop, drop, post_drop = reading.segments
        readings.append(
            {
                "reading": reading.text,
                "pitch": [reading.pitch.drop, reading.pitch.rise] if reading.pitch else None,
                "segments": [pre_drop, drop, post_drop],
            }
        )
    return {
        "readings": readings,
        "kanji_spellings": list(view.kanji_spellings),
        "senses": [
            {"parts_of_speech": list(sense.parts_of_speech), "glosses": list(sense.glosses)}
            for sense in view.senses
        ],
    }
