from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Sequence

__all__ = [
    "SMALL_KANA",
    "PitchDescriptor",
    "PitchSegments",
    "is_small_kana",
    "split_mora",
    "parse_pitch",
    "segment",
]

# Small ya/yu/yo. Each one fuses with the preceding character into one mora.
SMALL_KANA = frozenset({"ゃ", "ゅ", "ょ", "ャ", "ュ", "ョ"})


@dataclass(frozen=True, slots=True)
class PitchDescriptor:
    """1-based mora positions of the pitch fall and rise.

    ``drop == 0`` is a flat (heiban) word. ``rise`` is carried through from the
    dictionary data but does not affect segmentation.
    """

    drop: int
    rise: int | None = None


class PitchSegments(NamedTuple):
    pre_drop: str
    drop: str
    post_drop: str


def is_small_kana(ch: str | None) -> bool:
    return ch is not None and ch in SMALL_KANA


def split_mora(reading: str) -> list[str]:
    mora: list[str] = []
    chars = list(reading)
    idx = 0
    while idx < len(chars):
        nxt = chars[idx + 1] if idx + 1 < len(chars) else None
        if is_small_kana(nxt):
            mora.append(chars[idx] + nxt)
            idx += 2
        else:
            mora.append(chars[idx])
            idx += 1
    return mora


def _parse_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.startswith(("-", "+")):
            sign, digits = text[0], text[1:]
        else:
            sign, digits = "", text
        if digits.isdigit():
            try:
                return int(sign + digits)
            except ValueError:
                return None
    return None


def parse_pitch(value: object) -> PitchDescriptor | None:
    """Parse dictionary pitch data such as ``"2,3"`` into a descriptor.

    Returns None when no usable drop position is present, which callers treat
    as "pitch unknown".
    """
    if value is None:
        return None
    if isinstance(value, PitchDescriptor):
        return value
    fields: Sequence[object]
    if isinstance(value, str):
        fields = value.split(",")
    elif isinstance(value, (list, tuple)):
        fields = value
    else:
        fields = [value]
    if not fields:
        return None
    drop = _parse_int(fields[0])
    if drop is None:
        return None
    rise = _parse_int(fields[1]) if len(fields) > 1 else None
    return PitchDescriptor(drop=drop, rise=rise)


def segment(reading: str, pitch: PitchDescriptor | None) -> PitchSegments:
    if pitch is None or pitch.drop <= 0:
        return PitchSegments("", "", reading)
    mora = split_mora(reading)
    drop_index = pitch.drop - 1
    return PitchSegments(
        "".join(mora[:drop_index]),
        "".join(mora[drop_index : drop_index + 1]),
        "".join(mora[drop_index + 1 :]),
    )
