from __future__ import annotations

from html import escape
from typing import Iterable

from .dictionary import EntryView, Reading
from .kanji import KanjiCard
from .stories import COUNTDOWN_MAX, COUNTDOWN_MIN, Story, days_since

__all__ = [
    "UNKNOWN_PITCH_MARK",
    "render_entry",
    "render_kanji_cards",
    "render_reading",
    "render_story_table",
]

UNKNOWN_PITCH_MARK = "﹖"


def render_reading(reading: Reading) -> str:
    if not reading.pitch_known:
        return f'<span class="reading unknown_pitch">{escape(reading.text)}{UNKNOWN_PITCH_MARK}</span>'
    pre_drop, drop, post_drop = reading.segments
    return (
        f'<span class="reading">{escape(pre_drop)}'
        f'<span class="high_pitch">{escape(drop)}</span>'
        f"{escape(post_drop)}</span>"
    )


def render_entry(view: EntryView) -> str:
    readings = "".join(render_reading(reading) for reading in view.readings)
    spellings = "".join(
        f'<span class="kanji_spelling">{escape(spelling)}</span>' for spelling in view.kanji_spellings
    )
    senses = []
    for sense in view.senses:
        pos = " ".join(f'<span class="pos">{escape(item)}</span>' for item in sense.parts_of_speech)
        glosses = "; &nbsp;&nbsp;".join(escape(gloss) for gloss in sense.glosses)
        senses.append(
            f'<span class="sense"><span>{pos}</span>'
            f'<span class="glosses">{glosses}</span></span>'
        )
    return (
        '<div class="entry"><div class="word">'
        f'<div class="readings">{readings}</div>'
        f'<div class="kanji_spellings">{spellings}</div>'
        f'<div class="senses">{"".join(senses)}</div>'
        "</div></div>"
    )


def render_kanji_cards(cards: Iterable[KanjiCard]) -> str:
    html = []
    for card in cards:
        onyomi = "".join(f'<span class="kanji_reading">{escape(value)}</span>' for value in card.onyomi)
        kunyomi = "".join(f'<span class="kanji_reading">{escape(value)}</span>' for value in card.kunyomi)
        meanings = ";  &nbsp;&nbsp;".join(escape(value) for value in card.meanings)
        misc = ""
        if card.stroke_count:
            misc += f'<span class="strokes">strokes: {card.stroke_count}</span>'
        if card.frequency:
            misc += f'<span class="frequency">frequency: {card.frequency}</span>'
        html.append(
            '<div class="kanji"><div>'
            f'<span class="literal">{escape(card.literal)}</span>'
            f'<div><span class="onyomi_readings">{onyomi}</span></div>'
            f'<div><span class="kunyomi_readings">{kunyomi}</span></div>'
            "</div>"
            f'<div class="kanji_meanings">{meanings}</div>'
            f'<div class="kanji_misc">{misc}</div>'
            "</div>"
        )
    return "".join(html)


def _story_row(story: Story, now: int) -> str:
    last_read = days_since(story.date_last_read, now) if story.date_last_read else ""
    return (
        "<tr>"
        f'<td><input story_id="{story.id}" type="number" class="count_spinner" '
        f'min="{COUNTDOWN_MIN}" max="{COUNTDOWN_MAX}" step="1" value="{story.countdown}"></td>'
        f'<td><span class="rank">{story.rank}</span></td>'
        f'<td><span title="number of times this story has been read">{story.read_count}</span></td>'
        f'<td><span title="days since last read">{last_read}</span></td>'
        f'<td><a class="story_title" story_id="{story.id}" '
        f'href="/story.html?storyId={story.id}">{escape(story.title)}</a></td>'
        "</tr>"
    )


def render_story_table(stories: Iterable[Story], now: int) -> str:
    """Render already ordered stories as the story list table."""
    rows = "".join(_story_row(story, now) for story in stories)
    return (
        '<table class="story_table"><tr>'
        "<th>Countdown</th>"
        "<th>Rank</th>"
        '<th title="number of times this story has been read">Read count</th>'
        "<th>Days since read</th>"
        "<th>Title</th>"
        f"</tr>{rows}</table>"
    )
