from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Iterable, Iterator, Mapping

__all__ = [
    "COUNTDOWN_MAX",
    "COUNTDOWN_MIN",
    "DRILL_ALL_IN_PROGRESS",
    "INITIAL_COUNTDOWN",
    "UPDATE_FIELDS",
    "VIEW_ADDED",
    "VIEW_RANK",
    "Story",
    "StoryCollection",
    "apply_countdown",
    "bump_rank",
    "days_since",
    "deserialize_stories",
    "ingest",
    "mark_read",
    "order",
    "resolve_drill_target",
    "serialize_story",
    "story_from_payload",
    "to_update_payload",
]

INITIAL_COUNTDOWN = 7
COUNTDOWN_MIN = 0
COUNTDOWN_MAX = 9

# Pseudo story id: drill every story in the top rank tier at once.
# Service ids are never negative.
DRILL_ALL_IN_PROGRESS = -1

VIEW_RANK = "rank"
VIEW_ADDED = "added"

# Scalar fields sent back on partial updates. Content-sized fields stay on the
# server.
UPDATE_FIELDS = (
    "id",
    "countdown",
    "rank",
    "read_count",
    "date_added",
    "date_last_read",
)


@dataclass(frozen=True, slots=True)
class Story:
    id: int
    title: str = ""
    link: str = ""
    content: str = ""
    countdown: int = INITIAL_COUNTDOWN
    rank: int = 0
    read_count: int = 0
    date_added: int = 0
    date_last_read: int = 0
    words: list[object] | None = None
    tokens: list[object] | None = None


class StoryCollection(Mapping[int, Story]):
    """Read-only, insertion-ordered ``id -> Story`` mapping.

    Every change produces a new collection with a higher ``version`` so owners
    can tell which snapshot a projection was computed from.
    """

    def __init__(self, stories: Mapping[int, Story] | None = None, version: int = 0) -> None:
        self._stories: dict[int, Story] = dict(stories or {})
        self.version = version

    def __getitem__(self, story_id: int) -> Story:
        return self._stories[story_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._stories)

    def __len__(self) -> int:
        return len(self._stories)

    def __repr__(self) -> str:
        return f"StoryCollection(version={self.version}, size={len(self._stories)})"

    def stories(self) -> list[Story]:
        return list(self._stories.values())

    def with_story(self, story: Story) -> "StoryCollection":
        updated = dict(self._stories)
        updated[story.id] = story
        return StoryCollection(updated, version=self.version + 1)


def _clamp_countdown(value: int) -> int:
    return max(COUNTDOWN_MIN, min(COUNTDOWN_MAX, value))


def _int_field(entry: Mapping[str, object], key: str, default: int) -> int:
    value = entry.get(key)
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _str_field(entry: Mapping[str, object], key: str) -> str:
    value = entry.get(key)
    return value if isinstance(value, str) else ""


def _list_field(entry: Mapping[str, object], key: str) -> list[object] | None:
    value = entry.get(key)
    return list(value) if isinstance(value, list) else None


def story_from_payload(entry: Mapping[str, object]) -> Story | None:
    if not isinstance(entry, Mapping):
        return None
    story_id = entry.get("id")
    if isinstance(story_id, bool) or not isinstance(story_id, int):
        return None
    return Story(
        id=story_id,
        title=_str_field(entry, "title"),
        link=_str_field(entry, "link"),
        content=_str_field(entry, "content"),
        countdown=_clamp_countdown(_int_field(entry, "countdown", INITIAL_COUNTDOWN)),
        rank=_int_field(entry, "rank", 0),
        read_count=max(0, _int_field(entry, "read_count", 0)),
        date_added=_int_field(entry, "date_added", 0),
        date_last_read=_int_field(entry, "date_last_read", 0),
        words=_list_field(entry, "words"),
        tokens=_list_field(entry, "tokens"),
    )


def deserialize_stories(data: Iterable[Mapping[str, object]] | None) -> list[Story]:
    stories: list[Story] = []
    for entry in data or []:
        story = story_from_payload(entry)
        if story is not None:
            stories.append(story)
    return stories


def serialize_story(story: Story) -> dict[str, object]:
    return {
        "id": story.id,
        "title": story.title,
        "link": story.link,
        "content": story.content,
        "countdown": story.countdown,
        "rank": story.rank,
        "read_count": story.read_count,
        "date_added": story.date_added,
        "date_last_read": story.date_last_read,
        "words": list(story.words) if story.words is not None else None,
        "tokens": list(story.tokens) if story.tokens is not None else None,
    }


def to_update_payload(story: Story) -> dict[str, object]:
    return {name: getattr(story, name) for name in UPDATE_FIELDS}


def ingest(
    stories: Iterable[Story],
    previous: StoryCollection | None = None,
) -> StoryCollection:
    """Build a fresh collection from a full fetch.

    Duplicate ids keep the first position and the last record.
    """
    by_id: dict[int, Story] = {}
    for story in stories:
        by_id[story.id] = story
    version = previous.version + 1 if previous is not None else 1
    return StoryCollection(by_id, version=version)


def order(collection: Mapping[int, Story], view: str = VIEW_RANK) -> list[Story]:
    stories = list(collection.values())
    # sorted() is stable, so exact ties keep insertion order.
    if view == VIEW_RANK:
        return sorted(stories, key=lambda story: (-story.rank, story.date_last_read))
    if view == VIEW_ADDED:
        return sorted(stories, key=lambda story: -story.date_added)
    raise ValueError(f"Unknown story view: {view!r}")


def apply_countdown(story: Story, value: int) -> Story:
    return replace(story, countdown=_clamp_countdown(int(value)))


def bump_rank(story: Story, delta: int) -> Story:
    step = (delta > 0) - (delta < 0)
    if step == 0:
        return story
    return replace(story, rank=story.rank + step)


def mark_read(story: Story, now: int) -> Story:
    return replace(story, read_count=story.read_count + 1, date_last_read=int(now))


def resolve_drill_target(collection: Mapping[int, Story], target: int) -> list[Story]:
    if target == DRILL_ALL_IN_PROGRESS:
        ordered = order(collection, VIEW_RANK)
        if not ordered:
            return []
        top_rank = ordered[0].rank
        return [story for story in ordered if story.rank == top_rank]
    story = collection.get(target)
    return [story] if story is not None else []


def days_since(timestamp: int | float, now: int | float) -> int:
    elapsed = float(now) - float(timestamp)
    if elapsed <= 0:
        return 0
    return int(elapsed // 86400)
