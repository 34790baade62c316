from .library import StoryLibrary, SyncState
from .mora import PitchDescriptor, PitchSegments, is_small_kana, parse_pitch, segment, split_mora
from .stories import (
    DRILL_ALL_IN_PROGRESS,
    Story,
    StoryCollection,
    apply_countdown,
    bump_rank,
    ingest,
    order,
    to_update_payload,
)
from .sync import StoryServiceClient, StoryServiceError, StoryServiceUnavailableError

__all__ = [
    "PitchDescriptor",
    "PitchSegments",
    "is_small_kana",
    "split_mora",
    "parse_pitch",
    "segment",
    "DRILL_ALL_IN_PROGRESS",
    "Story",
    "StoryCollection",
    "ingest",
    "order",
    "apply_countdown",
    "bump_rank",
    "to_update_payload",
    "StoryLibrary",
    "SyncState",
    "StoryServiceClient",
    "StoryServiceError",
    "StoryServiceUnavailableError",
]
