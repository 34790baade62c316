from __future__ import annotations

import enum
import threading
from concurrent.futures import Executor
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Mapping, Protocol

from .logging_utils import debug_log
from .stories import (
    VIEW_RANK,
    Story,
    StoryCollection,
    apply_countdown,
    bump_rank,
    ingest,
    mark_read,
    order,
    resolve_drill_target,
    to_update_payload,
)

__all__ = [
    "PendingEdit",
    "StoryLibrary",
    "StoryService",
    "SyncState",
]


class StoryService(Protocol):
    def fetch_stories(self) -> list[Story]: ...

    def update_story(self, payload: Mapping[str, object]) -> object: ...


class SyncState(enum.Enum):
    CLEAN = "clean"
    PENDING_SYNC = "pending_sync"
    CONFLICT_PENDING = "conflict_pending"


@dataclass(slots=True)
class PendingEdit:
    """Locally edited field values that the server has not yet reflected."""

    fields: dict[str, object]
    seq: int
    state: SyncState = SyncState.PENDING_SYNC
    acknowledged: bool = False
    failed: bool = False

    def matches(self, story: Story) -> bool:
        return all(getattr(story, name) == value for name, value in self.fields.items())

    def apply_to(self, story: Story) -> Story:
        return replace(story, **self.fields)


class StoryLibrary:
    """
    Owns the live story collection for one learner.

    Local edits are applied immediately and dispatched to the service. A full
    fetch replaces the collection wholesale, then pending edits are
    reconciled against it:

    * fetched values already match the edit: the story is clean again;
    * the update is still in flight: the edit is re-applied;
    * the update was acknowledged but the fetch disagrees: the edit is
      re-applied once and the story becomes ``CONFLICT_PENDING``;
    * a second disagreeing fetch, or a failed update: the server wins.
    """

    def __init__(
        self,
        service: StoryService,
        *,
        executor: Executor | None = None,
        refresh_after_update: bool = True,
        on_error: Callable[[int, Exception], None] | None = None,
    ) -> None:
        self._service = service
        self._executor = executor
        self._refresh_after_update = refresh_after_update
        self._on_error = on_error
        self._lock = threading.Lock()
        self._collection = StoryCollection()
        self._pending: dict[int, PendingEdit] = {}
        self._seq = 0

    @property
    def collection(self) -> StoryCollection:
        with self._lock:
            return self._collection

    def sync_state(self, story_id: int) -> SyncState:
        with self._lock:
            pending = self._pending.get(story_id)
            return pending.state if pending else SyncState.CLEAN

    def pending_ids(self) -> list[int]:
        with self._lock:
            return list(self._pending)

    def refresh(self) -> StoryCollection:
        stories = self._service.fetch_stories()
        return self.ingest(stories)

    def ingest(self, stories: Iterable[Story]) -> StoryCollection:
        with self._lock:
            collection = ingest(stories, previous=self._collection)
            for story_id, pending in list(self._pending.items()):
                story = collection.get(story_id)
                if story is None:
                    del self._pending[story_id]
                    continue
                if pending.matches(story):
                    del self._pending[story_id]
                    continue
                if pending.failed or pending.state is SyncState.CONFLICT_PENDING:
                    debug_log(f"story {story_id}: keeping server values over local edit")
                    del self._pending[story_id]
                    continue
                if pending.acknowledged:
                    pending.state = SyncState.CONFLICT_PENDING
                    debug_log(f"story {story_id}: fetch predates acknowledged edit")
                collection = collection.with_story(pending.apply_to(story))
            self._collection = collection
            return collection

    def ordered(self, view: str = VIEW_RANK) -> list[Story]:
        return order(self.collection, view)

    def drill(self, target: int) -> list[Story]:
        return resolve_drill_target(self.collection, target)

    def get(self, story_id: int) -> Story | None:
        return self.collection.get(story_id)

    def set_countdown(self, story_id: int, value: int) -> Story | None:
        return self._edit(story_id, lambda story: apply_countdown(story, value), ("countdown",))

    def bump_rank(self, story_id: int, delta: int) -> Story | None:
        return self._edit(story_id, lambda story: bump_rank(story, delta), ("rank",))

    def mark_read(self, story_id: int, now: int) -> Story | None:
        return self._edit(
            story_id,
            lambda story: mark_read(story, now),
            ("read_count", "date_last_read"),
        )

    def _edit(
        self,
        story_id: int,
        update: Callable[[Story], Story],
        field_names: tuple[str, ...],
    ) -> Story | None:
        with self._lock:
            story = self._collection.get(story_id)
            if story is None:
                return None
            updated = update(story)
            self._collection = self._collection.with_story(updated)
            self._seq += 1
            seq = self._seq
            previous = self._pending.get(story_id)
            fields = dict(previous.fields) if previous else {}
            fields.update({name: getattr(updated, name) for name in field_names})
            self._pending[story_id] = PendingEdit(fields=fields, seq=seq)
            payload = to_update_payload(updated)
        self._dispatch(story_id, seq, payload)
        return updated

    def _dispatch(self, story_id: int, seq: int, payload: dict[str, object]) -> None:
        if self._executor is None:
            self._run_update(story_id, seq, payload, raise_errors=True)
        else:
            self._executor.submit(self._run_update, story_id, seq, payload, False)

    def _run_update(
        self,
        story_id: int,
        seq: int,
        payload: dict[str, object],
        raise_errors: bool,
    ) -> None:
        try:
            self._service.update_story(payload)
        except Exception as exc:
            self._settle(story_id, seq, failed=True)
            debug_log(f"story {story_id}: update failed: {exc}")
            if raise_errors:
                raise
            self._report(story_id, exc)
            return
        self._settle(story_id, seq, failed=False)
        if not self._refresh_after_update:
            return
        try:
            self.refresh()
        except Exception as exc:
            debug_log(f"story {story_id}: refresh after update failed: {exc}")
            if raise_errors:
                raise
            self._report(story_id, exc)

    def _settle(self, story_id: int, seq: int, *, failed: bool) -> None:
        with self._lock:
            pending = self._pending.get(story_id)
            # Responses for superseded edits are ignored.
            if pending is None or pending.seq != seq:
                return
            if failed:
                pending.failed = True
            else:
                pending.acknowledged = True

    def _report(self, story_id: int, exc: Exception) -> None:
        if self._on_error is not None:
            self._on_error(story_id, exc)
