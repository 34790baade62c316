from __future__ import annotations

import time
from dataclasses import dataclass, field

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse, JSONResponse

from .dictionary import parse_word_search, serialize_entry_view
from .kanji import has_kanji, kanji_cards, serialize_kanji_cards
from .library import StoryLibrary
from .logging_utils import debug_log
from .mora import parse_pitch, segment, split_mora
from .render import render_entry, render_kanji_cards, render_story_table
from .stories import DRILL_ALL_IN_PROGRESS, VIEW_ADDED, VIEW_RANK, Story, serialize_story
from .sync import (
    StoryServiceClient,
    StoryServiceError,
    StoryServiceUnavailableError,
    default_service_url,
)


@dataclass(slots=True)
class WebConfig:
    service_url: str = field(default_factory=default_service_url)
    timeout: float = 10.0
    default_view: str = VIEW_RANK
    refresh_after_update: bool = True


_VIEWS = {VIEW_RANK, VIEW_ADDED}


def _normalize_view(value: str | None, default: str = VIEW_RANK) -> str:
    if not value:
        return default
    normalized = value.strip().lower()
    if normalized in _VIEWS:
        return normalized
    raise HTTPException(status_code=400, detail="Invalid view.")


INDEX_HTML = """<!DOCTYPE html>
<html lang="ja">
<head>
  <meta charset="utf-8">
  <title>yomi</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <style>
    body { font-family: -apple-system, "Hiragino Sans", sans-serif; margin: 1.5rem; }
    .story_table td, .story_table th { padding: 0.25rem 0.6rem; text-align: left; }
    .high_pitch { text-decoration: overline; }
    .unknown_pitch { color: #888; }
    .kanji { border-top: 1px solid #ddd; padding: 0.5rem 0; }
    .literal { font-size: 2rem; }
    .pos { font-size: 0.8rem; color: #666; }
  </style>
</head>
<body>
  <header>
    <h1>yomi</h1>
    <label>View
      <select id="view">
        <option value="rank">Drill order</option>
        <option value="added">Newest first</option>
      </select>
    </label>
  </header>
  <main>
    <section id="story_list"></section>
    <section>
      <input id="word" placeholder="単語">
      <button id="lookup">Look up</button>
      <div id="entries"></div>
      <div id="kanji_results"></div>
    </section>
  </main>
  <script>
    const storyList = document.getElementById('story_list');
    const viewSelect = document.getElementById('view');

    async function loadStories() {
      const resp = await fetch(`/api/stories?view=${viewSelect.value}`);
      const data = await resp.json();
      storyList.innerHTML = data.html;
    }

    storyList.onchange = async (evt) => {
      if (!evt.target.classList.contains('count_spinner')) return;
      const storyId = evt.target.getAttribute('story_id');
      await fetch(`/api/stories/${storyId}/countdown`, {
        method: 'POST',
        headers: {'Content-Type': 'application/json'},
        body: JSON.stringify({value: parseInt(evt.target.value)}),
      });
      loadStories();
    };

    document.getElementById('lookup').onclick = async () => {
      const word = document.getElementById('word').value.trim();
      if (!word) return;
      const resp = await fetch(`/api/word/${encodeURIComponent(word)}`);
      const data = await resp.json();
      document.getElementById('entries').innerHTML = data.html;
      document.getElementById('kanji_results').innerHTML = data.kanji_html;
    };

    viewSelect.onchange = loadStories;
    loadStories();
  </script>
</body>
</html>
"""


def _story_payload(story: Story, library: StoryLibrary) -> dict[str, object]:
    return {
        "id": story.id,
        "title": story.title,
        "link": story.link,
        "countdown": story.countdown,
        "rank": story.rank,
        "read_count": story.read_count,
        "date_added": story.date_added,
        "date_last_read": story.date_last_read,
        "sync_state": library.sync_state(story.id).value,
    }


def _int_from_payload(payload: dict[str, object], key: str) -> int:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise HTTPException(status_code=400, detail=f"{key} must be an integer.")
    return value


def create_app(config: WebConfig, service: StoryServiceClient | None = None) -> FastAPI:
    if service is None:
        service = StoryServiceClient(config.service_url, timeout=config.timeout)
    library = StoryLibrary(service, refresh_after_update=config.refresh_after_update)

    app = FastAPI(title="yomi")
    app.state.config = config
    app.state.service = service
    app.state.library = library

    def _service_call(action, *args):
        try:
            return action(*args)
        except (StoryServiceUnavailableError, StoryServiceError) as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc

    def _require_story(story_id: int) -> Story:
        if library.collection.version == 0:
            _service_call(library.refresh)
        story = library.get(story_id)
        if story is None:
            raise HTTPException(status_code=404, detail="Story not found")
        return story

    @app.get("/", response_class=HTMLResponse)
    def index() -> str:
        return INDEX_HTML

    @app.get("/api/stories")
    def api_stories(
        view: str | None = Query(None),
        refresh: bool = Query(True),
    ) -> JSONResponse:
        normalized = _normalize_view(view, config.default_view)
        if refresh:
            _service_call(library.refresh)
        stories = library.ordered(normalized)
        now = int(time.time())
        return JSONResponse(
            {
                "view": normalized,
                "version": library.collection.version,
                "stories": [_story_payload(story, library) for story in stories],
                "html": render_story_table(stories, now),
            }
        )

    @app.post("/api/stories")
    def api_create_story(payload: dict[str, object] = Body(...)) -> JSONResponse:
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Invalid payload.")
        content = payload.get("content")
        if not isinstance(content, str) or not content.strip():
            raise HTTPException(status_code=400, detail="content is required.")
        title = payload.get("title")
        link = payload.get("link")
        _service_call(
            service.create_story,
            title if isinstance(title, str) else "",
            link if isinstance(link, str) else "",
            content,
        )
        collection = _service_call(library.refresh)
        return JSONResponse({"created": True, "version": collection.version})

    @app.post("/api/stories/{story_id}/countdown")
    def api_set_countdown(story_id: int, payload: dict[str, object] = Body(...)) -> JSONResponse:
        _require_story(story_id)
        value = _int_from_payload(payload, "value")
        story = _service_call(library.set_countdown, story_id, value)
        if story is None:
            raise HTTPException(status_code=404, detail="Story not found")
        debug_log(f"story {story_id}: countdown -> {story.countdown}")
        return JSONResponse({"story": _story_payload(library.get(story_id) or story, library)})

    @app.post("/api/stories/{story_id}/rank")
    def api_bump_rank(story_id: int, payload: dict[str, object] = Body(...)) -> JSONResponse:
        _require_story(story_id)
        delta = _int_from_payload(payload, "delta")
        if delta not in (1, -1):
            raise HTTPException(status_code=400, detail="delta must be 1 or -1.")
        story = _service_call(library.bump_rank, story_id, delta)
        if story is None:
            raise HTTPException(status_code=404, detail="Story not found")
        debug_log(f"story {story_id}: rank -> {story.rank}")
        return JSONResponse({"story": _story_payload(library.get(story_id) or story, library)})

    @app.post("/api/stories/{story_id}/read")
    def api_mark_read(story_id: int) -> JSONResponse:
        _require_story(story_id)
        story = _service_call(library.mark_read, story_id, int(time.time()))
        if story is None:
            raise HTTPException(status_code=404, detail="Story not found")
        debug_log(f"story {story_id}: read_count -> {story.read_count}")
        return JSONResponse({"story": _story_payload(library.get(story_id) or story, library)})

    @app.get("/api/stories/{story_id}")
    def api_story(story_id: int) -> JSONResponse:
        local = _require_story(story_id)
        full = _service_call(service.get_story, story_id)
        if full is None:
            raise HTTPException(status_code=404, detail="Story not found")
        payload = serialize_story(full)
        # Unsynced local edits take precedence over the fetched scalars.
        payload.update(_story_payload(local, library))
        return JSONResponse({"story": payload})

    @app.get("/api/drill/{target}")
    def api_drill(target: int) -> JSONResponse:
        if library.collection.version == 0:
            _service_call(library.refresh)
        stories = library.drill(target)
        if not stories and target != DRILL_ALL_IN_PROGRESS:
            raise HTTPException(status_code=404, detail="Story not found")
        return JSONResponse(
            {
                "target": target,
                "stories": [_story_payload(story, library) for story in stories],
            }
        )

    @app.post("/api/segment")
    def api_segment(payload: dict[str, object] = Body(...)) -> JSONResponse:
        reading = payload.get("reading") if isinstance(payload, dict) else None
        if not isinstance(reading, str):
            raise HTTPException(status_code=400, detail="reading is required.")
        pitch = parse_pitch(payload.get("pitch"))
        pre_drop, drop, post_drop = segment(reading, pitch)
        return JSONResponse(
            {
                "reading": reading,
                "mora": split_mora(reading),
                "pitch": [pitch.drop, pitch.rise] if pitch else None,
                "segments": [pre_drop, drop, post_drop],
            }
        )

    @app.get("/api/word/{word}")
    def api_word(word: str) -> JSONResponse:
        word = word.strip()
        if not word:
            raise HTTPException(status_code=400, detail="word is required.")
        result = parse_word_search(_service_call(service.search_word, word))
        entries = result.entries_start + result.entries_mid
        cards = kanji_cards(result.kanji, word)
        return JSONResponse(
            {
                "word": word,
                "count_start": result.count_start,
                "count_mid": result.count_mid,
                "entries": [serialize_entry_view(entry) for entry in entries],
                "html": "".join(render_entry(entry) for entry in entries),
                "kanji": serialize_kanji_cards(cards),
                "kanji_html": render_kanji_cards(cards),
            }
        )

    @app.get("/api/kanji/{word}")
    def api_kanji(word: str) -> JSONResponse:
        if not has_kanji(word):
            return JSONResponse({"word": word, "kanji": [], "html": ""})
        records = _service_call(service.lookup_kanji, word)
        cards = kanji_cards(records, word)
        return JSONResponse(
            {
                "word": word,
                "kanji": serialize_kanji_cards(cards),
                "html": render_kanji_cards(cards),
            }
        )

    return app
