from __future__ import annotations

import json
import os
from typing import Mapping

import requests

from .logging_utils import debug_log
from .stories import Story, deserialize_stories, story_from_payload

__all__ = [
    "DEFAULT_SERVICE_URL",
    "SERVICE_URL_ENV",
    "StoryServiceClient",
    "StoryServiceError",
    "StoryServiceUnavailableError",
    "default_service_url",
]

SERVICE_URL_ENV = "YOMI_SERVICE_URL"
DEFAULT_SERVICE_URL = "http://127.0.0.1:8080"


class StoryServiceError(RuntimeError):
    """Raised when the story service returns an unexpected response."""


class StoryServiceUnavailableError(ConnectionError):
    """Raised when the story service is unreachable."""


def default_service_url() -> str:
    env_url = os.environ.get(SERVICE_URL_ENV)
    if env_url and env_url.strip():
        return env_url.strip()
    return DEFAULT_SERVICE_URL


class StoryServiceClient:
    """
    Thin wrapper around the story/dictionary service HTTP API.

    Only payload shapes are interpreted here; retries and sequencing are left
    to callers.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 10.0,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = (base_url or default_service_url()).rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def close(self) -> None:
        self._session.close()

    def _request(self, method: str, path: str, payload: object = None) -> object:
        url = f"{self.base_url}{path}"
        kwargs: dict[str, object] = {"timeout": self.timeout}
        if payload is not None:
            kwargs["json"] = payload
        try:
            resp = self._session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            raise StoryServiceUnavailableError(
                f"Failed to contact story service at {self.base_url}"
            ) from exc
        debug_log(f"{method} {path} -> {resp.status_code}")
        if resp.status_code != 200:
            raise StoryServiceError(f"{path} failed with status {resp.status_code}: {resp.text}")
        try:
            return resp.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise StoryServiceError(f"Story service returned invalid JSON for {path}") from exc

    def fetch_stories(self) -> list[Story]:
        data = self._request("GET", "/stories_list")
        if data is None:
            # The service encodes an empty list as null.
            return []
        if not isinstance(data, list):
            raise StoryServiceError("/stories_list did not return a list")
        return deserialize_stories(data)

    def get_story(self, story_id: int) -> Story | None:
        data = self._request("GET", f"/story/{int(story_id)}")
        if not isinstance(data, Mapping):
            return None
        entry = dict(data)
        entry.setdefault("id", int(story_id))
        return story_from_payload(entry)

    def update_story(self, payload: Mapping[str, object]) -> object:
        return self._request("POST", "/update_story", dict(payload))

    def create_story(self, title: str, link: str, content: str) -> object:
        return self._request(
            "POST",
            "/create_story",
            {"title": title, "link": link, "content": content},
        )

    def lookup_kanji(self, word: str) -> list[Mapping[str, object]]:
        data = self._request("POST", "/kanji", word)
        if not isinstance(data, Mapping):
            return []
        kanji = data.get("kanji")
        if not isinstance(kanji, list):
            return []
        return [entry for entry in kanji if isinstance(entry, Mapping)]

    def search_word(self, word: str) -> Mapping[str, object]:
        data = self._request("POST", "/word_search", {"word": word})
        if not isinstance(data, Mapping):
            raise StoryServiceError("/word_search did not return an object")
        return data
