"""Test configuration and fixtures"""

import threading
import time
from unittest.mock import Mock
from urllib.parse import urlsplit

import pytest
import requests

from tubelink.core.exceptions import FetchError
from tubelink.core.logger import shutdown_logging
from tubelink.music.fetcher import parse_document
from tubelink.youtube.cache import SearchCache
from tubelink.youtube.searcher import YouTubeSearcher


APPLE_TITLE = "\u200e{name} – Song by {artist} – Apple\u00a0Music"
SPOTIFY_TITLE = "{name} - song and lyrics by {artist} | Spotify"


def track_page(title):
    """Minimal service page with the given <title>"""
    return (
        "<!DOCTYPE html>"
        "<html><head>"
        '<meta charset="utf-8">'
        f"<title>{title}</title>"
        "</head><body><h1>Ignored</h1></body></html>"
    )


def collection_page(links, attribute="name"):
    """Collection page listing member links as music:song meta elements"""
    metas = "".join(
        f'<meta {attribute}="music:song" content="{link}">' for link in links
    )
    return (
        "<!DOCTYPE html>"
        "<html><head>"
        "<title>Some Playlist</title>"
        f"{metas}"
        "</head><body></body></html>"
    )


class FakeFetcher:
    """
    In-memory stand-in for PageFetcher.

    Pages are registered by URL without query string; every requested URL
    (with query) is recorded in order.
    """

    def __init__(self, pages=None):
        self.pages = dict(pages or {})
        self.requested = []
        self.closed = False
        self._lock = threading.Lock()

    def fetch(self, url):
        with self._lock:
            self.requested.append(url)
        parts = urlsplit(url)
        key = f"{parts.scheme}://{parts.netloc}{parts.path}"
        if key not in self.pages:
            raise FetchError(f"Failed to fetch {url}: 404", details={"url": url})
        return parse_document(self.pages[key], url)

    def close(self):
        self.closed = True


def api_response(video_id=None, status_code=200):
    """Mock requests.Response for a YouTube search call"""
    response = Mock()
    response.status_code = status_code
    items = [{"id": {"kind": "youtube#video", "videoId": video_id}}] if video_id else []
    response.json.return_value = {"kind": "youtube#searchListResponse", "items": items}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Client Error"
        )
    else:
        response.raise_for_status.return_value = None
    return response


class FakeApiSession:
    """
    Stand-in for requests.Session answering YouTube search calls.

    Each query maps to a video ID derived from the query unless listed in
    `missing`, which answers with zero items. `delay` slows every call so
    concurrent searches overlap.
    """

    def __init__(self, missing=(), delay=0.0):
        self.missing = set(missing)
        self.delay = delay
        self.queries = []
        self.max_in_flight = 0
        self._in_flight = 0
        self._lock = threading.Lock()

    def get(self, url, params=None, timeout=None):
        query = params["q"]
        with self._lock:
            self.queries.append(query)
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if query in self.missing:
                return api_response(None)
            return api_response(video_id_for(query))
        finally:
            with self._lock:
                self._in_flight -= 1

    def close(self):
        pass


def video_id_for(query):
    """Deterministic fake video ID for a search phrase"""
    return "vid" + "".join(ch for ch in query if ch.isalnum())[:16]


@pytest.fixture
def api_key(monkeypatch):
    """YouTube API key present in the environment"""
    monkeypatch.setenv("YOUTUBE_API_KEY", "test-key")
    return "test-key"


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.delenv("YOUTUBE_API_KEY", raising=False)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep SEQUENTIAL from leaking into tests"""
    monkeypatch.delenv("SEQUENTIAL", raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Detach handlers installed by setup_logging()"""
    yield
    shutdown_logging()


@pytest.fixture
def api_session():
    return FakeApiSession()


@pytest.fixture
def searcher(api_key, api_session):
    """YouTubeSearcher backed by a fake API session"""
    return YouTubeSearcher(SearchCache(), session=api_session)
