"""
YouTube video search for tracks.

Maps a Track to a YouTube watch URL using the YouTube Data API v3 search
endpoint, memoizing results in a SearchCache shared across threads.

Search Workflow:
    1. Build the search phrase: "<name>" by "<artist>" (also the cache key)
    2. Cache hit -> return it, tagged as cached (no credential needed)
    3. Read the API key from the environment at call time
    4. Query the API for one video result
    5. Render the first item as https://youtube.com/watch?v=<id>
    6. Store in the cache and return

Error Mapping:
    API key variable unset or empty            -> MissingCredentialError
    Transport error, timeout, HTTP >= 400      -> UpstreamError
    Body not JSON / item without a video ID    -> UpstreamError
    Zero items                                 -> NoMatchError

No retries are attempted.
"""

import os
from typing import Any

import requests

from tubelink.core.config import DEFAULT_API_KEY_ENV, DEFAULT_TIMEOUT
from tubelink.core.exceptions import MissingCredentialError, NoMatchError, UpstreamError
from tubelink.core.logger import get_logger
from tubelink.music.models import Track
from tubelink.youtube.cache import SearchCache
from tubelink.youtube.models import VideoMatch, watch_url


logger = get_logger(__name__)

YOUTUBE_SEARCH_API = "https://www.googleapis.com/youtube/v3/search"

# Result kind requested from the API
RESULT_TYPE = "video"


class YouTubeSearcher:
    """
    Finds a YouTube video for a track.

    Attributes:
        _cache: SearchCache shared by every search of this run.
        _api_key_env: Environment variable holding the API key.
        _session: requests session used for API calls.
        _timeout: Per-request timeout in seconds.

    Thread Safety:
        search() may be called from several threads at once. The cache
        serializes its own access; two concurrent misses on the same
        phrase may both query the API (the last result stored wins).

    Example:
        searcher = YouTubeSearcher(SearchCache())
        match = searcher.search(Track("Song", "Artist"))
        print(match.display_url)
    """

    def __init__(
        self,
        cache: SearchCache,
        api_key_env: str = DEFAULT_API_KEY_ENV,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None
    ) -> None:
        self._cache = cache
        self._api_key_env = api_key_env
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def cache(self) -> SearchCache:
        return self._cache

    def search(self, track: Track) -> VideoMatch:
        """
        Find the video for a track.

        Args:
            track: Track to search for.

        Returns:
            VideoMatch; `cached` is True for cache hits.

        Raises:
            MissingCredentialError: No API key in the environment.
            UpstreamError: The API request failed or returned garbage.
            NoMatchError: The API returned no videos.
        """
        query = track.search_phrase

        cached_url = self._cache.get(query)
        if cached_url is not None:
            logger.debug(f"Cache hit for {query}")
            return VideoMatch(url=cached_url, query=query, cached=True)

        api_key = self._get_api_key()

        logger.debug(f"Searching YouTube for {query}")
        payload = self._request(query, api_key)
        video_id = self._first_video_id(payload, query)

        url = watch_url(video_id)
        self._cache.put(query, url)
        return VideoMatch(url=url, query=query)

    def _get_api_key(self) -> str:
        api_key = os.environ.get(self._api_key_env, "").strip()
        if not api_key:
            raise MissingCredentialError(
                f"Can't search YouTube: '{self._api_key_env}' is not set",
                details={"env_var": self._api_key_env}
            )
        return api_key

    def _request(self, query: str, api_key: str) -> dict[str, Any]:
        """Issue the search request and decode its JSON body."""
        params = {
            "key": api_key,
            "part": "id",
            "type": RESULT_TYPE,
            "maxResults": 1,
            "q": query,
        }

        try:
            response = self._session.get(
                YOUTUBE_SEARCH_API,
                params=params,
                timeout=self._timeout
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise UpstreamError(
                f"YouTube search failed: {e}",
                details={"query": query, "original_error": str(e)}
            ) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(
                "YouTube search returned an invalid response",
                details={"query": query, "original_error": str(e)}
            ) from e

        if not isinstance(payload, dict):
            raise UpstreamError(
                "YouTube search returned an unexpected response",
                details={"query": query}
            )
        return payload

    def _first_video_id(self, payload: dict[str, Any], query: str) -> str:
        items = payload.get("items") or []
        if not items:
            raise NoMatchError(
                f"No videos found for {query}",
                details={"query": query}
            )

        item = items[0]
        item_id = item.get("id") if isinstance(item, dict) else None
        video_id = item_id.get("videoId") if isinstance(item_id, dict) else None
        if not video_id:
            raise UpstreamError(
                "YouTube search result has no video ID",
                details={"query": query, "item": item}
            )
        return video_id

    def close(self) -> None:
        self._session.close()
