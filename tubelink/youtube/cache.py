"""
In-memory cache of YouTube search results.

Shared by every search of one run, including searches running on
collection worker threads. Entries are never evicted and never expire.
"""

import threading


class SearchCache:
    """
    Thread-safe mapping of search phrase -> video URL.

    Every read and write takes the same lock. Callers that check, query
    upstream, then store are not atomic as a whole: two threads missing
    on the same phrase may both query, and the last put wins.

    Example:
        cache = SearchCache()
        cache.put('"Song" by "Artist"', "https://youtube.com/watch?v=abc")
        cache.get('"Song" by "Artist"')  # "https://youtube.com/watch?v=abc"
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        """Return the cached video URL for `key`, or None on a miss."""
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, video_url: str) -> None:
        with self._lock:
            self._entries[key] = video_url

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
