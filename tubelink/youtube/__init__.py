"""
YouTube module for tubelink.

Finds YouTube videos for tracks and caches the results per run.

Usage:
    from tubelink.youtube import SearchCache, YouTubeSearcher

    searcher = YouTubeSearcher(SearchCache())
    match = searcher.search(track)
"""

from tubelink.youtube.cache import SearchCache
from tubelink.youtube.models import VideoMatch, watch_url
from tubelink.youtube.searcher import YOUTUBE_SEARCH_API, YouTubeSearcher

__all__ = [
    "SearchCache",
    "VideoMatch",
    "watch_url",
    "YouTubeSearcher",
    "YOUTUBE_SEARCH_API",
]
