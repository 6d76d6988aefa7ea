"""
Data models for YouTube search results.
"""

from dataclasses import dataclass


# Canonical watch-page URL for a video ID
WATCH_URL_TEMPLATE = "https://youtube.com/watch?v={video_id}"


def watch_url(video_id: str) -> str:
    """Render a video ID into its watch-page URL."""
    return WATCH_URL_TEMPLATE.format(video_id=video_id)


@dataclass(frozen=True)
class VideoMatch:
    """
    Video found for a track.

    Attributes:
        url: Watch-page URL of the video.
             Example: "https://youtube.com/watch?v=dQw4w9WgXcQ"
        query: Search phrase the video was found with (the cache key).
        cached: True when the URL came from the search cache instead of
                a fresh upstream query.
    """

    url: str
    query: str
    cached: bool = False

    @property
    def display_url(self) -> str:
        """URL tagged with ' [cached]' for cache hits."""
        if self.cached:
            return f"{self.url} [cached]"
        return self.url
