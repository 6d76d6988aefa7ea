"""
tubelink: Find YouTube videos for Apple Music and Spotify links.

This package resolves music service links (tracks, albums, playlists)
into "<name>" by "<artist>" pairs by reading the public web pages, then
searches the YouTube Data API for a matching video.

Architecture:
    The resolution of a link runs in four stages:

    CLASSIFY (music/classifier.py)
        - Identify the service from the hostname
        - Decide track vs collection from the path and the "i" parameter
        - Normalize the URL (locale parameter, item index)

    FETCH (music/fetcher.py)
        - Download the page with requests
        - Parse it with BeautifulSoup

    EXTRACT (music/extractor.py)
        - Track: match the page <title> against the service title pattern
        - Collection: read member links from <meta name="music:song">

    SEARCH (youtube/searcher.py)
        - Query YouTube for "<name>" by "<artist>"
        - Cache results per run (thread-safe)

    Collections fan out over a thread pool bounded by the fan-out limit
    (resolver/resolver.py).

Modules:
    core/       - Configuration, logging, progress, exceptions
    music/      - Service profiles, classification, page fetch, extraction
    youtube/    - Video search and cache
    resolver/   - Pipeline orchestration and outcomes
    library/    - Exported music library reader
    cli.py      - Command-line interface

Usage:
    Command Line:
        tubelink "https://music.apple.com/gb/song/..."
        tubelink --limit 5 "https://open.spotify.com/playlist/..."
        tubelink --library ~/Music/Library.xml --playlist "Replay 2024"

    Python API:
        from tubelink import TrackResolver, load_config

        resolver = TrackResolver.from_config(load_config())
        outcome = resolver.find("https://open.spotify.com/track/...")
        print(outcome.display_value)

Dependencies:
    - requests: HTTP client for pages and the YouTube API
    - beautifulsoup4: HTML parsing
    - pyyaml: Configuration file parsing
    - rich / rich-click: Progress bars and CLI colors
    - tqdm: Progress-safe console logging
    - python-dotenv: .env loading for the API key
"""

__version__ = "0.1.0"
__author__ = "tubelink"
__license__ = "MIT"

# Convenience imports for common usage
from tubelink.core import (
    Config,
    ConfigError,
    LibraryError,
    ResolveError,
    SearchError,
    TubeLinkError,
    get_logger,
    load_config,
    setup_logging,
)
from tubelink.music import Track, classify
from tubelink.resolver import CollectionResult, Outcome, TrackResolver
from tubelink.youtube import SearchCache, VideoMatch, YouTubeSearcher

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "TubeLinkError",
    "ConfigError",
    "LibraryError",
    "ResolveError",
    "SearchError",
    # Pipeline
    "classify",
    "TrackResolver",
    "YouTubeSearcher",
    "SearchCache",
    # Models
    "Track",
    "VideoMatch",
    "Outcome",
    "CollectionResult",
]
