"""
Library module for tubelink.

Reads exported music libraries (property lists) so their playlists can be
searched on YouTube track by track.
"""

from tubelink.library.reader import (
    DEFAULT_PLAYLIST,
    Library,
    LibraryPlaylist,
    load_library,
)

__all__ = [
    "DEFAULT_PLAYLIST",
    "Library",
    "LibraryPlaylist",
    "load_library",
]
