"""
Reader for exported music library files.

Music apps can export their library as a property list (XML or binary).
The parts used here are:

    Tracks      dict: "<track id>" -> {"Name": ..., "Artist": ..., ...}
    Playlists   list: {"Name": ..., "Playlist Items": [{"Track ID": <int>}, ...]}

Every other key is ignored.

Usage:
    from tubelink.library import load_library

    library = load_library("~/Music/Library.xml")
    playlist = library.find_playlist("Replay 2024")
    for track in library.playlist_tracks(playlist):
        print(track)
"""

import plistlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tubelink.core.exceptions import LibraryError
from tubelink.core.logger import get_logger
from tubelink.music.models import Track


logger = get_logger(__name__)

# Playlist opened when none is named
DEFAULT_PLAYLIST = "Replay 2024"


@dataclass(frozen=True)
class LibraryPlaylist:
    """
    A playlist from the library.

    Attributes:
        name: Playlist name as shown in the app.
        track_ids: Library track IDs in playlist order. Stored as strings,
                   the same form the Tracks dictionary is keyed by.
    """

    name: str
    track_ids: tuple[str, ...] = ()

    @classmethod
    def from_plist(cls, data: dict[str, Any]) -> "LibraryPlaylist":
        items = data.get("Playlist Items") or []
        track_ids = tuple(
            str(item["Track ID"])
            for item in items
            if isinstance(item, dict) and "Track ID" in item
        )
        return cls(name=str(data.get("Name", "")), track_ids=track_ids)

    def __len__(self) -> int:
        return len(self.track_ids)


@dataclass(frozen=True)
class Library:
    """
    Tracks and playlists of an exported music library.

    Attributes:
        tracks: Track ID -> Track.
        playlists: Playlists in library order.
    """

    tracks: dict[str, Track] = field(default_factory=dict)
    playlists: tuple[LibraryPlaylist, ...] = ()

    @classmethod
    def from_plist(cls, data: dict[str, Any]) -> "Library":
        """
        Build a Library from decoded property list data.

        Tracks without a name are skipped; a missing artist becomes "".
        """
        tracks: dict[str, Track] = {}
        for track_id, entry in (data.get("Tracks") or {}).items():
            if not isinstance(entry, dict) or not entry.get("Name"):
                continue
            tracks[str(track_id)] = Track(
                name=str(entry["Name"]),
                artist=str(entry.get("Artist", ""))
            )

        playlists = tuple(
            LibraryPlaylist.from_plist(entry)
            for entry in data.get("Playlists") or []
            if isinstance(entry, dict)
        )
        return cls(tracks=tracks, playlists=playlists)

    def find_playlist(self, name: str) -> LibraryPlaylist | None:
        """Return the first playlist with this exact name, or None."""
        for playlist in self.playlists:
            if playlist.name == name:
                return playlist
        return None

    def playlist_tracks(self, playlist: LibraryPlaylist) -> list[Track]:
        """
        Look up the tracks of a playlist, in playlist order.

        IDs missing from the library are skipped.
        """
        tracks = []
        for track_id in playlist.track_ids:
            track = self.tracks.get(track_id)
            if track is None:
                logger.debug(f"Track {track_id} of '{playlist.name}' not in library")
                continue
            tracks.append(track)
        return tracks


def load_library(path: str | Path) -> Library:
    """
    Load an exported music library.

    Args:
        path: Library file (XML or binary property list). A leading "~"
              is expanded to the home directory.

    Returns:
        Decoded Library.

    Raises:
        LibraryError: File missing, unreadable, or not a library plist.
    """
    library_path = Path(path).expanduser()

    if not library_path.is_file():
        raise LibraryError(
            f"Library file not found: {library_path}",
            details={"path": str(library_path)}
        )

    try:
        with open(library_path, "rb") as f:
            data = plistlib.load(f)
    except (plistlib.InvalidFileException, ValueError, OSError) as e:
        raise LibraryError(
            f"Can't read library file {library_path}: {e}",
            details={"path": str(library_path), "original_error": str(e)}
        ) from e

    if not isinstance(data, dict):
        raise LibraryError(
            f"Library file {library_path} does not contain a dictionary",
            details={"path": str(library_path)}
        )

    library = Library.from_plist(data)
    logger.debug(
        f"Loaded library {library_path}: "
        f"{len(library.tracks)} tracks, {len(library.playlists)} playlists"
    )
    return library
