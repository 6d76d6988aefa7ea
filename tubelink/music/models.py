"""
Data models for music service entities.

Design Decisions:
    - All dataclasses are frozen (immutable) to prevent accidental modification
    - Enums replace string tags for services and entity types

Usage:
    from tubelink.music.models import Track, EntityType

    track = Track(name="Song Title", artist="Artist Name")
    track.search_phrase  # '"Song Title" by "Artist Name"'
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Service(Enum):
    """Supported music streaming services."""
    APPLE_MUSIC = "apple_music"
    SPOTIFY = "spotify"


class EntityType(Enum):
    """What a service URL points at."""
    TRACK = "track"
    COLLECTION = "collection"


@dataclass(frozen=True)
class Track:
    """
    Immutable (name, artist) pair identifying a track.

    Produced from a service page title or a library entry and consumed by
    the YouTube searcher. Two tracks are equal when both fields are equal,
    byte for byte.

    Attributes:
        name: Track title exactly as captured from the page title.
              Example: "The Morning After"
        artist: Artist name exactly as captured from the page title.
                Example: "Moderat"
    """

    name: str
    artist: str

    @property
    def search_phrase(self) -> str:
        """
        Canonical search phrase for this track.

        Used both as the YouTube query text and as the search cache key,
        so no normalization is applied.
        """
        return f'"{self.name}" by "{self.artist}"'

    def __str__(self) -> str:
        return self.search_phrase


@dataclass(frozen=True)
class ClassifiedURL:
    """
    Result of classifying a raw service URL.

    Attributes:
        service: Which service the URL belongs to.
        entity_type: Whether the URL addresses a track or a collection.
        normalized_url: URL with the locale parameter set and every
                        other parameter except the item index dropped.
        raw_entity: The path token the entity type was derived from
                    (e.g. "song", "album", "playlist", "track").
    """

    service: Service
    entity_type: EntityType
    normalized_url: str
    raw_entity: str


@dataclass
class ParseResult:
    """
    A classified URL together with its fetched, parsed page.

    Owned by the caller that requested it. The document should be
    released with release() once extraction has finished.
    """

    service: Service
    entity_type: EntityType
    url: str
    document: Any

    def release(self) -> None:
        """Free the parsed document tree."""
        if self.document is not None:
            self.document.decompose()
            self.document = None
