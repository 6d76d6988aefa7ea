"""
Static configuration of the supported music services.

Each service is described by a ServiceProfile: which hostname it lives on,
how its page titles are shaped, and how to read the entity type from the
URL path.

URL shapes (entity token marked with ^):
    https://music.apple.com/es/song/the-morning-after/1020769483
                               ^^^^
    https://music.apple.com/es/album/vaporize/353032605?i=353032612
                               ^^^^^
    https://music.apple.com/es/playlist/<name>/<id>
    https://open.spotify.com/track/18H0STg2CPkVKx0AqRsoLQ
                             ^^^^^
    https://open.spotify.com/intl-de/playlist/<id>   (locale segment skipped)

Collection policy:
    Tokens listed in item_only_tokens are rejected with AmbiguousEntityError
    unless the URL carries an item index. Both services ship with an empty
    set: album and playlist URLs without an index resolve as collections.
"""

import re
from dataclasses import dataclass, field

from tubelink.music.models import EntityType, Service


@dataclass(frozen=True)
class ServiceProfile:
    """
    Read-only description of one supported service.

    Attributes:
        service: Service identifier.
        hostname: Exact host the service's pages are served from.
        title_pattern: Regular expression with named groups 'name' and
                       'author', matched against the page <title>.
        entity_index: Index of the entity token in path.split("/").
        entity_types: Mapping of path token to EntityType.
        item_only_tokens: Collection tokens that must address a single
                          item via the item-index parameter.
        skip_segment: Optional pattern for a leading path segment that is
                      removed before reading the entity token.
    """

    service: Service
    hostname: str
    title_pattern: re.Pattern
    entity_index: int
    entity_types: dict[str, EntityType]
    item_only_tokens: frozenset[str] = field(default_factory=frozenset)
    skip_segment: re.Pattern | None = None


APPLE_MUSIC = ServiceProfile(
    service=Service.APPLE_MUSIC,
    hostname="music.apple.com",
    # Apple wraps the name in a left-to-right mark and uses a no-break space
    title_pattern=re.compile(
        "\u200e(?P<name>.+) – Song by (?P<author>.+) – Apple\u00a0Music"
    ),
    entity_index=2,
    entity_types={
        "song": EntityType.TRACK,
        "album": EntityType.COLLECTION,
        "playlist": EntityType.COLLECTION,
    },
)

SPOTIFY = ServiceProfile(
    service=Service.SPOTIFY,
    hostname="open.spotify.com",
    title_pattern=re.compile(
        r"(?P<name>.+) - song and lyrics by (?P<author>.+) \| Spotify"
    ),
    entity_index=1,
    entity_types={
        "track": EntityType.TRACK,
        "album": EntityType.COLLECTION,
        "playlist": EntityType.COLLECTION,
    },
    skip_segment=re.compile(r"intl-[\w-]+"),
)

SERVICE_PROFILES: dict[Service, ServiceProfile] = {
    APPLE_MUSIC.service: APPLE_MUSIC,
    SPOTIFY.service: SPOTIFY,
}

_PROFILES_BY_HOST: dict[str, ServiceProfile] = {
    profile.hostname: profile for profile in SERVICE_PROFILES.values()
}


def get_profile(service: Service) -> ServiceProfile:
    """Return the profile of a supported service."""
    return SERVICE_PROFILES[service]


def find_profile_by_host(hostname: str) -> ServiceProfile | None:
    """Return the profile served from `hostname`, or None if unsupported."""
    return _PROFILES_BY_HOST.get(hostname.lower())


def supported_hosts() -> list[str]:
    return sorted(_PROFILES_BY_HOST)
