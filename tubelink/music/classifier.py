"""
URL classification for music service links.

Turns a raw, user-supplied URL into a ClassifiedURL: which service it
belongs to, whether it addresses a single track or a collection, and a
normalized URL that renders page titles deterministically.

Classification Rules:
    1. Strip backslashes (pasted from rich-text sources, e.g. "\\?i=")
    2. The URL must be http(s) with a host           -> InvalidURLError
    3. The host must belong to a supported service   -> UnsupportedServiceError
    4. Query is rebuilt as: l=<locale>, plus i=<index> if present
    5. The path token at the profile's entity index decides the type:
         track token                         -> TRACK
         collection token + item index       -> TRACK
         collection token, item-only policy  -> AmbiguousEntityError
         collection token                    -> COLLECTION
         anything else                       -> UnsupportedEntityTypeError

Classification is pure: it never touches the network.
"""

from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from tubelink.core.config import DEFAULT_LOCALE
from tubelink.core.exceptions import (
    AmbiguousEntityError,
    InvalidURLError,
    UnsupportedEntityTypeError,
    UnsupportedServiceError,
)
from tubelink.core.logger import get_logger
from tubelink.music.models import ClassifiedURL, EntityType
from tubelink.music.profiles import ServiceProfile, find_profile_by_host, supported_hosts


logger = get_logger(__name__)

# Query parameter Apple Music uses to address one song inside an album
ITEM_INDEX_PARAM = "i"

# Query parameter forcing the page language
LOCALE_PARAM = "l"


def classify(raw_url: str, locale: str = DEFAULT_LOCALE) -> ClassifiedURL:
    """
    Classify a raw service URL.

    Args:
        raw_url: URL as entered by the user.
        locale: Value for the locale query parameter.

    Returns:
        ClassifiedURL with service, entity type and normalized URL.

    Raises:
        InvalidURLError: Input is not an http(s) URL.
        UnsupportedServiceError: Host is not a supported service.
        UnsupportedEntityTypeError: Path doesn't name a known entity.
        AmbiguousEntityError: Collection token requires an item index.

    Example:
        >>> classify("https://music.apple.com/es/album/vaporize/353032605?i=353032612")
        ClassifiedURL(service=<Service.APPLE_MUSIC: 'apple_music'>,
                      entity_type=<EntityType.TRACK: 'track'>, ...)
    """
    logger.debug(f"Classifying {raw_url}")
    cleaned = raw_url.replace("\\", "").strip()

    try:
        parts = urlsplit(cleaned)
        hostname = parts.hostname
    except ValueError as e:
        raise InvalidURLError(
            f"Invalid URL: {raw_url}",
            details={"url": raw_url, "original_error": str(e)}
        ) from e

    if parts.scheme not in ("http", "https") or not hostname:
        raise InvalidURLError(
            f"Invalid URL: {raw_url}",
            details={"url": raw_url}
        )

    profile = find_profile_by_host(hostname)
    if profile is None:
        raise UnsupportedServiceError(
            f"Unsupported service: {hostname}",
            details={"url": raw_url, "host": hostname, "supported": supported_hosts()}
        )

    item_index = _item_index(parts.query)
    query = {LOCALE_PARAM: locale}
    if item_index:
        query[ITEM_INDEX_PARAM] = item_index

    raw_entity = _entity_token(parts.path, profile)
    entity_type = _entity_type(raw_entity, item_index, profile, raw_url)

    normalized_url = urlunsplit((
        parts.scheme,
        parts.netloc,
        parts.path,
        urlencode(sorted(query.items())),
        "",
    ))

    logger.debug(
        f"Classified {raw_url} as {profile.service.value} {entity_type.value} "
        f"(token '{raw_entity}')"
    )

    return ClassifiedURL(
        service=profile.service,
        entity_type=entity_type,
        normalized_url=normalized_url,
        raw_entity=raw_entity,
    )


def _item_index(query: str) -> str:
    """Return the first non-empty item-index value, or an empty string."""
    values = parse_qs(query).get(ITEM_INDEX_PARAM, [])
    for value in values:
        if value:
            return value
    return ""


def _entity_token(path: str, profile: ServiceProfile) -> str:
    """Return the path segment holding the entity token ('' if absent)."""
    segments = path.split("/")

    # Drop a leading locale segment ("/intl-de/track/..."); segments[0] is ""
    if (
        profile.skip_segment is not None
        and len(segments) > 1
        and profile.skip_segment.fullmatch(segments[1])
    ):
        segments = segments[:1] + segments[2:]

    if profile.entity_index >= len(segments):
        return ""
    return segments[profile.entity_index]


def _entity_type(
    raw_entity: str,
    item_index: str,
    profile: ServiceProfile,
    raw_url: str
) -> EntityType:
    """Map a path token to an EntityType following the rules in the module docstring."""
    entity_type = profile.entity_types.get(raw_entity)

    if entity_type is None:
        raise UnsupportedEntityTypeError(
            f"Unsupported {profile.hostname} entity type: '{raw_entity}'",
            details={
                "url": raw_url,
                "entity": raw_entity,
                "supported": sorted(profile.entity_types),
            }
        )

    if entity_type is EntityType.TRACK:
        return EntityType.TRACK

    # A link to one item inside a collection is a track
    if item_index:
        return EntityType.TRACK

    if raw_entity in profile.item_only_tokens:
        raise AmbiguousEntityError(
            f"'{raw_entity}' link does not address a single item; "
            f"add the '{ITEM_INDEX_PARAM}' parameter or use a track link",
            details={"url": raw_url, "entity": raw_entity}
        )

    return EntityType.COLLECTION
