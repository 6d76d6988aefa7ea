"""
Track metadata extraction from parsed service pages.

Both operations walk an already-parsed document (a BeautifulSoup tree)
level by level: document -> <html> -> <head> -> <title> / <meta>.
Neither performs any network I/O.

Page conventions:
    Track pages carry the track name and artist in <title>, e.g.
        "‎Song A – Song by Artist B – Apple Music"
        "Song A - song and lyrics by Artist B | Spotify"

    Collection pages list their tracks as head metadata:
        <meta name="music:song" content="https://music.apple.com/...">      (Apple Music)
        <meta property="music:song" content="https://open.spotify.com/..."> (Spotify)
"""

import re
from typing import Any, Callable, Iterator

from bs4 import Tag

from tubelink.core.exceptions import TitleNotFoundError, TitlePatternMismatchError
from tubelink.core.logger import get_logger
from tubelink.music.models import Track


logger = get_logger(__name__)

# Relation marking a head <meta> element as a collection member
MEMBER_RELATION = "music:song"

# Attributes the relation may be declared under (Apple uses name, Spotify property)
MEMBER_RELATION_ATTRIBUTES = ("name", "property")


def iter_child_elements(
    node: Any,
    tag_name: str,
    predicate: Callable[[Tag], bool] | None = None
) -> Iterator[Tag]:
    """
    Yield the direct element children of `node` named `tag_name`.

    Text, comment and doctype nodes are skipped. Only one level of the
    tree is visited.

    Args:
        node: Parent node (document or element).
        tag_name: Element name to look for (case-sensitive, lower case).
        predicate: Optional extra condition on the element.
    """
    for child in getattr(node, "children", ()):
        if not isinstance(child, Tag) or child.name != tag_name:
            continue
        if predicate is not None and not predicate(child):
            continue
        yield child


def first_child_element(
    node: Any,
    tag_name: str,
    predicate: Callable[[Tag], bool] | None = None
) -> Tag | None:
    """Return the first direct element child matching, or None."""
    return next(iter_child_elements(node, tag_name, predicate), None)


def find_head(document: Any) -> Tag | None:
    """Return the document's <head> element (html -> head), or None."""
    html = first_child_element(document, "html")
    if html is None:
        return None
    return first_child_element(html, "head")


def extract_track(document: Any, title_pattern: re.Pattern) -> Track:
    """
    Extract the track name and artist from a page title.

    Args:
        document: Parsed page.
        title_pattern: Service title regex with 'name' and 'author' groups.

    Returns:
        Track whose fields are the captured groups, verbatim.

    Raises:
        TitleNotFoundError: No <head>, no <title>, or an empty title.
        TitlePatternMismatchError: Title text doesn't match the pattern.
    """
    head = find_head(document)
    title = first_child_element(head, "title") if head is not None else None

    if title is None:
        raise TitleNotFoundError("Page has no title element")

    text = title.get_text()
    if not text:
        raise TitleNotFoundError("Page title is empty")

    match = title_pattern.search(text)
    if match is None:
        raise TitlePatternMismatchError(
            f"Unexpected page title: {text!r}",
            details={"title": text, "pattern": title_pattern.pattern}
        )

    track = Track(name=match.group("name"), artist=match.group("author"))
    logger.debug(f"Extracted {track}")
    return track


def _is_member_meta(element: Tag) -> bool:
    return any(
        element.get(attribute) == MEMBER_RELATION
        for attribute in MEMBER_RELATION_ATTRIBUTES
    )


def extract_member_links(document: Any, limit: int) -> Iterator[str]:
    """
    Yield collection member URLs from head metadata, in document order.

    Lazy: stops scanning as soon as `limit` links have been produced.
    Fewer links than `limit` is normal for short collections and is not
    an error. Member elements without a content attribute are skipped.

    Args:
        document: Parsed collection page.
        limit: Maximum number of links to yield.

    Example:
        >>> list(extract_member_links(document, 3))
        ['https://open.spotify.com/track/a', 'https://open.spotify.com/track/b']
    """
    if limit <= 0:
        return

    head = find_head(document)
    if head is None:
        logger.debug("Page has no head element, no member links")
        return

    produced = 0
    for meta in iter_child_elements(head, "meta", _is_member_meta):
        content = meta.get("content")
        if not content:
            continue

        yield content
        produced += 1
        if produced >= limit:
            return
