"""
Resolver module for tubelink.

Orchestrates classification, page fetch, extraction and video search for
single tracks and for albums/playlists.

Usage:
    from tubelink.resolver import TrackResolver, CollectionResult, Outcome
"""

from tubelink.resolver.models import (
    NOT_FOUND_MARKER,
    CollectionResult,
    Outcome,
    OutcomeStatus,
)
from tubelink.resolver.resolver import TrackResolver

__all__ = [
    "TrackResolver",
    "CollectionResult",
    "Outcome",
    "OutcomeStatus",
    "NOT_FOUND_MARKER",
]
