"""
Data models for resolution outcomes.

An Outcome records what happened to one page URL: the track read from it
(if any), the video found for that track (if any), and the error that
stopped it otherwise. A CollectionResult holds one Outcome per member of
an album or playlist.
"""

from dataclasses import dataclass
from enum import Enum

from tubelink.core.exceptions import ResolveError
from tubelink.music.models import Service, Track
from tubelink.youtube.models import VideoMatch


# Shown instead of a URL when no video was found
NOT_FOUND_MARKER = "-"


class OutcomeStatus(Enum):
    """
    How far resolution of one URL got.

    FOUND: Track extracted and a video was found.
    NOT_FOUND: Track extracted, but the video search failed. The track's
               identity is still known and reported.
    UNRESOLVED: The track itself couldn't be determined (classification,
                fetch or extraction failed); no search was attempted.
    """
    FOUND = "found"
    NOT_FOUND = "not_found"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class Outcome:
    """
    Result of resolving one page URL to a video.

    Attributes:
        source_url: The page URL this outcome is for.
        track: Track extracted from the page, or None if unresolved.
        video: Video found for the track, or None.
        error: The error that stopped resolution, or None on success.

    Properties:
        status: OutcomeStatus derived from the fields above.
        label: Search phrase of the track, or an "unresolved: <url>"
               placeholder when the track is unknown.
        display_value: Video URL (tagged when cached) or "-".

    Example:
        outcome = resolver.find(url)
        if outcome.found:
            print(outcome.video.url)
        else:
            print(f"{outcome.label}: {outcome.error}")
    """

    source_url: str
    track: Track | None = None
    video: VideoMatch | None = None
    error: ResolveError | None = None

    @property
    def status(self) -> OutcomeStatus:
        if self.video is not None:
            return OutcomeStatus.FOUND
        if self.track is not None:
            return OutcomeStatus.NOT_FOUND
        return OutcomeStatus.UNRESOLVED

    @property
    def found(self) -> bool:
        return self.status is OutcomeStatus.FOUND

    @property
    def label(self) -> str:
        if self.track is not None:
            return self.track.search_phrase
        return f"unresolved: {self.source_url}"

    @property
    def display_value(self) -> str:
        if self.video is not None:
            return self.video.display_url
        return NOT_FOUND_MARKER

    @classmethod
    def success(cls, source_url: str, track: Track, video: VideoMatch) -> "Outcome":
        """Create an outcome for a track with a video."""
        return cls(source_url=source_url, track=track, video=video)

    @classmethod
    def not_found(cls, source_url: str, track: Track, error: ResolveError) -> "Outcome":
        """Create an outcome for a track whose video search failed."""
        return cls(source_url=source_url, track=track, error=error)

    @classmethod
    def unresolved(cls, source_url: str, error: ResolveError) -> "Outcome":
        """Create an outcome for a page whose track couldn't be determined."""
        return cls(source_url=source_url, error=error)


@dataclass(frozen=True)
class CollectionResult:
    """
    Outcomes of resolving an album or playlist.

    Attributes:
        url: The collection URL as given.
        service: Service the collection belongs to.
        outcomes: One outcome per resolved member, in member-link order.
                  At most the fan-out limit long.
    """

    url: str
    service: Service
    outcomes: tuple[Outcome, ...]

    def __len__(self) -> int:
        return len(self.outcomes)

    def by_label(self) -> dict[str, Outcome]:
        """
        Map each outcome's label to the outcome.

        Members resolving to the same track share a label; the later
        member in link order wins.
        """
        return {outcome.label: outcome for outcome in self.outcomes}

    @property
    def found_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.found)
