"""
Track resolution: service URL -> Track(s) -> YouTube video(s).

This module ties the pipeline together:

    classify -> fetch page -> extract track -> search YouTube

Single tracks:
    resolve(url) returns the Track; find(url) also searches for its video.
    Classification, fetch and extraction errors are raised to the caller.

Collections (albums, playlists):
    resolve_collection(url) classifies and fetches the collection page once,
    reads up to `limit` member links from its head metadata, then runs the
    single-track path plus the search for every member on a thread pool of
    at most `limit` workers. Each member ends up in its own Outcome slot;
    one member failing never stops the others.

Sequential mode:
    With sequential=True the same pool runs with a single worker, so each
    member is resolved and searched to completion, in link order, before
    the next one starts.

Usage:
    from tubelink.resolver import TrackResolver

    resolver = TrackResolver.from_config(load_config())
    result = resolver.resolve_url("https://open.spotify.com/playlist/...")
"""

from concurrent.futures import ThreadPoolExecutor, as_completed

from tubelink.core.config import DEFAULT_LIMIT, DEFAULT_LOCALE, Config
from tubelink.core.exceptions import ResolveError, SearchError, UnsupportedEntityTypeError
from tubelink.core.logger import (
    format_found_message,
    format_not_found_message,
    format_unresolved_message,
    get_logger,
    log_unmatched_track,
)
from tubelink.core.progress import ResolvingProgressBar
from tubelink.music.classifier import classify
from tubelink.music.extractor import extract_member_links, extract_track
from tubelink.music.fetcher import PageFetcher
from tubelink.music.models import ClassifiedURL, EntityType, ParseResult, Track
from tubelink.music.profiles import get_profile
from tubelink.resolver.models import CollectionResult, Outcome, OutcomeStatus
from tubelink.youtube.cache import SearchCache
from tubelink.youtube.searcher import YouTubeSearcher


logger = get_logger(__name__)


class TrackResolver:
    """
    Resolves service URLs into tracks and YouTube videos.

    Attributes:
        _fetcher: Downloads and parses pages (PageFetcher or compatible).
        _searcher: Finds videos for tracks (YouTubeSearcher or compatible).
        _limit: Default fan-out limit for collections.
        _sequential: Resolve collection members one at a time.
        _locale: Locale parameter added to page URLs.

    Thread Safety:
        A resolver may be shared by several threads; it holds no mutable
        state of its own. The searcher's cache is the only shared state.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        searcher: YouTubeSearcher,
        limit: int = DEFAULT_LIMIT,
        sequential: bool = False,
        locale: str = DEFAULT_LOCALE
    ) -> None:
        if limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit}")
        self._fetcher = fetcher
        self._searcher = searcher
        self._limit = limit
        self._sequential = sequential
        self._locale = locale

    @classmethod
    def from_config(cls, config: Config, cache: SearchCache | None = None) -> "TrackResolver":
        """
        Build a resolver with network-backed fetcher and searcher.

        Args:
            config: Loaded application configuration.
            cache: Search cache to share; a fresh one is created if None.
        """
        fetcher = PageFetcher(timeout=config.resolver.timeout)
        searcher = YouTubeSearcher(
            cache if cache is not None else SearchCache(),
            api_key_env=config.youtube.api_key_env,
            timeout=config.youtube.timeout
        )
        return cls(
            fetcher,
            searcher,
            limit=config.resolver.limit,
            sequential=config.resolver.sequential,
            locale=config.resolver.locale
        )

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def sequential(self) -> bool:
        return self._sequential

    # -------------------------------------------------------------------------
    # Single tracks
    # -------------------------------------------------------------------------

    def classify(self, url: str) -> ClassifiedURL:
        """Classify a URL using this resolver's locale."""
        return classify(url, self._locale)

    def parse(self, url: str) -> ParseResult:
        """
        Classify a URL and fetch its page.

        The caller owns the returned document and should call
        ParseResult.release() when done with it.

        Raises:
            ClassificationError, FetchError, DocumentParseError
        """
        return self._fetch(self.classify(url))

    def _fetch(self, classified: ClassifiedURL) -> ParseResult:
        document = self._fetcher.fetch(classified.normalized_url)
        return ParseResult(
            service=classified.service,
            entity_type=classified.entity_type,
            url=classified.normalized_url,
            document=document,
        )

    def resolve(self, url: str) -> Track:
        """
        Resolve a track URL into its Track.

        Args:
            url: Track URL (or collection URL addressing one item).

        Returns:
            Track read from the page title.

        Raises:
            ClassificationError: URL not classifiable, or it's a collection.
            FetchError: Page couldn't be downloaded.
            DocumentParseError: Page couldn't be parsed.
            ExtractionError: Page title missing or not in the expected shape.
        """
        return self._resolve_track(self.classify(url), url)

    def _resolve_track(self, classified: ClassifiedURL, url: str) -> Track:
        if classified.entity_type is not EntityType.TRACK:
            raise UnsupportedEntityTypeError(
                f"Expected a track link, got a {classified.raw_entity} link: {url}",
                details={"url": url, "entity": classified.raw_entity}
            )

        parsed = self._fetch(classified)
        try:
            return extract_track(parsed.document, get_profile(parsed.service).title_pattern)
        finally:
            parsed.release()

    def search(self, track: Track, source_url: str = "") -> Outcome:
        """
        Search the video for an already known track.

        Search failures are recorded in the outcome, not raised.
        """
        try:
            video = self._searcher.search(track)
        except SearchError as e:
            return Outcome.not_found(source_url, track, e)
        return Outcome.success(source_url, track, video)

    def find(self, url: str) -> Outcome:
        """
        Resolve a track URL and search its video.

        Raises:
            Same as resolve(); search failures are recorded in the
            returned Outcome instead.
        """
        return self._find(self.classify(url), url)

    def _find(self, classified: ClassifiedURL, url: str) -> Outcome:
        track = self._resolve_track(classified, url)
        logger.debug(f"Parsed song info: {track}")
        outcome = self.search(track, url)
        self._report(outcome)
        return outcome

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    def resolve_collection(
        self,
        url: str,
        limit: int | None = None,
        show_progress: bool = False
    ) -> CollectionResult:
        """
        Resolve the members of an album or playlist and search their videos.

        Args:
            url: Collection URL.
            limit: Fan-out limit for this call; defaults to the resolver's.
            show_progress: Display a progress bar while members resolve.

        Returns:
            CollectionResult with exactly one Outcome per member link read
            (at most `limit`), in link order.

        Raises:
            ClassificationError: URL not classifiable, or it's a track.
            FetchError / DocumentParseError: Collection page unavailable.
            Member failures are never raised; they are recorded.
        """
        limit = self._check_limit(limit)
        return self._resolve_collection(self.classify(url), url, limit, show_progress)

    def _check_limit(self, limit: int | None) -> int:
        limit = self._limit if limit is None else limit
        if limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit}")
        return limit

    def _resolve_collection(
        self,
        classified: ClassifiedURL,
        url: str,
        limit: int,
        show_progress: bool
    ) -> CollectionResult:
        if classified.entity_type is not EntityType.COLLECTION:
            raise UnsupportedEntityTypeError(
                f"Expected an album or playlist link: {url}",
                details={"url": url, "entity": classified.raw_entity}
            )

        parsed = self._fetch(classified)
        try:
            member_urls = list(extract_member_links(parsed.document, limit))
        finally:
            parsed.release()

        logger.info(f"Resolving {len(member_urls)} tracks from {url}")

        outcomes = self._resolve_members(member_urls, limit, show_progress)
        return CollectionResult(url=url, service=classified.service, outcomes=tuple(outcomes))

    def _resolve_members(
        self,
        member_urls: list[str],
        limit: int,
        show_progress: bool
    ) -> list[Outcome]:
        """Run every member through the pipeline; results are index-addressed."""
        outcomes: list[Outcome | None] = [None] * len(member_urls)
        if not member_urls:
            return []

        workers = 1 if self._sequential else min(limit, len(member_urls))

        progress_bar = ResolvingProgressBar(total=len(member_urls)) if show_progress else None
        if progress_bar is not None:
            progress_bar.start()

        try:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                future_to_index = {
                    executor.submit(self._resolve_member, member_url): index
                    for index, member_url in enumerate(member_urls)
                }

                for future in as_completed(future_to_index):
                    index = future_to_index[future]
                    member_url = member_urls[index]

                    try:
                        outcome = future.result()
                    except Exception as e:
                        logger.exception(f"Error resolving {member_url}")
                        outcome = Outcome.unresolved(
                            member_url,
                            ResolveError(
                                f"Unexpected error: {e}",
                                details={"url": member_url, "original_error": str(e)}
                            )
                        )

                    outcomes[index] = outcome
                    self._report(outcome, progress_bar)
        finally:
            if progress_bar is not None:
                progress_bar.stop()

        return [outcome for outcome in outcomes if outcome is not None]

    def _resolve_member(self, member_url: str) -> Outcome:
        """
        Resolve and search one collection member.

        Members whose track can't be determined skip the search.
        """
        try:
            track = self.resolve(member_url)
        except ResolveError as e:
            logger.debug(f"Couldn't extract song info from {member_url} ({e.stage}): {e}")
            return Outcome.unresolved(member_url, e)

        logger.debug(f"Parsed song info: {track}")
        return self.search(track, member_url)

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def resolve_url(
        self,
        url: str,
        limit: int | None = None,
        show_progress: bool = False
    ) -> Outcome | CollectionResult:
        """
        Resolve any supported URL.

        Returns:
            Outcome for a track URL, CollectionResult for a collection URL.

        Raises:
            Same as find() and resolve_collection().
        """
        classified = self.classify(url)
        if classified.entity_type is EntityType.COLLECTION:
            return self._resolve_collection(
                classified, url, self._check_limit(limit), show_progress
            )
        return self._find(classified, url)

    def close(self) -> None:
        """Close the fetcher's and searcher's HTTP sessions."""
        self._fetcher.close()
        self._searcher.close()

    def _report(self, outcome: Outcome, progress_bar: ResolvingProgressBar | None = None) -> None:
        """Log an outcome (and show it above the progress bar, if any)."""
        if outcome.status is OutcomeStatus.FOUND:
            logger.debug(f"Found {outcome.label}: {outcome.video.url}")
            message = format_found_message(outcome.label, outcome.video.url, outcome.video.cached)
        else:
            log_unmatched_track(logger, outcome.label, outcome.source_url, str(outcome.error))
            if outcome.status is OutcomeStatus.NOT_FOUND:
                message = format_not_found_message(outcome.label, str(outcome.error))
            else:
                message = format_unresolved_message(outcome.source_url, str(outcome.error))

        if progress_bar is not None:
            progress_bar.log(message)
            progress_bar.update(
                found=outcome.found,
                unresolved=outcome.status is OutcomeStatus.UNRESOLVED
            )
