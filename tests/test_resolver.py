# tests/test_resolver.py
"""Test track and collection resolution"""

from unittest.mock import Mock, patch

import pytest

from tubelink.core.config import Config, OutputConfig, ResolverConfig, YouTubeConfig
from tubelink.core.exceptions import (
    FetchError,
    NoMatchError,
    ResolveError,
    TitlePatternMismatchError,
    UnsupportedEntityTypeError,
)
from tubelink.music.models import ParseResult, Service, Track
from tubelink.resolver import CollectionResult, Outcome, OutcomeStatus, TrackResolver
from tubelink.youtube.cache import SearchCache
from tubelink.youtube.searcher import YouTubeSearcher

from conftest import (
    APPLE_TITLE,
    SPOTIFY_TITLE,
    FakeApiSession,
    FakeFetcher,
    collection_page,
    track_page,
    video_id_for,
)


APPLE_SONG = "https://music.apple.com/es/song/the-morning-after/1020769483"
PLAYLIST = "https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M"
MEMBERS = [f"https://open.spotify.com/track/t{n}" for n in range(1, 5)]


def spotify_page(name, artist):
    return track_page(SPOTIFY_TITLE.format(name=name, artist=artist))


def member_tracks():
    return [Track(name=f"Song {n}", artist=f"Artist {n}") for n in range(1, 5)]


@pytest.fixture
def playlist_pages():
    """Playlist with 4 members, each with its own track page"""
    pages = {PLAYLIST: collection_page(MEMBERS)}
    for url, track in zip(MEMBERS, member_tracks()):
        pages[url] = spotify_page(track.name, track.artist)
    return pages


def make_resolver(pages, session, **kwargs):
    fetcher = FakeFetcher(pages)
    searcher = YouTubeSearcher(SearchCache(), session=session)
    return TrackResolver(fetcher, searcher, **kwargs), fetcher, searcher


class TestSingleTrack:
    """Test the single-track path"""

    def test_apple_music_end_to_end(self, api_key):
        """LRM and no-break space in the title are handled end to end"""
        pages = {APPLE_SONG: track_page(APPLE_TITLE.format(name="The Morning After", artist="Moderat"))}
        session = FakeApiSession()
        resolver, fetcher, _ = make_resolver(pages, session)

        outcome = resolver.find(APPLE_SONG)

        assert outcome.status is OutcomeStatus.FOUND
        assert outcome.track == Track(name="The Morning After", artist="Moderat")
        assert outcome.label == '"The Morning After" by "Moderat"'
        assert outcome.video.url == (
            "https://youtube.com/watch?v=" + video_id_for('"The Morning After" by "Moderat"')
        )
        assert fetcher.requested == [f"{APPLE_SONG}?l=en-GB"]
        assert session.queries == ['"The Morning After" by "Moderat"']

    def test_resolve_returns_track(self, api_key):
        pages = {MEMBERS[0]: spotify_page("Bad Kingdom", "Moderat")}
        resolver, _, _ = make_resolver(pages, FakeApiSession())
        assert resolver.resolve(MEMBERS[0]) == Track(name="Bad Kingdom", artist="Moderat")

    def test_resolve_rejects_collection(self, api_key, playlist_pages):
        resolver, fetcher, _ = make_resolver(playlist_pages, FakeApiSession())
        with pytest.raises(UnsupportedEntityTypeError):
            resolver.resolve(PLAYLIST)
        assert fetcher.requested == []

    def test_fetch_error_propagates(self, api_key):
        resolver, _, _ = make_resolver({}, FakeApiSession())
        with pytest.raises(FetchError):
            resolver.find(MEMBERS[0])

    def test_extraction_error_propagates(self, api_key):
        pages = {MEMBERS[0]: track_page("Spotify – Web Player")}
        resolver, _, _ = make_resolver(pages, FakeApiSession())
        with pytest.raises(TitlePatternMismatchError):
            resolver.find(MEMBERS[0])

    def test_search_failure_is_recorded(self, api_key):
        """The track's identity survives a failed search"""
        pages = {MEMBERS[0]: spotify_page("Rare", "Nobody")}
        session = FakeApiSession(missing={'"Rare" by "Nobody"'})
        resolver, _, _ = make_resolver(pages, session)

        outcome = resolver.find(MEMBERS[0])

        assert outcome.status is OutcomeStatus.NOT_FOUND
        assert outcome.label == '"Rare" by "Nobody"'
        assert outcome.display_value == "-"
        assert isinstance(outcome.error, NoMatchError)

    def test_document_is_released(self, api_key):
        pages = {MEMBERS[0]: spotify_page("Bad Kingdom", "Moderat")}
        resolver, _, _ = make_resolver(pages, FakeApiSession())

        with patch.object(ParseResult, "release", autospec=True) as release:
            resolver.resolve(MEMBERS[0])

        release.assert_called_once()

    def test_parse(self, api_key):
        pages = {MEMBERS[0]: spotify_page("Bad Kingdom", "Moderat")}
        resolver, _, _ = make_resolver(pages, FakeApiSession())

        parsed = resolver.parse(MEMBERS[0])

        assert parsed.service is Service.SPOTIFY
        assert parsed.url == f"{MEMBERS[0]}?l=en-GB"
        assert parsed.document is not None
        parsed.release()
        assert parsed.document is None


class TestCollection:
    """Test the collection path"""

    def test_limit_caps_members(self, api_key, playlist_pages):
        """4 members with limit 3 yield exactly 3 outcomes, in link order"""
        session = FakeApiSession()
        resolver, fetcher, searcher = make_resolver(playlist_pages, session, limit=3)

        result = resolver.resolve_collection(PLAYLIST)

        assert isinstance(result, CollectionResult)
        assert result.service is Service.SPOTIFY
        assert len(result) == 3
        assert [o.source_url for o in result.outcomes] == MEMBERS[:3]
        assert [o.track for o in result.outcomes] == member_tracks()[:3]
        assert all(o.found for o in result.outcomes)
        assert result.found_count == 3
        assert f"{MEMBERS[3]}?l=en-GB" not in fetcher.requested
        assert len(searcher.cache) == 3

    def test_concurrent_slow_searches(self, api_key, playlist_pages):
        """Slow searches overlap but never exceed the limit"""
        session = FakeApiSession(delay=0.2)
        resolver, _, searcher = make_resolver(playlist_pages, session, limit=3)

        result = resolver.resolve_collection(PLAYLIST)

        assert len(result) == 3
        assert len(result.by_label()) == 3
        assert len(searcher.cache) == 3
        assert set(session.queries) == {t.search_phrase for t in member_tracks()[:3]}
        assert 1 < session.max_in_flight <= 3

    def test_sequential_mode(self, api_key, playlist_pages):
        """One member at a time, in link order"""
        session = FakeApiSession(delay=0.05)
        resolver, _, _ = make_resolver(playlist_pages, session, limit=4, sequential=True)

        result = resolver.resolve_collection(PLAYLIST)

        assert len(result) == 4
        assert session.max_in_flight == 1
        assert session.queries == [t.search_phrase for t in member_tracks()]

    def test_limit_override(self, api_key, playlist_pages):
        resolver, _, _ = make_resolver(playlist_pages, FakeApiSession(), limit=3)
        assert len(resolver.resolve_collection(PLAYLIST, limit=1)) == 1
        assert len(resolver.resolve_collection(PLAYLIST, limit=10)) == 4

    def test_member_failures_are_isolated(self, api_key, playlist_pages):
        """A broken page and a missing video don't affect the other members"""
        del playlist_pages[MEMBERS[0]]
        playlist_pages[MEMBERS[1]] = track_page("Not a song page")
        session = FakeApiSession(missing={'"Song 3" by "Artist 3"'})
        resolver, _, _ = make_resolver(playlist_pages, session, limit=4)

        result = resolver.resolve_collection(PLAYLIST)
        first, second, third, fourth = result.outcomes

        assert first.status is OutcomeStatus.UNRESOLVED
        assert first.label == f"unresolved: {MEMBERS[0]}"
        assert first.error.stage == "fetch"
        assert second.status is OutcomeStatus.UNRESOLVED
        assert second.error.stage == "extract"
        assert third.status is OutcomeStatus.NOT_FOUND
        assert third.label == '"Song 3" by "Artist 3"'
        assert third.display_value == "-"
        assert fourth.found
        assert session.queries.count('"Song 3" by "Artist 3"') == 1
        assert len(session.queries) == 2

    def test_duplicate_members_hit_cache(self, api_key):
        pages = {
            PLAYLIST: collection_page([MEMBERS[0], MEMBERS[1]]),
            MEMBERS[0]: spotify_page("Same", "Artist"),
            MEMBERS[1]: spotify_page("Same", "Artist"),
        }
        session = FakeApiSession()
        resolver, _, _ = make_resolver(pages, session, sequential=True)

        result = resolver.resolve_collection(PLAYLIST)

        assert [o.video.cached for o in result.outcomes] == [False, True]
        assert result.outcomes[1].display_value.endswith(" [cached]")
        assert len(result.by_label()) == 1
        assert len(session.queries) == 1

    def test_empty_collection(self, api_key):
        pages = {PLAYLIST: collection_page([])}
        resolver, _, _ = make_resolver(pages, FakeApiSession())

        result = resolver.resolve_collection(PLAYLIST)

        assert len(result) == 0
        assert result.outcomes == ()

    def test_collection_page_failure_propagates(self, api_key):
        resolver, _, _ = make_resolver({}, FakeApiSession())
        with pytest.raises(FetchError):
            resolver.resolve_collection(PLAYLIST)

    def test_rejects_track_url(self, api_key):
        resolver, _, _ = make_resolver({}, FakeApiSession())
        with pytest.raises(UnsupportedEntityTypeError):
            resolver.resolve_collection(MEMBERS[0])

    def test_unexpected_member_error_is_recorded(self, playlist_pages):
        searcher = Mock()
        searcher.search.side_effect = [RuntimeError("boom")] + [
            Mock(url="https://youtube.com/watch?v=x", cached=False)
        ] * 3
        resolver = TrackResolver(FakeFetcher(playlist_pages), searcher, sequential=True)

        result = resolver.resolve_collection(PLAYLIST)

        assert result.outcomes[0].status is OutcomeStatus.UNRESOLVED
        assert isinstance(result.outcomes[0].error, ResolveError)
        assert all(o.found for o in result.outcomes[1:])

    def test_progress_bar(self, api_key, playlist_pages):
        playlist_pages[MEMBERS[0]] = track_page("broken")
        resolver, _, _ = make_resolver(playlist_pages, FakeApiSession(), limit=3)

        with patch("tubelink.resolver.resolver.ResolvingProgressBar") as bar_class:
            resolver.resolve_collection(PLAYLIST, show_progress=True)

        bar = bar_class.return_value
        bar_class.assert_called_once_with(total=3)
        bar.start.assert_called_once()
        bar.stop.assert_called_once()
        assert bar.update.call_count == 3
        assert bar.log.call_count == 3
        bar.update.assert_any_call(found=False, unresolved=True)
        bar.update.assert_any_call(found=True, unresolved=False)


class TestDispatch:
    """Test resolve_url and construction"""

    def test_resolve_url_track(self, api_key, playlist_pages):
        resolver, _, _ = make_resolver(playlist_pages, FakeApiSession())
        assert isinstance(resolver.resolve_url(MEMBERS[0]), Outcome)

    def test_resolve_url_collection(self, api_key, playlist_pages):
        resolver, _, _ = make_resolver(playlist_pages, FakeApiSession())
        assert isinstance(resolver.resolve_url(PLAYLIST), CollectionResult)

    def test_resolve_url_classifies_once(self, api_key, playlist_pages):
        resolver, _, _ = make_resolver(playlist_pages, FakeApiSession())
        classify = resolver.classify

        with patch.object(resolver, "classify", wraps=classify) as spy:
            resolver.resolve_url(MEMBERS[0])
            resolver.resolve_url(PLAYLIST, limit=2)

        urls = [call.args[0] for call in spy.call_args_list]
        assert urls.count(MEMBERS[0]) == 2
        assert urls.count(PLAYLIST) == 1

    def test_resolve_url_invalid_limit(self, api_key, playlist_pages):
        resolver, fetcher, _ = make_resolver(playlist_pages, FakeApiSession())
        with pytest.raises(ValueError):
            resolver.resolve_url(PLAYLIST, limit=0)
        assert fetcher.requested == []

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            TrackResolver(FakeFetcher(), Mock(), limit=0)

    def test_from_config(self):
        config = Config(
            youtube=YouTubeConfig(api_key_env="KEY", timeout=3),
            resolver=ResolverConfig(limit=5, sequential=True, locale="en-US", timeout=4),
            output=OutputConfig(),
        )
        cache = SearchCache()

        resolver = TrackResolver.from_config(config, cache=cache)

        assert resolver.limit == 5
        assert resolver.sequential
        assert resolver.classify(MEMBERS[0]).normalized_url.endswith("l=en-US")
        resolver.close()

    def test_close(self):
        fetcher = FakeFetcher()
        searcher = Mock()
        TrackResolver(fetcher, searcher).close()
        assert fetcher.closed
        searcher.close.assert_called_once()
