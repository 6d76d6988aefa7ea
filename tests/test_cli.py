# tests/test_cli.py
"""Test the command-line interface"""

import plistlib
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from tubelink import __version__
from tubelink.cli import cli
from tubelink.core.exceptions import FetchError, NoMatchError, UnsupportedServiceError
from tubelink.music.models import Service, Track
from tubelink.resolver import CollectionResult, Outcome
from tubelink.resolver.resolver import TrackResolver
from tubelink.youtube.cache import SearchCache
from tubelink.youtube.models import VideoMatch, watch_url
from tubelink.youtube.searcher import YouTubeSearcher

from conftest import (
    SPOTIFY_TITLE,
    FakeApiSession,
    FakeFetcher,
    collection_page,
    track_page,
    video_id_for,
)


TRACK_URL = "https://open.spotify.com/track/t1"
PLAYLIST_URL = "https://open.spotify.com/playlist/p1"
TRACK = Track(name="Bad Kingdom", artist="Moderat")
VIDEO = VideoMatch(url="https://youtube.com/watch?v=abc", query=TRACK.search_phrase)


@pytest.fixture
def runner(tmp_path, monkeypatch):
    """CliRunner in an empty working directory"""
    monkeypatch.chdir(tmp_path)
    return CliRunner()


@pytest.fixture
def resolver():
    """Patch the resolver the CLI builds; yields (resolver class, instance)"""
    with patch("tubelink.cli.load_dotenv"), patch("tubelink.cli.TrackResolver") as resolver_class:
        yield resolver_class, resolver_class.from_config.return_value


@pytest.fixture
def library_file(tmp_path):
    path = tmp_path / "Library.xml"
    data = {
        "Tracks": {
            "1": {"Name": "Bad Kingdom", "Artist": "Moderat"},
            "2": {"Name": "Vaporize", "Artist": "Zomby"},
        },
        "Playlists": [
            {"Name": "Replay 2024", "Playlist Items": [{"Track ID": 1}, {"Track ID": 2}]},
        ],
    }
    with open(path, "wb") as f:
        plistlib.dump(data, f)
    return path


class TestOptions:
    """Test option validation"""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert f"tubelink {__version__}" in result.output

    def test_no_arguments_shows_help(self, runner):
        result = runner.invoke(cli, [])
        assert result.exit_code == 0

    def test_url_and_library(self, runner, library_file):
        result = runner.invoke(cli, [TRACK_URL, "--library", str(library_file)])
        assert result.exit_code == 2

    def test_playlist_requires_library(self, runner):
        result = runner.invoke(cli, [TRACK_URL, "--playlist", "Mix"])
        assert result.exit_code == 2

    def test_limit_must_be_positive(self, runner):
        result = runner.invoke(cli, [PLAYLIST_URL, "--limit", "0"])
        assert result.exit_code == 2

    def test_limit_not_allowed_with_library(self, runner, library_file):
        result = runner.invoke(cli, ["--library", str(library_file), "--limit", "2"])
        assert result.exit_code == 2


class TestUrlMode:
    """Test resolving links"""

    def test_track_found(self, runner, resolver):
        resolver_class, instance = resolver
        instance.resolve_url.return_value = Outcome.success(TRACK_URL, TRACK, VIDEO)

        result = runner.invoke(cli, [TRACK_URL])

        assert result.exit_code == 0
        assert "https://youtube.com/watch?v=abc" in result.output
        instance.resolve_url.assert_called_once_with(TRACK_URL, show_progress=True)
        instance.close.assert_called_once()

    def test_track_not_found(self, runner, resolver):
        _, instance = resolver
        instance.resolve_url.return_value = Outcome.not_found(
            TRACK_URL, TRACK, NoMatchError(f"No videos found for {TRACK.search_phrase}")
        )

        result = runner.invoke(cli, [TRACK_URL])

        assert result.exit_code == 1
        assert "No videos found" in result.output

    def test_collection(self, runner, resolver):
        _, instance = resolver
        member = "https://open.spotify.com/track/t2"
        instance.resolve_url.return_value = CollectionResult(
            url=PLAYLIST_URL,
            service=Service.SPOTIFY,
            outcomes=(
                Outcome.success(TRACK_URL, TRACK, VIDEO),
                Outcome.unresolved(member, FetchError("Failed to fetch")),
            ),
        )

        result = runner.invoke(cli, [PLAYLIST_URL])

        assert result.exit_code == 0
        assert '\n"Bad Kingdom" by "Moderat":\nhttps://youtube.com/watch?v=abc\n' in result.output
        assert f"\nunresolved: {member}:\n-\n" in result.output

    def test_stdout_carries_only_links(self, runner, resolver, api_key):
        """Progress and log lines stay off stdout so the links can be redirected"""
        resolver_class, _ = resolver
        members = [f"https://open.spotify.com/track/s{n}" for n in range(2)]
        pages = {PLAYLIST_URL: collection_page(members)}
        for n, member in enumerate(members):
            pages[member] = track_page(SPOTIFY_TITLE.format(name=f"S{n}", artist="A"))
        resolver_class.from_config.return_value = TrackResolver(
            FakeFetcher(pages),
            YouTubeSearcher(SearchCache(), session=FakeApiSession()),
        )

        result = runner.invoke(cli, [PLAYLIST_URL])

        assert result.exit_code == 0
        tracks = [Track(name=f"S{n}", artist="A") for n in range(2)]
        expected = "".join(
            f"\n{track.search_phrase}:\n{watch_url(video_id_for(track.search_phrase))}\n"
            for track in tracks
        )
        assert result.stdout == expected

    def test_resolve_error(self, runner, resolver):
        _, instance = resolver
        instance.resolve_url.side_effect = UnsupportedServiceError("Unsupported service: example.com")

        result = runner.invoke(cli, ["https://example.com/x"])

        assert result.exit_code == 1
        assert "Unsupported service" in result.output

    def test_overrides_reach_config(self, runner, resolver):
        resolver_class, instance = resolver
        instance.resolve_url.return_value = Outcome.success(TRACK_URL, TRACK, VIDEO)

        runner.invoke(cli, [PLAYLIST_URL, "--limit", "5", "--sequential"])

        config = resolver_class.from_config.call_args.args[0]
        assert config.resolver.limit == 5
        assert config.resolver.sequential is True

    def test_missing_config_file(self, runner, resolver):
        result = runner.invoke(cli, [TRACK_URL, "--config", "missing.yaml"])
        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_log_dir(self, runner, resolver, tmp_path):
        _, instance = resolver
        instance.resolve_url.return_value = Outcome.success(TRACK_URL, TRACK, VIDEO)

        result = runner.invoke(cli, [TRACK_URL, "--log-dir", str(tmp_path / "logs")])

        assert result.exit_code == 0
        assert list((tmp_path / "logs").glob("log_full_*.log"))

    def test_interrupt(self, runner, resolver):
        _, instance = resolver
        instance.resolve_url.side_effect = KeyboardInterrupt

        result = runner.invoke(cli, [TRACK_URL])

        assert result.exit_code == 130


class TestLibraryMode:
    """Test the interactive library picker"""

    def test_picker(self, runner, resolver, library_file):
        _, instance = resolver
        instance.search.return_value = Outcome.success("", TRACK, VIDEO)

        result = runner.invoke(
            cli, ["--library", str(library_file)], input="0\nabc\n7\nq\n"
        )

        assert result.exit_code == 0
        assert '(0) "Bad Kingdom" by "Moderat"' in result.output
        assert '(1) "Vaporize" by "Zomby"' in result.output
        assert 'Enter song id ("q" for exit): ' in result.output
        assert "https://youtube.com/watch?v=abc" in result.output
        assert result.output.count("Invalid id") == 2
        instance.search.assert_called_once_with(TRACK)

    def test_search_failure_keeps_prompting(self, runner, resolver, library_file):
        _, instance = resolver
        instance.search.return_value = Outcome.not_found("", TRACK, NoMatchError("No videos found"))

        result = runner.invoke(cli, ["--library", str(library_file)], input="1\nq\n")

        assert result.exit_code == 0
        assert "Error: No videos found" in result.output

    def test_end_of_input_quits(self, runner, resolver, library_file):
        result = runner.invoke(cli, ["--library", str(library_file)], input="")
        assert result.exit_code == 0

    def test_unknown_playlist(self, runner, resolver, library_file):
        result = runner.invoke(cli, ["--library", str(library_file), "--playlist", "Nope"])
        assert result.exit_code == 1
        assert "Playlist Nope was not found" in result.output

    def test_missing_library(self, runner, resolver, tmp_path):
        result = runner.invoke(cli, ["--library", str(tmp_path / "none.xml")])
        assert result.exit_code == 1
        assert "Library error" in result.output
