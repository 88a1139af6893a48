"""Tests for the Typer command-line interface."""

import asyncio
from unittest.mock import patch

from tunematch.infrastructure.cli.app import app, main


class TestMatchCommand:
    def test_match(self, runner):
        result = runner.invoke(app, ["match", "song-a", "song-b"])

        assert result.exit_code == 0
        assert "Match score: 100/100" in result.output
        assert "These songs are very similar" in result.output

    def test_match_json(self, runner):
        result = runner.invoke(app, ["match", "song-a", "song-b", "--format", "json"])

        assert result.exit_code == 0
        assert '"overall_score": 100' in result.output

    def test_match_rejects_unknown_format(self, runner):
        result = runner.invoke(app, ["match", "song-a", "song-b", "--format", "xml"])

        assert result.exit_code == 2
        assert "Match score" not in result.output

    def test_match_without_explanation(self, runner):
        result = runner.invoke(app, ["match", "song-a", "song-b", "--no-explanation"])

        assert result.exit_code == 0
        assert "These songs are" not in result.output

    def test_match_unknown_song(self, runner):
        result = runner.invoke(app, ["match", "song-a", "missing"])

        assert result.exit_code == 1
        assert "No song missing" in result.output

    def test_match_caches_result(self, runner, cli_store, fake_source):
        """The store is closed after each command, so check calls instead."""
        runner.invoke(app, ["match", "song-a", "song-b"])

        assert fake_source.fetch_by_id.await_count == 2
        assert len(cli_store) == 0


class TestLookupCommands:
    def test_features(self, runner):
        result = runner.invoke(app, ["features", "spotify", "song-a"])

        assert result.exit_code == 0
        assert "Title song-a" in result.output
        assert "valence" in result.output

    def test_search(self, runner):
        result = runner.invoke(app, ["search", "anything", "--limit", "1"])

        assert result.exit_code == 0
        assert "song-a" in result.output
        assert "--offset 1" in result.output

    def test_search_limit_validated(self, runner):
        result = runner.invoke(app, ["search", "anything", "--limit", "500"])
        assert result.exit_code != 0


class TestCacheCommands:
    def test_stats(self, runner, cli_store):
        asyncio.run(cli_store.set_with_ttl("match:a:b", b"{}", 3600))

        result = runner.invoke(app, ["cache", "stats"])

        assert result.exit_code == 0
        assert "Cache statistics" in result.output

    def test_sweep(self, runner):
        result = runner.invoke(app, ["cache", "sweep"])

        assert result.exit_code == 0
        assert "Swept 0 expired song entries" in result.output

    def test_clear_matches_requires_confirmation(self, runner, cli_store):
        asyncio.run(cli_store.set_with_ttl("match:a:b", b"{}", 3600))

        result = runner.invoke(app, ["cache", "clear-matches"], input="n\n")

        assert result.exit_code == 1
        assert len(cli_store) == 1

    def test_clear_matches_confirmed(self, runner, cli_store):
        asyncio.run(cli_store.set_with_ttl("match:a:b", b"{}", 3600))

        result = runner.invoke(app, ["cache", "clear-matches", "--yes"])

        assert result.exit_code == 0
        assert "Cleared 1 match results" in result.output

    def test_clear_songs(self, runner):
        result = runner.invoke(app, ["cache", "clear-songs", "-y"])

        assert result.exit_code == 0
        assert "Cleared 0 songs" in result.output

    def test_invalidate_match_nothing_cached(self, runner):
        result = runner.invoke(app, ["cache", "invalidate-match", "b", "a"])

        assert result.exit_code == 0
        assert "Nothing cached for b / a" in result.output

    def test_invalidate_song(self, runner, cli_store):
        asyncio.run(cli_store.set_with_ttl("song:spotify:song-a", b"{}", 3600))

        result = runner.invoke(app, ["cache", "invalidate-song", "spotify", "song-a"])

        assert result.exit_code == 0
        assert "Invalidated spotify:song-a" in result.output


def test_version(runner):
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "Tunematch" in result.output


class TestMain:
    def test_returns_zero_on_success(self):
        with patch("tunematch.infrastructure.cli.app.app", return_value=None):
            assert main() == 0

    def test_unhandled_exception_returns_one(self):
        """Unexpected failures are logged and mapped to exit status 1."""
        with patch(
            "tunematch.infrastructure.cli.app.app", side_effect=RuntimeError("boom")
        ):
            assert main() == 1
