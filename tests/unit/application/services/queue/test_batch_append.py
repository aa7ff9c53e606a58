"""Tests for batched appends."""

import logging
import math
from unittest.mock import AsyncMock

import pytest

from yfitops.application.services.queue import BatchAppendEngine, chunked, normalize_uris
from yfitops.application.services.session_manager import SessionManager
from yfitops.domain.exceptions import (
    ExternalServiceError,
    RateLimitExceededError,
    ValidationError,
)


@pytest.fixture
def engine(mock_client: AsyncMock, session: SessionManager, playlist_factory) -> BatchAppendEngine:
    mock_client.get_playlist.return_value = playlist_factory(total=0)
    mock_client.add_tracks_to_playlist.return_value = "snap-new"
    return BatchAppendEngine(mock_client, session)


def _uris(n: int) -> list[str]:
    return [f"spotify:track:{i}" for i in range(n)]


class TestHelpers:
    def test_normalize_uris_trims_and_keeps_repeats(self) -> None:
        assert normalize_uris([" a ", "", None, "b", "a", 5]) == ["a", "b", "a"]

    def test_normalize_none(self) -> None:
        assert normalize_uris(None) == []

    def test_chunked(self) -> None:
        assert [len(c) for c in chunked(_uris(250), 100)] == [100, 100, 50]


class TestAppendTracks:
    @pytest.mark.parametrize("count", [1, 99, 100, 101, 250])
    async def test_batches_in_order(
        self, engine: BatchAppendEngine, mock_client: AsyncMock, count: int
    ) -> None:
        uris = _uris(count)

        result = await engine.append_tracks("queue123", uris)

        calls = mock_client.add_tracks_to_playlist.await_args_list
        assert len(calls) == math.ceil(count / 100)
        assert all(len(c.args[1]) <= 100 for c in calls)
        assert [uri for c in calls for uri in c.args[1]] == uris
        assert result.range_length == count
        assert result.appended_count == count
        assert result.snapshot_id == "snap-new"

    async def test_range_start_is_previous_total(
        self, engine: BatchAppendEngine, mock_client: AsyncMock, playlist_factory
    ) -> None:
        mock_client.get_playlist.return_value = playlist_factory(total=10)

        result = await engine.append_tracks("queue123", _uris(2))

        assert result.range_start == 10
        assert result.range_length == 2

    @pytest.mark.parametrize("uris", [[], [" ", ""], None])
    async def test_nothing_to_append_makes_no_calls(
        self, engine: BatchAppendEngine, mock_client: AsyncMock, uris
    ) -> None:
        result = await engine.append_tracks("queue123", uris)

        assert result.range_start is None
        assert result.appended_count == 0
        mock_client.get_playlist.assert_not_awaited()
        mock_client.add_tracks_to_playlist.assert_not_awaited()

    async def test_blank_playlist_id(self, engine: BatchAppendEngine) -> None:
        with pytest.raises(ValidationError):
            await engine.append_tracks("  ", _uris(1))

    async def test_partial_failure_keeps_earlier_batches(
        self, engine: BatchAppendEngine, mock_client: AsyncMock
    ) -> None:
        mock_client.add_tracks_to_playlist.side_effect = [
            "snap-1",
            ExternalServiceError("boom", http_status=500),
        ]

        with pytest.raises(ExternalServiceError):
            await engine.append_tracks("queue123", _uris(150))

        assert mock_client.add_tracks_to_playlist.await_count == 2

    async def test_rate_limit_on_second_batch_is_upstream_failure(
        self, engine: BatchAppendEngine, mock_client: AsyncMock, caplog
    ) -> None:
        mock_client.add_tracks_to_playlist.side_effect = [
            "snap-1",
            RateLimitExceededError("slow", retry_after=4.0, operation="add_tracks_to_playlist"),
        ]

        with caplog.at_level(logging.ERROR), pytest.raises(ExternalServiceError) as exc_info:
            await engine.append_tracks("queue123", _uris(150))

        assert isinstance(exc_info.value, RateLimitExceededError)
        assert exc_info.value.http_status == 429
        assert "batch 2/2 (100 tracks already appended, status=429)" in caplog.text
