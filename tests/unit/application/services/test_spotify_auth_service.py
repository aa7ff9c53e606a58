"""Tests for the OAuth authorization-code capture."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from yfitops.application.services.spotify_auth_service import AuthorizationCodeFlow
from yfitops.config import SpotifySettings
from yfitops.domain.exceptions import AuthenticationError, ConfigurationError

REDIRECT = "http://localhost:4350/callback"


@pytest.fixture
def flow(mock_client: AsyncMock, spotify_settings: SpotifySettings) -> AuthorizationCodeFlow:
    mock_client.build_authorization_url.return_value = "https://accounts.spotify.com/authorize?x=1"
    return AuthorizationCodeFlow(mock_client, spotify_settings)


async def _start_waiting(flow: AuthorizationCodeFlow) -> tuple[str, asyncio.Task]:
    state = flow.begin().state
    task = asyncio.create_task(flow.obtain_authorization_code())
    await asyncio.sleep(0)
    return state, task


class TestBegin:
    async def test_begin_builds_url_with_fresh_state(
        self, flow: AuthorizationCodeFlow, mock_client: AsyncMock
    ) -> None:
        first = flow.begin()
        second = flow.begin()

        assert first.authorization_url == "https://accounts.spotify.com/authorize?x=1"
        assert first.state != second.state
        assert flow.pending_url == second.authorization_url
        mock_client.build_authorization_url.assert_called_with(
            second.state, flow._settings.scopes
        )

    def test_begin_requires_configuration(self, mock_client: AsyncMock) -> None:
        flow = AuthorizationCodeFlow(mock_client, SpotifySettings())
        with pytest.raises(ConfigurationError):
            flow.begin()


class TestCallback:
    async def test_valid_callback_resolves_wait(self, flow: AuthorizationCodeFlow) -> None:
        state, task = await _start_waiting(flow)

        flow.handle_callback(f"{REDIRECT}?code=abc&state={state}")
        result = await task

        assert result.code == "abc"
        assert result.state == state
        assert flow.pending_url is None

    async def test_wrong_state_is_rejected_but_wait_continues(
        self, flow: AuthorizationCodeFlow
    ) -> None:
        state, task = await _start_waiting(flow)

        with pytest.raises(AuthenticationError, match="state"):
            flow.handle_callback(f"{REDIRECT}?code=abc&state=forged")
        assert not task.done()

        flow.handle_callback(f"{REDIRECT}?code=real&state={state}")
        assert (await task).code == "real"

    async def test_foreign_redirect_is_rejected(self, flow: AuthorizationCodeFlow) -> None:
        state, task = await _start_waiting(flow)

        with pytest.raises(AuthenticationError, match="redirect"):
            flow.handle_callback(f"http://evil.example/callback?code=abc&state={state}")

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    async def test_provider_error_fails_login(self, flow: AuthorizationCodeFlow) -> None:
        state, task = await _start_waiting(flow)

        with pytest.raises(AuthenticationError):
            flow.handle_callback(f"{REDIRECT}?error=access_denied&state={state}")

        with pytest.raises(AuthenticationError, match="access_denied"):
            await task

    def test_callback_without_pending_flow(self, flow: AuthorizationCodeFlow) -> None:
        with pytest.raises(AuthenticationError, match="in progress"):
            flow.handle_callback(f"{REDIRECT}?code=abc&state=s")


class TestObtainAuthorizationCode:
    async def test_times_out(self, mock_client: AsyncMock) -> None:
        settings = SpotifySettings(
            client_id="id",
            client_secret="secret",
            auth_timeout_seconds=0.01,
            auth_open_browser=False,
        )
        flow = AuthorizationCodeFlow(mock_client, settings)

        with pytest.raises(AuthenticationError, match="Timed out"):
            await flow.obtain_authorization_code()

    async def test_opens_browser_when_enabled(self, mock_client: AsyncMock) -> None:
        mock_client.build_authorization_url.return_value = "https://accounts.spotify.com/authorize"
        opener = MagicMock()
        settings = SpotifySettings(
            client_id="id",
            client_secret="secret",
            auth_timeout_seconds=0.01,
            auth_open_browser=True,
        )
        flow = AuthorizationCodeFlow(mock_client, settings, open_browser=opener)

        with pytest.raises(AuthenticationError):
            await flow.obtain_authorization_code()

        opener.assert_called_once_with("https://accounts.spotify.com/authorize")

    async def test_restart_fails_previous_wait(self, flow: AuthorizationCodeFlow) -> None:
        _state, task = await _start_waiting(flow)

        flow.begin()

        with pytest.raises(AuthenticationError, match="restarted"):
            await task
