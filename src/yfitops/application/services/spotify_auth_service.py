"""Spotify OAuth authorization-code capture.

Hey future me - this is the injected "obtain_authorization_code" capability that
SessionManager.login() awaits! It knows nothing about windows or UI toolkits:

OAuth Flow:
1. begin() -> state nonce + authorize URL (optionally opened in a browser)
2. User grants access, Spotify redirects to SPOTIFY_REDIRECT_URI
3. handle_callback(url) -> validates redirect prefix + state, resolves the wait
4. obtain_authorization_code() returns AuthorizationCode(code, state)

Token exchange is NOT done here - SessionManager does it with the catalog client.
"""

import asyncio
import logging
import secrets
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs, urlsplit

from yfitops.config import SpotifySettings
from yfitops.domain.dtos import AuthorizationCode
from yfitops.domain.exceptions import AuthenticationError, ConfigurationError
from yfitops.domain.ports import ICatalogClient

logger = logging.getLogger(__name__)


@dataclass
class AuthUrlResult:
    """Authorize URL plus the state nonce it was built with."""

    authorization_url: str
    state: str


@dataclass
class _PendingAuthorization:
    url: AuthUrlResult
    future: "asyncio.Future[AuthorizationCode]"


class AuthorizationCodeFlow:
    """Captures one OAuth redirect at a time."""

    def __init__(
        self,
        client: ICatalogClient,
        settings: SpotifySettings,
        open_browser: Callable[[str], Any] | None = None,
    ) -> None:
        """Initialize the flow.

        Args:
            client: Catalog client (builds the authorize URL)
            settings: Spotify settings (redirect URI, scopes, timeout)
            open_browser: Callable used to open the URL (defaults to webbrowser.open)
        """
        self._client = client
        self._settings = settings
        self._open_browser = open_browser or webbrowser.open
        self._pending: _PendingAuthorization | None = None

    @property
    def pending_url(self) -> str | None:
        """Authorize URL of the authorization in progress, if any."""
        return self._pending.url.authorization_url if self._pending else None

    def begin(self) -> AuthUrlResult:
        """Start (or restart) an authorization and return its URL.

        Must be called from inside a running event loop.

        Raises:
            ConfigurationError: If Spotify credentials are missing
        """
        return self._start().url

    def _start(self) -> _PendingAuthorization:
        if not self._settings.is_configured:
            raise ConfigurationError()

        if self._pending is not None and not self._pending.future.done():
            self._pending.future.cancel()

        state = secrets.token_urlsafe(32)
        url = self._client.build_authorization_url(state, self._settings.scopes)
        loop = asyncio.get_running_loop()
        pending = _PendingAuthorization(
            url=AuthUrlResult(authorization_url=url, state=state),
            future=loop.create_future(),
        )
        self._pending = pending
        logger.debug("Started Spotify authorization with state=%s...", state[:8])
        return pending

    async def obtain_authorization_code(self) -> AuthorizationCode:
        """Wait for the OAuth redirect and return its code.

        Reuses an authorization started via begin(), otherwise starts one and
        opens the browser when AUTH_OPEN_BROWSER is set.

        Raises:
            AuthenticationError: On provider error, timeout or cancelled flow
        """
        pending = self._pending
        if pending is None or pending.future.done():
            pending = self._start()
            if self._settings.auth_open_browser:
                self._open_browser(pending.url.authorization_url)

        try:
            return await asyncio.wait_for(
                asyncio.shield(pending.future),
                timeout=self._settings.auth_timeout_seconds,
            )
        except TimeoutError as e:
            logger.warning("Timed out waiting for Spotify authorization callback")
            raise AuthenticationError(
                "Timed out waiting for Spotify authorization."
            ) from e
        except asyncio.CancelledError:
            if pending.future.cancelled():
                raise AuthenticationError("Spotify authorization was restarted.") from None
            raise
        finally:
            if self._pending is pending and pending.future.done():
                self._pending = None

    # Hey future me - the redirect prefix check stops us from accepting callbacks that
    # didn't come back through OUR redirect URI, and the state check is the CSRF guard.
    # A wrong state does NOT resolve the wait - the real callback may still arrive.
    def handle_callback(self, callback_url: str) -> AuthorizationCode:
        """Validate an OAuth redirect and hand its code to the waiting login.

        Args:
            callback_url: Full URL Spotify redirected to

        Returns:
            The captured AuthorizationCode

        Raises:
            AuthenticationError: No flow in progress, foreign URL, state mismatch,
                provider error or missing code
        """
        pending = self._pending
        if pending is None or pending.future.done():
            raise AuthenticationError("No Spotify authorization is in progress.")

        if not callback_url.startswith(self._settings.redirect_uri):
            logger.warning("Rejected OAuth callback with unexpected redirect URI")
            raise AuthenticationError("Callback does not match the configured redirect URI.")

        query = parse_qs(urlsplit(callback_url).query)
        state = (query.get("state") or [""])[0]
        if not secrets.compare_digest(state, pending.url.state):
            logger.warning("Rejected OAuth callback with mismatched state")
            raise AuthenticationError("Authorization state mismatch.")

        error = (query.get("error") or [""])[0]
        if error:
            exc = AuthenticationError(f"Spotify authorization failed: {error}")
            pending.future.set_exception(exc)
            raise exc

        code = (query.get("code") or [""])[0]
        if not code:
            exc = AuthenticationError("Spotify callback did not include an authorization code.")
            pending.future.set_exception(exc)
            raise exc

        result = AuthorizationCode(code=code, state=state)
        pending.future.set_result(result)
        logger.info("Received Spotify authorization callback")
        return result
