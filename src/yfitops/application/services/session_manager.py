"""Spotify session (access/refresh token) management.

Hey future me - SessionManager is the ONLY owner of the Session! Every queue
operation awaits require_access_token() before touching the catalog, so token
refresh is the one suspend point gating all network calls.

Lifecycle:
- login() / store_token() -> Session created
- ensure_access_token() -> refreshes when < 60s of lifetime remain
- refresh failure -> Session cleared, caller sees NotAuthenticated
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta

from yfitops.domain.dtos import AuthorizationCode, Session, TokenResponse
from yfitops.domain.exceptions import (
    AuthenticationError,
    ExternalServiceError,
)
from yfitops.domain.ports import ICatalogClient

logger = logging.getLogger(__name__)

ObtainAuthorizationCode = Callable[[], Awaitable[AuthorizationCode]]


class SessionManager:
    """Holds the current Spotify credentials and refreshes them lazily."""

    REFRESH_MARGIN_SECONDS = 60
    DEFAULT_EXPIRES_IN = 3600

    def __init__(
        self,
        client: ICatalogClient,
        obtain_authorization_code: ObtainAuthorizationCode | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize session manager.

        Args:
            client: Catalog client used for code exchange and refresh
            obtain_authorization_code: Async capability returning the OAuth code
            clock: Returns "now" as an aware datetime (tests inject a fixed clock)
        """
        self._client = client
        self._obtain_authorization_code = obtain_authorization_code
        self._clock = clock or (lambda: datetime.now(UTC))
        self._session: Session | None = None
        self._refresh_lock = asyncio.Lock()

    @property
    def session(self) -> Session | None:
        """Current session, or None when logged out."""
        return self._session

    # Hey future me - Spotify often omits refresh_token on refresh responses. We keep the
    # previous one in that case, otherwise the NEXT refresh would be impossible.
    def store_token(self, token: TokenResponse | None) -> Session | None:
        """Store a token response as the current session.

        Args:
            token: Token response, or None to clear the session

        Returns:
            The new session (None if cleared)
        """
        if token is None:
            self._session = None
            return None
        return self._replace_session(token)

    def _replace_session(self, token: TokenResponse) -> Session:
        previous_refresh = self._session.refresh_token if self._session else None
        expires_in = token.expires_in
        if not expires_in or expires_in <= 0:
            expires_in = self.DEFAULT_EXPIRES_IN
        session = Session(
            access_token=token.access_token,
            refresh_token=token.refresh_token or previous_refresh,
            expires_at=self._clock() + timedelta(seconds=expires_in),
            scope=frozenset((token.scope or "").split()),
        )
        self._session = session
        logger.debug("Stored Spotify session (expires in %ds)", expires_in)
        return session

    def clear(self) -> None:
        """Forget the current session."""
        self._session = None

    async def refresh(self) -> Session:
        """Refresh the access token.

        Raises:
            AuthenticationError: No refresh token (session is cleared)
            TokenRefreshException: Refresh token rejected by Spotify
            ExternalServiceError: Other upstream failures
        """
        session = self._session
        if session is None or not session.refresh_token:
            self._session = None
            raise AuthenticationError("No refresh token available for Spotify session.")

        token = await self._client.refresh_access_token(session.refresh_token)
        new_session = self._replace_session(token)
        logger.info("Refreshed Spotify access token")
        return new_session

    async def ensure_access_token(self) -> bool:
        """Make sure a valid access token is available.

        Returns:
            True if authenticated (refreshing when needed), False otherwise.
            A failed refresh clears the session.
        """
        if self._session is None:
            return False

        async with self._refresh_lock:
            session = self._session
            if session is None:
                return False
            if not session.expires_within(self.REFRESH_MARGIN_SECONDS, now=self._clock()):
                return True

            try:
                await self.refresh()
            except (AuthenticationError, ExternalServiceError) as e:
                logger.warning("Spotify token refresh failed, session cleared: %s", e)
                self._session = None
                return False
        return True

    async def is_authenticated(self) -> bool:
        """Alias of ensure_access_token() for the command surface."""
        return await self.ensure_access_token()

    async def require_access_token(self) -> str:
        """Return a valid access token.

        Raises:
            AuthenticationError: If there is no valid session
        """
        if not await self.ensure_access_token() or self._session is None:
            raise AuthenticationError()
        return self._session.access_token

    async def login(self) -> Session:
        """Run the interactive authorization and store the resulting token.

        Raises:
            AuthenticationError: No capture capability, or authorization failed
        """
        if self._obtain_authorization_code is None:
            raise AuthenticationError("Spotify OAuth provider is unavailable.")

        authorization = await self._obtain_authorization_code()
        token = await self._client.authorization_code_grant(authorization.code)
        session = self._replace_session(token)
        logger.info("Spotify login completed (scopes: %s)", " ".join(sorted(session.scope)))
        return session
