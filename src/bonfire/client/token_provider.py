"""Access token lifecycle: validation, refresh and session state."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from bonfire.client.jwt import TokenClaims, decode_token
from bonfire.core import AlreadyAuthenticatedError, get_logger
from bonfire.models.auth import Auth, RefreshTokenExpiredError


logger = get_logger(__name__)


Refresher = Callable[[Auth], Awaitable[Auth]]


@dataclass(frozen=True)
class Session:
    """A credential pair together with its decoded access token claims."""

    auth: Auth
    claims: TokenClaims


class TokenProvider:
    """Owns the current session and hands out valid access tokens.

    Reads of the session take no lock: under asyncio a state read between two
    awaits can't observe a half-written session. Every state change (login,
    logout, refresh) is serialized on a single lock, and a refresh re-checks
    expiry once it holds the lock, so concurrent callers holding the same
    expired token share one refresh round trip.
    """

    def __init__(
        self,
        auth: Auth | None,
        *,
        refresher: Refresher,
        audience: str,
        issuer: str,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._refresher = refresher
        self._audience = audience
        self._issuer = issuer
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = asyncio.Lock()
        self._session = self._decode(auth)

    def _decode(self, auth: Auth | None) -> Session | None:
        """Raises JwtError if the access token claims are unusable."""
        if auth is None:
            return None
        claims = decode_token(auth.access_token, audience=self._audience, issuer=self._issuer)
        return Session(auth, claims)

    def _is_expired(self, session: Session) -> bool:
        return session.claims.is_expired(self._clock())

    def is_auth(self) -> bool:
        """Whether a session exists; never refreshes."""
        return self._session is not None

    @property
    def session(self) -> Session | None:
        return self._session

    async def get_auth(self) -> Auth | None:
        """Return the current credential pair, refreshing it first if expired.

        Raises:
            RefreshTokenExpiredError: If the refresh token has expired too. The
                session is cleared; log in again.
        """
        session = self._session
        if session is None:
            return None
        if self._is_expired(session):
            return await self._check_and_refresh()
        return session.auth

    async def get_token(self) -> str | None:
        """Return a valid access token, or None when unauthenticated."""
        auth = await self.get_auth()
        return auth.access_token if auth else None

    async def set_auth(self, auth: Auth | None) -> None:
        """Replace the session.

        Raises:
            JwtError: If ``auth`` carries an unusable access token; the current
                session is left untouched.
        """
        session = self._decode(auth)
        async with self._lock:
            self._session = session

    async def _check_and_refresh(self) -> Auth | None:
        async with self._lock:
            session = self._session
            if session is None:
                return None
            if not self._is_expired(session):
                # Another caller refreshed while we waited for the lock
                return session.auth

            logger.debug(
                "Access token has expired, refreshing",
                extra={"subject": session.claims.subject},
            )
            try:
                auth = await self._refresher(session.auth)
            except RefreshTokenExpiredError:
                self._session = None
                logger.warning(
                    "Refresh token has expired, session cleared",
                    extra={"subject": session.claims.subject},
                )
                raise

            self._session = self._decode(auth)
            logger.info(
                "Access token refreshed",
                extra={"subject": session.claims.subject},
            )
            return auth

    async def login(self, exchange: Callable[[], Awaitable[Auth]]) -> Auth:
        """Run a login exchange and store the session it returns.

        Raises:
            AlreadyAuthenticatedError: If a session exists. Log out first.
        """
        async with self._lock:
            if self._session is not None:
                raise AlreadyAuthenticatedError()
            auth = await exchange()
            self._session = self._decode(auth)
            logger.info("Logged in", extra={"subject": self._session.claims.subject})
            return auth

    async def clear(self) -> None:
        """Drop the session unconditionally."""
        async with self._lock:
            self._session = None
        logger.info("Session cleared")
