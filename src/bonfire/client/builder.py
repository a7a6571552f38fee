"""Builder-style client configuration."""

from __future__ import annotations

import httpx

from bonfire.client.client import Client
from bonfire.client.connector import Target, connect
from bonfire.client.jwt import decode_token
from bonfire.client.rate_limiter import RequestLimiter
from bonfire.client.transport import MeliorTransport, RootTransport
from bonfire.core import Settings, get_logger, get_settings
from bonfire.models.auth import Auth


logger = get_logger(__name__)


class ClientBuilder:
    """Configures and creates a :class:`Client`.

    Defaults come from :class:`~bonfire.core.config.Settings` (environment
    variables prefixed with ``BONFIRE_``); every setter overrides one value
    and returns the builder::

        client = (
            ClientBuilder()
            .root_uri("http://localhost:7070")
            .auth(saved_auth)
            .build()
        )
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._root_uri = self._settings.root_uri
        self._melior_uri = self._settings.melior_uri
        self._bot_token = self._settings.bot_token
        self._requests_per_minute = self._settings.requests_per_minute
        self._timeout = self._settings.timeout
        self._auth: Auth | None = None
        self._transport: httpx.AsyncBaseTransport | None = None

    def root_uri(self, uri: str) -> ClientBuilder:
        """Override the Root server URI.

        Raises:
            InvalidTargetError: If the URI has no host or an unsupported scheme.
        """
        Target.from_uri(uri)
        self._root_uri = uri
        return self

    def melior_uri(self, uri: str) -> ClientBuilder:
        """Override the Melior server URI.

        Raises:
            InvalidTargetError: If the URI has no host or an unsupported scheme.
        """
        Target.from_uri(uri)
        self._melior_uri = uri
        return self

    def bot_token(self, token: str | None) -> ClientBuilder:
        self._bot_token = token
        return self

    def auth(self, auth: Auth | None) -> ClientBuilder:
        """Start the client with previously saved credentials.

        The access token claims are checked now, without verifying the
        signature. An expired token is accepted and refreshed on first use.

        Raises:
            JwtError: If the access token is malformed or was issued for
                another audience or issuer.
        """
        if auth is not None:
            decode_token(
                auth.access_token,
                audience=self._settings.token_audience,
                issuer=self._settings.token_issuer,
            )
        self._auth = auth
        return self

    def requests_per_minute(self, requests: int) -> ClientBuilder:
        """Limit each backend to ``requests`` per minute; 0 disables the limit."""
        if requests < 0:
            raise ValueError("requests per minute must not be negative")
        self._requests_per_minute = requests
        return self

    def timeout(self, seconds: float) -> ClientBuilder:
        if seconds <= 0:
            raise ValueError("timeout must be positive")
        self._timeout = seconds
        return self

    def transport(self, transport: httpx.AsyncBaseTransport | None) -> ClientBuilder:
        """Send every request through ``transport`` instead of the network.

        Intended for fake servers, e.g. ``httpx.MockTransport``.
        """
        self._transport = transport
        return self

    def build(self) -> Client:
        """Create the client.

        Raises:
            InvalidTargetError: If a configured URI is unusable.
        """
        root = RootTransport(
            connect(self._root_uri, timeout=self._timeout, transport=self._transport),
            RequestLimiter.per_minute(self._requests_per_minute),
            api_version=self._settings.api_version,
        )
        melior = MeliorTransport(
            connect(self._melior_uri, timeout=self._timeout, transport=self._transport),
            RequestLimiter.per_minute(self._requests_per_minute),
        )
        logger.info(
            "Client built",
            extra={
                "root_uri": self._root_uri,
                "melior_uri": self._melior_uri,
                "authenticated": self._auth is not None,
                "requests_per_minute": self._requests_per_minute,
            },
        )
        return Client(
            root=root,
            melior=melior,
            auth=self._auth,
            bot_token=self._bot_token,
            token_audience=self._settings.token_audience,
            token_issuer=self._settings.token_issuer,
        )
