"""Client facade for the Bonfire API."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel

from bonfire.client.errors import MeliorError, RootError
from bonfire.client.specialization import RequestError
from bonfire.client.token_provider import TokenProvider
from bonfire.client.transport import MeliorTransport, RootTransport, parse_response
from bonfire.core import BonfireError, LogContext, UnauthenticatedError, get_logger
from bonfire.models.auth import Auth
from bonfire.queries import auth as queries


logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class Client:
    """Asynchronous client for the Bonfire API.

    Holds one connection per backend and the authentication session. Every
    operation goes through :meth:`send_request` (Root) or :meth:`send_query`
    (Melior), which inject the current access token, refreshing it first when
    it has expired, and the bot token.

    Usage::

        async with ClientBuilder().build() as client:
            await client.login("user@example.com", "password")
            account = await get_account_by_id(client, 1)

    Create clients with :class:`~bonfire.client.builder.ClientBuilder`.
    """

    def __init__(
        self,
        *,
        root: RootTransport,
        melior: MeliorTransport,
        auth: Auth | None = None,
        bot_token: str | None = None,
        token_audience: str,
        token_issuer: str,
    ) -> None:
        self._root = root
        self._melior = melior
        self._bot_token = bot_token
        self._token_provider = TokenProvider(
            auth,
            refresher=self._refresh,
            audience=token_audience,
            issuer=token_issuer,
        )

    @classmethod
    def from_settings(cls) -> Client:
        """Create a client for the production servers, configured from settings."""
        from bonfire.client.builder import ClientBuilder

        return ClientBuilder().build()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close both backend connections."""
        await self._root.aclose()
        await self._melior.aclose()
        logger.info("Client closed")

    # Primitives

    async def send_request(
        self,
        request_name: str,
        content: Mapping[str, Any],
        attachments: Sequence[bytes | None] = (),
        *,
        response_model: type[M] | None = None,
        error_type: type[RequestError] | None = None,
    ) -> Any:
        """Send a request to the Root server.

        Args:
            request_name: The operation name, sent as ``J_REQUEST_NAME``.
            content: The request fields, flattened into the JSON object.
            attachments: Binary attachments; ``None`` marks an empty position.
            response_model: Model the success payload is validated against.
                Without one the raw payload is returned.
            error_type: The operation's error family, given first refusal on
                any Root error.

        Raises:
            BonfireError: Any connector, codec, status, taxonomy or session
                error, or the operation-specific error from ``error_type``.
        """
        with LogContext(backend="root", operation=request_name):
            try:
                access_token = await self._token_provider.get_token()
                logger.info(
                    "Sending request",
                    extra={"attachments": len(attachments), "authenticated": access_token is not None},
                )
                payload = await self._root.send(
                    request_name,
                    content,
                    attachments,
                    access_token=access_token,
                    bot_token=self._bot_token,
                    error_type=error_type,
                )
                return parse_response(response_model, payload) if response_model else payload
            except BonfireError as e:
                _log_failure(e)
                raise

    async def send_query(
        self,
        query_name: str,
        query: str,
        variables: Mapping[str, Any],
        *,
        response_model: type[M] | None = None,
        error_type: type[RequestError] | None = None,
    ) -> Any:
        """Send a GraphQL query to the Melior server as the current user.

        Behaves like :meth:`send_request`; the access token travels in the
        ``Authorization`` header.
        """
        return await self._query(
            query_name,
            query,
            variables,
            response_model=response_model,
            error_type=error_type,
            authenticated=True,
        )

    async def send_query_authless(
        self,
        query_name: str,
        query: str,
        variables: Mapping[str, Any],
        *,
        response_model: type[M] | None = None,
        error_type: type[RequestError] | None = None,
    ) -> Any:
        """Send a GraphQL query without an access token (login, refresh)."""
        return await self._query(
            query_name,
            query,
            variables,
            response_model=response_model,
            error_type=error_type,
            authenticated=False,
        )

    async def _query(
        self,
        query_name: str,
        query: str,
        variables: Mapping[str, Any],
        *,
        response_model: type[M] | None,
        error_type: type[RequestError] | None,
        authenticated: bool,
    ) -> Any:
        with LogContext(backend="melior", operation=query_name):
            try:
                access_token = await self._token_provider.get_token() if authenticated else None
                logger.info("Sending query", extra={"authenticated": access_token is not None})
                data = await self._melior.send(
                    query,
                    variables,
                    access_token=access_token,
                    bot_token=self._bot_token,
                    error_type=error_type,
                )
                return parse_response(response_model, data) if response_model else data
            except BonfireError as e:
                _log_failure(e)
                raise

    # Session

    def is_auth(self) -> bool:
        """Whether the client holds a session. Never refreshes tokens."""
        return self._token_provider.is_auth()

    async def auth(self) -> Auth:
        """Return valid credentials, refreshing them first if expired.

        Call this before shutting down to persist the session, and pass it to
        ``ClientBuilder.auth`` on the next start.

        Raises:
            UnauthenticatedError: If the client is not logged in.
            RefreshTokenExpiredError: If the session expired for good.
        """
        auth = await self._token_provider.get_auth()
        if auth is None:
            raise UnauthenticatedError()
        return auth

    async def login(self, email: str, password: str) -> None:
        """Log in with an email and a password.

        Raises:
            AlreadyAuthenticatedError: If the client is logged in. Log out first.
            InvalidEmailError, WrongEmailError, WrongPasswordError: If the
                credentials are rejected.
            LoginHardBannedError: If the account is permanently banned.
            TfaRequiredError: If the login has to be confirmed with TFA.
        """
        await self._token_provider.login(lambda: queries.login_email(self, email, password))

    async def logout(self) -> None:
        """Terminate the session.

        The session is cleared even when the server rejects the logout, in
        which case the error is re-raised after clearing.

        Raises:
            UnauthenticatedError: If the client is not logged in.
            LogoutHardBannedError: If the account is permanently banned.
        """
        if not self.is_auth():
            raise UnauthenticatedError()
        try:
            await queries.logout(self)
        finally:
            await self._token_provider.clear()

    async def _refresh(self, auth: Auth) -> Auth:
        return await queries.refresh(self, auth.refresh_token)


def _log_failure(error: BonfireError) -> None:
    extra = {"error_type": type(error).__name__, "error": str(error)}
    if isinstance(error, (RootError, MeliorError, RequestError)):
        logger.warning("Server rejected the request", extra=extra)
    else:
        logger.error("Request failed", extra=extra)
