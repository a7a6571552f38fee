"""Unified request pipeline for the Root and Melior backends.

Both backends share the same steps: wait for a rate limit permit, POST the
encoded body, reject non-2xx statuses, decode the envelope, and on the error
path run the taxonomy mapper followed by the operation's specialization hook.
They differ only in framing, which each :class:`Transport` subclass supplies.
"""

from __future__ import annotations

import platform
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from importlib import metadata
from typing import Any, ClassVar, NoReturn, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from bonfire.client.codec import (
    EnvelopeOk,
    decode_melior_response,
    decode_root_response,
    encode_melior_query,
    encode_root_request,
    read_exact_body,
)
from bonfire.client.connector import ConnectionHandle
from bonfire.client.errors import MeliorError, RootError, parse_melior_error, parse_root_error
from bonfire.client.rate_limiter import RequestLimiter
from bonfire.client.specialization import RequestError, specialize
from bonfire.core import (
    BonfireError,
    CodecError,
    UnsuccessfulResponseError,
    get_logger,
)


logger = get_logger(__name__)


PACKAGE_NAME = "bonfire-client"

try:
    PACKAGE_VERSION = metadata.version(PACKAGE_NAME)
except metadata.PackageNotFoundError:
    PACKAGE_VERSION = "0.0.0"

USER_AGENT = f"{PACKAGE_NAME}/{PACKAGE_VERSION} ({platform.system()} {platform.release()})"

M = TypeVar("M", bound=BaseModel)


def parse_response(model: type[M], payload: Any) -> M:
    """Validate a success payload against its response model.

    Raises:
        CodecError: If the payload doesn't match the model.
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise CodecError(f"Failed to decode {model.__name__}: {e}") from e


class Transport(ABC):
    """One backend connection plus the steps shared by both protocols."""

    backend: ClassVar[str]
    error_source: ClassVar[type[BonfireError]]

    def __init__(
        self,
        connection: ConnectionHandle,
        limiter: RequestLimiter | None = None,
        *,
        user_agent: str = USER_AGENT,
    ) -> None:
        self.connection = connection
        self.limiter = limiter or RequestLimiter()
        self.user_agent = user_agent

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
        }

    def check_wiring(self, error_type: type[RequestError] | None) -> None:
        """Fail fast when an operation's errors come from the other backend.

        Raises:
            TypeError: If ``error_type`` can't handle this backend's errors.
        """
        if error_type is not None and not issubclass(self.error_source, error_type.source):
            raise TypeError(
                f"{error_type.__name__} handles {error_type.source.__name__} errors, "
                f"but the {self.backend} backend produces {self.error_source.__name__}"
            )

    @abstractmethod
    async def _read_body(self, response: httpx.Response) -> bytes:
        """Read the full body of a successful response."""

    async def _post(self, body: bytes, headers: Mapping[str, str] | None = None) -> bytes:
        await self.limiter.wait_for_permit()
        async with self.connection.post(body, {**self._headers(), **(headers or {})}) as response:
            if not response.is_success:
                raise UnsuccessfulResponseError(response.status_code, response.reason_phrase)
            return await self._read_body(response)

    @staticmethod
    def _raise(raw: BonfireError, error_type: type[RequestError] | None) -> NoReturn:
        error = specialize(error_type, raw)
        if error is raw:
            raise raw
        raise error from raw

    async def aclose(self) -> None:
        await self.connection.aclose()


class RootTransport(Transport):
    """Length-prefixed JSON requests with binary attachments."""

    backend = "root"
    error_source = RootError

    def __init__(
        self,
        connection: ConnectionHandle,
        limiter: RequestLimiter | None = None,
        *,
        api_version: str,
        user_agent: str = USER_AGENT,
    ) -> None:
        super().__init__(connection, limiter, user_agent=user_agent)
        self.api_version = api_version

    def _headers(self) -> dict[str, str]:
        # The body length must match Content-Length exactly
        return {**super()._headers(), "Accept-Encoding": "identity"}

    async def _read_body(self, response: httpx.Response) -> bytes:
        return await read_exact_body(response)

    async def send(
        self,
        request_name: str,
        content: Mapping[str, Any],
        attachments: Sequence[bytes | None] = (),
        *,
        access_token: str | None = None,
        bot_token: str | None = None,
        error_type: type[RequestError] | None = None,
    ) -> Any:
        """Send a Root request and return its undecoded success payload.

        Raises:
            RootError: The taxonomy error, or the operation's specialization
                of it, chained to the taxonomy error.
        """
        self.check_wiring(error_type)
        body = encode_root_request(
            request_name,
            content,
            attachments,
            access_token=access_token,
            bot_token=bot_token,
            api_version=self.api_version,
        )
        envelope = decode_root_response(await self._post(body))
        if isinstance(envelope, EnvelopeOk):
            return envelope.payload
        else:
            self._raise(parse_root_error(envelope.error), error_type)


class MeliorTransport(Transport):
    """GraphQL requests."""

    backend = "melior"
    error_source = MeliorError

    async def _read_body(self, response: httpx.Response) -> bytes:
        return await response.aread()

    async def send(
        self,
        query: str,
        variables: Mapping[str, Any],
        *,
        access_token: str | None = None,
        bot_token: str | None = None,
        error_type: type[RequestError] | None = None,
    ) -> Any:
        """Send a GraphQL query and return its undecoded ``data``.

        Only the first of several GraphQL errors is raised. The bot token is
        sent in ``X-Bot-Token``, a header name chosen by this client rather
        than one documented by Melior.

        Raises:
            MeliorError: The taxonomy error, or the operation's specialization
                of it, chained to the taxonomy error.
        """
        self.check_wiring(error_type)
        headers: dict[str, str] = {}
        if access_token is not None:
            headers["Authorization"] = f"Bearer {access_token}"
        # Local header name; Melior has not published one for bot tokens
        if bot_token is not None:
            headers["X-Bot-Token"] = bot_token

        body = encode_melior_query(query, variables)
        envelope = decode_melior_response(await self._post(body, headers))
        if isinstance(envelope, EnvelopeOk):
            return envelope.payload
        else:
            errors = envelope.error
            if len(errors) > 1:
                logger.debug(
                    "GraphQL response carries several errors",
                    extra={"count": len(errors)},
                )
            self._raise(parse_melior_error(errors[0]), error_type)
