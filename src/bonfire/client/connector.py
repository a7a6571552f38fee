"""Connections to the Root and Melior servers.

A connector turns a server URI into a :class:`ConnectionHandle`, a lightweight
capability for sending POST requests over one HTTP/1.1 connection. httpx
drives the connection I/O; the TCP connect and TLS handshake happen when the
first request is written, and their failures are reported as distinct
:class:`~bonfire.core.exceptions.ConnectorError` subclasses. Nothing here
retries.
"""

from __future__ import annotations

import socket
import ssl
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from bonfire.core import (
    ConnectionIOError,
    ConnectorError,
    DnsResolutionError,
    HttpHandshakeError,
    InvalidTargetError,
    TcpConnectError,
    TlsHandshakeError,
    get_logger,
)


logger = get_logger(__name__)


DEFAULT_PORTS: dict[str, int] = {
    "http": 80,
    "https": 443,
}


@dataclass(frozen=True)
class Target:
    """A resolved scheme, host and port triple plus the request path."""

    scheme: str
    host: str
    port: int
    path: str = "/"
    explicit_port: bool = False

    @classmethod
    def from_uri(cls, uri: str) -> Target:
        """Parse a server URI.

        Raises:
            InvalidTargetError: If the URI has no scheme, no host or a scheme
                other than ``http`` and ``https``.
        """
        try:
            url = httpx.URL(uri)
        except httpx.InvalidURL as e:
            raise InvalidTargetError(f"Invalid URI: {e}", target=uri) from e

        if not url.scheme:
            raise InvalidTargetError("Unspecified URI scheme", target=uri)
        if url.scheme not in DEFAULT_PORTS:
            raise InvalidTargetError(f"Unsupported URI scheme {url.scheme!r}", target=uri)
        if not url.host:
            raise InvalidTargetError("Unspecified URI host", target=uri)

        path = url.raw_path.decode("ascii") or "/"
        return cls(
            scheme=url.scheme,
            host=url.host,
            port=url.port or DEFAULT_PORTS[url.scheme],
            path=path,
            explicit_port=url.port is not None,
        )

    @property
    def is_secure(self) -> bool:
        """Whether the connection is upgraded to TLS."""
        return self.scheme == "https"

    @property
    def host_header(self) -> str:
        """Value of the Host header; contains the port when one was given."""
        if self.explicit_port:
            return f"{self.host}:{self.port}"
        return self.host

    @property
    def origin(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    def __str__(self) -> str:
        return f"{self.origin}{self.path}"


def _find_cause(exc: BaseException, kind: type[BaseException]) -> BaseException | None:
    """Walk the exception chain looking for an instance of ``kind``."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, kind):
            return current
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return None


def classify_transport_error(exc: httpx.HTTPError, target: Target) -> ConnectorError:
    """Map an httpx failure onto the connector error taxonomy."""
    where = str(target)
    if isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout)):
        if _find_cause(exc, ssl.SSLError) is not None:
            return TlsHandshakeError(f"TLS handshake failed: {exc}", target=where)
        if _find_cause(exc, socket.gaierror) is not None:
            return DnsResolutionError(f"Failed to resolve host: {exc}", target=where)
        return TcpConnectError(f"Failed to connect: {exc}", target=where)
    if isinstance(exc, httpx.ProtocolError):
        return HttpHandshakeError(f"HTTP protocol error: {exc}", target=where)
    return ConnectionIOError(f"Connection I/O failed: {exc}", target=where)


class ConnectionHandle:
    """A request-sending capability bound to one server connection."""

    def __init__(self, target: Target, client: httpx.AsyncClient) -> None:
        self.target = target
        self._client = client
        self._closed = False

    @property
    def host(self) -> str:
        return self.target.host_header

    @property
    def is_closed(self) -> bool:
        return self._closed

    @asynccontextmanager
    async def post(
        self,
        content: bytes,
        headers: Mapping[str, str],
    ) -> AsyncIterator[httpx.Response]:
        """Send a POST request and yield the streamed response.

        The response body is left unread so the caller decides how to
        consume it. Transport failures raised while the body is being read
        are classified the same way as failures on send.

        Raises:
            ConnectorError: On any connect, handshake or I/O failure.
        """
        if self._closed:
            raise ConnectionIOError("Connection is closed", target=str(self.target))

        request = self._client.build_request(
            "POST",
            self.target.path,
            content=content,
            headers={"Host": self.host, **headers},
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise classify_transport_error(e, self.target) from e

        try:
            yield response
        except httpx.HTTPError as e:
            raise classify_transport_error(e, self.target) from e
        finally:
            await response.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection."""
        if self._closed:
            return
        self._closed = True
        await self._client.aclose()


class Connector(ABC):
    """Creates connection handles for one target."""

    def __init__(
        self,
        target: Target,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.target = target
        self.timeout = timeout
        self._transport = transport

    @abstractmethod
    def _build_transport(self) -> httpx.AsyncBaseTransport:
        """Create the transport owning the single connection."""

    def connect(self) -> ConnectionHandle:
        """Create a handle for the target.

        An injected transport (e.g. ``httpx.MockTransport``) replaces the
        network connection entirely.
        """
        transport = self._transport or self._build_transport()
        client = httpx.AsyncClient(
            base_url=self.target.origin,
            transport=transport,
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=False,
        )
        logger.info(
            "Connection created",
            extra={
                "target": str(self.target),
                "secure": self.target.is_secure,
                "injected_transport": self._transport is not None,
            },
        )
        return ConnectionHandle(self.target, client)

    @staticmethod
    def _limits() -> httpx.Limits:
        # One connection per backend; requests on it are serialized
        return httpx.Limits(max_connections=1, max_keepalive_connections=1)


class PlainConnector(Connector):
    """Connects without TLS (``http://``)."""

    def _build_transport(self) -> httpx.AsyncBaseTransport:
        return httpx.AsyncHTTPTransport(
            http1=True,
            http2=False,
            limits=self._limits(),
            retries=0,
        )


class SecureConnector(Connector):
    """Connects over TLS (``https://``), verifying against the system trust store."""

    def _build_transport(self) -> httpx.AsyncHTTPTransport:
        context = ssl.create_default_context()
        return httpx.AsyncHTTPTransport(
            verify=context,
            http1=True,
            http2=False,
            limits=self._limits(),
            retries=0,
        )


def connect(
    uri: str,
    *,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ConnectionHandle:
    """Create a connection handle for ``uri`` using the matching connector.

    Raises:
        InvalidTargetError: If ``uri`` is not a usable ``http``/``https`` URI.
    """
    target = Target.from_uri(uri)
    connector_cls: type[Connector] = SecureConnector if target.is_secure else PlainConnector
    return connector_cls(target, timeout=timeout, transport=transport).connect()
