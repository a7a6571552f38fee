"""Custom exceptions for bonfire."""

from __future__ import annotations

from typing import Any


class BonfireError(Exception):
    """Base exception for all bonfire errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# Connector


class ConnectorError(BonfireError):
    """Raised when a connection to a server cannot be established or used."""

    def __init__(self, message: str, target: str | None = None) -> None:
        super().__init__(message, details={"target": target} if target else None)
        self.target = target


class InvalidTargetError(ConnectorError):
    """Raised when a server URI has no host or an unsupported scheme."""


class DnsResolutionError(ConnectorError):
    """Raised when the server host name cannot be resolved."""


class TcpConnectError(ConnectorError):
    """Raised when a TCP connection cannot be opened."""


class TlsHandshakeError(ConnectorError):
    """Raised when the TLS handshake fails (bad certificate, protocol mismatch)."""


class HttpHandshakeError(ConnectorError):
    """Raised when the server violates the HTTP/1.1 protocol."""


class ConnectionIOError(ConnectorError):
    """Raised when writing a request or reading a response fails."""


# Codec


class CodecError(BonfireError):
    """Raised when a request or response cannot be (de)serialized.

    This always indicates a contract mismatch between the client and the
    server, and is never retried.
    """


class InvalidMeliorResponseError(CodecError):
    """Raised when a GraphQL response carries neither data nor errors."""

    def __init__(self) -> None:
        super().__init__("GraphQL response is missing both data and errors")


class AttachmentTooLargeError(BonfireError):
    """Raised when an attachment exceeds the maximum size the server accepts."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            "Attachment is too large",
            details={"size": size, "limit": limit},
        )
        self.size = size
        self.limit = limit


class RequestTooLargeError(BonfireError):
    """Raised when a framed request exceeds the maximum size the server accepts."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            "Request is too large",
            details={"size": size, "limit": limit},
        )
        self.size = size
        self.limit = limit


class UnsuccessfulResponseError(BonfireError):
    """Raised when the server answers with a non-2xx HTTP status.

    Common codes include 429 (too many requests), 500 (internal error) and
    502 (server unavailable).
    """

    def __init__(self, status_code: int, reason: str | None = None) -> None:
        message = f"Unsuccessful response: {status_code}"
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


# Authentication state


class AuthError(BonfireError):
    """Raised when the client's authentication state forbids an operation."""


class AlreadyAuthenticatedError(AuthError):
    """Raised on login while a session exists. Log out first."""

    def __init__(self, message: str = "Client is already authenticated") -> None:
        super().__init__(message)


class UnauthenticatedError(AuthError):
    """Raised when an operation needs a session and none exists. Log in first."""

    def __init__(self, message: str = "Client is not authenticated") -> None:
        super().__init__(message)


class JwtError(AuthError):
    """Raised when an access token cannot be decoded or has unexpected claims.

    Until a new session is established with a login, every authenticated
    request fails with this error.
    """
