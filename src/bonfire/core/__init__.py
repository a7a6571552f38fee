"""Core module - configuration, logging, exceptions."""

from bonfire.core.config import Settings, get_settings
from bonfire.core.exceptions import (
    AlreadyAuthenticatedError,
    AttachmentTooLargeError,
    AuthError,
    BonfireError,
    CodecError,
    ConnectionIOError,
    ConnectorError,
    DnsResolutionError,
    HttpHandshakeError,
    InvalidMeliorResponseError,
    InvalidTargetError,
    JwtError,
    RequestTooLargeError,
    TcpConnectError,
    TlsHandshakeError,
    UnauthenticatedError,
    UnsuccessfulResponseError,
)
from bonfire.core.logging import LogContext, get_logger, setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "BonfireError",
    "ConnectorError",
    "InvalidTargetError",
    "DnsResolutionError",
    "TcpConnectError",
    "TlsHandshakeError",
    "HttpHandshakeError",
    "ConnectionIOError",
    "CodecError",
    "InvalidMeliorResponseError",
    "AttachmentTooLargeError",
    "RequestTooLargeError",
    "UnsuccessfulResponseError",
    "AuthError",
    "AlreadyAuthenticatedError",
    "UnauthenticatedError",
    "JwtError",
    "setup_logging",
    "get_logger",
    "LogContext",
]
