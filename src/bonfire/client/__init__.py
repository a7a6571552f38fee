"""Bonfire API client: connections, wire codec, errors and session handling."""

from bonfire.client.errors import (
    AccessDeniedError,
    AlreadyExistsError,
    BadReasonError,
    BannedError,
    BlockedError,
    MeliorError,
    MeliorReason,
    NotFoundError,
    OtherRootError,
    OtherUnavailableError,
    RemovedError,
    RootError,
    UnavailableError,
)
from bonfire.client.specialization import RequestError, RootCodeError, specialize
from bonfire.client.client import Client
from bonfire.client.builder import ClientBuilder

__all__ = [
    # Client
    "Client",
    "ClientBuilder",
    # Root errors
    "RootError",
    "AccessDeniedError",
    "AlreadyExistsError",
    "BadReasonError",
    "BannedError",
    "UnavailableError",
    "BlockedError",
    "NotFoundError",
    "RemovedError",
    "OtherUnavailableError",
    "OtherRootError",
    # Melior errors
    "MeliorError",
    "MeliorReason",
    # Specialization
    "RequestError",
    "RootCodeError",
    "specialize",
]
