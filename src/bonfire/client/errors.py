"""Error taxonomy for the Root and Melior servers.

Raw server errors are untyped: the Root server tags them with a ``code``
string, the Melior server only sends a message conventionally formatted as
``"<ReasonTag>:<human text>"``. The parsers here turn them into a closed set
of exceptions. Unknown Root codes become :class:`OtherRootError` and unknown
Melior tags a plain :class:`MeliorError`, so new server-side errors never
cause a hard failure.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from enum import Enum
from typing import Any

from bonfire.client.codec import QueryLocation, RawMeliorError
from bonfire.core import BonfireError, CodecError
from bonfire.core.decoding import datetime_from_millis, parse_integer


# Root


class RootError(BonfireError):
    """An error returned by the Root server."""

    code: str = ""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)


class AccessDeniedError(RootError):
    """You don't have enough permission.

    In rare cases the server also says why the access was denied.
    """

    code = "ERROR_ACCESS"

    def __init__(self, reason: str | None = None) -> None:
        message = f"Access denied: {reason}" if reason else "Access denied"
        super().__init__(message)
        self.reason = reason


class AlreadyExistsError(RootError):
    """Something already exists (e.g. you already reacted)."""

    code = "ERROR_ALREADY"

    def __init__(self) -> None:
        super().__init__("Resource already exists")


class BadReasonError(RootError):
    """A moderation reason is too long, too short or contains profanity."""

    code = "ERROR_BAD_COMMENT"

    def __init__(self) -> None:
        super().__init__("Bad reason")


class BannedError(RootError):
    """The account is banned until ``until``."""

    code = "ERROR_ACCOUNT_IS_BANED"

    def __init__(self, until: datetime) -> None:
        super().__init__(f"Account is banned until {until.isoformat()}")
        self.until = until


class UnavailableError(RootError):
    """Something you're looking for is not available."""

    code = "ERROR_GONE"


class BlockedError(UnavailableError):
    """The resource was blocked by a moderator."""

    def __init__(self, moderation_id: int) -> None:
        super().__init__(
            f"Resource was blocked by moderators (moderation ID: {moderation_id})"
        )
        self.moderation_id = moderation_id


class NotFoundError(UnavailableError):
    """The resource can't be found."""

    def __init__(self) -> None:
        super().__init__("Resource was not found")


class RemovedError(UnavailableError):
    """The resource was removed by its author."""

    def __init__(self) -> None:
        super().__init__("Resource was removed by author")


class OtherUnavailableError(UnavailableError):
    def __init__(self, reason: str, params: Sequence[str] = ()) -> None:
        super().__init__(
            f"Unknown unavailable error: {reason}",
            details={"params": list(params)} if params else None,
        )
        self.reason = reason
        self.params = list(params)


class OtherRootError(RootError):
    """A Root error without a predefined variant.

    Operations usually recognize these by ``code`` (e.g. ``E_BAD_SIZE``).
    """

    def __init__(
        self,
        code: str,
        reason: str | None = None,
        params: Sequence[str] = (),
    ) -> None:
        message = f"Unknown error: {code}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, details={"params": list(params)} if params else None)
        self.code = code
        self.reason = reason
        self.params = list(params)


def _message_error(raw: Mapping[str, Any]) -> str | None:
    value = raw.get("messageError")
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise CodecError(f"messageError must be a string, got {value!r}")
    return value


def _params(raw: Mapping[str, Any]) -> list[str]:
    value = raw.get("params")
    if value is None:
        return []
    if not isinstance(value, list):
        raise CodecError(f"params must be a list, got {value!r}")
    return [str(item) for item in value]


def _single_integer_param(raw: Mapping[str, Any], field: str) -> int:
    params = raw.get("params")
    if not isinstance(params, list) or len(params) != 1:
        raise CodecError(f"expected exactly one parameter for {field}, got {params!r}")
    try:
        return parse_integer(params[0], field)
    except ValueError as e:
        raise CodecError(str(e)) from e


def _parse_unavailable(raw: Mapping[str, Any]) -> UnavailableError:
    reason = raw.get("messageError")
    if reason == "GONE_BLOCKED":
        return BlockedError(_single_integer_param(raw, "moderation_id"))
    if reason in ("", None):
        return NotFoundError()
    if reason == "REMOVE":
        return RemovedError()
    if not isinstance(reason, str):
        raise CodecError(f"messageError must be a string, got {reason!r}")
    return OtherUnavailableError(reason, _params(raw))


def parse_root_error(raw: Mapping[str, Any]) -> RootError:
    """Convert a raw Root error object into the taxonomy.

    Raises:
        CodecError: If a known error's parameters can't be decoded, e.g. a ban
            timestamp that is not an integer or is out of range.
    """
    code = raw.get("code")
    if not isinstance(code, str):
        raise CodecError(f"Root error code must be a string, got {code!r}")

    if code == AccessDeniedError.code:
        return AccessDeniedError(_message_error(raw))
    if code == AlreadyExistsError.code:
        return AlreadyExistsError()
    if code == BadReasonError.code:
        return BadReasonError()
    if code == BannedError.code:
        millis = _single_integer_param(raw, "banned_until")
        try:
            until = datetime_from_millis(millis)
        except ValueError as e:
            raise CodecError(str(e)) from e
        return BannedError(until)
    if code == UnavailableError.code:
        return _parse_unavailable(raw)
    return OtherRootError(code, _message_error(raw), _params(raw))


# Melior


class MeliorReason(str, Enum):
    """Reason tags the Melior server puts before the colon of a message."""

    INVALID_EMAIL = "InvalidEmail"
    WRONG_EMAIL = "WrongEmail"
    WRONG_PASSWORD = "WrongPassword"
    HARD_BANNED = "HardBanned"
    TOKEN_EXPIRED = "TokenExpired"
    UNAUTHENTICATED = "Unauthenticated"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"


def split_reason(message: str) -> tuple[str | None, str]:
    """Split ``"<Tag>:<text>"`` on the first colon; no colon means no tag."""
    tag, sep, text = message.partition(":")
    if not sep:
        return None, message
    return tag, text


class MeliorError(BonfireError):
    """An error returned by the Melior (GraphQL) server."""

    def __init__(
        self,
        message: str,
        locations: Sequence[QueryLocation] | None = None,
        path: Sequence[str | int] | None = None,
    ) -> None:
        super().__init__(message)
        self.locations = list(locations) if locations is not None else None
        self.path = list(path) if path is not None else None
        tag, self.text = split_reason(message)
        self.reason = _known_reason(tag)

    def __str__(self) -> str:
        rendered = self.message
        if self.locations:
            points = " ".join(f"{loc.line}:{loc.column}" for loc in self.locations)
            rendered += f" (at {points})"
        if self.path:
            parts = "".join(
                f"[{part}]" if isinstance(part, int) else f".{part}" for part in self.path
            )
            rendered += f" (in {parts})"
        return rendered


def _known_reason(tag: str | None) -> MeliorReason | None:
    if tag is None:
        return None
    try:
        return MeliorReason(tag)
    except ValueError:
        return None


def parse_melior_error(raw: RawMeliorError) -> MeliorError:
    """Convert a raw GraphQL error into a :class:`MeliorError`."""
    return MeliorError(raw.message, locations=raw.locations, path=raw.path)
