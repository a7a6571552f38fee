"""Decoding helpers for the Root server's integer-encoded values."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any


UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_INTEGER_RE = re.compile(r"-?\d+")


def parse_integer(value: Any, field: str) -> int:
    """Parse an integer that the server may send as a decimal string.

    Raises:
        ValueError: If ``value`` is not an integer or a decimal string.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and _INTEGER_RE.fullmatch(value):
        return int(value)
    raise ValueError(f"failed to convert {field} into an integer: {value!r}")


def datetime_from_millis(millis: int) -> datetime:
    """Convert Unix milliseconds to an aware UTC datetime.

    Raises:
        ValueError: If the timestamp has no calendar representation.
    """
    try:
        return UNIX_EPOCH + timedelta(milliseconds=millis)
    except OverflowError as e:
        raise ValueError(f"timestamp {millis} is out of range") from e
