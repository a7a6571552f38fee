"""Per-operation error specialization.

Before a taxonomy error reaches the caller, the operation that sent the
request may claim it as one of its own narrower errors. Each operation's
error family subclasses :class:`RequestError`, names the raw error kind it
understands in ``source`` and overrides :meth:`RequestError.try_convert`.
"""

from __future__ import annotations

from typing import ClassVar

from bonfire.client.errors import OtherRootError, RootError
from bonfire.core import BonfireError


class RequestError(BonfireError):
    """Base class for errors specific to one operation."""

    source: ClassVar[type[BonfireError]] = BonfireError

    @classmethod
    def try_convert(cls, error: BonfireError) -> RequestError | None:
        """Return the operation-specific error for ``error``, or None to keep it.

        Implementations must be pure and total: they never raise and never
        turn an error into a success.
        """
        return None


def specialize(
    error_type: type[RequestError] | None,
    error: BonfireError,
) -> BonfireError:
    """Give ``error_type`` first refusal on ``error``.

    Raises:
        TypeError: If ``error_type`` is wired to a different raw error source
            than the transport produced. This is a programming error.
    """
    if error_type is None:
        return error
    if not isinstance(error, error_type.source):
        raise TypeError(
            f"{error_type.__name__} handles {error_type.source.__name__} errors, "
            f"got {type(error).__name__}"
        )
    return error_type.try_convert(error) or error


class RootCodeError(RequestError):
    """An error family keyed by the ``code`` of an otherwise unknown Root error.

    Subclasses fill ``codes`` with the code each variant is recognized by.
    Variants take no constructor arguments.
    """

    source = RootError
    codes: ClassVar[dict[str, type[RequestError]]] = {}

    @classmethod
    def try_convert(cls, error: BonfireError) -> RequestError | None:
        if not isinstance(error, OtherRootError):
            return None
        factory = cls.codes.get(error.code)
        return factory() if factory else None
