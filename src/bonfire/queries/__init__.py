"""GraphQL operations for the Melior server."""

from bonfire.queries.auth import login_email, logout, me, refresh
from bonfire.queries.profile import set_birthday

__all__ = [
    "login_email",
    "logout",
    "refresh",
    "me",
    "set_birthday",
]
