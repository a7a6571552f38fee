"""Legacy operations for the Root server."""

from bonfire.requests.account import (
    get_account_by_id,
    get_account_by_name,
    report,
    set_age,
    set_avatar,
    set_background,
    set_background_gif,
    set_description,
    set_referrer,
    set_status,
)

__all__ = [
    "get_account_by_id",
    "get_account_by_name",
    "report",
    "set_referrer",
    "set_status",
    "set_description",
    "set_age",
    "set_avatar",
    "set_background",
    "set_background_gif",
]
