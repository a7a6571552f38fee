"""Account models and errors."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from bonfire.client.specialization import RootCodeError
from bonfire.core.decoding import datetime_from_millis, parse_integer
from bonfire.models.common import ApiModel


class ImageRef(ApiModel):
    """A reference to an image hosted by the server."""

    id: int = Field(alias="i")
    uri: str = Field(default="", alias="u")
    width: int = Field(default=0, alias="w")
    height: int = Field(default=0, alias="h")


def image_or_none(value: Any) -> Any:
    """Treat an image reference with id 0 as "no image"."""
    if isinstance(value, dict) and value.get("i") in (0, "0"):
        return None
    return value


class Account(ApiModel):
    """A user account."""

    id: int = Field(alias="J_ID")
    name: str = Field(alias="J_NAME")
    level: float = Field(alias="J_LVL")
    last_online_at: datetime = Field(alias="J_LAST_ONLINE_DATE")
    avatar: ImageRef | None = None
    karma30: float = 0.0
    sponsor_amount: int = Field(default=0, alias="sponsor")
    sponsor_count: int = Field(default=0, alias="sponsorTimes")

    @field_validator("id", "sponsor_amount", "sponsor_count", mode="before")
    @classmethod
    def parse_int(cls, v: Any) -> int:
        return parse_integer(v, "integer field")

    @field_validator("level", "karma30", mode="before")
    @classmethod
    def scale_hundredths(cls, v: Any) -> float:
        """Levels and karma are sent multiplied by 100."""
        return parse_integer(v, "level") / 100

    @field_validator("last_online_at", mode="before")
    @classmethod
    def parse_millis(cls, v: Any) -> datetime:
        if isinstance(v, datetime):
            return v
        return datetime_from_millis(parse_integer(v, "last_online_at"))

    @field_validator("avatar", mode="before")
    @classmethod
    def drop_empty_avatar(cls, v: Any) -> Any:
        return image_or_none(v)


# Report


class ReportError(RootCodeError):
    pass


class AlreadyReportedError(ReportError):
    """You have already reported this account."""

    def __init__(self) -> None:
        super().__init__("Account is already reported")


# Referrer


class SetReferrerError(RootCodeError):
    pass


class ReferrerAlreadySetError(SetReferrerError):
    """A referrer can be set only once per account."""

    def __init__(self) -> None:
        super().__init__("Referrer is already set")


ReportError.codes = {"E_EXIST": AlreadyReportedError}
SetReferrerError.codes = {"E_ALREADY_SET": ReferrerAlreadySetError}
