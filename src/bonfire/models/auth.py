"""Authentication models and errors."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import cast

from pydantic import Field, field_validator

from bonfire.client.errors import MeliorError, MeliorReason
from bonfire.client.specialization import RequestError
from bonfire.core import BonfireError
from bonfire.models.common import ApiModel


class Auth(ApiModel):
    """An authentication session: the access and refresh token pair.

    Serialize it with ``model_dump(by_alias=True)`` to persist a session and
    pass it back to ``ClientBuilder.auth`` on the next start.
    """

    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")

    def __repr__(self) -> str:
        return f"Auth(access_token='{self.access_token[:10]}...', refresh_token='...')"


class TfaKind(str, Enum):
    """Type of a Two-Factor Authentication (TFA) session."""

    TOTP = "TOTP"
    EMAIL_LINK = "EMAIL_LINK"

    def __str__(self) -> str:
        return "TOTP" if self is TfaKind.TOTP else "email link"


class TfaRequired(ApiModel):
    """Data required to continue logging in with TFA."""

    kind: TfaKind = Field(alias="tfaType")
    wait_token: str = Field(alias="tfaWaitToken")


class Me(ApiModel):
    """Information about the authenticated user."""

    id: str
    name: str = Field(alias="username")
    email: str
    cached_level: float = Field(alias="cachedLevel")
    birthday: date | None = None
    is_nsfw_allowed: bool | None = Field(default=None, alias="isNsfwAllowed")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: object) -> object:
        """The id isn't guaranteed to be an integer."""
        return str(v) if isinstance(v, int) else v

    @field_validator("cached_level", mode="before")
    @classmethod
    def scale_level(cls, v: object) -> object:
        """Levels are sent multiplied by 100."""
        if isinstance(v, int) and not isinstance(v, bool):
            return v / 100
        return v


# Login


class LoginError(RequestError):
    """Errors that can occur while logging in."""

    source = MeliorError

    @classmethod
    def try_convert(cls, error: BonfireError) -> RequestError | None:
        factory = _LOGIN_ERRORS.get(cast(MeliorError, error).reason)
        return factory() if factory else None


class InvalidEmailError(LoginError):
    def __init__(self) -> None:
        super().__init__("Invalid email")


class WrongEmailError(LoginError):
    """The email address is not registered."""

    def __init__(self) -> None:
        super().__init__("Wrong email")


class WrongPasswordError(LoginError):
    def __init__(self) -> None:
        super().__init__("Wrong password")


class LoginHardBannedError(LoginError):
    """The account is permanently banned."""

    def __init__(self) -> None:
        super().__init__("Account is hard banned")


class TfaRequiredError(LoginError):
    """TFA is required to continue logging in.

    Complete the challenge described by ``tfa`` and log in again.
    """

    def __init__(self, tfa: TfaRequired) -> None:
        super().__init__(f"TFA is required to continue logging in ({tfa.kind})")
        self.tfa = tfa

    @property
    def kind(self) -> TfaKind:
        return self.tfa.kind

    @property
    def wait_token(self) -> str:
        return self.tfa.wait_token


_LOGIN_ERRORS: dict[MeliorReason | None, type[LoginError]] = {
    MeliorReason.INVALID_EMAIL: InvalidEmailError,
    MeliorReason.WRONG_EMAIL: WrongEmailError,
    MeliorReason.WRONG_PASSWORD: WrongPasswordError,
    MeliorReason.HARD_BANNED: LoginHardBannedError,
}


# Logout


class LogoutError(RequestError):
    source = MeliorError

    @classmethod
    def try_convert(cls, error: BonfireError) -> RequestError | None:
        if cast(MeliorError, error).reason is MeliorReason.HARD_BANNED:
            return LogoutHardBannedError()
        return None


class LogoutHardBannedError(LogoutError):
    """The account logging out is permanently banned."""

    def __init__(self) -> None:
        super().__init__("Account is hard banned")


# Refresh


class RefreshError(RequestError):
    source = MeliorError

    @classmethod
    def try_convert(cls, error: BonfireError) -> RequestError | None:
        if cast(MeliorError, error).reason is MeliorReason.TOKEN_EXPIRED:
            return RefreshTokenExpiredError()
        return None


class RefreshTokenExpiredError(RefreshError):
    """The refresh token has expired. Log in again."""

    def __init__(self) -> None:
        super().__init__("Refresh token has expired")
