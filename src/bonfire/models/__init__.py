"""Domain models and per-operation errors."""

from bonfire.models.account import (
    Account,
    AlreadyReportedError,
    ImageRef,
    ReferrerAlreadySetError,
    ReportError,
    SetReferrerError,
)
from bonfire.models.auth import (
    Auth,
    InvalidEmailError,
    LoginError,
    LoginHardBannedError,
    LogoutError,
    LogoutHardBannedError,
    Me,
    RefreshError,
    RefreshTokenExpiredError,
    TfaKind,
    TfaRequired,
    TfaRequiredError,
    WrongEmailError,
    WrongPasswordError,
)
from bonfire.models.profile import (
    ImageDimensionsTooHighError,
    ImageTooLargeError,
    InvalidAgeError,
    SetAgeError,
    SetProfileImageError,
    SetProfileTextError,
    TextTooLongError,
)

__all__ = [
    # Auth
    "Auth",
    "Me",
    "TfaKind",
    "TfaRequired",
    "LoginError",
    "InvalidEmailError",
    "WrongEmailError",
    "WrongPasswordError",
    "LoginHardBannedError",
    "TfaRequiredError",
    "LogoutError",
    "LogoutHardBannedError",
    "RefreshError",
    "RefreshTokenExpiredError",
    # Account
    "Account",
    "ImageRef",
    "ReportError",
    "AlreadyReportedError",
    "SetReferrerError",
    "ReferrerAlreadySetError",
    # Profile
    "SetProfileTextError",
    "TextTooLongError",
    "SetAgeError",
    "InvalidAgeError",
    "SetProfileImageError",
    "ImageTooLargeError",
    "ImageDimensionsTooHighError",
]
