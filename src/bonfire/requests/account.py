"""Account and profile requests for the Root server."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field

from bonfire.core import CodecError
from bonfire.models.account import Account, ImageRef, ReportError, SetReferrerError
from bonfire.models.common import ApiModel
from bonfire.models.profile import SetAgeError, SetProfileImageError, SetProfileTextError

if TYPE_CHECKING:
    from bonfire.client.client import Client


class GetAccountResponse(ApiModel):
    account: Account


class SetAvatarResponse(ApiModel):
    avatar: ImageRef = Field(alias="newAvatar")


class SetBackgroundResponse(ApiModel):
    background: ImageRef = Field(alias="image")
    background_gif: ImageRef | None = Field(default=None, alias="imageGif")


async def get_account_by_id(client: Client, account_id: int) -> Account:
    response = await client.send_request(
        "RAccountsGet",
        {"accountId": account_id, "accountName": None},
        response_model=GetAccountResponse,
    )
    return response.account


async def get_account_by_name(client: Client, name: str) -> Account:
    response = await client.send_request(
        "RAccountsGet",
        {"accountId": None, "accountName": name},
        response_model=GetAccountResponse,
    )
    return response.account


async def report(client: Client, account_id: int, comment: str) -> None:
    """Report an account to the moderators.

    Raises:
        AlreadyReportedError: If you have already reported this account.
        BadReasonError: If the comment is rejected.
    """
    await client.send_request(
        "RAccountsReport",
        {"accountId": account_id, "comment": comment},
        error_type=ReportError,
    )


async def set_referrer(client: Client, account_id: int) -> None:
    """Set the account that invited you.

    Raises:
        ReferrerAlreadySetError: If a referrer is already set.
    """
    await client.send_request(
        "RAccountsSetRecruiter",
        {"accountId": account_id},
        error_type=SetReferrerError,
    )


async def set_status(client: Client, status: str | None) -> None:
    """Set or clear (``None``) the profile status.

    Raises:
        TextTooLongError: If the status is too long.
    """
    await client.send_request(
        "RAccountsStatusSet",
        {"status": status or ""},
        error_type=SetProfileTextError,
    )


async def set_description(client: Client, description: str | None) -> None:
    """Set or clear (``None``) the profile description.

    Raises:
        TextTooLongError: If the description is too long.
    """
    await client.send_request(
        "RAccountsBioSetDescription",
        {"description": description or ""},
        error_type=SetProfileTextError,
    )


async def set_age(client: Client, age: int | None) -> None:
    """Set or clear (``None``) the age shown in the profile.

    Raises:
        InvalidAgeError: If the age is out of range.
    """
    await client.send_request(
        "RAccountsBioSetAge",
        {"age": age or 0},
        error_type=SetAgeError,
    )


async def set_avatar(client: Client, avatar: bytes) -> ImageRef:
    """Upload a new avatar.

    Raises:
        AttachmentTooLargeError: If the image exceeds 6 MiB.
        ImageTooLargeError, ImageDimensionsTooHighError: If the server rejects
            the image.
    """
    response = await client.send_request(
        "RAccountsChangeAvatar",
        {},
        [avatar],
        response_model=SetAvatarResponse,
        error_type=SetProfileImageError,
    )
    return response.avatar


async def set_background(client: Client, background: bytes) -> ImageRef:
    """Upload a new static profile background."""
    # The second position carries the animated variant; it's sent empty
    response = await client.send_request(
        "RAccountsChangeTitleImage",
        {},
        [background, b""],
        response_model=SetBackgroundResponse,
        error_type=SetProfileImageError,
    )
    return response.background


async def set_background_gif(
    client: Client,
    first_frame: bytes,
    animated: bytes,
) -> tuple[ImageRef, ImageRef]:
    """Upload an animated profile background with its static first frame.

    Returns:
        The static and the animated image references.
    """
    response = await client.send_request(
        "RAccountsChangeTitleImage",
        {},
        [first_frame, animated],
        response_model=SetBackgroundResponse,
        error_type=SetProfileImageError,
    )
    if response.background_gif is None:
        raise CodecError("Response is missing the animated background")
    return response.background, response.background_gif
