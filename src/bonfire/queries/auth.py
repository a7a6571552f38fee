"""Authentication queries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Literal

from pydantic import Field

from bonfire.models.auth import (
    Auth,
    LoginError,
    LogoutError,
    Me,
    RefreshError,
    TfaRequired,
    TfaRequiredError,
)
from bonfire.models.common import ApiModel
from bonfire.queries.graphql import (
    LOGIN_EMAIL_MUTATION,
    LOGIN_REFRESH_MUTATION,
    LOGOUT_MUTATION,
    ME_QUERY,
)

if TYPE_CHECKING:
    from bonfire.client.client import Client


class LoginSuccess(Auth):
    typename: Literal["LoginResultSuccess"] = Field(alias="__typename")


class LoginTfaRequired(TfaRequired):
    typename: Literal["LoginResultTfaRequired"] = Field(alias="__typename")


class LoginEmailResponse(ApiModel):
    result: Annotated[
        LoginSuccess | LoginTfaRequired,
        Field(discriminator="typename"),
    ] = Field(alias="loginEmail")


class LoginRefreshResponse(ApiModel):
    auth: Auth = Field(alias="loginRefresh")


class MeResponse(ApiModel):
    me: Me


async def login_email(client: Client, email: str, password: str) -> Auth:
    """Exchange an email and a password for a credential pair.

    Sent without an access token. Use ``Client.login`` to also store the
    session.

    Raises:
        TfaRequiredError: If the login has to be confirmed with TFA.
        LoginError: If the credentials are rejected.
    """
    response = await client.send_query_authless(
        "LoginEmailMutation",
        LOGIN_EMAIL_MUTATION,
        {"input": {"email": email, "password": password}},
        response_model=LoginEmailResponse,
        error_type=LoginError,
    )
    result = response.result
    if isinstance(result, LoginTfaRequired):
        raise TfaRequiredError(TfaRequired(kind=result.kind, wait_token=result.wait_token))
    return Auth(access_token=result.access_token, refresh_token=result.refresh_token)


async def logout(client: Client) -> None:
    """Invalidate the current session on the server."""
    await client.send_query("LogoutMutation", LOGOUT_MUTATION, {}, error_type=LogoutError)


async def refresh(client: Client, refresh_token: str) -> Auth:
    """Exchange a refresh token for a new credential pair.

    Sent without an access token, since the current one has expired.

    Raises:
        RefreshTokenExpiredError: If the refresh token has expired.
    """
    response = await client.send_query_authless(
        "LoginRefreshMutation",
        LOGIN_REFRESH_MUTATION,
        {"refreshToken": refresh_token},
        response_model=LoginRefreshResponse,
        error_type=RefreshError,
    )
    return response.auth


async def me(client: Client) -> Me:
    """Get information about the authenticated user."""
    response = await client.send_query("MeQuery", ME_QUERY, {}, response_model=MeResponse)
    return response.me
