"""Tests for the client facade against fake servers."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from bonfire.client import BannedError, Client, ClientBuilder, MeliorError, OtherRootError
from bonfire.client.transport import USER_AGENT
from bonfire.core import (
    AlreadyAuthenticatedError,
    CodecError,
    InvalidMeliorResponseError,
    InvalidTargetError,
    JwtError,
    TcpConnectError,
    UnauthenticatedError,
    UnsuccessfulResponseError,
    get_settings,
)
from bonfire.models import (
    Auth,
    LogoutHardBannedError,
    RefreshTokenExpiredError,
    TfaKind,
    TfaRequiredError,
    WrongPasswordError,
)
from tests.fakes import (
    make_auth,
    melior_data,
    melior_error,
    mint_token,
    root_error,
    root_ok,
    streamed,
)


def login_success(auth: Auth):
    def handler(body, request):
        return melior_data({
            "loginEmail": {
                "__typename": "LoginResultSuccess",
                "accessToken": auth.access_token,
                "refreshToken": auth.refresh_token,
            }
        })

    return handler


class TestLogin:
    """Tests for the session lifecycle."""

    async def test_login_then_logout(self, client, server):
        auth = make_auth()
        server.melior("LoginEmailMutation", login_success(auth))
        server.melior("LogoutMutation", lambda body, request: melior_data({}))

        assert not client.is_auth()
        await client.login("user@example.com", "hunter2")

        assert client.is_auth()
        assert await client.auth() == auth

        await client.logout()

        assert not client.is_auth()
        login_request = server.requests[0]
        assert json.loads(login_request.content)["variables"] == {
            "input": {"email": "user@example.com", "password": "hunter2"}
        }
        assert "Authorization" not in login_request.headers
        assert server.requests[1].headers["Authorization"] == f"Bearer {auth.access_token}"

    async def test_login_requires_tfa(self, client, server):
        server.melior(
            "LoginEmailMutation",
            lambda body, request: melior_data({
                "loginEmail": {
                    "__typename": "LoginResultTfaRequired",
                    "tfaType": "EMAIL_LINK",
                    "tfaWaitToken": "wait-1",
                }
            }),
        )

        with pytest.raises(TfaRequiredError) as exc_info:
            await client.login("user@example.com", "hunter2")

        assert exc_info.value.kind is TfaKind.EMAIL_LINK
        assert exc_info.value.wait_token == "wait-1"
        assert not client.is_auth()

    async def test_login_with_wrong_password(self, client, server):
        server.melior("LoginEmailMutation", lambda body, request: melior_error("WrongPassword:nope"))

        with pytest.raises(WrongPasswordError) as exc_info:
            await client.login("user@example.com", "wrong")

        assert isinstance(exc_info.value.__cause__, MeliorError)
        assert not client.is_auth()

    async def test_login_when_authenticated(self, auth_client, server):
        with pytest.raises(AlreadyAuthenticatedError):
            await auth_client.login("user@example.com", "hunter2")

        assert server.requests == []

    async def test_logout_when_unauthenticated(self, client, server):
        with pytest.raises(UnauthenticatedError):
            await client.logout()

        assert server.requests == []

    async def test_failed_logout_still_clears_session(self, auth_client, server):
        server.melior("LogoutMutation", lambda body, request: melior_error("HardBanned:bye"))

        with pytest.raises(LogoutHardBannedError):
            await auth_client.logout()

        assert not auth_client.is_auth()

    async def test_auth_when_unauthenticated(self, client):
        with pytest.raises(UnauthenticatedError):
            await client.auth()


class TestRefresh:
    """Tests for token refresh through the facade."""

    async def test_expired_token_is_refreshed_once(self, builder, server):
        fresh = make_auth(refresh_token="refresh-2")

        async def refresh(body, request):
            await asyncio.sleep(0.01)
            return melior_data({
                "loginRefresh": {
                    "accessToken": fresh.access_token,
                    "refreshToken": fresh.refresh_token,
                }
            })

        server.melior("LoginRefreshMutation", refresh)
        server.root("RAccountsStatusSet", lambda document, attachments: root_ok({}))

        async with builder.auth(make_auth(expires_in=-60)).build() as client:
            await asyncio.gather(*(
                client.send_request("RAccountsStatusSet", {"status": "hi"}) for _ in range(5)
            ))
            assert await client.auth() == fresh

        assert server.melior_operations == ["LoginRefreshMutation"]
        refresh_request = server.requests[0]
        assert json.loads(refresh_request.content)["variables"] == {"refreshToken": "refresh-1"}
        assert "Authorization" not in refresh_request.headers
        assert {d["J_API_ACCESS_TOKEN"] for d in server.root_documents} == {fresh.access_token}

    async def test_expired_refresh_token_forces_login(self, builder, server):
        server.melior(
            "LoginRefreshMutation",
            lambda body, request: melior_error("TokenExpired:refresh token expired"),
        )

        async with builder.auth(make_auth(expires_in=-60)).build() as client:
            with pytest.raises(RefreshTokenExpiredError):
                await client.send_query("MeQuery", "query MeQuery { me { id } }", {})

            assert not client.is_auth()

    def test_builder_rejects_bad_credentials(self, builder):
        with pytest.raises(JwtError):
            builder.auth(Auth(access_token=mint_token(audience="refresh"), refresh_token="r"))

    def test_builder_rejects_bad_uri(self, builder):
        with pytest.raises(InvalidTargetError):
            builder.root_uri("ftp://root.test")


class TestRootRequests:
    """Tests for the Root request pipeline."""

    async def test_injects_tokens_and_protocol_fields(self, auth_client, server):
        server.root("RAccountsGet", lambda document, attachments: root_ok({"ok": True}))

        assert await auth_client.send_request("RAccountsGet", {"accountId": 1}) == {"ok": True}

        document = server.root_documents[0]
        assert document["J_API_BOT_TOKEN"] == "bot-token"
        assert document["requestApiVersion"] == "3.1.0"
        assert document["accountId"] == 1
        assert "J_API_ACCESS_TOKEN" in document

        request = server.requests[0]
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["User-Agent"] == USER_AGENT
        assert request.headers["Host"] == "root.test"

    async def test_unauthenticated_omits_access_token(self, client, server):
        server.root("RAccountsGet", lambda document, attachments: root_ok({}))

        await client.send_request("RAccountsGet", {"accountId": 1})

        assert "J_API_ACCESS_TOKEN" not in server.root_documents[0]

    async def test_attachments(self, client, server):
        received = []

        def handler(document, attachments):
            received.append((document["dataOutput"], attachments))
            return root_ok({})

        server.root("Upload", handler)

        await client.send_request("Upload", {}, [b"x" * 10, b""])

        assert received == [([10, 0], [b"x" * 10, b""])]

    async def test_taxonomy_error(self, client, server):
        server.root(
            "RAccountsGet",
            lambda document, attachments: root_error(
                "ERROR_ACCOUNT_IS_BANED", params=["1700000000000"]
            ),
        )

        with pytest.raises(BannedError) as exc_info:
            await client.send_request("RAccountsGet", {"accountId": 1})

        assert exc_info.value.until.year == 2023

    async def test_unknown_code(self, client, server):
        server.root("RAccountsGet", lambda document, attachments: root_error("E_NEW", params=["a"]))

        with pytest.raises(OtherRootError) as exc_info:
            await client.send_request("RAccountsGet", {})

        assert exc_info.value.code == "E_NEW"

    @pytest.mark.parametrize("status", [429, 500, 502])
    async def test_non_2xx_status(self, client, server, status):
        server.root(
            "RAccountsGet",
            lambda document, attachments: httpx.Response(
                status, json={"J_STATUS": "J_STATUS_OK", "J_RESPONSE": {}}
            ),
        )

        with pytest.raises(UnsuccessfulResponseError) as exc_info:
            await client.send_request("RAccountsGet", {})

        assert exc_info.value.status_code == status

    async def test_malformed_response(self, client, server):
        server.root("RAccountsGet", lambda document, attachments: streamed(b"<html>"))

        with pytest.raises(CodecError):
            await client.send_request("RAccountsGet", {})

    async def test_wrongly_wired_error_type(self, client, server):
        from bonfire.models import LoginError

        with pytest.raises(TypeError):
            await client.send_request("RAccountsGet", {}, error_type=LoginError)

        assert server.requests == []


class TestMeliorQueries:
    """Tests for the GraphQL pipeline."""

    async def test_bot_token_header(self, client, server):
        server.melior("MeQuery", lambda body, request: melior_data({"me": None}))

        await client.send_query("MeQuery", "query MeQuery { me { id } }", {})

        assert server.requests[0].headers["X-Bot-Token"] == "bot-token"

    async def test_first_error_is_raised(self, client, server):
        server.melior(
            "MeQuery",
            lambda body, request: httpx.Response(200, json={
                "data": {"me": {"id": "1"}},
                "errors": [{"message": "Unauthenticated:log in"}, {"message": "Forbidden:no"}],
            }),
        )

        with pytest.raises(MeliorError) as exc_info:
            await client.send_query("MeQuery", "query MeQuery { me { id } }", {})

        assert exc_info.value.text == "log in"

    async def test_empty_response(self, client, server):
        server.melior("MeQuery", lambda body, request: httpx.Response(200, json={}))

        with pytest.raises(InvalidMeliorResponseError):
            await client.send_query("MeQuery", "query MeQuery { me { id } }", {})


async def test_connection_failure_is_classified(settings):
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with ClientBuilder(settings).transport(httpx.MockTransport(refuse)).build() as client:
        with pytest.raises(TcpConnectError):
            await client.send_request("RAccountsGet", {})


async def test_limiter_per_backend(settings, server):
    builder = ClientBuilder(settings).transport(server.transport()).requests_per_minute(30)

    async with builder.build() as client:
        root_limiter = client._root.limiter
        melior_limiter = client._melior.limiter

    assert root_limiter.bucket.capacity == 30
    assert root_limiter.bucket.refill_rate == pytest.approx(0.5)
    assert melior_limiter.bucket is not root_limiter.bucket


async def test_limiter_disabled_by_zero(client):
    assert not client._root.limiter.enabled
    assert not client._melior.limiter.enabled


async def test_from_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("BONFIRE_ROOT_URI", "http://localhost:7070")
    monkeypatch.setenv("BONFIRE_MELIOR_URI", "http://localhost:7071/graphql")
    get_settings.cache_clear()
    try:
        async with Client.from_settings() as client:
            assert client._root.connection.target.port == 7070
            assert client._melior.connection.target.path == "/graphql"
    finally:
        get_settings.cache_clear()
