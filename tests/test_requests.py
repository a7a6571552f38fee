"""Tests for the Root requests and GraphQL queries built on the facade."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone

import pytest

from bonfire.client import BadReasonError
from bonfire.core import CodecError
from bonfire.models import (
    Account,
    AlreadyReportedError,
    ImageDimensionsTooHighError,
    InvalidAgeError,
    ReferrerAlreadySetError,
    TextTooLongError,
)
from bonfire.queries import me, set_birthday
from bonfire.requests import (
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
from tests.fakes import melior_data, root_error, root_ok


RAW_ACCOUNT = {
    "J_ID": 1,
    "J_NAME": "ZeonXX",
    "J_LVL": 25050,
    "J_LAST_ONLINE_DATE": 1700000000000,
    "avatar": {"i": 12, "u": "https://img.test/12", "w": 256, "h": 256},
    "karma30": "-150",
    "sponsor": 3,
    "sponsorTimes": 1,
}

RAW_ME = {
    "id": 1,
    "username": "ZeonXX",
    "email": "zeon@example.com",
    "cachedLevel": 25050,
    "birthday": "2000-01-31",
    "isNsfwAllowed": True,
}


class TestAccount:
    """Tests for account decoding."""

    def test_decode(self):
        account = Account.model_validate(RAW_ACCOUNT)

        assert account.id == 1
        assert account.level == pytest.approx(250.5)
        assert account.karma30 == pytest.approx(-1.5)
        assert account.last_online_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert account.avatar.uri == "https://img.test/12"

    def test_zero_avatar_id_means_no_avatar(self):
        account = Account.model_validate({**RAW_ACCOUNT, "avatar": {"i": 0, "u": "", "w": 0, "h": 0}})

        assert account.avatar is None

    async def test_get_by_id(self, client, server):
        server.root("RAccountsGet", lambda document, attachments: root_ok({"account": RAW_ACCOUNT}))

        account = await get_account_by_id(client, 1)

        assert account.name == "ZeonXX"
        assert server.root_documents[0]["accountId"] == 1
        assert server.root_documents[0]["accountName"] is None

    async def test_get_by_name(self, client, server):
        server.root("RAccountsGet", lambda document, attachments: root_ok({"account": RAW_ACCOUNT}))

        await get_account_by_name(client, "ZeonXX")

        assert server.root_documents[0]["accountName"] == "ZeonXX"

    async def test_out_of_range_timestamp(self, client, server):
        raw = {**RAW_ACCOUNT, "J_LAST_ONLINE_DATE": 10**20}
        server.root("RAccountsGet", lambda document, attachments: root_ok({"account": raw}))

        with pytest.raises(CodecError):
            await get_account_by_id(client, 1)


class TestAccountErrors:
    """Tests for operation-specific Root errors."""

    async def test_already_reported(self, auth_client, server):
        server.root("RAccountsReport", lambda document, attachments: root_error("E_EXIST"))

        with pytest.raises(AlreadyReportedError):
            await report(auth_client, 2, "spam")

        assert server.root_documents[0]["comment"] == "spam"

    async def test_report_keeps_generic_errors(self, auth_client, server):
        server.root("RAccountsReport", lambda document, attachments: root_error("ERROR_BAD_COMMENT"))

        with pytest.raises(BadReasonError):
            await report(auth_client, 2, "")

    async def test_referrer_already_set(self, auth_client, server):
        server.root("RAccountsSetRecruiter", lambda document, attachments: root_error("E_ALREADY_SET"))

        with pytest.raises(ReferrerAlreadySetError):
            await set_referrer(auth_client, 2)

    @pytest.mark.parametrize(
        ("operation", "request_name"),
        [(set_status, "RAccountsStatusSet"), (set_description, "RAccountsBioSetDescription")],
    )
    async def test_text_too_long(self, auth_client, server, operation, request_name):
        server.root(request_name, lambda document, attachments: root_error("E_BAD_SIZE"))

        with pytest.raises(TextTooLongError):
            await operation(auth_client, "x" * 1000)

    async def test_clearing_text_sends_empty_string(self, auth_client, server):
        server.root("RAccountsStatusSet", lambda document, attachments: root_ok({}))

        await set_status(auth_client, None)

        assert server.root_documents[0]["status"] == ""

    async def test_invalid_age(self, auth_client, server):
        server.root("RAccountsBioSetAge", lambda document, attachments: root_error("E_BAD_AGE"))

        with pytest.raises(InvalidAgeError):
            await set_age(auth_client, 500)

    async def test_clearing_age_sends_zero(self, auth_client, server):
        server.root("RAccountsBioSetAge", lambda document, attachments: root_ok({}))

        await set_age(auth_client, None)

        assert server.root_documents[0]["age"] == 0


class TestImages:
    """Tests for image uploads."""

    async def test_avatar(self, auth_client, server):
        received = []

        def handler(document, attachments):
            received.append(attachments)
            return root_ok({"newAvatar": {"i": 5, "u": "https://img.test/5", "w": 64, "h": 64}})

        server.root("RAccountsChangeAvatar", handler)

        image = await set_avatar(auth_client, b"png-bytes")

        assert image.id == 5
        assert received == [[b"png-bytes"]]

    async def test_static_background_sends_empty_second_attachment(self, auth_client, server):
        server.root(
            "RAccountsChangeTitleImage",
            lambda document, attachments: root_ok({"image": {"i": 6, "u": "u", "w": 1, "h": 1}}),
        )

        await set_background(auth_client, b"x" * 10)

        assert server.root_documents[0]["dataOutput"] == [10, 0]

    async def test_gif_background(self, auth_client, server):
        server.root(
            "RAccountsChangeTitleImage",
            lambda document, attachments: root_ok({
                "image": {"i": 6, "u": "u", "w": 1, "h": 1},
                "imageGif": {"i": 7, "u": "g", "w": 1, "h": 1},
            }),
        )

        static, animated = await set_background_gif(auth_client, b"frame", b"gif")

        assert (static.id, animated.id) == (6, 7)
        assert server.root_documents[0]["dataOutput"] == [5, 3]

    async def test_gif_background_missing_animation(self, auth_client, server):
        server.root(
            "RAccountsChangeTitleImage",
            lambda document, attachments: root_ok({"image": {"i": 6, "u": "u", "w": 1, "h": 1}}),
        )

        with pytest.raises(CodecError):
            await set_background_gif(auth_client, b"frame", b"gif")

    async def test_dimensions_too_high(self, auth_client, server):
        server.root("RAccountsChangeAvatar", lambda document, attachments: root_error("E_BAD_IMG_SIDES"))

        with pytest.raises(ImageDimensionsTooHighError):
            await set_avatar(auth_client, b"png-bytes")


class TestMe:
    """Tests for the profile queries."""

    async def test_me(self, auth_client, server):
        server.melior("MeQuery", lambda body, request: melior_data({"me": RAW_ME}))

        info = await me(auth_client)

        assert info.id == "1"
        assert info.name == "ZeonXX"
        assert info.cached_level == pytest.approx(250.5)
        assert info.birthday == date(2000, 1, 31)

    async def test_set_birthday(self, auth_client, server):
        server.melior(
            "SetBirthdayMutation",
            lambda body, request: melior_data({"setBirthday": RAW_ME}),
        )

        info = await set_birthday(auth_client, date(2000, 1, 31))

        assert info.is_nsfw_allowed is True
        assert json.loads(server.requests[0].content)["variables"] == {"birthday": "2000-01-31"}
