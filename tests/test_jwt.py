"""Tests for access token claim decoding."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from bonfire.client.jwt import decode_token
from bonfire.core import JwtError
from tests.fakes import mint_token


def test_decodes_millisecond_claims():
    token = jwt.encode(
        {"sub": "7", "iss": "bonfire", "aud": "access", "iat": 1700000000000, "exp": 1700000600000},
        "secret",
        algorithm="HS256",
    )

    claims = decode_token(token, audience="access", issuer="bonfire")

    assert claims.subject == "7"
    assert claims.issued_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    assert claims.expires_at - claims.issued_at == timedelta(minutes=10)


def test_signature_is_not_verified():
    token = mint_token()
    header, payload, _ = token.split(".")

    claims = decode_token(f"{header}.{payload}.forged", audience="access", issuer="bonfire")

    assert claims.subject == "1"


def test_expiry():
    assert decode_token(mint_token(expires_in=-1), audience="access", issuer="bonfire").is_expired()
    assert not decode_token(mint_token(), audience="access", issuer="bonfire").is_expired()


def test_audience_list():
    token = jwt.encode(
        {"sub": "1", "iss": "bonfire", "aud": ["refresh", "access"], "iat": 0, "exp": 1},
        "secret",
        algorithm="HS256",
    )

    assert decode_token(token, audience="access", issuer="bonfire").has_audience("access")


@pytest.mark.parametrize(
    "token",
    [
        "not-a-token",
        mint_token(audience="refresh"),
        mint_token(issuer="someone-else"),
        jwt.encode({"sub": "1", "iss": "bonfire", "aud": "access"}, "s", algorithm="HS256"),
        jwt.encode(
            {"sub": "1", "iss": "bonfire", "aud": "access", "iat": 0, "exp": 10**20},
            "s",
            algorithm="HS256",
        ),
    ],
    ids=["malformed", "audience", "issuer", "missing-timestamps", "out-of-range"],
)
def test_rejects_unusable_tokens(token):
    with pytest.raises(JwtError):
        decode_token(token, audience="access", issuer="bonfire")
