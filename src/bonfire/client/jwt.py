"""Access token claim decoding.

The client only reads the claims of its access tokens to know when they
expire. Signatures are the server's concern and are not verified.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from bonfire.core import JwtError, get_logger
from bonfire.core.decoding import datetime_from_millis, parse_integer


logger = get_logger(__name__)


class TokenClaims(BaseModel):
    """Decoded (unverified) access token payload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    subject: str = Field(alias="sub")
    issuer: str = Field(alias="iss")
    audience: str | list[str] = Field(alias="aud")
    issued_at: datetime = Field(alias="iat")
    expires_at: datetime = Field(alias="exp")

    @field_validator("issued_at", "expires_at", mode="before")
    @classmethod
    def parse_millis(cls, v: Any) -> datetime:
        """Claim timestamps are Unix milliseconds."""
        if isinstance(v, datetime):
            return v
        return datetime_from_millis(parse_integer(v, "timestamp"))

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return self.expires_at < now

    def has_audience(self, audience: str) -> bool:
        if isinstance(self.audience, str):
            return self.audience == audience
        return audience in self.audience


def decode_token(token: str, *, audience: str, issuer: str) -> TokenClaims:
    """Decode and check the claims of an access token without verifying it.

    Raises:
        JwtError: If the token is malformed, its timestamps have no calendar
            representation, or its audience or issuer don't match.
    """
    try:
        raw_claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        logger.error("Failed to decode token", extra={"error": str(e)})
        raise JwtError(f"Failed to decode token: {e}") from e

    try:
        claims = TokenClaims.model_validate(raw_claims)
    except ValidationError as e:
        logger.error("Invalid token claims", extra={"error": str(e)})
        raise JwtError(f"Invalid token claims: {e}") from e

    if not claims.has_audience(audience):
        raise JwtError(
            "Unexpected token audience",
            details={"expected": audience, "actual": claims.audience},
        )
    if claims.issuer != issuer:
        raise JwtError(
            "Unexpected token issuer",
            details={"expected": issuer, "actual": claims.issuer},
        )

    logger.debug(
        "Decoded token",
        extra={
            "subject": claims.subject,
            "expires_at": claims.expires_at.isoformat(),
            "issued_at": claims.issued_at.isoformat(),
        },
    )
    return claims
