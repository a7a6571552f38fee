"""Profile queries."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from pydantic import Field

from bonfire.models.auth import Me
from bonfire.models.common import ApiModel
from bonfire.queries.graphql import SET_BIRTHDAY_MUTATION

if TYPE_CHECKING:
    from bonfire.client.client import Client


class SetBirthdayResponse(ApiModel):
    me: Me = Field(alias="setBirthday")


async def set_birthday(client: Client, birthday: date) -> Me:
    """Set the day of birth of the authenticated user and return the updated profile."""
    response = await client.send_query(
        "SetBirthdayMutation",
        SET_BIRTHDAY_MUTATION,
        {"birthday": birthday.isoformat()},
        response_model=SetBirthdayResponse,
    )
    return response.me
