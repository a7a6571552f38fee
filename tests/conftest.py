from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from bonfire.client import Client, ClientBuilder
from bonfire.core import Settings
from tests.fakes import MELIOR_URI, ROOT_URI, FakeServer, make_auth


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        root_uri=ROOT_URI,
        melior_uri=MELIOR_URI,
        bot_token="bot-token",
        requests_per_minute=0,
    )


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def builder(settings: Settings, server: FakeServer) -> ClientBuilder:
    return ClientBuilder(settings).transport(server.transport())


@pytest.fixture
async def client(builder: ClientBuilder) -> AsyncIterator[Client]:
    async with builder.build() as client:
        yield client


@pytest.fixture
async def auth_client(builder: ClientBuilder) -> AsyncIterator[Client]:
    async with builder.auth(make_auth()).build() as client:
        yield client
