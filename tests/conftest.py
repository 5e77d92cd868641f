"""Shared fixtures for the notifier test suite."""

import httpx
import pytest

from models import Settings
from services.helper.http_client import HttpClientManager
from services.twitch.api import TwitchApi
from services.twitch.token_manager import TwitchTokenManager

from .fakes import CALLBACK_BASE, WEBHOOK_SECRET, FakeTwitch


@pytest.fixture
def fake_twitch() -> FakeTwitch:
    return FakeTwitch()


@pytest.fixture
async def http_client(fake_twitch: FakeTwitch):
    client = HttpClientManager(transport=httpx.MockTransport(fake_twitch))
    yield client
    await client.close()


@pytest.fixture
def token_manager(http_client: HttpClientManager) -> TwitchTokenManager:
    return TwitchTokenManager("client-id", "client-secret", http_client)


@pytest.fixture
def twitch_api(
    token_manager: TwitchTokenManager, http_client: HttpClientManager
) -> TwitchApi:
    return TwitchApi(token_manager, http_client)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        port=8080,
        discord_token="discord-token",
        twitch_client_id="client-id",
        twitch_client_secret="client-secret",
        twitch_webhook_secret=WEBHOOK_SECRET,
        callback_url=CALLBACK_BASE,
        twitch_broadcaster_ids=("1001", "1002"),
        notify_channel_id=555,
        shutdown_grace_seconds=1,
    )
