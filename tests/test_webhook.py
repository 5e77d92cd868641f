import asyncio
import json
from typing import Optional

import httpx
import pytest
from fastapi import FastAPI
from starlette.datastructures import Headers

from controller import WebhookHandler, twitch_router
from controller.twitch import build_envelope
from models import Stream
from services.errors import FetchError, SendError

from .fakes import WEBHOOK_SECRET, make_stream, sign

TIMESTAMP = "2025-05-31T12:35:01.000000000Z"


class FakeStreamSource:
    def __init__(self, stream: Optional[Stream] = None, error: Optional[Exception] = None) -> None:
        self.stream = stream
        self.error = error
        self.calls: list[str] = []

    async def get_stream_info(self, broadcaster_id: str) -> Optional[Stream]:
        self.calls.append(broadcaster_id)
        if self.error is not None:
            raise self.error
        return self.stream


class FakeNotifier:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.dispatched: list[Stream] = []
        self.error = error

    async def dispatch(self, stream: Stream, channel_id: Optional[int] = None) -> None:
        if self.error is not None:
            raise self.error
        self.dispatched.append(stream)


def _notification(subscription_type: str = "stream.online") -> bytes:
    return json.dumps(
        {
            "subscription": {
                "id": "f1c2a387-161a-49f9-a165-0f21d7a4e1c4",
                "type": subscription_type,
                "version": "1",
                "status": "enabled",
                "cost": 0,
                "condition": {"broadcaster_user_id": "1001"},
                "created_at": "2025-05-31T12:00:00Z",
            },
            "event": {
                "id": "9001",
                "broadcaster_user_id": "1001",
                "broadcaster_user_login": "lunastreams",
                "broadcaster_user_name": "LunaStreams",
                "type": "live",
                "started_at": "2025-05-31T12:34:56Z",
            },
        }
    ).encode()


def _headers(body: bytes, message_type: str, message_id: str = "msg-1", valid: bool = True) -> dict[str, str]:
    signature = sign(body, message_id, TIMESTAMP)
    if not valid:
        signature = sign(body, message_id, TIMESTAMP, secret="not-the-secret")
    return {
        "Twitch-Eventsub-Message-Id": message_id,
        "Twitch-Eventsub-Message-Timestamp": TIMESTAMP,
        "Twitch-Eventsub-Message-Signature": signature,
        "Twitch-Eventsub-Message-Type": message_type,
        "Content-Type": "application/json",
    }


@pytest.fixture
def stream_source() -> FakeStreamSource:
    return FakeStreamSource(Stream.model_validate(make_stream("1001")))


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def handler(stream_source, notifier) -> WebhookHandler:
    return WebhookHandler(WEBHOOK_SECRET, stream_source, notifier)


@pytest.fixture
async def client(handler: WebhookHandler):
    app = FastAPI()
    app.state.webhook_handler = handler
    app.include_router(twitch_router)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        yield client


async def _settle(handler: WebhookHandler) -> None:
    await asyncio.gather(*handler.pending_tasks)


async def test_verification_echoes_challenge(client):
    body = b'{"challenge":"abc123"}'

    response = await client.post(
        "/webhook", content=body, headers=_headers(body, "webhook_callback_verification")
    )

    assert response.status_code == 200
    assert response.text == "abc123"
    assert response.headers["content-type"].startswith("text/plain")


async def test_verification_with_malformed_body_is_bad_request(client):
    body = b'{"challenge": 12'

    response = await client.post(
        "/webhook", content=body, headers=_headers(body, "webhook_callback_verification")
    )

    assert response.status_code == 400


@pytest.mark.parametrize(
    "message_type",
    ["webhook_callback_verification", "notification", "revocation", "something_new"],
)
async def test_invalid_signature_is_unauthorized(
    client, handler, stream_source, notifier, message_type
):
    body = _notification()

    response = await client.post(
        "/webhook", content=body, headers=_headers(body, message_type, valid=False)
    )
    await _settle(handler)

    assert response.status_code == 401
    assert stream_source.calls == []
    assert notifier.dispatched == []


async def test_missing_signature_headers_are_unauthorized(client, stream_source):
    response = await client.post("/webhook", content=_notification())

    assert response.status_code == 401
    assert stream_source.calls == []


async def test_stream_online_notification_dispatches(client, handler, stream_source, notifier):
    body = _notification()

    response = await client.post("/webhook", content=body, headers=_headers(body, "notification"))
    await _settle(handler)

    assert response.status_code == 204
    assert response.content == b""
    assert stream_source.calls == ["1001"]
    assert [s.user_name for s in notifier.dispatched] == ["LunaStreams"]


async def test_offline_broadcaster_is_not_announced(client, handler, stream_source, notifier):
    stream_source.stream = None
    body = _notification()

    response = await client.post("/webhook", content=body, headers=_headers(body, "notification"))
    await _settle(handler)

    assert response.status_code == 204
    assert stream_source.calls == ["1001"]
    assert notifier.dispatched == []


async def test_unwatched_subscription_type_is_ignored(client, handler, stream_source, notifier):
    body = _notification("stream.offline")

    response = await client.post("/webhook", content=body, headers=_headers(body, "notification"))
    await _settle(handler)

    assert response.status_code == 204
    assert stream_source.calls == []
    assert notifier.dispatched == []


async def test_unwatched_type_with_foreign_event_shape_is_acknowledged(
    client, handler, stream_source, notifier
):
    body = json.dumps(
        {
            "subscription": {"type": "user.update", "condition": {"user_id": "1337"}},
            "event": {"user_id": "1337", "user_login": "cool_user"},
        }
    ).encode()

    response = await client.post("/webhook", content=body, headers=_headers(body, "notification"))
    await _settle(handler)

    assert response.status_code == 204
    assert stream_source.calls == []
    assert notifier.dispatched == []


async def test_watched_type_with_incomplete_event_is_bad_request(client, handler, stream_source):
    body = json.dumps(
        {
            "subscription": {"type": "stream.online"},
            "event": {"broadcaster_user_login": "lunastreams"},
        }
    ).encode()

    response = await client.post("/webhook", content=body, headers=_headers(body, "notification"))
    await _settle(handler)

    assert response.status_code == 400
    assert stream_source.calls == []


async def test_malformed_notification_is_bad_request(client, handler, stream_source):
    body = b'{"subscription": {"type": "stream.online"}}'

    response = await client.post("/webhook", content=body, headers=_headers(body, "notification"))
    await _settle(handler)

    assert response.status_code == 400
    assert stream_source.calls == []


@pytest.mark.parametrize(
    "stream_error, notifier_error",
    [
        (FetchError("Failed to fetch stream info", 500, "boom"), None),
        (None, SendError("Failed to send embed", 555)),
    ],
)
async def test_downstream_failures_do_not_change_acknowledgement(
    handler, client, stream_source, notifier, stream_error, notifier_error
):
    stream_source.error = stream_error
    notifier.error = notifier_error
    body = _notification()

    response = await client.post("/webhook", content=body, headers=_headers(body, "notification"))
    await _settle(handler)

    assert response.status_code == 204
    assert notifier.dispatched == []


async def test_revocation_is_acknowledged_without_resubscribing(
    client, handler, stream_source, notifier
):
    body = json.dumps(
        {
            "subscription": {
                "id": "f1c2a387-161a-49f9-a165-0f21d7a4e1c4",
                "status": "authorization_revoked",
                "type": "stream.online",
                "version": "1",
                "cost": 1,
                "condition": {"broadcaster_user_id": "1001"},
                "created_at": "2025-05-31T12:00:00Z",
            }
        }
    ).encode()

    response = await client.post("/webhook", content=body, headers=_headers(body, "revocation"))
    await _settle(handler)

    assert response.status_code == 204
    assert handler.pending_tasks == set()
    assert stream_source.calls == []
    assert notifier.dispatched == []


@pytest.mark.parametrize(
    "body",
    [
        b'{"subscription": {"id": "x", "status": "authorization_revoked"}}',
        b"not json at all",
    ],
)
async def test_unparseable_revocation_is_still_acknowledged(client, handler, stream_source, body):
    response = await client.post("/webhook", content=body, headers=_headers(body, "revocation"))

    assert response.status_code == 204
    assert handler.pending_tasks == set()
    assert stream_source.calls == []


async def test_unknown_message_type_is_accepted(client, handler, stream_source):
    body = b'{"anything": true}'

    response = await client.post("/webhook", content=body, headers=_headers(body, "brand_new_type"))

    assert response.status_code == 204
    assert stream_source.calls == []


async def test_drain_waits_for_pending_notifications(handler, notifier):
    gate = asyncio.Event()

    async def slow_dispatch(stream, channel_id=None):
        await gate.wait()
        notifier.dispatched.append(stream)

    notifier.dispatch = slow_dispatch
    body = _notification()
    envelope = build_envelope(Headers(_headers(body, "notification")), body)
    response = await handler.handle(envelope)
    assert response.status_code == 204
    assert len(handler.pending_tasks) == 1

    asyncio.get_running_loop().call_later(0.01, gate.set)
    await handler.drain(timeout=1)

    assert len(notifier.dispatched) == 1


async def test_drain_cancels_notifications_that_outlive_the_timeout(handler, notifier):
    async def stuck_dispatch(stream, channel_id=None):
        await asyncio.Event().wait()

    notifier.dispatch = stuck_dispatch
    body = _notification()
    await handler.handle(build_envelope(Headers(_headers(body, "notification")), body))
    (task,) = handler.pending_tasks

    await handler.drain(timeout=0.01)

    assert task.cancelled()
    assert handler.pending_tasks == set()
    assert notifier.dispatched == []


async def test_ping_and_health(client):
    ping = await client.get("/ping")
    health = await client.get("/health")

    assert ping.status_code == 200
    assert ping.text == "pong"
    assert health.status_code == 204
