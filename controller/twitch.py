import asyncio
import logging
from typing import Any, Optional, Protocol, Type, TypeVar

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ValidationError
from starlette.datastructures import Headers

from constants import (
    STREAM_ONLINE,
    TWITCH_MESSAGE_ID,
    TWITCH_MESSAGE_SIGNATURE,
    TWITCH_MESSAGE_TIMESTAMP,
    TWITCH_MESSAGE_TYPE,
    WEBHOOK_PATH,
    MessageType,
)
from models import (
    NotificationPayload,
    RevocationPayload,
    Stream,
    StreamOnlineEvent,
    VerificationPayload,
    WebhookEnvelope,
)
from services.errors import ParseError
from services.helper.helper import handle_error, verify_signature

logger = logging.getLogger(__name__)

twitch_router = APIRouter()

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class StreamInfoSource(Protocol):
    async def get_stream_info(self, broadcaster_id: str) -> Optional[Stream]:
        ...


class Notifier(Protocol):
    async def dispatch(self, stream: Stream, channel_id: Optional[int] = None) -> None:
        ...


def parse_payload(model: Type[PayloadT], raw_body: bytes) -> PayloadT:
    try:
        return model.model_validate_json(raw_body)
    except ValidationError as e:
        raise ParseError(f"Malformed {model.__name__}: {e}") from e


def validate_event(model: Type[PayloadT], event: dict[str, Any]) -> PayloadT:
    try:
        return model.model_validate(event)
    except ValidationError as e:
        raise ParseError(f"Malformed {model.__name__}: {e}") from e


def build_envelope(headers: Headers, raw_body: bytes) -> WebhookEnvelope:
    return WebhookEnvelope(
        message_type=MessageType.from_header(headers.get(TWITCH_MESSAGE_TYPE)),
        message_id=headers.get(TWITCH_MESSAGE_ID, ""),
        timestamp=headers.get(TWITCH_MESSAGE_TIMESTAMP, ""),
        raw_body=raw_body,
        signature=headers.get(TWITCH_MESSAGE_SIGNATURE, ""),
    )


class WebhookHandler:
    """
    Authenticates and routes a single EventSub delivery.

    Nothing is shared between requests except the set of notification tasks,
    which exists only so shutdown can wait for them.
    """

    def __init__(
        self,
        secret: str,
        stream_info_source: StreamInfoSource,
        notifier: Notifier,
        event_type: str = STREAM_ONLINE,
    ) -> None:
        self._secret = secret
        self._stream_info_source = stream_info_source
        self._notifier = notifier
        self._event_type = event_type
        self._notification_tasks: set[asyncio.Task] = set()

    @property
    def pending_tasks(self) -> set[asyncio.Task]:
        return set(self._notification_tasks)

    def authenticate(self, envelope: WebhookEnvelope) -> bool:
        return verify_signature(
            envelope.message_id,
            envelope.timestamp,
            envelope.raw_body,
            envelope.signature,
            self._secret,
        )

    async def handle(self, envelope: WebhookEnvelope) -> Response:
        if not self.authenticate(envelope):
            logger.warning("401: Unauthorized. Signature does not match.")
            return Response(status_code=401)

        logger.info(
            f"Signature OK - type={envelope.message_type.value}, id={envelope.message_id}"
        )
        try:
            match envelope.message_type:
                case MessageType.Verification:
                    return self._handle_verification(envelope)
                case MessageType.Notification:
                    return self._handle_notification(envelope)
                case MessageType.Revocation:
                    return self._handle_revocation(envelope)
                case MessageType.Unknown:
                    logger.info(f"Ignoring unexpected message type for {envelope.message_id}")
                    return Response(status_code=204)
        except ParseError as e:
            logger.warning(f"400: Bad request. {e}")
            return Response(status_code=400)

    def _handle_verification(self, envelope: WebhookEnvelope) -> Response:
        payload = parse_payload(VerificationPayload, envelope.raw_body)
        logger.info("Responding to callback verification challenge")
        return PlainTextResponse(payload.challenge, status_code=200)

    def _handle_notification(self, envelope: WebhookEnvelope) -> Response:
        payload = parse_payload(NotificationPayload, envelope.raw_body)
        if payload.subscription.type != self._event_type:
            logger.info(
                f"Ignoring notification of unwatched type {payload.subscription.type}"
            )
            return Response(status_code=204)

        event = validate_event(StreamOnlineEvent, payload.event)
        logger.info(f"{event.broadcaster_user_name} is live!")
        self._register_task(asyncio.create_task(self._stream_online_task(event)))
        return Response(status_code=204)

    def _handle_revocation(self, envelope: WebhookEnvelope) -> Response:
        try:
            payload = parse_payload(RevocationPayload, envelope.raw_body)
        except ParseError:
            logger.warning(
                f"Received a revocation that could not be parsed: {envelope.raw_body!r}"
            )
            return Response(status_code=204)
        subscription = payload.subscription
        logger.warning(
            f"Revoked {subscription.type} notifications for condition: {subscription.condition} because {subscription.status or 'No reason provided'}"
        )
        return Response(status_code=204)

    def _register_task(self, task: asyncio.Task) -> None:
        self._notification_tasks.add(task)
        task.add_done_callback(self._notification_tasks.discard)

    async def _stream_online_task(self, event: StreamOnlineEvent) -> None:
        broadcaster_id = event.broadcaster_user_id
        try:
            stream = await self._stream_info_source.get_stream_info(broadcaster_id)
            if stream is None:
                logger.info(
                    f"Broadcaster {broadcaster_id} is not live anymore, skipping notification"
                )
                return None
            await self._notifier.dispatch(stream)
        except Exception as e:
            handle_error(e, f"Error in _stream_online_task for {broadcaster_id}")

    async def drain(self, timeout: float) -> None:
        """Wait for in-flight notification tasks, cancelling whatever outlives the timeout."""
        tasks = self.pending_tasks
        if not tasks:
            return None
        logger.info(f"Waiting for {len(tasks)} notification task(s) to finish")
        _, still_pending = await asyncio.wait(tasks, timeout=timeout)
        if not still_pending:
            return None
        for task in still_pending:
            task.cancel()
        await asyncio.gather(*still_pending, return_exceptions=True)
        logger.warning(f"Cancelled {len(still_pending)} notification task(s)")


def get_webhook_handler(request: Request) -> WebhookHandler:
    return request.app.state.webhook_handler


@twitch_router.post(WEBHOOK_PATH)
async def eventsub_webhook(
    request: Request, handler: WebhookHandler = Depends(get_webhook_handler)
) -> Response:
    try:
        raw_body = await request.body()
    except Exception as e:
        handle_error(e, f"500: Failed to read request body on {WEBHOOK_PATH}")
        return Response(status_code=500)

    envelope = build_envelope(request.headers, raw_body)
    return await handler.handle(envelope)


@twitch_router.get("/ping")
async def ping() -> Response:
    return PlainTextResponse("pong")


@twitch_router.get("/health")
async def health() -> Response:
    return Response(status_code=204)
