from .auth.auth_response import AuthResponse
from .settings import Settings
from .twitch_api_responses.stream import Stream, StreamResponse
from .twitch_api_responses.subscription import (
    Subscription,
    SubscriptionResponse,
)
from .twitch_event_subs.revocation import RevocationPayload
from .twitch_event_subs.stream_online import NotificationPayload, StreamOnlineEvent
from .twitch_event_subs.verification import VerificationPayload
from .webhook_envelope import WebhookEnvelope

__all__ = [
    "AuthResponse",
    "Settings",
    "Stream",
    "StreamResponse",
    "Subscription",
    "SubscriptionResponse",
    "RevocationPayload",
    "NotificationPayload",
    "StreamOnlineEvent",
    "VerificationPayload",
    "WebhookEnvelope",
]
