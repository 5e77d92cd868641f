from enum import Enum
from typing import TypedDict

TWITCH_MESSAGE_ID = "Twitch-Eventsub-Message-Id"
TWITCH_MESSAGE_TYPE = "Twitch-Eventsub-Message-Type"
TWITCH_MESSAGE_TIMESTAMP = "Twitch-Eventsub-Message-Timestamp"
TWITCH_MESSAGE_SIGNATURE = "Twitch-Eventsub-Message-Signature"
HMAC_PREFIX = "sha256="

TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"
TWITCH_HELIX_URL = "https://api.twitch.tv/helix"
EVENTSUB_SUBSCRIPTIONS_URL = f"{TWITCH_HELIX_URL}/eventsub/subscriptions"
STREAMS_URL = f"{TWITCH_HELIX_URL}/streams"

WEBHOOK_PATH = "/webhook"
STREAM_ONLINE = "stream.online"
EVENTSUB_VERSION = "1"
WEBHOOK_TRANSPORT = "webhook"

TWITCH_URL = "https://twitch.tv"
TWITCH_PURPLE = 0x9146FF
TWITCH_FAVICON = (
    "https://static.twitchcdn.net/assets/favicon-32-e29e246c157142c94346.png"
)
PROFILE_IMAGE_URL = (
    "https://static-cdn.jtvnw.net/jtv_user_pictures/{user_id}-profile_image-70x70.png"
)
PREVIEW_IMAGE_URL = (
    "https://static-cdn.jtvnw.net/previews-ttv/live_user_{user_login}-440x248.jpg"
)
THUMBNAIL_SIZE = "440x248"


class MessageType(str, Enum):
    Verification = "webhook_callback_verification"
    Notification = "notification"
    Revocation = "revocation"
    Unknown = "unknown"

    @classmethod
    def from_header(cls, value: str | None) -> "MessageType":
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.Unknown


class ErrorDetails(TypedDict):
    type: str
    message: str
    args: tuple
    traceback: str
