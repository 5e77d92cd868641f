from typing import Any, Optional

from pydantic import BaseModel

from .common import Subscription


class StreamOnlineEvent(BaseModel):
    broadcaster_user_id: str
    broadcaster_user_name: str
    broadcaster_user_login: Optional[str] = None
    started_at: Optional[str] = None
    type: Optional[str] = None


class NotificationPayload(BaseModel):
    subscription: Subscription
    event: dict[str, Any]
