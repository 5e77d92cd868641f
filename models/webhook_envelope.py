from pydantic import BaseModel

from constants import MessageType


class WebhookEnvelope(BaseModel):
    """One inbound EventSub delivery: the routing headers plus the raw body."""

    message_type: MessageType
    message_id: str
    timestamp: str
    raw_body: bytes
    signature: str
