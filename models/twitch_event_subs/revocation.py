from pydantic import BaseModel

from .common import Subscription


class RevocationPayload(BaseModel):
    subscription: Subscription
