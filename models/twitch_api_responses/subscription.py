from typing import List, Optional

from pydantic import BaseModel


class SubscriptionCondition(BaseModel):
    broadcaster_user_id: Optional[str] = None


class SubscriptionTransport(BaseModel):
    method: Optional[str] = None
    callback: Optional[str] = None


class Subscription(BaseModel):
    id: str
    status: str
    type: str
    version: str
    condition: SubscriptionCondition
    created_at: str
    transport: SubscriptionTransport
    cost: int = 0


class Pagination(BaseModel):
    cursor: Optional[str] = None


class SubscriptionResponse(BaseModel):
    data: List[Subscription]
    total: int = 0
    pagination: Pagination = Pagination()
