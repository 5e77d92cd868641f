from typing import Any, Optional

from pydantic import BaseModel


class Subscription(BaseModel):
    id: Optional[str] = None
    type: str
    version: Optional[str] = None
    status: Optional[str] = None
    cost: Optional[int] = None
    created_at: Optional[str] = None
    condition: dict[str, Any] = {}
