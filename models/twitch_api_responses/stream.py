from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class StreamType(str, Enum):
    live = "live"
    error = ""


class Stream(BaseModel):
    id: str
    user_id: str
    user_login: str
    user_name: str
    game_id: str
    game_name: str
    type: StreamType
    title: str
    viewer_count: int
    started_at: str
    language: str
    thumbnail_url: str
    is_mature: bool = False
    tags: List[str] = []


class Pagination(BaseModel):
    cursor: Optional[str] = None


class StreamResponse(BaseModel):
    data: List[Stream]
    pagination: Pagination = Pagination()
