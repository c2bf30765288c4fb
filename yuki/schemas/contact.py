from datetime import datetime
from typing import Optional

from pydantic import Field

from yuki.schemas.base import CamelModel


class ContactCreate(CamelModel):
    username: str = Field(..., min_length=1, max_length=64)
    nickname: Optional[str] = Field(None, max_length=50)


class ContactOut(CamelModel):
    id: int
    user_id: int
    username: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    wallet_address: Optional[str] = None
    nickname: Optional[str] = None
    added_at: datetime


class ContactListResponse(CamelModel):
    contacts: list[ContactOut]


class ContactCreated(CamelModel):
    success: bool = True
    contact: ContactOut
