from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from yuki.schemas.base import CamelModel


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserOut(CamelModel):
    id: int
    wallet_address: Optional[str] = None
    username: Optional[str] = None
    has_wallet: bool = False
    security_level: Optional[str] = None
    created_at: datetime


class UsernameRequest(CamelModel):
    username: str = Field(..., min_length=1, max_length=64)


class UsernameResponse(CamelModel):
    success: bool = True
    username: str
