from datetime import datetime
from typing import Optional

from pydantic import Field, HttpUrl

from yuki.schemas.base import CamelModel


class PublicProfile(CamelModel):
    handle: str
    display_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    banner_url: Optional[str] = None
    is_private: bool = False
    created_at: datetime


class FullProfile(PublicProfile):
    id: int
    wallet_address: Optional[str] = None
    username_last_changed: Optional[datetime] = None
    can_change_username: bool = True
    days_until_username_change: int = 0


class ProfileUpdate(CamelModel):
    """
    Partial profile update. Fields left out of the request body are untouched;
    explicit nulls clear the field.
    """

    display_name: Optional[str] = Field(None, max_length=50)
    bio: Optional[str] = Field(None, max_length=160)
    avatar_url: Optional[HttpUrl] = None
    banner_url: Optional[HttpUrl] = None
    is_private: Optional[bool] = None
    # Format and reservation checks run in HandleService so callers get the reason code
    username: Optional[str] = Field(None, max_length=64)


class ProfileUpdateResponse(CamelModel):
    success: bool = True
    profile: FullProfile


class HandleCheckRequest(CamelModel):
    handle: str = Field(..., max_length=64)


class HandleCheckResponse(CamelModel):
    available: bool
    handle: str
    reason: Optional[str] = None
    message: Optional[str] = None


class UploadResponse(CamelModel):
    success: bool = True
    url: str
    key: Optional[str] = None


class ResolveUserRequest(CamelModel):
    username: str = Field(..., min_length=1, max_length=64)


class ResolvedUser(CamelModel):
    exists: bool = True
    has_wallet: bool = True
    wallet_address: str
    username: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


class UserSummary(CamelModel):
    username: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
