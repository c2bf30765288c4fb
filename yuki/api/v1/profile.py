from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from yuki.core.deps import get_blob_store, get_current_user, get_db, get_optional_user
from yuki.core.errors import NotFound
from yuki.models.user import User
from yuki.schemas.profile import (
    FullProfile,
    HandleCheckRequest,
    HandleCheckResponse,
    ProfileUpdate,
    ProfileUpdateResponse,
    PublicProfile,
    UploadResponse,
)
from yuki.services import handles
from yuki.services.handles import HandleService, normalize_handle, strip_at
from yuki.services.uploads import BlobStore, validate_upload
from yuki.services.users import UserService

router = APIRouter()


def public_profile(user: User) -> PublicProfile:
    return PublicProfile(
        handle=user.username or "",
        display_name=user.display_name,
        bio=user.bio,
        avatar_url=user.avatar_url,
        banner_url=user.banner_url,
        is_private=bool(user.is_private),
        created_at=user.created_at,
    )


def full_profile(user: User, handle_service: HandleService) -> FullProfile:
    remaining = handle_service.cooldown_remaining(user)
    return FullProfile(
        **public_profile(user).model_dump(),
        id=user.id,
        wallet_address=user.wallet_address,
        username_last_changed=user.username_last_changed,
        can_change_username=remaining == 0,
        days_until_username_change=remaining,
    )


@router.get("/profile/me", response_model=FullProfile)
def get_my_profile(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return full_profile(current_user, HandleService(db))


@router.patch("/profile/me", response_model=ProfileUpdateResponse)
def update_my_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    handle_service = HandleService(db)
    updates = payload.model_dump(exclude_unset=True)

    username = updates.pop("username", None)
    if username is not None:
        current_user = handle_service.claim_handle(current_user, username)

    if "is_private" in updates and updates["is_private"] is None:
        del updates["is_private"]
    for key in ("avatar_url", "banner_url"):
        if updates.get(key) is not None:
            updates[key] = str(updates[key])

    user = UserService(db).update_profile(current_user, updates)
    return ProfileUpdateResponse(profile=full_profile(user, handle_service))


@router.post("/profile/handle-check", response_model=HandleCheckResponse)
def handle_check(
    payload: HandleCheckRequest,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    availability = HandleService(db).check_availability(
        payload.handle,
        exclude_user_id=current_user.id if current_user else None,
    )
    return HandleCheckResponse(
        available=availability.available,
        handle=normalize_handle(payload.handle),
        reason=availability.reason,
        message=availability.message,
    )


@router.post("/profile/upload", response_model=UploadResponse)
def upload_profile_image(
    file: UploadFile = File(...),
    type: str = Form(...),
    current_user: User = Depends(get_current_user),
    blob_store: BlobStore = Depends(get_blob_store),
):
    content = file.file.read()
    validate_upload(type, file.content_type, len(content))

    name = f"{type}-{current_user.id}-{file.filename or 'image'}"
    stored = blob_store.put(name, content, file.content_type)
    return UploadResponse(url=stored.url, key=stored.key)


@router.get("/profile/{handle}", response_model=PublicProfile, name="get_public_profile")
def get_public_profile(handle: str, request: Request, db: Session = Depends(get_db)):
    resolution = HandleService(db).resolve_handle(handle)
    if resolution.status == handles.REDIRECT:
        target = request.url_for("get_public_profile", handle=strip_at(resolution.redirect_to))
        return RedirectResponse(str(target), status_code=308)
    if resolution.status == handles.NOT_FOUND:
        raise NotFound("User not found")
    return public_profile(resolution.user)
