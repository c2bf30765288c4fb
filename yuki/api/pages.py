"""
Top-level public profile page: GET /{handle}.

Mounted last so every other route wins.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from yuki.api.v1.profile import public_profile
from yuki.core.deps import get_db
from yuki.core.errors import NotFound
from yuki.schemas.profile import PublicProfile
from yuki.services import handles
from yuki.services.handles import HandleService, strip_at
from yuki.services.routes import RouteKind, classify_path

router = APIRouter()


@router.get("/{handle}", response_model=PublicProfile)
def profile_page(handle: str, db: Session = Depends(get_db)):
    if classify_path(f"/{handle}").kind is not RouteKind.PUBLIC_PROFILE:
        raise NotFound()

    resolution = HandleService(db).resolve_handle(handle)
    if resolution.status == handles.REDIRECT:
        return RedirectResponse(f"/{strip_at(resolution.redirect_to)}", status_code=301)
    if resolution.status == handles.NOT_FOUND:
        raise NotFound("User not found")
    return public_profile(resolution.user)
