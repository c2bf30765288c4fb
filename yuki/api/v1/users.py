from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from yuki.core.deps import get_db
from yuki.core.errors import NotFound
from yuki.schemas.profile import ResolvedUser, ResolveUserRequest, UserSummary
from yuki.services.users import UserService

router = APIRouter()


@router.post("/user/resolve", response_model=ResolvedUser)
def resolve_user(payload: ResolveUserRequest, db: Session = Depends(get_db)):
    """Resolve a handle to the wallet address funds should be sent to."""
    user = UserService(db).get_by_handle(payload.username)
    if user is None:
        raise NotFound("User not found", details={"exists": False})
    return ResolvedUser(
        wallet_address=user.wallet_address,
        username=user.username,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
    )


@router.get("/user/by-address", response_model=UserSummary)
def user_by_address(address: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    user = UserService(db).get_by_wallet(address)
    if user is None:
        raise NotFound("User not found")
    return UserSummary.model_validate(user)
