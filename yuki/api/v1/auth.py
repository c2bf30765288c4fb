from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from yuki.core.config import settings
from yuki.core.deps import get_db, get_current_user
from yuki.core.security import create_access_token
from yuki.models.user import User
from yuki.schemas.auth import TokenOut, UserOut, UsernameRequest, UsernameResponse
from yuki.schemas.siwe import SiweLoginRequest, SiweNonceResponse
from yuki.services.challenge_store import put_nonce
from yuki.services.handles import HandleService
from yuki.services.siwe import generate_nonce, verify_siwe_login
from yuki.services.users import UserService
from yuki.services.wallet_store import WalletEnvelopeStore

router = APIRouter()


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


def user_out(user: User, db: Session) -> UserOut:
    wallet = WalletEnvelopeStore(db).find(user.id)
    return UserOut(
        id=user.id,
        wallet_address=user.wallet_address,
        username=user.username,
        has_wallet=wallet is not None,
        security_level=wallet.security_level if wallet else None,
        created_at=user.created_at,
    )


@router.get("/auth/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return user_out(current_user, db)


@router.post("/auth/logout")
def logout(response: Response):
    response.delete_cookie(settings.session_cookie_name)
    return {"success": True}


@router.post("/auth/username", response_model=UsernameResponse)
def set_username(
    payload: UsernameRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = HandleService(db).claim_handle(current_user, payload.username)
    return UsernameResponse(username=user.username)


# -----------------------------
# SIWE (EIP-4361)
# -----------------------------

@router.get("/auth/siwe/nonce", response_model=SiweNonceResponse)
def siwe_nonce():
    nonce = generate_nonce()
    put_nonce(nonce)
    return SiweNonceResponse(nonce=nonce)


@router.post("/auth/siwe/login", response_model=TokenOut)
def siwe_login(payload: SiweLoginRequest, response: Response, db: Session = Depends(get_db)):
    address = verify_siwe_login(payload.message, payload.signature)
    user = UserService(db).get_or_create_by_wallet(address)

    token = create_access_token(subject=str(user.id))
    set_session_cookie(response, token)
    return TokenOut(access_token=token)
