from typing import Any, Optional

from fastapi import APIRouter, Body, Cookie, Depends, Header, Response
from sqlalchemy.orm import Session

from yuki.api.v1.auth import set_session_cookie
from yuki.core.config import settings
from yuki.core.deps import get_db, get_current_user
from yuki.core.security import create_access_token
from yuki.models.user import User
from yuki.schemas.passkey import (
    PasskeyAuthenticateRequest,
    PasskeyAuthenticatedUser,
    PasskeyAuthenticateVerifyResponse,
    PasskeyRegisterVerifyRequest,
    PasskeyRegisterVerifyResponse,
)
from yuki.services.passkey import PasskeyService

router = APIRouter()

SESSION_HEADER = "x-passkey-session"


@router.post("/passkey/register")
def passkey_register_options(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return PasskeyService(db).begin_registration(current_user)


@router.post("/passkey/register/verify", response_model=PasskeyRegisterVerifyResponse)
def passkey_register_verify(
    payload: PasskeyRegisterVerifyRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    wallet = PasskeyService(db).finish_registration(current_user, payload.credential, payload.wallet_upgrade_data)
    return PasskeyRegisterVerifyResponse(credential_id=wallet.passkey_credential_id)


@router.post("/passkey/authenticate")
def passkey_authenticate_options(
    payload: PasskeyAuthenticateRequest,
    response: Response,
    db: Session = Depends(get_db),
):
    session_id, options = PasskeyService(db).begin_authentication(payload.identifier)
    response.set_cookie(
        settings.passkey_cookie_name,
        session_id,
        max_age=settings.passkey_challenge_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="strict",
    )
    return {**options, "sessionId": session_id}


@router.post("/passkey/authenticate/verify", response_model=PasskeyAuthenticateVerifyResponse)
def passkey_authenticate_verify(
    response: Response,
    credential: dict[str, Any] = Body(...),
    passkey_session: Optional[str] = Cookie(None, alias=settings.passkey_cookie_name),
    session_header: Optional[str] = Header(None, alias=SESSION_HEADER),
    db: Session = Depends(get_db),
):
    login = PasskeyService(db).finish_authentication(passkey_session or session_header, credential)

    token = create_access_token(subject=str(login.user.id))
    set_session_cookie(response, token)
    response.delete_cookie(settings.passkey_cookie_name)
    return PasskeyAuthenticateVerifyResponse(
        access_token=token,
        user=PasskeyAuthenticatedUser(
            id=login.user.id,
            username=login.user.username,
            wallet_address=login.wallet.address,
            security_level=login.wallet.security_level,
        ),
    )
