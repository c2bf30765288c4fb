from typing import Any, Optional

from pydantic import Field

from yuki.schemas.base import CamelModel
from yuki.schemas.wallet import WalletUpgradeData


class PasskeyRegisterVerifyRequest(CamelModel):
    # Raw WebAuthn RegistrationResponseJSON from the browser
    credential: dict[str, Any]
    wallet_upgrade_data: WalletUpgradeData


class PasskeyRegisterVerifyResponse(CamelModel):
    success: bool = True
    verified: bool = True
    credential_id: str


class PasskeyAuthenticateRequest(CamelModel):
    """Handle (with or without "@") or wallet address of the account."""

    identifier: str = Field(..., min_length=1, max_length=64)


class PasskeyAuthenticatedUser(CamelModel):
    id: int
    username: Optional[str] = None
    has_wallet: bool = True
    wallet_address: str
    security_level: str


class PasskeyAuthenticateVerifyResponse(CamelModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    user: PasskeyAuthenticatedUser
