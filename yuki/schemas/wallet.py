"""
Wallet envelope schemas.

Every field is ciphertext or key-derivation metadata produced client-side.
"""
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field

from yuki.schemas.base import CamelModel

SecurityLevel = Literal["password_only", "passkey_enabled"]


class EncryptedWalletIn(CamelModel):
    address: str
    chain_id: int
    version: int = 1
    cipher_priv: str = Field(..., min_length=1)
    iv_priv: str = Field(..., min_length=1)
    kdf_salt: str = Field(..., min_length=1)
    kdf_params: dict[str, Any]


class CreateWalletRequest(CamelModel):
    encrypted_wallet: EncryptedWalletIn


class WalletUpgradeData(CamelModel):
    """Re-encrypted key and both wrapped copies of the data-encryption key."""

    cipher_priv: str = Field(..., min_length=1)
    iv_priv: str = Field(..., min_length=1)
    wrapped_dek_password: str = Field(..., min_length=1)
    iv_dek_password: str = Field(..., min_length=1)
    wrapped_dek_passkey: str = Field(..., min_length=1)
    iv_dek_passkey: str = Field(..., min_length=1)


class PasskeyCredentialIn(CamelModel):
    credential_id: str
    public_key: str
    counter: int = Field(0, ge=0)
    transports: list[str] = []
    device_type: Optional[str] = None
    backed_up: bool = False


class PasskeyMeta(CamelModel):
    credential_id: str
    public_key: Optional[str] = None
    counter: int
    transports: list[str] = []
    device_type: Optional[str] = None
    backed_up: bool = False
    created_at: Optional[datetime] = None


class EncryptedWalletOut(CamelModel):
    address: str
    chain_id: int
    version: int
    cipher_priv: str
    iv_priv: str
    kdf_salt: str
    kdf_params: dict[str, Any]
    security_level: SecurityLevel
    passkey_meta: Optional[PasskeyMeta] = None
    wrapped_dek_password: Optional[str] = None
    iv_dek_password: Optional[str] = None
    wrapped_dek_passkey: Optional[str] = None
    iv_dek_passkey: Optional[str] = None


class WalletResponse(CamelModel):
    has_wallet: bool = True
    wallet: EncryptedWalletOut


class WalletSummary(CamelModel):
    id: int
    address: str
    chain_id: int
    security_level: SecurityLevel


class CreateWalletResponse(CamelModel):
    success: bool = True
    wallet: WalletSummary
