from datetime import datetime
from typing import Any

from sqlalchemy import String, Integer, BigInteger, Boolean, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from yuki.db.base import Base

SECURITY_PASSWORD_ONLY = "password_only"
SECURITY_PASSKEY_ENABLED = "passkey_enabled"


class WalletEnvelope(Base):
    """
    Client-encrypted wallet private key plus the metadata needed to unwrap it.

    Only ciphertext is stored here. Plaintext key material never reaches the
    server.
    """

    __tablename__ = "wallets"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False
    )

    address: Mapped[str] = mapped_column(String(42), index=True, nullable=False)
    chain_id: Mapped[int] = mapped_column(Integer, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Encrypted private key (base64)
    cipher_priv: Mapped[str] = mapped_column(Text, nullable=False)
    iv_priv: Mapped[str] = mapped_column(String(64), nullable=False)

    kdf_salt: Mapped[str] = mapped_column(String(128), nullable=False)
    kdf_params: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    security_level: Mapped[str] = mapped_column(String(32), nullable=False, default=SECURITY_PASSWORD_ONLY)

    # Wrapped data-encryption keys, passkey_enabled only
    wrapped_dek_password: Mapped[str | None] = mapped_column(Text, nullable=True)
    iv_dek_password: Mapped[str | None] = mapped_column(String(64), nullable=True)
    wrapped_dek_passkey: Mapped[str | None] = mapped_column(Text, nullable=True)
    iv_dek_passkey: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Passkey credential
    passkey_credential_id: Mapped[str | None] = mapped_column(String(512), index=True, nullable=True)
    passkey_public_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    passkey_counter: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    passkey_transports: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    passkey_device_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    passkey_backed_up: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    passkey_created_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def passkey_enabled(self) -> bool:
        return self.security_level == SECURITY_PASSKEY_ENABLED and self.passkey_credential_id is not None

    @property
    def passkey_meta(self) -> dict[str, Any] | None:
        if not self.passkey_credential_id:
            return None
        return {
            "credential_id": self.passkey_credential_id,
            "public_key": self.passkey_public_key,
            "counter": self.passkey_counter,
            "transports": self.passkey_transports or [],
            "device_type": self.passkey_device_type,
            "backed_up": self.passkey_backed_up,
            "created_at": self.passkey_created_at,
        }
