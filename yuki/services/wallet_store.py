"""
Wallet Envelope Store
Persists client-encrypted wallet envelopes, one per user.

The store never decrypts, derives or inspects key material; it only validates
the public address and chain id and keeps the passkey signature counter
moving forward.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from yuki.core.addresses import is_valid_address
from yuki.core.config import settings
from yuki.core.errors import Conflict, InvalidAddress, NotFound, ReplaySuspected, UnsupportedChain
from yuki.models.wallet import SECURITY_PASSKEY_ENABLED, SECURITY_PASSWORD_ONLY, WalletEnvelope
from yuki.schemas.wallet import EncryptedWalletIn, PasskeyCredentialIn, WalletUpgradeData

logger = logging.getLogger(__name__)


class WalletEnvelopeStore:
    """Service for wallet envelope records."""

    def __init__(self, db: Session, supported_chain_id: int | None = None):
        self.db = db
        self.supported_chain_id = settings.supported_chain_id if supported_chain_id is None else supported_chain_id

    def find(self, user_id: int) -> Optional[WalletEnvelope]:
        return self.db.scalar(select(WalletEnvelope).where(WalletEnvelope.user_id == user_id))

    def get(self, user_id: int) -> WalletEnvelope:
        """
        Get a user's envelope exactly as stored.

        Raises:
            NotFound: If the user has no envelope
        """
        envelope = self.find(user_id)
        if envelope is None:
            raise NotFound("No wallet found", code="WALLET_NOT_FOUND", details={"hasWallet": False})
        return envelope

    def create(self, user_id: int, envelope: EncryptedWalletIn) -> WalletEnvelope:
        """
        Store a new envelope for a user.

        Args:
            user_id: Owner of the envelope
            envelope: Ciphertext and key-derivation metadata from the client

        Returns:
            The stored envelope with its server-assigned id

        Raises:
            Conflict: If the user already has an envelope
            InvalidAddress: If the address is not a 20-byte hex address
            UnsupportedChain: If the chain id is not the supported chain
        """
        if self.find(user_id) is not None:
            raise Conflict("Wallet already exists", code="WALLET_EXISTS")
        if not is_valid_address(envelope.address):
            raise InvalidAddress()
        if envelope.chain_id != self.supported_chain_id:
            raise UnsupportedChain(f"Only chain id {self.supported_chain_id} is supported")

        wallet = WalletEnvelope(
            user_id=user_id,
            address=envelope.address,
            chain_id=envelope.chain_id,
            version=envelope.version,
            cipher_priv=envelope.cipher_priv,
            iv_priv=envelope.iv_priv,
            kdf_salt=envelope.kdf_salt,
            kdf_params=envelope.kdf_params,
            security_level=SECURITY_PASSWORD_ONLY,
        )
        self.db.add(wallet)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost the race against a concurrent create for the same user
            self.db.rollback()
            raise Conflict("Wallet already exists", code="WALLET_EXISTS")

        self.db.refresh(wallet)
        logger.info("Created wallet %s for user %s on chain %s", wallet.id, user_id, wallet.chain_id)
        return wallet

    def upgrade_to_passkey(
        self,
        user_id: int,
        upgrade: WalletUpgradeData,
        credential: PasskeyCredentialIn,
    ) -> WalletEnvelope:
        """
        Switch an envelope to passkey unlocking.

        The client re-encrypts the private key under a fresh DEK and sends that
        DEK wrapped twice, once per unlock method.

        Raises:
            NotFound: If the user has no envelope
            Conflict: If passkey unlocking is already enabled
        """
        wallet = self.get(user_id)
        if wallet.security_level == SECURITY_PASSKEY_ENABLED:
            raise Conflict("Passkey already enabled", code="PASSKEY_EXISTS")

        wallet.cipher_priv = upgrade.cipher_priv
        wallet.iv_priv = upgrade.iv_priv
        wallet.wrapped_dek_password = upgrade.wrapped_dek_password
        wallet.iv_dek_password = upgrade.iv_dek_password
        wallet.wrapped_dek_passkey = upgrade.wrapped_dek_passkey
        wallet.iv_dek_passkey = upgrade.iv_dek_passkey

        wallet.passkey_credential_id = credential.credential_id
        wallet.passkey_public_key = credential.public_key
        wallet.passkey_counter = credential.counter
        wallet.passkey_transports = list(credential.transports)
        wallet.passkey_device_type = credential.device_type
        wallet.passkey_backed_up = credential.backed_up
        wallet.passkey_created_at = datetime.utcnow()
        wallet.security_level = SECURITY_PASSKEY_ENABLED

        self.db.commit()
        self.db.refresh(wallet)
        logger.info("Wallet %s for user %s upgraded to passkey", wallet.id, user_id)
        return wallet

    def update_passkey_counter(self, user_id: int, new_counter: int, commit: bool = True) -> None:
        """
        Advance the stored signature counter.

        The comparison and the write are one conditional UPDATE, so two
        concurrent attempts carrying the same counter cannot both succeed.
        With commit=False the caller owns the transaction and must commit
        or roll back.

        Raises:
            ReplaySuspected: If new_counter is not greater than the stored counter
        """
        stmt = (
            update(WalletEnvelope)
            .where(WalletEnvelope.user_id == user_id)
            .where(WalletEnvelope.passkey_counter < new_counter)
            .values(passkey_counter=new_counter, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            self.db.rollback()
            logger.warning("Passkey counter for user %s did not advance to %s", user_id, new_counter)
            raise ReplaySuspected()

        if commit:
            self.db.commit()
        # Identity map still holds the old counter
        self.db.expire_all()
