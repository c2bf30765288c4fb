"""
Passkey Service
WebAuthn registration and authentication for wallet unlocking.

An authentication attempt moves through: challenge issued (stored in Redis
under a random session id), assertion received, signature verified against the
stored public key, counter advanced. An attempt that fails at any step leaves
the envelope and the challenge as they were.
"""
import json
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session
from webauthn import (
    generate_authentication_options,
    generate_registration_options,
    options_to_json,
    verify_authentication_response,
    verify_registration_response,
)
from webauthn.helpers import base64url_to_bytes, bytes_to_base64url
from webauthn.helpers.exceptions import WebAuthnException
from webauthn.helpers.structs import (
    AttestationConveyancePreference,
    AuthenticatorAttachment,
    AuthenticatorSelectionCriteria,
    AuthenticatorTransport,
    PublicKeyCredentialDescriptor,
    ResidentKeyRequirement,
    UserVerificationRequirement,
)

from yuki.core.addresses import is_valid_address
from yuki.core.config import settings
from yuki.core.errors import Conflict, NotFound, ReplaySuspected, ValidationError, VerificationFailed
from yuki.models.user import User
from yuki.models.wallet import WalletEnvelope
from yuki.schemas.wallet import PasskeyCredentialIn, WalletUpgradeData
from yuki.services import challenge_store
from yuki.services.users import UserService
from yuki.services.wallet_store import WalletEnvelopeStore

logger = logging.getLogger(__name__)

KNOWN_TRANSPORTS = {t.value for t in AuthenticatorTransport}


@dataclass(frozen=True)
class PasskeyLogin:
    user: User
    wallet: WalletEnvelope


def _transports(values: Optional[list[str]]) -> list[AuthenticatorTransport]:
    return [AuthenticatorTransport(v) for v in (values or []) if v in KNOWN_TRANSPORTS]


def options_to_json_dict(options) -> dict[str, Any]:
    """Serialize WebAuthn options the way browsers expect them."""
    return json.loads(options_to_json(options))


class PasskeyService:
    """Service for WebAuthn ceremonies against the wallet envelope store."""

    def __init__(
        self,
        db: Session,
        rp_id: str | None = None,
        rp_name: str | None = None,
        origin: str | None = None,
        allow_zero_counter: bool | None = None,
    ):
        self.db = db
        self.wallets = WalletEnvelopeStore(db)
        self.users = UserService(db)
        self.rp_id = rp_id or settings.rp_id
        self.rp_name = rp_name or settings.rp_name
        self.origin = origin or settings.rp_origin
        self.allow_zero_counter = (
            settings.passkey_allow_zero_counter if allow_zero_counter is None else allow_zero_counter
        )

    # Registration

    def begin_registration(self, user: User) -> dict[str, Any]:
        """
        Issue WebAuthn creation options for a user who already has a wallet.

        Raises:
            NotFound: If the user has no wallet to upgrade
            Conflict: If a passkey is already registered
        """
        wallet = self.wallets.get(user.id)
        if wallet.passkey_enabled:
            raise Conflict("Passkey already enabled", code="PASSKEY_EXISTS")

        options = generate_registration_options(
            rp_id=self.rp_id,
            rp_name=self.rp_name,
            user_id=str(user.id).encode(),
            user_name=user.username or user.wallet_address or str(user.id),
            user_display_name=user.display_name or user.username or "Yuki User",
            attestation=AttestationConveyancePreference.NONE,
            authenticator_selection=AuthenticatorSelectionCriteria(
                authenticator_attachment=AuthenticatorAttachment.PLATFORM,
                resident_key=ResidentKeyRequirement.PREFERRED,
                user_verification=UserVerificationRequirement.PREFERRED,
            ),
            timeout=settings.passkey_timeout_ms,
        )
        challenge_store.put_challenge(
            challenge_store.registration_key(user.id),
            {"challenge": bytes_to_base64url(options.challenge)},
        )
        return options_to_json_dict(options)

    def finish_registration(
        self,
        user: User,
        credential: dict[str, Any],
        upgrade: WalletUpgradeData,
    ) -> WalletEnvelope:
        """
        Verify an attestation and switch the user's wallet to passkey unlocking.

        Raises:
            ValidationError: If no registration challenge is pending
            VerificationFailed: If origin, RP id or challenge do not match
            ReplaySuspected: If the challenge was already used
        """
        key = challenge_store.registration_key(user.id)
        state = challenge_store.get_challenge(key)
        if state is None:
            raise ValidationError("No registration challenge found", code="NO_CHALLENGE")

        try:
            verified = verify_registration_response(
                credential=credential,
                expected_challenge=base64url_to_bytes(state["challenge"]),
                expected_origin=self.origin,
                expected_rp_id=self.rp_id,
            )
        except WebAuthnException as e:
            logger.warning("Passkey registration rejected for user %s: %s", user.id, e)
            raise VerificationFailed()

        if not challenge_store.delete_challenge(key):
            raise ReplaySuspected("Registration challenge already used")

        passkey = PasskeyCredentialIn(
            credential_id=bytes_to_base64url(verified.credential_id),
            public_key=bytes_to_base64url(verified.credential_public_key),
            counter=verified.sign_count,
            transports=(credential.get("response") or {}).get("transports") or [],
            device_type=verified.credential_device_type.value,
            backed_up=verified.credential_backed_up,
        )
        return self.wallets.upgrade_to_passkey(user.id, upgrade, passkey)

    # Authentication

    def _find_user(self, identifier: str) -> Optional[User]:
        if is_valid_address(identifier):
            return self.users.get_by_wallet(identifier)
        return self.users.get_by_handle(identifier)

    def begin_authentication(self, identifier: str) -> tuple[str, dict[str, Any]]:
        """
        Issue WebAuthn request options for the account's registered passkey.

        Args:
            identifier: Handle or wallet address

        Returns:
            (session_id, options). The session id keys the stored challenge.

        Raises:
            NotFound: If no such user exists
            ValidationError: If the account has no passkey
        """
        user = self._find_user(identifier)
        if user is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")

        wallet = self.wallets.find(user.id)
        if wallet is None or not wallet.passkey_enabled:
            raise ValidationError("Passkey not enabled for this account", code="PASSKEY_NOT_ENABLED")

        options = generate_authentication_options(
            rp_id=self.rp_id,
            timeout=settings.passkey_timeout_ms,
            allow_credentials=[
                PublicKeyCredentialDescriptor(
                    id=base64url_to_bytes(wallet.passkey_credential_id),
                    transports=_transports(wallet.passkey_transports),
                )
            ],
            user_verification=UserVerificationRequirement.PREFERRED,
        )

        session_id = secrets.token_urlsafe(32)
        challenge_store.put_challenge(
            challenge_store.authentication_key(session_id),
            {"challenge": bytes_to_base64url(options.challenge), "user_id": user.id},
        )
        return session_id, options_to_json_dict(options)

    def finish_authentication(self, session_id: Optional[str], credential: dict[str, Any]) -> PasskeyLogin:
        """
        Verify an assertion and advance the signature counter.

        Raises:
            ValidationError: If no authentication challenge is pending
            VerificationFailed: If signature, origin, RP id or credential do not match
            ReplaySuspected: If the counter did not advance or the challenge was already used
        """
        if not session_id:
            raise ValidationError("No authentication challenge found", code="NO_CHALLENGE")
        key = challenge_store.authentication_key(session_id)
        state = challenge_store.get_challenge(key)
        if state is None:
            raise ValidationError("No authentication challenge found", code="NO_CHALLENGE")

        user_id = state["user_id"]
        wallet = self.wallets.find(user_id)
        if wallet is None or not wallet.passkey_enabled:
            raise VerificationFailed("Passkey not found")

        if credential.get("id") != wallet.passkey_credential_id:
            logger.warning("Passkey assertion for user %s used an unknown credential", user_id)
            raise VerificationFailed("Unknown credential")

        try:
            verified = verify_authentication_response(
                credential=credential,
                expected_challenge=base64url_to_bytes(state["challenge"]),
                expected_rp_id=self.rp_id,
                expected_origin=self.origin,
                credential_public_key=base64url_to_bytes(wallet.passkey_public_key),
                # Counter monotonicity is enforced by the store's conditional update
                credential_current_sign_count=0,
            )
        except WebAuthnException as e:
            logger.warning("Passkey assertion rejected for user %s: %s", user_id, e)
            raise VerificationFailed()

        new_counter = verified.new_sign_count
        if not (self.allow_zero_counter and new_counter == 0 and wallet.passkey_counter == 0):
            self.wallets.update_passkey_counter(user_id, new_counter, commit=False)

        # The counter write stays uncommitted until this attempt owns the challenge
        if not challenge_store.delete_challenge(key):
            self.db.rollback()
            logger.warning("Authentication challenge for user %s was consumed concurrently", user_id)
            raise ReplaySuspected("Authentication challenge already used")
        self.db.commit()

        user = self.users.get_user(user_id)
        if user is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        logger.info("Passkey authentication succeeded for user %s", user_id)
        return PasskeyLogin(user=user, wallet=self.wallets.get(user_id))
