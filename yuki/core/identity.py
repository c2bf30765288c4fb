"""
Identity verification for inbound requests.

An ``IdentityVerifier`` maps a request to an ``Identity`` or returns None.
Nothing here touches the database; ``yuki.core.deps`` turns an identity into a
``User`` row.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from starlette.requests import HTTPConnection

from yuki.core.addresses import is_valid_address
from yuki.core.config import settings
from yuki.core.security import decode_access_token

WALLET_HEADER = "x-wallet-address"


@dataclass(frozen=True)
class Identity:
    user_id: Optional[int] = None
    wallet_address: Optional[str] = None


class IdentityVerifier(Protocol):
    def identify(self, request: HTTPConnection) -> Optional[Identity]:
        ...


class SessionTokenVerifier:
    """Server-issued session token from the bearer header or the session cookie."""

    def __init__(self, cookie_name: str | None = None):
        self.cookie_name = cookie_name or settings.session_cookie_name

    def identify(self, request: HTTPConnection) -> Optional[Identity]:
        token = None
        auth = request.headers.get("authorization")
        if auth and auth.lower().startswith("bearer "):
            token = auth[7:].strip()
        if not token:
            token = request.cookies.get(self.cookie_name)
        if not token:
            return None

        subject = decode_access_token(token)
        if subject is None or not subject.isdigit():
            return None
        return Identity(user_id=int(subject))


class WalletHeaderVerifier:
    def identify(self, request: HTTPConnection) -> Optional[Identity]:
        address = request.headers.get(WALLET_HEADER)
        if not address or not is_valid_address(address):
            return None
        return Identity(wallet_address=address.lower())


class ChainedIdentityVerifier:
    """First verifier that recognises the request wins."""

    def __init__(self, verifiers: Sequence[IdentityVerifier]):
        self.verifiers = list(verifiers)

    def identify(self, request: HTTPConnection) -> Optional[Identity]:
        for verifier in self.verifiers:
            identity = verifier.identify(request)
            if identity is not None:
                return identity
        return None


def default_identity_verifier() -> IdentityVerifier:
    verifiers: list[IdentityVerifier] = [SessionTokenVerifier()]
    if settings.allow_wallet_header_auth:
        verifiers.append(WalletHeaderVerifier())
    return ChainedIdentityVerifier(verifiers)
