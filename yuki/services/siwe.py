"""
Sign-In-With-Ethereum (EIP-4361) message parsing and verification.
"""
from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from yuki.core.config import settings
from yuki.core.errors import Unauthenticated, UnsupportedChain, ValidationError
from yuki.services.challenge_store import consume_nonce

logger = logging.getLogger(__name__)

# Message format:
# <domain> wants you to sign in with your Ethereum account:
# <address>
#
# <statement?>
#
# URI: <uri>
# Version: 1
# Chain ID: <chain_id>
# Nonce: <nonce>
# Issued At: <iso8601>
#
SIWE_RE = re.compile(
    r"^(?P<domain>.+?) wants you to sign in with your Ethereum account:\n"
    r"(?P<address>0x[a-fA-F0-9]{40})\n\n"
    r"(?P<statement>.*?\n\n)?"
    r"URI: (?P<uri>.+)\n"
    r"Version: (?P<version>\d+)\n"
    r"Chain ID: (?P<chain_id>\d+)\n"
    r"Nonce: (?P<nonce>[A-Za-z0-9]{8,})\n"
    r"Issued At: (?P<issued_at>.+)$",
    re.DOTALL,
)


@dataclass
class SiweMessage:
    domain: str
    address: str
    uri: str
    version: int
    chain_id: int
    nonce: str
    issued_at: str
    statement: Optional[str] = None


def generate_nonce() -> str:
    # EIP-4361 nonces are alphanumeric, at least 8 chars
    return secrets.token_hex(8)


def parse_siwe_message(message: str) -> SiweMessage:
    m = SIWE_RE.match(message.strip())
    if not m:
        raise ValueError("Invalid SIWE message format")

    statement = m.group("statement")
    if statement:
        statement = statement.strip()

    return SiweMessage(
        domain=m.group("domain").strip(),
        address=Web3.to_checksum_address(m.group("address")),
        uri=m.group("uri").strip(),
        version=int(m.group("version")),
        chain_id=int(m.group("chain_id")),
        nonce=m.group("nonce").strip(),
        issued_at=m.group("issued_at").strip(),
        statement=statement,
    )


def recover_address(message: str, signature: str) -> str:
    # encode_defunct(text=...) matches personal_sign (EIP-191)
    msg = encode_defunct(text=message)
    recovered = Account.recover_message(msg, signature=signature)
    return Web3.to_checksum_address(recovered)


def verify_siwe_login(message: str, signature: str) -> str:
    """
    Verify a signed SIWE message and return the signing wallet address.

    Args:
        message: The EIP-4361 message the wallet signed
        signature: Hex signature over the message

    Returns:
        Lowercase wallet address

    Raises:
        ValidationError: If the message cannot be parsed
        Unauthenticated: If nonce, domain, URI or signature do not check out
        UnsupportedChain: If the message names another chain
    """
    try:
        msg = parse_siwe_message(message)
    except ValueError:
        raise ValidationError("Invalid SIWE message", code="INVALID_SIWE_MESSAGE")

    # Nonce must exist and be unused
    if not consume_nonce(msg.nonce):
        raise Unauthenticated("Invalid or expired nonce", code="INVALID_NONCE")

    if msg.domain != settings.app_domain:
        raise Unauthenticated("Invalid SIWE domain", code="INVALID_DOMAIN")

    if not msg.uri.startswith(settings.app_origin):
        raise Unauthenticated("Invalid SIWE URI", code="INVALID_URI")

    if msg.chain_id != settings.supported_chain_id:
        raise UnsupportedChain(f"Only chain id {settings.supported_chain_id} is supported")

    try:
        recovered = recover_address(message, signature)
    except Exception as e:
        # eth_keys raises its own BadSignature alongside binascii and ValueError
        logger.info("SIWE signature recovery failed: %s", e)
        raise Unauthenticated("Invalid signature", code="INVALID_SIGNATURE")

    if recovered != msg.address:
        raise Unauthenticated("Invalid signature", code="INVALID_SIGNATURE")

    return msg.address.lower()
