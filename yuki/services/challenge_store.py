"""
Short-lived single-use secrets in Redis: SIWE nonces and WebAuthn challenges.
"""
from __future__ import annotations

import json
from typing import Any, Optional

from yuki.core.config import settings
from yuki.core.redis_client import r


def nonce_key(nonce: str) -> str:
    return f"siwe:nonce:{nonce}"


def put_nonce(nonce: str) -> None:
    # value = "1" just means "exists"
    r.setex(nonce_key(nonce), settings.siwe_nonce_ttl_seconds, "1")


def consume_nonce(nonce: str) -> bool:
    # GETDEL is atomic, so a nonce can only be consumed once
    return r.getdel(nonce_key(nonce)) is not None


def registration_key(user_id: int) -> str:
    return f"passkey:register:{user_id}"


def authentication_key(session_id: str) -> str:
    return f"passkey:auth:{session_id}"


def put_challenge(key: str, payload: dict[str, Any]) -> None:
    r.setex(key, settings.passkey_challenge_ttl_seconds, json.dumps(payload))


def get_challenge(key: str) -> Optional[dict[str, Any]]:
    raw = r.get(key)
    if not raw:
        return None
    return json.loads(raw)


def delete_challenge(key: str) -> bool:
    """True only for the caller that actually removed the challenge."""
    return r.delete(key) == 1
