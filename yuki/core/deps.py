from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from yuki.core.errors import Unauthenticated
from yuki.core.identity import IdentityVerifier, default_identity_verifier
from yuki.db.session import get_db
from yuki.models.user import User
from yuki.services.onramp import QuoteProvider, default_quote_providers
from yuki.services.uploads import BlobStore, UploadThingBlobStore
from yuki.services.users import UserService

__all__ = [
    "get_db",
    "get_identity_verifier",
    "get_current_user",
    "get_optional_user",
    "get_blob_store",
    "get_quote_providers",
]


def get_identity_verifier() -> IdentityVerifier:
    return default_identity_verifier()


def get_optional_user(
    request: Request,
    db: Session = Depends(get_db),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> Optional[User]:
    """
    Map the request's identity to a user row.

    Session tokens name an existing user; a wallet address is get-or-created.
    """
    identity = verifier.identify(request)
    if identity is None:
        return None

    users = UserService(db)
    if identity.user_id is not None:
        return users.get_user(identity.user_id)
    return users.get_or_create_by_wallet(identity.wallet_address)


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise Unauthenticated()
    return user


def get_blob_store() -> BlobStore:
    return UploadThingBlobStore()


def get_quote_providers() -> list[QuoteProvider]:
    return default_quote_providers()
