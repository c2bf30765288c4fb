"""
User Service
Handles lookups and profile updates for user records.
"""
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from yuki.core.addresses import is_valid_address
from yuki.core.errors import InvalidAddress
from yuki.models.user import User

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("display_name", "bio", "avatar_url", "banner_url", "is_private")


class UserService:
    """Service for user records."""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_wallet(self, wallet_address: str) -> Optional[User]:
        if not is_valid_address(wallet_address):
            return None
        stmt = select(User).where(User.wallet_address == wallet_address.lower())
        return self.db.scalar(stmt)

    def get_by_handle(self, handle: str) -> Optional[User]:
        """
        Get the user currently holding a handle.

        Args:
            handle: Handle with or without the leading "@"

        Returns:
            User if the handle is active, None otherwise
        """
        key = handle.strip().lstrip("@").lower()
        if not key:
            return None
        stmt = select(User).where(User.username_normalized == key)
        return self.db.scalar(stmt)

    def get_or_create_by_wallet(self, wallet_address: str) -> User:
        """
        Get the user for a wallet address, creating it on first sight.

        Raises:
            InvalidAddress: If the address is not a 20-byte hex address
        """
        if not is_valid_address(wallet_address):
            raise InvalidAddress()

        user = self.get_by_wallet(wallet_address)
        if user:
            return user

        user = User(wallet_address=wallet_address)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Created concurrently by another request
            self.db.rollback()
            user = self.get_by_wallet(wallet_address)
            if user is None:
                raise
            return user

        self.db.refresh(user)
        logger.info("Created user %s for wallet %s", user.id, user.wallet_address)
        return user

    def update_profile(self, user: User, updates: dict[str, Any]) -> User:
        """Apply profile field updates; unknown keys are ignored."""
        changed = False
        for key, value in updates.items():
            if key in PROFILE_FIELDS:
                setattr(user, key, value)
                changed = True

        if changed:
            user.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(user)
        return user
