"""
Handle Service
Validates, claims and resolves public handles (@username).
"""
import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from yuki.core.config import settings
from yuki.core.errors import HandleCooldown, HandleTaken, HandleUnavailable
from yuki.core.reserved import ReservedNames, get_reserved_names
from yuki.models.handle_redirect import HandleRedirect
from yuki.models.user import User

logger = logging.getLogger(__name__)

MIN_HANDLE_LENGTH = 3
MAX_HANDLE_LENGTH = 20
HANDLE_RE = re.compile(r"^[a-zA-Z0-9_]+$")

TOO_SHORT = "TOO_SHORT"
TOO_LONG = "TOO_LONG"
INVALID_CHARS = "INVALID_CHARS"
RESERVED = "RESERVED"
TAKEN = "TAKEN"

REASON_MESSAGES = {
    TOO_SHORT: f"Username must be at least {MIN_HANDLE_LENGTH} characters",
    TOO_LONG: f"Username must be at most {MAX_HANDLE_LENGTH} characters",
    INVALID_CHARS: "Username can only contain letters, numbers, and underscores",
    RESERVED: "This username is reserved",
    TAKEN: "Username is already taken",
}

PROFILE = "profile"
REDIRECT = "redirect"
NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Availability:
    available: bool
    reason: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def rejected(cls, reason: str) -> "Availability":
        return cls(available=False, reason=reason, message=REASON_MESSAGES[reason])


@dataclass(frozen=True)
class HandleResolution:
    status: str
    user: Optional[User] = None
    redirect_to: Optional[str] = None


def normalize_handle(value: str) -> str:
    """Ensure exactly one leading "@"."""
    return "@" + value.strip().lstrip("@")


def strip_at(value: str) -> str:
    value = value.strip()
    return value[1:] if value.startswith("@") else value


def check_handle_format(clean: str, reserved: ReservedNames) -> Optional[Availability]:
    """Format and reservation checks, in priority order. None means they all pass."""
    if len(clean) < MIN_HANDLE_LENGTH:
        return Availability.rejected(TOO_SHORT)
    if len(clean) > MAX_HANDLE_LENGTH:
        return Availability.rejected(TOO_LONG)
    if not HANDLE_RE.fullmatch(clean):
        return Availability.rejected(INVALID_CHARS)
    if reserved.is_reserved(clean):
        return Availability.rejected(RESERVED)
    return None


class HandleService:
    """Service for handle availability, claims and resolution."""

    def __init__(
        self,
        db: Session,
        reserved: ReservedNames | None = None,
        cooldown_days: int | None = None,
    ):
        self.db = db
        self.reserved = reserved or get_reserved_names()
        self.cooldown_days = settings.handle_change_cooldown_days if cooldown_days is None else cooldown_days

    def _active_user(self, key: str) -> Optional[User]:
        return self.db.scalar(select(User).where(User.username_normalized == key))

    def check_availability(self, candidate: str, exclude_user_id: int | None = None) -> Availability:
        """
        Check whether a handle can be claimed.

        Args:
            candidate: Handle with or without a leading "@"
            exclude_user_id: User whose own current handle should not count as taken

        Returns:
            Availability with the first failing reason, if any
        """
        clean = strip_at(candidate)
        rejected = check_handle_format(clean, self.reserved)
        if rejected:
            return rejected

        holder = self._active_user(clean.lower())
        if holder is not None and holder.id != exclude_user_id:
            return Availability.rejected(TAKEN)
        return Availability(available=True)

    def resolve_handle(self, value: str) -> HandleResolution:
        """
        Resolve a handle to a profile, a redirect to the current handle, or nothing.
        """
        key = normalize_handle(value)[1:].lower()
        if not key:
            return HandleResolution(NOT_FOUND)

        user = self._active_user(key)
        if user is not None:
            return HandleResolution(PROFILE, user=user)

        redirect = self.db.scalar(
            select(HandleRedirect).where(HandleRedirect.old_handle_normalized == key)
        )
        if redirect is not None:
            target = self.db.get(User, redirect.user_id)
            if target is not None and target.username:
                return HandleResolution(REDIRECT, user=target, redirect_to=target.username)

        return HandleResolution(NOT_FOUND)

    def cooldown_remaining(self, user: User, now: datetime | None = None) -> int:
        """Days left before the user may change handle again (0 when allowed)."""
        if not user.username or not user.username_last_changed or self.cooldown_days <= 0:
            return 0
        now = now or datetime.utcnow()
        elapsed_days = (now - user.username_last_changed).total_seconds() / 86400
        if elapsed_days >= self.cooldown_days:
            return 0
        return math.ceil(self.cooldown_days - elapsed_days)

    def claim_handle(self, user: User, candidate: str) -> User:
        """
        Claim a handle for a user, keeping the old handle as a redirect.

        Raises:
            HandleCooldown: If the user renamed too recently
            HandleUnavailable: If the handle fails a format or reservation check
            HandleTaken: If another user holds the handle
        """
        clean = strip_at(candidate)
        new_key = clean.lower()
        if user.username_normalized == new_key:
            return user

        remaining = self.cooldown_remaining(user)
        if remaining > 0:
            raise HandleCooldown(self.cooldown_days, remaining)

        availability = self.check_availability(clean, exclude_user_id=user.id)
        if not availability.available:
            if availability.reason == TAKEN:
                raise HandleTaken()
            raise HandleUnavailable(availability.reason, availability.message)

        old_handle = user.username
        old_key = user.username_normalized

        # The claimed handle no longer redirects to its former owner
        self.db.execute(delete(HandleRedirect).where(HandleRedirect.old_handle_normalized == new_key))

        user.username = f"@{clean}"
        user.username_normalized = new_key
        user.username_last_changed = datetime.utcnow()

        if old_key:
            self.db.add(HandleRedirect(old_handle=old_handle, old_handle_normalized=old_key, user_id=user.id))

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HandleTaken()

        self.db.refresh(user)
        if old_handle:
            logger.info("User %s renamed %s -> %s", user.id, old_handle, user.username)
        else:
            logger.info("User %s claimed %s", user.id, user.username)
        return user
