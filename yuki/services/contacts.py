"""
Contact Service
Manages a user's saved contacts (owner -> contact, with optional nickname).
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from yuki.core.errors import Conflict, NotFound, ValidationError
from yuki.models.contact import Contact
from yuki.models.user import User
from yuki.services.users import UserService

logger = logging.getLogger(__name__)


class ContactService:
    """Service for managing contacts."""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserService(db)

    def list_contacts(self, owner: User) -> list[Contact]:
        """
        Get a user's contacts, newest first.
        """
        stmt = (
            select(Contact)
            .where(Contact.owner_user_id == owner.id)
            .order_by(Contact.created_at.desc(), Contact.id.desc())
        )
        return list(self.db.scalars(stmt).unique())

    def add_contact(self, owner: User, handle: str, nickname: Optional[str] = None) -> Contact:
        """
        Add another user as a contact by handle.

        Args:
            owner: User saving the contact
            handle: Contact's handle, with or without the leading "@"
            nickname: Optional private label

        Returns:
            Created Contact

        Raises:
            NotFound: If no user holds the handle
            ValidationError: If the owner tries to add themselves
            Conflict: If the contact is already saved
        """
        target = self.users.get_by_handle(handle)
        if target is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        if target.id == owner.id:
            raise ValidationError("Cannot add yourself as a contact", code="CANNOT_ADD_SELF")

        contact = Contact(owner_user_id=owner.id, contact_user_id=target.id, nickname=nickname)
        self.db.add(contact)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("Contact already exists", code="CONTACT_EXISTS")

        self.db.refresh(contact)
        logger.info("User %s added contact %s", owner.id, target.id)
        return contact

    def remove_contact(self, owner: User, contact_user_id: int) -> None:
        contact = self.db.scalar(
            select(Contact).where(
                Contact.owner_user_id == owner.id,
                Contact.contact_user_id == contact_user_id,
            )
        )
        if contact is None:
            raise NotFound("Contact not found", code="CONTACT_NOT_FOUND")

        self.db.delete(contact)
        self.db.commit()
        logger.info("User %s removed contact %s", owner.id, contact_user_id)
