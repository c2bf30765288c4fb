from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from yuki.core.deps import get_db, get_current_user
from yuki.models.contact import Contact
from yuki.models.user import User
from yuki.schemas.contact import ContactCreate, ContactCreated, ContactListResponse, ContactOut
from yuki.services.contacts import ContactService

router = APIRouter()


def contact_out(contact: Contact) -> ContactOut:
    target = contact.contact_user
    return ContactOut(
        id=contact.id,
        user_id=target.id,
        username=target.username,
        display_name=target.display_name,
        avatar_url=target.avatar_url,
        wallet_address=target.wallet_address,
        nickname=contact.nickname,
        added_at=contact.created_at,
    )


@router.get("", response_model=ContactListResponse)
def list_contacts(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    contacts = ContactService(db).list_contacts(current_user)
    return ContactListResponse(contacts=[contact_out(c) for c in contacts])


@router.post("", response_model=ContactCreated)
def add_contact(
    payload: ContactCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    contact = ContactService(db).add_contact(current_user, payload.username, payload.nickname)
    return ContactCreated(contact=contact_out(contact))


@router.delete("")
def remove_contact(
    user_id: int = Query(..., alias="userId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ContactService(db).remove_contact(current_user, user_id)
    return {"success": True}
