# app/routers/contacts.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.core.auth import require_auth
from app.database import get_session
from app.models.user import User
from app.repositories.contact_repo import ContactRepository
from app.schemas.contact import ContactCreate, ContactRead, ContactUpdate, FavoriteUpdate
from app.services.contact_service import ContactService

# Every route here needs an active session.
router = APIRouter(
    prefix="/contacts",
    tags=["Contacts"],
    dependencies=[Depends(require_auth)],
)

repo = ContactRepository()
service = ContactService(repo)


@router.get("", response_model=list[ContactRead])
def list_contacts(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    favorite: bool | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
):
    """
    List the current user's contacts.

    Optional `favorite` filter; pagination via skip/limit.
    """
    return service.list_contacts(
        session, current_user.id, favorite=favorite, skip=skip, limit=limit
    )


@router.get("/{contact_id}", response_model=ContactRead)
def get_contact(
    contact_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """Get one contact. Someone else's contact answers 404 like a missing one."""
    return service.get_contact(session, contact_id, current_user.id)


@router.post("", response_model=ContactRead, status_code=status.HTTP_201_CREATED)
def create_contact(
    payload: ContactCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """Create a contact owned by the current user."""
    return service.create_contact(session, payload, current_user.id)


@router.put("/{contact_id}", response_model=ContactRead)
def update_contact(
    contact_id: uuid.UUID,
    payload: ContactUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Update any subset of name / email / phone / favorite.

    An empty body is rejected with 400.
    """
    return service.update_contact(session, contact_id, payload, current_user.id)


@router.patch("/{contact_id}/favorite", response_model=ContactRead)
def update_favorite(
    contact_id: uuid.UUID,
    payload: FavoriteUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """Mark or unmark a contact as favorite."""
    return service.set_favorite(session, contact_id, payload.favorite, current_user.id)


@router.delete("/{contact_id}", response_model=ContactRead)
def delete_contact(
    contact_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """Delete a contact and return it."""
    return service.delete_contact(session, contact_id, current_user.id)
