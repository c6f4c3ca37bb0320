# app/services/contact_service.py
import logging
import uuid

from sqlmodel import Session

from app.core.errors import BadRequestError, NotFoundError
from app.models.contact import Contact
from app.repositories.contact_repo import ContactRepository
from app.schemas.contact import ContactCreate, ContactRead, ContactUpdate

logger = logging.getLogger(__name__)


class ContactService:
    """
    Business logic for contacts.

    Responsibilities:
      - scope every operation to the requesting owner
      - answer 404 for both missing and foreign contacts
      - reject empty partial updates before touching the DB
    """

    def __init__(self, repo: ContactRepository):
        self.repo = repo

    # ---- internal helpers ----

    def _get_owned(
        self, session: Session, contact_id: uuid.UUID, owner: uuid.UUID
    ) -> Contact:
        contact = self.repo.get_owned(session, contact_id, owner)
        if contact is None:
            raise NotFoundError()
        return contact

    # ---- public operations ----

    def list_contacts(
        self,
        session: Session,
        owner: uuid.UUID,
        favorite: bool | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Contact]:
        return self.repo.list_for_owner(
            session, owner, favorite=favorite, skip=skip, limit=limit
        )

    def get_contact(
        self, session: Session, contact_id: uuid.UUID, owner: uuid.UUID
    ) -> Contact:
        return self._get_owned(session, contact_id, owner)

    def create_contact(
        self, session: Session, payload: ContactCreate, owner: uuid.UUID
    ) -> Contact:
        contact = Contact(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            favorite=payload.favorite,
            owner=owner,
        )
        contact = self.repo.create(session, contact)
        logger.info("Contact %s created for owner %s", contact.id, owner)
        return contact

    def update_contact(
        self,
        session: Session,
        contact_id: uuid.UUID,
        payload: ContactUpdate,
        owner: uuid.UUID,
    ) -> Contact:
        """
        Apply a partial update.

        Raises:
            BadRequestError(400): no field provided (nothing is queried).
            NotFoundError(404): missing or not owned.
        """
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise BadRequestError("Body must have at least one field")

        contact = self._get_owned(session, contact_id, owner)
        for field, value in changes.items():
            setattr(contact, field, value)
        return self.repo.update(session, contact)

    def set_favorite(
        self,
        session: Session,
        contact_id: uuid.UUID,
        favorite: bool,
        owner: uuid.UUID,
    ) -> Contact:
        contact = self._get_owned(session, contact_id, owner)
        contact.favorite = favorite
        return self.repo.update(session, contact)

    def delete_contact(
        self, session: Session, contact_id: uuid.UUID, owner: uuid.UUID
    ) -> ContactRead:
        """Delete and return a snapshot of the removed contact."""
        contact = self._get_owned(session, contact_id, owner)
        removed = ContactRead.model_validate(contact)
        self.repo.delete(session, contact)
        logger.info("Contact %s deleted by owner %s", contact_id, owner)
        return removed
