# app/repositories/contact_repo.py
import uuid

from sqlmodel import Session, select

from app.models.contact import Contact


class ContactRepository:
    """
    Data access layer for Contact.

    Every lookup takes the owner id and filters on it in the same query,
    so a contact owned by someone else simply does not come back.
    """

    def list_for_owner(
        self,
        session: Session,
        owner: uuid.UUID,
        *,
        favorite: bool | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Contact]:
        stmt = select(Contact).where(Contact.owner == owner)
        if favorite is not None:
            stmt = stmt.where(Contact.favorite == favorite)
        stmt = stmt.order_by(Contact.created_at).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def get_owned(
        self, session: Session, contact_id: uuid.UUID, owner: uuid.UUID
    ) -> Contact | None:
        """Return the contact only if it belongs to `owner`."""
        stmt = select(Contact).where(Contact.id == contact_id, Contact.owner == owner)
        return session.exec(stmt).first()

    # CRUD
    def create(self, session: Session, contact: Contact) -> Contact:
        session.add(contact)
        session.commit()
        session.refresh(contact)
        return contact

    def update(self, session: Session, contact: Contact) -> Contact:
        session.add(contact)
        session.commit()
        session.refresh(contact)
        return contact

    def delete(self, session: Session, contact: Contact) -> None:
        session.delete(contact)
        session.commit()
