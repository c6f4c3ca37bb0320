# app/models/contact.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Contact(SQLModel, table=True):
    """
    Address book entry. Always belongs to exactly one user (owner).
    """

    __tablename__ = "contacts"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(max_length=100)
    email: str
    phone: str = Field(max_length=30)
    favorite: bool = Field(default=False)

    owner: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
