# app/schemas/contact.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.user import Email


class ContactCreate(SQLModel):
    """
    Payload for creating a contact.

    Owner is never accepted from the client; it is the authenticated user.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=100)
    email: Email
    phone: str = Field(max_length=30)
    favorite: bool = False

    @field_validator("name", "phone")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class ContactUpdate(SQLModel):
    """
    Partial update. At least one field must be present (checked in the service,
    before any query runs).
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    email: Email | None = None
    phone: str | None = Field(default=None, max_length=30)
    favorite: bool | None = None

    @field_validator("name", "phone")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class FavoriteUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    favorite: bool


class ContactRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    name: str
    email: str
    phone: str
    favorite: bool
    owner: uuid.UUID
    created_at: datetime
