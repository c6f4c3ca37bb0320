# app/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    Account record: credentials, verification state and the active session.

    Session:
      - token holds the only valid session token for this user.
        Login overwrites it, logout clears it.

    Verification:
      - verification_token is set at registration and cleared once the
        email link is followed (verify becomes True for good).
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Login key",
    )

    password: str = Field(description="bcrypt hash, never the plaintext")

    subscription: str = Field(
        default="starter",
        description="starter | pro | business",
    )

    avatar_url: str | None = None

    token: str | None = Field(
        default=None,
        description="Currently active session token",
    )

    verify: bool = Field(default=False)

    verification_token: str | None = Field(
        default=None,
        index=True,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
