# app/schemas/user.py
from typing import Annotated, Literal

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field as PydanticField,
    field_validator,
)
from pydantic.networks import validate_email
from sqlmodel import SQLModel, Field

from app.core.security import BCRYPT_MAX_BYTES

Subscription = Literal["starter", "pro", "business"]

# Emitted as camelCase, but must still validate from ORM rows (avatar_url)
AVATAR_ALIASES = AliasChoices("avatar_url", "avatarUrl")


def _email_as_given(v: str) -> str:
    _, normalized = validate_email(v)
    if normalized.lower() != v.lower():
        raise ValueError("value is not a valid email address")
    return v


# Checked like EmailStr, but kept exactly as sent
Email = Annotated[str, AfterValidator(_email_as_given)]


class UserCredentials(SQLModel):
    """
    Login payload.

    Password length is only checked at registration; any non-empty
    password is accepted here so a wrong one yields the usual 401.
    """

    model_config = ConfigDict(extra="forbid")

    email: Email
    password: str = Field(min_length=1, max_length=72)


class UserRegister(UserCredentials):
    """Registration payload."""

    password: str = Field(min_length=6, max_length=72)

    @field_validator("password")
    @classmethod
    def password_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("password cannot be blank")
        if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"password must be at most {BCRYPT_MAX_BYTES} bytes")
        return v


class EmailPayload(SQLModel):
    """Body of the resend-verification request."""

    model_config = ConfigDict(extra="forbid")

    email: Email


class SubscriptionUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    subscription: Subscription


class UserPublic(BaseModel):
    """
    Public projection of a user.

    Never carries the password hash, session token or verification token.
    Serialized with camelCase `avatarUrl`.
    """

    model_config = ConfigDict(from_attributes=True)

    email: str
    subscription: Subscription
    avatar_url: str | None = PydanticField(
        default=None,
        validation_alias=AVATAR_ALIASES,
        serialization_alias="avatarUrl",
    )


class RegisterResponse(BaseModel):
    user: UserPublic


class LoginResponse(BaseModel):
    token: str
    user: UserPublic


class AvatarResponse(BaseModel):
    avatar_url: str = PydanticField(
        validation_alias=AVATAR_ALIASES,
        serialization_alias="avatarUrl",
    )


class MessageResponse(BaseModel):
    message: str
