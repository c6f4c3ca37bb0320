# app/routers/auth.py
from fastapi import APIRouter, BackgroundTasks, Depends, File, Response, UploadFile, status
from sqlmodel import Session

from app.core.auth import require_auth, token_service
from app.core.config import get_settings
from app.core.email_client import EmailClient
from app.core.errors import BadRequestError
from app.core.security import PasswordHasher
from app.database import get_session
from app.models.user import User
from app.repositories.user_repo import UserRepository
from app.schemas.user import (
    AvatarResponse,
    EmailPayload,
    LoginResponse,
    MessageResponse,
    RegisterResponse,
    SubscriptionUpdate,
    UserCredentials,
    UserPublic,
    UserRegister,
)
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])

settings = get_settings()

service = AuthService(
    repo=UserRepository(),
    settings=settings,
    token_service=token_service,
    hasher=PasswordHasher(rounds=settings.BCRYPT_ROUNDS),
    mailer=EmailClient(settings),
)


# -------- Public endpoints --------


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: UserRegister,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
):
    """
    Create an account.

    The verification email is sent after the response; login stays
    blocked until the link is followed.
    """
    return service.register(session, payload, background_tasks)


@router.post("/login", response_model=LoginResponse)
def login(
    payload: UserCredentials,
    session: Session = Depends(get_session),
):
    """
    Exchange email + password for a session token (valid 23h).

    A new login replaces any previous session.
    """
    return service.login(session, payload)


@router.get("/verify/{verification_token}", response_model=MessageResponse)
def verify_email(
    verification_token: str,
    session: Session = Depends(get_session),
):
    """Follow-up of the link sent by email."""
    return service.verify_email(session, verification_token)


@router.post("/verify", response_model=MessageResponse)
def resend_verification_email(
    payload: EmailPayload,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
):
    """Send the verification link again (unverified accounts only)."""
    return service.resend_verification_email(session, payload.email, background_tasks)


# -------- Authenticated endpoints --------


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    End the current session.

    Auth:
      - Requires the active bearer token.
    """
    service.logout(session, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/current", response_model=UserPublic)
def current(current_user: User = Depends(require_auth)):
    """Return the authenticated user's public profile."""
    return service.get_current(current_user)


@router.patch("/subscription", response_model=UserPublic)
def update_subscription(
    payload: SubscriptionUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """Switch between starter / pro / business."""
    return service.update_subscription(session, current_user, payload.subscription)


@router.patch(
    "/avatars",
    response_model=AvatarResponse,
    summary="Upload or replace the user's avatar",
)
def update_avatar(
    avatar: UploadFile = File(...),
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Upload a new avatar (multipart field "avatar").

    - Accepts JPEG, PNG, WEBP, GIF up to 5MB.
    - Replaces the default gravatar link.
    """
    if not avatar.content_type:
        raise BadRequestError("Missing content-type for uploaded file")

    file_bytes = avatar.file.read()
    return service.update_avatar(
        session=session,
        current_user=current_user,
        filename=avatar.filename,
        content_type=avatar.content_type,
        file_bytes=file_bytes,
    )
