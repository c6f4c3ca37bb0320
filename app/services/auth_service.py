# app/services/auth_service.py
import logging

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core import storage_utils
from app.core.config import Settings
from app.core.email_client import EmailClient
from app.core.errors import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
)
from app.core.security import (
    PasswordHasher,
    TokenService,
    generate_verification_token,
    gravatar_url,
)
from app.models.user import User
from app.repositories.user_repo import UserRepository
from app.schemas.user import (
    AvatarResponse,
    LoginResponse,
    MessageResponse,
    RegisterResponse,
    Subscription,
    UserCredentials,
    UserPublic,
    UserRegister,
)

logger = logging.getLogger(__name__)

# --- Avatar config ---

MAX_AVATAR_BYTES = 5 * 1024 * 1024  # 5MB

ALLOWED_AVATAR_CONTENT_TYPES = {
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
}

WRONG_CREDENTIALS = "Email or password is wrong"


class AuthService:
    """
    Registration, sessions and email verification.

    Responsibilities:
      - credential checks (bcrypt) and session token issuing (JWT)
      - single active session per user (token stored on the user row)
      - verification state: unverified -> verified, never back
      - best-effort verification emails via background tasks
      - avatar upload orchestration with Supabase Storage
    """

    def __init__(
        self,
        repo: UserRepository,
        settings: Settings,
        token_service: TokenService,
        hasher: PasswordHasher,
        mailer: EmailClient,
    ):
        self.repo = repo
        self.settings = settings
        self.token_service = token_service
        self.hasher = hasher
        self.mailer = mailer

    # ----- Helpers -----

    @staticmethod
    def _public(user: User) -> UserPublic:
        return UserPublic.model_validate(user)

    def verification_link(self, token: str) -> str:
        base = self.settings.APP_BASE_URL.rstrip("/")
        return f"{base}{self.settings.API_PREFIX}/auth/verify/{token}"

    def send_verification_email(self, email: str, token: str) -> None:
        """
        Send the verification link.

        Runs as a background task: failures are logged and never reach
        the client or roll back the user row.
        """
        link = self.verification_link(token)
        try:
            self.mailer.send_email(
                to_email=email,
                subject="Verify your email",
                text_body=f"Open this link to verify your email: {link}",
                html_body=f'<a target="_blank" href="{link}">Click to verify your email</a>',
            )
        except Exception:
            logger.exception("Failed to send verification email to %s", email)

    # ----- Registration -----

    def register(
        self,
        session: Session,
        payload: UserRegister,
        background_tasks: BackgroundTasks,
    ) -> RegisterResponse:
        """
        Create an unverified user and queue the verification email.

        Raises:
            ConflictError(409): email already registered.
        """
        if self.repo.get_by_email(session, payload.email) is not None:
            raise ConflictError("Email in use")

        user = User(
            email=payload.email,
            password=self.hasher.hash(payload.password),
            avatar_url=gravatar_url(payload.email),
            verification_token=generate_verification_token(),
        )
        try:
            user = self.repo.create(session, user)
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            session.rollback()
            raise ConflictError("Email in use")

        logger.info("Registered user %s (%s)", user.email, user.id)
        background_tasks.add_task(
            self.send_verification_email, user.email, user.verification_token
        )
        return RegisterResponse(user=self._public(user))

    # ----- Sessions -----

    def login(self, session: Session, payload: UserCredentials) -> LoginResponse:
        """
        Check credentials and start a new session.

        Unknown email and wrong password share one message. The
        verification check comes only after the password matched.

        Raises:
            UnauthorizedError(401): wrong credentials or email not verified.
        """
        user = self.repo.get_by_email(session, payload.email)
        if user is None or not self.hasher.verify(payload.password, user.password):
            raise UnauthorizedError(WRONG_CREDENTIALS)

        if not user.verify:
            raise UnauthorizedError("Email not verified")

        user.token = self.token_service.issue(str(user.id))
        user = self.repo.update(session, user)

        logger.info("Login: %s (%s)", user.email, user.id)
        return LoginResponse(token=user.token, user=self._public(user))

    def logout(self, session: Session, current_user: User) -> None:
        """Drop the active session; the old token stops working at once."""
        current_user.token = None
        self.repo.update(session, current_user)
        logger.info("Logout: %s (%s)", current_user.email, current_user.id)

    def get_current(self, current_user: User) -> UserPublic:
        """Public projection of the already-authenticated user."""
        return self._public(current_user)

    # ----- Profile -----

    def update_subscription(
        self,
        session: Session,
        current_user: User,
        subscription: Subscription,
    ) -> UserPublic:
        current_user.subscription = subscription
        return self._public(self.repo.update(session, current_user))

    def update_avatar(
        self,
        session: Session,
        current_user: User,
        filename: str | None,
        content_type: str | None,
        file_bytes: bytes,
    ) -> AvatarResponse:
        """
        Store a new avatar and point the user at it.

        Object path: avatars/<user id>_<original filename>; the id prefix
        keeps different users' files apart.

        Raises:
            BadRequestError(400): empty file, unsupported type or too large.
        """
        if not file_bytes:
            raise BadRequestError("Avatar file is empty")

        if content_type not in ALLOWED_AVATAR_CONTENT_TYPES:
            raise BadRequestError("Unsupported image type. Allowed: JPEG, PNG, WEBP, GIF.")

        if len(file_bytes) > MAX_AVATAR_BYTES:
            raise BadRequestError("Image too large (max 5MB).")

        name = storage_utils.safe_filename(filename)
        path = f"avatars/{current_user.id}_{name}"
        url = storage_utils.upload_to_storage(path, file_bytes, content_type)

        current_user.avatar_url = url
        self.repo.update(session, current_user)
        return AvatarResponse(avatar_url=url)

    # ----- Email verification -----

    def verify_email(self, session: Session, token: str) -> MessageResponse:
        """
        Consume a verification token.

        An already used token is indistinguishable from an unknown one.

        Raises:
            NotFoundError(404): no user holds this token.
        """
        user = self.repo.get_by_verification_token(session, token)
        if user is None:
            raise NotFoundError("User not found")

        user.verify = True
        user.verification_token = None
        self.repo.update(session, user)

        logger.info("Verified email for %s (%s)", user.email, user.id)
        return MessageResponse(message="Verification successful")

    def resend_verification_email(
        self,
        session: Session,
        email: str,
        background_tasks: BackgroundTasks,
    ) -> MessageResponse:
        """
        Send the verification link again, reusing the pending token.

        A new token is generated only if none is stored.

        Raises:
            NotFoundError(404): unknown email.
            BadRequestError(400): already verified.
        """
        user = self.repo.get_by_email(session, email)
        if user is None:
            raise NotFoundError("User not found")

        if user.verify:
            raise BadRequestError("Verification has already been passed")

        if not user.verification_token:
            user.verification_token = generate_verification_token()
            user = self.repo.update(session, user)

        background_tasks.add_task(
            self.send_verification_email, user.email, user.verification_token
        )
        return MessageResponse(message="Verification email sent")
