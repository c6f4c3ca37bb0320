# app/core/auth.py
import logging
import uuid
from datetime import timedelta

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from app.core.config import get_settings
from app.core.errors import UnauthorizedError
from app.core.security import TokenService
from app.database import get_session
from app.models.user import User
from app.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => a missing/non-bearer Authorization header does not
#   raise FastAPI's default 403; we answer 401 "Not authorized" ourselves.
bearer_scheme = HTTPBearer(auto_error=False)

token_service = TokenService(
    settings.JWT_SECRET,
    algorithm=settings.JWT_ALG,
    ttl=timedelta(hours=settings.JWT_EXPIRE_HOURS),
)

user_repo = UserRepository()


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    """
    Resolve the authenticated user from the bearer token.

    Flow:
      1. Authorization header must be "Bearer <token>".
      2. Token signature/expiry must check out (TokenService.verify).
      3. The `id` claim must point at an existing user.
      4. The token must equal the user's stored session token, so a
         logged-out or superseded token is rejected before it expires.

    The user is also attached to `request.state.user`.

    Raises:
        UnauthorizedError(401): on any failed step, always "Not authorized".
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()

    token = credentials.credentials
    user_id = token_service.verify(token)
    if user_id is None:
        raise UnauthorizedError()

    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        raise UnauthorizedError()

    user = user_repo.get_by_id(session, user_uuid)
    if user is None or user.token != token:
        logger.debug("Rejected stale or orphaned token for user id %s", user_id)
        raise UnauthorizedError()

    request.state.user = user
    return user


def require_auth(user: User = Depends(get_current_user)) -> User:
    """
    Enforce authentication.

    Usable both in `dependencies=[...]` and as a parameter to receive
    the authenticated User.
    """
    return user
