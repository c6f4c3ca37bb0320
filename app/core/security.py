# app/core/security.py
"""
Credential primitives used by the auth workflow.

  - PasswordHasher: bcrypt hash / verify
  - TokenService: signed, time-limited session tokens (JWT, HS256)
  - generate_verification_token: opaque email-verification capability
  - gravatar_url: default avatar derived from the email
"""

import hashlib
import logging
import secrets
import time
import uuid
from datetime import timedelta

import bcrypt
from jose import JWTError, jwt

logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 10
SESSION_TOKEN_TTL = timedelta(hours=23)

# bcrypt only looks at the first 72 bytes; longer input is rejected upstream
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """
    Handles password hashing and verification using bcrypt.

    Usage:
        hasher = PasswordHasher()
        hashed = hasher.hash("my_password")
        is_valid = hasher.verify("my_password", hashed)
    """

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """
        Hash a password with a fresh salt.

        Raises:
            ValueError: if password is empty or longer than 72 bytes.
        """
        if not password:
            raise ValueError("Password cannot be empty")

        raw = password.encode("utf-8")
        if len(raw) > BCRYPT_MAX_BYTES:
            raise ValueError("Password is too long")

        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(raw, salt).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        """
        Check a password against a stored hash.

        Returns False on mismatch and on malformed input; never raises.
        """
        if not password or not hashed:
            return False

        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError as e:
            logger.warning("Password verification error: %s", e)
            return False


class TokenService:
    """
    Issues and verifies session tokens.

    Claims:
      - id:  user id (string)
      - iat: issued at (unix seconds)
      - exp: expiry (unix seconds)
      - jti: random id, unique per issued token

    verify() only checks signature, expiry and shape. Whether the token is
    still the user's active session is decided by the request guard.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        ttl: timedelta = SESSION_TOKEN_TTL,
    ):
        if not secret_key:
            raise ValueError("Token secret must not be empty")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, user_id: str, ttl: timedelta | None = None) -> str:
        now = int(time.time())
        lifetime = ttl if ttl is not None else self.ttl
        payload = {
            "id": str(user_id),
            "iat": now,
            "exp": now + int(lifetime.total_seconds()),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> str | None:
        """
        Return the user id claim, or None if the token is invalid,
        expired, malformed or missing the claim.
        """
        try:
            data = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.debug("Token verification failed: %s", e)
            return None

        user_id = data.get("id")
        if not isinstance(user_id, str) or not user_id:
            return None
        return user_id


def generate_verification_token() -> str:
    """Unguessable URL-safe token (32 random bytes)."""
    return secrets.token_urlsafe(32)


def gravatar_url(email: str, size: int = 250) -> str:
    """
    Gravatar URL for an email address.

    Gravatar keys on md5 of the trimmed, lower-cased address; "identicon"
    gives every address a generated image when none is registered.
    """
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return f"https://www.gravatar.com/avatar/{digest}?s={size}&d=identicon"
