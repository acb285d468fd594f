"""Signed admin session cookies and credential checks."""

import base64
import binascii
import hashlib
import hmac
import json
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache

import structlog

from dreamland.services.errors import ConfigurationError

logger = structlog.get_logger(__name__)

SESSION_COOKIE_NAME = "admin_session"
SESSION_MAX_AGE_SECONDS = 7 * 24 * 60 * 60

_DEV_SESSION_SECRET = "dev-session-secret-change-in-production"
_DEV_ADMIN_EMAIL = "admin@dreamland.local"
_DEV_ADMIN_PASSWORD = "admin"


def is_production() -> bool:
    return os.getenv("APP_ENV", "development") == "production"


def is_admin_enabled() -> bool:
    """Admin API is always reachable outside production; opt-in inside it."""
    if not is_production():
        return True
    return os.getenv("ADMIN_ENABLED", "false").lower() == "true"


@dataclass(frozen=True)
class AdminSession:
    """Decoded session payload."""

    email: str
    is_admin: bool
    iat: int
    exp: int


class SessionSigner:
    """Issues and verifies ``admin_session`` cookie values.

    Cookie format: ``base64url(json payload) + "." + hex(HMAC-SHA256)``.
    The payload carries ``email``, ``is_admin``, ``iat`` and ``exp`` (epoch
    seconds). Verification never raises: anything malformed, tampered or
    expired comes back as None.
    """

    def __init__(
        self,
        secret: str,
        max_age: int = SESSION_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize session signer.

        Args:
            secret: HMAC key
            max_age: Session lifetime in seconds
            clock: Time source returning epoch seconds
        """
        if not secret:
            raise ConfigurationError("Session secret is empty")
        self._secret = secret.encode("utf-8")
        self.max_age = max_age
        self._clock = clock

    def _signature(self, payload: str) -> str:
        return hmac.new(self._secret, payload.encode("ascii"), hashlib.sha256).hexdigest()

    def sign(self, email: str, is_admin: bool = True) -> str:
        """Create a cookie value for ``email``."""
        issued_at = int(self._clock())
        body = json.dumps(
            {
                "email": email,
                "is_admin": is_admin,
                "iat": issued_at,
                "exp": issued_at + self.max_age,
            },
            separators=(",", ":"),
        )
        payload = base64.urlsafe_b64encode(body.encode("utf-8")).rstrip(b"=").decode("ascii")
        return f"{payload}.{self._signature(payload)}"

    def verify(self, token: str | None) -> AdminSession | None:
        """Verify a cookie value.

        Returns:
            AdminSession if the signature matches and the session is live
        """
        if not token or token.count(".") != 1:
            return None

        payload, signature = token.split(".")
        if len(signature) != 64:
            return None

        try:
            expected = self._signature(payload)
        except UnicodeEncodeError:
            return None
        if not hmac.compare_digest(signature, expected):
            return None

        try:
            padded = payload + "=" * (-len(payload) % 4)
            data = json.loads(base64.urlsafe_b64decode(padded).decode("utf-8"))
            session = AdminSession(
                email=str(data["email"]),
                is_admin=bool(data["is_admin"]),
                iat=int(data["iat"]),
                exp=int(data["exp"]),
            )
        except (binascii.Error, ValueError, KeyError, TypeError):
            return None

        if session.exp <= self._clock():
            return None
        return session


@lru_cache(maxsize=1)
def get_session_signer() -> SessionSigner:
    """Process-wide signer built from SESSION_SECRET.

    Raises:
        ConfigurationError: If SESSION_SECRET is unset in production
    """
    secret = os.getenv("SESSION_SECRET")
    if not secret:
        if is_production():
            raise ConfigurationError("SESSION_SECRET is not set")
        logger.warning("session_secret_defaulted")
        secret = _DEV_SESSION_SECRET
    return SessionSigner(secret)


def _configured_admin() -> tuple[str, str]:
    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")
    if email and password:
        return email, password
    if is_production():
        raise ConfigurationError("ADMIN_EMAIL and ADMIN_PASSWORD must be set")
    return email or _DEV_ADMIN_EMAIL, password or _DEV_ADMIN_PASSWORD


def verify_admin_credentials(email: str, password: str) -> bool:
    """Check login credentials against the configured admin account.

    Both comparisons always run, in constant time, so response timing does
    not reveal which field was wrong.
    """
    expected_email, expected_password = _configured_admin()
    email_ok = hmac.compare_digest(
        email.strip().lower().encode("utf-8"), expected_email.strip().lower().encode("utf-8")
    )
    password_ok = hmac.compare_digest(password.encode("utf-8"), expected_password.encode("utf-8"))
    return email_ok and password_ok
