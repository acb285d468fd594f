"""Unit tests for signed admin session cookies."""

import base64
import json

import pytest

from dreamland.auth.admin_session import (
    SessionSigner,
    is_admin_enabled,
    verify_admin_credentials,
)
from dreamland.services.errors import ConfigurationError


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def signer(clock: FakeClock) -> SessionSigner:
    return SessionSigner("unit-test-session-secret", max_age=3600, clock=clock)


@pytest.mark.unit
class TestSessionSigner:
    """Unit tests for SessionSigner."""

    def test_sign_and_verify(self, signer: SessionSigner, clock: FakeClock) -> None:
        """Test that a fresh cookie verifies to its payload."""
        session = signer.verify(signer.sign("admin@example.com"))

        assert session is not None
        assert session.email == "admin@example.com"
        assert session.is_admin is True
        assert session.iat == int(clock.now)
        assert session.exp == int(clock.now) + 3600

    def test_expired_cookie_rejected(self, signer: SessionSigner, clock: FakeClock) -> None:
        """Test that a cookie is refused once its expiry passes."""
        token = signer.sign("admin@example.com")
        clock.now += 3600

        assert signer.verify(token) is None

    def test_tampered_payload_rejected(self, signer: SessionSigner) -> None:
        """Test that editing the payload breaks the signature."""
        token = signer.sign("admin@example.com", is_admin=False)
        payload, signature = token.split(".")
        data = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
        data["is_admin"] = True
        forged = base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()

        assert signer.verify(f"{forged}.{signature}") is None

    def test_other_secret_rejected(self, signer: SessionSigner, clock: FakeClock) -> None:
        """Test that cookies signed with another secret are refused."""
        other = SessionSigner("another-secret", clock=clock)

        assert signer.verify(other.sign("admin@example.com")) is None

    @pytest.mark.parametrize("token", [None, "", "no-dot", "a.b.c", "payload.short", "é.ü" + "0" * 63])
    def test_malformed_cookie_rejected(self, signer: SessionSigner, token) -> None:
        """Test that malformed cookies verify to None without raising."""
        assert signer.verify(token) is None

    def test_empty_secret_rejected(self) -> None:
        """Test that an empty secret is a configuration error."""
        with pytest.raises(ConfigurationError):
            SessionSigner("")


@pytest.mark.unit
class TestAdminCredentials:
    """Unit tests for admin credential checks."""

    def test_configured_credentials(self, monkeypatch) -> None:
        """Test that configured credentials are checked case-insensitively on email."""
        monkeypatch.setenv("ADMIN_EMAIL", "Boss@Dreamland.test")
        monkeypatch.setenv("ADMIN_PASSWORD", "s3cret")

        assert verify_admin_credentials("boss@dreamland.test", "s3cret") is True
        assert verify_admin_credentials("boss@dreamland.test", "wrong") is False
        assert verify_admin_credentials("other@dreamland.test", "s3cret") is False

    def test_missing_credentials_in_production(self, monkeypatch) -> None:
        """Test that production refuses to fall back to development credentials."""
        monkeypatch.setenv("APP_ENV", "production")
        monkeypatch.delenv("ADMIN_EMAIL", raising=False)
        monkeypatch.delenv("ADMIN_PASSWORD", raising=False)

        with pytest.raises(ConfigurationError):
            verify_admin_credentials("admin@dreamland.local", "admin")

    def test_admin_toggle(self, monkeypatch) -> None:
        """Test that the admin API is opt-in in production only."""
        monkeypatch.setenv("APP_ENV", "development")
        assert is_admin_enabled() is True

        monkeypatch.setenv("APP_ENV", "production")
        monkeypatch.delenv("ADMIN_ENABLED", raising=False)
        assert is_admin_enabled() is False

        monkeypatch.setenv("ADMIN_ENABLED", "true")
        assert is_admin_enabled() is True
