"""Tests for the admin credential gate."""

import time

import pytest
from itsdangerous import TimestampSigner

from sambhav.auth import (
    CredentialGate,
    MissingCredentialsError,
    SessionToken,
    UnauthorizedError,
)
from sambhav.config.settings import AuthSettings


class TestLogin:
    """Exchanging the admin credential for a token."""

    def test_login_returns_token(self, gate):
        """Test that the right credential yields a 7-day session."""
        session = gate.login("admin", "admin123")

        assert isinstance(session, SessionToken)
        assert session.token
        assert session.username == "admin"
        assert session.expires_in_days == 7

    def test_wrong_password(self, gate):
        with pytest.raises(UnauthorizedError, match="Invalid credentials"):
            gate.login("admin", "wrong")

    def test_wrong_username(self, gate):
        with pytest.raises(UnauthorizedError):
            gate.login("root", "admin123")

    @pytest.mark.parametrize("username,password", [
        ("", "admin123"),
        ("admin", ""),
        (None, None),
    ])
    def test_missing_values(self, gate, username, password):
        """Test that empty values are reported separately from wrong ones."""
        with pytest.raises(MissingCredentialsError):
            gate.login(username, password)


class TestVerify:
    """Checking session tokens."""

    def test_round_trip(self, gate):
        token = gate.login("admin", "admin123").token
        assert gate.verify(token) == "admin"

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, gate, token):
        with pytest.raises(UnauthorizedError, match="No token"):
            gate.verify(token)

    def test_tampered_token(self, gate):
        """Test that changing any part of the token invalidates it."""
        token = gate.login("admin", "admin123").token
        tampered = "root" + token[len("admin"):]
        with pytest.raises(UnauthorizedError):
            gate.verify(tampered)

    def test_garbage_token(self, gate):
        with pytest.raises(UnauthorizedError):
            gate.verify("not-a-token")

    def test_token_from_another_secret(self, gate):
        other = CredentialGate("admin", "admin123", secret_key="another-secret-key-000000")
        token = other.login("admin", "admin123").token
        with pytest.raises(UnauthorizedError):
            gate.verify(token)

    def test_expired_token(self, gate, monkeypatch):
        """Test that a token older than its TTL is rejected."""
        token = gate.login("admin", "admin123").token
        later = int(time.time()) + gate.token_ttl_seconds + 60
        monkeypatch.setattr(TimestampSigner, "get_timestamp", lambda self: later)

        with pytest.raises(UnauthorizedError, match="expired"):
            gate.verify(token)

    def test_token_for_renamed_admin(self, gate):
        """Test that tokens stop working when the admin username changes."""
        token = gate.login("admin", "admin123").token
        renamed = CredentialGate("owner", "admin123", secret_key="test-secret-key-0123456789")
        with pytest.raises(UnauthorizedError):
            renamed.verify(token)


class TestFromSettings:

    def test_reads_auth_settings(self):
        settings = AuthSettings(
            admin_username="boss",
            admin_password="pw",
            secret_key="a-secret-key-of-some-length",
            token_ttl_days=1,
        )
        gate = CredentialGate.from_settings(settings)

        session = gate.login("boss", "pw")
        assert session.expires_in_seconds == 24 * 60 * 60
        assert gate.verify(session.token) == "boss"
