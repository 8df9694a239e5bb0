"""
Credential Gate

There is a single admin account whose username and password come from
configuration. A successful login yields a signed, time-limited session
token. The token is opaque to clients: it is the username signed with a
timestamp, and only this module knows how to check it.

DESIGN DECISION: itsdangerous TimestampSigner instead of a JWT. There is
one user and no claims to carry, so a signed timestamp is all we need.
"""

import hmac
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, TimestampSigner
from pydantic import BaseModel, Field

from sambhav.config import get_settings
from sambhav.config.settings import AuthSettings
from sambhav.logging_setup import get_logger

logger = get_logger(__name__)

TOKEN_SALT = "sambhav-session"


class AuthError(Exception):
    """Base exception for authentication errors."""
    pass


class MissingCredentialsError(AuthError):
    """Username or password was not supplied."""
    pass


class UnauthorizedError(AuthError):
    """Wrong credentials, or a missing/invalid/expired token."""
    pass


class SessionToken(BaseModel):
    """What a successful login returns."""

    token: str
    username: str
    expires_in_seconds: int = Field(ge=1)

    @property
    def expires_in_days(self) -> int:
        return self.expires_in_seconds // (24 * 60 * 60)


class CredentialGate:
    """
    Checks the admin credential and issues/verifies session tokens.

    Usage:
        gate = CredentialGate.from_settings()
        session = gate.login("admin", "secret")
        username = gate.verify(session.token)
    """

    def __init__(
        self,
        username: str,
        password: str,
        secret_key: str,
        token_ttl_seconds: int = 7 * 24 * 60 * 60,
    ):
        self._username = username
        self._password = password
        self._ttl = token_ttl_seconds
        self._signer = TimestampSigner(secret_key, salt=TOKEN_SALT)

    @classmethod
    def from_settings(cls, settings: Optional[AuthSettings] = None) -> "CredentialGate":
        settings = settings or get_settings().auth
        return cls(
            username=settings.admin_username,
            password=settings.admin_password,
            secret_key=settings.secret_key,
            token_ttl_seconds=settings.token_ttl_seconds,
        )

    @property
    def token_ttl_seconds(self) -> int:
        return self._ttl

    def _credentials_match(self, username: str, password: str) -> bool:
        # Compare both halves so timing doesn't reveal which one was wrong
        user_ok = hmac.compare_digest(username.encode(), self._username.encode())
        pass_ok = hmac.compare_digest(password.encode(), self._password.encode())
        return user_ok and pass_ok

    def login(self, username: Optional[str], password: Optional[str]) -> SessionToken:
        """
        Exchange the admin credential for a session token.

        Raises:
            MissingCredentialsError: If either value is empty
            UnauthorizedError: If the credential is wrong
        """
        if not username or not password:
            raise MissingCredentialsError("Please provide username and password")

        if not self._credentials_match(username, password):
            logger.warning("login_failed", username=username)
            raise UnauthorizedError("Invalid credentials")

        token = self._signer.sign(username.encode("utf-8")).decode("utf-8")
        logger.info("login_succeeded", username=username)
        return SessionToken(
            token=token,
            username=username,
            expires_in_seconds=self._ttl,
        )

    def verify(self, token: Optional[str]) -> str:
        """
        Check a session token and return the username it was issued to.

        Raises:
            UnauthorizedError: If the token is missing, tampered with or expired
        """
        if not token:
            raise UnauthorizedError("No token provided. Access denied.")
        try:
            raw = self._signer.unsign(token, max_age=self._ttl)
        except SignatureExpired:
            raise UnauthorizedError("Session expired. Please log in again.")
        except BadSignature:
            raise UnauthorizedError("Invalid or expired token")

        username = raw.decode("utf-8")
        if not hmac.compare_digest(username.encode(), self._username.encode()):
            # Signed for a username that is no longer configured
            raise UnauthorizedError("Invalid or expired token")
        return username
