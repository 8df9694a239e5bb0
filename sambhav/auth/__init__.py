"""Authentication package."""

from sambhav.auth.credentials import (
    AuthError,
    CredentialGate,
    MissingCredentialsError,
    SessionToken,
    UnauthorizedError,
)

__all__ = [
    "AuthError",
    "CredentialGate",
    "MissingCredentialsError",
    "SessionToken",
    "UnauthorizedError",
]
