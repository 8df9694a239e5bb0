from __future__ import annotations

from typing import Optional

from fastapi import Header, Request

from sambhav.auth import CredentialGate, UnauthorizedError
from sambhav.orchestrator import RecordService


def get_service(request: Request) -> RecordService:
    return request.app.state.service


def get_gate(request: Request) -> CredentialGate:
    return request.app.state.gate


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> str:
    """Dependency for protected routes; returns the logged-in username."""
    token = bearer_token(authorization)
    if token is None:
        raise UnauthorizedError("No token provided. Access denied.")
    return get_gate(request).verify(token)
