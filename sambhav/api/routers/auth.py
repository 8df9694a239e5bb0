from __future__ import annotations

from fastapi import APIRouter, Depends

from sambhav.api.deps import get_gate, require_user
from sambhav.api.schemas import LoginRequest, ok
from sambhav.auth import CredentialGate


router = APIRouter()


@router.post("/login", response_model=dict)
async def login(
    payload: LoginRequest,
    gate: CredentialGate = Depends(get_gate),
) -> dict:
    """Exchange the admin credential for a bearer token."""
    session = gate.login(payload.username, payload.password)
    return ok(
        message="Login successful",
        token=session.token,
        expires_in=f"{session.expires_in_days} days",
        expires_in_seconds=session.expires_in_seconds,
    )


@router.get("/verify", response_model=dict)
async def verify(user: str = Depends(require_user)) -> dict:
    """Lets the client check whether its stored token is still good."""
    return ok(message="Token is valid", user={"username": user})
