from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    # Optional so that a missing value is reported as a 400, not a 422
    username: Optional[str] = None
    password: Optional[str] = None


class BulkDeleteRequest(BaseModel):
    ids: List[str] = Field(default_factory=list)


def ok(data: Any = None, message: Optional[str] = None, **extra: Any) -> dict:
    """Success body: ``{"success": true, "message": ..., "data": ...}``."""
    body: dict = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def fail(message: str, error: Optional[str] = None) -> dict:
    """Error body: ``{"success": false, "message": ..., "error": ...}``."""
    body: dict = {"success": False, "message": message}
    if error:
        body["error"] = error
    return body
