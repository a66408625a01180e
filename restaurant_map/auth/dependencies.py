from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request


def _session_user(request: Request) -> dict[str, Any] | None:
    return request.session.get("user")


def get_current_user_id(request: Request) -> str | None:
    """Customer id for billing checks: the session username, or ``None``
    for anonymous map requests."""
    user = _session_user(request)
    return user.get("username") if user else None


def require_user(request: Request) -> dict[str, Any]:
    """Catalogue edits need a logged-in user (401 otherwise)."""
    user = _session_user(request)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_admin(request: Request) -> dict[str, Any]:
    """Index maintenance, ingestion and analytics: 401 if anonymous, 403 if
    not an admin."""
    user = require_user(request)
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
