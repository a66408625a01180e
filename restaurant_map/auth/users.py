from __future__ import annotations

from typing import Any

import bcrypt

# (username, password, role, plan)
DEMO_USERS: tuple[tuple[str, str, str, str], ...] = (
    ("user", "user123", "user", "free"),
    ("premium", "premium123", "user", "premium"),
    ("admin", "admin123", "admin", "premium"),
)

_users: dict[str, dict[str, Any]] = {}


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _seed_users() -> None:
    for username, password, role, plan in DEMO_USERS:
        _users[username] = {
            "password_hash": _hash_password(password),
            "role": role,
            "plan": plan,
        }


def _public(username: str, record: dict[str, Any]) -> dict[str, Any]:
    return {"username": username, "role": record["role"], "plan": record["plan"]}


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{username, role, plan}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return _public(username, record)
    return None


def get_user(username: str) -> dict[str, Any] | None:
    """Current account state, without the password hash."""
    record = _users.get(username)
    return _public(username, record) if record else None


def set_plan(username: str, plan: str) -> None:
    """Move a user to another billing plan (upgrade / downgrade)."""
    record = _users.get(username)
    if record is None:
        raise KeyError(username)
    record["plan"] = plan


def get_plan(username: str) -> str | None:
    user = get_user(username)
    return user["plan"] if user else None


_seed_users()
