from __future__ import annotations

from typing import Any

import bcrypt

# Demo accounts seeded into every directory
DEMO_USERS = {
    "taco_fan": ("salsa123", "user"),
    "admin": ("admin123", "admin"),
}


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


class UserDirectory:
    """Username/password accounts held in memory with bcrypt hashes."""

    def __init__(self, seed_demo: bool = True) -> None:
        self._users: dict[str, dict[str, Any]] = {}
        if seed_demo:
            for username, (password, role) in DEMO_USERS.items():
                self._users[username] = {"password_hash": _hash_password(password), "role": role}

    def _public(self, username: str) -> dict[str, Any]:
        return {"id": username, "username": username, "role": self._users[username]["role"]}

    def register(self, username: str, password: str, role: str = "user") -> dict[str, Any] | None:
        """Create an account. Returns ``None`` if the username is taken."""
        if username in self._users:
            return None
        self._users[username] = {"password_hash": _hash_password(password), "role": role}
        return self._public(username)

    def authenticate(self, username: str, password: str) -> dict[str, Any] | None:
        """Verify credentials. Returns ``{id, username, role}`` or ``None``."""
        record = self._users.get(username)
        if record and _verify_password(password, record["password_hash"]):
            return self._public(username)
        return None
