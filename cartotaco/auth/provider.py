from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class AuthResult:
    user: dict[str, Any] | None = None
    error: str | None = None


class AuthProvider(ABC):
    """Answers "who is signed in?" for services that scope queries by user."""

    @abstractmethod
    async def get_current_user(self) -> AuthResult:
        ...


class StaticAuthProvider(AuthProvider):
    def __init__(self, user: dict[str, Any] | None) -> None:
        self._user = user

    async def get_current_user(self) -> AuthResult:
        if not self._user:
            return AuthResult(error="No user signed in")
        return AuthResult(user=self._user)


class SessionAuthProvider(AuthProvider):
    """Reads the user stored in a Starlette session by ``/auth/login``."""

    def __init__(self, session: Mapping[str, Any]) -> None:
        self._session = session

    async def get_current_user(self) -> AuthResult:
        user = self._session.get("user")
        if not user:
            return AuthResult(error="No user signed in")
        return AuthResult(user=user)


async def resolve_user(provider: AuthProvider | None) -> dict[str, Any] | None:
    """The signed-in user, or ``None`` when the provider reports any error."""
    if provider is None:
        return None
    result = await provider.get_current_user()
    if result.error or not result.user:
        return None
    return result.user
