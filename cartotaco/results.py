from __future__ import annotations

from typing import Any

from pydantic import BaseModel

NOT_AUTHENTICATED = "Not authenticated"


class ServiceResult(BaseModel):
    success: bool
    data: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "ServiceResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ServiceResult":
        return cls(success=False, error=error)
