"""Pydantic models for the authentication endpoints."""
from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field

Timestamp = int


def now_ms() -> Timestamp:
    return int(time.time() * 1000)


class _Expiring(BaseModel):
    expires_at: Timestamp = Field(default=0, description="Milliseconds since the epoch, 0 if unknown")

    def is_expired(self, now: Timestamp | None = None, *, skew_ms: int = 0) -> bool:
        """An ``expires_at`` of zero never expires."""
        if self.expires_at <= 0:
            return False
        current = now_ms() if now is None else now
        return current - skew_ms >= self.expires_at


class ChallengeRequest(BaseModel):
    public_key: str

    model_config = ConfigDict(extra="forbid")


class AuthChallenge(_Expiring):
    challenge: str = Field(min_length=1)
    public_key: str = ""

    model_config = ConfigDict(extra="ignore")


class VerifyRequest(BaseModel):
    challenge: str
    public_key: str
    signature: str

    model_config = ConfigDict(extra="forbid")


class AuthToken(_Expiring):
    token: str = Field(min_length=1)

    model_config = ConfigDict(extra="ignore")

    def __repr__(self) -> str:
        return f"AuthToken(token=<{len(self.token)} chars>, expires_at={self.expires_at})"

    __str__ = __repr__


__all__ = [
    "AuthChallenge",
    "AuthToken",
    "ChallengeRequest",
    "Timestamp",
    "VerifyRequest",
    "now_ms",
]
