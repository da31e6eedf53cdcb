"""Transport abstraction consumed by the authentication orchestrator."""
from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import AuthChallenge, AuthToken


class AuthTransport(ABC):
    """Asynchronous request/response channel to the two authentication endpoints."""

    @abstractmethod
    async def request_challenge(self, public_key: str) -> AuthChallenge:  # pragma: no cover - interface
        ...

    @abstractmethod
    async def verify_challenge(
        self, challenge: str, public_key: str, signature: str
    ) -> AuthToken:  # pragma: no cover - interface
        ...

    @abstractmethod
    def set_token(self, token: str | None) -> None:  # pragma: no cover - interface
        """Install (or clear) the bearer credential for subsequent requests."""


__all__ = ["AuthTransport"]
