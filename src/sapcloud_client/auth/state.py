"""Handshake states, outcomes and events."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..exceptions import SapCloudError
from ..models import AuthToken


class AuthState(str, Enum):
    IDLE = "idle"
    KEY_MATERIAL_READY = "key_material_ready"
    CHALLENGE_REQUESTED = "challenge_requested"
    CHALLENGE_RECEIVED = "challenge_received"
    SIGNED = "signed"
    VERIFY_REQUESTED = "verify_requested"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (AuthState.AUTHENTICATED, AuthState.FAILED)

    @property
    def in_flight(self) -> bool:
        return self is not AuthState.IDLE and not self.is_terminal


class AuthEventKind(str, Enum):
    STATE_CHANGED = "state_changed"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class AuthEvent:
    kind: AuthEventKind
    state: AuthState
    message: str = ""
    token: Optional[AuthToken] = None


@dataclass(frozen=True, slots=True)
class AuthOutcome:
    """Result of one ``authenticate()`` call."""

    state: AuthState
    token: Optional[AuthToken] = None
    error: Optional[SapCloudError] = None

    @property
    def succeeded(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    @property
    def error_kind(self) -> str | None:
        return type(self.error).__name__ if self.error is not None else None

    @property
    def reason(self) -> str | None:
        return str(self.error) if self.error is not None else None

    def as_dict(self) -> dict[str, object]:
        return {
            "state": self.state.value,
            "authenticated": self.succeeded,
            "expires_at": self.token.expires_at if self.token else None,
            "error_kind": self.error_kind,
            "reason": self.reason,
        }


__all__ = ["AuthEvent", "AuthEventKind", "AuthOutcome", "AuthState"]
