"""Authentication state machine and post-auth gating."""
from .events import AuthEventStream, EventSubscription
from .orchestrator import AuthOrchestrator
from .queue import PostAuthAction, PostAuthQueue
from .state import AuthEvent, AuthEventKind, AuthOutcome, AuthState

__all__ = [
    "AuthEvent",
    "AuthEventKind",
    "AuthEventStream",
    "AuthOrchestrator",
    "AuthOutcome",
    "AuthState",
    "EventSubscription",
    "PostAuthAction",
    "PostAuthQueue",
]
