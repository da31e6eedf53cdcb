"""Challenge-response handshake against the SapCloud API.

The handshake is an explicit state machine::

    IDLE -> KEY_MATERIAL_READY -> CHALLENGE_REQUESTED -> CHALLENGE_RECEIVED
         -> SIGNED -> VERIFY_REQUESTED -> AUTHENTICATED

with a transition to FAILED from any state, IDLE included when the key step
fails. Only the two transport calls suspend; everything else runs
synchronously on the event loop, so the state is always advanced past IDLE
before another coroutine can observe it.
"""
from __future__ import annotations

from typing import Callable

import structlog

from ..config import AppConfig, AuthConfig, IdentityConfig
from ..crypto.keystore import KeyStore
from ..crypto.signer import Signer
from ..exceptions import (
    HandshakeAbortedError,
    HandshakeInProgressError,
    NetworkError,
    ProtocolError,
    SapCloudError,
)
from ..models import AuthChallenge, AuthToken, Timestamp, now_ms
from ..transport.base import AuthTransport
from .events import AuthEventStream
from .queue import PostAuthAction, PostAuthQueue
from .state import AuthEvent, AuthEventKind, AuthOutcome, AuthState

logger = structlog.get_logger(__name__)


class AuthOrchestrator:
    """Drives the device-key handshake and gates deferred post-auth work.

    Every attempt ends in ``AUTHENTICATED`` or ``FAILED`` and each state,
    terminal ones included, is published as a ``STATE_CHANGED`` event. A
    failure while loading or creating the identity goes straight from
    ``IDLE`` to ``FAILED``. If the awaiting task is cancelled, or something
    other than a :class:`SapCloudError` escapes, the attempt is recorded as
    ``FAILED`` with a :class:`HandshakeAbortedError` before the exception
    propagates, so a later call can retry.
    """

    def __init__(
        self,
        key_store: KeyStore,
        transport: AuthTransport,
        *,
        identity: IdentityConfig,
        auth: AuthConfig | None = None,
        events: AuthEventStream | None = None,
        clock: Callable[[], Timestamp] = now_ms,
    ) -> None:
        self._key_store = key_store
        self._transport = transport
        self._identity = identity
        self._auth = auth or AuthConfig()
        self._events = events or AuthEventStream()
        self._clock = clock
        self._signer = Signer(key_store)
        self._queue = PostAuthQueue()
        self._state = AuthState.IDLE
        self._token: AuthToken | None = None
        self._error: SapCloudError | None = None

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        transport: AuthTransport,
        *,
        key_store: KeyStore | None = None,
        events: AuthEventStream | None = None,
    ) -> "AuthOrchestrator":
        return cls(
            key_store or KeyStore(comment=config.identity.comment),
            transport,
            identity=config.identity,
            auth=config.auth,
            events=events,
        )

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def token(self) -> AuthToken | None:
        return self._token

    @property
    def error(self) -> SapCloudError | None:
        return self._error

    @property
    def events(self) -> AuthEventStream:
        return self._events

    @property
    def pending_actions(self) -> int:
        return len(self._queue)

    @property
    def is_authenticated(self) -> bool:
        if self._state is not AuthState.AUTHENTICATED or self._token is None:
            return False
        if self._auth.enforce_expiry:
            return not self._token.is_expired(self._clock(), skew_ms=self._skew_ms)
        return True

    def defer(self, action: PostAuthAction) -> None:
        """Queue ``action`` to run once the next handshake succeeds."""
        self._queue.append(action)

    async def authenticate(self) -> AuthOutcome:
        """Run one complete handshake.

        Handshake failures never raise; they end in ``FAILED`` and are reported
        through the returned outcome and the event stream. Cancellation is
        re-raised after the attempt has been marked ``FAILED``.

        Raises:
            HandshakeInProgressError: If a handshake is already running.
        """
        if self._state.in_flight:
            raise HandshakeInProgressError(
                f"Handshake already in progress (state={self._state.value})"
            )
        self._reset()

        try:
            public_key = self._prepare_key_material()
            challenge = await self._request_challenge(public_key)
            signature = self._sign(challenge)
            token = await self._verify(challenge, public_key, signature)
            return await self._complete(token)
        except SapCloudError as exc:
            return self._fail(exc)
        except BaseException as exc:
            if not self._state.is_terminal:
                self._fail(HandshakeAbortedError(f"Handshake interrupted: {type(exc).__name__}"))
            raise

    # ----- Steps -----
    def _prepare_key_material(self) -> str:
        created = self._key_store.ensure_identity(
            self._identity.key_path, self._identity.passphrase_bytes()
        )
        if created:
            logger.info("auth.identity.generated", path=str(self._identity.key_path))
        public_key = self._key_store.get_public_key_string()
        self._transition(AuthState.KEY_MATERIAL_READY)
        return public_key

    async def _request_challenge(self, public_key: str) -> AuthChallenge:
        self._transition(AuthState.CHALLENGE_REQUESTED)
        try:
            challenge = await self._transport.request_challenge(public_key)
        except SapCloudError:
            raise
        except Exception as exc:
            raise NetworkError(f"Challenge request failed: {exc}") from exc
        if not isinstance(challenge, AuthChallenge) or not challenge.challenge:
            raise ProtocolError("Malformed challenge response")
        self._transition(AuthState.CHALLENGE_RECEIVED)
        return challenge

    def _sign(self, challenge: AuthChallenge) -> str:
        if self._auth.enforce_expiry and challenge.is_expired(self._clock(), skew_ms=self._skew_ms):
            raise ProtocolError(f"Challenge expired at {challenge.expires_at}")
        signature = self._signer.sign_challenge(challenge.challenge)
        self._transition(AuthState.SIGNED)
        return signature

    async def _verify(self, challenge: AuthChallenge, public_key: str, signature: str) -> AuthToken:
        self._transition(AuthState.VERIFY_REQUESTED)
        try:
            token = await self._transport.verify_challenge(challenge.challenge, public_key, signature)
        except SapCloudError:
            raise
        except Exception as exc:
            raise NetworkError(f"Verify request failed: {exc}") from exc
        if not isinstance(token, AuthToken) or not token.token:
            raise ProtocolError("Server returned an empty token")
        return token

    async def _complete(self, token: AuthToken) -> AuthOutcome:
        self._transport.set_token(token.token)
        self._token = token
        self._transition(AuthState.AUTHENTICATED)
        logger.info("auth.authenticated", token_length=len(token.token), expires_at=token.expires_at)
        self._events.publish(
            AuthEvent(AuthEventKind.AUTHENTICATED, self._state, "Authenticated successfully", token)
        )
        await self._queue.drain()
        return AuthOutcome(state=self._state, token=token)

    def _fail(self, error: SapCloudError) -> AuthOutcome:
        failed_in = self._state
        self._error = error
        self._transition(AuthState.FAILED)
        logger.warning(
            "auth.failed",
            failed_in=failed_in.value,
            error_kind=type(error).__name__,
            reason=str(error),
            pending_actions=len(self._queue),
        )
        self._events.publish(AuthEvent(AuthEventKind.FAILED, self._state, f"Authentication error: {error}"))
        return AuthOutcome(state=self._state, error=error)

    # ----- Helpers -----
    def _reset(self) -> None:
        self._state = AuthState.IDLE
        self._error = None
        if self._token is not None:
            self._token = None
            self._transport.set_token(None)

    def _transition(self, state: AuthState) -> None:
        logger.debug("auth.state", previous=self._state.value, state=state.value)
        self._state = state
        self._events.publish(AuthEvent(AuthEventKind.STATE_CHANGED, state))

    @property
    def _skew_ms(self) -> int:
        return int(self._auth.clock_skew_seconds * 1000)


__all__ = ["AuthOrchestrator"]
