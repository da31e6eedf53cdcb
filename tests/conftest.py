from __future__ import annotations

import base64
from pathlib import Path
from typing import List, Optional

import pytest

from sapcloud_client.config import AppConfig, AuthConfig, IdentityConfig
from sapcloud_client.crypto import KeyStore, parse_public_key, verify_signature
from sapcloud_client.exceptions import ProtocolError, SapCloudError
from sapcloud_client.models import AuthChallenge, AuthToken
from sapcloud_client.transport import AuthTransport

CHALLENGE_B64 = "Y2hhbGxlbmdl"  # base64("challenge")


class MockServerTransport(AuthTransport):
    """In-memory stand-in for the SapCloud auth endpoints.

    Issues ``challenge`` for every request and accepts a verify call only when
    the signature checks out against the submitted public key.
    """

    def __init__(
        self,
        *,
        challenge: str = CHALLENGE_B64,
        challenge_error: Optional[SapCloudError] = None,
        verify_error: Optional[SapCloudError] = None,
        expires_at: int = 0,
        token: str = "session-token-123",
    ) -> None:
        self.challenge = challenge
        self.challenge_error = challenge_error
        self.verify_error = verify_error
        self.expires_at = expires_at
        self.token_value = token
        self.challenge_calls: List[str] = []
        self.verify_calls: List[tuple[str, str, str]] = []
        self.bearer: Optional[str] = None
        self.hook = None

    async def request_challenge(self, public_key: str) -> AuthChallenge:
        self.challenge_calls.append(public_key)
        if self.hook is not None:
            await self.hook()
        if self.challenge_error is not None:
            raise self.challenge_error
        return AuthChallenge(challenge=self.challenge, public_key=public_key, expires_at=self.expires_at)

    async def verify_challenge(self, challenge: str, public_key: str, signature: str) -> AuthToken:
        self.verify_calls.append((challenge, public_key, signature))
        if self.verify_error is not None:
            raise self.verify_error
        key = parse_public_key(public_key).key
        try:
            verify_signature(key, base64.b64decode(challenge), base64.b64decode(signature))
        except SapCloudError as exc:
            raise ProtocolError("invalid signature", status_code=401) from exc
        return AuthToken(token=self.token_value, expires_at=0)

    def set_token(self, token: Optional[str]) -> None:
        self.bearer = token


@pytest.fixture
def key_path(tmp_path: Path) -> Path:
    return tmp_path / "keys" / "id_ed25519"


@pytest.fixture
def identity(key_path: Path) -> IdentityConfig:
    return IdentityConfig(key_path=key_path)


@pytest.fixture
def app_config(identity: IdentityConfig) -> AppConfig:
    return AppConfig(identity=identity, auth=AuthConfig())


@pytest.fixture
def key_store() -> KeyStore:
    return KeyStore()


@pytest.fixture
def loaded_store() -> KeyStore:
    store = KeyStore()
    store.generate_key_pair()
    return store


@pytest.fixture
def mock_transport() -> MockServerTransport:
    return MockServerTransport()


@pytest.fixture
def transport_factory():
    return MockServerTransport
