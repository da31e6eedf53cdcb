"""httpx-based transport for the SapCloud REST API."""
from __future__ import annotations

from typing import Any, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from ..config import ServerConfig
from ..exceptions import NetworkError, ProtocolError
from ..models import AuthChallenge, AuthToken, ChallengeRequest, VerifyRequest
from .base import AuthTransport

CHALLENGE_ENDPOINT = "auth/challenge"
VERIFY_ENDPOINT = "auth/verify"

_ModelT = TypeVar("_ModelT", bound=BaseModel)

logger = structlog.get_logger(__name__)


class HttpTransport(AuthTransport):
    """Talks JSON to the API and attaches the bearer token once one is known.

    Usage:
        async with HttpTransport(config.server) as transport:
            challenge = await transport.request_challenge(public_key)
    """

    def __init__(self, config: ServerConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(
            base_url=config.url, timeout=config.timeout_seconds
        )
        self._owns_client = client is None
        self._token: str | None = None

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client:
            await self._client.aclose()

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def set_token(self, token: str | None) -> None:
        self._token = token or None

    async def request(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        """Send a request under the API prefix, with the bearer credential when set.

        Raises:
            NetworkError: If the server cannot be reached.
            ProtocolError: If the server answers with an error status.
        """
        headers = dict(kwargs.pop("headers", None) or {})
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        url = self._config.endpoint(endpoint)
        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise ProtocolError(
                f"{method} {url} failed with {status}: {_error_detail(exc.response)}",
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc
        return response

    async def request_challenge(self, public_key: str) -> AuthChallenge:
        body = ChallengeRequest(public_key=public_key)
        return await self._post_json(CHALLENGE_ENDPOINT, body, AuthChallenge)

    async def verify_challenge(self, challenge: str, public_key: str, signature: str) -> AuthToken:
        body = VerifyRequest(challenge=challenge, public_key=public_key, signature=signature)
        return await self._post_json(VERIFY_ENDPOINT, body, AuthToken)

    async def _post_json(self, endpoint: str, body: BaseModel, model: type[_ModelT]) -> _ModelT:
        response = await self.request("POST", endpoint, json=body.model_dump())
        try:
            return model.model_validate_json(response.content)
        except ValidationError as exc:
            raise ProtocolError(
                f"Malformed response from {endpoint}: {exc.error_count()} validation error(s)",
                status_code=response.status_code,
            ) from exc


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(payload, dict):
        for key in ("error", "detail", "message"):
            if payload.get(key):
                return str(payload[key])
    return response.reason_phrase


__all__ = ["CHALLENGE_ENDPOINT", "HttpTransport", "VERIFY_ENDPOINT"]
