import json

import httpx
import pytest

from sapcloud_client.config import ServerConfig
from sapcloud_client.exceptions import NetworkError, ProtocolError
from sapcloud_client.transport import HttpTransport


def _transport(handler) -> HttpTransport:
    config = ServerConfig(url="http://cloud.test")
    client = httpx.AsyncClient(base_url=config.url, transport=httpx.MockTransport(handler))
    return HttpTransport(config, client=client)


@pytest.mark.asyncio
async def test_request_challenge_posts_public_key() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200, json={"challenge": "Y2hhbGxlbmdl", "public_key": "ssh-ed25519 AAAA x", "expires_at": 1700000000000}
        )

    transport = _transport(handler)
    challenge = await transport.request_challenge("ssh-ed25519 AAAA x")

    assert challenge.challenge == "Y2hhbGxlbmdl"
    assert challenge.expires_at == 1700000000000
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/api/v1/auth/challenge"
    assert json.loads(request.content) == {"public_key": "ssh-ed25519 AAAA x"}
    assert "authorization" not in request.headers


@pytest.mark.asyncio
async def test_verify_returns_token_and_bearer_is_attached_afterwards() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("/auth/verify"):
            return httpx.Response(200, json={"token": "tok-1", "expires_at": 0})
        return httpx.Response(200, json=[])

    transport = _transport(handler)
    token = await transport.verify_challenge("Y2hhbGxlbmdl", "ssh-ed25519 AAAA x", "c2ln")
    assert token.token == "tok-1"
    assert json.loads(seen[0].content) == {
        "challenge": "Y2hhbGxlbmdl",
        "public_key": "ssh-ed25519 AAAA x",
        "signature": "c2ln",
    }

    transport.set_token(token.token)
    assert transport.is_authenticated
    await transport.request("GET", "files/")
    assert seen[-1].headers["authorization"] == "Bearer tok-1"
    assert seen[-1].url.path == "/api/v1/files/"

    transport.set_token(None)
    await transport.request("GET", "files/")
    assert "authorization" not in seen[-1].headers


@pytest.mark.asyncio
async def test_server_rejection_is_protocol_error() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "invalid signature"})

    with pytest.raises(ProtocolError, match="invalid signature") as excinfo:
        await _transport(handler).verify_challenge("Y2hhbGxlbmdl", "k", "s")
    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [b"not json", b"{}", b'{"challenge": ""}', b'{"challenge": "abc", "expires_at": "soon"}'],
)
async def test_malformed_challenge_is_protocol_error(body: bytes) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body)

    with pytest.raises(ProtocolError):
        await _transport(handler).request_challenge("k")


@pytest.mark.asyncio
async def test_connection_failure_is_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError):
        await _transport(handler).request_challenge("k")


@pytest.mark.asyncio
async def test_owned_client_is_closed() -> None:
    async with HttpTransport(ServerConfig(url="http://cloud.test")) as transport:
        assert transport.token is None
    assert transport._client.is_closed
