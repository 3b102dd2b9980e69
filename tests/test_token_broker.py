import asyncio
import json

import httpx
import pytest

from walkman.errors import CredentialError
from walkman.token_broker import TokenBroker, mint_session


SESSION_BODY = {
    "id": "sess_001",
    "object": "realtime.session",
    "model": "gpt-4o-realtime-preview-2024-12-17",
    "client_secret": {"value": "ek_abc123", "expires_at": 1735689600},
}


def test_mints_with_server_key(config):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=SESSION_BODY)

    broker = TokenBroker(config, transport=httpx.MockTransport(handler))
    assert asyncio.run(broker.request_credential()) == "ek_abc123"

    request = requests[0]
    assert request.method == "POST"
    assert str(request.url) == config.sessions_url
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert json.loads(request.content) == {"model": config.model, "voice": "verse"}


def test_fetches_from_token_service(config):
    config.token_url = "http://localhost:3000/token"
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"client_secret": {"value": "ek_from_service"}})

    broker = TokenBroker(config, transport=httpx.MockTransport(handler))
    assert asyncio.run(broker.request_credential()) == "ek_from_service"
    assert requests[0].method == "GET"
    assert "Authorization" not in requests[0].headers


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "Failed to generate token"}),
        httpx.Response(200, text="<html>oops</html>"),
        httpx.Response(200, json={"client_secret": {}}),
        httpx.Response(200, json={"error": {"message": "invalid model"}}),
    ],
)
def test_bad_responses_raise_credential_error(config, response):
    broker = TokenBroker(config, transport=httpx.MockTransport(lambda request: response))
    with pytest.raises(CredentialError):
        asyncio.run(broker.request_credential())


def test_transport_failure_raises_credential_error(config):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    broker = TokenBroker(config, transport=httpx.MockTransport(handler))
    with pytest.raises(CredentialError):
        asyncio.run(broker.request_credential())


def test_missing_api_key(config):
    config.api_key = None
    with pytest.raises(CredentialError):
        asyncio.run(TokenBroker(config).request_credential())


def test_mint_session_relays_body(config):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=SESSION_BODY))
    assert asyncio.run(mint_session(config, transport=transport)) == SESSION_BODY
