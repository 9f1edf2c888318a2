"""Shared fixtures: explicit settings and a fake PayPal API on httpx.MockTransport."""

import json
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient

from vaultrelay.common.config import RelaySettings
from vaultrelay.services.relay.main import create_app


class FakePayPal:
    """Records every outbound call and answers from a (method, path) table."""

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], httpx.Response] = {
            ("POST", "/v1/oauth2/token"): httpx.Response(
                200,
                json={"access_token": "A21-access", "id_token": "id-token-xyz", "expires_in": 32400},
            ),
        }

    def respond(self, method: str, path: str, status_code: int = 200, body=None) -> None:
        self.routes[(method, path)] = httpx.Response(status_code, json=body if body is not None else {})

    def respond_raw(self, method: str, path: str, status_code: int, content: str, content_type: str) -> None:
        self.routes[(method, path)] = httpx.Response(status_code, content=content.encode(), headers={"content-type": content_type})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"name": "RESOURCE_NOT_FOUND"})
        return httpx.Response(
            route.status_code,
            content=route.content,
            headers={"content-type": route.headers.get("content-type", "application/json")},
        )

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [c for c in self.calls if c.url.path == path]

    @staticmethod
    def form(request: httpx.Request) -> dict[str, str]:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}

    @staticmethod
    def json(request: httpx.Request) -> dict:
        return json.loads(request.content)


@pytest.fixture
def settings(tmp_path):
    return RelaySettings(
        _env_file=None,
        paypal_client_id="client-id-1234567890-abcdef",
        paypal_client_secret="client-secret",
        paypal_mode="sandbox",
        static_dir=str(tmp_path / "no-static"),
    )


@pytest.fixture
def paypal():
    return FakePayPal()


@pytest.fixture
def client(settings, paypal):
    app = create_app(settings, transport=paypal.transport())
    with TestClient(app) as c:
        yield c
