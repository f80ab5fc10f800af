"""
Pytest configuration for ghapp_auth. A throwaway RSA key per session and an in-process fake
of the GitHub API (httpx.MockTransport), so tests never touch the network or a real app.
"""
import os

import httpx
import pytest
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import generate_private_key

from ghapp_auth.config import AppConfig

# Make sure a developer's real app credentials never leak into tests
for _name in ("GH_APP_ID", "GH_APP_KEY", "GH_API_URL", "GH_APP_HTTP_TIMEOUT", "GH_APP_USER_AGENT"):
    os.environ.pop(_name, None)


class FakeGitHub:
    """Routes (method, path) to canned responses and records every request it sees."""

    def __init__(self):
        self.routes: dict[tuple[str, str], object] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, json=None, headers=None) -> None:
        self.routes[(method, path)] = (status, json, headers or {})

    def add_handler(self, method: str, path: str, fn) -> None:
        self.routes[(method, path)] = fn

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(route):
            return route(request)
        status, body, headers = route
        if body is None:
            return httpx.Response(status, headers=headers)
        return httpx.Response(status, json=body, headers=headers)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str | None = None) -> list[tuple[str, str]]:
        return [
            (r.method, r.url.path)
            for r in self.requests
            if method is None or r.method == method
        ]


@pytest.fixture(scope="session")
def rsa_key():
    return generate_private_key(65537, 2048, default_backend())


@pytest.fixture(scope="session")
def rsa_pem(rsa_key) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture
def config(rsa_pem) -> AppConfig:
    return AppConfig(app_id="87942", private_key=rsa_pem, api_url="https://api.github.test")


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()
