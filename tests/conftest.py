"""Shared test fixtures for powerschool_api.

Provides an in-memory token cache, a fake PowerSchool server driven through
:class:`httpx.MockTransport`, and ready-made credentials and clients.  These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Union

import httpx
import pytest

from powerschool_api.cache import TokenCache
from powerschool_api.client import PowerSchool
from powerschool_api.models import Credentials
from powerschool_api.output import reset_output

SERVER_ADDRESS = "https://district.powerschool.test"
TOKEN_PATH = "/oauth/access_token"

Reply = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, and Typer's CliRunner swaps those streams out.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Token cache
# ---------------------------------------------------------------------------


class FakeTokenCache(TokenCache):
    """In-memory :class:`TokenCache` that records every TTL it was given."""

    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self.values: dict[str, Any] = dict(initial or {})
        self.ttls: dict[str, Optional[int]] = {}
        self.forgotten: list[str] = []

    def get(self, key: str) -> Optional[Any]:
        return self.values.get(key)

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        self.values[key] = value
        self.ttls[key] = ttl

    def forget(self, key: str) -> None:
        self.forgotten.append(key)
        self.values.pop(key, None)


# ---------------------------------------------------------------------------
# Fake server
# ---------------------------------------------------------------------------


class FakeServer:
    """Scripted PowerSchool server.

    Token requests are answered with ``token-1``, ``token-2``, ... unless
    :attr:`token_reply` is set.  Every other request pops the next reply
    from :attr:`replies`; an empty queue answers ``200 {}``.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.replies: list[Reply] = []
        self.token_reply: Optional[Reply] = None
        self.tokens_issued = 0

    def queue(self, *replies: Reply) -> FakeServer:
        self.replies.extend(replies)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == TOKEN_PATH:
            if self.token_reply is not None:
                return _reply(self.token_reply, request)
            self.tokens_issued += 1
            return httpx.Response(
                200,
                json={
                    "access_token": f"token-{self.tokens_issued}",
                    "token_type": "Bearer",
                    "expires_in": "3600",
                },
            )
        if self.replies:
            return _reply(self.replies.pop(0), request)
        return httpx.Response(200, json={})

    @property
    def token_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == TOKEN_PATH]

    @property
    def api_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path != TOKEN_PATH]

    def client(self) -> httpx.Client:
        return httpx.Client(base_url=SERVER_ADDRESS, transport=httpx.MockTransport(self.handler))


def _reply(reply: Reply, request: httpx.Request) -> httpx.Response:
    if callable(reply):
        return reply(request)
    return reply


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        server_address=SERVER_ADDRESS,
        client_id="client-id",
        client_secret="client-secret",
        cache_key="powerschool_token",
    )


@pytest.fixture
def token_cache() -> FakeTokenCache:
    return FakeTokenCache()


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def ps(credentials: Credentials, token_cache: FakeTokenCache, server: FakeServer) -> PowerSchool:
    """A :class:`PowerSchool` client wired to the fake server and cache."""
    client = PowerSchool(credentials, cache=token_cache, http_client=server.client())
    yield client
    client.close()
