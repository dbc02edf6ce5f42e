"""Shared fixtures: fake clock, fake sleep, and a client wired to httpx.MockTransport."""

from __future__ import annotations

import asyncio
import json
from typing import Callable

import httpx
import pytest

from semrush_mcp.core.cache import ResponseCache
from semrush_mcp.core.client import SemrushClient
from semrush_mcp.core.rate_limiter import RateLimiter

API_KEY = "0123456789abcdef0123456789abcdef"


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += float(seconds)


class FakeSleep:
    """Advances the fake clock instead of waiting, and records each call."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        self.clock.advance(seconds)
        await asyncio.sleep(0)


class Upstream:
    """Records requests and answers them with a configurable handler."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, text="Keyword;Search Volume\nseo;110000"
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last_params(self) -> dict[str, str]:
        return dict(self.requests[-1].url.params)

    def respond_json(self, status: int, body: dict) -> None:
        self.handler = lambda request: httpx.Response(
            status, content=json.dumps(body), headers={"Content-Type": "application/json"}
        )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_sleep(clock) -> FakeSleep:
    return FakeSleep(clock)


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def make_client(upstream, clock, fake_sleep):
    def _make(api_key: str = API_KEY, rate_limit: int = 10, ttl: float = 300) -> SemrushClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
        return SemrushClient(
            api_key,
            cache=ResponseCache(ttl_seconds=ttl, clock=clock),
            rate_limiter=RateLimiter(rate_limit=rate_limit, clock=clock, sleep=fake_sleep),
            http_client=http_client,
        )

    return _make


@pytest.fixture
def client(make_client) -> SemrushClient:
    return make_client()
