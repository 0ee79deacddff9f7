from collections.abc import Callable

import httpx
import pytest

from assistant_gateway.client import BackendClient
from assistant_gateway.services.gateway import AssistantGateway
from assistant_gateway.services.rate_limiter import RateLimiter
from assistant_gateway.settings import Settings

BACKEND_URL = "http://backend.test"


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingHandler:
    """Routes mock backend requests by path and remembers what was sent."""

    def __init__(self, routes: dict[str, Callable[[httpx.Request], httpx.Response]]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": f"no route for {request.url.path}"})
        return route(request)


def build_backend_client(handler) -> BackendClient:  # noqa: ANN001
    client = httpx.AsyncClient(base_url=BACKEND_URL, transport=httpx.MockTransport(handler))
    return BackendClient(BACKEND_URL, client=client)


@pytest.fixture
def settings() -> Settings:
    return Settings(backend_url=BACKEND_URL, default_provider="auto")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_gateway(settings: Settings, clock: FakeClock):
    def _make(handler, **overrides) -> AssistantGateway:  # noqa: ANN001
        limiter = overrides.pop(
            "rate_limiter",
            RateLimiter(
                max_requests=settings.rate_limit_max_requests,
                window_seconds=settings.rate_limit_window_seconds,
                clock=clock,
            ),
        )
        return AssistantGateway(
            overrides.pop("settings", settings),
            client=build_backend_client(handler),
            rate_limiter=limiter,
            **overrides,
        )

    return _make
