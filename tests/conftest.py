"""Shared pytest fixtures and configuration for bridge tests."""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from supernavi_bridge.config import BridgeConfig, BridgeSettings, ConfigStore
from supernavi_bridge.engine import ResolutionEngine
from supernavi_bridge.models import BridgeResult

BASE_URL = "https://cloud.test"
AGENT_ID = "agent-1"
EDGE_PREFIX = f"/api/ui-bridge/edge/{AGENT_ID}/proxy"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ApiStub:
    """Routes requests by (method, path) and records every request seen.

    A route is either a static (status, json) response or a callable taking
    the request and returning an httpx.Response (sync or async). Unrouted
    requests answer 404.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.requests: List[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        handler: Optional[Callable] = None,
    ) -> None:
        self.routes[(method, path)] = handler or (status, json)

    def add_delayed(self, method: str, path: str, delay: float, json: Any = None) -> None:
        async def handler(request):
            await asyncio.sleep(delay)
            return httpx.Response(200, json=json or {})

        self.add(method, path, handler=handler)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "unrouted"})
        if callable(route):
            response = route(request)
            if asyncio.iscoroutine(response):
                response = await response
            return response
        status, body = route
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def calls(self, path_prefix: str = "") -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith(path_prefix)]

    def cloud_calls(self) -> List[httpx.Request]:
        return [r for r in self.requests if "/api/ui-bridge/edge/" not in r.url.path]

    def edge_calls(self) -> List[httpx.Request]:
        return self.calls("/api/ui-bridge/edge/")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def api():
    return ApiStub()


@pytest.fixture
def settings():
    return BridgeSettings(
        api_base_url=BASE_URL,
        cache_ttl_seconds=30.0,
        edge_timeout_seconds=0.05,
        request_timeout_seconds=5.0,
        viewer_link_cooldown_seconds=2.0,
    )


@pytest.fixture
def config_store():
    """Config with a paired device and no resolved edge agent."""
    return ConfigStore(BridgeConfig(api_base_url=BASE_URL, device_token="dev-token"))


@pytest.fixture
def edge_config_store():
    """Config with a paired device and an already resolved edge agent."""
    return ConfigStore(
        BridgeConfig(api_base_url=BASE_URL, device_token="dev-token", edge_agent_id=AGENT_ID)
    )


@pytest.fixture
def engine(settings, config_store, api, clock):
    return ResolutionEngine.from_settings(
        settings, config_store=config_store, transport=api.transport, clock=clock
    )


@pytest.fixture
def edge_engine(settings, edge_config_store, api, clock):
    return ResolutionEngine.from_settings(
        settings, config_store=edge_config_store, transport=api.transport, clock=clock
    )


@pytest.fixture
def delivered():
    """List that the recording sink appends delivered results to."""
    return []


@pytest.fixture
def sink(delivered):
    async def record(result: BridgeResult) -> None:
        delivered.append(result)

    return record


@pytest.fixture
def status_payload():
    return {
        "readySlides": [{"slideId": "s1", "filename": "AP000123-1.svs", "label": 1}],
        "processingSlides": [],
    }
