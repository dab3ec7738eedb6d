"""Tests for the cloud and edge HTTP clients."""

import json

import httpx
import pytest

from supernavi_bridge.auth import DEVICE_TOKEN_HEADER, LEGACY_KEY_HEADER
from supernavi_bridge.clients import UNAVAILABLE, CloudClient, EdgeClient
from supernavi_bridge.config import BridgeConfig, ConfigStore
from supernavi_bridge.exceptions import ApiError, NotConfiguredError, TransportError
from supernavi_bridge.models import MutationOp

from conftest import AGENT_ID, BASE_URL, EDGE_PREFIX


@pytest.fixture
def cloud(config_store, api):
    return CloudClient(config_store, timeout=5.0, transport=api.transport)


@pytest.fixture
def edge(config_store, api):
    return EdgeClient(config_store, timeout=0.05, transport=api.transport)


class TestCloudClient:
    """Authenticated cloud calls and typed failures."""

    async def test_device_token_header_only_when_both_configured(self, api):
        store = ConfigStore(BridgeConfig(api_base_url=BASE_URL, device_token="tok", api_key="key"))
        client = CloudClient(store, transport=api.transport)
        api.add("GET", "/api/ui-bridge/me", json={"authenticated": True})

        await client.get_me()

        request = api.requests[0]
        assert request.headers[DEVICE_TOKEN_HEADER] == "tok"
        assert LEGACY_KEY_HEADER not in request.headers
        assert request.headers["Content-Type"] == "application/json"

    async def test_legacy_key_header(self, api):
        store = ConfigStore(BridgeConfig(api_base_url=BASE_URL, api_key="key"))
        client = CloudClient(store, transport=api.transport)
        api.add("GET", "/api/ui-bridge/me", json={})

        await client.get_me()

        assert api.requests[0].headers[LEGACY_KEY_HEADER] == "key"
        assert DEVICE_TOKEN_HEADER not in api.requests[0].headers

    async def test_not_configured_fails_without_io(self, api):
        client = CloudClient(ConfigStore(BridgeConfig(api_base_url=BASE_URL)), transport=api.transport)

        with pytest.raises(NotConfiguredError):
            await client.get_case_status("AP000123")
        assert api.requests == []

    @pytest.mark.parametrize("status,predicate", [
        (404, "is_not_found"),
        (410, "is_expired"),
        (429, "is_rate_limited"),
        (401, "is_unauthorized"),
    ])
    async def test_non_success_raises_api_error_with_status(self, cloud, api, status, predicate):
        api.add("GET", "/api/ui-bridge/cases/AP000123/status", status=status, json={"error": "x"})

        with pytest.raises(ApiError) as exc_info:
            await cloud.get_case_status("AP000123")

        assert exc_info.value.status == status
        assert getattr(exc_info.value, predicate)
        assert "error" in exc_info.value.body

    async def test_transport_failure_raises_transport_error(self, cloud, api):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        api.add("GET", "/api/ui-bridge/cases/AP000123/status", handler=refuse)

        with pytest.raises(TransportError):
            await cloud.get_case_status("AP000123")

    async def test_malformed_body_raises_transport_error(self, cloud, api):
        api.add(
            "GET", "/api/ui-bridge/cases/AP000123/status",
            handler=lambda request: httpx.Response(200, content=b"<html>"),
        )

        with pytest.raises(TransportError):
            await cloud.get_case_status("AP000123")

    async def test_mutation_body(self, cloud, api):
        api.add("POST", "/api/ui-bridge/cases/AP000123/attach", json={"ok": True})

        await cloud.mutate_binding(MutationOp.ATTACH, "AP000123", "s1", {"patientName": "X"})

        assert json.loads(api.requests[0].content) == {"slideId": "s1", "patientData": {"patientName": "X"}}

    async def test_viewer_link_requires_url(self, cloud, api):
        api.add("POST", "/api/ui-bridge/viewer-link", json={})

        with pytest.raises(TransportError):
            await cloud.create_viewer_link("s1")

    async def test_pairing_claim_is_unauthenticated(self, cloud, api):
        api.add(
            "POST", "/api/ui-bridge/pairing/claim",
            json={"deviceToken": "new-tok", "deviceId": "d1", "deviceName": "Lab PC"},
        )

        result = await cloud.claim_pairing_code("ABC123")

        assert result.device_token == "new-tok"
        request = api.requests[0]
        assert DEVICE_TOKEN_HEADER not in request.headers
        assert LEGACY_KEY_HEADER not in request.headers
        assert json.loads(request.content) == {"code": "ABC123"}

    async def test_slide_listings(self, cloud, api):
        api.add("GET", "/api/ui-bridge/slides/unlinked", json={"slides": [{"slideId": "u1"}]})
        api.add("GET", "/api/v1/slides/ready", json={})

        assert await cloud.list_unlinked_slides() == [{"slideId": "u1"}]
        assert await cloud.list_ready_slides() == []

    async def test_bindings(self, cloud, api):
        api.add("GET", "/api/v1/bindings/AP000123", json={"bindings": [{"slideId": "s1"}]})
        api.add("POST", "/api/v1/bindings", json={"id": "b1"})

        assert await cloud.get_bindings("AP000123") == [{"slideId": "s1"}]
        assert await cloud.create_binding("AP000123", "s1") == {"id": "b1"}
        assert json.loads(api.requests[1].content) == {"pathowebRef": "AP000123", "slideId": "s1"}


class TestEdgeClient:
    """Edge calls never raise; every failure is UNAVAILABLE."""

    async def test_no_agent_means_no_io(self, edge, api):
        assert await edge.fetch_case_status(None, "AP000123") is UNAVAILABLE
        assert api.requests == []

    async def test_no_credential_means_no_io(self, api):
        edge = EdgeClient(ConfigStore(BridgeConfig(api_base_url=BASE_URL)), transport=api.transport)

        assert await edge.fetch_case_status(AGENT_ID, "AP000123") is UNAVAILABLE
        assert api.requests == []

    async def test_success_goes_through_tunnel(self, edge, api):
        api.add("GET", f"{EDGE_PREFIX}/cases/AP000123/status", json={"readySlides": []})

        payload = await edge.fetch_case_status(AGENT_ID, "AP000123")

        assert payload == {"readySlides": []}
        assert api.requests[0].headers[DEVICE_TOKEN_HEADER] == "dev-token"

    async def test_timeout_is_unavailable(self, edge, api):
        api.add_delayed("GET", f"{EDGE_PREFIX}/cases/AP000123/status", delay=1.0)

        assert await edge.fetch_case_status(AGENT_ID, "AP000123") is UNAVAILABLE

    async def test_non_success_is_unavailable(self, edge, api):
        api.add("GET", f"{EDGE_PREFIX}/cases/AP000123/status", status=502, json={})

        assert await edge.fetch_case_status(AGENT_ID, "AP000123") is UNAVAILABLE

    async def test_transport_error_is_unavailable(self, edge, api):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        api.add("GET", f"{EDGE_PREFIX}/cases/AP000123/status", handler=refuse)

        assert await edge.fetch_case_status(AGENT_ID, "AP000123") is UNAVAILABLE

    @pytest.mark.parametrize("content", [b"not json", b"[1, 2]"])
    async def test_malformed_payload_is_unavailable(self, edge, api, content):
        api.add(
            "GET", f"{EDGE_PREFIX}/cases/AP000123/status",
            handler=lambda request: httpx.Response(200, content=content),
        )

        assert await edge.fetch_case_status(AGENT_ID, "AP000123") is UNAVAILABLE

    def test_unavailable_is_falsy(self):
        assert not UNAVAILABLE
