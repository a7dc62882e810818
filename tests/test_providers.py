"""Tests for DNS updaters."""

from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import pytest

from gnudip_gateway.config import ProviderConfig
from gnudip_gateway.models import RecordType
from gnudip_gateway.providers.aliyun import AliyunUpdater
from gnudip_gateway.providers.base import BaseUpdater, ProviderResult
from gnudip_gateway.providers.cloudflare import CF_API_BASE, CloudFlareUpdater
from gnudip_gateway.providers.tencent import TencentUpdater
from gnudip_gateway.providers.vultr import VULTR_API_BASE, VultrUpdater


class TestProviderResult:
    """Tests for ProviderResult class."""

    def test_success_result(self):
        result = ProviderResult(
            success=True,
            message="Record updated",
            record_id="abc123",
            request_id="req-xyz",
        )
        assert result.success is True
        assert result.message == "Record updated"
        assert result.record_id == "abc123"
        assert result.request_id == "req-xyz"

    def test_error_result(self):
        result = ProviderResult(success=False, message="Zone not found")
        assert result.success is False
        assert result.record_id is None
        assert "Zone not found" in repr(result)


class TestBaseUpdater:
    """Tests for BaseUpdater class."""

    @pytest.mark.parametrize(
        ("address", "expected"),
        [
            ("203.0.113.5", RecordType.A),
            ("0.0.0.0", RecordType.A),  # noqa: S104
            ("2001:db8::1", RecordType.AAAA),
        ],
    )
    def test_record_type_for(self, address, expected):
        assert BaseUpdater.record_type_for(address) == expected


def _recorder(handler):
    """Wrap a handler so the requests it sees are kept."""
    requests: list[httpx.Request] = []

    def _handle(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    return httpx.MockTransport(_handle), requests


class TestVultrUpdater:
    """Tests for VultrUpdater."""

    @pytest.fixture
    def config(self):
        return ProviderConfig(
            name="vultr",
            api_key="vultr-key",
            domain="example.com",
            record_id="rec-1",
        )

    @pytest.mark.asyncio
    async def test_update(self, config):
        transport, requests = _recorder(lambda _request: httpx.Response(204))

        result = await VultrUpdater(config, transport=transport).update("203.0.113.5")

        assert result.success is True
        assert result.record_id == "rec-1"
        request = requests[0]
        assert request.method == "PATCH"
        assert str(request.url) == f"{VULTR_API_BASE}/domains/example.com/records/rec-1"
        assert request.headers["authorization"] == "Bearer vultr-key"
        assert json.loads(request.content) == {"data": "203.0.113.5"}

    @pytest.mark.asyncio
    async def test_api_error(self, config):
        transport, _ = _recorder(
            lambda _request: httpx.Response(404, json={"error": "Record not found"}),
        )

        result = await VultrUpdater(config, transport=transport).update("203.0.113.5")

        assert result.success is False
        assert result.message == "Failed to update record: Record not found"

    @pytest.mark.asyncio
    async def test_api_error_without_body(self, config):
        transport, _ = _recorder(lambda _request: httpx.Response(502, text="Bad Gateway"))

        result = await VultrUpdater(config, transport=transport).update("203.0.113.5")

        assert result.success is False
        assert result.message == "Failed to update record: HTTP 502"

    @pytest.mark.asyncio
    async def test_network_error(self, config):
        def _fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = await VultrUpdater(config, transport=httpx.MockTransport(_fail)).update(
            "203.0.113.5",
        )

        assert result.success is False
        assert result.message.startswith("Request error:")


class TestCloudFlareUpdater:
    """Tests for CloudFlareUpdater."""

    @pytest.fixture
    def config(self):
        return ProviderConfig(
            name="cloudflare",
            api_key="cf-token",
            zone_id="zone-1",
            record_id="rec-1",
        )

    @pytest.mark.asyncio
    async def test_update(self, config):
        transport, requests = _recorder(
            lambda _request: httpx.Response(
                200,
                json={
                    "success": True,
                    "errors": [],
                    "result": {"id": "rec-1", "name": "home.example.com"},
                },
                headers={"cf-ray": "ray-1"},
            ),
        )

        result = await CloudFlareUpdater(config, transport=transport).update("2001:db8::1")

        assert result.success is True
        assert result.message == "DNS record updated for home.example.com"
        assert result.request_id == "ray-1"
        request = requests[0]
        assert request.method == "PATCH"
        assert str(request.url) == f"{CF_API_BASE}/zones/zone-1/dns_records/rec-1"
        assert request.headers["authorization"] == "Bearer cf-token"
        assert json.loads(request.content) == {"type": "AAAA", "content": "2001:db8::1"}

    @pytest.mark.asyncio
    async def test_api_error(self, config):
        transport, _ = _recorder(
            lambda _request: httpx.Response(
                403,
                json={"success": False, "errors": [{"code": 10000, "message": "Authentication error"}]},
            ),
        )

        result = await CloudFlareUpdater(config, transport=transport).update("203.0.113.5")

        assert result.success is False
        assert result.message == "Failed to update record: Authentication error"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [[], "proxy error", {"success": False, "errors": ["denied"]}, {"errors": {}}],
    )
    async def test_unexpected_json_shape(self, config, body):
        transport, _ = _recorder(lambda _request: httpx.Response(502, json=body))

        result = await CloudFlareUpdater(config, transport=transport).update("203.0.113.5")

        assert result.success is False
        assert result.message == "Failed to update record: Unknown error"

    @pytest.mark.asyncio
    async def test_success_without_result_object(self, config):
        transport, _ = _recorder(
            lambda _request: httpx.Response(200, json={"success": True, "result": None}),
        )

        result = await CloudFlareUpdater(config, transport=transport).update("203.0.113.5")

        assert result.success is True
        assert result.record_id == "rec-1"

    @pytest.mark.asyncio
    async def test_non_json_response(self, config):
        transport, _ = _recorder(lambda _request: httpx.Response(500, text="oops"))

        result = await CloudFlareUpdater(config, transport=transport).update("203.0.113.5")

        assert result.success is False
        assert result.message == "Failed to update record: Unknown error"


class FakeSDKError(Exception):
    """Exception carrying an SDK error code."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class FakeAlidnsClient:
    """Stand-in for the Alibaba Cloud DNS client."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.requests: list = []

    async def update_domain_record_with_options_async(self, request, runtime):
        self.requests.append((request, runtime))
        if self.error is not None:
            raise self.error
        return SimpleNamespace(body=SimpleNamespace(request_id="ali-req-1"))


class TestAliyunUpdater:
    """Tests for AliyunUpdater."""

    @pytest.fixture
    def updater(self):
        return AliyunUpdater(
            ProviderConfig(
                name="aliyun",
                access_key_id="id",
                access_key_secret="secret",
                record_id="rec-1",
                record="home",
                timeout=5,
            ),
        )

    @pytest.mark.asyncio
    async def test_update(self, updater, monkeypatch):
        client = FakeAlidnsClient()
        monkeypatch.setattr(updater, "_create_client", lambda: client)

        result = await updater.update("203.0.113.5")

        assert result.success is True
        assert result.request_id == "ali-req-1"
        request, runtime = client.requests[0]
        assert request.record_id == "rec-1"
        assert request.rr == "home"
        assert request.type == "A"
        assert request.value == "203.0.113.5"
        assert runtime.read_timeout == 5000  # noqa: PLR2004

    @pytest.mark.asyncio
    async def test_duplicate_record_is_success(self, updater, monkeypatch):
        client = FakeAlidnsClient(FakeSDKError("DomainRecordDuplicate", "The DNS record already exists."))
        monkeypatch.setattr(updater, "_create_client", lambda: client)

        result = await updater.update("203.0.113.5")

        assert result.success is True
        assert "unchanged" in result.message

    @pytest.mark.asyncio
    async def test_failure(self, updater, monkeypatch):
        client = FakeAlidnsClient(FakeSDKError("Forbidden.RAM", "User not authorized"))
        monkeypatch.setattr(updater, "_create_client", lambda: client)

        result = await updater.update("203.0.113.5")

        assert result.success is False
        assert "User not authorized" in result.message


class FakeDnspodClient:
    """Stand-in for the async Tencent Cloud DNSPod client."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.requests: list = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def ModifyRecord(self, request):  # noqa: N802
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(RequestId="tc-req-1")


class TestTencentUpdater:
    """Tests for TencentUpdater."""

    @pytest.fixture
    def updater(self):
        return TencentUpdater(
            ProviderConfig(
                name="tencent",
                access_key_id="id",
                access_key_secret="secret",
                domain="example.com",
                record_id="123",
                record="home",
            ),
        )

    @pytest.mark.asyncio
    async def test_update(self, updater, monkeypatch):
        client = FakeDnspodClient()
        monkeypatch.setattr(updater, "_create_client", lambda: client)

        result = await updater.update("2001:db8::1")

        assert result.success is True
        assert result.message == "DNS record updated for home.example.com"
        assert result.request_id == "tc-req-1"
        request = client.requests[0]
        assert request.Domain == "example.com"
        assert request.RecordId == 123  # noqa: PLR2004
        assert request.SubDomain == "home"
        assert request.RecordType == "AAAA"
        assert request.RecordLine == "默认"
        assert request.Value == "2001:db8::1"

    @pytest.mark.asyncio
    async def test_failure(self, updater, monkeypatch):
        client = FakeDnspodClient(FakeSDKError("AuthFailure", "Signature expired"))
        monkeypatch.setattr(updater, "_create_client", lambda: client)

        result = await updater.update("203.0.113.5")

        assert result.success is False
        assert "Signature expired" in result.message
