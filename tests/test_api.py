"""Tests for linkcollector.api module."""

from __future__ import annotations

import pytest

import linkcollector
from linkcollector.api import error_payload, handle_collect_request, success_payload
from linkcollector.config import CollectionOptions, ConfigurationError
from linkcollector.models import CrawlResult, CrawlStats, LinkRelationship


def _result() -> CrawlResult:
    return CrawlResult(
        initial_url="https://example.com/",
        depth=1,
        all_collected_urls=["https://example.com/a", "https://example.com/b"],
        link_relationships=[
            LinkRelationship("https://example.com/", "https://example.com/a"),
            LinkRelationship("https://example.com/", "https://example.com/b"),
        ],
        stats=CrawlStats(
            start_time="2024-01-01T00:00:00.000Z",
            end_time="2024-01-01T00:00:01.500Z",
            duration_ms=1500,
            total_urls_scanned=3,
            total_urls_collected=7,
        ),
    )


class TestPayloads:
    def test_success_payload(self):
        payload = success_payload(_result(), collected_at="2024-01-01T00:00:02.000Z")

        assert payload == {
            "success": True,
            "data": {
                "allCollectedUrls": ["https://example.com/a", "https://example.com/b"],
                "linkRelationships": [
                    {"source": "https://example.com/", "found": "https://example.com/a"},
                    {"source": "https://example.com/", "found": "https://example.com/b"},
                ],
                "stats": {
                    "totalPages": 2,
                    "totalLinks": 2,
                    "uniqueLinks": 2,
                    "processingTime": 1500,
                },
            },
            "collectedAt": "2024-01-01T00:00:02.000Z",
        }

    def test_collected_at_generated(self):
        payload = success_payload(_result())
        assert payload["collectedAt"].endswith("Z")

    def test_error_payload(self):
        assert error_payload("nope") == {"success": False, "error": "nope"}


class TestHandleCollectRequest:
    @pytest.mark.asyncio
    async def test_success(self, monkeypatch):
        captured = {}

        async def fake_collect(url, options, **kwargs):
            captured["url"] = url
            captured["options"] = options
            return _result()

        monkeypatch.setattr(linkcollector, "collect_with_options_async", fake_collect)

        status, payload = await handle_collect_request(
            {
                "url": "https://example.com",
                "selector": "main",
                "options": {"depth": 2, "delayMs": 10, "skipQueryUrls": True},
            }
        )

        assert status == 200
        assert payload["success"] is True
        assert payload["data"]["stats"]["totalPages"] == 2
        assert captured["url"] == "https://example.com"
        options = captured["options"]
        assert isinstance(options, CollectionOptions)
        assert options.selector == "main"
        assert options.depth == 2
        assert options.delay_ms == 10
        assert options.skip_query_urls is True

    @pytest.mark.asyncio
    async def test_missing_url(self):
        status, payload = await handle_collect_request({"options": {"depth": 1}})

        assert status == 400
        assert payload == {"success": False, "error": "URL is required"}

    @pytest.mark.asyncio
    async def test_body_not_object(self):
        status, payload = await handle_collect_request(["https://example.com"])

        assert status == 400
        assert payload["success"] is False

    @pytest.mark.asyncio
    async def test_invalid_options(self):
        status, payload = await handle_collect_request(
            {"url": "https://example.com", "options": {"depth": -2}}
        )

        assert status == 400
        assert "depth" in payload["error"]

    @pytest.mark.asyncio
    async def test_invalid_selector(self):
        status, payload = await handle_collect_request(
            {"url": "https://example.com", "selector": "div["}
        )

        assert status == 400
        assert "Invalid CSS selector" in payload["error"]

    @pytest.mark.asyncio
    async def test_invalid_seed(self):
        status, payload = await handle_collect_request({"url": "not-a-url"})

        assert status == 400
        assert payload["error"].startswith("Invalid seed URL")

    @pytest.mark.asyncio
    async def test_configuration_error_from_collection(self, monkeypatch):
        async def fake_collect(url, options, **kwargs):
            raise ConfigurationError("Invalid seed URL: x")

        monkeypatch.setattr(linkcollector, "collect_with_options_async", fake_collect)

        status, _ = await handle_collect_request({"url": "https://example.com"})

        assert status == 400

    @pytest.mark.asyncio
    async def test_unexpected_error(self, monkeypatch):
        async def fake_collect(url, options, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(linkcollector, "collect_with_options_async", fake_collect)

        status, payload = await handle_collect_request({"url": "https://example.com"})

        assert status == 500
        assert payload == {"success": False, "error": "disk on fire"}
