from __future__ import annotations

import json
import sys

import pytest

import linkcollector
from linkcollector import mcp_server
from linkcollector.config import ConfigurationError
from linkcollector.models import CrawlResult, CrawlStats, LinkRelationship

SEED = "https://example.com/"


def _tool(tool):
    # Depending on the FastMCP release the decorator returns the function or a tool object.
    return getattr(tool, "fn", tool)


def _result() -> CrawlResult:
    return CrawlResult(
        initial_url=SEED,
        depth=1,
        all_collected_urls=["https://example.com/a"],
        link_relationships=[LinkRelationship(SEED, "https://example.com/a")],
        stats=CrawlStats(
            start_time="2024-01-01T00:00:00.000Z",
            end_time="2024-01-01T00:00:00.100Z",
            duration_ms=100,
            total_urls_scanned=1,
            total_urls_collected=1,
        ),
    )


class _FakeRequest:
    def __init__(self, body=None, raw: bytes | None = None):
        self._body = body
        self._raw = raw

    async def json(self):
        if self._raw is not None:
            return json.loads(self._raw)
        return self._body


@pytest.mark.asyncio
async def test_collect_links_tool_json(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict = {}

    async def fake_collect_links_async(url, **kwargs):
        captured["url"] = url
        captured.update(kwargs)
        return _result()

    monkeypatch.setattr(linkcollector, "collect_links_async", fake_collect_links_async)

    output = await _tool(mcp_server.collect_links)(
        url=SEED,
        selector="main",
        depth=2,
        delay_ms=0,
        filters=[{"domain": "example.com"}],
        scope_policy="all",
    )

    data = json.loads(output)
    assert data["allCollectedUrls"] == ["https://example.com/a"]
    assert captured["url"] == SEED
    assert captured["selector"] == "main"
    assert captured["depth"] == 2
    assert captured["delay_ms"] == 0
    assert captured["scope_policy"] == "all"
    assert captured["auth"] is None


@pytest.mark.asyncio
async def test_collect_links_tool_default_delay(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict = {}

    async def fake_collect_links_async(url, **kwargs):
        captured.update(kwargs)
        return _result()

    monkeypatch.setattr(linkcollector, "collect_links_async", fake_collect_links_async)
    monkeypatch.setenv("LINKCOLLECTOR_DELAY_MS", "333")

    await _tool(mcp_server.collect_links)(url=SEED)

    assert captured["delay_ms"] == 333


@pytest.mark.asyncio
async def test_collect_links_tool_text(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_collect_links_async(url, **kwargs):
        return _result()

    monkeypatch.setattr(linkcollector, "collect_links_async", fake_collect_links_async)

    output = await _tool(mcp_server.collect_links)(url=SEED, output_format="TEXT")

    lines = output.splitlines()
    assert lines[0] == "https://example.com/a"
    assert lines[-1].startswith("1 pages scanned")


@pytest.mark.asyncio
async def test_collect_links_tool_invalid_request(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_collect_links_async(url, **kwargs):
        raise ConfigurationError("Invalid seed URL: nope")

    monkeypatch.setattr(linkcollector, "collect_links_async", fake_collect_links_async)

    output = await _tool(mcp_server.collect_links)(url="nope")

    assert json.loads(output) == {"error": "Invalid seed URL: nope", "url": "nope"}


@pytest.mark.asyncio
async def test_endpoint_success(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_collect(url, options, **kwargs):
        return _result()

    monkeypatch.setattr(linkcollector, "collect_with_options_async", fake_collect)

    response = await mcp_server.collect_links_endpoint(_FakeRequest({"url": SEED}))

    assert response.status_code == 200
    body = json.loads(response.body)
    assert body["success"] is True
    assert body["data"]["stats"]["totalPages"] == 1


@pytest.mark.asyncio
async def test_endpoint_missing_url() -> None:
    response = await mcp_server.collect_links_endpoint(_FakeRequest({"selector": "a"}))

    assert response.status_code == 400
    assert json.loads(response.body)["error"] == "URL is required"


@pytest.mark.asyncio
async def test_endpoint_invalid_json() -> None:
    response = await mcp_server.collect_links_endpoint(_FakeRequest(raw=b"{oops"))

    assert response.status_code == 400
    assert json.loads(response.body)["success"] is False


@pytest.mark.asyncio
async def test_endpoint_server_error(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_collect(url, options, **kwargs):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(linkcollector, "collect_with_options_async", fake_collect)

    response = await mcp_server.collect_links_endpoint(_FakeRequest({"url": SEED}))

    assert response.status_code == 500


def test_main_http_transport(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: dict = {}

    def fake_run(**kwargs):
        calls.update(kwargs)

    monkeypatch.setattr(mcp_server.mcp, "run", fake_run)
    monkeypatch.setattr(
        sys, "argv", ["link-collect-mcp", "--transport", "http", "--port", "9001"]
    )

    mcp_server.main()

    assert calls == {"transport": "http", "host": "127.0.0.1", "port": 9001}


def test_main_stdio_transport(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: dict = {}

    def fake_run(**kwargs):
        calls.update(kwargs)

    monkeypatch.setattr(mcp_server.mcp, "run", fake_run)
    monkeypatch.setattr(sys, "argv", ["link-collect-mcp"])

    mcp_server.main()

    assert calls == {"transport": "stdio"}
