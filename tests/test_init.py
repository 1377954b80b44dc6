"""Tests for the linkcollector package entry points."""

from __future__ import annotations

import asyncio

import pytest

import linkcollector
from linkcollector import (
    CollectionOptions,
    ConfigurationError,
    collect_links,
    collect_links_async,
    collect_with_options_async,
)

SEED = "https://example.com/"


class TestExports:
    def test_all_names_resolve(self):
        for name in linkcollector.__all__:
            assert getattr(linkcollector, name) is not None

    def test_lazy_mcp(self):
        from linkcollector.mcp_server import mcp

        assert linkcollector.mcp is mcp
        assert linkcollector.get_mcp_server() is mcp

    def test_unknown_attribute(self):
        with pytest.raises(AttributeError):
            linkcollector.does_not_exist


class TestCollectLinksAsync:
    @pytest.mark.asyncio
    async def test_end_to_end_with_fake_site(self, make_site, page):
        site = make_site(
            {
                SEED: page("/docs", "https://other.org/", "mailto:x@example.com"),
                "https://example.com/docs": page("/docs/a", "/"),
            }
        )

        result = await collect_links_async(
            SEED,
            depth=1,
            delay_ms=0,
            filters=[{"domain": "example.com"}],
            fetcher=site,
        )

        assert site.fetched == [SEED, "https://example.com/docs"]
        assert result.all_collected_urls == [
            "https://example.com/docs",
            "https://example.com/docs/a",
        ]
        assert result.stats.total_urls_scanned == 2

    @pytest.mark.asyncio
    async def test_invalid_seed_raises_before_fetching(self, make_site):
        site = make_site({})

        with pytest.raises(ConfigurationError):
            await collect_links_async("example.com", fetcher=site)
        assert site.fetched == []

    @pytest.mark.asyncio
    async def test_invalid_option_raises(self, make_site):
        with pytest.raises(ConfigurationError):
            await collect_links_async(SEED, depth=-1, fetcher=make_site({}))

    @pytest.mark.asyncio
    async def test_with_options(self, make_site, page):
        site = make_site({SEED: page("/a?x=1")})
        options = CollectionOptions(depth=0, delay_ms=0, skip_query_urls=True)

        result = await collect_with_options_async(SEED, options, fetcher=site)

        assert result.all_collected_urls == ["https://example.com/a"]

    @pytest.mark.asyncio
    async def test_cancel_event(self, make_site, page):
        cancel = asyncio.Event()
        cancel.set()

        result = await collect_links_async(
            SEED, delay_ms=0, cancel_event=cancel, fetcher=make_site({SEED: page()})
        )

        assert result.cancelled is True
        assert result.stats.total_urls_scanned == 0


class TestCollectLinksSync:
    def test_wraps_async(self, monkeypatch):
        captured = {}

        async def fake(seed_url, **kwargs):
            captured["seed"] = seed_url
            captured.update(kwargs)
            return "result"

        monkeypatch.setattr(linkcollector, "collect_links_async", fake)

        assert collect_links(SEED, depth=3, delay_ms=10) == "result"
        assert captured["seed"] == SEED
        assert captured["depth"] == 3
        assert captured["delay_ms"] == 10
