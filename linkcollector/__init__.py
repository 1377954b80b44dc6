"""Breadth-first link collector.

Starting from a seed URL, discovers hyperlinks and follows them up to a
bounded depth, politely (one request at a time, with a delay in between).
It supports:

- CSS selector scoping of link extraction
- Domain / path prefix / regex / keyword filter rules
- Query string and fragment stripping
- Partial results on cancellation or page-limit truncation
- Authenticated crawling via cookies or headers

Example usage:

    from linkcollector import collect_links, collect_links_async

    result = await collect_links_async(
        "https://docs.example.com",
        selector="main",
        depth=2,
        delay_ms=500,
        filters=[{"domain": "docs.example.com"}],
    )
    for url in result.all_collected_urls:
        print(url)

    # Synchronous
    result = collect_links("https://example.com", depth=1)
    print(result.stats.total_urls_scanned)
"""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence, Union

from .auth import AuthConfig, AuthInput
from .config import (
    CollectionOptions,
    ConfigurationError,
    CrawlRequest,
    FilterInput,
    build_request,
)
from .engine import Fetcher, LinkCollector
from .fetcher import FetchedPage, FetchFailure, PageFetcher
from .filters import get_excluded_urls, is_allowed, is_url_excluded
from .models import (
    CrawlError,
    CrawlResult,
    CrawlState,
    CrawlStats,
    FilterRule,
    FrontierEntry,
    LinkRelationship,
    ScopePolicy,
)
from .urls import is_target_url, normalize_url

__all__ = [
    # Result types
    "CrawlResult",
    "CrawlStats",
    "CrawlError",
    "LinkRelationship",
    "FrontierEntry",
    "CrawlState",
    # Configuration
    "CollectionOptions",
    "CrawlRequest",
    "FilterRule",
    "ScopePolicy",
    "ConfigurationError",
    "build_request",
    # Auth
    "AuthConfig",
    # Components
    "LinkCollector",
    "PageFetcher",
    "FetchedPage",
    "FetchFailure",
    "normalize_url",
    "is_target_url",
    "is_allowed",
    "is_url_excluded",
    "get_excluded_urls",
    # Collection
    "collect_links",
    "collect_links_async",
    "collect_with_options_async",
    # MCP Server
    "mcp",
]


def get_mcp_server():
    """Get the MCP server instance (lazy import to avoid dependency if not needed)."""
    from .mcp_server import mcp

    return mcp


# Lazy import for mcp to avoid requiring fastmcp if not used
def __getattr__(name):
    if name == "mcp":
        from .mcp_server import mcp

        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


async def collect_links_async(
    seed_url: str,
    *,
    selector: Optional[str] = None,
    depth: int = 1,
    delay_ms: int = 1000,
    filters: Optional[Sequence[FilterInput]] = None,
    skip_query_urls: bool = False,
    skip_hash_urls: bool = False,
    scope_policy: Union[str, ScopePolicy] = ScopePolicy.SEED,
    max_pages: Optional[int] = None,
    same_site: bool = False,
    timeout: Optional[float] = None,
    user_agent: Optional[str] = None,
    auth: Optional[AuthInput] = None,
    cancel_event: Optional[asyncio.Event] = None,
    fetcher: Optional[Fetcher] = None,
) -> CrawlResult:
    """
    Collect links breadth-first starting from ``seed_url``.

    Args:
        seed_url: Absolute http(s) URL to start from.
        selector: CSS selector restricting link extraction.
        depth: Link hops to follow (0 = only read the seed's links).
        delay_ms: Pause between consecutive fetches.
        filters: Filter rules (FilterRule or camelCase dicts).
        skip_query_urls: Strip query strings from discovered URLs.
        skip_hash_urls: Strip fragments from discovered URLs.
        scope_policy: "seed" applies ``selector`` to the seed page only,
            "all" to every fetched page.
        max_pages: Safety cap on fetches (default: LINKCOLLECTOR_MAX_PAGES or 500).
        same_site: Only keep URLs on the seed's registrable domain.
        timeout: Per-request timeout in seconds.
        user_agent: User-Agent header for requests.
        auth: Optional AuthConfig (or dict) for authenticated crawling.
        cancel_event: Set it to stop the crawl and get partial results.
        fetcher: Custom fetcher (mostly for tests).

    Returns:
        CrawlResult with collected URLs, relationships, errors and stats.

    Raises:
        ConfigurationError: If the seed URL or options are invalid. Raised
            before any request is made.
    """
    options = CollectionOptions(
        selector=selector,
        depth=depth,
        delay_ms=delay_ms,
        filters=list(filters or []),
        skip_query_urls=skip_query_urls,
        skip_hash_urls=skip_hash_urls,
        scope_policy=scope_policy,
        max_pages=max_pages,
        same_site=same_site,
        timeout=timeout,
        user_agent=user_agent,
    )
    request = build_request(seed_url, options)
    collector = LinkCollector(
        request,
        fetcher=fetcher,
        auth=auth,
        cancel_event=cancel_event,
    )
    return await collector.run()


async def collect_with_options_async(
    seed_url: str,
    options: CollectionOptions,
    *,
    auth: Optional[AuthInput] = None,
    cancel_event: Optional[asyncio.Event] = None,
    fetcher: Optional[Fetcher] = None,
) -> CrawlResult:
    """Like :func:`collect_links_async` for an already built CollectionOptions."""
    request = build_request(seed_url, options)
    collector = LinkCollector(request, fetcher=fetcher, auth=auth, cancel_event=cancel_event)
    return await collector.run()


def collect_links(
    seed_url: str,
    *,
    selector: Optional[str] = None,
    depth: int = 1,
    delay_ms: int = 1000,
    filters: Optional[Sequence[FilterInput]] = None,
    skip_query_urls: bool = False,
    skip_hash_urls: bool = False,
    scope_policy: Union[str, ScopePolicy] = ScopePolicy.SEED,
    max_pages: Optional[int] = None,
    same_site: bool = False,
    timeout: Optional[float] = None,
    user_agent: Optional[str] = None,
    auth: Optional[AuthInput] = None,
) -> CrawlResult:
    """Synchronous wrapper for collect_links_async."""
    return asyncio.run(
        collect_links_async(
            seed_url,
            selector=selector,
            depth=depth,
            delay_ms=delay_ms,
            filters=filters,
            skip_query_urls=skip_query_urls,
            skip_hash_urls=skip_hash_urls,
            scope_policy=scope_policy,
            max_pages=max_pages,
            same_site=same_site,
            timeout=timeout,
            user_agent=user_agent,
            auth=auth,
        )
    )
