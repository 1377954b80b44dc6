"""Breadth-first link collection from a seed URL.

Pages are fetched strictly one after another. Before every fetch except the
first the engine waits until ``request_delay_ms`` has elapsed since the
previous fetch *completed*, so a slow server never compounds the delay.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Protocol, Sequence

from .aggregator import build_result
from .auth import AuthInput
from .config import CrawlRequest
from .context import CrawlContext
from .extractor import extract_links
from .fetcher import ERROR_PARSE, FetchFailure, FetchResult, PageFetcher
from .filters import is_allowed
from .models import CrawlResult, CrawlState, FrontierEntry, ScopePolicy
from .urls import is_same_site, is_target_url, page_url

LOGGER = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch(self, url: str) -> FetchResult:
        ...


class LinkCollector:
    """Runs one crawl: ``IDLE -> RUNNING -> COMPLETED | FAILED``.

    Args:
        request: Validated crawl input.
        fetcher: Object with ``async fetch(url)``; a :class:`PageFetcher`
            is created (and closed) for the run when omitted.
        auth: Credentials for the default fetcher.
        cancel_event: Setting it stops the crawl before the next fetch and
            returns the partial result.
    """

    def __init__(
        self,
        request: CrawlRequest,
        *,
        fetcher: Optional[Fetcher] = None,
        auth: Optional[AuthInput] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        self.request = request
        self.state = CrawlState.IDLE
        self._fetcher = fetcher
        self._auth = auth
        self._cancel_event = cancel_event
        self.context: Optional[CrawlContext] = None

    async def run(self) -> CrawlResult:
        if self.state is not CrawlState.IDLE:
            raise RuntimeError(f"LinkCollector cannot run from state {self.state.value}")

        self.state = CrawlState.RUNNING
        context = CrawlContext.start(self.request)
        self.context = context
        LOGGER.info(
            "Collecting links from %s (depth=%d, delay=%dms)",
            self.request.seed_url,
            self.request.max_depth,
            self.request.request_delay_ms,
        )

        try:
            if self._fetcher is not None:
                await self._traverse(context, self._fetcher)
            else:
                async with PageFetcher(
                    timeout=self.request.timeout,
                    user_agent=self.request.user_agent,
                    auth=self._auth,
                ) as fetcher:
                    await self._traverse(context, fetcher)
        except BaseException:
            self.state = CrawlState.FAILED
            raise
        finally:
            context.finish()

        result = build_result(context)
        self.state = CrawlState.COMPLETED
        LOGGER.info(
            "Collection complete: %d pages scanned, %d URLs collected, %d errors",
            result.stats.total_urls_scanned,
            len(result.all_collected_urls),
            len(result.errors),
        )
        return result

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _cancel_requested(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()

    async def _traverse(self, context: CrawlContext, fetcher: Fetcher) -> None:
        request = self.request
        while context.frontier:
            if self._cancel_requested():
                context.cancelled = True
                LOGGER.info("Collection cancelled with %d URLs queued", len(context.frontier))
                return
            if context.fetch_attempts >= request.max_pages:
                context.truncated = True
                LOGGER.warning("Reached page limit of %d", request.max_pages)
                return

            entry = context.frontier.popleft()
            if entry.depth > request.max_depth:
                continue

            if not await self._wait_politely(context):
                context.cancelled = True
                LOGGER.info("Collection cancelled during politeness delay")
                return

            context.fetched.append(entry.url)
            result = await fetcher.fetch(entry.url)
            context.last_fetch_completed = time.monotonic()

            if isinstance(result, FetchFailure):
                LOGGER.warning("Failed: %s - %s", entry.url, result.message)
                context.record_error(entry.url, result.error_type, result.message)
                continue

            try:
                raw_links = extract_links(result.html, self._scope_for(entry))
            except Exception as exc:
                LOGGER.warning("Failed to parse %s: %s", entry.url, exc)
                context.record_error(entry.url, ERROR_PARSE, str(exc))
                continue

            context.pages_scanned += 1
            context.links_found += len(raw_links)
            context.max_depth_reached = max(context.max_depth_reached, entry.depth)
            queued = self._process_links(context, entry, raw_links, result.final_url)
            LOGGER.debug(
                "Scanned %s (depth %d): %d links, %d queued",
                entry.url,
                entry.depth,
                len(raw_links),
                queued,
            )

    async def _wait_politely(self, context: CrawlContext) -> bool:
        """Sleep out the remaining delay; False if cancelled meanwhile."""
        if context.last_fetch_completed is None or self.request.request_delay_ms <= 0:
            return True

        elapsed = time.monotonic() - context.last_fetch_completed
        remaining = self.request.request_delay_ms / 1000.0 - elapsed
        if remaining <= 0:
            return True

        LOGGER.debug("Politeness delay: waiting %.2fs", remaining)
        if self._cancel_event is None:
            await asyncio.sleep(remaining)
            return True

        try:
            await asyncio.wait_for(self._cancel_event.wait(), timeout=remaining)
        except asyncio.TimeoutError:
            return True
        return False

    def _scope_for(self, entry: FrontierEntry) -> Optional[str]:
        if self.request.scope_policy is ScopePolicy.ALL or entry.depth == 0:
            return self.request.scope_selector
        return None

    def _process_links(
        self,
        context: CrawlContext,
        entry: FrontierEntry,
        raw_links: Sequence[str],
        base_url: str,
    ) -> int:
        request = self.request
        seed = context.seed_url
        queued = 0
        for raw in raw_links:
            target = request.normalize(raw, base_url)
            if target is None:
                continue
            if is_target_url(target, seed):
                target = seed
            if target == entry.url:
                # A page linking to itself discovers nothing.
                continue
            if not is_allowed(target, request.filters):
                continue
            if request.same_site and not is_same_site(target, seed):
                continue

            context.record_relationship(entry.url, target)
            if not context.mark_visited(target):
                continue
            if entry.depth + 1 <= request.max_depth and context.schedule(target):
                context.frontier.append(
                    FrontierEntry(
                        url=page_url(target),
                        depth=entry.depth + 1,
                        discovered_from=entry.url,
                    )
                )
                queued += 1
        return queued
