"""Turn finished traversal state into a CrawlResult."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List

from .context import CrawlContext
from .models import CrawlResult, CrawlStats


def _iso(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def dedupe(urls: Iterable[str]) -> List[str]:
    """Drop repeats while keeping first-discovery order."""
    seen = set()
    ordered: List[str] = []
    for url in urls:
        if url in seen:
            continue
        seen.add(url)
        ordered.append(url)
    return ordered


def build_stats(context: CrawlContext) -> CrawlStats:
    finished_at = context.finished_at or context.started_at
    finished_monotonic = context.finished_monotonic or context.started_monotonic
    duration_ms = max(0, int(round((finished_monotonic - context.started_monotonic) * 1000)))
    return CrawlStats(
        start_time=_iso(context.started_at),
        end_time=_iso(finished_at),
        duration_ms=duration_ms,
        total_urls_scanned=context.pages_scanned,
        total_urls_collected=context.links_found,
        max_depth_reached=context.max_depth_reached,
    )


def build_result(context: CrawlContext) -> CrawlResult:
    """Assemble the final report; performs no I/O."""
    seed = context.seed_url
    collected = [url for url in dedupe(context.collected) if url != seed]
    return CrawlResult(
        initial_url=seed,
        depth=context.request.max_depth,
        all_collected_urls=collected,
        link_relationships=list(context.relationships),
        errors=list(context.errors),
        stats=build_stats(context),
        cancelled=context.cancelled,
        truncated=context.truncated,
    )
