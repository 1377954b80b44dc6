"""Output and formatting helpers for CLI commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .api import _format_timestamp
from .models import CrawlResult

SEPARATORS = {"newline": "\n", "space": " "}


def format_url_list(
    result: CrawlResult,
    urls: Optional[Sequence[str]] = None,
    *,
    separator: str = "newline",
    include_source: bool = False,
) -> str:
    """Render URLs as a plain list, ready to paste into another tool.

    With ``include_source`` every URL is followed by ``[from: <page>]`` naming
    the first page it was found on.
    """
    joiner = SEPARATORS.get(separator, "\n")
    items = list(result.all_collected_urls if urls is None else urls)
    if not include_source:
        return joiner.join(items)

    lines: List[str] = []
    for url in items:
        sources = result.sources_for(url)
        source = sources[0] if sources else result.initial_url
        if source and source != url:
            lines.append(f"{url} [from: {source}]")
        else:
            lines.append(url)
    return joiner.join(lines)


def result_to_export(
    result: CrawlResult,
    urls: Optional[Sequence[str]] = None,
    collected_at: Optional[str] = None,
) -> Dict[str, Any]:
    """Convert a result into the JSON export document."""
    data = result.to_dict()
    if urls is not None:
        data["allCollectedUrls"] = list(urls)
    data["uniqueLinks"] = len(set(data["allCollectedUrls"]))
    data["collectedAt"] = collected_at or _format_timestamp()
    return data


def format_summary(result: CrawlResult) -> str:
    """One-line crawl summary for logs."""
    stats = result.stats
    scanned = stats.total_urls_scanned if stats else 0
    duration = stats.duration_ms if stats else 0
    summary = (
        f"{scanned} pages scanned, {len(result.all_collected_urls)} URLs collected, "
        f"{len(result.errors)} errors in {duration}ms"
    )
    if result.cancelled:
        summary += " (cancelled)"
    if result.truncated:
        summary += " (page limit reached)"
    return summary


def write_output(text: str, output: Optional[str]) -> None:
    """Write text to ``output`` or stdout."""
    if output is None or output == "-":
        print(text)
        return

    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n", encoding="utf-8")
    logging.info("Wrote %s", path)


def dump_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)
