"""HTTP API mapping for link collection requests.

Request body::

    {"url": "https://example.com", "selector": "main", "options": {"depth": 2}}

Responses: HTTP 200 with ``{"success": true, "data": {...}, "collectedAt": ...}``,
HTTP 400 with ``{"success": false, "error": ...}`` for a missing URL or invalid
options, HTTP 500 for any other failure.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from .config import CollectionOptions, ConfigurationError
from .models import CrawlResult

LOGGER = logging.getLogger(__name__)


def _format_timestamp() -> str:
    """Get current timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def error_payload(message: str) -> Dict[str, Any]:
    return {"success": False, "error": message}


def success_payload(result: CrawlResult, collected_at: Optional[str] = None) -> Dict[str, Any]:
    """Map a CrawlResult onto the API response shape."""
    stats = result.stats
    return {
        "success": True,
        "data": {
            "allCollectedUrls": list(result.all_collected_urls),
            "linkRelationships": [rel.to_dict() for rel in result.link_relationships],
            "stats": {
                "totalPages": len(result.link_relationships),
                "totalLinks": len(result.all_collected_urls),
                "uniqueLinks": result.unique_links,
                "processingTime": stats.duration_ms if stats else 0,
            },
        },
        "collectedAt": collected_at or _format_timestamp(),
    }


async def handle_collect_request(body: Any) -> Tuple[int, Dict[str, Any]]:
    """Run a collection for a decoded JSON body; return (status, payload)."""
    from . import collect_with_options_async

    if not isinstance(body, Mapping):
        return 400, error_payload("Request body must be a JSON object")

    url = body.get("url")
    if not url:
        LOGGER.warning("collectLinks: URL not provided")
        return 400, error_payload("URL is required")

    try:
        options = CollectionOptions.from_dict(
            body.get("options"),
            selector=body.get("selector") or None,
        )
    except ConfigurationError as exc:
        LOGGER.warning("collectLinks: invalid options: %s", exc)
        return 400, error_payload(str(exc))

    LOGGER.info("collectLinks: Starting collection for URL %s", url)
    try:
        result = await collect_with_options_async(str(url), options)
    except ConfigurationError as exc:
        LOGGER.warning("collectLinks: invalid request: %s", exc)
        return 400, error_payload(str(exc))
    except Exception as exc:
        LOGGER.exception("collectLinks: Error occurred")
        return 500, error_payload(str(exc) or exc.__class__.__name__)

    LOGGER.info(
        "collectLinks: Collection completed. Found %d URLs in %dms",
        len(result.all_collected_urls),
        result.stats.duration_ms if result.stats else 0,
    )
    return 200, success_payload(result)
