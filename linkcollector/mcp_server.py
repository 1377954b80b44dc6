"""MCP Server for the link collector.

Provides:
- ``collect_links`` MCP tool
- ``POST /api/collectLinks`` plain HTTP endpoint (HTTP transport only)

Supports both STDIO and HTTP transports.

Usage:
    # STDIO (for Claude Desktop, etc.)
    python -m linkcollector.mcp_server

    # HTTP (for remote access)
    python -m linkcollector.mcp_server --transport http --port 8000

    # Or via FastMCP CLI
    fastmcp run linkcollector/mcp_server.py:mcp --transport http --port 8000

Environment Variables:
    LINKCOLLECTOR_USER_AGENT: User-Agent header for requests
    LINKCOLLECTOR_TIMEOUT: Request timeout in seconds (default: 30)
    LINKCOLLECTOR_DELAY_MS: Default delay between requests (default: 1000)
    LINKCOLLECTOR_MAX_PAGES: Page cap per crawl (default: 500)
"""

from __future__ import annotations

import argparse
import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from .api import handle_collect_request
from .auth import load_auth_from_env
from .cli_output import format_summary, format_url_list
from .config import ConfigurationError, default_delay_ms, default_user_agent

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
LOGGER = logging.getLogger(__name__)

# Load .env before reading environment variables
load_dotenv()

# Create the MCP server
mcp = FastMCP(
    name="Link Collector",
    instructions="""
    A link collection server that provides:

    - collect_links: Starting from a seed URL, collect hyperlinks breadth-first
      up to a depth limit, with CSS selector scoping and filter rules.

    Output formats:
    - json: Collected URLs, link relationships, errors and stats (default)
    - text: Newline separated URL list followed by a summary line
    """,
)


class OutputFormat(str, Enum):
    """Output format for collection results."""

    json = "json"
    text = "text"


# =============================================================================
# COLLECTION TOOL
# =============================================================================


@mcp.tool
async def collect_links(
    url: str,
    selector: Optional[str] = None,
    depth: int = 1,
    delay_ms: Optional[int] = None,
    filters: Optional[List[Dict[str, Any]]] = None,
    skip_query_urls: bool = False,
    skip_hash_urls: bool = False,
    scope_policy: str = "seed",
    max_pages: Optional[int] = None,
    same_site: bool = False,
    output_format: str = "json",
):
    """
    Collect links from a web page and, optionally, the pages it links to.

    Args:
        url: The seed URL to start from
        selector: CSS selector restricting link extraction (e.g. "main article")
        depth: Link hops to follow (default: 1, 0 = only the seed page's links)
        delay_ms: Milliseconds to wait between requests (default: 1000)
        filters: Filter rules. Each rule may have "domain", "pathPrefix",
            "regex" and "keywords" (string or list) and "exclude": true for
            exclusion rules. Any inclusion rule turns the list into an
            allow-list; exclusion always wins.
        skip_query_urls: Strip query strings from URLs (default: false)
        skip_hash_urls: Strip #fragments from URLs (default: false)
        scope_policy: "seed" (default) applies the selector only to the seed
            page, "all" to every fetched page
        max_pages: Maximum pages to fetch (default: 500)
        same_site: Only keep URLs on the seed's registrable domain
        output_format: "json" (default) or "text"

    Returns:
        Collection result in the specified format.

    Examples:
        # Links of one page
        collect_links(url="https://example.com", depth=0)

        # Two hops inside the docs section
        collect_links(url="https://example.com/docs", depth=2,
                      filters=[{"pathPrefix": "/docs"}])

        # Plain URL list
        collect_links(url="https://example.com", output_format="text")
    """
    from . import collect_links_async

    try:
        fmt = OutputFormat(output_format.lower())
    except ValueError:
        fmt = OutputFormat.json

    LOGGER.info("Collecting links: %s (depth=%d)", url, depth)

    try:
        result = await collect_links_async(
            url,
            selector=selector,
            depth=depth,
            delay_ms=delay_ms if delay_ms is not None else default_delay_ms(),
            filters=filters,
            skip_query_urls=skip_query_urls,
            skip_hash_urls=skip_hash_urls,
            scope_policy=scope_policy,
            max_pages=max_pages,
            same_site=same_site,
            auth=load_auth_from_env(),
        )
    except ConfigurationError as exc:
        LOGGER.error("Invalid request: %s", exc)
        return json.dumps({"error": str(exc), "url": url}, ensure_ascii=False)

    LOGGER.info("Completed: %s", format_summary(result))

    if fmt == OutputFormat.text:
        return format_url_list(result) + "\n\n" + format_summary(result)
    return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)


# =============================================================================
# HTTP ENDPOINT
# =============================================================================


@mcp.custom_route("/api/collectLinks", methods=["POST"])
async def collect_links_endpoint(request: Request) -> JSONResponse:
    """Plain JSON endpoint: ``{url, selector?, options?}``."""
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(
            {"success": False, "error": "Request body must be valid JSON"},
            status_code=400,
        )

    status, payload = await handle_collect_request(body)
    return JSONResponse(payload, status_code=status)


# =============================================================================
# CLI ENTRY POINT
# =============================================================================


def main():
    """CLI entry point for running the MCP server."""
    parser = argparse.ArgumentParser(
        description="Run the link collector MCP server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
    LINKCOLLECTOR_USER_AGENT  User-Agent header for requests
    LINKCOLLECTOR_TIMEOUT     Request timeout in seconds (default: 30)
    LINKCOLLECTOR_DELAY_MS    Default delay between requests (default: 1000)
    LINKCOLLECTOR_MAX_PAGES   Page cap per crawl (default: 500)
    LINKCOLLECTOR_AUTH_FILE   JSON file with headers/cookies for requests

Examples:
    # STDIO transport (default, for Claude Desktop)
    python -m linkcollector.mcp_server

    # HTTP transport (MCP at /mcp, JSON API at /api/collectLinks)
    python -m linkcollector.mcp_server --transport http --port 8000

    # Custom host/port
    python -m linkcollector.mcp_server --transport http --host 0.0.0.0 --port 9000
""",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to for HTTP transport (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to for HTTP transport (default: 8000)",
    )

    args = parser.parse_args()

    LOGGER.info("User-Agent: %s", default_user_agent())

    if args.transport == "http":
        LOGGER.info("Starting MCP server on http://%s:%d/mcp", args.host, args.port)
        LOGGER.info("JSON API at http://%s:%d/api/collectLinks", args.host, args.port)
        mcp.run(transport="http", host=args.host, port=args.port)
    else:
        LOGGER.info("Starting MCP server with STDIO transport")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
