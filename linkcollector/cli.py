"""Command-line interface for the link collector."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .auth import AuthConfig, load_auth_from_env, load_auth_from_file
from .cli_config import load_env_config
from .cli_output import (
    dump_json,
    format_summary,
    format_url_list,
    result_to_export,
    write_output,
)
from .config import CollectionOptions, default_delay_ms
from .filters import apply_exclude_patterns
from .models import FilterRule, ScopePolicy


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="link-collect",
        description="Collect links breadth-first starting from a seed URL.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  # Links on one page (no following)
  link-collect https://example.com --depth 0

  # Follow links one hop, only inside the article body of the seed page
  link-collect https://example.com/docs --selector "main article"

  # Two hops, same domain only, half a second between requests
  link-collect https://example.com --depth 2 --delay-ms 500 --domain example.com

  # Drop query strings and fragments, skip PDF links
  link-collect https://example.com --skip-query-urls --skip-hash-urls --exclude-regex '\\.pdf$'

  # Full JSON report (relationships, errors, stats)
  link-collect https://example.com --json -o links.json

  # Space separated list with the page each URL was found on
  link-collect https://example.com --separator space --include-source
""",
    )

    parser.add_argument("url", help="Seed URL to start from")
    parser.add_argument(
        "-s",
        "--selector",
        type=str,
        default=None,
        help="CSS selector restricting where links are extracted",
    )
    parser.add_argument(
        "--scope-all-pages",
        action="store_true",
        help="Apply --selector to every fetched page, not only the seed page",
    )
    parser.add_argument(
        "-d",
        "--depth",
        type=int,
        default=1,
        help="Link hops to follow (default: 1, 0 = seed page only)",
    )
    parser.add_argument(
        "--delay-ms",
        type=int,
        default=None,
        help="Delay between requests in milliseconds (default: 1000)",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Maximum pages to fetch (default: 500)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Request timeout in seconds (default: 30)",
    )
    parser.add_argument(
        "--user-agent",
        type=str,
        default=None,
        help="User-Agent header",
    )
    parser.add_argument(
        "--skip-query-urls",
        action="store_true",
        help="Strip query strings from collected URLs",
    )
    parser.add_argument(
        "--skip-hash-urls",
        action="store_true",
        help="Strip #fragments from collected URLs",
    )
    parser.add_argument(
        "--same-site",
        action="store_true",
        help="Only keep URLs on the seed URL's registrable domain",
    )

    filter_group = parser.add_argument_group("filters")
    for flag, help_text in (
        ("domain", "Keep URLs on this domain or its subdomains"),
        ("path-prefix", "Keep URLs whose path starts with this prefix"),
        ("regex", "Keep URLs matching this regex (invalid regex = substring)"),
        ("keyword", "Keep URLs containing this keyword"),
    ):
        filter_group.add_argument(
            f"--{flag}",
            action="append",
            default=None,
            help=f"{help_text} (repeatable)",
        )
        filter_group.add_argument(
            f"--exclude-{flag}",
            action="append",
            default=None,
            help=f"Inverse of --{flag}: drop matching URLs (repeatable)",
        )
    filter_group.add_argument(
        "--filters",
        type=str,
        default=None,
        dest="filters_json",
        help='Filter rules as JSON string or path to a JSON file. '
             'Example: \'[{"domain": "example.com"}, {"keywords": "login", "exclude": true}]\'',
    )
    filter_group.add_argument(
        "--exclude-pattern",
        action="append",
        default=None,
        help="Drop matching URLs from the output only (regex or substring, repeatable)",
    )

    auth_group = parser.add_argument_group("authentication")
    auth_group.add_argument(
        "--header",
        action="append",
        default=None,
        help='Custom HTTP header (can be repeated). '
             'Example: --header "Authorization: Bearer xyz"',
    )
    auth_group.add_argument(
        "--cookies",
        type=str,
        default=None,
        help='Cookies as JSON string or path to cookies JSON file. '
             'Example: \'[{"name":"sid","value":"abc","domain":".example.com"}]\'',
    )
    auth_group.add_argument(
        "--auth-file",
        type=str,
        default=None,
        help="JSON file with 'headers' and/or 'cookies'",
    )

    output_group = parser.add_argument_group("output")
    output_group.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output file (default: stdout)",
    )
    output_group.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output the full report as JSON",
    )
    output_group.add_argument(
        "--separator",
        choices=["newline", "space"],
        default="newline",
        help="Separator for the URL list (default: newline)",
    )
    output_group.add_argument(
        "--include-source",
        action="store_true",
        help="Append [from: <page>] to every URL in the list",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def _load_json_arg(value: str) -> Any:
    """Parse a JSON string, or load it from a file path."""
    stripped = value.strip()
    if stripped.startswith("[") or stripped.startswith("{"):
        return json.loads(stripped)
    path = Path(value).expanduser()
    if path.is_file():
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    raise ValueError(f"Not JSON and not a file: {value}")


def _build_filters(args: argparse.Namespace) -> List[Any]:
    filters: List[Any] = []
    if args.filters_json:
        loaded = _load_json_arg(args.filters_json)
        filters.extend(loaded if isinstance(loaded, list) else [loaded])

    include = FilterRule(
        domain=args.domain,
        path_prefix=args.path_prefix,
        regex=args.regex,
        keywords=args.keyword,
    )
    if not include.is_empty:
        filters.append(include)

    exclude = FilterRule(
        domain=args.exclude_domain,
        path_prefix=args.exclude_path_prefix,
        regex=args.exclude_regex,
        keywords=args.exclude_keyword,
        exclude=True,
    )
    if not exclude.is_empty:
        filters.append(exclude)
    return filters


def _build_cli_auth(args: argparse.Namespace) -> Optional[AuthConfig]:
    """Build AuthConfig from CLI arguments, falling back to env vars."""
    if args.auth_file:
        return load_auth_from_file(args.auth_file)

    cookies = None
    headers: Dict[str, str] = {}

    if args.cookies:
        parsed = _load_json_arg(args.cookies)
        cookies = parsed if isinstance(parsed, list) else [parsed]

    for header in args.header or []:
        if ":" in header:
            key, value = header.split(":", 1)
            headers[key.strip()] = value.strip()
        else:
            logging.warning("Invalid header format (expected 'Key: Value'): %s", header)

    if cookies or headers:
        return AuthConfig(cookies=cookies, headers=headers or None)
    return load_auth_from_env()


def _build_options(args: argparse.Namespace) -> CollectionOptions:
    return CollectionOptions(
        selector=args.selector,
        depth=args.depth,
        delay_ms=args.delay_ms if args.delay_ms is not None else default_delay_ms(),
        filters=_build_filters(args),
        skip_query_urls=args.skip_query_urls,
        skip_hash_urls=args.skip_hash_urls,
        scope_policy=ScopePolicy.ALL if args.scope_all_pages else ScopePolicy.SEED,
        max_pages=args.max_pages,
        same_site=args.same_site,
        timeout=args.timeout,
        user_agent=args.user_agent,
    )


async def _run_collect_async(args: argparse.Namespace) -> int:
    """Main async entry point for link collection."""
    from . import collect_with_options_async

    options = _build_options(args)
    auth = _build_cli_auth(args)

    result = await collect_with_options_async(args.url, options, auth=auth)

    for error in result.errors:
        logging.warning("Failed: %s - %s (%s)", error.url, error.message, error.error_type)

    urls = result.all_collected_urls
    if args.exclude_pattern:
        urls = apply_exclude_patterns(urls, args.exclude_pattern)
        logging.info(
            "Exclude patterns removed %d URL(s)",
            len(result.all_collected_urls) - len(urls),
        )

    logging.info("Collection complete: %s", format_summary(result))

    if args.json_output:
        write_output(dump_json(result_to_export(result, urls)), args.output)
    else:
        write_output(
            format_url_list(
                result,
                urls,
                separator=args.separator,
                include_source=args.include_source,
            ),
            args.output,
        )

    if result.stats and result.stats.total_urls_scanned == 0:
        logging.error("Seed page could not be collected")
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the link-collect command."""
    args = _parse_args(argv)
    _setup_logging(args.verbose)
    load_env_config(cwd=Path.cwd())

    try:
        return asyncio.run(_run_collect_async(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except Exception as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1


if __name__ == "__main__":
    sys.exit(main())
