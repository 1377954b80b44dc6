"""Collection options, crawl requests and their validation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import soupsieve

from .models import FilterRule, ScopePolicy
from .urls import normalize_url

LOGGER = logging.getLogger(__name__)

DEFAULT_DEPTH = 1
DEFAULT_DELAY_MS = 1000
DEFAULT_MAX_PAGES = 500
DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "LinkCollector/1.0 (+https://github.com/link-collector)"

# Wire (camelCase) and Python spellings accepted in a filter rule.
_FILTER_KEYS = {
    "domain": "domain",
    "pathPrefix": "path_prefix",
    "path_prefix": "path_prefix",
    "regex": "regex",
    "keywords": "keywords",
    "exclude": "exclude",
}

# Wire option name -> CollectionOptions field.
_OPTION_KEYS = {
    "depth": "depth",
    "delayMs": "delay_ms",
    "filters": "filters",
    "skipQueryUrls": "skip_query_urls",
    "skipHashUrls": "skip_hash_urls",
    "scopePolicy": "scope_policy",
    "maxPages": "max_pages",
    "sameSite": "same_site",
    "timeout": "timeout",
    "userAgent": "user_agent",
    "selector": "selector",
}

# Accepted for compatibility with the collection library, not used.
_IGNORED_OPTION_KEYS = frozenset({"logLevel"})

FilterInput = Union[FilterRule, Mapping[str, Any]]


class ConfigurationError(ValueError):
    """Raised when a crawl cannot start because its configuration is invalid."""


# ---------------------------------------------------------------------------
# Environment defaults
# ---------------------------------------------------------------------------


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError:
        LOGGER.warning("Ignoring invalid %s=%r; using %s", name, raw, default)
        return default
    if value <= 0:
        LOGGER.warning("Ignoring non-positive %s=%r; using %s", name, raw, default)
        return default
    return value


def default_user_agent() -> str:
    return os.getenv("LINKCOLLECTOR_USER_AGENT") or DEFAULT_USER_AGENT


def default_timeout() -> float:
    return _env_number("LINKCOLLECTOR_TIMEOUT", DEFAULT_TIMEOUT, float)


def default_max_pages() -> int:
    return _env_number("LINKCOLLECTOR_MAX_PAGES", DEFAULT_MAX_PAGES, int)


def default_delay_ms() -> int:
    raw = os.getenv("LINKCOLLECTOR_DELAY_MS")
    if raw is None or not raw.strip():
        return DEFAULT_DELAY_MS
    try:
        value = int(raw)
    except ValueError:
        LOGGER.warning("Ignoring invalid LINKCOLLECTOR_DELAY_MS=%r", raw)
        return DEFAULT_DELAY_MS
    return value if value >= 0 else DEFAULT_DELAY_MS


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _check_strings(key: str, value: Any) -> None:
    if value is None or isinstance(value, str):
        return
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return
    raise ConfigurationError(f"Filter field '{key}' must be a string or a list of strings")


def parse_filter_rule(data: FilterInput) -> FilterRule:
    """Build a FilterRule from a rule object or a (camelCase) dict."""
    if isinstance(data, FilterRule):
        return data
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Filter rule must be an object, got {type(data).__name__}")

    unknown = sorted(set(data) - set(_FILTER_KEYS))
    if unknown:
        raise ConfigurationError(f"Unsupported filter fields: {', '.join(unknown)}")

    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        name = _FILTER_KEYS[key]
        if name == "exclude":
            kwargs[name] = bool(value)
            continue
        _check_strings(key, value)
        kwargs[name] = value
    return FilterRule(**kwargs)


def parse_filters(filters: Optional[Sequence[FilterInput]]) -> Tuple[FilterRule, ...]:
    if filters is None:
        return ()
    if isinstance(filters, (str, bytes)) or not isinstance(filters, Sequence):
        raise ConfigurationError("filters must be a list of filter rules")
    return tuple(parse_filter_rule(item) for item in filters)


def validate_selector(selector: Optional[str]) -> Optional[str]:
    """Return the stripped selector, or None; raise on invalid CSS."""
    if selector is None:
        return None
    if not isinstance(selector, str):
        raise ConfigurationError("selector must be a string")
    selector = selector.strip()
    if not selector:
        return None
    try:
        soupsieve.compile(selector)
    except soupsieve.SelectorSyntaxError as exc:
        raise ConfigurationError(f"Invalid CSS selector {selector!r}: {exc}") from exc
    return selector


def _check_int(name: str, value: Any, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _coerce_scope_policy(value: Union[str, ScopePolicy]) -> ScopePolicy:
    try:
        return ScopePolicy(value)
    except ValueError as exc:
        choices = ", ".join(p.value for p in ScopePolicy)
        raise ConfigurationError(
            f"scope_policy must be one of: {choices}; got {value!r}"
        ) from exc


# ---------------------------------------------------------------------------
# Options and requests
# ---------------------------------------------------------------------------


@dataclass
class CollectionOptions:
    """Options accepted by a collection run.

    ``max_pages``, ``timeout`` and ``user_agent`` default to the environment
    (``LINKCOLLECTOR_MAX_PAGES``, ``LINKCOLLECTOR_TIMEOUT``,
    ``LINKCOLLECTOR_USER_AGENT``) when left as None.
    """

    selector: Optional[str] = None
    depth: int = DEFAULT_DEPTH
    delay_ms: int = DEFAULT_DELAY_MS
    filters: List[FilterRule] = field(default_factory=list)
    skip_query_urls: bool = False
    skip_hash_urls: bool = False
    scope_policy: ScopePolicy = ScopePolicy.SEED
    max_pages: Optional[int] = None
    same_site: bool = False
    timeout: Optional[float] = None
    user_agent: Optional[str] = None

    def __post_init__(self) -> None:
        self.selector = validate_selector(self.selector)
        self.depth = _check_int("depth", self.depth, 0)
        self.delay_ms = _check_int("delay_ms", self.delay_ms, 0)
        self.filters = list(parse_filters(self.filters))
        self.skip_query_urls = bool(self.skip_query_urls)
        self.skip_hash_urls = bool(self.skip_hash_urls)
        self.same_site = bool(self.same_site)
        self.scope_policy = _coerce_scope_policy(self.scope_policy)

        if self.max_pages is None:
            self.max_pages = default_max_pages()
        self.max_pages = _check_int("max_pages", self.max_pages, 1)

        if self.timeout is None:
            self.timeout = default_timeout()
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            raise ConfigurationError("timeout must be a number of seconds")
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be > 0, got {self.timeout}")
        self.timeout = float(self.timeout)

        if self.user_agent is None:
            self.user_agent = default_user_agent()

    @classmethod
    def from_dict(
        cls,
        data: Optional[Mapping[str, Any]],
        *,
        selector: Optional[str] = None,
    ) -> "CollectionOptions":
        """Build options from the camelCase wire shape.

        Falsy ``depth``/``delayMs`` fall back to the defaults, as the HTTP
        API always did.
        """
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ConfigurationError("options must be an object")

        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key in _IGNORED_OPTION_KEYS:
                LOGGER.debug("Ignoring option %s=%r", key, value)
                continue
            if key not in _OPTION_KEYS:
                raise ConfigurationError(f"Unsupported option: {key}")
            if value is None:
                continue
            kwargs[_OPTION_KEYS[key]] = value

        if selector is not None:
            kwargs["selector"] = selector
        kwargs["depth"] = kwargs.get("depth") or DEFAULT_DEPTH
        kwargs["delay_ms"] = kwargs.get("delay_ms") or default_delay_ms()
        return cls(**kwargs)


@dataclass(frozen=True)
class CrawlRequest:
    """Immutable input of one crawl."""

    seed_url: str
    scope_selector: Optional[str] = None
    max_depth: int = DEFAULT_DEPTH
    request_delay_ms: int = DEFAULT_DELAY_MS
    filters: Tuple[FilterRule, ...] = ()
    skip_query_urls: bool = False
    skip_hash_urls: bool = False
    scope_policy: ScopePolicy = ScopePolicy.SEED
    max_pages: int = DEFAULT_MAX_PAGES
    same_site: bool = False
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    def normalize(self, raw_link: str, base_url: str) -> Optional[str]:
        return normalize_url(
            raw_link,
            base_url,
            skip_query=self.skip_query_urls,
            skip_hash=self.skip_hash_urls,
        )


def build_request(seed_url: str, options: Optional[CollectionOptions] = None) -> CrawlRequest:
    """Validate ``seed_url`` and freeze ``options`` into a CrawlRequest."""
    options = options or CollectionOptions()
    if not isinstance(seed_url, str) or not seed_url.strip():
        raise ConfigurationError("A seed URL is required")

    seed = seed_url.strip()
    normalized = normalize_url(
        seed,
        seed,
        skip_query=options.skip_query_urls,
        skip_hash=options.skip_hash_urls,
    )
    # A relative seed would "resolve" against itself; demand an absolute URL.
    if normalized is None or "://" not in seed:
        raise ConfigurationError(f"Invalid seed URL: {seed_url}")

    return CrawlRequest(
        seed_url=normalized,
        scope_selector=options.selector,
        max_depth=options.depth,
        request_delay_ms=options.delay_ms,
        filters=tuple(options.filters),
        skip_query_urls=options.skip_query_urls,
        skip_hash_urls=options.skip_hash_urls,
        scope_policy=options.scope_policy,
        max_pages=options.max_pages,
        same_site=options.same_site,
        timeout=options.timeout,
        user_agent=options.user_agent,
    )
