"""Data structures representing a link collection run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class CrawlState(str, Enum):
    """Lifecycle of a single collection run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ScopePolicy(str, Enum):
    """Which pages the CSS selector scope is applied to."""

    SEED = "seed"
    ALL = "all"


# Filter rule fields, in the order they are checked.
FILTER_FIELDS: Tuple[str, ...] = ("domain", "path_prefix", "regex", "keywords")


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


@dataclass(slots=True)
class FilterRule:
    """A single inclusion (or exclusion) rule.

    Each field accepts a string or a list of strings. Conditions inside one
    rule are OR'd: matching any one of them satisfies the rule.
    """

    domain: List[str] = field(default_factory=list)
    path_prefix: List[str] = field(default_factory=list)
    regex: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    exclude: bool = False

    def __post_init__(self) -> None:
        self.domain = _as_list(self.domain)
        self.path_prefix = _as_list(self.path_prefix)
        self.regex = _as_list(self.regex)
        self.keywords = _as_list(self.keywords)
        self.exclude = bool(self.exclude)

    @property
    def is_empty(self) -> bool:
        return not (self.domain or self.path_prefix or self.regex or self.keywords)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.domain:
            data["domain"] = list(self.domain)
        if self.path_prefix:
            data["pathPrefix"] = list(self.path_prefix)
        if self.regex:
            data["regex"] = list(self.regex)
        if self.keywords:
            data["keywords"] = list(self.keywords)
        if self.exclude:
            data["exclude"] = True
        return data


@dataclass(slots=True, frozen=True)
class FrontierEntry:
    """A URL queued for fetching."""

    url: str
    depth: int
    discovered_from: Optional[str] = None


@dataclass(slots=True, frozen=True)
class LinkRelationship:
    """``found`` was discovered as a link on page ``source``."""

    source: str
    found: str

    def to_dict(self) -> Dict[str, str]:
        return {"source": self.source, "found": self.found}


@dataclass(slots=True)
class CrawlError:
    """A per-page failure recorded without halting the crawl."""

    url: str
    error_type: str  # network, http, unsupported-content-type, parse
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "errorType": self.error_type, "message": self.message}


@dataclass(slots=True)
class CrawlStats:
    """Summary computed once the traversal has finished."""

    start_time: str
    end_time: str
    duration_ms: int
    total_urls_scanned: int = 0
    total_urls_collected: int = 0
    max_depth_reached: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startTime": self.start_time,
            "endTime": self.end_time,
            "durationMs": self.duration_ms,
            "totalUrlsScanned": self.total_urls_scanned,
            "totalUrlsCollected": self.total_urls_collected,
            "maxDepthReached": self.max_depth_reached,
        }


@dataclass(slots=True)
class CrawlResult:
    """Terminal output of a collection run."""

    initial_url: str
    depth: int
    all_collected_urls: List[str] = field(default_factory=list)
    link_relationships: List[LinkRelationship] = field(default_factory=list)
    errors: List[CrawlError] = field(default_factory=list)
    stats: Optional[CrawlStats] = None
    cancelled: bool = False
    truncated: bool = False

    @property
    def unique_links(self) -> int:
        return len(set(self.all_collected_urls))

    def sources_for(self, url: str) -> List[str]:
        """Pages on which ``url`` was found, in discovery order."""
        return [rel.source for rel in self.link_relationships if rel.found == url]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape of the collection library result."""
        return {
            "initialUrl": self.initial_url,
            "depth": self.depth,
            "allCollectedUrls": list(self.all_collected_urls),
            "linkRelationships": [rel.to_dict() for rel in self.link_relationships],
            "errors": [err.to_dict() for err in self.errors],
            "stats": self.stats.to_dict() if self.stats else None,
            "cancelled": self.cancelled,
            "truncated": self.truncated,
        }
