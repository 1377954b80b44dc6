"""Per-crawl traversal state.

One :class:`CrawlContext` is created for every collection run and dropped
when the run ends; concurrent runs never share one.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Deque, List, Optional, Set, Tuple

from .config import CrawlRequest
from .models import CrawlError, FrontierEntry, LinkRelationship
from .urls import page_url


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CrawlContext:
    request: CrawlRequest
    frontier: Deque[FrontierEntry] = field(default_factory=deque)
    visited: Set[str] = field(default_factory=set)
    # Fragment-less URLs already fetched or queued for fetching.
    scheduled: Set[str] = field(default_factory=set)
    collected: List[str] = field(default_factory=list)
    relationships: List[LinkRelationship] = field(default_factory=list)
    relationship_keys: Set[Tuple[str, str]] = field(default_factory=set)
    errors: List[CrawlError] = field(default_factory=list)
    fetched: List[str] = field(default_factory=list)
    pages_scanned: int = 0
    links_found: int = 0
    max_depth_reached: int = 0
    started_at: datetime = field(default_factory=utc_now)
    finished_at: Optional[datetime] = None
    started_monotonic: float = field(default_factory=time.monotonic)
    finished_monotonic: Optional[float] = None
    last_fetch_completed: Optional[float] = None
    cancelled: bool = False
    truncated: bool = False

    @classmethod
    def start(cls, request: CrawlRequest) -> "CrawlContext":
        context = cls(request=request)
        context.visited.add(request.seed_url)
        context.scheduled.add(page_url(request.seed_url))
        context.frontier.append(FrontierEntry(url=request.seed_url, depth=0))
        return context

    @property
    def seed_url(self) -> str:
        return self.request.seed_url

    @property
    def fetch_attempts(self) -> int:
        return len(self.fetched)

    def record_relationship(self, source: str, found: str) -> bool:
        """Record (source, found) the first time the pair is seen."""
        key = (source, found)
        if key in self.relationship_keys:
            return False
        self.relationship_keys.add(key)
        self.relationships.append(LinkRelationship(source=source, found=found))
        return True

    def mark_visited(self, url: str) -> bool:
        """Add ``url`` to the visited set; False if it was already there."""
        if url in self.visited:
            return False
        self.visited.add(url)
        if url != self.seed_url:
            self.collected.append(url)
        return True

    def schedule(self, url: str) -> bool:
        """Claim the page behind ``url`` for fetching; False if already claimed."""
        key = page_url(url)
        if key in self.scheduled:
            return False
        self.scheduled.add(key)
        return True

    def record_error(self, url: str, error_type: str, message: str) -> None:
        self.errors.append(CrawlError(url=url, error_type=error_type, message=message))

    def finish(self) -> None:
        self.finished_at = utc_now()
        self.finished_monotonic = time.monotonic()
