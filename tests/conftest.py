"""Shared fixtures and strict test-accounting guardrails."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest

from linkcollector.fetcher import FetchedPage, FetchFailure, FetchResult


# ---------------------------------------------------------------------------
# In-memory site
# ---------------------------------------------------------------------------

PageSource = Union[str, FetchedPage, FetchFailure]


def links_page(*hrefs: str, body: str = "") -> str:
    """Minimal HTML page with one anchor per href."""
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in hrefs)
    return f"<html><body>{body}{anchors}</body></html>"


class FakeSite:
    """Fetcher serving pages from a dict; unknown URLs answer HTTP 404."""

    def __init__(
        self,
        pages: Dict[str, PageSource],
        on_fetch: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.pages = pages
        self.on_fetch = on_fetch
        self.calls: List[Tuple[str, float]] = []

    @property
    def fetched(self) -> List[str]:
        return [url for url, _ in self.calls]

    async def fetch(self, url: str) -> FetchResult:
        self.calls.append((url, time.monotonic()))
        if self.on_fetch is not None:
            self.on_fetch(url)
        source = self.pages.get(url)
        if source is None:
            return FetchFailure(url, "http", "HTTP 404 Not Found", status_code=404)
        if isinstance(source, (FetchedPage, FetchFailure)):
            return source
        return FetchedPage(url=url, final_url=url, status_code=200, html=source)


@pytest.fixture
def make_site() -> Callable[..., FakeSite]:
    return FakeSite


@pytest.fixture
def page() -> Callable[..., str]:
    return links_page


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "LINKCOLLECTOR_USER_AGENT",
        "LINKCOLLECTOR_TIMEOUT",
        "LINKCOLLECTOR_DELAY_MS",
        "LINKCOLLECTOR_MAX_PAGES",
        "LINKCOLLECTOR_AUTH_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Test accounting: no skipped/deselected/xfail tests allowed
# ---------------------------------------------------------------------------


@dataclass
class _TestAccounting:
    deselected: int = 0
    skipped: int = 0
    xfailed: int = 0


_ACCOUNTING = _TestAccounting()


def pytest_deselected(items):  # pragma: no cover - pytest hook
    _ACCOUNTING.deselected += len(items)


def pytest_runtest_logreport(report):  # pragma: no cover - pytest hook
    if report.when not in {"setup", "call"}:
        return
    if getattr(report, "wasxfail", False):
        _ACCOUNTING.xfailed += 1
    elif report.outcome == "skipped":
        _ACCOUNTING.skipped += 1


def pytest_sessionfinish(session, exitstatus):  # pragma: no cover - pytest hook
    violations = [
        f"{name}={count}"
        for name, count in (
            ("deselected", _ACCOUNTING.deselected),
            ("skipped", _ACCOUNTING.skipped),
            ("xfailed", _ACCOUNTING.xfailed),
        )
        if count
    ]
    if not violations:
        return

    reporter = session.config.pluginmanager.get_plugin("terminalreporter")
    if reporter:
        reporter.write_sep(
            "=",
            f"Strict guard failed: test accounting violations ({', '.join(violations)})",
        )
    session.exitstatus = 1
