"""Single-page HTML fetching on top of httpx.

The fetcher never raises for a page-level problem: callers receive either a
:class:`FetchedPage` or a :class:`FetchFailure` carrying a typed error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import httpx

from .auth import AuthInput, resolve_auth
from .config import default_timeout, default_user_agent

LOGGER = logging.getLogger(__name__)

ERROR_NETWORK = "network"
ERROR_HTTP = "http"
ERROR_CONTENT_TYPE = "unsupported-content-type"
ERROR_PARSE = "parse"

HTML_CONTENT_TYPES = frozenset({"text/html", "application/xhtml+xml"})

_ACCEPT = "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8"


@dataclass(slots=True)
class FetchedPage:
    """HTML retrieved for a URL."""

    url: str
    final_url: str
    status_code: int
    html: str
    content_type: str = "text/html"


@dataclass(slots=True)
class FetchFailure:
    """Typed failure for a URL that could not be used."""

    url: str
    error_type: str
    message: str
    status_code: Optional[int] = None


FetchResult = Union[FetchedPage, FetchFailure]


def _media_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


def is_html_content_type(content_type: Optional[str]) -> bool:
    return _media_type(content_type or "") in HTML_CONTENT_TYPES


class PageFetcher:
    """Fetch pages with one shared ``httpx.AsyncClient``.

    Use as an async context manager, or pass an existing ``client`` whose
    lifetime the caller manages.
    """

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        auth: Optional[AuthInput] = None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = float(timeout) if timeout is not None else default_timeout()
        self.user_agent = user_agent or default_user_agent()
        self._auth = resolve_auth(auth)
        self._transport = transport
        self._client = client
        self._owns_client = client is None

    def _build_client(self) -> httpx.AsyncClient:
        headers = {"User-Agent": self.user_agent, "Accept": _ACCEPT}
        kwargs: Dict[str, Any] = {}
        if self._auth:
            kwargs = self._auth.client_kwargs()
            headers.update(kwargs.pop("headers", {}))
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return httpx.AsyncClient(
            headers=headers,
            timeout=self.timeout,
            follow_redirects=True,
            **kwargs,
        )

    async def __aenter__(self) -> "PageFetcher":
        if self._client is None:
            self._client = self._build_client()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str) -> FetchResult:
        """GET ``url`` and return its HTML or a typed failure."""
        if self._client is None:
            self._client = self._build_client()

        LOGGER.debug("GET %s", url)
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as exc:
            return FetchFailure(url, ERROR_NETWORK, f"Timed out after {self.timeout:g}s: {exc!r}")
        except httpx.RequestError as exc:
            return FetchFailure(url, ERROR_NETWORK, f"Request failed: {exc}")
        except httpx.InvalidURL as exc:
            return FetchFailure(url, ERROR_NETWORK, f"Invalid URL: {exc}")

        status = response.status_code
        if not response.is_success:
            reason = response.reason_phrase or ""
            return FetchFailure(
                url,
                ERROR_HTTP,
                f"HTTP {status} {reason}".strip(),
                status_code=status,
            )

        content_type = response.headers.get("content-type", "")
        if not is_html_content_type(content_type):
            return FetchFailure(
                url,
                ERROR_CONTENT_TYPE,
                f"Unsupported content type: {content_type or 'missing'}",
                status_code=status,
            )

        try:
            html = response.text
        except (LookupError, UnicodeDecodeError) as exc:
            return FetchFailure(url, ERROR_PARSE, f"Could not decode body: {exc}", status_code=status)

        return FetchedPage(
            url=url,
            final_url=str(response.url),
            status_code=status,
            html=html,
            content_type=_media_type(content_type),
        )
