"""URL normalization and comparison helpers."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional
from urllib.parse import urldefrag, urljoin, urlparse, urlunparse

import tldextract

LOGGER = logging.getLogger(__name__)

ALLOWED_SCHEMES = frozenset({"http", "https"})

_DEFAULT_PORTS = {"http": 80, "https": 443}

# Bundled public suffix snapshot only; never reach out to the network.
_EXTRACT = tldextract.TLDExtract(suffix_list_urls=())


def normalize_url(
    raw_link: Optional[str],
    base_url: str,
    *,
    skip_query: bool = False,
    skip_hash: bool = False,
) -> Optional[str]:
    """
    Resolve and canonicalize a link found on ``base_url``.

    - Joins relative references against the base
    - Rejects anything that is not http(s) (mailto:, javascript:, tel:, ...)
    - Lowercases scheme and host, drops credentials and default ports
    - Strips the query string and/or fragment when asked to

    Returns None instead of raising for input that cannot be parsed.
    """
    if raw_link is None:
        return None
    link = str(raw_link).strip()
    if not link:
        return None

    try:
        joined = urljoin(base_url, link)
        parsed = urlparse(joined)
        scheme = parsed.scheme.lower()
        if scheme not in ALLOWED_SCHEMES:
            return None
        hostname = (parsed.hostname or "").lower()
        port = parsed.port
    except ValueError:
        LOGGER.debug("Discarding unparseable link %r on %s", raw_link, base_url)
        return None

    if not hostname:
        return None

    host = f"[{hostname}]" if ":" in hostname else hostname
    if port and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{host}:{port}"
    else:
        netloc = host

    return urlunparse(
        (
            scheme,
            netloc,
            parsed.path or "/",
            parsed.params,
            "" if skip_query else parsed.query,
            "" if skip_hash else parsed.fragment,
        )
    )


def page_url(url: str) -> str:
    """``url`` without its fragment: the resource actually requested."""
    return urldefrag(url).url


def _normalize_pathname(pathname: str) -> str:
    return pathname if pathname == "/" else pathname.rstrip("/")


def is_target_url(url: str, target_url: str) -> bool:
    """Check whether two URLs point at the same target.

    Scheme, host, path (ignoring a trailing slash), query and fragment must
    match. Falls back to plain string equality when either side does not
    parse as an absolute URL.
    """
    try:
        a = urlparse(url)
        b = urlparse(target_url)
        if not (a.scheme and a.netloc and b.scheme and b.netloc):
            return url == target_url
        return (
            a.scheme.lower() == b.scheme.lower()
            and a.netloc.lower() == b.netloc.lower()
            and _normalize_pathname(a.path or "/") == _normalize_pathname(b.path or "/")
            and a.query == b.query
            and a.fragment == b.fragment
        )
    except ValueError:
        return url == target_url


def normalize_host(host: Optional[str]) -> str:
    """Normalize hostname by removing port and lowercasing."""
    if not host:
        return ""
    return host.split(":")[0].lower()


def url_host(url: str) -> str:
    """Lowercased hostname of ``url`` (empty when it has none)."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


@lru_cache(maxsize=256)
def registrable_domain(host: str) -> Optional[str]:
    """Extract the registrable domain from a hostname."""
    if not host:
        return None
    extracted = _EXTRACT(host)
    if not extracted.domain or not extracted.suffix:
        return host
    domain = ".".join(part for part in (extracted.domain, extracted.suffix) if part)
    return domain or host


def is_same_site(url: str, seed_url: str) -> bool:
    """True when both URLs share a registrable domain."""
    host = url_host(url)
    seed_host = url_host(seed_url)
    if not host or not seed_host:
        return False
    return registrable_domain(host) == registrable_domain(seed_host)
