"""Authentication configuration for collecting links behind a login.

Example usage:

    from linkcollector.auth import AuthConfig

    # With cookies
    auth = AuthConfig(
        cookies=[{"name": "sid", "value": "abc123", "domain": ".example.com"}]
    )

    # With bearer token header
    auth = AuthConfig(headers={"Authorization": "Bearer xyz"})

    result = await collect_links_async("https://intranet.example.com", auth=auth)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import httpx

LOGGER = logging.getLogger(__name__)

_SUPPORTED_FIELDS = frozenset({"cookies", "headers"})


class AuthConfigError(ValueError):
    """Raised when auth configuration cannot be loaded."""


@dataclass
class AuthConfig:
    """Credentials sent with every page request of a crawl.

    Attributes:
        cookies: List of cookie dicts with 'name' and 'value' keys.
            Optionally include 'domain' and 'path'.
        headers: Dict of custom HTTP headers (e.g. Authorization).
    """

    cookies: Optional[List[Dict[str, Any]]] = None
    headers: Optional[Dict[str, str]] = None

    @property
    def is_empty(self) -> bool:
        """Return True if no auth configuration is set."""
        return not self.cookies and not self.headers

    def build_cookies(self) -> httpx.Cookies:
        jar = httpx.Cookies()
        for cookie in self.cookies or []:
            name = cookie.get("name")
            if not name:
                LOGGER.warning("Skipping cookie without a name: %r", cookie)
                continue
            jar.set(
                name,
                str(cookie.get("value", "")),
                domain=cookie.get("domain") or "",
                path=cookie.get("path") or "/",
            )
        return jar

    def client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments merged into the httpx client construction."""
        kwargs: Dict[str, Any] = {}
        if self.headers:
            kwargs["headers"] = dict(self.headers)
            LOGGER.info("Auth: injecting %d custom header(s)", len(self.headers))
        if self.cookies:
            kwargs["cookies"] = self.build_cookies()
            LOGGER.info("Auth: injecting %d cookie(s)", len(self.cookies))
        return kwargs


AuthInput = Union[AuthConfig, Mapping[str, Any]]


def resolve_auth(auth: Optional[AuthInput]) -> Optional[AuthConfig]:
    """Accept an AuthConfig or a plain dict and validate it."""
    if auth is None:
        return None
    if isinstance(auth, AuthConfig):
        return None if auth.is_empty else auth
    if not isinstance(auth, Mapping):
        raise AuthConfigError(f"Unsupported auth value: {type(auth).__name__}")

    unsupported = sorted(set(auth) - _SUPPORTED_FIELDS)
    if unsupported:
        raise AuthConfigError(f"Unsupported auth fields: {', '.join(unsupported)}")

    cookies = auth.get("cookies")
    if cookies is not None and not isinstance(cookies, list):
        raise AuthConfigError("auth cookies must be a list of objects")
    headers = auth.get("headers")
    if headers is not None and not isinstance(headers, Mapping):
        raise AuthConfigError("auth headers must be an object")

    config = AuthConfig(cookies=cookies, headers=dict(headers) if headers else None)
    return None if config.is_empty else config


def load_auth_from_file(path: str) -> AuthConfig:
    """Load auth configuration from a JSON file.

    The file should contain a JSON object with optional keys 'cookies' and
    'headers'.

    Raises:
        AuthConfigError: If the file is missing or not valid JSON.
    """
    config_path = Path(path).expanduser()
    if not config_path.is_file():
        raise AuthConfigError(f"Auth config file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        raise AuthConfigError(f"Auth config has invalid JSON: {config_path}") from exc

    resolved = resolve_auth(data)
    LOGGER.info("Loaded auth config from %s", config_path)
    return resolved or AuthConfig()


def load_auth_from_env() -> Optional[AuthConfig]:
    """Load auth configuration named by ``LINKCOLLECTOR_AUTH_FILE``.

    Returns:
        AuthConfig if the variable is set, None otherwise.
    """
    auth_file = os.environ.get("LINKCOLLECTOR_AUTH_FILE")
    if not auth_file:
        return None
    return load_auth_from_file(auth_file)
