"""Filter rules deciding which discovered URLs are eligible.

A rule list acts as an allow-list as soon as it holds one inclusion rule,
otherwise it is a pure exclusion list. Exclusion always wins over inclusion.

Regex conditions use a two-step strategy: the pattern is compiled once as a
case-insensitive regular expression; a pattern that fails to compile becomes
a case-insensitive substring predicate instead of raising.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Iterable, List, Optional, Pattern, Sequence
from urllib.parse import urlparse

from .models import FilterRule
from .urls import normalize_host

LOGGER = logging.getLogger(__name__)


class MatchKind(str, Enum):
    REGEX = "regex"
    SUBSTRING = "substring"


@dataclass(frozen=True)
class PatternMatcher:
    """A compiled regex-or-substring pattern."""

    pattern: str
    kind: MatchKind
    compiled: Optional[Pattern[str]] = None

    def matches(self, text: str) -> bool:
        if self.kind is MatchKind.REGEX and self.compiled is not None:
            return self.compiled.search(text) is not None
        return self.pattern.lower() in text.lower()


@lru_cache(maxsize=512)
def compile_pattern(pattern: str) -> PatternMatcher:
    """Build the matcher for ``pattern``, falling back to substring matching."""
    try:
        compiled = re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        LOGGER.debug("Pattern %r is not a valid regex (%s); using substring match", pattern, exc)
        return PatternMatcher(pattern=pattern, kind=MatchKind.SUBSTRING)
    return PatternMatcher(pattern=pattern, kind=MatchKind.REGEX, compiled=compiled)


def _rule_domain(value: str) -> str:
    value = value.strip().lower()
    if "://" in value:
        value = urlparse(value).netloc
    value = normalize_host(value)
    return value.lstrip("*").lstrip(".")


def _matches_domain(host: str, domains: Iterable[str]) -> bool:
    for raw in domains:
        domain = _rule_domain(raw)
        if domain and (host == domain or host.endswith("." + domain)):
            return True
    return False


def _matches_path_prefix(path: str, prefixes: Iterable[str]) -> bool:
    path = path.lower()
    for raw in prefixes:
        prefix = raw.strip().lower()
        if not prefix:
            continue
        if not prefix.startswith("/"):
            prefix = "/" + prefix
        if path.startswith(prefix):
            return True
    return False


def rule_matches(url: str, rule: FilterRule) -> bool:
    """True when any condition of ``rule`` matches ``url``."""
    try:
        parsed = urlparse(url)
        host = (parsed.hostname or "").lower()
    except ValueError:
        return False

    if rule.domain and _matches_domain(host, rule.domain):
        return True
    if rule.path_prefix and _matches_path_prefix(parsed.path or "/", rule.path_prefix):
        return True
    if any(compile_pattern(pattern).matches(url) for pattern in rule.regex):
        return True
    lowered = url.lower()
    return any(keyword.lower() in lowered for keyword in rule.keywords if keyword)


def is_allowed(url: str, filters: Optional[Sequence[FilterRule]]) -> bool:
    """Decide whether ``url`` passes the configured rule list."""
    rules = [rule for rule in (filters or ()) if not rule.is_empty]
    if not rules:
        return True

    if any(rule_matches(url, rule) for rule in rules if rule.exclude):
        return False

    includes = [rule for rule in rules if not rule.exclude]
    if not includes:
        return True
    return any(rule_matches(url, rule) for rule in includes)


def is_url_excluded(url: str, patterns: Iterable[str]) -> bool:
    """Check a URL against free-form exclude patterns (regex or substring)."""
    return any(compile_pattern(pattern).matches(url) for pattern in patterns if pattern)


def get_excluded_urls(urls: Iterable[str], patterns: Sequence[str]) -> List[str]:
    """Return the subset of ``urls`` hit by any exclude pattern."""
    return [url for url in urls if is_url_excluded(url, patterns)]


def apply_exclude_patterns(urls: Iterable[str], patterns: Sequence[str]) -> List[str]:
    """Return ``urls`` without the ones hit by any exclude pattern."""
    return [url for url in urls if not is_url_excluded(url, patterns)]
