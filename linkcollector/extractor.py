"""Hyperlink extraction from fetched HTML."""

from __future__ import annotations

import logging
from typing import List, Optional

from bs4 import BeautifulSoup, SoupStrainer

LOGGER = logging.getLogger(__name__)

# Parse only <a href> tags when no scope is needed (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)


def extract_links(html: Optional[str], scope_selector: Optional[str] = None) -> List[str]:
    """
    Return the raw ``href`` of every anchor in document order.

    With ``scope_selector`` only anchors inside (or equal to) the matched
    elements count; a selector that matches nothing yields an empty list.
    Duplicates are kept. lxml recovers from malformed markup, so broken
    pages still give whatever anchors could be parsed.
    """
    if not html:
        return []

    if not scope_selector:
        soup = BeautifulSoup(html, "lxml", parse_only=LINK_STRAINER)
        return [a["href"] for a in soup.find_all("a", href=True)]

    soup = BeautifulSoup(html, "lxml")
    scopes = soup.select(scope_selector)
    if not scopes:
        LOGGER.debug("Selector %r matched no elements", scope_selector)
        return []

    seen = set()
    hrefs: List[str] = []
    for scope in scopes:
        anchors = scope.find_all("a", href=True)
        if scope.name == "a" and scope.has_attr("href"):
            anchors.insert(0, scope)
        for anchor in anchors:
            # Nested scopes would otherwise report the same anchor twice.
            if id(anchor) in seen:
                continue
            seen.add(id(anchor))
            hrefs.append(anchor["href"])
    return hrefs
