"""Turn one rendered listing card into a ``Listing``.

Card markup drifts between A/B variants, so each field is looked up through
an ordered chain of selectors and the first one producing text wins.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional
from urllib.parse import urljoin, urlparse

from avito_agent.errors import MissingTitle
from avito_agent.models import PRICE_NOT_SPECIFIED, Listing, derive_listing_id
from avito_agent.services.renderer import Element


TITLE_SELECTORS = (
    "[itemprop='name']",
    "[data-marker='item-title']",
    "h3 a",
    ".item-title a",
    "[data-marker*='title'] a",
    "a[title]",
)

PRICE_SELECTORS = (
    "[itemprop='price']",
    "[data-marker='item-price']",
    ".price",
    "[data-marker*='price']",
    ".item-price",
)

LOCATION_SELECTORS = (
    "[data-marker='item-address']",
    "[class*='geo']",
    "[itemprop='address']",
)

DESCRIPTION_SELECTORS = (
    "meta[itemprop='description']",
    "[class*='description']",
)


def first_text(element: Element, selectors: Iterable[str], attr: Optional[str] = None) -> Optional[str]:
    """Return the stripped text of the first selector that yields any.

    With ``attr`` set, a matching node with blank text may still answer
    through that attribute (``<meta itemprop=... content=...>``).
    """
    for css in selectors:
        node = element.query_selector(css)
        if node is None:
            continue
        text = (node.text() or "").strip()
        if not text and attr:
            text = (node.attribute(attr) or "").strip()
        if text:
            return text
    return None


def resolve_url(element: Element, origin: str) -> str:
    link = element.query_selector("a[href]")
    if link is None:
        return ""
    href = (link.attribute("href") or "").strip()
    if not href:
        return ""
    if urlparse(href).scheme:
        return href
    return urljoin(origin.rstrip("/") + "/", href)


def extract_listing(element: Element, origin: str) -> Listing:
    """Build a ``Listing`` from a card; raises ``MissingTitle`` if it has none."""
    title = first_text(element, TITLE_SELECTORS)
    if not title:
        raise MissingTitle()
    price = first_text(element, PRICE_SELECTORS, attr="content") or PRICE_NOT_SPECIFIED
    location = first_text(element, LOCATION_SELECTORS)
    description = first_text(element, DESCRIPTION_SELECTORS, attr="content")
    url = resolve_url(element, origin)

    now = datetime.now(timezone.utc)
    return Listing(
        id=derive_listing_id(url, title, price, location, description),
        title=title,
        price=price,
        url=url,
        location=location,
        description=description,
        created_at=now,
        updated_at=now,
    )
