"""Load search result pages and pull listing cards out of them."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from avito_agent.errors import AgentError, ExtractionFailure, FetchFailure
from avito_agent.models import Listing
from avito_agent.services.extractor import extract_listing
from avito_agent.services.renderer import Element, Page, Renderer


logger = logging.getLogger(__name__)

# Shared by the page check and the fetch so both count the same cards.
LISTING_SELECTORS: Tuple[str, ...] = (
    "[data-marker='item']",
    "[data-marker*='item']",
)

# Past the last real page the site still renders a short "similar ads" strip.
MIN_LISTINGS_PER_PAGE = 3

BLOCKING_KEYWORDS: Tuple[str, ...] = (
    "блокировка",
    "доступ запрещен",
    "access denied",
    "captcha",
    "проверка браузера",
    "robot",
    "бот",
)

DIAGNOSTIC_SELECTORS: Tuple[str, ...] = (
    "[data-marker='item']",
    "[data-marker*='item']",
    ".item",
    ".listing-item",
    "[data-marker='catalog-serp']",
    "[data-marker*='catalog']",
    "article",
    ".js-catalog_after-ads",
    "[data-marker*='snippet']",
)


def find_listing_elements(page: Page, selectors: Sequence[str] = LISTING_SELECTORS) -> List[Element]:
    """Elements of the first selector that matches anything; results are not merged."""
    for css in selectors:
        found = [el for el in page.query_selector_all(css) if el is not None]
        if found:
            return found
    return []


def blocking_keywords(text: str) -> List[str]:
    """Keywords found as whole words ("бот" must not match "работа")."""
    lowered = (text or "").lower()
    return [kw for kw in BLOCKING_KEYWORDS if re.search(rf"\b{re.escape(kw)}\b", lowered)]


@dataclass
class PageReport:
    url: str
    title: str = ""
    selector_counts: Dict[str, int] = field(default_factory=dict)
    first_texts: Dict[str, str] = field(default_factory=dict)
    body_preview: str = ""
    blocking: List[str] = field(default_factory=list)


class ListingPageScraper:
    """Opens one page per call through the renderer and always closes it."""

    def __init__(
        self,
        renderer: Renderer,
        origin: str,
        check_settle_secs: float = 2.0,
        fetch_settle_secs: float = 3.0,
        element_timeout_secs: float = 0.0,
        inspect_settle_secs: float = 5.0,
    ) -> None:
        self.renderer = renderer
        self.origin = origin
        self.check_settle_secs = check_settle_secs
        self.fetch_settle_secs = fetch_settle_secs
        self.element_timeout_secs = element_timeout_secs
        self.inspect_settle_secs = inspect_settle_secs

    def _load(self, url: str, settle: float) -> Page:
        page = self.renderer.open_page(url)
        try:
            page.wait_load()
            if settle:
                time.sleep(settle)
        except Exception:
            page.close()
            raise
        return page

    def has_sufficient_listings(self, url: str) -> Tuple[bool, int]:
        """Return ``(valid, count)``; valid once the page holds enough cards."""
        try:
            page = self._load(url, self.check_settle_secs)
        except Exception as exc:
            raise FetchFailure(url, exc) from exc
        try:
            count = len(find_listing_elements(page))
            valid = count >= MIN_LISTINGS_PER_PAGE
            if not valid:
                hits = blocking_keywords(page.body_text())
                if hits:
                    logger.warning("Page %s might be blocked, found keywords: %s", url, ", ".join(hits))
            return valid, count
        except Exception as exc:
            raise FetchFailure(url, exc) from exc
        finally:
            page.close()

    def _await_listing_elements(self, page: Page) -> List[Element]:
        deadline = time.monotonic() + self.element_timeout_secs
        while True:
            elements = find_listing_elements(page)
            if elements or time.monotonic() >= deadline:
                return elements
            time.sleep(0.5)

    def fetch_listings(self, url: str) -> List[Listing]:
        """Extract every card on the page. An empty list means no cards at all."""
        try:
            page = self._load(url, self.fetch_settle_secs)
        except Exception as exc:
            raise FetchFailure(url, exc) from exc
        try:
            elements = self._await_listing_elements(page)
            if not elements:
                logger.warning("No listings found with any selector on %s", url)
                return []
            listings: List[Listing] = []
            for i, element in enumerate(elements):
                try:
                    listings.append(extract_listing(element, self.origin))
                except ExtractionFailure as exc:
                    logger.info("Failed to parse listing %d on %s: %s", i, url, exc)
            return listings
        except AgentError:
            raise
        except Exception as exc:
            raise FetchFailure(url, exc) from exc
        finally:
            page.close()

    def inspect_page(self, url: str, selectors: Optional[Sequence[str]] = None) -> PageReport:
        """Collect what the page looks like to the selectors, for debugging."""
        page = self._load(url, self.inspect_settle_secs)
        report = PageReport(url=url)
        try:
            report.title = page.title()
            for css in selectors or DIAGNOSTIC_SELECTORS:
                found = page.query_selector_all(css)
                report.selector_counts[css] = len(found)
                if found and found[0] is not None:
                    text = found[0].text()
                    if text:
                        report.first_texts[css] = text if len(text) <= 100 else text[:100] + "..."
            body = page.body_text()
            report.body_preview = body if len(body) < 500 else body[:500] + "..."
            report.blocking = blocking_keywords(body)
        finally:
            page.close()
        return report
