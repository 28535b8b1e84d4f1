from __future__ import annotations

from typing import Dict, List, Optional

from avito_agent.services.pagination import page_url
from avito_agent.services.renderer import HtmlElement, HtmlPage


BASE_URL = "https://www.avito.ru/chelyabinsk/kvartiry/sdam?district=16"
ORIGIN = "https://www.avito.ru"


def card(title: Optional[str] = "2-к. квартира, 45 м²", price: Optional[str] = "25 000 ₽", href: Optional[str] = "/chelyabinsk/kvartiry/1") -> str:
    heading = f'<h3 itemprop="name">{title}</h3>' if title is not None else ""
    link = f'<a itemprop="url" href="{href}">{heading}</a>' if href is not None else heading
    price_html = f'<span data-marker="item-price">{price}</span>' if price is not None else ""
    return (
        '<div data-marker="item">'
        f"{link}{price_html}"
        '<div data-marker="item-address">ул. Ленина, 1</div>'
        "</div>"
    )


def results_html(cards: List[str], body_text: str = "") -> str:
    return f"<html><head><title>Avito</title></head><body>{''.join(cards)}<p>{body_text}</p></body></html>"


def results_page(page: int, count: int) -> str:
    return results_html([card(title=f"Flat {page}-{i}", href=f"/chelyabinsk/kvartiry/{page}_{i}") for i in range(count)])


def first_element(html: str, css: str = "[data-marker='item']") -> HtmlElement:
    return HtmlPage(html).query_selector_all(css)[0]


def site(counts: Dict[int, int]) -> Dict[str, str]:
    """Map of page URL -> HTML for ``{page_number: card_count}``."""
    return {page_url(BASE_URL, n): results_page(n, c) for n, c in counts.items()}


class FakeRenderer:
    """Serves canned HTML; ``failures`` maps url -> failures left (-1: forever)."""

    def __init__(self, pages: Optional[Dict[str, str]] = None, failures: Optional[Dict[str, int]] = None) -> None:
        self.pages = dict(pages or {})
        self.failures = dict(failures or {})
        self.opened: List[str] = []
        self.handles: List[HtmlPage] = []

    def open_page(self, url: str) -> HtmlPage:
        self.opened.append(url)
        remaining = self.failures.get(url, 0)
        if remaining:
            if remaining > 0:
                self.failures[url] = remaining - 1
            raise RuntimeError(f"navigation failed: {url}")
        page = HtmlPage(self.pages.get(url, results_html([])), url)
        self.handles.append(page)
        return page


class FakeStore:
    def __init__(self) -> None:
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.writes = 0

    def exists(self, key: str) -> bool:
        return key in self.data

    def set(self, key: str, value: str, ttl: int) -> None:
        self.writes += 1
        self.data[key] = value
        self.ttls[key] = ttl

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def delete(self, key: str) -> None:
        self.data.pop(key, None)
        self.ttls.pop(key, None)
