"""Service layer for the avito harvester."""

from .extractor import extract_listing
from .pagination import CycleStats, PaginationController, page_url
from .renderer import HtmlElement, HtmlPage, SeleniumRenderer
from .scheduler import CycleScheduler
from .scraper import ListingPageScraper, PageReport

__all__ = [
    "CycleScheduler",
    "CycleStats",
    "HtmlElement",
    "HtmlPage",
    "ListingPageScraper",
    "PageReport",
    "PaginationController",
    "SeleniumRenderer",
    "extract_listing",
    "page_url",
]
