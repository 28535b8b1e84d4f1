from __future__ import annotations

import pytest

from avito_agent.services.scraper import ListingPageScraper

from helpers import ORIGIN, FakeRenderer, FakeStore


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def make_scraper():
    def _make(renderer: FakeRenderer) -> ListingPageScraper:
        return ListingPageScraper(
            renderer,
            origin=ORIGIN,
            check_settle_secs=0,
            fetch_settle_secs=0,
            element_timeout_secs=0,
            inspect_settle_secs=0,
        )

    return _make
