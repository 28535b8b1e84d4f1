from __future__ import annotations

import logging

import pytest

from avito_agent.errors import FetchFailure
from avito_agent.models import Listing
from avito_agent.services.scraper import blocking_keywords

from helpers import FakeRenderer, card, results_html


URL = "https://www.avito.ru/chelyabinsk/kvartiry/sdam"


@pytest.mark.parametrize("count, valid", [(0, False), (2, False), (3, True), (7, True)])
def test_page_validity_threshold(make_scraper, count: int, valid: bool) -> None:
    html = results_html([card(href=f"/item/{i}") for i in range(count)])
    renderer = FakeRenderer({URL: html})

    assert make_scraper(renderer).has_sufficient_listings(URL) == (valid, count)
    assert renderer.handles[0].closed


def test_validity_uses_first_matching_selector_only(make_scraper) -> None:
    # two exact markers plus partial ones; the exact selector wins, no merging
    html = results_html(
        [card(href="/item/1"), card(href="/item/2")]
        + ['<div data-marker="item-similar">x</div>'] * 3
    )
    renderer = FakeRenderer({URL: html})
    assert make_scraper(renderer).has_sufficient_listings(URL) == (False, 2)


def test_validity_falls_back_to_partial_marker(make_scraper) -> None:
    html = results_html(['<div data-marker="item-snippet">x</div>'] * 4)
    renderer = FakeRenderer({URL: html})
    assert make_scraper(renderer).has_sufficient_listings(URL) == (True, 4)


def test_renderer_error_is_fetch_failure(make_scraper) -> None:
    renderer = FakeRenderer(failures={URL: -1})
    scraper = make_scraper(renderer)

    with pytest.raises(FetchFailure):
        scraper.has_sufficient_listings(URL)
    with pytest.raises(FetchFailure):
        scraper.fetch_listings(URL)


def test_blocked_page_is_reported(make_scraper, caplog: pytest.LogCaptureFixture) -> None:
    renderer = FakeRenderer({URL: results_html([], body_text="Доступ запрещен. Пройдите captcha")})
    with caplog.at_level(logging.WARNING):
        assert make_scraper(renderer).has_sufficient_listings(URL) == (False, 0)
    assert "might be blocked" in caplog.text


def test_keywords_inside_scripts_are_ignored(make_scraper, caplog: pytest.LogCaptureFixture) -> None:
    html = (
        "<html><body><p>Ничего не найдено</p>"
        "<script>window.__initialData__={\"captcha\":false,\"robot\":null}</script></body></html>"
    )
    renderer = FakeRenderer({URL: html})
    with caplog.at_level(logging.WARNING):
        assert make_scraper(renderer).has_sufficient_listings(URL) == (False, 0)
    assert "might be blocked" not in caplog.text


@pytest.mark.parametrize(
    "text",
    [
        "Авито. Недвижимость Работа Услуги. Ничего не найдено",
        "Обработка заявки. Заработок на дому",
        "Roboto font loaded",
    ],
)
def test_keywords_match_whole_words_only(text: str) -> None:
    assert blocking_keywords(text) == []


def test_keywords_found_as_words() -> None:
    assert blocking_keywords("Похоже, вы бот. Доступ запрещен!") == ["доступ запрещен", "бот"]


def test_fetch_skips_cards_without_title(make_scraper) -> None:
    cards = [
        card(title="Квартира 1", href="/item/1"),
        card(title=None, href="/item/2"),
        card(title="Квартира 3", href="/item/3"),
        card(title=None, href="/item/4"),
        card(title="Квартира 5", href="/item/5"),
    ]
    renderer = FakeRenderer({URL: results_html(cards)})

    listings = make_scraper(renderer).fetch_listings(URL)

    assert all(isinstance(l, Listing) for l in listings)
    assert [l.title for l in listings] == ["Квартира 1", "Квартира 3", "Квартира 5"]
    assert [l.url for l in listings] == [f"https://www.avito.ru/item/{i}" for i in (1, 3, 5)]
    assert renderer.handles[0].closed


def test_fetch_of_empty_page_returns_nothing(make_scraper) -> None:
    renderer = FakeRenderer({URL: results_html([])})
    assert make_scraper(renderer).fetch_listings(URL) == []
    assert renderer.handles[0].closed


def test_page_closed_when_query_fails(make_scraper, monkeypatch: pytest.MonkeyPatch) -> None:
    renderer = FakeRenderer({URL: results_html([card()])})
    scraper = make_scraper(renderer)
    import avito_agent.services.scraper as scraper_mod

    def broken(page, selectors=None):
        raise RuntimeError("target closed")

    monkeypatch.setattr(scraper_mod, "find_listing_elements", broken)
    with pytest.raises(FetchFailure):
        scraper.fetch_listings(URL)
    assert renderer.handles[0].closed


def test_inspect_page_report(make_scraper) -> None:
    html = results_html([card(title="Квартира")] * 3, body_text="Are you a robot?")
    renderer = FakeRenderer({URL: html})

    report = make_scraper(renderer).inspect_page(URL)

    assert report.title == "Avito"
    assert report.selector_counts["[data-marker='item']"] == 3
    assert report.first_texts["[data-marker='item']"].startswith("Квартира")
    assert report.blocking == ["robot"]
    assert renderer.handles[0].closed
