from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_when_event_set,
    wait_fixed,
)

from avito_agent.errors import FetchFailure, InvalidListing, PersistFailure
from avito_agent.models import Listing
from avito_agent.repositories.store import KeyValueStore, SaveOutcome, save_if_new
from avito_agent.services.scraper import ListingPageScraper


logger = logging.getLogger(__name__)


def page_url(base_url: str, page: int) -> str:
    """URL of result page ``page``; page 1 is the base URL itself."""
    if page <= 1:
        return base_url
    u = urlparse(base_url)
    q = dict(parse_qsl(u.query, keep_blank_values=True))
    q["p"] = str(page)
    q["localPriority"] = "0"
    return urlunparse((u.scheme, u.netloc, u.path, u.params, urlencode(q), u.fragment))


@dataclass
class CycleStats:
    pages_processed: int = 0
    new_listings_saved: int = 0
    listings_found: int = 0
    duplicates: int = 0
    failed_pages: int = 0
    save_errors: int = 0
    stopped_by: str = ""  # exhausted|page_limit|failure_limit|cancelled


class PaginationController:
    """Walks result pages 1, 2, 3... until one comes back short.

    A page whose check or fetch still fails after the retry budget is skipped,
    never the whole sweep.
    """

    def __init__(
        self,
        scraper: ListingPageScraper,
        store: KeyValueStore,
        base_url: str,
        max_pages: int = 50,
        max_failed_checks: int = 10,
        retry_attempts: int = 3,
        retry_delay_secs: float = 2.0,
        page_delay_secs: float = 2.0,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.scraper = scraper
        self.store = store
        self.base_url = base_url
        self.max_pages = max_pages
        self.max_failed_checks = max_failed_checks
        self.retry_attempts = retry_attempts
        self.retry_delay_secs = retry_delay_secs
        self.page_delay_secs = page_delay_secs
        self.stop_event = stop_event or threading.Event()

    def _pause(self, seconds: float) -> None:
        # wakes early on shutdown
        if seconds > 0:
            self.stop_event.wait(seconds)

    def _retrying(self, what: str, page: int) -> Retrying:
        def _log_retry(state) -> None:
            logger.warning(
                "Attempt %d to %s page %d failed: %s",
                state.attempt_number,
                what,
                page,
                state.outcome.exception() if state.outcome else None,
            )

        return Retrying(
            # no further attempts once shutdown is requested
            stop=stop_after_attempt(self.retry_attempts) | stop_when_event_set(self.stop_event),
            wait=wait_fixed(self.retry_delay_secs),
            retry=retry_if_exception_type(FetchFailure),
            sleep=self._pause,
            before_sleep=_log_retry,
            reraise=True,
        )

    def _persist(self, listings: List[Listing], stats: CycleStats) -> int:
        saved = 0
        for listing in listings:
            try:
                outcome = save_if_new(self.store, listing)
            except (InvalidListing, PersistFailure) as exc:
                stats.save_errors += 1
                logger.error("Error saving listing: %s", exc)
                continue
            if outcome is SaveOutcome.SAVED:
                saved += 1
            else:
                stats.duplicates += 1
        return saved

    def run_one_cycle(self) -> CycleStats:
        logger.info("Starting full parsing cycle...")
        stats = CycleStats()
        failed_checks = 0
        page = 1

        while True:
            if self.stop_event.is_set():
                logger.info("Shutdown requested, stopping pagination before page %d", page)
                stats.stopped_by = "cancelled"
                break
            if page > self.max_pages:
                logger.info("Reached maximum page limit (%d), ending pagination", self.max_pages)
                stats.stopped_by = "page_limit"
                break

            url = page_url(self.base_url, page)
            logger.info("Processing page %d...", page)

            try:
                valid, count = self._retrying("check", page)(self.scraper.has_sufficient_listings, url)
            except FetchFailure as exc:
                failed_checks += 1
                stats.failed_pages += 1
                logger.error("Error checking page %d: %s, skipping...", page, exc)
                if failed_checks >= self.max_failed_checks:
                    logger.error("%d page checks failed in a row, ending pagination", failed_checks)
                    stats.stopped_by = "failure_limit"
                    break
                page += 1
                continue
            failed_checks = 0

            if not valid:
                logger.info(
                    "Found %d listings on page %d (less than minimum), ending pagination", count, page
                )
                stats.stopped_by = "exhausted"
                break

            try:
                listings = self._retrying("fetch", page)(self.scraper.fetch_listings, url)
            except FetchFailure as exc:
                stats.failed_pages += 1
                logger.error("Error parsing page %d: %s, skipping...", page, exc)
                page += 1
                continue

            saved = self._persist(listings, stats)
            logger.info("Found %d listings on page %d, saved %d new listings", len(listings), page, saved)
            stats.listings_found += len(listings)
            stats.new_listings_saved += saved
            stats.pages_processed += 1

            self._pause(self.page_delay_secs)
            page += 1

        logger.info(
            "Total cycle results: %d pages processed, %d new listings saved",
            stats.pages_processed,
            stats.new_listings_saved,
        )
        return stats
