from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from typing import Optional, Sequence

import redis

from avito_agent.config import AgentConfig, load_env
from avito_agent.repositories import RedisStore
from avito_agent.services import (
    CycleScheduler,
    ListingPageScraper,
    PageReport,
    PaginationController,
    SeleniumRenderer,
)
from avito_agent.utils.log import configure_logging


logger = logging.getLogger("avito_agent")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Harvest avito listings into Redis")
    parser.add_argument("--url", help="Search URL to sweep (defaults to AVITO_URL)")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    parser.add_argument("--max-pages", type=int, help="Lower the page ceiling for each cycle")
    parser.add_argument("--debug", metavar="URL", help="Inspect one page's structure and exit")
    parser.add_argument("--env-file", help="Read settings from this .env file")
    return parser


def log_report(report: PageReport) -> None:
    logger.info("=== DEBUG MODE: Analyzing page structure ===")
    logger.info("URL: %s", report.url)
    logger.info("Page title: %s", report.title)
    for css, count in report.selector_counts.items():
        logger.info("Selector '%s': found %d elements", css, count)
        if css in report.first_texts:
            logger.info("  First element text: %s", report.first_texts[css])
    logger.info("Body text: %s", report.body_preview)
    for kw in report.blocking:
        logger.warning("Page might be blocked - found keyword: %s", kw)
    logger.info("=== END DEBUG ===")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_env(args.env_file)
    cfg = AgentConfig()
    configure_logging(cfg.log_level, cfg.log_file)

    if args.url:
        cfg.parser.base_url = args.url
    if args.max_pages is not None:
        cfg.parser.max_pages = max(1, min(args.max_pages, cfg.parser.max_pages))

    store = RedisStore.from_config(cfg.redis)
    try:
        store.ping()
    except redis.RedisError as exc:
        logger.error("Failed to connect to Redis: %s", exc)
        return 1

    renderer = SeleniumRenderer(
        headless=cfg.browser.headless,
        timeout=cfg.browser.timeout_secs,
        binary=cfg.browser.binary,
    )
    try:
        renderer.start()
    except Exception as exc:
        logger.error("Failed to start browser: %s", exc)
        store.close()
        return 1

    stop = threading.Event()

    def _shutdown(signum, _frame) -> None:
        logger.info("Received signal %s, stopping after the current page...", signum)
        stop.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    scraper = ListingPageScraper(
        renderer,
        origin=cfg.parser.origin,
        check_settle_secs=cfg.parser.check_settle_secs,
        fetch_settle_secs=cfg.parser.fetch_settle_secs,
        element_timeout_secs=cfg.browser.timeout_secs,
        inspect_settle_secs=cfg.parser.inspect_settle_secs,
    )
    try:
        if args.debug:
            log_report(scraper.inspect_page(args.debug))
            return 0

        controller = PaginationController(
            scraper,
            store,
            base_url=cfg.parser.base_url,
            max_pages=cfg.parser.max_pages,
            max_failed_checks=cfg.parser.max_failed_checks,
            retry_attempts=cfg.parser.retry_attempts,
            retry_delay_secs=cfg.parser.retry_delay_secs,
            page_delay_secs=cfg.parser.page_delay_secs,
            stop_event=stop,
        )
        scheduler = CycleScheduler(controller, cycle_delay_secs=cfg.parser.cycle_delay_secs)
        logger.info("Avito parser started. Press Ctrl+C to stop.")
        scheduler.run_forever(max_cycles=1 if args.once else None)
        logger.info("Shutting down gracefully...")
        return 0
    finally:
        renderer.close()
        store.close()


if __name__ == "__main__":
    sys.exit(main())
