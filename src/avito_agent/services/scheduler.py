from __future__ import annotations

import logging
import threading
from typing import Optional

from avito_agent.services.pagination import CycleStats, PaginationController


logger = logging.getLogger(__name__)


class CycleScheduler:
    """Repeats full sweeps until stopped. A crashing sweep never ends the loop."""

    def __init__(
        self,
        controller: PaginationController,
        cycle_delay_secs: float = 60.0,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.controller = controller
        self.cycle_delay_secs = cycle_delay_secs
        self.stop_event = stop_event or controller.stop_event
        self.cycles_run = 0
        self.last_stats: Optional[CycleStats] = None

    def stop(self) -> None:
        self.stop_event.set()

    def run_forever(self, max_cycles: Optional[int] = None) -> None:
        while not self.stop_event.is_set():
            try:
                self.last_stats = self.controller.run_one_cycle()
            except Exception:
                logger.exception("Error during parsing cycle")
            self.cycles_run += 1
            if max_cycles is not None and self.cycles_run >= max_cycles:
                break
            if self.stop_event.is_set():
                break
            logger.info("Waiting %.0fs before next cycle...", self.cycle_delay_secs)
            self.stop_event.wait(self.cycle_delay_secs)
        logger.info("Scheduler stopped after %d cycles", self.cycles_run)
