"""
Periodic refresh of the dashboard snapshot.

Each cycle fetches the log, runs the pipeline and, on success, replaces the
snapshot. A failed cycle keeps the previous snapshot and only changes the
status:
- RetrievalError → "waiting" (source not there yet, retried next cycle)
- SchemaError    → "error"   (bad header, retried next cycle)
ConfigurationError is raised at construction time and is fatal.

Cycles never overlap: run_forever awaits each cycle before sleeping.
"""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from config import DISPLAY, get_logger, validate_settings
from daily_stats import local_today, run_pipeline
from errors import RetrievalError, SchemaError
from source import fetch_source_text

logger = get_logger(__name__)


@dataclass(frozen=True)
class RefreshState:
    status: str = "waiting"
    message: str = DISPLAY["waiting_title"]
    snapshot: Optional[dict] = None
    last_success: Optional[datetime] = None
    cycles: int = 0
    failures: dict = field(default_factory=dict)


class RefreshOrchestrator:
    """Runs refresh cycles against the configured source document."""

    def __init__(self, settings, fetch=fetch_source_text, today=local_today, clock=datetime.now):
        validate_settings(settings)
        self.settings = settings
        self.fetch = fetch
        self.today = today
        self.clock = clock
        self.state = RefreshState()

    @property
    def interval_s(self):
        return self.settings["refresh_interval_ms"] / 1000

    def _fail(self, status, error):
        failures = dict(self.state.failures)
        name = type(error).__name__
        failures[name] = failures.get(name, 0) + 1
        self.state = replace(
            self.state,
            status=status,
            message=str(error),
            cycles=self.state.cycles + 1,
            failures=failures,
        )
        return self.state

    def process_text(self, text):
        """Synchronous half of a cycle: pipeline + state update."""
        try:
            payload = run_pipeline(text, self.today(), self.settings["total_workers_estimate"])
        except SchemaError as e:
            logger.error(f"Log formatting error: {e}")
            return self._fail("error", e)

        self.state = replace(
            self.state,
            status="ok",
            message="",
            snapshot=payload,
            last_success=self.clock(),
            cycles=self.state.cycles + 1,
        )
        return self.state

    def run_cycle(self):
        """One blocking cycle: fetch then process."""
        try:
            text = self.fetch(self.settings["source_document"], timeout=self.settings["fetch_timeout_s"])
        except RetrievalError as e:
            logger.warning(f"Data fetch warning: {e}")
            return self._fail("waiting", e)
        return self.process_text(text)

    async def refresh_once(self):
        """One cycle; only the fetch runs off the event loop."""
        try:
            text = await asyncio.to_thread(
                self.fetch,
                self.settings["source_document"],
                timeout=self.settings["fetch_timeout_s"],
            )
        except RetrievalError as e:
            logger.warning(f"Data fetch warning: {e}")
            return self._fail("waiting", e)
        return self.process_text(text)

    async def run_forever(self, max_cycles=None):
        """Refresh immediately, then every interval until cancelled."""
        logger.info(
            f"Refreshing {self.settings['source_document']} every {self.interval_s:g}s"
        )
        done = 0
        while max_cycles is None or done < max_cycles:
            try:
                await self.refresh_once()
            except Exception as e:
                # Keep the loop alive; the next tick starts from a clean cycle.
                logger.error(f"Refresh cycle failed: {e}", exc_info=True)
                self._fail("error", e)
            done += 1
            if max_cycles is not None and done >= max_cycles:
                break
            await asyncio.sleep(self.interval_s)
