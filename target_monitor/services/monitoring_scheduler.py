import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Set

from .orchestrator import TargetOrchestrator
from ..models import Snapshot


class MonitoringScheduler:
    """
    Periodic trigger for monitoring cycles.

    Runs one cycle immediately on start and then every ``interval_seconds``.
    Cycles never overlap: scheduled and out-of-band cycles share one lock.
    """

    def __init__(self, orchestrator: TargetOrchestrator, interval_seconds: int = 300):
        self._orchestrator = orchestrator
        self._interval = interval_seconds

        self._cycle_lock = asyncio.Lock()
        self._is_running = False
        self._monitor_task: Optional[asyncio.Task] = None
        self._pending_triggers: Set[asyncio.Task] = set()

        self._cycles_completed = 0
        self._last_cycle_started: Optional[datetime] = None
        self._last_cycle_error: Optional[str] = None

    async def start_monitoring(self) -> None:
        if self._is_running:
            logging.warning("Monitoring already running")
            return

        self._is_running = True
        self._monitor_task = asyncio.create_task(self._monitoring_loop())
        logging.info(f"Monitoring started - cycle every {self._interval}s")

    async def stop_monitoring(self) -> None:
        if not self._is_running:
            return

        self._is_running = False

        tasks = list(self._pending_triggers)
        if self._monitor_task:
            tasks.append(self._monitor_task)

        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        logging.info("Monitoring stopped")

    async def _monitoring_loop(self) -> None:
        try:
            while self._is_running:
                try:
                    await self.run_cycle()
                except Exception as e:
                    self._last_cycle_error = str(e)
                    logging.error(f"Monitoring error: {e}")

                await asyncio.sleep(self._interval)

        except asyncio.CancelledError:
            logging.debug("Monitoring loop cancelled")

    async def run_cycle(self) -> Optional[Snapshot]:
        async with self._cycle_lock:
            self._last_cycle_started = datetime.now(timezone.utc)
            snapshot = await self._orchestrator.run_and_publish()
            self._cycles_completed += 1
            self._last_cycle_error = None
            return snapshot

    def trigger_immediate_cycle(self) -> Optional[asyncio.Task]:
        """Schedule an out-of-band cycle, e.g. after a configuration change."""
        if not self._is_running:
            logging.warning("Monitoring not running - cannot trigger immediate cycle")
            return None

        logging.debug("Triggering immediate monitoring cycle")
        task = asyncio.create_task(self._triggered_cycle())
        self._pending_triggers.add(task)
        task.add_done_callback(self._pending_triggers.discard)
        return task

    async def _triggered_cycle(self) -> None:
        try:
            await self.run_cycle()
        except Exception as e:
            self._last_cycle_error = str(e)
            logging.error(f"Immediate monitoring cycle failed: {e}")

    @property
    def is_running(self) -> bool:
        return self._is_running

    def get_monitoring_status(self) -> dict:
        return {
            "is_running": self._is_running,
            "interval_seconds": self._interval,
            "cycles_completed": self._cycles_completed,
            "last_cycle_started": self._last_cycle_started,
            "last_cycle_error": self._last_cycle_error,
            "target_generation": self._orchestrator.generation,
        }
