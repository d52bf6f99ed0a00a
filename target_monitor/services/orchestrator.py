"""
Target Orchestrator - fans probes out over every configured target.

One task per target, across websites and file shares, gated by a semaphore.
Each task is wrapped so that nothing it does can abort the cycle or affect
another target: probe errors are already results, anything unexpected or
over the per-target deadline becomes a generic error result for that target.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from time import perf_counter
from typing import AsyncIterator, Dict, Optional, Tuple, Union

from .snapshot_store import SnapshotStore
from .store_probe import FileStoreProbe
from .website_probe import WebsiteProbe
from ..models import (
    CheckStatus,
    FileStoreTarget,
    Snapshot,
    StoreCheckResult,
    TargetKind,
    TargetSet,
    WebsiteCheckResult,
    WebsiteTarget,
)

CheckResult = Union[WebsiteCheckResult, StoreCheckResult]
Target = Union[WebsiteTarget, FileStoreTarget]


@dataclass(frozen=True)
class ProbeOutcome:
    kind: TargetKind
    key: str
    result: CheckResult


class TargetOrchestrator:
    def __init__(
        self,
        website_probe: WebsiteProbe,
        store_probe: FileStoreProbe,
        snapshot_store: SnapshotStore,
        targets: Optional[TargetSet] = None,
        max_concurrent_probes: int = 50,
        target_deadline_seconds: float = 300.0,
    ):
        self._website_probe = website_probe
        self._store_probe = store_probe
        self._snapshot_store = snapshot_store
        self._max_concurrent_probes = max(1, max_concurrent_probes)
        self._target_deadline = target_deadline_seconds

        # (generation, targets) swapped as a single value
        self._active: Tuple[int, TargetSet] = (0, targets or TargetSet())

        logging.info(
            f"TargetOrchestrator initialized - max {self._max_concurrent_probes} "
            f"concurrent probes, {self._target_deadline:g}s deadline per target"
        )

    @property
    def targets(self) -> TargetSet:
        return self._active[1]

    @property
    def generation(self) -> int:
        return self._active[0]

    def replace_targets(self, targets: TargetSet) -> int:
        """Supersede the active target set; in-flight cycles keep their own copy."""
        generation = self._active[0] + 1
        self._active = (generation, targets)
        logging.info(
            f"Target set replaced (generation {generation}): "
            f"{len(targets.websites)} websites, {len(targets.file_stores)} file shares"
        )
        return generation

    async def run_cycle(self, targets: Optional[TargetSet] = None) -> Snapshot:
        generation, active = self._active
        return await self._run(targets if targets is not None else active, generation)

    async def run_and_publish(self) -> Optional[Snapshot]:
        """
        Run a cycle on the active target set and publish it.

        Returns None when the target set was replaced while the cycle ran;
        those results are superseded and not retained.
        """
        generation, targets = self._active
        snapshot = await self._run(targets, generation)

        if self._active[0] != generation:
            logging.warning(
                f"Target set changed during cycle (generation {generation} -> "
                f"{self._active[0]}) - discarding superseded results"
            )
            return None

        self._snapshot_store.publish(snapshot)
        return snapshot

    async def stream_results(self, targets: TargetSet) -> AsyncIterator[ProbeOutcome]:
        """Yield each target's outcome as soon as it completes."""
        semaphore = asyncio.Semaphore(self._max_concurrent_probes)
        jobs = [(TargetKind.WEBSITE, t) for t in targets.websites] + [
            (TargetKind.FILE_STORE, t) for t in targets.file_stores
        ]
        tasks = [
            asyncio.create_task(
                self._run_guarded(kind, target, semaphore), name=f"probe:{target.key}"
            )
            for kind, target in jobs
        ]

        try:
            for next_done in asyncio.as_completed(tasks):
                yield await next_done
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    async def _run(self, targets: TargetSet, generation: int) -> Snapshot:
        logging.info(
            f"Starting monitoring cycle: {len(targets.websites)} websites, "
            f"{len(targets.file_stores)} file shares"
        )
        start_time = perf_counter()

        completed: Dict[Tuple[TargetKind, str], CheckResult] = {}
        async for outcome in self.stream_results(targets):
            completed[(outcome.kind, outcome.key)] = outcome.result

        completed_at = datetime.now(timezone.utc)

        # Configuration order, independent of completion order
        website_results = {
            t.key: completed[(TargetKind.WEBSITE, t.key)] for t in targets.websites
        }
        store_results = {
            t.key: completed[(TargetKind.FILE_STORE, t.key)] for t in targets.file_stores
        }

        failed = sum(
            1
            for result in completed.values()
            if result.status in (CheckStatus.DOWN, CheckStatus.ERROR)
        )
        logging.info(
            f"Monitoring cycle completed in {perf_counter() - start_time:.2f}s - "
            f"{len(completed)} targets, {failed} failing"
        )

        return Snapshot(
            website_results=website_results,
            store_results=store_results,
            last_update=completed_at,
            generation=generation,
        )

    async def _run_guarded(
        self, kind: TargetKind, target: Target, semaphore: asyncio.Semaphore
    ) -> ProbeOutcome:
        async with semaphore:
            try:
                result = await asyncio.wait_for(
                    self._probe(kind, target), timeout=self._target_deadline
                )
            except asyncio.TimeoutError:
                logging.error(
                    f"Check of {target.key} exceeded {self._target_deadline:g}s deadline"
                )
                result = self._fallback_result(
                    kind, target, f"Check timed out after {self._target_deadline:g}s"
                )
            except Exception as e:
                logging.error(f"Unexpected error checking {target.key}: {e}")
                result = self._fallback_result(kind, target, f"Unexpected error: {e}")

        return ProbeOutcome(kind=kind, key=target.key, result=result)

    async def _probe(self, kind: TargetKind, target: Target) -> CheckResult:
        if kind == TargetKind.WEBSITE:
            return await self._website_probe.probe(target)
        return await self._store_probe.probe(target)

    @staticmethod
    def _fallback_result(kind: TargetKind, target: Target, message: str) -> CheckResult:
        timestamp = datetime.now(timezone.utc)
        if kind == TargetKind.WEBSITE:
            return WebsiteCheckResult(
                url=target.url,
                name=target.display_name,
                status=CheckStatus.DOWN,
                status_code=0,
                response_time_millis=0,
                timestamp=timestamp,
                message=message,
            )
        return StoreCheckResult(
            account_name=target.account_name,
            share_name=target.share_name,
            name=target.display_name,
            status=CheckStatus.ERROR,
            file_count=0,
            timestamp=timestamp,
            message=message,
        )
