"""
Tests for TargetOrchestrator - fan-out, failure isolation, deadlines and
superseded target sets.
"""

import asyncio
from contextlib import aclosing
from datetime import datetime, timezone

import pytest

from target_monitor.models import (
    CheckStatus,
    FileStoreTarget,
    StoreCheckResult,
    TargetKind,
    TargetSet,
    WebsiteCheckResult,
    WebsiteTarget,
)
from target_monitor.services.orchestrator import TargetOrchestrator
from target_monitor.services.snapshot_store import SnapshotStore
from target_monitor.services.store_probe import FileStoreProbe


class FakeWebsiteProbe:
    def __init__(self, delays=None, failures=None):
        self.delays = delays or {}
        self.failures = failures or {}
        self.active = 0
        self.peak = 0
        self.calls = []

    async def probe(self, target: WebsiteTarget) -> WebsiteCheckResult:
        self.calls.append(target.url)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delays.get(target.url, 0))
            if target.url in self.failures:
                raise self.failures[target.url]
            return WebsiteCheckResult(
                url=target.url,
                name=target.display_name,
                status=CheckStatus.UP,
                status_code=200,
                response_time_millis=5,
                timestamp=datetime.now(timezone.utc),
                message="OK - 200",
            )
        finally:
            self.active -= 1


class FakeStoreProbe:
    def __init__(self, delay: float = 0):
        self.delay = delay

    async def probe(self, target: FileStoreTarget) -> StoreCheckResult:
        await asyncio.sleep(self.delay)
        return StoreCheckResult(
            account_name=target.account_name,
            share_name=target.share_name,
            name=target.display_name,
            status=CheckStatus.OK,
            file_count=7,
            timestamp=datetime.now(timezone.utc),
            message="7 files found",
        )


def websites(*urls) -> list:
    return [WebsiteTarget(url=u) for u in urls]


def make_orchestrator(website_probe=None, store_probe=None, **kwargs):
    snapshot_store = SnapshotStore()
    orchestrator = TargetOrchestrator(
        website_probe=website_probe or FakeWebsiteProbe(),
        store_probe=store_probe or FakeStoreProbe(),
        snapshot_store=snapshot_store,
        **kwargs,
    )
    return orchestrator, snapshot_store


class TestRunCycle:
    @pytest.mark.asyncio
    async def test_one_entry_per_target(self):
        targets = TargetSet(
            websites=websites("https://a.example", "https://b.example"),
            file_stores=[FileStoreTarget(account_name="acct", share_name="s1")],
        )
        orchestrator, _ = make_orchestrator(targets=targets)

        snapshot = await orchestrator.run_cycle()

        assert list(snapshot.website_results) == ["https://a.example", "https://b.example"]
        assert list(snapshot.store_results) == ["acct/s1"]
        assert snapshot.store_results["acct/s1"].file_count == 7
        assert snapshot.last_update is not None

    @pytest.mark.asyncio
    async def test_results_follow_configuration_order(self):
        probe = FakeWebsiteProbe(delays={"https://first.example": 0.05})
        targets = TargetSet(websites=websites("https://first.example", "https://second.example"))
        orchestrator, _ = make_orchestrator(website_probe=probe)

        snapshot = await orchestrator.run_cycle(targets)

        assert list(snapshot.website_results) == [
            "https://first.example",
            "https://second.example",
        ]

    @pytest.mark.asyncio
    async def test_empty_target_set(self):
        orchestrator, _ = make_orchestrator()

        snapshot = await orchestrator.run_cycle()

        assert snapshot.website_results == {}
        assert snapshot.store_results == {}
        assert snapshot.last_update is not None

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_isolated(self):
        probe = FakeWebsiteProbe(failures={"https://bad.example": RuntimeError("kaboom")})
        targets = TargetSet(websites=websites("https://bad.example", "https://good.example"))
        orchestrator, _ = make_orchestrator(website_probe=probe)

        snapshot = await orchestrator.run_cycle(targets)

        bad = snapshot.website_results["https://bad.example"]
        assert bad.status == CheckStatus.DOWN
        assert bad.status_code == 0
        assert bad.message == "Unexpected error: kaboom"
        assert snapshot.website_results["https://good.example"].status == CheckStatus.UP

    @pytest.mark.asyncio
    async def test_target_deadline(self):
        targets = TargetSet(
            websites=websites("https://hang.example"),
            file_stores=[FileStoreTarget(account_name="acct", share_name="slow")],
        )
        orchestrator, _ = make_orchestrator(
            website_probe=FakeWebsiteProbe(delays={"https://hang.example": 10}),
            store_probe=FakeStoreProbe(delay=10),
            target_deadline_seconds=0.05,
        )

        snapshot = await orchestrator.run_cycle(targets)

        site = snapshot.website_results["https://hang.example"]
        assert site.status == CheckStatus.DOWN
        assert site.message == "Check timed out after 0.05s"

        store = snapshot.store_results["acct/slow"]
        assert store.status == CheckStatus.ERROR
        assert store.file_count == 0
        assert store.message == "Check timed out after 0.05s"

    @pytest.mark.asyncio
    async def test_concurrency_is_limited(self):
        urls = [f"https://site{i}.example" for i in range(12)]
        probe = FakeWebsiteProbe(delays={u: 0.01 for u in urls})
        orchestrator, _ = make_orchestrator(website_probe=probe, max_concurrent_probes=3)

        snapshot = await orchestrator.run_cycle(TargetSet(websites=websites(*urls)))

        assert len(snapshot.website_results) == 12
        assert probe.peak <= 3

    @pytest.mark.asyncio
    async def test_store_without_access_mode_is_error(self):
        targets = TargetSet(file_stores=[FileStoreTarget(account_name="acct", share_name="s")])
        orchestrator, _ = make_orchestrator(store_probe=FileStoreProbe())

        snapshot = await orchestrator.run_cycle(targets)

        result = snapshot.store_results["acct/s"]
        assert result.status == CheckStatus.ERROR
        assert result.message == "Either sasUrl or credential must be provided"


class TestStreamResults:
    @pytest.mark.asyncio
    async def test_hanging_target_does_not_block_others(self):
        urls = [f"https://site{i}.example" for i in range(50)]
        probe = FakeWebsiteProbe(delays={urls[17]: 3600})
        orchestrator, _ = make_orchestrator(website_probe=probe)

        received = []
        async with aclosing(
            orchestrator.stream_results(TargetSet(websites=websites(*urls)))
        ) as stream:
            async for outcome in stream:
                received.append(outcome)
                if len(received) == 49:
                    break

        assert len(received) == 49
        assert all(o.kind == TargetKind.WEBSITE for o in received)
        assert urls[17] not in {o.key for o in received}
        # Closing the stream cancels and collects the hanging check
        assert not [t for t in asyncio.all_tasks() if t.get_name().startswith("probe:")]
        assert probe.active == 0


class TestTargetReplacement:
    def test_replace_targets_bumps_generation(self):
        orchestrator, _ = make_orchestrator()

        generation = orchestrator.replace_targets(
            TargetSet(websites=websites("https://new.example"))
        )

        assert generation == 1
        assert orchestrator.generation == 1
        assert [w.url for w in orchestrator.targets.websites] == ["https://new.example"]

    @pytest.mark.asyncio
    async def test_run_and_publish_publishes_snapshot(self):
        orchestrator, store = make_orchestrator(
            targets=TargetSet(websites=websites("https://a.example"))
        )

        snapshot = await orchestrator.run_and_publish()

        assert snapshot is not None
        assert store.current() is snapshot

    @pytest.mark.asyncio
    async def test_superseded_cycle_is_discarded(self):
        probe = FakeWebsiteProbe(delays={"https://old.example": 0.1})
        orchestrator, store = make_orchestrator(
            website_probe=probe,
            targets=TargetSet(websites=websites("https://old.example")),
        )

        cycle = asyncio.create_task(orchestrator.run_and_publish())
        await asyncio.sleep(0.01)
        orchestrator.replace_targets(TargetSet(websites=websites("https://new.example")))

        assert await cycle is None
        assert not store.has_snapshot

        snapshot = await orchestrator.run_and_publish()
        assert list(snapshot.website_results) == ["https://new.example"]
        assert snapshot.generation == 1
