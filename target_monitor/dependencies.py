from functools import lru_cache
from typing import Any, Dict

from .config import Settings
from .services.monitoring_scheduler import MonitoringScheduler
from .services.orchestrator import TargetOrchestrator
from .services.snapshot_store import SnapshotStore
from .services.store_probe import DirectoryTraverser, FileStoreProbe, ShareClientFactory
from .services.target_config_store import TargetConfigStore
from .services.website_probe import WebsiteProbe

# Global singleton instances
_singletons: Dict[str, Any] = {}


@lru_cache
def get_settings() -> Settings:
    """Hent Settings singleton instance."""
    return Settings()


def get_website_probe() -> WebsiteProbe:
    if "website_probe" not in _singletons:
        settings = get_settings()
        _singletons["website_probe"] = WebsiteProbe(
            timeout_seconds=settings.website_timeout_seconds,
            user_agent=settings.user_agent,
        )
    return _singletons["website_probe"]


def get_store_probe() -> FileStoreProbe:
    if "store_probe" not in _singletons:
        settings = get_settings()
        _singletons["store_probe"] = FileStoreProbe(
            client_factory=ShareClientFactory(),
            traverser=DirectoryTraverser(settings.store_call_timeout_seconds),
            call_timeout_seconds=settings.store_call_timeout_seconds,
        )
    return _singletons["store_probe"]


def get_snapshot_store() -> SnapshotStore:
    if "snapshot_store" not in _singletons:
        _singletons["snapshot_store"] = SnapshotStore()
    return _singletons["snapshot_store"]


def get_orchestrator() -> TargetOrchestrator:
    if "orchestrator" not in _singletons:
        settings = get_settings()
        _singletons["orchestrator"] = TargetOrchestrator(
            website_probe=get_website_probe(),
            store_probe=get_store_probe(),
            snapshot_store=get_snapshot_store(),
            max_concurrent_probes=settings.max_concurrent_probes,
            target_deadline_seconds=settings.target_deadline_seconds,
        )
    return _singletons["orchestrator"]


def get_scheduler() -> MonitoringScheduler:
    if "scheduler" not in _singletons:
        _singletons["scheduler"] = MonitoringScheduler(
            orchestrator=get_orchestrator(),
            interval_seconds=get_settings().monitor_interval_seconds,
        )
    return _singletons["scheduler"]


def get_config_store() -> TargetConfigStore:
    if "config_store" not in _singletons:
        _singletons["config_store"] = TargetConfigStore(get_settings().targets_config_path)
    return _singletons["config_store"]


def reset_singletons() -> None:
    _singletons.clear()
