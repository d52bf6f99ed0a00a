import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ..dependencies import get_scheduler, get_snapshot_store
from ..services.monitoring_scheduler import MonitoringScheduler
from ..services.snapshot_store import SnapshotStore

router = APIRouter(tags=["status"])

_started_at = time.monotonic()


@router.get("/")
async def root() -> dict:
    return {
        "message": "Target Monitor",
        "status": "running",
        "endpoints": {
            "/health": "Application health status",
            "/status": "All monitoring results",
            "/websites": "Website monitoring results",
            "/azure-files": "Azure file storage results",
            "/login": "Admin login (POST)",
            "/config/*": "Admin configuration (requires auth)",
        },
    }


@router.get("/health")
async def health(
    scheduler: MonitoringScheduler = Depends(get_scheduler),
) -> dict:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _started_at, 3),
        "monitoring": scheduler.is_running,
    }


@router.get("/status")
async def get_status(
    snapshot_store: SnapshotStore = Depends(get_snapshot_store),
) -> dict:
    return snapshot_store.current().to_json_dict()


@router.get("/websites")
async def get_websites(
    snapshot_store: SnapshotStore = Depends(get_snapshot_store),
) -> dict:
    snapshot = snapshot_store.current().to_json_dict()
    return {
        "websiteResults": snapshot["websiteResults"],
        "lastUpdate": snapshot["lastUpdate"],
    }


@router.get("/azure-files")
async def get_azure_files(
    snapshot_store: SnapshotStore = Depends(get_snapshot_store),
) -> dict:
    snapshot = snapshot_store.current().to_json_dict()
    return {
        "storeResults": snapshot["storeResults"],
        "lastUpdate": snapshot["lastUpdate"],
    }
