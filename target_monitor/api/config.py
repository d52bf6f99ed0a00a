import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .auth import CurrentUser, get_current_user
from ..core.exceptions import TargetConfigError
from ..dependencies import get_config_store, get_orchestrator, get_scheduler
from ..models import FileStoreTarget, TargetSet, WebsiteTarget
from ..services.monitoring_scheduler import MonitoringScheduler
from ..services.orchestrator import TargetOrchestrator
from ..services.target_config_store import TargetConfigStore

router = APIRouter(prefix="/config", tags=["config"])


class WebsiteConfigRequest(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None


class StorageConfigRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    account_name: Optional[str] = None
    share_name: Optional[str] = None
    sas_url: Optional[str] = None
    directories: Optional[List[str]] = None


def _website_view(website: WebsiteTarget) -> dict:
    return {"name": website.name, "url": website.url}


def _storage_view(storage: FileStoreTarget) -> dict:
    # Never expose SAS URLs or credentials
    return {
        "name": storage.name,
        "accountName": storage.account_name,
        "shareName": storage.share_name,
        "directories": list(storage.directories or []),
    }


def _activate(
    targets: TargetSet,
    orchestrator: TargetOrchestrator,
    scheduler: MonitoringScheduler,
) -> None:
    orchestrator.replace_targets(targets)
    scheduler.trigger_immediate_cycle()


async def _update_config(config_store: TargetConfigStore, mutate) -> TargetSet:
    try:
        return await config_store.update(mutate)
    except TargetConfigError as e:
        logging.error(f"API: Target configuration update failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        )


@router.get("/websites")
async def list_websites(
    user: CurrentUser = Depends(get_current_user),
    orchestrator: TargetOrchestrator = Depends(get_orchestrator),
) -> list:
    return [_website_view(w) for w in orchestrator.targets.websites]


@router.get("/azure-storages")
async def list_storages(
    user: CurrentUser = Depends(get_current_user),
    orchestrator: TargetOrchestrator = Depends(get_orchestrator),
) -> list:
    return [_storage_view(s) for s in orchestrator.targets.file_stores]


@router.post("/websites")
async def add_website(
    request: WebsiteConfigRequest,
    user: CurrentUser = Depends(get_current_user),
    config_store: TargetConfigStore = Depends(get_config_store),
    orchestrator: TargetOrchestrator = Depends(get_orchestrator),
    scheduler: MonitoringScheduler = Depends(get_scheduler),
) -> dict:
    if not request.name or not request.url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name and URL are required",
        )

    website = WebsiteTarget(name=request.name, url=request.url)

    def mutate(current: TargetSet) -> TargetSet:
        if any(w.key == website.key for w in current.websites):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Website already monitored: {website.url}",
            )
        return TargetSet(
            websites=current.websites + (website,), file_stores=current.file_stores
        )

    updated = await _update_config(config_store, mutate)
    _activate(updated, orchestrator, scheduler)

    logging.info(f"API: Website added by {user.username}: {website.url}")
    return {"message": "Website added successfully", "website": _website_view(website)}


@router.post("/azure-storages")
async def add_storage(
    request: StorageConfigRequest,
    user: CurrentUser = Depends(get_current_user),
    config_store: TargetConfigStore = Depends(get_config_store),
    orchestrator: TargetOrchestrator = Depends(get_orchestrator),
    scheduler: MonitoringScheduler = Depends(get_scheduler),
) -> dict:
    if not request.name or not request.share_name or not request.sas_url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name, shareName, and sasUrl are required",
        )

    storage = FileStoreTarget(
        name=request.name,
        account_name=request.account_name,
        share_name=request.share_name,
        sas_url=request.sas_url,
        directories=request.directories or None,
    )

    def mutate(current: TargetSet) -> TargetSet:
        if any(s.key == storage.key for s in current.file_stores):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Storage already monitored: {storage.key}",
            )
        return TargetSet(
            websites=current.websites, file_stores=current.file_stores + (storage,)
        )

    updated = await _update_config(config_store, mutate)
    _activate(updated, orchestrator, scheduler)

    logging.info(f"API: Storage added by {user.username}: {storage.key}")
    return {"message": "Azure storage added successfully", "storage": _storage_view(storage)}


@router.delete("/websites/{index}")
async def remove_website(
    index: int,
    user: CurrentUser = Depends(get_current_user),
    config_store: TargetConfigStore = Depends(get_config_store),
    orchestrator: TargetOrchestrator = Depends(get_orchestrator),
    scheduler: MonitoringScheduler = Depends(get_scheduler),
) -> dict:
    removed: List[WebsiteTarget] = []

    def mutate(current: TargetSet) -> TargetSet:
        if index < 0 or index >= len(current.websites):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Website not found"
            )
        websites = list(current.websites)
        removed.append(websites.pop(index))
        return TargetSet(websites=tuple(websites), file_stores=current.file_stores)

    updated = await _update_config(config_store, mutate)
    _activate(updated, orchestrator, scheduler)

    logging.info(f"API: Website removed by {user.username}: {removed[0].url}")
    return {"message": "Website removed successfully", "website": _website_view(removed[0])}


@router.delete("/azure-storages/{index}")
async def remove_storage(
    index: int,
    user: CurrentUser = Depends(get_current_user),
    config_store: TargetConfigStore = Depends(get_config_store),
    orchestrator: TargetOrchestrator = Depends(get_orchestrator),
    scheduler: MonitoringScheduler = Depends(get_scheduler),
) -> dict:
    removed: List[FileStoreTarget] = []

    def mutate(current: TargetSet) -> TargetSet:
        if index < 0 or index >= len(current.file_stores):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Storage not found"
            )
        file_stores = list(current.file_stores)
        removed.append(file_stores.pop(index))
        return TargetSet(websites=current.websites, file_stores=tuple(file_stores))

    updated = await _update_config(config_store, mutate)
    _activate(updated, orchestrator, scheduler)

    logging.info(f"API: Storage removed by {user.username}: {removed[0].key}")
    return {
        "message": "Storage removed successfully",
        "storage": {"name": removed[0].name, "shareName": removed[0].share_name},
    }
