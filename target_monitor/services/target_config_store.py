"""
Target configuration persistence.

The target list lives in a JSON file with ``websites`` and
``azureFileStorages`` arrays. Other top-level keys are preserved on save.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Callable

import aiofiles
import aiofiles.os
from pydantic import ValidationError

from ..core.exceptions import TargetConfigError
from ..models import TargetSet

WEBSITES_KEY = "websites"
FILE_STORES_KEY = "azureFileStorages"


class TargetConfigStore:
    def __init__(self, path: str):
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> TargetSet:
        """Read the target set; a missing file means no targets."""
        data = await self._read_raw()
        try:
            targets = TargetSet.model_validate(
                {
                    WEBSITES_KEY: data.get(WEBSITES_KEY) or [],
                    FILE_STORES_KEY: data.get(FILE_STORES_KEY) or [],
                }
            )
        except ValidationError as e:
            raise TargetConfigError(
                f"Invalid target configuration in {self._path}: {e}"
            ) from e

        logging.info(
            f"Loaded {len(targets.websites)} websites and "
            f"{len(targets.file_stores)} file shares from {self._path}"
        )
        return targets

    async def save(self, targets: TargetSet) -> None:
        data = await self._read_raw()
        dumped = targets.model_dump(mode="json", by_alias=True, exclude_none=True)
        data[WEBSITES_KEY] = dumped[WEBSITES_KEY]
        data[FILE_STORES_KEY] = dumped[FILE_STORES_KEY]

        if self._path.parent and not await aiofiles.os.path.isdir(self._path.parent):
            await aiofiles.os.makedirs(self._path.parent, exist_ok=True)

        temp_path = self._path.with_name(f".{self._path.name}.tmp")
        async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(data, indent=2))
        await aiofiles.os.replace(temp_path, self._path)

        logging.info(f"Saved target configuration to {self._path}")

    async def update(self, mutate: Callable[[TargetSet], TargetSet]) -> TargetSet:
        """Load, apply ``mutate`` and save under one lock; returns the new set."""
        async with self._lock:
            current = await self.load()
            updated = mutate(current)
            await self.save(updated)
            return updated

    async def _read_raw(self) -> dict:
        if not await aiofiles.os.path.exists(self._path):
            logging.info(f"Target configuration {self._path} not found - no targets")
            return {}

        try:
            async with aiofiles.open(self._path, "r", encoding="utf-8") as f:
                raw = await f.read()
        except OSError as e:
            raise TargetConfigError(f"Cannot read {self._path}: {e}") from e

        if not raw.strip():
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise TargetConfigError(f"Malformed JSON in {self._path}: {e}") from e

        if not isinstance(data, dict):
            raise TargetConfigError(f"{self._path} must contain a JSON object")
        return data
