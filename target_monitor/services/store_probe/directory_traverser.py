"""
Directory traversal for file shares.

Walks a directory subtree depth-first over an explicit work stack, counting
files and tracking the oldest and newest modification time. Every network
call (listing, per-file properties) gets its own deadline.

Failure rules:
- A file whose properties cannot be fetched is still counted, without a
  timestamp.
- A directory that cannot be listed aborts the whole traversal call.
"""

import asyncio
import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, List, Optional

from .aggregate import EMPTY, DirectoryAggregate
from ...core.exceptions import DirectoryListingError, StoreCallTimeoutError


def _entry_field(entry: Any, field: str) -> Any:
    value = getattr(entry, field, None)
    if value is None and isinstance(entry, Mapping):
        value = entry.get(field)
    return value


def _join(parent: str, name: str) -> str:
    return f"{parent.rstrip('/')}/{name}" if parent else name


class DirectoryTraverser:
    def __init__(self, call_timeout_seconds: float = 30.0):
        self._call_timeout = call_timeout_seconds

    async def traverse(self, directory_client, path: str = "") -> DirectoryAggregate:
        """
        Aggregate every file below ``directory_client``.

        Args:
            directory_client: Async directory client (``list_directories_and_files``,
                ``get_subdirectory_client``, ``get_file_client``)
            path: Path of the directory, used for logging and error messages

        Returns:
            DirectoryAggregate for the whole subtree

        Raises:
            DirectoryListingError: a directory in the subtree could not be listed
            StoreCallTimeoutError: a listing call exceeded its deadline
        """
        aggregate = EMPTY
        stack = [(directory_client, path)]
        directories_seen = 0

        while stack:
            client, current_path = stack.pop()
            directories_seen += 1
            entries = await self._list_entries(client, current_path)

            for entry in entries:
                name = _entry_field(entry, "name")
                if _entry_field(entry, "is_directory"):
                    stack.append(
                        (client.get_subdirectory_client(name), _join(current_path, name))
                    )
                else:
                    last_modified = await self._get_last_modified(
                        client, name, _join(current_path, name)
                    )
                    aggregate = aggregate.with_file(last_modified)

        logging.debug(
            f"Traversed '{path or '/'}': {aggregate.count} files in "
            f"{directories_seen} directories"
        )
        return aggregate

    async def _list_entries(self, client, path: str) -> List[Any]:
        async def _collect() -> List[Any]:
            return [entry async for entry in client.list_directories_and_files()]

        try:
            return await asyncio.wait_for(_collect(), timeout=self._call_timeout)
        except asyncio.TimeoutError:
            logging.warning(f"Listing directory '{path or '/'}' timed out")
            raise StoreCallTimeoutError(
                f"Listing directory '{path or '/'}'", self._call_timeout
            )
        except Exception as e:
            logging.error(f"Error listing directory {path or '/'}: {e}")
            raise DirectoryListingError(path, str(e) or type(e).__name__) from e

    async def _get_last_modified(self, client, name: str, path: str) -> Optional[datetime]:
        try:
            properties = await asyncio.wait_for(
                client.get_file_client(name).get_file_properties(),
                timeout=self._call_timeout,
            )
            return _entry_field(properties, "last_modified")
        except asyncio.TimeoutError:
            logging.warning(f"Property fetch timed out for file {path}")
        except Exception as e:
            logging.warning(f"Error getting properties for file {path}: {e}")
        return None
