import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from azure.core.exceptions import ResourceNotFoundError

from .aggregate import DirectoryAggregate
from .directory_traverser import DirectoryTraverser
from .share_client_factory import ShareClientFactory
from ...core.exceptions import (
    ProbeConfigurationError,
    ShareNotFoundError,
    StoreCallTimeoutError,
)
from ...models import (
    CheckStatus,
    DirectoryBreakdownEntry,
    FileStoreTarget,
    StoreCheckResult,
)


class FileStoreProbe:
    """
    Checks one file share: existence, then a file count over either the
    share root or an explicit list of directories.

    ``probe`` never raises; every failure ends up in the returned result.
    """

    def __init__(
        self,
        client_factory: Optional[ShareClientFactory] = None,
        traverser: Optional[DirectoryTraverser] = None,
        call_timeout_seconds: float = 30.0,
    ):
        self._client_factory = client_factory or ShareClientFactory()
        self._traverser = traverser or DirectoryTraverser(call_timeout_seconds)
        self._call_timeout = call_timeout_seconds

    async def probe(self, target: FileStoreTarget) -> StoreCheckResult:
        try:
            service_client = self._client_factory.create_service_client(target)
        except ProbeConfigurationError as e:
            logging.warning(f"File share {target.key} is misconfigured: {e}")
            return self._error_result(target, str(e))

        try:
            async with service_client:
                share_client = service_client.get_share_client(target.share_name)
                await self._ensure_share_exists(share_client, target)

                if target.has_explicit_directories:
                    return await self._probe_directories(share_client, target)

                # Tom sti = share root
                aggregate = await self._traverser.traverse(
                    share_client.get_directory_client()
                )
                logging.info(f"File share {target.key}: {aggregate.count} files found")
                return self._ok_result(
                    target, aggregate.count, f"{aggregate.count} files found"
                )

        except ShareNotFoundError as e:
            logging.warning(f"File share {target.key} does not exist")
            return self._error_result(target, str(e))
        except Exception as e:
            logging.error(f"Error counting files in {target.key}: {e}")
            return self._error_result(target, str(e) or type(e).__name__)

    async def _ensure_share_exists(self, share_client, target: FileStoreTarget) -> None:
        try:
            await asyncio.wait_for(
                share_client.get_share_properties(), timeout=self._call_timeout
            )
        except ResourceNotFoundError:
            raise ShareNotFoundError(target.share_name)
        except asyncio.TimeoutError:
            raise StoreCallTimeoutError("Share existence check", self._call_timeout)

    async def _probe_directories(
        self, share_client, target: FileStoreTarget
    ) -> StoreCheckResult:
        breakdown: Dict[str, DirectoryBreakdownEntry] = {}
        file_count = 0

        for directory in target.directories:
            try:
                aggregate: DirectoryAggregate = await self._traverser.traverse(
                    share_client.get_directory_client(directory), directory
                )
            except Exception as e:
                logging.error(
                    f"Error counting files in directory {directory} of {target.key}: {e}"
                )
                breakdown[directory] = DirectoryBreakdownEntry.failed(
                    str(e) or type(e).__name__
                )
                continue

            breakdown[directory] = aggregate.to_breakdown_entry()
            file_count += aggregate.count

        failed = sum(1 for entry in breakdown.values() if entry.is_error)
        log = logging.warning if failed else logging.info
        log(
            f"File share {target.key}: {file_count} files across "
            f"{len(target.directories)} directories ({failed} failed)"
        )

        return self._ok_result(
            target,
            file_count,
            f"{file_count} files found across {len(target.directories)} directories",
            directory_breakdown=breakdown,
        )

    def _ok_result(
        self,
        target: FileStoreTarget,
        file_count: int,
        message: str,
        directory_breakdown: Optional[Dict[str, DirectoryBreakdownEntry]] = None,
    ) -> StoreCheckResult:
        return StoreCheckResult(
            account_name=target.account_name,
            share_name=target.share_name,
            name=target.display_name,
            status=CheckStatus.OK,
            file_count=file_count,
            timestamp=datetime.now(timezone.utc),
            message=message,
            directory_breakdown=directory_breakdown,
        )

    def _error_result(self, target: FileStoreTarget, message: str) -> StoreCheckResult:
        return StoreCheckResult(
            account_name=target.account_name,
            share_name=target.share_name,
            name=target.display_name,
            status=CheckStatus.ERROR,
            file_count=0,
            timestamp=datetime.now(timezone.utc),
            message=message,
        )
