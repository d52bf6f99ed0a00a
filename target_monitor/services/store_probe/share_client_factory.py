import logging

from azure.storage.fileshare.aio import ShareServiceClient

from ...core.exceptions import ProbeConfigurationError
from ...models import FileStoreTarget

AZURE_FILE_ENDPOINT = "https://{account_name}.file.core.windows.net"


class ShareClientFactory:
    """
    Builds an authenticated async service client for a file share target.

    Exactly one access mode is used: the SAS URL when present, otherwise the
    opaque credential against the account endpoint. Building the client does
    not touch the network.
    """

    def create_service_client(self, target: FileStoreTarget) -> ShareServiceClient:
        if target.sas_url:
            logging.debug(f"Using SAS URL access for {target.key}")
            return ShareServiceClient(account_url=target.sas_url)

        if target.credential is not None:
            if not target.account_name:
                raise ProbeConfigurationError(
                    "accountName is required when using credential access"
                )
            logging.debug(f"Using credential access for {target.key}")
            return ShareServiceClient(
                account_url=AZURE_FILE_ENDPOINT.format(account_name=target.account_name),
                credential=target.credential,
            )

        raise ProbeConfigurationError("Either sasUrl or credential must be provided")
