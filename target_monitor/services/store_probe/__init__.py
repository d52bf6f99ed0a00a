from .aggregate import EMPTY, DirectoryAggregate
from .directory_traverser import DirectoryTraverser
from .share_client_factory import ShareClientFactory
from .store_probe import FileStoreProbe

__all__ = [
    "EMPTY",
    "DirectoryAggregate",
    "DirectoryTraverser",
    "ShareClientFactory",
    "FileStoreProbe",
]
