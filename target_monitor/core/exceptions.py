# target_monitor/core/exceptions.py


class MonitorError(Exception):
    """Base class for errors raised inside the monitoring engine."""


class ProbeConfigurationError(MonitorError):
    """Raised when a target lacks what is needed to probe it."""


class ShareNotFoundError(MonitorError):
    """Raised when a file share does not exist."""
    def __init__(self, share_name: str):
        self.share_name = share_name
        super().__init__("Share does not exist")


class DirectoryListingError(MonitorError):
    """Raised when the children of a directory cannot be listed."""
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(reason)


class StoreCallTimeoutError(MonitorError):
    """Raised when a single file share call exceeds its deadline."""
    def __init__(self, operation: str, timeout_seconds: float):
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{operation} timed out after {timeout_seconds:g}s")


class TargetConfigError(MonitorError):
    """Raised when the target configuration file cannot be read or parsed."""


class DuplicateTargetError(MonitorError, ValueError):
    """Raised when two targets of the same kind share a key."""
    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"Duplicate {kind} target: {key}")
