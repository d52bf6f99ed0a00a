import logging

from ..models import Snapshot


class SnapshotStore:
    """
    Holds the most recently completed snapshot.

    ``publish`` replaces the reference in one assignment, so readers see
    either the previous complete snapshot or the new one, never a mix.
    """

    def __init__(self):
        self._snapshot = Snapshot()

    def current(self) -> Snapshot:
        return self._snapshot

    def publish(self, snapshot: Snapshot) -> bool:
        """Swap in ``snapshot``; snapshots from an older target generation are ignored."""
        if snapshot.generation < self._snapshot.generation:
            logging.warning(
                f"Ignoring snapshot from generation {snapshot.generation} - "
                f"generation {self._snapshot.generation} already published"
            )
            return False

        self._snapshot = snapshot
        logging.debug(
            f"Published snapshot: {len(snapshot.website_results)} websites, "
            f"{len(snapshot.store_results)} file shares"
        )
        return True

    @property
    def has_snapshot(self) -> bool:
        return self._snapshot.last_update is not None
