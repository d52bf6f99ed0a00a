from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from ...models import DirectoryBreakdownEntry


def _min_optional(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def _max_optional(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


@dataclass(frozen=True)
class DirectoryAggregate:
    """
    File count and modification-time range for one directory subtree.

    ``combine`` sums counts, takes the earliest oldest and latest newest
    timestamp. It is associative and commutative, and ``EMPTY`` is its
    identity, so subtrees can be merged in any order.
    """

    count: int = 0
    oldest_file: Optional[datetime] = None
    newest_file: Optional[datetime] = None

    def combine(self, other: "DirectoryAggregate") -> "DirectoryAggregate":
        return DirectoryAggregate(
            count=self.count + other.count,
            oldest_file=_min_optional(self.oldest_file, other.oldest_file),
            newest_file=_max_optional(self.newest_file, other.newest_file),
        )

    def with_file(self, last_modified: Optional[datetime]) -> "DirectoryAggregate":
        """Count one more file; ``last_modified`` is None when it could not be fetched."""
        return self.combine(
            DirectoryAggregate(count=1, oldest_file=last_modified, newest_file=last_modified)
        )

    @classmethod
    def merge_all(cls, aggregates: Iterable["DirectoryAggregate"]) -> "DirectoryAggregate":
        result = EMPTY
        for aggregate in aggregates:
            result = result.combine(aggregate)
        return result

    def to_breakdown_entry(self) -> DirectoryBreakdownEntry:
        return DirectoryBreakdownEntry(
            count=self.count,
            oldest_file_timestamp=self.oldest_file,
            newest_file_timestamp=self.newest_file,
        )


EMPTY = DirectoryAggregate()
