"""
BatchStatus - the ordered lifecycle value of a job or step run.

Statuses are totally ordered by a fixed rank table:

    UNKNOWN < STARTING < STARTED < STOPPING < STOPPED < FAILED < COMPLETED

Taking the maximum over statuses reported by independent, concurrently
running steps yields the most final outcome of the run. STOPPED is the
default outcome of an interruption, COMPLETED the only success outcome.
"""

from enum import Enum
from typing import Iterable


class BatchStatus(str, Enum):
    """Lifecycle status of a job or step run. Values are the serialized tokens."""
    UNKNOWN = "UNKNOWN"
    STARTING = "STARTING"
    STARTED = "STARTED"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"
    FAILED = "FAILED"
    COMPLETED = "COMPLETED"

    @property
    def rank(self) -> int:
        """Position of this status in the total order."""
        return _RANK[self]

    @property
    def is_terminal(self) -> bool:
        """True once a run can no longer change status."""
        return self in (BatchStatus.STOPPED, BatchStatus.FAILED, BatchStatus.COMPLETED)

    @property
    def is_running(self) -> bool:
        return self in (BatchStatus.STARTING, BatchStatus.STARTED)

    def upgrade_to(self, other: "BatchStatus") -> "BatchStatus":
        """Return whichever of self and other ranks higher."""
        return other if other.rank > self.rank else self

    # str's lexicographic ordering must not leak through the mixin
    def __lt__(self, other):
        if not isinstance(other, BatchStatus):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, BatchStatus):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, BatchStatus):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, BatchStatus):
            return NotImplemented
        return self.rank >= other.rank

    def __str__(self) -> str:
        return self.value

    @classmethod
    def compare(cls, a: "BatchStatus", b: "BatchStatus") -> int:
        """Return -1, 0 or 1 as a ranks below, equal to or above b."""
        return (a.rank > b.rank) - (a.rank < b.rank)

    @classmethod
    def max(cls, *statuses: "BatchStatus | Iterable[BatchStatus]") -> "BatchStatus":
        """
        Aggregate statuses reported by concurrent steps.

        Accepts either several statuses or a single iterable of them.
        An empty input yields UNKNOWN.
        """
        if len(statuses) == 1 and not isinstance(statuses[0], BatchStatus):
            statuses = tuple(statuses[0])
        result = cls.UNKNOWN
        for status in statuses:
            result = result.upgrade_to(status)
        return result

    @classmethod
    def from_string(cls, value: str) -> "BatchStatus":
        """Parse a BatchStatus from its token (case-insensitive)."""
        token = value.strip().upper()
        for status in cls:
            if status.value == token:
                return status
        raise ValueError(f"Unknown batch status: {value}")


_RANK = {status: rank for rank, status in enumerate(BatchStatus)}
