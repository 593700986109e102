"""Value types shared by the consumer components."""

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

__all__ = [
    "OffsetDirective",
    "Earliest",
    "Latest",
    "Stored",
    "Absolute",
    "TailRelative",
    "ConsumedRecord",
    "DataRecord",
    "PartitionEnd",
    "StreamFailure",
    "PartitionMetadata",
    "TopicMetadata",
    "PartitionSet",
    "RunState",
    "Stats",
    "from_consumer_record",
]


# =============================================================================
# Offset directives
# =============================================================================


class OffsetDirective:
    """Where a partition stream starts reading."""


@dataclass(frozen=True)
class Earliest(OffsetDirective):
    def __str__(self) -> str:
        return "beginning"


@dataclass(frozen=True)
class Latest(OffsetDirective):
    def __str__(self) -> str:
        return "end"


@dataclass(frozen=True)
class Stored(OffsetDirective):
    """Resume from the consumer group's committed offset."""

    def __str__(self) -> str:
        return "stored"


@dataclass(frozen=True)
class Absolute(OffsetDirective):
    offset: int

    def __str__(self) -> str:
        return str(self.offset)


@dataclass(frozen=True)
class TailRelative(OffsetDirective):
    """Start `count` messages before the current end of the partition."""

    count: int

    def __str__(self) -> str:
        return f"tail-{self.count}"


# =============================================================================
# Queue items
# =============================================================================


class ConsumedRecord:
    """One item drained from the shared queue."""


@dataclass(frozen=True)
class DataRecord(ConsumedRecord):
    topic: str
    partition: int
    offset: int
    key: bytes | None = None
    value: bytes | None = None


@dataclass(frozen=True)
class PartitionEnd(ConsumedRecord):
    """No more data currently available on a partition."""

    topic: str
    partition: int
    offset: int


@dataclass(frozen=True)
class StreamFailure(ConsumedRecord):
    """Non-EOF error reported for a partition (or the whole stream)."""

    topic: str
    partition: int | None
    error: Exception


def from_consumer_record(record) -> DataRecord:
    """Convert aiokafka ConsumerRecord to DataRecord."""
    return DataRecord(
        topic=record.topic,
        partition=record.partition,
        offset=record.offset,
        key=record.key,
        value=record.value,
    )


# =============================================================================
# Metadata
# =============================================================================


PartitionSet = tuple[int, ...]


@dataclass(frozen=True)
class PartitionMetadata:
    id: int
    error: str | None = None


@dataclass(frozen=True)
class TopicMetadata:
    """Topic metadata as reported by the cluster."""

    topic: str
    exists: bool
    error: str | None = None
    partitions: list[PartitionMetadata] = field(default_factory=list)


# =============================================================================
# Run state
# =============================================================================


class RunState:
    """
    Keep-running flag for one consumer run.

    Stops exactly once. The first reason wins and later stop() calls are
    no-ops; there is no way back to running.
    """

    def __init__(self) -> None:
        self._running = True
        self._reason: str | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def reason(self) -> str | None:
        return self._reason

    def stop(self, reason: str) -> bool:
        """Stop the run. Returns True if this call did the transition."""
        if not self._running:
            return False
        self._running = False
        self._reason = reason
        logger.debug("Run stopping", extra={"reason": reason})
        return True


@dataclass
class Stats:
    """Records successfully emitted during the run."""

    rx: int = 0
