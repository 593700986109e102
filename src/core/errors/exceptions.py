"""
Unified exception hierarchy for kfc.

Provides typed exceptions grouped by error category. Every KfcError is fatal
to the run: nothing is retried, the CLI logs it and exits non-zero.
"""

# Import ErrorCategory from canonical source to avoid duplicate enum issues
from core.types import ErrorCategory


class KfcError(Exception):
    """
    Base exception for all kfc errors.

    Attributes:
        message: Human-readable error description
        category: Error classification
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(KfcError):
    """Invalid configuration, surfaced before any consumption starts."""

    category = ErrorCategory.CONFIG


class InvalidOffsetSpec(ConfigError):
    """Offset spec is neither a keyword nor an integer."""

    def __init__(self, spec: str):
        super().__init__(
            f"Invalid offset '{spec}': expected 'beginning', 'end', 'stored' or an integer",
            context={"offset_spec": spec},
        )
        self.spec = spec


class PartitionSelectionError(ConfigError):
    """Requested partition is not part of the resolved partition set."""

    def __init__(self, topic: str, partition: int, partition_count: int):
        super().__init__(
            f"Topic {topic} (with partitions 0..{partition_count - 1}): "
            f"partition {partition} does not exist",
            context={"topic": topic, "partition": partition, "partition_count": partition_count},
        )
        self.topic = topic
        self.partition = partition


# =============================================================================
# Metadata Errors
# =============================================================================


class MetadataError(KfcError):
    """Topic metadata could not be resolved."""

    category = ErrorCategory.METADATA


class TopicNotFound(MetadataError):
    def __init__(self, topic: str):
        super().__init__(f"No such topic in cluster: {topic}", context={"topic": topic})
        self.topic = topic


class TopicError(MetadataError):
    def __init__(self, topic: str, error: str):
        super().__init__(f"Topic {topic} error: {error}", context={"topic": topic, "error": error})
        self.topic = topic
        self.error = error


class NoPartitions(MetadataError):
    def __init__(self, topic: str):
        super().__init__(f"Topic {topic} has no partitions", context={"topic": topic})
        self.topic = topic


class PartitionNotFound(MetadataError):
    """Requested partition is absent from the topic's metadata."""

    def __init__(self, topic: str, partition: int, partition_count: int):
        super().__init__(
            f"Topic {topic} (with partitions 0..{partition_count - 1}): "
            f"partition {partition} does not exist",
            context={"topic": topic, "partition": partition, "partition_count": partition_count},
        )
        self.topic = topic
        self.partition = partition
        self.valid_range = (0, partition_count - 1)


class PartitionError(MetadataError):
    def __init__(self, topic: str, partition: int, error: str):
        super().__init__(
            f"Topic {topic} [{partition}] metadata error: {error}",
            context={"topic": topic, "partition": partition, "error": error},
        )
        self.topic = topic
        self.partition = partition
        self.error = error


# =============================================================================
# Stream and Output Errors
# =============================================================================


class StreamError(KfcError):
    """Non-EOF error on a partition stream."""

    category = ErrorCategory.STREAM

    def __init__(
        self,
        message: str,
        topic: str | None = None,
        partition: int | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        ctx = {"topic": topic, "partition": partition}
        if context:
            ctx.update(context)
        super().__init__(message, cause, ctx)
        self.topic = topic
        self.partition = partition


class OutputError(KfcError):
    """Write to the output sink failed."""

    category = ErrorCategory.OUTPUT
