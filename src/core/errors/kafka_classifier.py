"""
Kafka error classification for metadata and stream operations.

Maps aiokafka exceptions onto the KfcError hierarchy so the consumer reports
them with topic/partition context and a stable category.
"""

from typing import Optional

from core.errors.exceptions import (
    KfcError,
    MetadataError,
    StreamError,
    TopicNotFound,
)

# Kafka error classifications based on aiokafka exception types
KAFKA_ERROR_MAPPINGS = {
    "connection": [
        "BrokerNotAvailableError",
        "KafkaConnectionError",
        "NodeNotReadyError",
        "LeaderNotAvailableError",
        "NotLeaderForPartitionError",
        "NetworkException",
        "CorrelationIdError",
    ],
    "timeout": [
        "RequestTimedOutError",
        "KafkaTimeoutError",
        "TimeoutError",
    ],
    "auth": [
        "TopicAuthorizationFailedError",
        "GroupAuthorizationFailedError",
        "ClusterAuthorizationFailedError",
        "SaslAuthenticationError",
    ],
    "not_found": [
        "UnknownTopicOrPartitionError",
        "InvalidTopicError",
    ],
    "data": [
        "OffsetOutOfRangeError",
        "MessageSizeTooLargeError",
        "RecordTooLargeError",
        "CorruptRecordException",
        "UnsupportedVersionError",
        "IllegalStateError",
    ],
}

_DESCRIPTIONS = {
    "connection": "broker connection error",
    "timeout": "request timed out",
    "auth": "authorization failed",
    "not_found": "unknown topic or partition",
    "data": "fetch error",
}


def classify_kafka_error_type(error_type_name: str) -> Optional[str]:
    """
    Classify Kafka error by exception type name.

    Args:
        error_type_name: Name of the exception class

    Returns:
        Error kind: "connection", "timeout", "auth", "not_found", "data", or None
    """
    for kind, error_types in KAFKA_ERROR_MAPPINGS.items():
        if error_type_name in error_types:
            return kind
    return None


def _fallback_kind(error_str: str) -> Optional[str]:
    if any(marker in error_str for marker in ("unauthorized", "authentication", "authorization")):
        return "auth"
    if "timeout" in error_str or "timed out" in error_str:
        return "timeout"
    if any(marker in error_str for marker in ("connection", "broker", "network", "node not ready")):
        return "connection"
    return None


def describe_kafka_error(error: Exception) -> str:
    """Short human description of a raw Kafka exception."""
    kind = classify_kafka_error_type(type(error).__name__) or _fallback_kind(str(error).lower())
    detail = str(error) or type(error).__name__
    if kind is None:
        return detail
    return f"{_DESCRIPTIONS[kind]}: {detail}"


class KafkaErrorClassifier:
    """
    Centralized error classification for Kafka operations.

    Metadata operations map to MetadataError, stream operations (opening a
    partition, fetching) map to StreamError.
    """

    @staticmethod
    def classify_metadata_error(
        error: Exception, topic: str, context: Optional[dict] = None
    ) -> KfcError:
        """
        Classify an error raised while fetching topic metadata.

        Args:
            error: Original exception from aiokafka
            topic: Topic being described
            context: Additional context merged into the error context

        Returns:
            Classified KfcError subclass
        """
        if isinstance(error, KfcError):
            return error

        ctx = {"service": "kafka_metadata", "topic": topic}
        if context:
            ctx.update(context)

        if classify_kafka_error_type(type(error).__name__) == "not_found":
            not_found = TopicNotFound(topic)
            not_found.cause = error
            not_found.context.update(ctx)
            return not_found

        return MetadataError(
            f"Failed to query metadata for topic {topic}: {describe_kafka_error(error)}",
            cause=error,
            context=ctx,
        )

    @staticmethod
    def classify_stream_error(
        error: Exception,
        topic: str,
        partition: Optional[int] = None,
        context: Optional[dict] = None,
    ) -> KfcError:
        """
        Classify an error raised while opening or consuming a partition stream.

        Args:
            error: Original exception from aiokafka
            topic: Topic being consumed
            partition: Affected partition, if known
            context: Additional context merged into the error context

        Returns:
            Classified KfcError subclass
        """
        if isinstance(error, KfcError):
            return error

        ctx = {"service": "kafka_consumer"}
        if context:
            ctx.update(context)

        where = f"{topic} [{partition}]" if partition is not None else topic
        return StreamError(
            f"Topic {where} error: {describe_kafka_error(error)}",
            topic=topic,
            partition=partition,
            cause=error,
            context=ctx,
        )
