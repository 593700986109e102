"""Kafka-specific context variables for structured logging."""

from contextvars import ContextVar
from typing import Any, Dict, Optional

_kafka_topic: ContextVar[str] = ContextVar("kafka_topic", default="")
_kafka_partition: ContextVar[int] = ContextVar("kafka_partition", default=-1)
_kafka_offset: ContextVar[int] = ContextVar("kafka_offset", default=-1)


def set_kafka_context(
    topic: Optional[str] = None,
    partition: Optional[int] = None,
    offset: Optional[int] = None,
) -> None:
    """
    Set Kafka-specific context variables for structured logging.

    Args:
        topic: Kafka topic name
        partition: Kafka partition number
        offset: Message offset within partition
    """
    if topic is not None:
        _kafka_topic.set(topic)
    if partition is not None:
        _kafka_partition.set(partition)
    if offset is not None:
        _kafka_offset.set(offset)


def get_kafka_context() -> Dict[str, Any]:
    """
    Get current Kafka logging context.

    Only fields that have been set are returned, so callers can merge the
    result into a log entry without emitting placeholder values.
    """
    context: Dict[str, Any] = {}

    topic = _kafka_topic.get()
    if topic:
        context["kafka_topic"] = topic

    partition = _kafka_partition.get()
    if partition >= 0:
        context["kafka_partition"] = partition

    offset = _kafka_offset.get()
    if offset >= 0:
        context["kafka_offset"] = offset

    return context


def clear_kafka_context() -> None:
    """Clear all Kafka logging context variables."""
    _kafka_topic.set("")
    _kafka_partition.set(-1)
    _kafka_offset.set(-1)


class KafkaLogContext:
    """
    Context manager that sets Kafka context for the enclosed block.

    Usage:
        with KafkaLogContext(topic="events", partition=0, offset=12345):
            # All logs in this block will include Kafka context
            handle(record)
    """

    def __init__(
        self,
        topic: Optional[str] = None,
        partition: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        self.new_context = {
            "topic": topic,
            "partition": partition,
            "offset": offset,
        }
        self.old_context: Dict[str, Any] = {}

    def __enter__(self) -> "KafkaLogContext":
        self.old_context = {
            "topic": _kafka_topic.get(),
            "partition": _kafka_partition.get(),
            "offset": _kafka_offset.get(),
        }

        for key, value in self.new_context.items():
            if value is not None:
                set_kafka_context(**{key: value})

        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        set_kafka_context(**self.old_context)
        return False
