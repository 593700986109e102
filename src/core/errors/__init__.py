"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- KfcError hierarchy for typed exceptions
- Kafka error classification for aiokafka exceptions
"""

from core.errors.exceptions import (
    # Config errors
    ConfigError,
    # Enums
    ErrorCategory,
    InvalidOffsetSpec,
    # Base classes
    KfcError,
    # Metadata errors
    MetadataError,
    NoPartitions,
    # Output errors
    OutputError,
    PartitionError,
    PartitionNotFound,
    PartitionSelectionError,
    # Stream errors
    StreamError,
    TopicError,
    TopicNotFound,
)
from core.errors.kafka_classifier import (
    KAFKA_ERROR_MAPPINGS,
    KafkaErrorClassifier,
    classify_kafka_error_type,
    describe_kafka_error,
)

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "KfcError",
    "ConfigError",
    "MetadataError",
    "StreamError",
    "OutputError",
    # Config errors
    "InvalidOffsetSpec",
    "PartitionSelectionError",
    # Metadata errors
    "TopicNotFound",
    "TopicError",
    "NoPartitions",
    "PartitionNotFound",
    "PartitionError",
    # Kafka classifiers
    "KAFKA_ERROR_MAPPINGS",
    "KafkaErrorClassifier",
    "classify_kafka_error_type",
    "describe_kafka_error",
]
