"""
Kafka topic consumption engine.

Resolves a topic's partitions, opens a stream per selected partition, drains
them through one shared queue and writes each record to a byte sink until
end-of-partition, a message limit, a signal or a fatal error stops the run.
"""

from kfc.consumer.eof import EofTracker
from kfc.consumer.formatter import MessageFormatter
from kfc.consumer.loop import ConsumeLoop
from kfc.consumer.metadata import TopicMetadataResolver
from kfc.consumer.offsets import resolve_offset
from kfc.consumer.orchestrator import ConsumptionOrchestrator
from kfc.consumer.runner import consume, run_consumer
from kfc.consumer.transport import AIOKafkaClient, KafkaClient
from kfc.consumer.types import (
    Absolute,
    ConsumedRecord,
    DataRecord,
    Earliest,
    Latest,
    OffsetDirective,
    PartitionEnd,
    PartitionMetadata,
    PartitionSet,
    RunState,
    Stats,
    Stored,
    StreamFailure,
    TailRelative,
    TopicMetadata,
)

__all__ = [
    # Entry points
    "run_consumer",
    "consume",
    # Components
    "resolve_offset",
    "TopicMetadataResolver",
    "EofTracker",
    "MessageFormatter",
    "ConsumptionOrchestrator",
    "ConsumeLoop",
    # Kafka client
    "KafkaClient",
    "AIOKafkaClient",
    # Types
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
    "TopicMetadata",
    "PartitionMetadata",
    "PartitionSet",
    "RunState",
    "Stats",
]
