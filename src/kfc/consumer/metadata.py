"""Topic metadata lookup and validation."""

import logging

from core.errors.exceptions import (
    NoPartitions,
    PartitionError,
    PartitionNotFound,
    TopicError,
    TopicNotFound,
)
from kfc.consumer.types import PartitionSet

logger = logging.getLogger(__name__)


class TopicMetadataResolver:
    """
    Resolves a topic's partition set through the Kafka client.

    The client call itself raises MetadataError when the query fails or
    times out; this class turns a successful but unhealthy answer into the
    matching MetadataError subclass.
    """

    def __init__(self, client):
        self.client = client

    async def resolve(
        self,
        topic: str,
        timeout: float,
        partition: int | None = None,
    ) -> PartitionSet:
        metadata = await self.client.fetch_topic_metadata(topic, timeout)

        if not metadata.exists:
            raise TopicNotFound(topic)
        if metadata.error:
            raise TopicError(topic, metadata.error)
        if not metadata.partitions:
            raise NoPartitions(topic)

        partitions = tuple(sorted(p.id for p in metadata.partitions))

        if partition is not None and partition not in partitions:
            raise PartitionNotFound(topic, partition, len(partitions))

        for p in metadata.partitions:
            if p.error and (partition is None or p.id == partition):
                raise PartitionError(topic, p.id, p.error)

        logger.info(
            "Resolved topic %s with %d partitions",
            topic,
            len(partitions),
            extra={"topic": topic, "partition_count": len(partitions)},
        )
        return partitions
