"""Kafka client used by the consumer, and its aiokafka implementation."""

import asyncio
import logging
from typing import Protocol

from aiokafka import AIOKafkaConsumer
from aiokafka.admin import AIOKafkaAdminClient
from aiokafka.errors import KafkaError, UnknownTopicOrPartitionError, for_code
from aiokafka.structs import TopicPartition

from config.config import ConnectionConfig
from core.errors.exceptions import MetadataError, StreamError
from core.errors.kafka_classifier import KafkaErrorClassifier, describe_kafka_error
from kfc.consumer.kafka_config import build_kafka_security_config
from kfc.consumer.types import (
    Absolute,
    ConsumedRecord,
    Earliest,
    Latest,
    OffsetDirective,
    PartitionEnd,
    PartitionMetadata,
    Stored,
    StreamFailure,
    TailRelative,
    TopicMetadata,
    from_consumer_record,
)

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_ID = "kfc"


class KafkaClient(Protocol):
    """What the consumer needs from a Kafka client."""

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def fetch_topic_metadata(self, topic: str, timeout: float) -> TopicMetadata: ...

    async def open_partition_stream(
        self, topic: str, partition: int, directive: OffsetDirective
    ) -> None: ...

    async def close_partition_stream(self, topic: str, partition: int) -> None: ...

    async def dequeue(self, max_wait: float) -> list[ConsumedRecord]: ...


def _error_name(error_code: int) -> str | None:
    if not error_code:
        return None
    error_class = for_code(error_code)
    return getattr(error_class, "message", error_class.__name__)


def parse_topic_metadata(topic: str, topics: list[dict]) -> TopicMetadata:
    """Build TopicMetadata from an admin describe_topics() response.

    Field names differ across metadata response versions ("topic"/"name",
    "partition"/"partition_index"), both are accepted.
    """
    for entry in topics:
        name = entry.get("topic", entry.get("name"))
        if name != topic:
            continue

        error_code = entry.get("error_code", 0)
        if error_code == UnknownTopicOrPartitionError.errno:
            return TopicMetadata(topic=topic, exists=False)

        partitions = [
            PartitionMetadata(
                id=p.get("partition", p.get("partition_index")),
                error=_error_name(p.get("error_code", 0)),
            )
            for p in entry.get("partitions", [])
        ]
        return TopicMetadata(
            topic=topic,
            exists=True,
            error=_error_name(error_code),
            partitions=partitions,
        )

    return TopicMetadata(topic=topic, exists=False)


def _partition_from_error(error: Exception) -> int | None:
    """Partition named by a fetch error, e.g. OffsetOutOfRangeError({tp: offset})."""
    if error.args and isinstance(error.args[0], dict):
        tps = [tp for tp in error.args[0] if isinstance(tp, TopicPartition)]
        if len(tps) == 1:
            return tps[0].partition
    return None


class AIOKafkaClient:
    """
    KafkaClient on top of AIOKafkaConsumer with manual partition assignment.

    The consumer's fetch buffer is the shared queue: every open partition is
    fetched by aiokafka's background fetcher and drained with getmany().
    Topic metadata comes from AIOKafkaAdminClient.

    A PartitionEnd is emitted when a partition's position reaches its high
    watermark (the last stable offset under read_committed), once per arrival
    at the end; new data on the partition re-arms it.
    """

    def __init__(
        self,
        connection: ConnectionConfig,
        client_properties: dict | None = None,
    ):
        self.connection = connection
        self.client_properties = dict(client_properties or {})
        self._consumer: AIOKafkaConsumer | None = None
        self._admin: AIOKafkaAdminClient | None = None
        self._directives: dict[TopicPartition, OffsetDirective] = {}
        self._at_end: dict[TopicPartition, bool] = {}

    def build_consumer_config(self) -> dict:
        """Build the AIOKafkaConsumer configuration dict."""
        group_id = self.client_properties.get("group_id")
        cfg = {
            "bootstrap_servers": self.connection.bootstrap_servers,
            "client_id": DEFAULT_CLIENT_ID,
            "group_id": group_id,
            "request_timeout_ms": self.connection.request_timeout_ms,
            "enable_auto_commit": group_id is not None,
            "auto_offset_reset": "latest",
        }
        cfg.update(self.client_properties)
        cfg.update(build_kafka_security_config(self.connection))
        return cfg

    def build_admin_config(self) -> dict:
        cfg = {
            "bootstrap_servers": self.connection.bootstrap_servers,
            "client_id": self.client_properties.get("client_id", DEFAULT_CLIENT_ID),
            "request_timeout_ms": self.connection.request_timeout_ms,
        }
        cfg.update(build_kafka_security_config(self.connection))
        return cfg

    async def start(self) -> None:
        logger.debug(
            "Connecting to Kafka",
            extra={"bootstrap_servers": self.connection.bootstrap_servers},
        )
        self._consumer = AIOKafkaConsumer(**self.build_consumer_config())
        self._admin = AIOKafkaAdminClient(**self.build_admin_config())
        try:
            await self._consumer.start()
            await self._admin.start()
        except KafkaError as e:
            raise StreamError(
                f"Failed to connect to {self.connection.bootstrap_servers}: "
                f"{describe_kafka_error(e)}",
                cause=e,
                context={"bootstrap_servers": self.connection.bootstrap_servers},
            ) from e

    async def stop(self) -> None:
        consumer, self._consumer = self._consumer, None
        admin, self._admin = self._admin, None
        self._directives.clear()
        self._at_end.clear()

        try:
            if consumer is not None:
                await consumer.stop()
        finally:
            if admin is not None:
                await admin.close()

    async def fetch_topic_metadata(self, topic: str, timeout: float) -> TopicMetadata:
        """Describe `topic`, bounded by `timeout` seconds.

        Raises:
            MetadataError: the query failed or timed out
        """
        try:
            topics = await asyncio.wait_for(self._admin.describe_topics([topic]), timeout)
        except asyncio.TimeoutError as e:
            raise MetadataError(
                f"Timed out after {timeout:g}s waiting for metadata of topic {topic}",
                cause=e,
                context={"topic": topic},
            ) from e
        except KafkaError as e:
            raise KafkaErrorClassifier.classify_metadata_error(e, topic) from e

        return parse_topic_metadata(topic, topics)

    async def _seek(self, tp: TopicPartition, directive: OffsetDirective) -> None:
        if isinstance(directive, Earliest):
            await self._consumer.seek_to_beginning(tp)
        elif isinstance(directive, Latest):
            await self._consumer.seek_to_end(tp)
        elif isinstance(directive, Stored):
            await self._consumer.seek_to_committed(tp)
        elif isinstance(directive, Absolute):
            self._consumer.seek(tp, directive.offset)
        elif isinstance(directive, TailRelative):
            begin = (await self._consumer.beginning_offsets([tp]))[tp]
            end = (await self._consumer.end_offsets([tp]))[tp]
            self._consumer.seek(tp, max(begin, end - directive.count))
        else:
            raise TypeError(f"Unsupported offset directive: {directive!r}")

    async def open_partition_stream(
        self, topic: str, partition: int, directive: OffsetDirective
    ) -> None:
        """Add a partition to the assignment, starting at `directive`.

        assign() replaces the whole assignment and drops fetch positions, so
        the directives of partitions opened earlier are applied again.
        """
        tp = TopicPartition(topic, partition)
        directives = {**self._directives, tp: directive}

        self._consumer.assign(list(directives))
        for assigned, assigned_directive in directives.items():
            await self._seek(assigned, assigned_directive)

        self._directives = directives
        self._at_end[tp] = False

    async def close_partition_stream(self, topic: str, partition: int) -> None:
        tp = TopicPartition(topic, partition)
        if self._directives.pop(tp, None) is None:
            return
        self._at_end.pop(tp, None)
        if self._consumer is not None:
            self._consumer.pause(tp)

    async def dequeue(self, max_wait: float) -> list[ConsumedRecord]:
        """Drain records from all open partitions, waiting at most `max_wait` seconds."""
        if not self._directives:
            await asyncio.sleep(max_wait)
            return []

        open_partitions = list(self._directives)
        try:
            data = await self._consumer.getmany(
                *open_partitions, timeout_ms=int(max_wait * 1000)
            )
        except KafkaError as e:
            return [StreamFailure(open_partitions[0].topic, _partition_from_error(e), e)]

        items: list[ConsumedRecord] = []
        for tp, records in data.items():
            if records:
                self._at_end[tp] = False
            items.extend(from_consumer_record(record) for record in records)

        for tp in open_partitions:
            if self._at_end.get(tp):
                continue
            end = self._end_offset(tp)
            if end is None:
                continue
            try:
                position = await self._consumer.position(tp)
            except KafkaError as e:
                items.append(StreamFailure(tp.topic, tp.partition, e))
                break
            if position >= end:
                self._at_end[tp] = True
                items.append(PartitionEnd(tp.topic, tp.partition, position))

        return items

    def _end_offset(self, tp: TopicPartition) -> int | None:
        """End of the readable log: the LSO under read_committed, else the high watermark."""
        if self.client_properties.get("isolation_level") == "read_committed":
            return self._consumer.last_stable_offset(tp)
        return self._consumer.highwater(tp)
