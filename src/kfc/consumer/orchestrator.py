"""Partition selection and partition stream lifecycle."""

import logging

from core.errors.exceptions import KfcError, PartitionSelectionError, StreamError
from core.errors.kafka_classifier import describe_kafka_error
from core.logging.utilities import log_exception
from kfc.consumer.types import OffsetDirective, PartitionSet

logger = logging.getLogger(__name__)


class ConsumptionOrchestrator:
    """
    Opens one stream per selected partition into the client's shared queue.

    With a target partition only that partition is opened, otherwise every
    partition in the set. Opening is all-or-nothing: if any stream fails the
    ones already opened are closed again and the error propagates.

    close() closes every opened stream and then stops the client, and may be
    called any number of times.
    """

    def __init__(self, client, topic: str):
        self.client = client
        self.topic = topic
        self._opened: list[int] = []
        self._closed = False

    @property
    def opened_partitions(self) -> list[int]:
        return list(self._opened)

    def select(self, partitions: PartitionSet, target: int | None = None) -> list[int]:
        """Return the partitions to open."""
        if target is None:
            return list(partitions)

        for partition in partitions:
            if partition == target:
                return [partition]

        raise PartitionSelectionError(self.topic, target, len(partitions))

    async def open(
        self,
        partitions: PartitionSet,
        directive: OffsetDirective,
        target: int | None = None,
    ) -> list[int]:
        """Open streams for the selected partitions.

        Raises:
            PartitionSelectionError: target is not in partitions
            StreamError: a stream could not be opened
        """
        selected = self.select(partitions, target)

        for partition in selected:
            try:
                await self.client.open_partition_stream(self.topic, partition, directive)
            except KfcError:
                await self._close_streams()
                raise
            except Exception as e:
                await self._close_streams()
                raise StreamError(
                    f"Failed to start consuming topic {self.topic} [{partition}]: "
                    f"{describe_kafka_error(e)}",
                    topic=self.topic,
                    partition=partition,
                    cause=e,
                    context={"offset_directive": directive},
                ) from e

            self._opened.append(partition)
            logger.debug(
                "Opened stream for %s [%d] at %s",
                self.topic,
                partition,
                directive,
                extra={"topic": self.topic, "partition": partition, "offset_directive": directive},
            )

        logger.info(
            "Consuming %d partition(s) of %s",
            len(self._opened),
            self.topic,
            extra={"topic": self.topic, "partitions": self._opened},
        )
        return list(self._opened)

    async def _close_streams(self) -> None:
        while self._opened:
            partition = self._opened.pop()
            try:
                await self.client.close_partition_stream(self.topic, partition)
            except Exception as e:
                log_exception(
                    logger,
                    e,
                    f"Failed to stop consuming {self.topic} [{partition}]",
                    level=logging.WARNING,
                    include_traceback=False,
                    topic=self.topic,
                    partition=partition,
                )

    async def close(self) -> None:
        """Close all opened streams, then release the client."""
        if self._closed:
            return
        self._closed = True

        await self._close_streams()
        await self.client.stop()
        logger.debug("Consumer closed", extra={"topic": self.topic})
