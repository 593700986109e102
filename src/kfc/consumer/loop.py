"""The consume loop: drain the shared queue and dispatch each item."""

import logging

from core.errors.kafka_classifier import KafkaErrorClassifier
from core.logging.kafka_context import KafkaLogContext
from kfc.consumer.eof import EofTracker
from kfc.consumer.formatter import MessageFormatter
from kfc.consumer.types import (
    ConsumedRecord,
    DataRecord,
    PartitionEnd,
    RunState,
    Stats,
    StreamFailure,
)

logger = logging.getLogger(__name__)

DEFAULT_POLL_TIMEOUT = 0.1


class ConsumeLoop:
    """
    Polls the client's shared queue until the run state stops.

    DataRecords go to the formatter and count towards the message limit,
    PartitionEnd signals go to the EOF tracker and a StreamFailure aborts the
    run with a StreamError. The stop flag is checked before every item, so
    anything drained after the run stopped is dropped.
    """

    def __init__(
        self,
        client,
        formatter: MessageFormatter,
        eof_tracker: EofTracker,
        run_state: RunState,
        stats: Stats | None = None,
        limit: int | None = None,
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
    ):
        self.client = client
        self.formatter = formatter
        self.eof_tracker = eof_tracker
        self.run_state = run_state
        self.stats = stats if stats is not None else Stats()
        self.limit = limit if limit and limit > 0 else None
        self.poll_timeout = poll_timeout

    async def run(self) -> Stats:
        """Run until stopped. Returns the final stats.

        Raises:
            StreamError: the queue reported a non-EOF error
            OutputError: writing a record failed
        """
        logger.debug(
            "Consume loop started",
            extra={"limit": self.limit, "threshold": self.eof_tracker.threshold},
        )
        while self.run_state.running:
            items = await self.client.dequeue(self.poll_timeout)
            for item in items:
                if not self.run_state.running:
                    break
                self.dispatch(item)

        logger.debug(
            "Consume loop finished",
            extra={"messages_consumed": self.stats.rx, "reason": self.run_state.reason},
        )
        return self.stats

    def dispatch(self, item: ConsumedRecord) -> None:
        if isinstance(item, DataRecord):
            with KafkaLogContext(topic=item.topic, partition=item.partition, offset=item.offset):
                self.formatter.format(item)
            self.stats.rx += 1
            if self.limit is not None and self.stats.rx >= self.limit:
                logger.debug(
                    "Message limit reached",
                    extra={"messages_consumed": self.stats.rx, "limit": self.limit},
                )
                self.run_state.stop("limit")
        elif isinstance(item, PartitionEnd):
            with KafkaLogContext(topic=item.topic, partition=item.partition, offset=item.offset):
                self.eof_tracker.observe(item)
        elif isinstance(item, StreamFailure):
            raise KafkaErrorClassifier.classify_stream_error(
                item.error, item.topic, item.partition
            )
        else:
            raise TypeError(f"Unexpected queue item: {item!r}")
