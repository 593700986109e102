"""End-of-partition tracking and the exit-on-EOF termination rule."""

import logging
from typing import Dict, Iterable

from core.logging.utilities import log_with_context
from kfc.consumer.types import PartitionEnd, RunState

logger = logging.getLogger(__name__)


class EofTracker:
    """
    Per-partition EOF state for the partitions in scope.

    Each partition moves from active to at-EOF at most once. When exit-on-EOF
    is enabled and the number of partitions at EOF reaches the threshold the
    run is stopped. The threshold is 1 when a single partition was selected,
    otherwise every partition in scope must reach EOF.

    Without exit-on-EOF, PartitionEnd signals are only logged.
    """

    def __init__(
        self,
        partitions: Iterable[int],
        single_partition: bool,
        exit_on_eof: bool,
        run_state: RunState,
    ):
        self._at_eof: Dict[int, bool] = {p: False for p in partitions}
        self.exit_on_eof = exit_on_eof
        self.run_state = run_state
        self.threshold = 1 if single_partition else len(self._at_eof)
        self.eof_count = 0

    def is_at_eof(self, partition: int) -> bool:
        return self._at_eof.get(partition, False)

    def observe(self, end: PartitionEnd) -> None:
        """Apply a PartitionEnd signal."""
        if end.partition not in self._at_eof:
            logger.warning(
                "Ignoring end of partition %s [%d]: partition not consumed",
                end.topic,
                end.partition,
                extra={"topic": end.topic, "partition": end.partition},
            )
            return

        if not self.exit_on_eof:
            logger.debug(
                "Reached end of topic %s [%d] at offset %d",
                end.topic,
                end.partition,
                end.offset,
            )
            return

        if self._at_eof[end.partition]:
            return

        self._at_eof[end.partition] = True
        self.eof_count += 1

        exiting = self.eof_count >= self.threshold
        log_with_context(
            logger,
            logging.INFO,
            f"Reached end of topic {end.topic} [{end.partition}] at offset {end.offset}"
            + (": exiting" if exiting else ""),
            topic=end.topic,
            partition=end.partition,
            offset=end.offset,
            eof_count=self.eof_count,
            threshold=self.threshold,
        )
        if exiting:
            self.run_state.stop("eof")
