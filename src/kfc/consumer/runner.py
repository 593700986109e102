"""Consumer run entry point: wire the components and return an exit code."""

import asyncio
import logging
import sys
import time
from typing import BinaryIO

from config.config import ConsumerConfig
from core.errors.exceptions import KfcError
from core.logging.context import set_log_context
from core.logging.setup import log_consumer_startup
from core.logging.utilities import format_run_summary, log_exception
from kfc.consumer.eof import EofTracker
from kfc.consumer.formatter import MessageFormatter
from kfc.consumer.loop import ConsumeLoop
from kfc.consumer.metadata import TopicMetadataResolver
from kfc.consumer.offsets import resolve_offset
from kfc.consumer.orchestrator import ConsumptionOrchestrator
from kfc.consumer.signals import (
    remove_shutdown_signal_handlers,
    setup_shutdown_signal_handlers,
)
from kfc.consumer.transport import DEFAULT_CLIENT_ID, AIOKafkaClient
from kfc.consumer.types import RunState, Stats

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1


async def consume(
    config: ConsumerConfig,
    client=None,
    sink: BinaryIO | None = None,
    run_state: RunState | None = None,
    handle_signals: bool = True,
) -> int:
    """
    Consume `config.topic` to `sink` until the run stops.

    Offset parsing and config validation happen before connecting. Then the
    topic metadata is resolved, partition streams are opened and the consume
    loop runs until EOF, the message limit, a signal or a fatal error. Opened
    streams and the client are always released.

    Args:
        config: Resolved consumer settings
        client: KafkaClient to use (default: AIOKafkaClient for config.connection)
        sink: Binary output stream (default: stdout)
        run_state: Externally owned run state, e.g. to stop the run from outside
        handle_signals: Stop the run on SIGINT/SIGTERM

    Returns:
        0 on a normal or signal-triggered stop, 1 on any fatal error
    """
    run_state = run_state if run_state is not None else RunState()
    sink = sink if sink is not None else sys.stdout.buffer
    stats = Stats()

    try:
        config.validate()
        directive = resolve_offset(config.offset)
    except KfcError as e:
        log_exception(logger, e, str(e), include_traceback=False)
        return EXIT_FATAL

    set_log_context(client_id=config.client_properties.get("client_id", DEFAULT_CLIENT_ID))
    log_consumer_startup(
        logger,
        topic=config.topic,
        bootstrap_servers=config.connection.bootstrap_servers,
        partition=config.partition,
        offset_spec=str(directive),
        extra_config={
            "Delimiter": repr(config.delimiter),
            "Key delimiter": repr(config.key_delimiter),
            "Message limit": config.message_limit or "none",
            "Exit on EOF": config.exit_on_eof,
            **config.client_properties,
        },
    )

    if client is None:
        client = AIOKafkaClient(config.connection, config.client_properties)
    orchestrator = ConsumptionOrchestrator(client, config.topic)

    if handle_signals:
        setup_shutdown_signal_handlers(lambda: run_state.stop("signal"))

    started = time.monotonic()
    exit_code = EXIT_OK
    try:
        await client.start()

        partitions = await TopicMetadataResolver(client).resolve(
            config.topic,
            timeout=config.connection.metadata_timeout_ms / 1000,
            partition=config.partition,
        )
        opened = await orchestrator.open(partitions, directive, config.partition)

        formatter = MessageFormatter(
            sink,
            delimiter=config.delimiter,
            key_delimiter=config.key_delimiter,
            print_offset=config.print_offset,
            unbuffered=config.unbuffered,
        )
        eof_tracker = EofTracker(
            opened,
            single_partition=config.partition is not None,
            exit_on_eof=config.exit_on_eof,
            run_state=run_state,
        )
        loop = ConsumeLoop(
            client,
            formatter,
            eof_tracker,
            run_state,
            stats=stats,
            limit=config.message_limit,
        )
        await loop.run()
        formatter.flush()

    except KfcError as e:
        run_state.stop("error")
        log_exception(logger, e, str(e), topic=config.topic)
        exit_code = EXIT_FATAL

    except Exception as e:
        run_state.stop("error")
        log_exception(logger, e, f"Unexpected error consuming {config.topic}", topic=config.topic)
        exit_code = EXIT_FATAL

    finally:
        if handle_signals:
            remove_shutdown_signal_handlers()
        try:
            await orchestrator.close()
        except Exception as e:
            log_exception(logger, e, "Error closing consumer", level=logging.WARNING)

    logger.info(
        format_run_summary(stats.rx, time.monotonic() - started, run_state.reason),
        extra={"messages_consumed": stats.rx, "reason": run_state.reason},
    )
    return exit_code


def run_consumer(config: ConsumerConfig, client=None, sink: BinaryIO | None = None) -> int:
    """Run a consumer on a fresh event loop and return the process exit code."""
    return asyncio.run(consume(config, client=client, sink=sink))
