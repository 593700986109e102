"""Logging setup and configuration."""

import logging
import secrets
import sys
from datetime import datetime
from pathlib import Path

from core.logging.context import set_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter

DEFAULT_VERBOSITY = 1
DEFAULT_FILE_LEVEL = logging.DEBUG

# Noisy loggers to suppress unless running at debug verbosity
NOISY_LOGGERS = [
    "aiokafka",
    "aiokafka.conn",
    "aiokafka.consumer.fetcher",
    "aiokafka.cluster",
]


def verbosity_to_level(verbosity: int) -> int:
    """
    Map the CLI verbosity counter to a logging level.

    0 (-q) shows errors only, 1 (default) warnings, 2 (-v) informational
    notices such as partition EOF, 3 and above (-vv) everything.
    """
    if verbosity <= 0:
        return logging.ERROR
    if verbosity == 1:
        return logging.WARNING
    if verbosity == 2:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    name: str = "kfc",
    verbosity: int = DEFAULT_VERBOSITY,
    log_file: Path | None = None,
    json_format: bool = True,
    file_level: int = DEFAULT_FILE_LEVEL,
    suppress_noisy: bool = True,
    stage: str | None = None,
    run_id: str | None = None,
) -> logging.Logger:
    """
    Configure logging with a stderr console handler and an optional file handler.

    stdout is reserved for consumed messages, so nothing here ever writes to it.

    Args:
        name: Logger name to return
        verbosity: CLI verbosity counter (see verbosity_to_level)
        log_file: Optional path for a structured log file
        json_format: Use JSON format for the log file (default: True)
        file_level: File handler level (default: DEBUG)
        suppress_noisy: Quiet down aiokafka internals below debug verbosity
        stage: Stage name for log context
        run_id: Run identifier for log context

    Returns:
        Configured logger instance
    """
    if stage:
        set_log_context(stage=stage)
    if run_id:
        set_log_context(run_id=run_id)

    console_level = verbosity_to_level(verbosity)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ConsoleFormatter(show_tracebacks=console_level <= logging.DEBUG))
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        if json_format:
            file_formatter = JSONFormatter()
        else:
            file_formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
            )

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    if suppress_noisy and console_level > logging.DEBUG:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger(name)
    logger.debug(
        f"Logging initialized: verbosity={verbosity}, file={log_file}, json={json_format}",
    )

    return logger


def log_consumer_startup(
    logger: logging.Logger,
    topic: str,
    bootstrap_servers: str,
    partition: int | None = None,
    offset_spec: str | None = None,
    extra_config: dict | None = None,
) -> None:
    """
    Log the settings a consumer run starts with.

    Logged at DEBUG so it only shows with -vv or in the log file.
    """
    logger.debug("=" * 70)
    logger.debug("Starting consumer for topic %s", topic)
    logger.debug("=" * 70)
    logger.debug("Kafka bootstrap servers: %s", bootstrap_servers)
    logger.debug("Partition: %s", "all" if partition is None else partition)
    if offset_spec:
        logger.debug("Starting offset: %s", offset_spec)

    if extra_config:
        for key, value in extra_config.items():
            logger.debug("%s: %s", key, value)

    logger.debug("=" * 70)


def generate_run_id() -> str:
    """
    Generate unique run identifier.

    Format: r-YYYYMMDD-HHMMSS-XXXX where XXXX is random hex.
    """
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")
    suffix = secrets.token_hex(2)
    return f"r-{ts}-{suffix}"
