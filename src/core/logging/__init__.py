"""
Structured logging module.

Provides console and JSON logging with run/partition context propagation.
"""

from core.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from core.logging.formatters import ConsoleFormatter, JSONFormatter
from core.logging.kafka_context import (
    KafkaLogContext,
    clear_kafka_context,
    get_kafka_context,
    set_kafka_context,
)
from core.logging.setup import (
    generate_run_id,
    log_consumer_startup,
    setup_logging,
    verbosity_to_level,
)
from core.logging.utilities import format_run_summary, log_exception, log_with_context

__all__ = [
    # Setup
    "setup_logging",
    "generate_run_id",
    "log_consumer_startup",
    "verbosity_to_level",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    # Kafka Context
    "set_kafka_context",
    "get_kafka_context",
    "clear_kafka_context",
    "KafkaLogContext",
    # Utilities
    "log_with_context",
    "log_exception",
    "format_run_summary",
]
