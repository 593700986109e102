"""Log formatters for JSON and console output."""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from core.logging.context import get_log_context
from core.logging.kafka_context import get_kafka_context
from core.utils.json_serializers import json_serializer


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with context injection.

    Produces one JSON object per line for easy parsing with jq/grep.
    """

    # Fields to extract from LogRecord extras
    EXTRA_FIELDS = [
        # Kafka
        "topic",
        "partition",
        "offset",
        "partitions",
        "partition_count",
        "bootstrap_servers",
        "offset_directive",
        "group_id",
        # Termination tracking
        "eof_count",
        "threshold",
        "messages_consumed",
        "limit",
        "reason",
        # Errors
        "error_category",
        "error_message",
        "error_type",
        "error",
        # Output
        "bytes_written",
        "duration_ms",
    ]

    # Keep numeric fields numeric so downstream aggregations work
    NUMERIC_FIELDS = {
        "duration_ms": float,
        "partition": int,
        "offset": int,
        "partition_count": int,
        "eof_count": int,
        "threshold": int,
        "messages_consumed": int,
        "limit": int,
        "bytes_written": int,
    }

    def _ensure_type(self, field: str, value: Any) -> Any:
        """
        Coerce a known numeric field to its expected type.

        Returns None when conversion fails so a bad value never breaks the
        log line.
        """
        if field not in self.NUMERIC_FIELDS or value is None:
            return value

        expected_type = self.NUMERIC_FIELDS[field]
        try:
            return expected_type(value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _base_log_entry(record: logging.LogRecord) -> dict[str, Any]:
        return {
            "ts": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

    @staticmethod
    def _inject_context(log_entry: dict[str, Any]) -> None:
        log_context = get_log_context()
        for field in ("run_id", "stage", "client_id"):
            if log_context[field]:
                log_entry[field] = log_context[field]
        log_entry.update(get_kafka_context())

    @staticmethod
    def _should_include_source_location(record: logging.LogRecord) -> bool:
        return record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL)

    def _inject_extra_fields(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = self._ensure_type(field, value)

    def _inject_exception(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        if not record.exc_info:
            return

        exc_type, exc_value, _ = record.exc_info
        log_entry["exception"] = {
            "type": exc_type.__name__ if exc_type else None,
            "message": str(exc_value) if exc_value else None,
            "stacktrace": self.formatException(record.exc_info),
        }

    def format(self, record: logging.LogRecord) -> str:
        log_entry = self._base_log_entry(record)
        self._inject_context(log_entry)

        if self._should_include_source_location(record):
            log_entry["file"] = f"{record.filename}:{record.lineno}"

        self._inject_extra_fields(log_entry, record)
        self._inject_exception(log_entry, record)

        return json.dumps(log_entry, default=json_serializer, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter with color-coded log levels.

    Console output goes to stderr because stdout carries consumed messages,
    so colors follow whether stderr is a TTY.
    """

    # ANSI color codes
    COLORS = {
        logging.DEBUG: "\033[36m",  # Cyan
        logging.INFO: "\033[32m",  # Green
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",  # Red
        logging.CRITICAL: "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(
        self,
        *args,
        use_colors: bool | None = None,
        show_tracebacks: bool = False,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self._use_colors = sys.stderr.isatty() if use_colors is None else use_colors
        self._show_tracebacks = show_tracebacks

    def _format_level_name(self, record: logging.LogRecord) -> str:
        level_name = record.levelname
        if not self._use_colors:
            return level_name

        color = self.COLORS.get(record.levelno, "")
        if not color:
            return level_name

        return f"{color}{level_name}{self.RESET}"

    @staticmethod
    def _build_prefix(level_name: str) -> str:
        parts = [
            datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            level_name,
        ]

        stage = get_log_context()["stage"]
        if stage:
            parts.append(f"[{stage}]")

        return " - ".join(parts)

    @staticmethod
    def _build_tags(record: logging.LogRecord) -> list[str]:
        kafka_context = get_kafka_context()
        partition = getattr(record, "partition", None)
        if partition is None:
            partition = kafka_context.get("kafka_partition")

        tags = []
        if partition is not None:
            tags.append(f"[p:{partition}]")
        return tags

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console output with optional color coding."""
        level_name = self._format_level_name(record)
        prefix = self._build_prefix(level_name)
        tags = self._build_tags(record)

        if tags:
            line = f"{prefix} - {' '.join(tags)} {record.getMessage()}"
        else:
            line = f"{prefix} - {record.getMessage()}"

        if record.exc_info and self._show_tracebacks:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line
