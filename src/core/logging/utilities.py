"""Logging utility functions."""

import logging
from typing import Any

# Reserved LogRecord attribute names that cannot be used in extra dict
_RESERVED_LOG_KEYS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "asctime",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


def log_with_context(
    logger: logging.Logger,
    level: int,
    msg: str,
    **kwargs: Any,
) -> None:
    """
    Log with structured context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **kwargs: Additional context fields (topic, partition, offset, ...).
                  exc_info=True is supported and handled specially.

    Example:
        log_with_context(
            logger, logging.INFO, "Reached end of partition",
            topic="events", partition=2, offset=1200,
        )
    """
    exc_info = kwargs.pop("exc_info", None)

    # Filter out reserved keys to prevent LogRecord conflicts
    extra = {k: v for k, v in kwargs.items() if k not in _RESERVED_LOG_KEYS}

    logger.log(level, msg, exc_info=exc_info, extra=extra)


def log_exception(
    logger: logging.Logger,
    exc: Exception,
    msg: str,
    level: int = logging.ERROR,
    include_traceback: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log exception with context and optional traceback.

    Extracts error_category from KfcError subclasses and merges the error's
    own context dict into the log record.

    Args:
        logger: Logger instance
        exc: Exception to log
        msg: Context message
        level: Log level (default: ERROR)
        include_traceback: Include full traceback (default: True)
        **kwargs: Additional context fields
    """
    error_category = kwargs.get("error_category")
    if error_category is None and hasattr(exc, "category"):
        cat = exc.category
        error_category = cat.value if hasattr(cat, "value") else str(cat)
        kwargs["error_category"] = error_category

    for key, value in getattr(exc, "context", {}).items():
        if key not in _RESERVED_LOG_KEYS and value is not None:
            kwargs.setdefault(key, value)

    error_msg = str(exc)
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."
    kwargs["error_message"] = error_msg
    kwargs.setdefault("error_type", type(exc).__name__)

    if include_traceback:
        logger.log(level, msg, exc_info=exc, extra=kwargs)
    else:
        logger.log(level, msg, extra=kwargs)


def format_run_summary(
    consumed: int,
    duration_seconds: float,
    reason: str | None = None,
) -> str:
    """
    Format the end-of-run summary line.

    Example:
        >>> format_run_summary(1200, 4.0, "eof")
        'Consumed 1200 messages in 4.0s (300.0 msg/s), stopped: eof'
    """
    rate = consumed / duration_seconds if duration_seconds > 0 else 0.0
    noun = "message" if consumed == 1 else "messages"
    summary = f"Consumed {consumed} {noun} in {duration_seconds:.1f}s ({rate:.1f} msg/s)"
    if reason:
        summary = f"{summary}, stopped: {reason}"
    return summary
