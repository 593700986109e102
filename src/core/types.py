"""
Core types shared across modules.

This module provides the enums used to classify failures so the CLI and the
consumer agree on how a run ended.
"""

from enum import Enum


class ErrorCategory(Enum):
    """
    Classification of fatal error types.

    Every category terminates the run; the category only drives logging and
    diagnostics.

    Categories:
        CONFIG: Invalid user input detected before consumption starts
                (e.g., bad offset spec, unknown client property)
        METADATA: Topic or partition lookup failed
                  (e.g., unknown topic, broker-reported topic error)
        STREAM: A partition stream failed while opening or consuming
        OUTPUT: Writing to the output sink failed
        UNKNOWN: Unclassified errors
    """

    CONFIG = "config"
    METADATA = "metadata"
    STREAM = "stream"
    OUTPUT = "output"
    UNKNOWN = "unknown"


__all__ = ["ErrorCategory"]
