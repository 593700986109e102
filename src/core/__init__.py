"""
Core library: reusable, Kafka-client-agnostic components.

Modules:
    logging     - Structured console/JSON logging with context propagation
    errors      - Error classification and exception hierarchy
    utils       - JSON serialization helpers

Design Principles:
    - No dependency on a specific Kafka client at import time
    - All modules are independently testable
"""

from .types import ErrorCategory

__version__ = "0.1.0"

__all__ = [
    "ErrorCategory",
]
