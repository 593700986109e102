"""Shared JSON serialization utilities for log records."""

from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any


def _serialize_known_type(obj: Any) -> tuple[bool, Any]:
    """Try to serialize by known type. Returns (handled, result)."""
    if isinstance(obj, (datetime, date)):
        return True, obj.isoformat()
    if isinstance(obj, Path):
        return True, str(obj)
    if isinstance(obj, Enum):
        return True, obj.value
    if isinstance(obj, (bytes, bytearray)):
        return True, bytes(obj).decode("utf-8", errors="replace")
    if isinstance(obj, (set, frozenset, tuple)):
        return True, sorted(obj) if isinstance(obj, (set, frozenset)) else list(obj)
    return False, None


def json_serializer(obj: Any) -> Any:
    """
    Fallback serializer for json.dumps(default=...).

    - datetime/date → ISO 8601 string
    - Path → string
    - Enum → value
    - bytes → UTF-8 text (invalid sequences replaced)
    - set/tuple → list
    - Everything else → string (offset directives render as e.g. "tail-5")
    """
    handled, result = _serialize_known_type(obj)
    if handled:
        return result
    return str(obj)


__all__ = ["json_serializer"]
