"""Starting offset parsing."""

from core.errors.exceptions import InvalidOffsetSpec
from kfc.consumer.types import (
    Absolute,
    Earliest,
    Latest,
    OffsetDirective,
    Stored,
    TailRelative,
)

_KEYWORDS = {
    "beginning": Earliest(),
    "end": Latest(),
    "stored": Stored(),
}


def resolve_offset(spec: str) -> OffsetDirective:
    """
    Parse an offset spec into an OffsetDirective.

    "beginning", "end" and "stored" map to their directives, a non-negative
    integer to Absolute(n) and a negative one to TailRelative(-n).

    Raises:
        InvalidOffsetSpec: spec is neither a keyword nor an integer
    """
    token = spec.strip()
    if token in _KEYWORDS:
        return _KEYWORDS[token]

    try:
        value = int(token)
    except ValueError:
        raise InvalidOffsetSpec(spec) from None

    if value < 0:
        return TailRelative(-value)
    return Absolute(value)
