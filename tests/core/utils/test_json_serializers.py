from datetime import date, datetime
from enum import Enum
from pathlib import Path

from core.utils.json_serializers import json_serializer


class Color(Enum):
    RED = "red"
    BLUE = "blue"


class Directive:
    def __str__(self):
        return "tail-5"


# =========================================================================
# json_serializer
# =========================================================================


class TestJsonSerializer:

    def test_serializes_datetime_to_isoformat(self):
        dt = datetime(2025, 6, 15, 10, 30, 0)
        assert json_serializer(dt) == "2025-06-15T10:30:00"

    def test_serializes_date_to_isoformat(self):
        assert json_serializer(date(2025, 12, 25)) == "2025-12-25"

    def test_serializes_path_to_string(self):
        assert json_serializer(Path("/usr/local/bin")) == "/usr/local/bin"

    def test_serializes_enum_to_value(self):
        assert json_serializer(Color.RED) == "red"
        assert json_serializer(Color.BLUE) == "blue"

    def test_decodes_bytes(self):
        assert json_serializer(b"key-1") == "key-1"

    def test_replaces_invalid_utf8(self):
        assert json_serializer(b"\xff") == "�"

    def test_set_becomes_sorted_list(self):
        assert json_serializer({3, 1, 2}) == [1, 2, 3]

    def test_tuple_becomes_list(self):
        assert json_serializer((0, 1, 2)) == [0, 1, 2]

    def test_fallback_to_string(self):
        assert json_serializer(Directive()) == "tail-5"
        assert json_serializer(42) == "42"
