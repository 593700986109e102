"""Delimited text output of consumed records."""

import logging
from typing import BinaryIO

from core.errors.exceptions import OutputError
from kfc.consumer.types import DataRecord

logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = b"\n"


class MessageFormatter:
    """
    Renders DataRecords onto a binary sink.

    Output per record, each field optional except the payload:

        [offset KEYDELIM][key KEYDELIM]payload DELIM

    The offset field is separated by the key delimiter, or a newline when no
    key delimiter is configured. The key field is only written when a key
    delimiter is configured. Each record goes out in a single write() call.
    """

    def __init__(
        self,
        sink: BinaryIO,
        delimiter: bytes = DEFAULT_DELIMITER,
        key_delimiter: bytes | None = None,
        print_offset: bool = False,
        unbuffered: bool = False,
    ):
        self.sink = sink
        self.delimiter = delimiter
        self.key_delimiter = key_delimiter
        self.print_offset = print_offset
        self.unbuffered = unbuffered

    def render(self, record: DataRecord) -> bytes:
        parts = []
        if self.print_offset:
            parts.append(str(record.offset).encode("ascii"))
            parts.append(self.key_delimiter or DEFAULT_DELIMITER)
        if self.key_delimiter is not None:
            parts.append(record.key or b"")
            parts.append(self.key_delimiter)
        parts.append(record.value or b"")
        parts.append(self.delimiter)
        return b"".join(parts)

    def format(self, record: DataRecord) -> bytes:
        """Write one record to the sink and return the bytes written.

        Raises:
            OutputError: the write failed, was short, or an unbuffered flush failed
        """
        data = self.render(record)
        context = {"partition": record.partition, "offset": record.offset}

        try:
            written = self.sink.write(data)
        except OSError as e:
            raise OutputError(
                f"Write error for message of {len(data)} bytes at offset {record.offset}",
                cause=e,
                context=context,
            ) from e

        if written is not None and written != len(data):
            raise OutputError(
                f"Short write for message at offset {record.offset}: "
                f"{written} of {len(data)} bytes",
                context={**context, "bytes_written": written},
            )

        if self.unbuffered:
            self.flush()

        return data

    def flush(self) -> None:
        try:
            self.sink.flush()
        except OSError as e:
            raise OutputError("Failed to flush output", cause=e) from e
