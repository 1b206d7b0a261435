"""Log entries and their on-disk encoding."""

from __future__ import annotations

import io
import struct
import zlib
from dataclasses import dataclass
from typing import BinaryIO

from djournal.errors import DeserializationError, SerializationError

# offset, timestamp, key_length, value_length, checksum
_HEADER = struct.Struct("<QQIII")
# length prefix of a byte field
_LENGTH = struct.Struct("<Q")
_FIXED_SIZE = _HEADER.size + 2 * _LENGTH.size
_CHUNK = 64 * 1024


def compute_checksum(key: bytes, value: bytes) -> int:
    """CRC-32 of the key followed by the value."""
    return zlib.crc32(value, zlib.crc32(key))


@dataclass
class LogEntry:
    """One record in the log."""

    offset: int
    timestamp: int
    key: bytes
    value: bytes
    checksum: int = 0
    key_length: int | None = None
    value_length: int | None = None

    def __post_init__(self) -> None:
        self.key = bytes(self.key)
        self.value = bytes(self.value)
        if self.key_length is None:
            self.key_length = len(self.key)
        if self.value_length is None:
            self.value_length = len(self.value)

    def encode(self) -> bytes:
        """Serialize the entry into its on-disk form."""
        try:
            header = _HEADER.pack(
                self.offset,
                self.timestamp,
                self.key_length,
                self.value_length,
                self.checksum,
            )
        except struct.error as exc:
            raise SerializationError(str(exc)) from exc
        return b"".join(
            (
                header,
                _LENGTH.pack(len(self.key)),
                self.key,
                _LENGTH.pack(len(self.value)),
                self.value,
            )
        )

    def encoded_size(self) -> int:
        """Number of bytes ``encode`` produces."""
        return _FIXED_SIZE + len(self.key) + len(self.value)


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    parts = []
    remaining = size
    while remaining:
        chunk = stream.read(min(remaining, _CHUNK))
        if not chunk:
            break
        parts.append(chunk)
        remaining -= len(chunk)
    return b"".join(parts)


def _read_field(stream: BinaryIO, name: str) -> bytes:
    prefix = _read_exact(stream, _LENGTH.size)
    if len(prefix) < _LENGTH.size:
        raise DeserializationError(f"unexpected end of data in {name} length")
    (length,) = _LENGTH.unpack(prefix)
    data = _read_exact(stream, length)
    if len(data) < length:
        raise DeserializationError(f"unexpected end of data in {name}")
    return data


def read_entry(stream: BinaryIO) -> LogEntry | None:
    """Read the next entry from a binary stream, or None at end of stream."""
    header = _read_exact(stream, _HEADER.size)
    if not header:
        return None
    if len(header) < _HEADER.size:
        raise DeserializationError("unexpected end of data in entry header")
    offset, timestamp, key_length, value_length, checksum = _HEADER.unpack(header)
    key = _read_field(stream, "key")
    value = _read_field(stream, "value")
    return LogEntry(
        offset=offset,
        timestamp=timestamp,
        key=key,
        value=value,
        checksum=checksum,
        key_length=key_length,
        value_length=value_length,
    )


def decode_entry(data: bytes) -> LogEntry:
    """Decode the entry at the start of ``data``."""
    entry = read_entry(io.BytesIO(data))
    if entry is None:
        raise DeserializationError("no entry in empty data")
    return entry