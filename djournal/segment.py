"""A single segment file of the log: append, index and read entries."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import BinaryIO

from djournal.entry import LogEntry, compute_checksum, read_entry
from djournal.errors import (
    ChecksumMismatchError,
    DeserializationError,
    OffsetNotFoundError,
    SegmentFullError,
)
from djournal.scan import scan_segment

logger = logging.getLogger(__name__)

DEFAULT_MAX_SEGMENT_SIZE = 16 * 1024 * 1024


class LogSegment:
    """An append-only file of entries with an in-memory offset index.

    ``index`` holds ``(absolute_offset, file_position)`` pairs in append order.
    ``created_at`` is a POSIX timestamp in seconds; ``max_duration`` is in seconds.
    """

    def __init__(
        self,
        base_offset: int,
        file_path: str | os.PathLike[str],
        file: BinaryIO,
        *,
        current_size: int = 0,
        max_segment_size: int | None = None,
        index: list[tuple[int, int]] | None = None,
        created_at: float | None = None,
        max_duration: float | None = None,
    ) -> None:
        self.base_offset = base_offset
        self.file_path = Path(file_path)
        self.file = file
        self.current_size = current_size
        self.max_segment_size = (
            DEFAULT_MAX_SEGMENT_SIZE if max_segment_size is None else max_segment_size
        )
        self.index: list[tuple[int, int]] = [] if index is None else list(index)
        self.created_at = time.time() if created_at is None else created_at
        self.max_duration = max_duration

    @classmethod
    def create(
        cls,
        directory: str | os.PathLike[str],
        base_offset: int,
        max_segment_size: int | None = None,
        max_duration: float | None = None,
    ) -> LogSegment:
        """Open ``<base_offset>.log`` in ``directory`` as a new, empty segment."""
        file_path = Path(directory) / f"{base_offset}.log"
        file = file_path.open("a+b")
        return cls(
            base_offset,
            file_path,
            file,
            max_segment_size=max_segment_size,
            max_duration=max_duration,
        )

    @classmethod
    def load_existing(
        cls,
        file_path: str | os.PathLike[str],
        base_offset: int,
        max_segment_size: int | None = None,
        max_duration: float | None = None,
    ) -> LogSegment:
        """Open an existing segment file and rebuild its index."""
        path = Path(file_path)
        scan = scan_segment(path, base_offset)
        file = path.open("a+b")
        return cls(
            base_offset,
            path,
            file,
            current_size=scan.size,
            max_segment_size=max_segment_size,
            index=scan.index,
            max_duration=max_duration,
        )

    @property
    def num_entries(self) -> int:
        return len(self.index)

    def append(self, entry: LogEntry) -> int:
        """Write ``entry`` at the end of the segment and return its absolute offset.

        The entry's offset, checksum and lengths are filled in here.
        Raises SegmentFullError if it does not fit and the segment is not empty.
        """
        entry.offset = self.base_offset + self.num_entries
        entry.checksum = compute_checksum(entry.key, entry.value)
        entry.key_length = len(entry.key)
        entry.value_length = len(entry.value)

        data = entry.encode()
        if self.current_size + len(data) > self.max_segment_size and self.index:
            raise SegmentFullError()

        position = self.current_size
        self.file.write(data)
        self.file.flush()

        self.index.append((entry.offset, position))
        self.current_size += len(data)
        return entry.offset

    def read(self, relative_offset: int) -> LogEntry | None:
        """Return the entry at ``base_offset + relative_offset``, or None if absent."""
        if not 0 <= relative_offset < self.num_entries:
            return None
        target = self.base_offset + relative_offset
        _, position = self.index[relative_offset]

        self.file.seek(position)
        entry = read_entry(self.file)
        if entry is None:
            raise DeserializationError(f"no entry at file position {position}")
        if compute_checksum(entry.key, entry.value) != entry.checksum:
            raise ChecksumMismatchError()
        if entry.offset != target:
            logger.error("Offset mismatch: expected %d, found %d", target, entry.offset)
            raise OffsetNotFoundError(f"expected {target}, found {entry.offset}")
        return entry

    def is_empty(self) -> bool:
        return self.num_entries == 0

    def has_expired(self) -> bool:
        """True once the segment is older than its maximum duration."""
        if self.max_duration is None:
            return False
        age = time.time() - self.created_at
        if age < 0:
            return False
        return age > self.max_duration

    def is_full(self) -> bool:
        return self.current_size >= self.max_segment_size

    def close(self) -> None:
        """Flush and close the segment file."""
        if not self.file.closed:
            self.file.flush()
            self.file.close()

    def __enter__(self) -> LogSegment:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"LogSegment(base_offset={self.base_offset}, file_path={str(self.file_path)!r}, "
            f"entries={self.num_entries}, size={self.current_size})"
        )