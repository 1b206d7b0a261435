"""The segmented commit log: appends, reads, rotation and retention."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path

from djournal.compaction import CompactionOptions
from djournal.entry import LogEntry
from djournal.errors import InitializationError, SegmentFullError
from djournal.retention import select_segments_to_purge
from djournal.segment import LogSegment

logger = logging.getLogger(__name__)

DEFAULT_MAX_SEGMENT_SIZE = 16 * 1024 * 1024


def _parse_base_offset(path: Path) -> int | None:
    stem = path.stem
    if stem.isascii() and stem.isdigit():
        return int(stem)
    return None


def _sort_key(path: Path) -> tuple[int, int]:
    base = _parse_base_offset(path)
    return (1, 0) if base is None else (0, base)


class Log:
    """An ordered sequence of segment files; the last one is the active segment.

    ``max_segment_duration`` is in seconds.
    """

    def __init__(
        self,
        log_dir: str | os.PathLike[str],
        max_segment_size: int | None = None,
        max_segment_duration: float | None = None,
        compaction_options: CompactionOptions | None = None,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.max_segment_size = (
            DEFAULT_MAX_SEGMENT_SIZE if max_segment_size is None else max_segment_size
        )
        self.max_segment_duration = max_segment_duration
        self.compaction_options = (
            CompactionOptions() if compaction_options is None else compaction_options
        )
        self.segments: list[LogSegment] = []
        self.next_offset = 0

        paths = sorted(
            (p for p in self.log_dir.iterdir() if p.is_file() and p.suffix == ".log"),
            key=_sort_key,
        )

        try:
            for path in paths:
                base_offset = _parse_base_offset(path)
                if base_offset is None:
                    raise InitializationError(f"Invalid segment filename: {path}")
                segment = LogSegment.load_existing(
                    path,
                    base_offset,
                    self.max_segment_size,
                    self.max_segment_duration,
                )
                self.segments.append(segment)
                self.next_offset = segment.base_offset + segment.num_entries

            if not self.segments:
                self.segments.append(self._new_segment(0))
                self.next_offset = 0

            last = self.segments[-1]
            if not last.is_empty() and (last.is_full() or last.has_expired()):
                self.segments.append(self._new_segment(self.next_offset))
        except BaseException:
            self.close()
            raise

    def _new_segment(self, base_offset: int) -> LogSegment:
        return LogSegment.create(
            self.log_dir, base_offset, self.max_segment_size, self.max_segment_duration
        )

    def active_segment(self) -> LogSegment:
        """The segment new entries are written to."""
        if not self.segments:
            raise InitializationError("No active segment")
        return self.segments[-1]

    def rotate_segment(self) -> None:
        """Start a new active segment at the next offset."""
        self.segments.append(self._new_segment(self.next_offset))

    def _append_checked(self, entry: LogEntry, expected: int, stage: str) -> int:
        assigned = self.active_segment().append(entry)
        if assigned != expected:
            raise InitializationError(
                f"Offset mismatch {stage}: Log expected {expected}, "
                f"segment assigned {assigned}. Critical bug."
            )
        return assigned

    def append(self, key: bytes, value: bytes) -> int:
        """Append a key/value record and return its offset."""
        expected = self.next_offset
        entry = LogEntry(
            offset=expected, timestamp=int(time.time()), key=key, value=value
        )

        active = self.active_segment()
        if not active.is_empty() and (active.is_full() or active.has_expired()):
            self.rotate_segment()

        try:
            assigned = self._append_checked(entry, expected, "during append")
        except SegmentFullError:
            self.rotate_segment()
            assigned = self._append_checked(entry, expected, "on retry append")
        self.next_offset += 1
        return assigned

    def read(self, offset: int) -> LogEntry | None:
        """Return the entry at ``offset``, or None if no segment holds it."""
        for segment in reversed(self.segments):
            if offset >= segment.base_offset:
                if offset < segment.base_offset + segment.num_entries:
                    return segment.read(offset - segment.base_offset)
                return None
        return None

    def close(self) -> None:
        """Flush and close every segment."""
        segments, self.segments = self.segments, []
        for segment in segments:
            segment.close()

    def purge_old_segments(self) -> int:
        """Delete the segments the retention policy allows; return how many."""
        doomed = select_segments_to_purge(self.compaction_options.policy, self.segments)
        if not doomed:
            return 0

        deleted = 0
        doomed_ids = {id(segment) for segment in doomed}
        kept: list[LogSegment] = []
        for segment in self.segments:
            if id(segment) not in doomed_ids:
                kept.append(segment)
                continue
            logger.info("Deleting segment file: %s", segment.file_path)
            segment.close()
            try:
                segment.file_path.unlink()
            except OSError as exc:
                logger.error(
                    "Failed to delete segment file %s: %s", segment.file_path, exc
                )
                segment.file = segment.file_path.open("a+b")
                kept.append(segment)
            else:
                deleted += 1
        self.segments = kept

        if not self.segments:
            self.next_offset = 0
        return deleted

    def __enter__(self) -> Log:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"Log(log_dir={str(self.log_dir)!r}, segments={len(self.segments)}, "
            f"next_offset={self.next_offset})"
        )