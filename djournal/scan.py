"""Rebuilding a segment's index from its file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from djournal.entry import compute_checksum, read_entry
from djournal.errors import DeserializationError, InitializationError

logger = logging.getLogger(__name__)


@dataclass
class SegmentScan:
    """Index and size recovered from a segment file."""

    index: list[tuple[int, int]] = field(default_factory=list)
    size: int = 0

    @property
    def entry_count(self) -> int:
        return len(self.index)


def scan_segment(file_path: str | os.PathLike[str], base_offset: int) -> SegmentScan:
    """Read every entry of a segment file, checking offsets and checksums.

    Scanning stops quietly at the end of the file or at a truncated entry.
    """
    path = Path(file_path)
    scan = SegmentScan()
    with path.open("rb") as stream:
        while True:
            position = stream.tell()
            try:
                entry = read_entry(stream)
            except DeserializationError as exc:
                logger.warning(
                    "Deserialization error during segment load (file: %s): %s. "
                    "Assuming EOF or truncated segment.",
                    path,
                    exc,
                )
                break
            if entry is None:
                break
            expected = base_offset + scan.entry_count
            if entry.offset != expected:
                raise InitializationError(
                    f"Offset mismatch during segment load: file {path}, "
                    f"expected offset {expected}, found {entry.offset}. Corruption?"
                )
            if compute_checksum(entry.key, entry.value) != entry.checksum:
                raise InitializationError(
                    f"Checksum mismatch during segment load: file {path}, "
                    f"offset {entry.offset}. Corruption?"
                )
            scan.index.append((entry.offset, position))
            scan.size = stream.tell()
    return scan