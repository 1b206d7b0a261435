"""Exceptions raised by the journal."""

from __future__ import annotations


class JournalError(Exception):
    """Base class for every error the journal raises."""

    message = "Journal error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        text = self.message if detail is None else f"{self.message}: {detail}"
        super().__init__(text)


class SerializationError(JournalError):
    """An entry could not be encoded."""

    message = "Serialization error"


class DeserializationError(JournalError):
    """Stored bytes could not be decoded into an entry."""

    message = "Deserialization error"


class ChecksumMismatchError(JournalError):
    """A stored entry does not match its checksum."""

    message = "Checksum mismatch"


class OffsetNotFoundError(JournalError):
    """The requested offset is not where the index says it is."""

    message = "Offset not found"


class SegmentFullError(JournalError):
    """The segment has no room for another entry."""

    message = "Segment is full"


class EntryTooLargeError(JournalError):
    """The entry cannot fit in any segment."""

    message = "Entry is too large for segment"


class NoActiveSegmentError(JournalError):
    """The log has no segment to write to."""

    message = "No active segment available"


class InternalError(JournalError):
    """An invariant of the journal was broken."""

    message = "Internal error"


class InitializationError(JournalError):
    """Stored state could not be loaded or is inconsistent."""

    message = "Initialization error"