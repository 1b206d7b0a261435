"""Retention policies that decide which log segments may be purged."""

from __future__ import annotations

from dataclasses import dataclass, field


class CompactionPolicy:
    """Base class of all retention policies."""

    __slots__ = ()


@dataclass(frozen=True)
class Disabled(CompactionPolicy):
    """Never purge any segment."""


@dataclass(frozen=True)
class RetainMinSegments(CompactionPolicy):
    """Keep at least ``count`` segments."""

    count: int

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError("segment count must not be negative")


@dataclass(frozen=True)
class RetainTotalSize(CompactionPolicy):
    """Keep the total log size under ``max_bytes`` (approximately)."""

    max_bytes: int

    def __post_init__(self) -> None:
        if self.max_bytes < 0:
            raise ValueError("size limit must not be negative")


@dataclass(frozen=True)
class RetainDuration(CompactionPolicy):
    """Keep segments younger than ``period`` seconds."""

    period: float

    def __post_init__(self) -> None:
        if self.period < 0:
            raise ValueError("retention period must not be negative")


@dataclass(frozen=True)
class CompactionOptions:
    """Settings for segment cleanup."""

    policy: CompactionPolicy = field(default_factory=Disabled)