"""Choosing which log segments a retention policy allows to be purged."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from djournal.compaction import (
    CompactionPolicy,
    RetainDuration,
    RetainMinSegments,
    RetainTotalSize,
)
from djournal.segment import LogSegment

logger = logging.getLogger(__name__)


def _whole_seconds(period: float) -> int:
    return int(period)


def may_remove_active(policy: CompactionPolicy) -> bool:
    """True if ``policy`` is allowed to purge the active (last) segment.

    Only ``RetainMinSegments(0)`` and a ``RetainDuration`` of less than one
    whole second may remove it.
    """
    if isinstance(policy, RetainMinSegments):
        return policy.count == 0
    if isinstance(policy, RetainDuration):
        return _whole_seconds(policy.period) == 0
    return False


def _single_segment_is_kept(
    policy: CompactionPolicy, segments: Sequence[LogSegment]
) -> bool:
    """Guard applied when the log holds at most one segment."""
    if isinstance(policy, RetainDuration):
        if _whole_seconds(policy.period) == 0:
            return not segments or segments[0].is_empty()
        return True
    if isinstance(policy, RetainMinSegments):
        count = policy.count
        if count > 0 and len(segments) < count:
            return True
        if count == 0 and not segments:
            return True
        if count == 0 and len(segments) == 1 and segments[0].is_empty():
            return True
        return False
    return True


def _by_duration(
    policy: RetainDuration, segments: Sequence[LogSegment]
) -> list[LogSegment]:
    active = segments[-1] if segments else None
    keep_active = _whole_seconds(policy.period) > 0
    now = time.time()
    selected = []
    for segment in segments:
        if segment is active and keep_active:
            continue
        if segment.created_at == 0:
            if _whole_seconds(policy.period) == 0:
                selected.append(segment)
            continue
        age = now - segment.created_at
        if age >= 0 and age > policy.period:
            selected.append(segment)
    return selected


def _by_min_segments(
    policy: RetainMinSegments, segments: Sequence[LogSegment]
) -> list[LogSegment]:
    total = len(segments)
    if total <= policy.count:
        return []
    deletable = list(segments[:-1])
    to_delete = max((total - 1) - max(policy.count - 1, 0), 0)
    return deletable[:to_delete]


def select_segments_to_purge(
    policy: CompactionPolicy, segments: Sequence[LogSegment]
) -> list[LogSegment]:
    """Return the segments, oldest first, that ``policy`` allows to be deleted.

    ``segments`` is ordered by base offset; the last one is the active segment.
    The active segment is only ever returned when ``may_remove_active(policy)``.
    """
    zero_duration = isinstance(policy, RetainDuration) and policy.period == 0
    if len(segments) <= 1 and not zero_duration:
        if _single_segment_is_kept(policy, segments):
            return []

    if isinstance(policy, RetainDuration):
        candidates = _by_duration(policy, segments)
    elif isinstance(policy, RetainMinSegments):
        candidates = _by_min_segments(policy, segments)
    elif isinstance(policy, RetainTotalSize):
        logger.warning("RetainTotalSize compaction policy is not yet implemented.")
        return []
    else:
        return []

    active = segments[-1] if segments else None
    selected = []
    for segment in candidates:
        if segment is active and not may_remove_active(policy):
            logger.warning(
                "Compaction policy tried to delete the active segment %s, "
                "but it was preserved as a safety measure.",
                segment.file_path,
            )
            continue
        selected.append(segment)
    return selected