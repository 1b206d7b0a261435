import logging
import time

import pytest

from djournal.compaction import (
    Disabled,
    RetainDuration,
    RetainMinSegments,
    RetainTotalSize,
)
from djournal.entry import LogEntry
from djournal.retention import may_remove_active, select_segments_to_purge
from djournal.segment import LogSegment


@pytest.fixture
def make_segments(tmp_path):
    opened = []

    def factory(count, *, filled=True):
        segments = []
        for base in range(count):
            segment = LogSegment.create(tmp_path, base, None, None)
            if filled:
                segment.append(LogEntry(offset=0, timestamp=0, key=b"k", value=b"v"))
            opened.append(segment)
            segments.append(segment)
        return segments

    yield factory
    for segment in opened:
        segment.close()


def test_disabled_selects_nothing(make_segments):
    segments = make_segments(3)
    assert select_segments_to_purge(Disabled(), segments) == []


def test_total_size_is_not_implemented_and_warns(make_segments, caplog):
    segments = make_segments(3)
    with caplog.at_level(logging.WARNING):
        result = select_segments_to_purge(RetainTotalSize(10), segments)
    assert result == []
    assert "RetainTotalSize" in caplog.text


def test_min_segments_one_keeps_only_active(make_segments):
    segments = make_segments(5)
    result = select_segments_to_purge(RetainMinSegments(1), segments)
    assert result == segments[:4]
    assert segments[-1] not in result


def test_min_segments_zero_keeps_active(make_segments):
    segments = make_segments(3)
    result = select_segments_to_purge(RetainMinSegments(0), segments)
    assert result == segments[:2]


def test_min_segments_two_of_four(make_segments):
    segments = make_segments(4)
    result = select_segments_to_purge(RetainMinSegments(2), segments)
    assert result == segments[:2]


def test_min_segments_already_satisfied(make_segments):
    segments = make_segments(3)
    assert select_segments_to_purge(RetainMinSegments(3), segments) == []


def test_min_segments_single_segment_below_minimum(make_segments):
    segments = make_segments(1)
    assert select_segments_to_purge(RetainMinSegments(2), segments) == []


def test_min_segments_zero_single_empty_segment(make_segments):
    segments = make_segments(1, filled=False)
    assert select_segments_to_purge(RetainMinSegments(0), segments) == []


def test_min_segments_zero_single_filled_segment_is_kept(make_segments):
    segments = make_segments(1)
    assert select_segments_to_purge(RetainMinSegments(0), segments) == []


def test_duration_deletes_old_segments(make_segments):
    segments = make_segments(3)
    now = time.time()
    segments[0].created_at = now - 0.45
    segments[1].created_at = now - 0.30
    result = select_segments_to_purge(RetainDuration(0.15), segments)
    assert result == segments[:2]


def test_duration_zero_removes_single_filled_segment(make_segments):
    segments = make_segments(1)
    segments[0].created_at = time.time() - 1
    result = select_segments_to_purge(RetainDuration(0), segments)
    assert result == segments


def test_duration_long_keeps_single_old_segment(make_segments):
    segments = make_segments(1)
    segments[0].created_at = time.time() - 10_000
    assert select_segments_to_purge(RetainDuration(3600), segments) == []


def test_duration_whole_seconds_never_removes_active(make_segments):
    segments = make_segments(2)
    old = time.time() - 100
    for segment in segments:
        segment.created_at = old
    result = select_segments_to_purge(RetainDuration(10), segments)
    assert result == [segments[0]]


def test_duration_subsecond_may_remove_old_active(make_segments):
    segments = make_segments(2)
    old = time.time() - 5
    for segment in segments:
        segment.created_at = old
    result = select_segments_to_purge(RetainDuration(0.5), segments)
    assert result == segments


def test_duration_future_timestamp_is_not_expired(make_segments):
    segments = make_segments(2)
    segments[0].created_at = time.time() + 1000
    assert select_segments_to_purge(RetainDuration(0.1), segments) == []


@pytest.mark.parametrize(
    "policy",
    [Disabled(), RetainMinSegments(0), RetainDuration(0), RetainTotalSize(1)],
)
def test_no_segments_selects_nothing(policy):
    assert select_segments_to_purge(policy, []) == []


@pytest.mark.parametrize(
    ("policy", "expected"),
    [
        (RetainMinSegments(0), True),
        (RetainMinSegments(1), False),
        (RetainDuration(0), True),
        (RetainDuration(0.5), True),
        (RetainDuration(1), False),
        (RetainDuration(3600), False),
        (Disabled(), False),
        (RetainTotalSize(0), False),
    ],
)
def test_may_remove_active(policy, expected):
    assert may_remove_active(policy) is expected