import dataclasses

import pytest

from djournal.compaction import (
    CompactionOptions,
    Disabled,
    RetainDuration,
    RetainMinSegments,
    RetainTotalSize,
)


def test_default_options_disable_compaction():
    assert CompactionOptions().policy == Disabled()


def test_options_keep_given_policy():
    options = CompactionOptions(policy=RetainMinSegments(3))
    assert options.policy == RetainMinSegments(3)
    assert options.policy.count == 3


def test_policies_compare_by_value():
    assert RetainDuration(0) == RetainDuration(0.0)
    policies = {RetainMinSegments(1), RetainMinSegments(1), RetainMinSegments(2)}
    assert len(policies) == 2
    assert (RetainTotalSize(10) == RetainMinSegments(10)) is False


@pytest.mark.parametrize(
    "make",
    [
        lambda: RetainMinSegments(-1),
        lambda: RetainTotalSize(-5),
        lambda: RetainDuration(-0.5),
    ],
)
def test_negative_limits_are_rejected(make):
    with pytest.raises(ValueError):
        make()


def test_policies_are_immutable():
    policy = RetainDuration(1.5)
    with pytest.raises(dataclasses.FrozenInstanceError):
        policy.period = 3.0
    assert policy.period == 1.5


def test_policies_support_pattern_matching():
    def describe(policy):
        match policy:
            case RetainMinSegments(count):
                return ("min", count)
            case RetainDuration(period):
                return ("age", period)
            case Disabled():
                return ("off", None)
        return ("other", None)

    assert describe(RetainMinSegments(4)) == ("min", 4)
    assert describe(RetainDuration(2.0)) == ("age", 2.0)
    assert describe(CompactionOptions().policy) == ("off", None)