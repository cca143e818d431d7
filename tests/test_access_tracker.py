import itertools

import pytest

from block_priority.core.accounts import Signature
from block_priority.priority.access_tracker import AccessKind, AccessTracker, ViolationEntry

from conftest import account

SIG_1 = Signature(bytes([1]) * 64)
SIG_2 = Signature(bytes([2]) * 64)
SIG_3 = Signature(bytes([3]) * 64)


@pytest.mark.parametrize("touch", ["record_read", "record_write"])
def test_first_touch_never_violates(touch):
    tracker = AccessTracker()
    for priority in (0, 1, 2**64 - 1):
        assert getattr(tracker, touch)(account(priority % 200), priority) is False
    assert tracker.violated_accounts == {}


@pytest.mark.parametrize("prior_touch", ["record_read", "record_write"])
def test_higher_priority_write_always_violates(prior_touch):
    tracker = AccessTracker()
    a = account(1)
    getattr(tracker, prior_touch)(a, 10)

    assert tracker.record_write(a, 11) is True
    assert tracker.violated_accounts[a] == [ViolationEntry(10, 11)]
    assert tracker.record_for(a).last_access is AccessKind.WRITE
    assert tracker.record_for(a).priority == 11


def test_read_after_lower_priority_write_violates():
    tracker = AccessTracker()
    a = account(1)
    tracker.record_write(a, 10)

    assert tracker.record_read(a, 20) is True
    assert tracker.violated_accounts[a] == [(10, 20)]
    assert tracker.record_for(a).last_access is AccessKind.READ


def test_read_after_read_never_violates():
    tracker = AccessTracker()
    a = account(1)
    tracker.record_read(a, 1)
    assert tracker.record_read(a, 1000) is False
    assert tracker.record_read(a, 5) is False
    assert tracker.violated_accounts == {}
    assert tracker.record_for(a).priority == 5


def test_equal_priority_is_not_a_violation():
    tracker = AccessTracker()
    a = account(1)
    tracker.record_write(a, 7)
    assert tracker.record_write(a, 7) is False
    assert tracker.record_read(a, 7) is False


def test_record_is_replaced_even_without_violation():
    tracker = AccessTracker()
    a = account(1)
    tracker.record_write(a, 100)
    tracker.record_write(a, 50)
    # The record now holds 50, so 60 conflicts with it
    assert tracker.record_write(a, 60) is True
    assert tracker.violated_accounts[a] == [(50, 60)]


def test_non_increasing_priorities_never_violate():
    priorities = [900, 900, 500, 400, 400, 10, 0]
    for pattern in itertools.product(["record_read", "record_write"], repeat=3):
        tracker = AccessTracker()
        a = account(1)
        for i, priority in enumerate(priorities):
            getattr(tracker, pattern[i % 3])(a, priority)
        assert tracker.violation_count() == 0, pattern


def test_transaction_writes_are_applied_before_reads():
    tracker = AccessTracker()
    a = account(1)
    tracker.process_transaction(SIG_1, 10, [], [a])
    # The write conflicts with the earlier read; the read then sees the own write
    assert tracker.process_transaction(SIG_2, 20, [a], [a]) is True
    assert tracker.violated_accounts[a] == [(10, 20)]


def test_violating_signature_recorded_once_per_transaction():
    tracker = AccessTracker()
    a, b = account(1), account(2)
    tracker.process_transaction(SIG_1, 1, [a, b], [])
    assert tracker.process_transaction(SIG_2, 5, [a, b], []) is True

    assert tracker.violating_signatures == [SIG_2]
    assert tracker.violation_count() == 2
    assert list(tracker.violated_accounts) == [a, b]


def test_multiple_violations_on_one_account_keep_discovery_order():
    tracker = AccessTracker()
    a = account(1)
    tracker.process_transaction(SIG_1, 1, [a], [])
    tracker.process_transaction(SIG_2, 2, [a], [])
    tracker.process_transaction(SIG_3, 3, [], [a])

    assert tracker.violated_accounts[a] == [(1, 2), (2, 3)]
    assert tracker.violating_signatures == [SIG_2, SIG_3]


def test_non_violating_transaction_is_not_recorded():
    tracker = AccessTracker()
    a = account(1)
    tracker.process_transaction(SIG_1, 100, [a], [])
    assert tracker.process_transaction(SIG_2, 50, [a], [a]) is False
    assert tracker.violating_signatures == []


def test_violation_entry_renders_as_arrow():
    assert str(ViolationEntry(50, 100)) == "50 -> 100"
