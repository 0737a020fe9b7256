"""Tests for the undo-log transaction and per-founder locks."""

import pytest

from treasury_domain.transactions import KeyedLocks, atomic, current_transaction, record_undo


def test_rollback_runs_newest_first():
    undone = []
    with pytest.raises(RuntimeError):
        with atomic():
            record_undo(lambda: undone.append("first"))
            record_undo(lambda: undone.append("second"))
            raise RuntimeError("abort")
    assert undone == ["second", "first"]


def test_commit_discards_undo_log():
    undone = []
    with atomic() as txn:
        record_undo(lambda: undone.append("x"))
        assert len(txn) == 1
    assert undone == []
    assert current_transaction() is None


def test_record_undo_outside_transaction_is_noop():
    record_undo(lambda: pytest.fail("undo should never run"))
    assert current_transaction() is None


def test_nested_blocks_join_outer_transaction():
    undone = []
    with pytest.raises(ValueError):
        with atomic() as outer:
            record_undo(lambda: undone.append("outer"))
            with atomic() as inner:
                assert inner is outer
                record_undo(lambda: undone.append("inner"))
            raise ValueError("late failure")
    assert undone == ["inner", "outer"]


def test_error_propagates_unchanged():
    error = KeyError("missing")
    with pytest.raises(KeyError) as excinfo:
        with atomic():
            raise error
    assert excinfo.value is error


class TestKeyedLocks:
    """Test one lock per key."""

    def test_same_key_same_lock(self):
        locks = KeyedLocks()
        assert locks.lock_for("founder_alice") is locks.lock_for("founder_alice")
        assert locks.lock_for("founder_alice") is not locks.lock_for("founder_bob")

    def test_hold_is_reentrant(self):
        locks = KeyedLocks()
        with locks.hold("founder_alice"):
            with locks.hold("founder_alice"):
                pass
