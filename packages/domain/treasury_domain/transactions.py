"""All-or-nothing execution of treasury operations.

Stores never mutate state without recording the inverse mutation in the
active transaction's undo log. If anything inside ``atomic()`` raises, the
undo log is replayed newest-first and the error propagates, so callers never
observe a partially applied operation.

Per-key locking serialises read-then-write sequences (the invest gap check,
the vote weight read) against the same founder while leaving operations on
other founders free to run in parallel.

Usage:
    locks = KeyedLocks()

    with locks.hold(founder), atomic():
        store.extract(founder, asset, amount)   # records its own undo
        bank.credit(beneficiary, asset, amount) # rolled back if this raises
"""

import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Callable, Dict, Hashable, Iterator, List, Optional

import structlog

logger = structlog.get_logger(__name__)


# =============================================================================
# Undo Log
# =============================================================================

class Transaction:
    """Undo log for a single public operation."""

    def __init__(self) -> None:
        self._undo: List[Callable[[], None]] = []

    def on_rollback(self, undo: Callable[[], None]) -> None:
        self._undo.append(undo)

    def rollback(self) -> None:
        while self._undo:
            self._undo.pop()()

    def __len__(self) -> int:
        return len(self._undo)


_current: ContextVar[Optional[Transaction]] = ContextVar("treasury_transaction", default=None)


def current_transaction() -> Optional[Transaction]:
    return _current.get()


def record_undo(undo: Callable[[], None]) -> None:
    """Register the inverse of a mutation that just happened.

    Outside of ``atomic()`` the mutation is final and the undo is dropped.
    """
    txn = _current.get()
    if txn is not None:
        txn.on_rollback(undo)


@contextmanager
def atomic() -> Iterator[Transaction]:
    """Run a block as one transaction.

    Nested blocks join the outermost transaction; only the outermost one
    rolls back.
    """
    outer = _current.get()
    if outer is not None:
        yield outer
        return

    txn = Transaction()
    token = _current.set(txn)
    try:
        yield txn
    except BaseException as exc:
        undone = len(txn)
        txn.rollback()
        logger.warning(
            "operation_aborted",
            error=type(exc).__name__,
            detail=str(exc),
            undone_mutations=undone,
        )
        raise
    finally:
        _current.reset(token)


# =============================================================================
# Keyed Locks
# =============================================================================

class KeyedLocks:
    """One re-entrant lock per key, created on first use."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.RLock] = {}

    def lock_for(self, key: Hashable) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self.lock_for(key):
            yield
