"""Fungible asset primitive.

The treasury core never touches balances directly; it calls an
AssetPrimitive. Amounts are exact: no fees, no rounding, and a debit that
cannot be covered aborts with InsufficientFunds.

InMemoryAssetBank is the reference implementation used by the service by
default and by the tests.
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict, Tuple

import structlog

from .errors import InsufficientFunds, NotFound
from .transactions import record_undo

logger = structlog.get_logger(__name__)


class AssetPrimitive(ABC):
    """Exact-amount fungible balances keyed by (account, asset type)."""

    @abstractmethod
    def register(self, account: str, asset_type: str) -> None:
        """Create a zero balance for the account if it has none (idempotent)."""
        pass

    @abstractmethod
    def is_registered(self, account: str, asset_type: str) -> bool:
        pass

    @abstractmethod
    def balance(self, account: str, asset_type: str) -> int:
        """Current balance; NotFound if the account is not registered."""
        pass

    @abstractmethod
    def debit(self, account: str, asset_type: str, amount: int) -> None:
        """Remove exactly ``amount``; InsufficientFunds if the balance is short."""
        pass

    @abstractmethod
    def credit(self, account: str, asset_type: str, amount: int) -> None:
        """Add exactly ``amount``, registering the account if needed."""
        pass


class InMemoryAssetBank(AssetPrimitive):
    """Thread-safe in-process balances.

    Every mutation records its inverse in the active transaction, so a
    rolled-back operation leaves balances untouched.

    Example:
        bank = InMemoryAssetBank()
        bank.mint("investor_a", "usd_coin", 100)
        bank.debit("investor_a", "usd_coin", 30)
        bank.balance("investor_a", "usd_coin")  # 70
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._balances: Dict[Tuple[str, str], int] = {}
        self._log = logger.bind(component="asset_bank")

    def register(self, account: str, asset_type: str) -> None:
        key = (account, asset_type)
        with self._lock:
            if key in self._balances:
                return
            self._balances[key] = 0
        record_undo(lambda: self._unregister(key))

    def _unregister(self, key: Tuple[str, str]) -> None:
        with self._lock:
            if self._balances.get(key) == 0:
                del self._balances[key]

    def is_registered(self, account: str, asset_type: str) -> bool:
        with self._lock:
            return (account, asset_type) in self._balances

    def balance(self, account: str, asset_type: str) -> int:
        with self._lock:
            try:
                return self._balances[(account, asset_type)]
            except KeyError:
                raise NotFound(f"{account} holds no {asset_type} balance") from None

    def debit(self, account: str, asset_type: str, amount: int) -> None:
        check_amount(amount)
        key = (account, asset_type)
        with self._lock:
            if key not in self._balances:
                raise NotFound(f"{account} holds no {asset_type} balance")
            held = self._balances[key]
            if held < amount:
                raise InsufficientFunds(
                    f"{account} holds {held} {asset_type}, needs {amount}"
                )
            self._balances[key] = held - amount
        record_undo(lambda: self._adjust(key, amount))

    def credit(self, account: str, asset_type: str, amount: int) -> None:
        check_amount(amount)
        self.register(account, asset_type)
        key = (account, asset_type)
        self._adjust(key, amount)
        record_undo(lambda: self._adjust(key, -amount))

    def mint(self, account: str, asset_type: str, amount: int) -> None:
        """Create new supply out of thin air (bootstrap and tests)."""
        self.credit(account, asset_type, amount)
        self._log.debug("asset_minted", account=account, asset_type=asset_type, amount=amount)

    def _adjust(self, key: Tuple[str, str], delta: int) -> None:
        with self._lock:
            self._balances[key] = self._balances.get(key, 0) + delta


def check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise ValueError(f"Asset amounts must be non-negative integers, got: {amount!r}")
