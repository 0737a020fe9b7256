"""Investment ledger: voting power per (investor, founder).

Pure bookkeeping. Entries are created lazily by the first admitted
investment, grow with every further investment and are removed whole by the
exit paths; there is deliberately no partial-removal operation.
"""

import threading
from typing import Dict, List, Tuple

import structlog

from ..errors import NotFound
from ..schemas import InvestorPosition
from ..transactions import record_undo

logger = structlog.get_logger(__name__)


class InvestmentLedger:
    """Keyed store of InvestorPosition records.

    Example:
        ledger = InvestmentLedger()
        ledger.increase("investor_a", "founder_alice", 20)
        ledger.increase("investor_a", "founder_alice", 5)
        ledger.read_weight("investor_a", "founder_alice")  # 25
        ledger.remove_all("investor_a", "founder_alice")   # 25, entry gone
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._positions: Dict[Tuple[str, str], InvestorPosition] = {}
        self._log = logger.bind(component="investment_ledger")

    def increase(self, investor: str, founder: str, amount: int) -> int:
        """Add ``amount`` to the investor's position, creating it if absent.

        Returns:
            The position's new weight
        """
        key = (investor, founder)
        with self._lock:
            position = self._positions.get(key)
            if position is None:
                position = InvestorPosition(investor=investor, founder=founder)
                self._positions[key] = position
                record_undo(lambda: self._positions.pop(key, None))
            position.amount += amount
            weight = position.amount
        record_undo(lambda: self._decrease(key, amount))
        return weight

    def _decrease(self, key: Tuple[str, str], amount: int) -> None:
        with self._lock:
            position = self._positions.get(key)
            if position is not None:
                position.amount -= amount

    def has_position(self, investor: str, founder: str) -> bool:
        with self._lock:
            return (investor, founder) in self._positions

    def read_weight(self, investor: str, founder: str) -> int:
        """Current weight of the investor's position.

        Raises:
            NotFound: If the investor holds no position with this founder
        """
        with self._lock:
            return self._require(investor, founder).amount

    def remove_all(self, investor: str, founder: str) -> int:
        """Delete the investor's position and return its weight.

        Raises:
            NotFound: If the investor holds no position with this founder
        """
        key = (investor, founder)
        with self._lock:
            position = self._require(investor, founder)
            del self._positions[key]
        record_undo(lambda: self._positions.__setitem__(key, position))
        self._log.debug("position_removed", investor=investor, founder=founder, weight=position.amount)
        return position.amount

    def positions_for(self, founder: str) -> List[InvestorPosition]:
        """Copies of every open position against ``founder``."""
        with self._lock:
            return [
                p.model_copy() for (_, f), p in self._positions.items() if f == founder
            ]

    def total_weight(self, founder: str) -> int:
        return sum(p.amount for p in self.positions_for(founder))

    def _require(self, investor: str, founder: str) -> InvestorPosition:
        position = self._positions.get((investor, founder))
        if position is None:
            raise NotFound(f"{investor} holds no position with {founder}")
        return position
