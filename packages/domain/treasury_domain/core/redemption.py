"""Redemption engine: unwinds an investor's whole position.

Two exits, both all-or-nothing and both lowering the founder's voting
threshold by the exiting weight ``v``:

    redeem_all   investor receives floor(v * 9 / 10) of the funding asset;
                 the other 10% stays in the pool as an exit penalty
    convert_all  the principal v goes to the founder; the investor receives
                 floor(v * vault_balance / target_cap) of the vault asset

The threshold decrement has no floor. Once cumulative exits exceed the
founder's threshold, further exits abort with ArithmeticUnderflow.
"""

from typing import Tuple

import structlog

from ..assets import AssetPrimitive
from ..errors import NotFound
from .investment_ledger import InvestmentLedger
from .proposal_registry import ProposalRegistry
from .treasury_store import TreasuryStore

logger = structlog.get_logger(__name__)

REDEMPTION_NUMERATOR = 9
REDEMPTION_DENOMINATOR = 10


def redemption_payout(weight: int) -> int:
    """Cash paid back for a position of ``weight`` (10% exit penalty)."""
    return weight * REDEMPTION_NUMERATOR // REDEMPTION_DENOMINATOR


def conversion_payout(weight: int, vault_balance: int, target_cap: int) -> int:
    """Vault asset paid for converting a position of ``weight``.

    Proportional to the position's share of the funding target, measured
    against what the vault holds right now.
    """
    return weight * vault_balance // target_cap


class RedemptionEngine:
    """Cash and conversion exits for investor positions."""

    def __init__(
        self,
        store: TreasuryStore,
        ledger: InvestmentLedger,
        registry: ProposalRegistry,
        assets: AssetPrimitive,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._registry = registry
        self._assets = assets
        self._log = logger.bind(component="redemption_engine")

    def redeem_all(self, investor: str, founder: str, asset_type: str) -> Tuple[int, int]:
        """Cash out the investor's whole position.

        Returns:
            (weight removed, payout credited to the investor)

        Raises:
            NotFound: If the position or treasury is missing
            ArithmeticUnderflow: If the pool is short or the threshold would go negative
        """
        weight = self._ledger.remove_all(investor, founder)
        payout = redemption_payout(weight)
        self._store.extract(founder, asset_type, payout)
        self._assets.credit(investor, asset_type, payout)
        self._registry.decrement_threshold(founder, weight)
        self._log.info(
            "position_redeemed",
            investor=investor,
            founder=founder,
            weight=weight,
            payout=payout,
        )
        return weight, payout

    def convert_all(self, investor: str, founder: str, asset_type: str, vault_asset: str) -> Tuple[int, int]:
        """Convert the investor's whole position into founder-vault assets.

        Returns:
            (weight removed, vault payout credited to the investor)

        Raises:
            NotFound: If the position, treasury or founder vault is missing
            ArithmeticUnderflow: If a pool is short or the threshold would go negative
        """
        if not self._ledger.has_position(investor, founder):
            raise NotFound(f"{investor} holds no position with {founder}")
        vault = self._store.vault(founder, vault_asset)

        weight = self._ledger.remove_all(investor, founder)
        principal = self._store.extract(founder, asset_type, weight)
        self._assets.credit(founder, asset_type, principal)
        self._registry.decrement_threshold(founder, weight)

        target_cap = self._store.max_supply(founder, asset_type)
        payout = conversion_payout(weight, vault.balance, target_cap)
        self._store.extract_from_vault(founder, vault_asset, payout)
        self._assets.credit(investor, vault_asset, payout)
        self._log.info(
            "position_converted",
            investor=investor,
            founder=founder,
            weight=weight,
            vault_asset=vault_asset,
            vault_payout=payout,
        )
        return weight, payout
