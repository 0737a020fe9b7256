"""Governance-gated treasury core.

Components, leaves first:
- InvestmentLedger: voting power per (investor, founder)
- TreasuryStore: pooled funds per founder, capped at a target; founder vaults
- ProposalRegistry: voting config and one-vote-per-investor records
- WithdrawalExecutor: pays out resolved proposals
- RedemptionEngine: cash and conversion exits
- TreasuryService: the atomic, founder-locked public surface
"""

from .investment_ledger import InvestmentLedger
from .treasury_store import TreasuryStore
from .proposal_registry import ProposalRegistry
from .withdrawal import WithdrawalExecutor
from .redemption import (
    RedemptionEngine,
    REDEMPTION_NUMERATOR,
    REDEMPTION_DENOMINATOR,
    redemption_payout,
    conversion_payout,
)
from .service import TreasuryService

__all__ = [
    "InvestmentLedger",
    "TreasuryStore",
    "ProposalRegistry",
    "WithdrawalExecutor",
    "RedemptionEngine",
    "REDEMPTION_NUMERATOR",
    "REDEMPTION_DENOMINATOR",
    "redemption_payout",
    "conversion_payout",
    "TreasuryService",
]
