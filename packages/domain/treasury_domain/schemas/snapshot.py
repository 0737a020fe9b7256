"""Point-in-time treasury state rebuilt from the audit journal."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import Field

from .base import DomainModel, AccountId, AssetType, Amount, ProposalId, Seconds, Weight


class ProposalTally(DomainModel):
    """Running tally of one withdrawal proposal as seen by the journal."""

    proposal_id: ProposalId
    amount: Amount
    beneficiary: AccountId
    min_vote_threshold: Amount
    voting_duration_secs: Seconds
    opened_at: datetime
    yes_votes: Weight = 0
    no_votes: Weight = 0
    voters: int = 0
    withdrawn: bool = False

    @property
    def total_votes(self) -> int:
        return self.yes_votes + self.no_votes

    @property
    def quorum_met(self) -> bool:
        return self.total_votes >= self.min_vote_threshold


class TreasurySnapshot(DomainModel):
    """Treasury state for one founder at a point in the journal.

    Computed by replaying the founder's events in sequence order; never
    mutated directly by the service.

    Usage:
        snapshot = journal.snapshot("founder_alice")
        snapshot.balance                # pooled funds
        snapshot.total_voting_power     # sum of open positions
        snapshot.proposals[0].yes_votes # tally of proposal 0
    """

    founder: AccountId
    as_of_sequence: Optional[int] = Field(
        default=None,
        description="Last event sequence applied (None = no events)"
    )

    asset_type: Optional[AssetType] = None
    vault_asset: Optional[AssetType] = None

    balance: Amount = 0
    target_cap: Amount = 0
    min_voting_threshold: Amount = 0
    voting_duration_secs: Seconds = 0
    vault_balance: Amount = 0

    positions: Dict[str, Weight] = Field(
        default_factory=dict,
        description="Open investor positions (investor → weight)"
    )

    proposals: Dict[int, ProposalTally] = Field(
        default_factory=dict,
        description="Proposal tallies (proposal_id → tally)"
    )

    # Cumulative flows
    total_invested: Amount = 0
    total_withdrawn: Amount = 0
    total_redeemed: Amount = 0
    total_converted: Amount = 0
    total_vault_paid: Amount = 0
    exited_weight: Weight = 0

    @property
    def exists(self) -> bool:
        return self.asset_type is not None

    @property
    def gap(self) -> int:
        return self.target_cap - self.balance

    @property
    def total_voting_power(self) -> int:
        return sum(self.positions.values())

    @property
    def penalty_retained(self) -> int:
        """Funds kept by the pool from cash redemptions (the 10% haircut)."""
        redeemed_weight = self.exited_weight - self.total_converted
        return redeemed_weight - self.total_redeemed
