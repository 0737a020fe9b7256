"""Treasury events for the audit journal.

Every successful mutation of a founder's treasury is recorded as an immutable
event. Replaying a founder's events in sequence order rebuilds the treasury
state (see TreasuryJournal.snapshot), which gives:
- Complete audit trail (who moved what, when)
- Point-in-time queries (state as of any sequence number)
- An independent check of the live stores' accounting
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Literal

from pydantic import Field

from .base import (
    FrozenModel,
    AccountId,
    AssetType,
    Amount,
    ProposalId,
    Seconds,
    Weight,
)
from .snapshot import TreasurySnapshot, ProposalTally


# =============================================================================
# Event Base Class
# =============================================================================

class TreasuryEvent(FrozenModel, ABC):
    """Base class for all treasury events.

    Each event has an apply() method that updates a TreasurySnapshot. Events
    are append-only and ordered by ``sequence``, which the journal assigns.
    """

    sequence: int = Field(
        ge=0,
        description="Position in the journal (monotonic, may have gaps after aborted operations)"
    )

    founder: AccountId = Field(
        description="Founder whose treasury the event concerns"
    )

    occurred_at: datetime = Field(
        description="When the operation committed"
    )

    description: Optional[str] = Field(
        default=None,
        description="Free-form note for the audit trail"
    )

    @abstractmethod
    def apply(self, snapshot: TreasurySnapshot) -> None:
        """Apply this event to a snapshot, mutating it in place."""
        pass


# =============================================================================
# Treasury Lifecycle
# =============================================================================

class TreasuryCreated(TreasuryEvent):
    """Founder opened a treasury, its voting config and its founder vault."""

    event_type: Literal["treasury_created"] = "treasury_created"

    asset_type: AssetType
    vault_asset: AssetType
    target_cap: Amount
    min_voting_threshold: Amount
    voting_duration_secs: Seconds
    vault_seed_amount: Amount

    def apply(self, snapshot: TreasurySnapshot) -> None:
        snapshot.asset_type = self.asset_type
        snapshot.vault_asset = self.vault_asset
        snapshot.target_cap = self.target_cap
        snapshot.min_voting_threshold = self.min_voting_threshold
        snapshot.voting_duration_secs = self.voting_duration_secs
        snapshot.vault_balance = self.vault_seed_amount


class InvestmentAdmitted(TreasuryEvent):
    """Investor funds merged into the treasury.

    ``requested`` may exceed ``admitted`` when the request overshot the gap;
    only ``admitted`` moved.
    """

    event_type: Literal["investment_admitted"] = "investment_admitted"

    investor: AccountId
    requested: Amount
    admitted: Amount

    def apply(self, snapshot: TreasurySnapshot) -> None:
        snapshot.balance += self.admitted
        snapshot.total_invested += self.admitted
        snapshot.positions[self.investor] = snapshot.positions.get(self.investor, 0) + self.admitted


# =============================================================================
# Governance
# =============================================================================

class ProposalCreated(TreasuryEvent):
    """Founder proposed a withdrawal."""

    event_type: Literal["proposal_created"] = "proposal_created"

    proposal_id: ProposalId
    proposer: AccountId
    amount: Amount
    beneficiary: AccountId
    execution_fingerprint: str
    min_vote_threshold: Amount
    voting_duration_secs: Seconds

    def apply(self, snapshot: TreasurySnapshot) -> None:
        snapshot.proposals[self.proposal_id] = ProposalTally(
            proposal_id=self.proposal_id,
            amount=self.amount,
            beneficiary=self.beneficiary,
            min_vote_threshold=self.min_vote_threshold,
            voting_duration_secs=self.voting_duration_secs,
            opened_at=self.occurred_at,
        )


class VoteCast(TreasuryEvent):
    """Investor voted on a proposal with their weight at cast time."""

    event_type: Literal["vote_cast"] = "vote_cast"

    investor: AccountId
    proposal_id: ProposalId
    weight: Weight
    approve: bool

    def apply(self, snapshot: TreasurySnapshot) -> None:
        tally = snapshot.proposals[self.proposal_id]
        if self.approve:
            tally.yes_votes += self.weight
        else:
            tally.no_votes += self.weight
        tally.voters += 1


class FundsWithdrawn(TreasuryEvent):
    """A resolved proposal was executed against the treasury."""

    event_type: Literal["funds_withdrawn"] = "funds_withdrawn"

    proposal_id: ProposalId
    amount: Amount
    beneficiary: AccountId

    def apply(self, snapshot: TreasurySnapshot) -> None:
        snapshot.balance -= self.amount
        snapshot.total_withdrawn += self.amount
        if self.proposal_id in snapshot.proposals:
            snapshot.proposals[self.proposal_id].withdrawn = True


# =============================================================================
# Exits
# =============================================================================

class PositionRedeemed(TreasuryEvent):
    """Investor cashed out their whole position at the exit penalty."""

    event_type: Literal["position_redeemed"] = "position_redeemed"

    investor: AccountId
    weight: Weight
    payout: Amount

    def apply(self, snapshot: TreasurySnapshot) -> None:
        snapshot.positions.pop(self.investor, None)
        snapshot.balance -= self.payout
        snapshot.min_voting_threshold -= self.weight
        snapshot.exited_weight += self.weight
        snapshot.total_redeemed += self.payout


class PositionConverted(TreasuryEvent):
    """Investor converted their whole position into founder-vault assets.

    The principal (``weight``) went to the founder; ``vault_payout`` of the
    vault asset went to the investor.
    """

    event_type: Literal["position_converted"] = "position_converted"

    investor: AccountId
    weight: Weight
    vault_asset: AssetType
    vault_payout: Amount

    def apply(self, snapshot: TreasurySnapshot) -> None:
        snapshot.positions.pop(self.investor, None)
        snapshot.balance -= self.weight
        snapshot.min_voting_threshold -= self.weight
        snapshot.vault_balance -= self.vault_payout
        snapshot.exited_weight += self.weight
        snapshot.total_converted += self.weight
        snapshot.total_vault_paid += self.vault_payout
