"""Withdrawal proposals, vote records and the resolved-proposal capability.

Proposal lifecycle (owned by the governance primitive):

    open ──(window elapses)──► succeeded ──resolve──► resolved
                          └──► failed

A proposal succeeds when total vote weight reaches its snapshotted threshold
and yes weight exceeds no weight. Resolution hands out a single-use
ResolvedProposal; presenting it to ``withdraw`` is the only way to move funds
out of a treasury.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from .base import (
    DomainModel,
    FrozenModel,
    AccountId,
    Amount,
    ProposalId,
    ProposalType,
    Seconds,
    Weight,
)
from ..errors import CapabilityConsumed


WITHDRAWAL_PROPOSAL = "withdrawal"


class ProposalState(str, Enum):
    OPEN = "open"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    RESOLVED = "resolved"


# =============================================================================
# Payload and Records
# =============================================================================

class WithdrawalPayload(FrozenModel):
    """What a withdrawal proposal asks for: an amount and who receives it."""

    amount: Amount = Field(
        description="Funding asset amount to move out of the treasury"
    )

    beneficiary: AccountId = Field(
        description="Account credited when the withdrawal executes"
    )


class VoteRecord(FrozenModel):
    """Marks that an investor has voted on a proposal."""

    investor: AccountId
    proposal_id: ProposalId


class ProposalRecord(DomainModel):
    """A proposal as tracked by the governance primitive.

    Threshold and duration are copied from the founder's VotingConfig at
    creation time. Later threshold decrements (from redemptions) do not
    reach back into proposals that already exist.
    """

    founder: AccountId = Field(
        description="Founder whose treasury the proposal draws on"
    )

    proposal_id: ProposalId
    proposal_type: ProposalType = WITHDRAWAL_PROPOSAL

    proposer: AccountId = Field(
        description="Account that created the proposal"
    )

    payload: WithdrawalPayload

    execution_fingerprint: str = Field(
        description="Fingerprint of the script allowed to execute the proposal"
    )

    min_vote_threshold: Amount = Field(
        description="Threshold snapshotted at creation"
    )

    voting_duration_secs: Seconds = Field(
        description="Voting window snapshotted at creation"
    )

    created_at: float = Field(
        description="Clock reading (epoch seconds) when the proposal was created"
    )

    yes_votes: Weight = 0
    no_votes: Weight = 0
    is_resolved: bool = False
    resolved_at: Optional[float] = None

    @property
    def expires_at(self) -> float:
        return self.created_at + self.voting_duration_secs

    @property
    def total_votes(self) -> int:
        return self.yes_votes + self.no_votes

    def outcome(self) -> ProposalState:
        """Outcome once voting has closed (ignores the clock and resolution)."""
        if self.total_votes >= self.min_vote_threshold and self.yes_votes > self.no_votes:
            return ProposalState.SUCCEEDED
        return ProposalState.FAILED


# =============================================================================
# Resolved-Proposal Capability
# =============================================================================

class ResolvedProposal:
    """Single-use proof that a withdrawal proposal succeeded.

    Produced once per proposal by the governance primitive's ``resolve`` and
    consumed by ``withdraw``. It cannot be copied or pickled, and a second
    ``consume()`` raises CapabilityConsumed.

    The token alone is not authority: ``withdraw`` checks it against the
    governance record it names and pays each proposal out at most once.
    """

    __slots__ = ("founder", "proposal_id", "proposal_type", "_payload", "_consumed")

    def __init__(
        self,
        founder: str,
        proposal_id: int,
        payload: WithdrawalPayload,
        proposal_type: str = WITHDRAWAL_PROPOSAL,
    ):
        self.founder = founder
        self.proposal_id = proposal_id
        self.proposal_type = proposal_type
        self._payload = payload
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def payload(self) -> WithdrawalPayload:
        return self._payload

    def consume(self) -> WithdrawalPayload:
        if self._consumed:
            raise CapabilityConsumed(
                f"Resolved proposal {self.proposal_id} of {self.founder} was already used"
            )
        self._consumed = True
        return self._payload

    def _release(self) -> None:
        """Undo a consume whose surrounding withdrawal rolled back."""
        self._consumed = False

    def __copy__(self):
        raise TypeError("ResolvedProposal is single-use and cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("ResolvedProposal is single-use and cannot be copied")

    def __reduce__(self):
        raise TypeError("ResolvedProposal is single-use and cannot be serialized")

    def __repr__(self) -> str:
        state = "consumed" if self._consumed else "unused"
        return f"ResolvedProposal(founder={self.founder!r}, proposal_id={self.proposal_id}, {state})"
