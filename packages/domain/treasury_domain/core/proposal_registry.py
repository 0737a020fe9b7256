"""Proposal registry: the treasury's adapter over the governance primitive.

Owns each founder's VotingConfig and the VoteRecords that enforce one vote
per investor per proposal. Everything else about a proposal (tallies, the
voting window, resolution) is delegated to the GovernancePrimitive.

Vote weight timing:
    The weight submitted with a vote is the investor's ledger weight at the
    moment the vote is cast, not at proposal creation. An investor who
    invests more while a proposal is open votes with the larger weight, and
    every open proposal reads the same live ledger entry.
"""

import threading
from typing import Dict, Set, Tuple

import structlog

from ..errors import AlreadyExists, AlreadyVoted, ArithmeticUnderflow, NotFound
from ..governance import GovernancePrimitive
from ..schemas import (
    WITHDRAWAL_PROPOSAL,
    ProposalRecord,
    ProposalState,
    VoteRecord,
    VotingConfig,
    WithdrawalPayload,
)
from ..transactions import record_undo
from .investment_ledger import InvestmentLedger

logger = structlog.get_logger(__name__)


class ProposalRegistry:
    """Per-founder governance configuration and vote dedup records."""

    def __init__(self, governance: GovernancePrimitive, ledger: InvestmentLedger) -> None:
        self._governance = governance
        self._ledger = ledger
        self._lock = threading.RLock()
        self._configs: Dict[str, VotingConfig] = {}
        self._votes: Dict[str, Set[VoteRecord]] = {}
        self._log = logger.bind(component="proposal_registry")

    # =========================================================================
    # Voting Config
    # =========================================================================

    def configure(self, founder: str, min_voting_threshold: int, voting_duration_secs: int) -> VotingConfig:
        """Create the founder's VotingConfig and register withdrawal proposals.

        Raises:
            AlreadyExists: If the founder is already configured
        """
        with self._lock:
            if founder in self._configs:
                raise AlreadyExists(f"{founder} already has a voting config")
            config = VotingConfig(
                founder=founder,
                min_voting_threshold=min_voting_threshold,
                voting_duration_secs=voting_duration_secs,
            )
            self._configs[founder] = config
            self._votes[founder] = set()
        record_undo(lambda: self._unconfigure(founder))
        self._governance.register(founder, WITHDRAWAL_PROPOSAL)
        return config.model_copy()

    def _unconfigure(self, founder: str) -> None:
        with self._lock:
            self._configs.pop(founder, None)
            self._votes.pop(founder, None)

    def is_configured(self, founder: str) -> bool:
        with self._lock:
            return founder in self._configs

    def voting_config(self, founder: str) -> VotingConfig:
        with self._lock:
            return self._require(founder).model_copy()

    def decrement_threshold(self, founder: str, amount: int) -> int:
        """Lower the founder's threshold by an exiting investor's weight.

        There is no floor: exits that exceed the remaining threshold abort.

        Returns:
            The new threshold

        Raises:
            NotFound: If the founder has no voting config
            ArithmeticUnderflow: If ``amount`` exceeds the current threshold
        """
        with self._lock:
            config = self._require(founder)
            if amount > config.min_voting_threshold:
                raise ArithmeticUnderflow(
                    f"Cannot lower {founder}'s voting threshold {config.min_voting_threshold} by {amount}"
                )
            config.min_voting_threshold -= amount
            threshold = config.min_voting_threshold
        record_undo(lambda: self._raise_threshold(config, amount))
        self._log.info("threshold_decremented", founder=founder, by=amount, threshold=threshold)
        return threshold

    def _raise_threshold(self, config: VotingConfig, amount: int) -> None:
        with self._lock:
            config.min_voting_threshold += amount

    # =========================================================================
    # Proposals
    # =========================================================================

    def propose(
        self,
        founder: str,
        withdrawal_amount: int,
        beneficiary: str,
        execution_fingerprint: str,
    ) -> ProposalRecord:
        """Open a withdrawal proposal using the founder's current parameters.

        Raises:
            NotFound: If the founder has no voting config
        """
        with self._lock:
            config = self._require(founder)
            threshold = config.min_voting_threshold
            duration = config.voting_duration_secs
        proposal_id = self._governance.create_proposal(
            proposer=founder,
            founder=founder,
            payload=WithdrawalPayload(amount=withdrawal_amount, beneficiary=beneficiary),
            execution_fingerprint=execution_fingerprint,
            min_vote_threshold=threshold,
            voting_duration_secs=duration,
            proposal_type=WITHDRAWAL_PROPOSAL,
        )
        self._log.info(
            "proposal_created",
            founder=founder,
            proposal_id=proposal_id,
            amount=withdrawal_amount,
            beneficiary=beneficiary,
            threshold=threshold,
        )
        return self._governance.get_proposal(founder, proposal_id)

    def vote(self, investor: str, founder: str, proposal_id: int, approve: bool) -> int:
        """Cast the investor's current weight for or against a proposal.

        Returns:
            The weight submitted

        Raises:
            AlreadyVoted: If the investor already voted on this proposal
            NotFound: If the founder, proposal or investor position is missing
            VotingClosed: If the voting window has elapsed
        """
        record = VoteRecord(investor=investor, proposal_id=proposal_id)
        with self._lock:
            self._require(founder)
            votes = self._votes[founder]
            if record in votes:
                raise AlreadyVoted(f"{investor} already voted on proposal {proposal_id} of {founder}")
            votes.add(record)
        record_undo(lambda: votes.discard(record))

        weight = self._ledger.read_weight(investor, founder)
        self._governance.vote(WITHDRAWAL_PROPOSAL, founder, proposal_id, weight, approve)
        self._log.info(
            "vote_cast",
            investor=investor,
            founder=founder,
            proposal_id=proposal_id,
            weight=weight,
            approve=approve,
        )
        return weight

    def has_voted(self, investor: str, founder: str, proposal_id: int) -> bool:
        with self._lock:
            return VoteRecord(investor=investor, proposal_id=proposal_id) in self._votes.get(founder, set())

    def state(self, founder: str, proposal_id: int) -> ProposalState:
        return self._governance.get_state(founder, proposal_id)

    def proposal(self, founder: str, proposal_id: int) -> ProposalRecord:
        return self._governance.get_proposal(founder, proposal_id)

    def _require(self, founder: str) -> VotingConfig:
        config = self._configs.get(founder)
        if config is None:
            raise NotFound(f"{founder} has no voting config")
        return config
