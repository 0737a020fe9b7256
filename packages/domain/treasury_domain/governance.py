"""Generic weighted-voting governance primitive.

The treasury core only adds the one-vote-per-investor guard and the weight
lookup; proposal storage, tallies, the voting window and resolution all live
behind GovernancePrimitive.

State rule (InMemoryGovernance):
    - now <  created_at + duration          → open
    - now >= created_at + duration, and
        yes + no >= threshold and yes > no  → succeeded
        otherwise                           → failed
    - after resolve() with the recorded     → resolved
      execution fingerprint
"""

import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Set, Tuple

import structlog

from .errors import (
    AlreadyExists,
    AlreadyResolved,
    FingerprintMismatch,
    NotFound,
    ProposalNotSucceeded,
    VotingClosed,
)
from .schemas import ProposalRecord, ProposalState, ResolvedProposal, WithdrawalPayload
from .transactions import record_undo

logger = structlog.get_logger(__name__)

Clock = Callable[[], float]


class GovernancePrimitive(ABC):
    """Proposal registration, weighted voting and time-bounded resolution."""

    @abstractmethod
    def register(self, founder: str, proposal_type: str) -> None:
        """Enable proposals of ``proposal_type`` against ``founder``."""
        pass

    @abstractmethod
    def create_proposal(
        self,
        proposer: str,
        founder: str,
        payload: WithdrawalPayload,
        execution_fingerprint: str,
        min_vote_threshold: int,
        voting_duration_secs: int,
        proposal_type: str,
    ) -> int:
        """Create a proposal and return its id."""
        pass

    @abstractmethod
    def vote(
        self,
        proposal_type: str,
        founder: str,
        proposal_id: int,
        weight: int,
        approve: bool,
    ) -> None:
        """Add ``weight`` to the yes or no tally."""
        pass

    @abstractmethod
    def resolve(
        self,
        proposal_type: str,
        founder: str,
        proposal_id: int,
        execution_fingerprint: str,
    ) -> ResolvedProposal:
        """Mark a succeeded proposal resolved and hand out its capability once.

        ``execution_fingerprint`` must match the one recorded at creation.
        """
        pass

    @abstractmethod
    def get_state(self, founder: str, proposal_id: int) -> ProposalState:
        pass

    @abstractmethod
    def get_proposal(self, founder: str, proposal_id: int) -> ProposalRecord:
        pass


class InMemoryGovernance(GovernancePrimitive):
    """Reference governance primitive with an injectable clock.

    Example:
        gov = InMemoryGovernance(clock=fake_clock)
        gov.register("founder_alice", "withdrawal")
        pid = gov.create_proposal("founder_alice", "founder_alice", payload,
                                  "abc123", min_vote_threshold=10,
                                  voting_duration_secs=10_000,
                                  proposal_type="withdrawal")
        gov.vote("withdrawal", "founder_alice", pid, weight=20, approve=True)
        fake_clock.advance(10_000)
        gov.get_state("founder_alice", pid)  # ProposalState.SUCCEEDED
    """

    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._registrations: Set[Tuple[str, str]] = set()
        self._proposals: Dict[Tuple[str, int], ProposalRecord] = {}
        self._next_id: Dict[str, int] = {}
        self._log = logger.bind(component="governance")

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def register(self, founder: str, proposal_type: str) -> None:
        key = (founder, proposal_type)
        with self._lock:
            if key in self._registrations:
                raise AlreadyExists(f"{founder} already registered for {proposal_type} proposals")
            self._registrations.add(key)
        record_undo(lambda: self._registrations.discard(key))

    def is_registered(self, founder: str, proposal_type: str) -> bool:
        with self._lock:
            return (founder, proposal_type) in self._registrations

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def create_proposal(
        self,
        proposer: str,
        founder: str,
        payload: WithdrawalPayload,
        execution_fingerprint: str,
        min_vote_threshold: int,
        voting_duration_secs: int,
        proposal_type: str,
    ) -> int:
        with self._lock:
            if (founder, proposal_type) not in self._registrations:
                raise NotFound(f"{founder} is not registered for {proposal_type} proposals")
            proposal_id = self._next_id.get(founder, 0)
            record = ProposalRecord(
                founder=founder,
                proposal_id=proposal_id,
                proposal_type=proposal_type,
                proposer=proposer,
                payload=payload,
                execution_fingerprint=execution_fingerprint,
                min_vote_threshold=min_vote_threshold,
                voting_duration_secs=voting_duration_secs,
                created_at=self._clock(),
            )
            self._proposals[(founder, proposal_id)] = record
            self._next_id[founder] = proposal_id + 1
        record_undo(lambda: self._drop_proposal(founder, proposal_id))
        self._log.debug("proposal_registered", founder=founder, proposal_id=proposal_id)
        return proposal_id

    def _drop_proposal(self, founder: str, proposal_id: int) -> None:
        with self._lock:
            self._proposals.pop((founder, proposal_id), None)
            if self._next_id.get(founder) == proposal_id + 1:
                self._next_id[founder] = proposal_id

    def vote(
        self,
        proposal_type: str,
        founder: str,
        proposal_id: int,
        weight: int,
        approve: bool,
    ) -> None:
        with self._lock:
            record = self._require(proposal_type, founder, proposal_id)
            if self._clock() >= record.expires_at:
                raise VotingClosed(
                    f"Voting on proposal {proposal_id} of {founder} closed at {record.expires_at}"
                )
            if approve:
                record.yes_votes += weight
            else:
                record.no_votes += weight
        record_undo(lambda: self._unvote(record, weight, approve))

    def _unvote(self, record: ProposalRecord, weight: int, approve: bool) -> None:
        with self._lock:
            if approve:
                record.yes_votes -= weight
            else:
                record.no_votes -= weight

    def resolve(
        self,
        proposal_type: str,
        founder: str,
        proposal_id: int,
        execution_fingerprint: str,
    ) -> ResolvedProposal:
        with self._lock:
            record = self._require(proposal_type, founder, proposal_id)
            state = self._state_of(record)
            if state == ProposalState.RESOLVED:
                raise AlreadyResolved(f"Proposal {proposal_id} of {founder} is already resolved")
            if state != ProposalState.SUCCEEDED:
                raise ProposalNotSucceeded(
                    f"Proposal {proposal_id} of {founder} is {state.value}, not succeeded"
                )
            if execution_fingerprint != record.execution_fingerprint:
                raise FingerprintMismatch(
                    f"Proposal {proposal_id} of {founder} expects fingerprint "
                    f"{record.execution_fingerprint}"
                )
            record.is_resolved = True
            record.resolved_at = self._clock()
        record_undo(lambda: self._unresolve(record))
        self._log.info("proposal_resolved", founder=founder, proposal_id=proposal_id)
        return ResolvedProposal(
            founder=founder,
            proposal_id=proposal_id,
            payload=record.payload,
            proposal_type=proposal_type,
        )

    def _unresolve(self, record: ProposalRecord) -> None:
        with self._lock:
            record.is_resolved = False
            record.resolved_at = None

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get_state(self, founder: str, proposal_id: int) -> ProposalState:
        with self._lock:
            return self._state_of(self._get(founder, proposal_id))

    def get_proposal(self, founder: str, proposal_id: int) -> ProposalRecord:
        with self._lock:
            return self._get(founder, proposal_id).model_copy(deep=True)

    def _state_of(self, record: ProposalRecord) -> ProposalState:
        if record.is_resolved:
            return ProposalState.RESOLVED
        if self._clock() < record.expires_at:
            return ProposalState.OPEN
        return record.outcome()

    def _get(self, founder: str, proposal_id: int) -> ProposalRecord:
        record = self._proposals.get((founder, proposal_id))
        if record is None:
            raise NotFound(f"No proposal {proposal_id} for {founder}")
        return record

    def _require(self, proposal_type: str, founder: str, proposal_id: int) -> ProposalRecord:
        record = self._get(founder, proposal_id)
        if record.proposal_type != proposal_type:
            raise NotFound(f"Proposal {proposal_id} of {founder} is not a {proposal_type} proposal")
        return record
