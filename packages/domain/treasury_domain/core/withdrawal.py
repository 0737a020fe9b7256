"""Withdrawal executor: moves funds out of a treasury for a resolved proposal."""

import threading
from typing import Set, Tuple

import structlog

from ..assets import AssetPrimitive
from ..errors import AlreadyExecuted, CapabilityMismatch, NotFound, ProposalNotSucceeded
from ..governance import GovernancePrimitive
from ..schemas import WITHDRAWAL_PROPOSAL, ProposalState, ResolvedProposal, WithdrawalPayload
from ..transactions import record_undo
from .treasury_store import TreasuryStore

logger = structlog.get_logger(__name__)


class WithdrawalExecutor:
    """Executes already-resolved withdrawal proposals.

    A ResolvedProposal is only honoured when the governance primitive agrees
    with it: the proposal it names must be resolved and carry the same
    payload. Each (founder, proposal id) is paid out at most once, whatever
    happens to the token afterwards. If the withdrawal aborts (for example
    because the treasury is short), both the executed mark and the consumed
    token are rolled back.
    """

    def __init__(
        self,
        store: TreasuryStore,
        assets: AssetPrimitive,
        governance: GovernancePrimitive,
    ) -> None:
        self._store = store
        self._assets = assets
        self._governance = governance
        self._lock = threading.RLock()
        self._executed: Set[Tuple[str, int]] = set()
        self._log = logger.bind(component="withdrawal_executor")

    def withdraw(self, founder: str, asset_type: str, resolved: ResolvedProposal) -> WithdrawalPayload:
        """Pay the proposal's amount from the treasury to its beneficiary.

        Raises:
            NotFound: If the treasury or the named proposal is missing, or the
                capability belongs to another founder or proposal type
            ProposalNotSucceeded: If governance has not resolved the proposal
            CapabilityMismatch: If the capability's payload differs from the
                governance record
            AlreadyExecuted: If the proposal was already paid out
            CapabilityConsumed: If the capability was already used
            ArithmeticUnderflow: If the treasury holds less than the amount
        """
        if not self._store.exists(founder, asset_type):
            raise NotFound(f"{founder} has no {asset_type} treasury")
        if resolved.founder != founder or resolved.proposal_type != WITHDRAWAL_PROPOSAL:
            raise NotFound(
                f"Resolved {resolved.proposal_type} proposal {resolved.proposal_id} "
                f"does not belong to {founder}'s withdrawals"
            )
        self._verify(founder, resolved)

        key = (founder, resolved.proposal_id)
        with self._lock:
            if key in self._executed:
                raise AlreadyExecuted(f"Proposal {resolved.proposal_id} of {founder} was already paid out")
            self._executed.add(key)
        record_undo(lambda: self._forget(key))

        payload = resolved.consume()
        record_undo(resolved._release)

        amount = self._store.extract(founder, asset_type, payload.amount)
        self._assets.credit(payload.beneficiary, asset_type, amount)
        self._log.info(
            "withdrawal_executed",
            founder=founder,
            proposal_id=resolved.proposal_id,
            amount=amount,
            beneficiary=payload.beneficiary,
        )
        return payload

    def is_executed(self, founder: str, proposal_id: int) -> bool:
        with self._lock:
            return (founder, proposal_id) in self._executed

    def _verify(self, founder: str, resolved: ResolvedProposal) -> None:
        state = self._governance.get_state(founder, resolved.proposal_id)
        if state != ProposalState.RESOLVED:
            raise ProposalNotSucceeded(
                f"Proposal {resolved.proposal_id} of {founder} is {state.value}, not resolved"
            )
        record = self._governance.get_proposal(founder, resolved.proposal_id)
        if record.proposal_type != resolved.proposal_type or record.payload != resolved.payload:
            raise CapabilityMismatch(
                f"Resolved proposal {resolved.proposal_id} of {founder} does not match its governance record"
            )

    def _forget(self, key: Tuple[str, int]) -> None:
        with self._lock:
            self._executed.discard(key)
