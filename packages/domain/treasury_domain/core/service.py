"""Governance-gated treasury service: the public operation surface.

Wires the stores together and runs every public operation as one atomic,
founder-locked transaction:

    create_treasury → invest → propose → vote → (governance resolves) → withdraw
                                   └── at any time: redeem_all / convert_all

Each committed operation is appended to the audit journal, from which
point-in-time snapshots are replayed.

Usage:
    service = TreasuryService(clock=clock)
    service.create_treasury("founder_alice", TreasuryCFG(
        funding_asset="usd_coin", vault_asset="alice_token",
        target_cap=30, min_voting_threshold=10, voting_duration_secs=10_000,
    ))
    service.invest("investor_a", "founder_alice", "usd_coin", 20)
    pid = service.propose("founder_alice", 20, "founder_alice", "deadbeef")
    service.vote("investor_a", "founder_alice", pid, approve=True)

    # after the voting window, outside this service:
    resolved = service.governance.resolve("withdrawal", "founder_alice", pid, "deadbeef")
    service.withdraw("founder_alice", "usd_coin", resolved)
"""

import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from ..assets import AssetPrimitive, InMemoryAssetBank, check_amount
from ..errors import NotFound
from ..governance import GovernancePrimitive, InMemoryGovernance
from ..schemas import (
    FounderVault,
    FundsWithdrawn,
    InvestmentAdmitted,
    PositionConverted,
    PositionRedeemed,
    ProposalCreated,
    ProposalRecord,
    ProposalState,
    ResolvedProposal,
    Treasury,
    TreasuryCFG,
    TreasuryCreated,
    TreasuryEvent,
    TreasuryJournal,
    TreasurySnapshot,
    VoteCast,
    VotingConfig,
    WithdrawalPayload,
)
from ..transactions import KeyedLocks, atomic
from .investment_ledger import InvestmentLedger
from .proposal_registry import ProposalRegistry
from .redemption import RedemptionEngine
from .treasury_store import TreasuryStore
from .withdrawal import WithdrawalExecutor


class TreasuryService:
    """Public operations of the governance-gated treasury.

    Args:
        assets: Fungible asset primitive (default: a fresh InMemoryAssetBank)
        governance: Governance primitive (default: InMemoryGovernance on ``clock``)
        clock: Epoch-seconds clock used for journal timestamps
        journal: Audit journal to append to (default: a fresh one)
    """

    def __init__(
        self,
        assets: Optional[AssetPrimitive] = None,
        governance: Optional[GovernancePrimitive] = None,
        clock: Callable[[], float] = time.time,
        journal: Optional[TreasuryJournal] = None,
    ):
        self.clock = clock
        self.assets = assets if assets is not None else InMemoryAssetBank()
        self.governance = governance if governance is not None else InMemoryGovernance(clock=clock)
        self.journal = journal if journal is not None else TreasuryJournal()

        self.ledger = InvestmentLedger()
        self.store = TreasuryStore(self.assets, self.ledger)
        self.registry = ProposalRegistry(self.governance, self.ledger)
        self.withdrawals = WithdrawalExecutor(self.store, self.assets, self.governance)
        self.redemptions = RedemptionEngine(self.store, self.ledger, self.registry, self.assets)

        self._locks = KeyedLocks()

    # =========================================================================
    # Treasury Lifecycle
    # =========================================================================

    def create_treasury(self, founder: str, config: TreasuryCFG) -> Treasury:
        """Create the founder's Treasury, VotingConfig and FounderVault.

        The vault is seeded by debiting ``config.vault_seed_amount`` of the
        vault asset from the founder.

        Raises:
            AlreadyExists: If the founder already has a treasury or voting config
            InsufficientFunds: If the founder cannot seed the vault
        """
        with self._locks.hold(founder), atomic():
            treasury = self.store.create(founder, config.funding_asset, config.target_cap)
            self.registry.configure(founder, config.min_voting_threshold, config.voting_duration_secs)
            self.store.open_vault(founder, config.vault_asset, config.vault_seed_amount)
            self.journal.record(
                TreasuryCreated,
                founder=founder,
                occurred_at=self._now(),
                asset_type=config.funding_asset,
                vault_asset=config.vault_asset,
                target_cap=config.target_cap,
                min_voting_threshold=config.min_voting_threshold,
                voting_duration_secs=config.voting_duration_secs,
                vault_seed_amount=config.vault_seed_amount,
            )
        return treasury

    def invest(self, investor: str, founder: str, asset_type: str, amount: int) -> int:
        """Contribute up to ``amount`` toward the founder's funding target.

        Returns:
            The admitted amount (never more than the remaining gap)

        Raises:
            NotFound: If the treasury does not exist
            NoGap: If the cap is already met
            InsufficientFunds: If the investor cannot cover the admitted amount
        """
        check_amount(amount)
        with self._locks.hold(founder), atomic():
            admitted = self.store.invest(investor, founder, asset_type, amount)
            self.journal.record(
                InvestmentAdmitted,
                founder=founder,
                occurred_at=self._now(),
                investor=investor,
                requested=amount,
                admitted=admitted,
            )
        return admitted

    # =========================================================================
    # Governance
    # =========================================================================

    def propose(
        self,
        founder: str,
        withdrawal_amount: int,
        beneficiary: str,
        execution_fingerprint: str,
    ) -> int:
        """Open a withdrawal proposal and return its id.

        Raises:
            NotFound: If the founder has no voting config
        """
        check_amount(withdrawal_amount)
        with self._locks.hold(founder), atomic():
            record = self.registry.propose(founder, withdrawal_amount, beneficiary, execution_fingerprint)
            self.journal.record(
                ProposalCreated,
                founder=founder,
                occurred_at=self._now(),
                proposal_id=record.proposal_id,
                proposer=record.proposer,
                amount=withdrawal_amount,
                beneficiary=beneficiary,
                execution_fingerprint=execution_fingerprint,
                min_vote_threshold=record.min_vote_threshold,
                voting_duration_secs=record.voting_duration_secs,
            )
        return record.proposal_id

    def vote(self, investor: str, founder: str, proposal_id: int, approve: bool) -> int:
        """Vote with the investor's current weight.

        Returns:
            The weight cast

        Raises:
            AlreadyVoted: If the investor already voted on the proposal
            NotFound: If the proposal or the investor's position is missing
            VotingClosed: If the voting window has elapsed
        """
        with self._locks.hold(founder), atomic():
            weight = self.registry.vote(investor, founder, proposal_id, approve)
            self.journal.record(
                VoteCast,
                founder=founder,
                occurred_at=self._now(),
                investor=investor,
                proposal_id=proposal_id,
                weight=weight,
                approve=approve,
            )
        return weight

    def withdraw(self, founder: str, asset_type: str, resolved: ResolvedProposal) -> WithdrawalPayload:
        """Execute a resolved withdrawal proposal.

        ``resolved`` must match a proposal governance has resolved; each
        proposal is paid out at most once.

        Raises:
            NotFound: If the treasury or proposal is missing
            ProposalNotSucceeded: If governance has not resolved the proposal
            CapabilityMismatch: If ``resolved`` differs from the governance record
            CapabilityConsumed: If ``resolved`` was already used or its
                proposal already paid out (AlreadyExecuted)
            ArithmeticUnderflow: If the treasury is short
        """
        with self._locks.hold(founder), atomic():
            payload = self.withdrawals.withdraw(founder, asset_type, resolved)
            self.journal.record(
                FundsWithdrawn,
                founder=founder,
                occurred_at=self._now(),
                proposal_id=resolved.proposal_id,
                amount=payload.amount,
                beneficiary=payload.beneficiary,
            )
        return payload

    # =========================================================================
    # Exits
    # =========================================================================

    def redeem_all(self, investor: str, founder: str, asset_type: str) -> int:
        """Cash out the investor's whole position at the 10% exit penalty.

        Returns:
            The payout credited to the investor
        """
        with self._locks.hold(founder), atomic():
            weight, payout = self.redemptions.redeem_all(investor, founder, asset_type)
            self.journal.record(
                PositionRedeemed,
                founder=founder,
                occurred_at=self._now(),
                investor=investor,
                weight=weight,
                payout=payout,
            )
        return payout

    def convert_all(self, investor: str, founder: str, asset_type: str, vault_asset: str) -> int:
        """Convert the investor's whole position into founder-vault assets.

        Returns:
            The vault-asset payout credited to the investor
        """
        with self._locks.hold(founder), atomic():
            weight, payout = self.redemptions.convert_all(investor, founder, asset_type, vault_asset)
            self.journal.record(
                PositionConverted,
                founder=founder,
                occurred_at=self._now(),
                investor=investor,
                weight=weight,
                vault_asset=vault_asset,
                vault_payout=payout,
            )
        return payout

    # =========================================================================
    # Queries
    # =========================================================================

    def has_treasury(self, founder: str, asset_type: Optional[str] = None) -> bool:
        if asset_type is None:
            return bool(self.store.asset_types_for(founder))
        return self.store.exists(founder, asset_type)

    def treasury(self, founder: str, asset_type: str) -> Treasury:
        return self.store.get(founder, asset_type)

    def treasury_supply(self, founder: str, asset_type: str) -> int:
        return self.store.supply(founder, asset_type)

    def treasury_max_supply(self, founder: str, asset_type: str) -> int:
        return self.store.max_supply(founder, asset_type)

    def founder_vault(self, founder: str, vault_asset: str) -> FounderVault:
        return self.store.vault(founder, vault_asset)

    def voting_config(self, founder: str) -> VotingConfig:
        return self.registry.voting_config(founder)

    def position_weight(self, investor: str, founder: str) -> int:
        return self.ledger.read_weight(investor, founder)

    def proposal(self, founder: str, proposal_id: int) -> ProposalRecord:
        return self.registry.proposal(founder, proposal_id)

    def proposal_state(self, founder: str, proposal_id: int) -> ProposalState:
        return self.registry.state(founder, proposal_id)

    def events(self, founder: str) -> List[TreasuryEvent]:
        return self.journal.events_for(founder)

    def snapshot(self, founder: str, as_of_sequence: Optional[int] = None) -> TreasurySnapshot:
        """Replay the founder's journal into a TreasurySnapshot.

        Raises:
            NotFound: If the founder never created a treasury
        """
        snapshot = self.journal.snapshot(founder, as_of_sequence)
        if not snapshot.exists:
            raise NotFound(f"{founder} has no treasury in the journal")
        return snapshot

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), tz=timezone.utc)
