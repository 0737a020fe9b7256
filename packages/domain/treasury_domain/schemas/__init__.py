"""Treasury domain schemas.

This package contains all Pydantic models for the treasury domain layer:
- Base types and conventions
- Treasury, voting config and founder vault records
- Investor positions (voting power)
- Proposals, vote records and the resolved-proposal capability
- Events and the audit journal (event-sourced snapshots)
- Report configuration for the Excel statement

Usage:
    from treasury_domain.schemas import (
        TreasuryCFG, Treasury, InvestorPosition,
        WithdrawalPayload, ProposalState, TreasuryJournal
    )
"""

# Base types
from .base import (
    DomainModel,
    FrozenModel,
    Amount,
    Weight,
    Seconds,
    ProposalId,
    AccountId,
    AssetType,
    ProposalType,
)

# Treasury records
from .treasury import (
    Treasury,
    VotingConfig,
    FounderVault,
    TreasuryCFG,
)

# Positions
from .positions import InvestorPosition

# Proposals
from .proposals import (
    WITHDRAWAL_PROPOSAL,
    ProposalState,
    WithdrawalPayload,
    VoteRecord,
    ProposalRecord,
    ResolvedProposal,
)

# Events
from .events import (
    TreasuryEvent,
    TreasuryCreated,
    InvestmentAdmitted,
    ProposalCreated,
    VoteCast,
    FundsWithdrawn,
    PositionRedeemed,
    PositionConverted,
)

# Snapshots and journal
from .snapshot import TreasurySnapshot, ProposalTally
from .journal import TreasuryJournal, AnyTreasuryEvent

# Report
from .report import TreasuryReportCFG

__all__ = [
    # Base types
    "DomainModel",
    "FrozenModel",
    "Amount",
    "Weight",
    "Seconds",
    "ProposalId",
    "AccountId",
    "AssetType",
    "ProposalType",
    # Treasury records
    "Treasury",
    "VotingConfig",
    "FounderVault",
    "TreasuryCFG",
    # Positions
    "InvestorPosition",
    # Proposals
    "WITHDRAWAL_PROPOSAL",
    "ProposalState",
    "WithdrawalPayload",
    "VoteRecord",
    "ProposalRecord",
    "ResolvedProposal",
    # Events
    "TreasuryEvent",
    "TreasuryCreated",
    "InvestmentAdmitted",
    "ProposalCreated",
    "VoteCast",
    "FundsWithdrawn",
    "PositionRedeemed",
    "PositionConverted",
    # Snapshots and journal
    "TreasurySnapshot",
    "ProposalTally",
    "TreasuryJournal",
    "AnyTreasuryEvent",
    # Report
    "TreasuryReportCFG",
]
