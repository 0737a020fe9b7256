"""Error taxonomy for the governance-gated treasury.

Every public operation either applies all of its effects or raises one of
these errors with no effect persisted. Nothing is retried internally.
"""


class TreasuryError(Exception):
    """Base error for treasury operations."""


class NotFound(TreasuryError):
    """Treasury, voting config, founder vault, ledger entry or proposal is missing."""


class AlreadyExists(TreasuryError):
    """A treasury (or its voting config) already exists for the founder."""


class NoGap(TreasuryError):
    """Investment rejected because the funding cap is already met."""


class AlreadyVoted(TreasuryError):
    """The investor has already voted on this proposal."""


class InsufficientFunds(TreasuryError):
    """An account holds less of an asset than a debit requires."""


class ArithmeticUnderflow(TreasuryError):
    """A subtraction would go below zero (threshold decrement, pool extraction)."""


# =============================================================================
# Governance
# =============================================================================

class GovernanceError(TreasuryError):
    """Base error for proposal lifecycle violations."""


class VotingClosed(GovernanceError):
    """The proposal's voting window has elapsed."""


class ProposalNotSucceeded(GovernanceError):
    """Resolution requested for a proposal that is open or failed."""


class AlreadyResolved(GovernanceError):
    """The proposal has already been resolved."""


class FingerprintMismatch(GovernanceError):
    """The execution fingerprint does not match the one recorded at creation."""


class CapabilityConsumed(GovernanceError):
    """A resolved-proposal capability was presented a second time."""


class AlreadyExecuted(CapabilityConsumed):
    """The proposal behind a resolved-proposal capability was already paid out."""


class CapabilityMismatch(GovernanceError):
    """A resolved-proposal capability does not match the governance record it names."""
