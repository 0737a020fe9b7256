"""Base classes and type system for treasury domain models.

This module provides the foundational types and base classes used by every
schema in the governance-gated treasury: identities, asset type names and
exact integer amounts.
"""

from typing import Annotated
from pydantic import BaseModel, Field, ConfigDict

# =============================================================================
# Base Model
# =============================================================================

class DomainModel(BaseModel):
    """Base class for all domain models.

    Provides common configuration for all Pydantic models in the domain layer:
    - Validation on assignment, so ledger mutations stay inside their bounds
    - Enum value serialization
    """

    model_config = ConfigDict(
        frozen=False,  # Ledger records are mutated in place by the stores
        validate_assignment=True,
        use_enum_values=True,
    )


class FrozenModel(DomainModel):
    """Base class for immutable records (events, proposal payloads)."""

    model_config = ConfigDict(
        frozen=True,
        use_enum_values=True,
    )


# =============================================================================
# Type Aliases - Numeric
# =============================================================================

Amount = Annotated[
    int,
    Field(ge=0, description="Exact amount of an asset in base units (non-negative)")
]

Weight = Annotated[
    int,
    Field(ge=0, description="Voting weight in the same units as the funding asset")
]

Seconds = Annotated[
    int,
    Field(ge=0, description="Duration in whole seconds")
]

ProposalId = Annotated[
    int,
    Field(ge=0, description="Sequential proposal identifier, per founder")
]


# =============================================================================
# ID Conventions
# =============================================================================

AccountId = Annotated[
    str,
    Field(
        pattern=r'^[a-z][a-z0-9_]*$',
        description="Snake_case account identity (e.g., 'founder_alice', 'acme_fund')"
    )
]

AssetType = Annotated[
    str,
    Field(
        pattern=r'^[a-z][a-z0-9_]*$',
        description="Snake_case asset type name (e.g., 'usd_coin', 'alice_vault_token')"
    )
]

ProposalType = Annotated[
    str,
    Field(
        pattern=r'^[a-z][a-z0-9_]*$',
        description="Snake_case proposal type registered with governance (e.g., 'withdrawal')"
    )
]


# =============================================================================
# ID Examples and Conventions
# =============================================================================
#
# Account IDs:
#   - "founder_alice" - Founder raising funds
#   - "investor_a" - Outside investor
#   - "ops_wallet" - Withdrawal beneficiary
#
# Asset Types:
#   - "usd_coin" - Funding asset of a treasury
#   - "alice_vault_token" - Founder vault asset paid out on conversion
#
# Proposal IDs:
#   - Sequential per founder, starting at 0
#
# =============================================================================
