"""Treasury, voting configuration and founder vault records.

A founder owns exactly one Treasury per funding asset, one VotingConfig and
one FounderVault. All three are created together by ``create_treasury`` and
are never destroyed; a drained Treasury simply sits at a zero balance.
"""

from pydantic import Field, model_validator

from .base import DomainModel, AccountId, AssetType, Amount, Seconds


# =============================================================================
# Treasury
# =============================================================================

class Treasury(DomainModel):
    """Pooled funding balance for one founder, capped at a target.

    Invariant:
        balance <= target_cap at all times. ``invest`` never admits more than
        the remaining gap, so the cap cannot be overshot.

    Example:
        Treasury(founder="founder_alice", asset_type="usd_coin", target_cap=30)
        → balance starts at 0, gap is 30
    """

    founder: AccountId = Field(
        description="Founder owning this treasury"
    )

    asset_type: AssetType = Field(
        description="Funding asset held by the treasury"
    )

    balance: Amount = Field(
        default=0,
        description="Current pooled funding balance"
    )

    target_cap: Amount = Field(
        gt=0,
        description="Funding target; the balance never exceeds it"
    )

    @model_validator(mode='after')
    def validate_balance_within_cap(self) -> 'Treasury':
        if self.balance > self.target_cap:
            raise ValueError(
                f"Treasury balance {self.balance} exceeds target cap {self.target_cap}"
            )
        return self

    @property
    def gap(self) -> int:
        """Amount still admissible before the cap is reached."""
        return self.target_cap - self.balance


# =============================================================================
# Voting Config
# =============================================================================

class VotingConfig(DomainModel):
    """Per-founder governance parameters.

    ``min_voting_threshold`` is only ever decremented, and only by redemption
    or conversion of an investor position. New proposals snapshot both
    fields at creation time.
    """

    founder: AccountId = Field(
        description="Founder these parameters govern"
    )

    min_voting_threshold: Amount = Field(
        description="Minimum total vote weight (yes + no) for a proposal to pass"
    )

    voting_duration_secs: Seconds = Field(
        description="Voting window length for new proposals"
    )


# =============================================================================
# Founder Vault
# =============================================================================

class FounderVault(DomainModel):
    """Asset pool seeded by the founder and drawn down by conversions."""

    founder: AccountId
    asset_type: AssetType
    balance: Amount = 0


# =============================================================================
# Creation Parameters
# =============================================================================

class TreasuryCFG(DomainModel):
    """Validated parameters for ``create_treasury``.

    Example:
        TreasuryCFG(
            funding_asset="usd_coin",
            vault_asset="alice_vault_token",
            target_cap=30,
            min_voting_threshold=10,
            voting_duration_secs=10_000,
            vault_seed_amount=1_000,
        )
    """

    funding_asset: AssetType = Field(
        description="Asset investors contribute"
    )

    vault_asset: AssetType = Field(
        description="Asset the founder seeds into the vault"
    )

    target_cap: Amount = Field(
        gt=0,
        description="Funding target cap"
    )

    min_voting_threshold: Amount = Field(
        default=0,
        description="Initial minimum total vote weight for proposals"
    )

    voting_duration_secs: Seconds = Field(
        default=0,
        description="Voting window for proposals"
    )

    vault_seed_amount: Amount = Field(
        default=0,
        description="Vault asset debited from the founder into the founder vault"
    )

    @model_validator(mode='after')
    def validate_distinct_assets(self) -> 'TreasuryCFG':
        if self.funding_asset == self.vault_asset:
            raise ValueError("funding_asset and vault_asset must be different asset types")
        return self
