"""Tests for the redeem_all and convert_all exits.

Tests cover:
- Payout arithmetic (10% penalty, proportional vault payout)
- Threshold decrement by the exiting weight, with no floor
- Aborted exits leave positions, pools and balances untouched
- Conversions draw the vault down sequentially
"""

import pytest

from treasury_domain.core import conversion_payout, redemption_payout
from treasury_domain.errors import ArithmeticUnderflow, NotFound
from treasury_domain.schemas import WITHDRAWAL_PROPOSAL

from conftest import (
    FINGERPRINT,
    FOUNDER,
    FUNDING,
    INVESTOR_A,
    INVESTOR_B,
    VAULT,
    reference_cfg,
)


@pytest.fixture
def generous(service):
    """Filled treasury whose threshold (30) covers every position."""
    service.create_treasury(FOUNDER, reference_cfg(min_voting_threshold=30))
    service.invest(INVESTOR_A, FOUNDER, FUNDING, 20)
    service.invest(INVESTOR_B, FOUNDER, FUNDING, 10)
    return service


# =============================================================================
# Payout Arithmetic
# =============================================================================

@pytest.mark.parametrize(
    "weight,payout",
    [(0, 0), (1, 0), (9, 8), (10, 9), (15, 13), (20, 18), (1_000_001, 900_000)],
)
def test_redemption_payout_floors_ninety_percent(weight, payout):
    assert redemption_payout(weight) == payout


@pytest.mark.parametrize(
    "weight,vault,cap,payout",
    [(10, 1_000, 30, 333), (20, 1_000, 30, 666), (10, 334, 30, 111), (5, 0, 30, 0), (30, 7, 30, 7)],
)
def test_conversion_payout_is_proportional_to_cap(weight, vault, cap, payout):
    assert conversion_payout(weight, vault, cap) == payout


# =============================================================================
# Redeem
# =============================================================================

class TestRedeemAll:
    """Test cash redemption with the exit penalty."""

    def test_redeem_pays_ninety_percent(self, funded):
        payout = funded.redeem_all(INVESTOR_B, FOUNDER, FUNDING)

        assert payout == 9
        assert funded.assets.balance(INVESTOR_B, FUNDING) == 99
        assert funded.treasury_supply(FOUNDER, FUNDING) == 21
        assert not funded.ledger.has_position(INVESTOR_B, FOUNDER)

    def test_penalty_stays_in_pool(self, funded):
        funded.redeem_all(INVESTOR_B, FOUNDER, FUNDING)
        # Remaining positions (20) are backed by 21 in the pool
        assert funded.treasury_supply(FOUNDER, FUNDING) - funded.ledger.total_weight(FOUNDER) == 1

    def test_redeem_lowers_threshold_by_weight(self, funded):
        funded.redeem_all(INVESTOR_B, FOUNDER, FUNDING)
        assert funded.voting_config(FOUNDER).min_voting_threshold == 0

    def test_second_redeem_fails(self, funded):
        funded.redeem_all(INVESTOR_B, FOUNDER, FUNDING)
        with pytest.raises(NotFound):
            funded.redeem_all(INVESTOR_B, FOUNDER, FUNDING)
        assert funded.assets.balance(INVESTOR_B, FUNDING) == 99

    def test_redeem_without_position_fails(self, created):
        with pytest.raises(NotFound):
            created.redeem_all(INVESTOR_A, FOUNDER, FUNDING)

    def test_threshold_underflow_aborts_whole_exit(self, funded):
        funded.redeem_all(INVESTOR_B, FOUNDER, FUNDING)

        with pytest.raises(ArithmeticUnderflow):
            funded.redeem_all(INVESTOR_A, FOUNDER, FUNDING)

        assert funded.position_weight(INVESTOR_A, FOUNDER) == 20
        assert funded.treasury_supply(FOUNDER, FUNDING) == 21
        assert funded.assets.balance(INVESTOR_A, FUNDING) == 80
        assert funded.voting_config(FOUNDER).min_voting_threshold == 0

    def test_position_larger_than_threshold_cannot_exit(self, funded):
        with pytest.raises(ArithmeticUnderflow):
            funded.redeem_all(INVESTOR_A, FOUNDER, FUNDING)
        assert funded.position_weight(INVESTOR_A, FOUNDER) == 20
        assert funded.voting_config(FOUNDER).min_voting_threshold == 10

    def test_short_pool_aborts_redeem(self, generous, clock):
        pid = generous.propose(FOUNDER, 25, FOUNDER, FINGERPRINT)
        generous.vote(INVESTOR_A, FOUNDER, pid, approve=True)
        generous.vote(INVESTOR_B, FOUNDER, pid, approve=False)
        clock.advance(10_000)
        resolved = generous.governance.resolve(WITHDRAWAL_PROPOSAL, FOUNDER, pid, FINGERPRINT)
        generous.withdraw(FOUNDER, FUNDING, resolved)
        assert generous.treasury_supply(FOUNDER, FUNDING) == 5

        with pytest.raises(ArithmeticUnderflow):
            generous.redeem_all(INVESTOR_A, FOUNDER, FUNDING)

        assert generous.position_weight(INVESTOR_A, FOUNDER) == 20
        assert generous.treasury_supply(FOUNDER, FUNDING) == 5
        assert generous.voting_config(FOUNDER).min_voting_threshold == 30

    def test_exit_ends_voting_power(self, funded):
        pid = funded.propose(FOUNDER, 1, FOUNDER, FINGERPRINT)
        funded.redeem_all(INVESTOR_B, FOUNDER, FUNDING)
        with pytest.raises(NotFound):
            funded.vote(INVESTOR_B, FOUNDER, pid, approve=True)


# =============================================================================
# Convert
# =============================================================================

class TestConvertAll:
    """Test conversion of positions into founder-vault assets."""

    def test_convert_pays_vault_share(self, funded):
        payout = funded.convert_all(INVESTOR_B, FOUNDER, FUNDING, VAULT)

        assert payout == 333
        assert funded.assets.balance(INVESTOR_B, VAULT) == 333
        assert funded.founder_vault(FOUNDER, VAULT).balance == 667

    def test_convert_sends_principal_to_founder(self, funded):
        funded.convert_all(INVESTOR_B, FOUNDER, FUNDING, VAULT)

        assert funded.treasury_supply(FOUNDER, FUNDING) == 20
        assert funded.assets.balance(FOUNDER, FUNDING) == 10
        assert funded.assets.balance(INVESTOR_B, FUNDING) == 90
        assert funded.voting_config(FOUNDER).min_voting_threshold == 0
        assert not funded.ledger.has_position(INVESTOR_B, FOUNDER)

    def test_sequential_conversions_use_current_vault(self, generous):
        first = generous.convert_all(INVESTOR_A, FOUNDER, FUNDING, VAULT)
        second = generous.convert_all(INVESTOR_B, FOUNDER, FUNDING, VAULT)

        assert first == 666
        assert second == 111
        assert generous.founder_vault(FOUNDER, VAULT).balance == 223
        assert generous.treasury_supply(FOUNDER, FUNDING) == 0
        assert generous.assets.balance(FOUNDER, FUNDING) == 30
        assert generous.voting_config(FOUNDER).min_voting_threshold == 0

    def test_convert_threshold_underflow_aborts(self, funded):
        with pytest.raises(ArithmeticUnderflow):
            funded.convert_all(INVESTOR_A, FOUNDER, FUNDING, VAULT)

        assert funded.position_weight(INVESTOR_A, FOUNDER) == 20
        assert funded.treasury_supply(FOUNDER, FUNDING) == 30
        assert funded.assets.balance(FOUNDER, FUNDING) == 0
        assert funded.founder_vault(FOUNDER, VAULT).balance == 1_000
        assert not funded.assets.is_registered(INVESTOR_A, VAULT)

    def test_convert_with_unknown_vault_fails(self, funded):
        with pytest.raises(NotFound):
            funded.convert_all(INVESTOR_B, FOUNDER, FUNDING, "other_token")
        assert funded.position_weight(INVESTOR_B, FOUNDER) == 10

    def test_convert_without_position_fails(self, created):
        with pytest.raises(NotFound):
            created.convert_all(INVESTOR_A, FOUNDER, FUNDING, VAULT)

    def test_convert_from_empty_vault_pays_nothing(self, service):
        service.create_treasury(FOUNDER, reference_cfg(vault_seed_amount=0))
        service.invest(INVESTOR_B, FOUNDER, FUNDING, 10)

        assert service.convert_all(INVESTOR_B, FOUNDER, FUNDING, VAULT) == 0
        assert service.assets.balance(FOUNDER, FUNDING) == 10
