"""Shared fixtures for treasury domain tests.

The reference scenario: founder_alice raises up to 30 usd_coin with a
voting threshold of 10 and a 10,000 second window, seeding 1,000
alice_token into her founder vault. investor_a invests 20 and investor_b
invests 10, filling the treasury.
"""

import pytest

from treasury_domain import TreasuryService
from treasury_domain.schemas import TreasuryCFG


FOUNDER = "founder_alice"
FUNDING = "usd_coin"
VAULT = "alice_token"
INVESTOR_A = "investor_a"
INVESTOR_B = "investor_b"
FINGERPRINT = "a3f1c9"


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def reference_cfg(**overrides) -> TreasuryCFG:
    params = dict(
        funding_asset=FUNDING,
        vault_asset=VAULT,
        target_cap=30,
        min_voting_threshold=10,
        voting_duration_secs=10_000,
        vault_seed_amount=1_000,
    )
    params.update(overrides)
    return TreasuryCFG(**params)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(clock) -> TreasuryService:
    """Service with funded accounts but no treasury yet."""
    svc = TreasuryService(clock=clock)
    svc.assets.mint(FOUNDER, VAULT, 1_000)
    svc.assets.mint(INVESTOR_A, FUNDING, 100)
    svc.assets.mint(INVESTOR_B, FUNDING, 100)
    return svc


@pytest.fixture
def created(service) -> TreasuryService:
    """Reference treasury created, nothing invested."""
    service.create_treasury(FOUNDER, reference_cfg())
    return service


@pytest.fixture
def funded(created) -> TreasuryService:
    """Reference treasury filled: investor_a 20, investor_b 10."""
    created.invest(INVESTOR_A, FOUNDER, FUNDING, 20)
    created.invest(INVESTOR_B, FOUNDER, FUNDING, 10)
    return created
