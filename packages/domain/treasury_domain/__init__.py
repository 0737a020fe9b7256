"""Treasury Domain Engine - governance-gated crowd-funding treasury.

This package provides:
- Treasury accounting with a funding cap per founder
- Investor positions used verbatim as vote weight
- Withdrawal proposals gated by weighted investor votes
- Cash redemption and founder-vault conversion exits
- An event-sourced audit journal and pandas reporting blocks

The domain layer is designed to be:
- Framework-agnostic (no web dependencies)
- Atomic (every public operation is all-or-nothing)
- Testable (in-memory asset and governance primitives, injectable clock)
"""

from .schemas import *  # noqa: F403, F401
from .errors import *  # noqa: F403, F401
from .assets import AssetPrimitive, InMemoryAssetBank
from .governance import GovernancePrimitive, InMemoryGovernance
from .core import TreasuryService
from .observability import configure_logging

__version__ = "0.1.0"
