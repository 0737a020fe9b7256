"""Treasury store: pooled funds per founder, capped at a funding target.

Also holds the founder vaults, the second pool a founder seeds at creation
and investors draw on when converting their positions.

Key rules:
    - One treasury per (founder, funding asset), created once
    - ``invest`` admits min(amount, gap) and nothing more
    - Pools never go negative; short extractions raise ArithmeticUnderflow
"""

import threading
from typing import Dict, List, Tuple

import structlog

from ..assets import AssetPrimitive
from ..errors import AlreadyExists, ArithmeticUnderflow, NoGap, NotFound
from ..schemas import FounderVault, Treasury
from ..transactions import record_undo
from .investment_ledger import InvestmentLedger

logger = structlog.get_logger(__name__)


class TreasuryStore:
    """Keyed store of Treasury and FounderVault records.

    The store moves assets through the AssetPrimitive and records voting
    power in the InvestmentLedger; it does not lock per founder itself. The
    service holds the founder lock around every call that reads and then
    writes a treasury.
    """

    def __init__(self, assets: AssetPrimitive, ledger: InvestmentLedger) -> None:
        self._assets = assets
        self._ledger = ledger
        self._lock = threading.RLock()
        self._treasuries: Dict[Tuple[str, str], Treasury] = {}
        self._vaults: Dict[Tuple[str, str], FounderVault] = {}
        self._log = logger.bind(component="treasury_store")

    # =========================================================================
    # Treasury
    # =========================================================================

    def create(self, founder: str, asset_type: str, target_cap: int) -> Treasury:
        """Create an empty treasury and register the founder for the asset.

        Raises:
            AlreadyExists: If the founder already has a treasury for this asset
        """
        key = (founder, asset_type)
        with self._lock:
            if key in self._treasuries:
                raise AlreadyExists(f"{founder} already has a {asset_type} treasury")
            treasury = Treasury(founder=founder, asset_type=asset_type, target_cap=target_cap)
            self._treasuries[key] = treasury
        record_undo(lambda: self._treasuries.pop(key, None))
        self._assets.register(founder, asset_type)
        self._log.info("treasury_created", founder=founder, asset_type=asset_type, target_cap=target_cap)
        return treasury.model_copy()

    def exists(self, founder: str, asset_type: str) -> bool:
        with self._lock:
            return (founder, asset_type) in self._treasuries

    def asset_types_for(self, founder: str) -> List[str]:
        with self._lock:
            return [asset for (f, asset) in self._treasuries if f == founder]

    def get(self, founder: str, asset_type: str) -> Treasury:
        with self._lock:
            return self._require(founder, asset_type).model_copy()

    def supply(self, founder: str, asset_type: str) -> int:
        with self._lock:
            return self._require(founder, asset_type).balance

    def max_supply(self, founder: str, asset_type: str) -> int:
        with self._lock:
            return self._require(founder, asset_type).target_cap

    def invest(self, investor: str, founder: str, asset_type: str, amount: int) -> int:
        """Move up to ``amount`` from the investor into the treasury.

        Only the remaining gap is admitted; any excess stays with the investor.

        Returns:
            The admitted amount (also added to the investor's voting power)

        Raises:
            NotFound: If the treasury does not exist
            NoGap: If nothing can be admitted (cap already met, or amount is 0)
            InsufficientFunds: If the investor cannot cover the admitted amount
        """
        with self._lock:
            treasury = self._require(founder, asset_type)
            admitted = min(amount, treasury.gap)
            if admitted <= 0:
                raise NoGap(
                    f"{founder}'s {asset_type} treasury cannot admit more "
                    f"(balance {treasury.balance}, cap {treasury.target_cap})"
                )
            self._assets.debit(investor, asset_type, admitted)
            self._merge(treasury, admitted)
        self._ledger.increase(investor, founder, admitted)
        self._log.info(
            "investment_admitted",
            investor=investor,
            founder=founder,
            requested=amount,
            admitted=admitted,
            balance=treasury.balance,
        )
        return admitted

    def extract(self, founder: str, asset_type: str, amount: int) -> int:
        """Take ``amount`` out of the treasury balance.

        The caller is responsible for depositing it somewhere.

        Raises:
            NotFound: If the treasury does not exist
            ArithmeticUnderflow: If the balance is smaller than ``amount``
        """
        with self._lock:
            treasury = self._require(founder, asset_type)
            if amount > treasury.balance:
                raise ArithmeticUnderflow(
                    f"Cannot extract {amount} from {founder}'s {asset_type} treasury "
                    f"holding {treasury.balance}"
                )
            self._merge(treasury, -amount)
        return amount

    def _merge(self, treasury: Treasury, delta: int) -> None:
        treasury.balance += delta
        record_undo(lambda: self._restore_balance(treasury, delta))

    def _restore_balance(self, treasury: Treasury, delta: int) -> None:
        with self._lock:
            treasury.balance -= delta

    def _require(self, founder: str, asset_type: str) -> Treasury:
        treasury = self._treasuries.get((founder, asset_type))
        if treasury is None:
            raise NotFound(f"{founder} has no {asset_type} treasury")
        return treasury

    # =========================================================================
    # Founder Vault
    # =========================================================================

    def open_vault(self, founder: str, vault_asset: str, seed_amount: int) -> FounderVault:
        """Create the founder vault, seeded from the founder's own balance.

        Raises:
            AlreadyExists: If the founder already has a vault for this asset
            InsufficientFunds: If the founder cannot cover ``seed_amount``
        """
        key = (founder, vault_asset)
        with self._lock:
            if key in self._vaults:
                raise AlreadyExists(f"{founder} already has a {vault_asset} vault")
            if seed_amount > 0:
                self._assets.debit(founder, vault_asset, seed_amount)
            vault = FounderVault(founder=founder, asset_type=vault_asset, balance=seed_amount)
            self._vaults[key] = vault
        record_undo(lambda: self._vaults.pop(key, None))
        self._log.info("founder_vault_opened", founder=founder, vault_asset=vault_asset, seed_amount=seed_amount)
        return vault.model_copy()

    def vault(self, founder: str, vault_asset: str) -> FounderVault:
        with self._lock:
            return self._require_vault(founder, vault_asset).model_copy()

    def extract_from_vault(self, founder: str, vault_asset: str, amount: int) -> int:
        """Take ``amount`` out of the founder vault.

        Raises:
            NotFound: If the vault does not exist
            ArithmeticUnderflow: If the vault holds less than ``amount``
        """
        with self._lock:
            vault = self._require_vault(founder, vault_asset)
            if amount > vault.balance:
                raise ArithmeticUnderflow(
                    f"Cannot extract {amount} from {founder}'s {vault_asset} vault holding {vault.balance}"
                )
            vault.balance -= amount
        record_undo(lambda: self._refill_vault(vault, amount))
        return amount

    def _refill_vault(self, vault: FounderVault, amount: int) -> None:
        with self._lock:
            vault.balance += amount

    def _require_vault(self, founder: str, vault_asset: str) -> FounderVault:
        vault = self._vaults.get((founder, vault_asset))
        if vault is None:
            raise NotFound(f"{founder} has no {vault_asset} vault")
        return vault
