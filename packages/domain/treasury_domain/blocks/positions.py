"""Treasury positions computation block.

Converts a TreasurySnapshot into DataFrames for Excel rendering or analysis.

Output DataFrames:
- investor_positions: Per-investor weight and share of voting power
- treasury_summary: Single-row funding and governance metrics
"""

from typing import List
import pandas as pd

from .base import Block, BlockContext
from ..schemas import TreasurySnapshot


POSITION_COLUMNS = ["investor", "weight", "voting_pct"]


class PositionsBlock(Block):
    """Converts TreasurySnapshot to position and summary DataFrames.

    Inputs (from context):
        - treasury_snapshot: TreasurySnapshot to convert

    Outputs (to context):
        - investor_positions: DataFrame with columns:
            * investor: Investor identity
            * weight: Invested amount (= vote weight)
            * voting_pct: Share of all open voting power, in percent

        - treasury_summary: DataFrame with single row:
            * founder, asset_type, vault_asset
            * balance: Pooled funds
            * target_cap: Funding target
            * gap: Amount still admissible
            * funded_pct: balance / target_cap, in percent
            * min_voting_threshold: Current threshold for new proposals
            * vault_balance: Founder vault holdings
            * investors_count: Open positions
            * total_invested, total_withdrawn, total_redeemed, total_converted
    """

    def __init__(self, snapshot_key: str = "treasury_snapshot"):
        self.snapshot_key = snapshot_key

    def inputs(self) -> List[str]:
        return [self.snapshot_key]

    def outputs(self) -> List[str]:
        return ["investor_positions", "treasury_summary"]

    def execute(self, context: BlockContext) -> None:
        snapshot: TreasurySnapshot = context.get(self.snapshot_key)

        positions_df = self._compute_positions(snapshot)
        context.set("investor_positions", positions_df)
        context.set("treasury_summary", self._compute_summary(snapshot, positions_df))

    def _compute_positions(self, snapshot: TreasurySnapshot) -> pd.DataFrame:
        total = snapshot.total_voting_power
        rows = [
            {
                "investor": investor,
                "weight": weight,
                "voting_pct": float(weight / total * 100) if total > 0 else 0.0,
            }
            for investor, weight in snapshot.positions.items()
        ]
        if not rows:
            return pd.DataFrame(columns=POSITION_COLUMNS)

        # Largest holders first, ties by name for stable output
        df = pd.DataFrame(rows, columns=POSITION_COLUMNS)
        return df.sort_values(["weight", "investor"], ascending=[False, True]).reset_index(drop=True)

    def _compute_summary(self, snapshot: TreasurySnapshot, positions_df: pd.DataFrame) -> pd.DataFrame:
        funded_pct = (
            float(snapshot.balance / snapshot.target_cap * 100)
            if snapshot.target_cap > 0
            else 0.0
        )
        return pd.DataFrame([{
            "founder": snapshot.founder,
            "asset_type": snapshot.asset_type,
            "vault_asset": snapshot.vault_asset,
            "balance": snapshot.balance,
            "target_cap": snapshot.target_cap,
            "gap": snapshot.gap,
            "funded_pct": funded_pct,
            "min_voting_threshold": snapshot.min_voting_threshold,
            "vault_balance": snapshot.vault_balance,
            "investors_count": len(positions_df),
            "total_invested": snapshot.total_invested,
            "total_withdrawn": snapshot.total_withdrawn,
            "total_redeemed": snapshot.total_redeemed,
            "total_converted": snapshot.total_converted,
        }])
