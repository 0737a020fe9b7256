"""Exit quote block.

Prices both exits for every open position, using the same arithmetic as the
RedemptionEngine:

    redeem_payout   = floor(weight * 9 / 10)
    vault_payout    = floor(weight * vault_balance / target_cap)

Quotes assume each investor exits alone against the current state; actual
conversions draw the vault down one after another.
"""

from typing import List
import pandas as pd

from .base import Block, BlockContext
from ..core.redemption import conversion_payout, redemption_payout


QUOTE_COLUMNS = [
    "investor",
    "weight",
    "redeem_payout",
    "redeem_penalty",
    "convert_principal_to_founder",
    "convert_vault_payout",
]


class ExitQuoteBlock(Block):
    """Computes redeem/convert quotes per investor.

    Inputs (from context):
        - investor_positions: from PositionsBlock
        - treasury_summary: from PositionsBlock

    Outputs (to context):
        - exit_quotes: DataFrame with one row per investor
    """

    def inputs(self) -> List[str]:
        return ["investor_positions", "treasury_summary"]

    def outputs(self) -> List[str]:
        return ["exit_quotes"]

    def execute(self, context: BlockContext) -> None:
        positions_df: pd.DataFrame = context.get("investor_positions")
        summary = context.get("treasury_summary").iloc[0]

        vault_balance = int(summary["vault_balance"])
        target_cap = int(summary["target_cap"])

        rows = []
        for _, position in positions_df.iterrows():
            weight = int(position["weight"])
            payout = redemption_payout(weight)
            rows.append({
                "investor": position["investor"],
                "weight": weight,
                "redeem_payout": payout,
                "redeem_penalty": weight - payout,
                "convert_principal_to_founder": weight,
                "convert_vault_payout": (
                    conversion_payout(weight, vault_balance, target_cap) if target_cap > 0 else 0
                ),
            })

        context.set("exit_quotes", pd.DataFrame(rows, columns=QUOTE_COLUMNS))
