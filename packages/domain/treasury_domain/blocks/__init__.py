"""Reporting blocks for treasury analysis.

This package contains the computation layer that turns treasury snapshots and
journal events into DataFrames for the Excel statement or other consumers.

Architecture:
    Journal (events) → Snapshot (replayed state) → Blocks → DataFrames

Available blocks:
- PositionsBlock: investor positions and treasury summary
- ProposalsBlock: proposal tallies
- ExitQuoteBlock: redeem/convert quotes per investor (depends on PositionsBlock)
- ActivityBlock: flattened journal

Usage:
    from treasury_domain.blocks import BlockExecutor, BlockContext, PositionsBlock

    context = BlockContext()
    context.set("treasury_snapshot", service.snapshot("founder_alice"))
    BlockExecutor([PositionsBlock()]).execute(context)
    positions_df = context.get("investor_positions")
"""

from .base import Block, BlockExecutor, BlockContext
from .positions import PositionsBlock
from .proposals import ProposalsBlock
from .exits import ExitQuoteBlock
from .activity import ActivityBlock

__all__ = [
    "Block",
    "BlockExecutor",
    "BlockContext",
    "PositionsBlock",
    "ProposalsBlock",
    "ExitQuoteBlock",
    "ActivityBlock",
]
