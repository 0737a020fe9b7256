"""Proposal tally block: one row per withdrawal proposal."""

from typing import List
import pandas as pd

from .base import Block, BlockContext
from ..schemas import TreasurySnapshot


TALLY_COLUMNS = [
    "proposal_id",
    "amount",
    "beneficiary",
    "min_vote_threshold",
    "yes_votes",
    "no_votes",
    "total_votes",
    "voters",
    "quorum_met",
    "yes_leading",
    "withdrawn",
    "opened_at",
]


class ProposalsBlock(Block):
    """Tabulates proposal tallies from a TreasurySnapshot.

    Inputs (from context):
        - treasury_snapshot

    Outputs (to context):
        - proposal_tallies: DataFrame ordered by proposal_id. ``quorum_met``
          and ``yes_leading`` are the two conditions a proposal must meet
          when its window closes; the block does not look at the clock.
    """

    def __init__(self, snapshot_key: str = "treasury_snapshot"):
        self.snapshot_key = snapshot_key

    def inputs(self) -> List[str]:
        return [self.snapshot_key]

    def outputs(self) -> List[str]:
        return ["proposal_tallies"]

    def execute(self, context: BlockContext) -> None:
        snapshot: TreasurySnapshot = context.get(self.snapshot_key)

        rows = []
        for proposal_id in sorted(snapshot.proposals):
            tally = snapshot.proposals[proposal_id]
            rows.append({
                "proposal_id": tally.proposal_id,
                "amount": tally.amount,
                "beneficiary": tally.beneficiary,
                "min_vote_threshold": tally.min_vote_threshold,
                "yes_votes": tally.yes_votes,
                "no_votes": tally.no_votes,
                "total_votes": tally.total_votes,
                "voters": tally.voters,
                "quorum_met": tally.quorum_met,
                "yes_leading": tally.yes_votes > tally.no_votes,
                "withdrawn": tally.withdrawn,
                "opened_at": tally.opened_at,
            })

        context.set("proposal_tallies", pd.DataFrame(rows, columns=TALLY_COLUMNS))
