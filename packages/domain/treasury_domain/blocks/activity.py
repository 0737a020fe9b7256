"""Activity block: flattens journal events into a ledger-style DataFrame."""

from typing import List, Optional, Tuple
import pandas as pd

from .base import Block, BlockContext
from ..schemas import (
    TreasuryEvent,
    TreasuryCreated,
    InvestmentAdmitted,
    ProposalCreated,
    VoteCast,
    FundsWithdrawn,
    PositionRedeemed,
    PositionConverted,
)


ACTIVITY_COLUMNS = ["sequence", "occurred_at", "event_type", "account", "amount", "detail"]


class ActivityBlock(Block):
    """One row per journal event, in sequence order.

    Inputs (from context):
        - treasury_events: List[TreasuryEvent] for one founder

    Outputs (to context):
        - treasury_activity: DataFrame with columns:
            * sequence, occurred_at, event_type
            * account: The acting or receiving account
            * amount: Funding-asset amount moved (None for non-monetary events)
            * detail: Short human-readable description
    """

    def __init__(self, events_key: str = "treasury_events"):
        self.events_key = events_key

    def inputs(self) -> List[str]:
        return [self.events_key]

    def outputs(self) -> List[str]:
        return ["treasury_activity"]

    def execute(self, context: BlockContext) -> None:
        events: List[TreasuryEvent] = context.get(self.events_key)

        rows = []
        for event in sorted(events, key=lambda e: e.sequence):
            account, amount, detail = _describe(event)
            rows.append({
                "sequence": event.sequence,
                "occurred_at": event.occurred_at,
                "event_type": event.event_type,
                "account": account,
                "amount": amount,
                "detail": detail,
            })

        context.set("treasury_activity", pd.DataFrame(rows, columns=ACTIVITY_COLUMNS))


def _describe(event: TreasuryEvent) -> Tuple[str, Optional[int], str]:
    if isinstance(event, TreasuryCreated):
        return (
            event.founder,
            None,
            f"cap {event.target_cap} {event.asset_type}, threshold {event.min_voting_threshold}, "
            f"vault seeded with {event.vault_seed_amount} {event.vault_asset}",
        )
    if isinstance(event, InvestmentAdmitted):
        return event.investor, event.admitted, f"requested {event.requested}, admitted {event.admitted}"
    if isinstance(event, ProposalCreated):
        return (
            event.proposer,
            event.amount,
            f"proposal {event.proposal_id}: withdraw {event.amount} to {event.beneficiary}",
        )
    if isinstance(event, VoteCast):
        choice = "yes" if event.approve else "no"
        return event.investor, None, f"proposal {event.proposal_id}: {choice} with weight {event.weight}"
    if isinstance(event, FundsWithdrawn):
        return event.beneficiary, event.amount, f"proposal {event.proposal_id} executed"
    if isinstance(event, PositionRedeemed):
        return event.investor, event.payout, f"redeemed weight {event.weight}"
    if isinstance(event, PositionConverted):
        return (
            event.investor,
            event.weight,
            f"converted weight {event.weight} into {event.vault_payout} {event.vault_asset}",
        )
    return event.founder, None, ""
