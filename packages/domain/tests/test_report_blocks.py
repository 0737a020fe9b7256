"""Tests for the reporting blocks.

Tests cover:
- BlockContext, dependency ordering and executor validation
- PositionsBlock, ProposalsBlock, ExitQuoteBlock and ActivityBlock output
  against a replayed snapshot of the reference treasury
"""

from typing import List

import pandas as pd
import pytest

from treasury_domain.blocks import (
    ActivityBlock,
    Block,
    BlockContext,
    BlockExecutor,
    ExitQuoteBlock,
    PositionsBlock,
    ProposalsBlock,
)
from treasury_domain.blocks.base import CircularDependencyError, topological_sort
from treasury_domain.schemas import TreasurySnapshot

from conftest import FINGERPRINT, FOUNDER, INVESTOR_A, INVESTOR_B


class _Stub(Block):
    def __init__(self, reads: List[str], writes: List[str], skip_write: bool = False):
        self._reads = reads
        self._writes = writes
        self._skip_write = skip_write

    def inputs(self) -> List[str]:
        return self._reads

    def outputs(self) -> List[str]:
        return self._writes

    def execute(self, context: BlockContext) -> None:
        if not self._skip_write:
            for key in self._writes:
                context.set(key, key)


def run_blocks(service, *blocks):
    context = BlockContext()
    context.set("treasury_snapshot", service.snapshot(FOUNDER))
    context.set("treasury_events", service.events(FOUNDER))
    return BlockExecutor(list(blocks)).execute(context)


# =============================================================================
# Block Infrastructure
# =============================================================================

class TestBlockInfrastructure:
    """Context, ordering and executor checks."""

    def test_context_missing_key_names_available_keys(self):
        context = BlockContext()
        context.set("a", 1)
        with pytest.raises(KeyError, match="Available keys"):
            context.get("b")

    def test_producers_run_before_consumers(self):
        consumer = _Stub(["mid"], ["end"])
        producer = _Stub(["start"], ["mid"])
        assert topological_sort([consumer, producer]) == [producer, consumer]

    def test_cycle_detected(self):
        with pytest.raises(CircularDependencyError):
            topological_sort([_Stub(["a"], ["b"]), _Stub(["b"], ["a"])])

    def test_duplicate_output_rejected(self):
        with pytest.raises(ValueError):
            topological_sort([_Stub([], ["a"]), _Stub([], ["a"])])

    def test_missing_input_rejected(self):
        with pytest.raises(KeyError):
            BlockExecutor([_Stub(["absent"], ["x"])]).execute(BlockContext())

    def test_missing_output_rejected(self):
        with pytest.raises(ValueError):
            BlockExecutor([_Stub([], ["x"], skip_write=True)]).execute(BlockContext())


# =============================================================================
# Positions
# =============================================================================

class TestPositionsBlock:
    """Investor positions and the treasury summary."""

    def test_positions_sorted_by_weight(self, funded):
        df = run_blocks(funded, PositionsBlock()).get("investor_positions")

        assert list(df["investor"]) == [INVESTOR_A, INVESTOR_B]
        assert list(df["weight"]) == [20, 10]
        assert df["voting_pct"].sum() == pytest.approx(100.0)
        assert df.loc[0, "voting_pct"] == pytest.approx(66.6667, rel=1e-4)

    def test_summary(self, funded):
        summary = run_blocks(funded, PositionsBlock()).get("treasury_summary").iloc[0]

        assert summary["balance"] == 30
        assert summary["target_cap"] == 30
        assert summary["gap"] == 0
        assert summary["funded_pct"] == pytest.approx(100.0)
        assert summary["min_voting_threshold"] == 10
        assert summary["vault_balance"] == 1_000
        assert summary["investors_count"] == 2

    def test_empty_treasury_keeps_columns(self, created):
        context = run_blocks(created, PositionsBlock())
        df = context.get("investor_positions")

        assert df.empty
        assert list(df.columns) == ["investor", "weight", "voting_pct"]
        assert context.get("treasury_summary").iloc[0]["funded_pct"] == 0.0

    def test_custom_snapshot_key(self):
        context = BlockContext()
        context.set("other", TreasurySnapshot(founder=FOUNDER, target_cap=10, positions={INVESTOR_A: 4}))
        PositionsBlock(snapshot_key="other").execute(context)
        assert context.get("investor_positions").loc[0, "voting_pct"] == pytest.approx(100.0)


# =============================================================================
# Proposals
# =============================================================================

def test_proposal_tallies(funded):
    first = funded.propose(FOUNDER, 20, FOUNDER, FINGERPRINT)
    second = funded.propose(FOUNDER, 5, "ops_wallet", FINGERPRINT)
    funded.vote(INVESTOR_A, FOUNDER, first, approve=True)
    funded.vote(INVESTOR_B, FOUNDER, first, approve=False)
    funded.vote(INVESTOR_B, FOUNDER, second, approve=True)

    df = run_blocks(funded, ProposalsBlock()).get("proposal_tallies")

    assert list(df["proposal_id"]) == [first, second]
    row = df.iloc[0]
    assert (row["yes_votes"], row["no_votes"], row["total_votes"]) == (20, 10, 30)
    assert bool(row["quorum_met"]) and bool(row["yes_leading"])
    assert not bool(row["withdrawn"])
    assert df.iloc[1]["beneficiary"] == "ops_wallet"
    assert bool(df.iloc[1]["quorum_met"])


# =============================================================================
# Exit Quotes
# =============================================================================

def test_exit_quotes_match_engine_arithmetic(funded):
    context = run_blocks(funded, ExitQuoteBlock(), PositionsBlock())
    quotes = context.get("exit_quotes").set_index("investor")

    assert quotes.loc[INVESTOR_A, "redeem_payout"] == 18
    assert quotes.loc[INVESTOR_A, "redeem_penalty"] == 2
    assert quotes.loc[INVESTOR_A, "convert_vault_payout"] == 666
    assert quotes.loc[INVESTOR_B, "redeem_payout"] == 9
    assert quotes.loc[INVESTOR_B, "convert_principal_to_founder"] == 10
    assert quotes.loc[INVESTOR_B, "convert_vault_payout"] == 333

    # The quote for investor_b is what the engine actually pays
    assert funded.convert_all(INVESTOR_B, FOUNDER, "usd_coin", "alice_token") == 333


# =============================================================================
# Activity
# =============================================================================

def test_activity_rows_follow_journal(funded):
    df = run_blocks(funded, ActivityBlock()).get("treasury_activity")

    assert list(df["event_type"]) == ["treasury_created", "investment_admitted", "investment_admitted"]
    assert list(df["account"]) == [FOUNDER, INVESTOR_A, INVESTOR_B]
    assert pd.isna(df.iloc[0]["amount"])
    assert df.iloc[1]["amount"] == 20
    assert "admitted 20" in df.iloc[1]["detail"]


def test_activity_for_empty_event_list():
    context = BlockContext()
    context.set("treasury_events", [])
    ActivityBlock().execute(context)
    assert context.get("treasury_activity").empty
