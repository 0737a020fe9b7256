"""Treasury statement renderer: one workbook per founder."""

from __future__ import annotations

from typing import Dict, List, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from treasury_domain.blocks import (
    ActivityBlock,
    BlockContext,
    BlockExecutor,
    ExitQuoteBlock,
    PositionsBlock,
    ProposalsBlock,
)
from treasury_domain.core.redemption import REDEMPTION_DENOMINATOR, REDEMPTION_NUMERATOR
from treasury_domain.schemas import TreasuryReportCFG


SUMMARY_SHEET = "Summary"
POSITIONS_SHEET = "Positions"
PROPOSALS_SHEET = "Proposals"
EXIT_QUOTES_SHEET = "Exit Quotes"
ACTIVITY_SHEET = "Activity"

AMOUNT_FORMAT = "#,##0"
PERCENT_FORMAT = "0.00%"


class TreasuryWorkbookRenderer:
    """Render a treasury statement from the reporting blocks.

    Values read from the journal are hardcoded in blue; derived values (gap,
    funded %, voting %, exit quotes, totals) are live formulas in black so
    the workbook stays consistent if someone edits an input.
    """

    def __init__(self, config: TreasuryReportCFG):
        self.config = config

        self.blue_font = Font(color="0000FF")  # Values from the journal
        self.black_font = Font(color="000000")  # Formulas
        self.bold_font = Font(bold=True)
        self.title_font = Font(bold=True, size=14)

        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
        self.total_fill = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")

        self.thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )
        self.top_border = Border(top=Side(style='medium'))
        self.center_align = Alignment(horizontal='center', vertical='center')

        # Summary metric → cell reference, for cross-sheet formulas
        self._summary_cells: Dict[str, str] = {}

    def render(self, output_path: str) -> str:
        wb = self.build_workbook()
        wb.save(output_path)
        return output_path

    def build_workbook(self) -> Workbook:
        context = self._run_blocks()

        wb = Workbook()
        wb.remove(wb.active)

        self._render_summary(wb, context.get("treasury_summary"))
        self._render_positions(wb, context.get("investor_positions"))
        self._render_proposals(wb, context.get("proposal_tallies"))
        if self.config.include_exit_quotes:
            self._render_exit_quotes(wb, context.get("exit_quotes"))
        if self.config.include_activity:
            self._render_activity(wb, context.get("treasury_activity"))

        return wb

    def _run_blocks(self) -> BlockContext:
        context = BlockContext()
        context.set("treasury_snapshot", self.config.snapshot)
        context.set("treasury_events", list(self.config.events))

        blocks = [PositionsBlock(), ProposalsBlock()]
        if self.config.include_exit_quotes:
            blocks.append(ExitQuoteBlock())
        if self.config.include_activity:
            blocks.append(ActivityBlock())

        return BlockExecutor(blocks).execute(context)

    # ------------------------------------------------------------------ #
    # Summary
    # ------------------------------------------------------------------ #

    def _render_summary(self, wb: Workbook, summary_df: pd.DataFrame) -> None:
        ws = wb.create_sheet(SUMMARY_SHEET)
        summary = summary_df.iloc[0]

        ws["A1"] = self.config.resolved_title
        ws["A1"].font = self.title_font

        labels = [
            ("founder", "Founder"),
            ("asset_type", "Funding Asset"),
            ("vault_asset", "Vault Asset"),
            ("balance", "Treasury Balance"),
            ("target_cap", "Target Cap"),
            ("gap", "Funding Gap"),
            ("funded_pct", "Funded %"),
            ("min_voting_threshold", "Min Voting Threshold"),
            ("vault_balance", "Founder Vault Balance"),
            ("investors_count", "Open Positions"),
            ("total_invested", "Total Invested"),
            ("total_withdrawn", "Total Withdrawn"),
            ("total_redeemed", "Total Redeemed (paid out)"),
            ("total_converted", "Total Converted (to founder)"),
        ]

        row = 3
        for key, label in labels:
            ws.cell(row=row, column=1, value=label).font = self.bold_font
            self._summary_cells[key] = f"B{row}"
            row += 1

        cells = self._summary_cells
        for key, _ in labels:
            cell = ws[cells[key]]
            if key == "gap":
                cell.value = f"={cells['target_cap']}-{cells['balance']}"
                cell.font = self.black_font
                cell.number_format = AMOUNT_FORMAT
            elif key == "funded_pct":
                cell.value = f"=IF({cells['target_cap']}>0,{cells['balance']}/{cells['target_cap']},0)"
                cell.font = self.black_font
                cell.number_format = PERCENT_FORMAT
            else:
                cell.value = _cell_value(summary[key])
                cell.font = self.blue_font
                if isinstance(cell.value, int):
                    cell.number_format = AMOUNT_FORMAT

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 22

    # ------------------------------------------------------------------ #
    # Positions
    # ------------------------------------------------------------------ #

    def _render_positions(self, wb: Workbook, positions_df: pd.DataFrame) -> None:
        ws = wb.create_sheet(POSITIONS_SHEET)
        self._write_header(ws, ["Investor", "Weight", "Voting %"])

        first = 2
        last = first + len(positions_df) - 1
        total_row = last + 1
        weight_range = f"$B${first}:$B${max(last, first)}"

        for offset, (_, position) in enumerate(positions_df.iterrows()):
            row = first + offset
            ws.cell(row=row, column=1, value=position["investor"])
            weight = ws.cell(row=row, column=2, value=int(position["weight"]))
            weight.font = self.blue_font
            weight.number_format = AMOUNT_FORMAT
            pct = ws.cell(row=row, column=3, value=f"=IF(SUM({weight_range})>0,B{row}/SUM({weight_range}),0)")
            pct.font = self.black_font
            pct.number_format = PERCENT_FORMAT

        self._write_total_row(ws, total_row, first, last, sum_columns=[2, 3])
        self._autosize(ws, [18, 14, 12])

    # ------------------------------------------------------------------ #
    # Proposals
    # ------------------------------------------------------------------ #

    def _render_proposals(self, wb: Workbook, tallies_df: pd.DataFrame) -> None:
        ws = wb.create_sheet(PROPOSALS_SHEET)
        self._write_header(ws, [
            "Proposal",
            "Amount",
            "Beneficiary",
            "Threshold",
            "Yes",
            "No",
            "Total Votes",
            "Quorum Met",
            "Yes Leading",
            "Withdrawn",
        ])

        for offset, (_, tally) in enumerate(tallies_df.iterrows()):
            row = 2 + offset
            ws.cell(row=row, column=1, value=int(tally["proposal_id"]))
            for column, key in ((2, "amount"), (4, "min_vote_threshold"), (5, "yes_votes"), (6, "no_votes")):
                cell = ws.cell(row=row, column=column, value=int(tally[key]))
                cell.font = self.blue_font
                cell.number_format = AMOUNT_FORMAT
            ws.cell(row=row, column=3, value=tally["beneficiary"])

            ws.cell(row=row, column=7, value=f"=E{row}+F{row}").font = self.black_font
            ws.cell(row=row, column=8, value=f'=IF(G{row}>=D{row},"Yes","No")').font = self.black_font
            ws.cell(row=row, column=9, value=f'=IF(E{row}>F{row},"Yes","No")').font = self.black_font
            ws.cell(row=row, column=10, value="Yes" if tally["withdrawn"] else "No")

        self._autosize(ws, [10, 12, 18, 11, 10, 10, 12, 12, 12, 11])

    # ------------------------------------------------------------------ #
    # Exit Quotes
    # ------------------------------------------------------------------ #

    def _render_exit_quotes(self, wb: Workbook, quotes_df: pd.DataFrame) -> None:
        ws = wb.create_sheet(EXIT_QUOTES_SHEET)
        self._write_header(ws, [
            "Investor",
            "Weight",
            "Redeem Payout",
            "Redeem Penalty",
            "Convert: Principal to Founder",
            "Convert: Vault Payout",
        ])

        vault_ref = f"{SUMMARY_SHEET}!${_col(self._summary_cells['vault_balance'])}${_row(self._summary_cells['vault_balance'])}"
        cap_ref = f"{SUMMARY_SHEET}!${_col(self._summary_cells['target_cap'])}${_row(self._summary_cells['target_cap'])}"

        first = 2
        last = first + len(quotes_df) - 1
        for offset, (_, quote) in enumerate(quotes_df.iterrows()):
            row = first + offset
            ws.cell(row=row, column=1, value=quote["investor"])
            weight = ws.cell(row=row, column=2, value=int(quote["weight"]))
            weight.font = self.blue_font
            weight.number_format = AMOUNT_FORMAT

            formulas = [
                f"=INT(B{row}*{REDEMPTION_NUMERATOR}/{REDEMPTION_DENOMINATOR})",
                f"=B{row}-C{row}",
                f"=B{row}",
                f"=IF({cap_ref}>0,INT(B{row}*{vault_ref}/{cap_ref}),0)",
            ]
            for column, formula in enumerate(formulas, start=3):
                cell = ws.cell(row=row, column=column, value=formula)
                cell.font = self.black_font
                cell.number_format = AMOUNT_FORMAT

        self._write_total_row(ws, last + 1, first, last, sum_columns=[2, 3, 4, 5, 6])
        self._autosize(ws, [18, 12, 15, 15, 28, 22])

    # ------------------------------------------------------------------ #
    # Activity
    # ------------------------------------------------------------------ #

    def _render_activity(self, wb: Workbook, activity_df: pd.DataFrame) -> None:
        ws = wb.create_sheet(ACTIVITY_SHEET)
        self._write_header(ws, ["#", "When (UTC)", "Event", "Account", "Amount", "Detail"])

        for offset, (_, entry) in enumerate(activity_df.iterrows()):
            row = 2 + offset
            ws.cell(row=row, column=1, value=int(entry["sequence"]))
            when = pd.Timestamp(entry["occurred_at"])
            ws.cell(row=row, column=2, value=when.strftime("%Y-%m-%d %H:%M:%S"))
            ws.cell(row=row, column=3, value=entry["event_type"])
            ws.cell(row=row, column=4, value=entry["account"])
            amount = _cell_value(entry["amount"])
            cell = ws.cell(row=row, column=5, value=amount)
            if amount is not None:
                cell.font = self.blue_font
                cell.number_format = AMOUNT_FORMAT
            ws.cell(row=row, column=6, value=entry["detail"])

        self._autosize(ws, [6, 20, 20, 18, 12, 60])

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _write_header(self, ws: Worksheet, headers: List[str]) -> None:
        for column, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=column, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.center_align
            cell.border = self.thin_border

    def _write_total_row(self, ws: Worksheet, row: int, first: int, last: int, sum_columns: List[int]) -> None:
        label = ws.cell(row=row, column=1, value="Total")
        label.font = self.bold_font
        label.fill = self.total_fill
        label.border = self.top_border
        for column in sum_columns:
            letter = get_column_letter(column)
            value = f"=SUM({letter}{first}:{letter}{last})" if last >= first else 0
            cell = ws.cell(row=row, column=column, value=value)
            cell.font = self.bold_font
            cell.fill = self.total_fill
            cell.border = self.top_border
            cell.number_format = ws.cell(row=first, column=column).number_format

    def _autosize(self, ws: Worksheet, widths: List[int]) -> None:
        for column, width in enumerate(widths, start=1):
            ws.column_dimensions[get_column_letter(column)].width = width


def _cell_value(value) -> Optional[object]:
    """Convert pandas/numpy scalars to plain Python values openpyxl accepts."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    if hasattr(value, "item"):
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _col(ref: str) -> str:
    return "".join(ch for ch in ref if ch.isalpha())


def _row(ref: str) -> str:
    return "".join(ch for ch in ref if ch.isdigit())
