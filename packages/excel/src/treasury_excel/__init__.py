"""Excel statements for governance-gated treasuries."""

from .statement_renderer import TreasuryWorkbookRenderer

__all__ = ["TreasuryWorkbookRenderer"]
