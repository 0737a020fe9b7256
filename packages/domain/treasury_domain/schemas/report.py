"""Report configuration - top-level entry point for the Excel statement.

The TreasuryReportCFG ties together what the statement renderer needs:
- The replayed treasury snapshot
- The journal events behind it
- Display options (title, which sheets to include)
"""

from typing import List, Optional

from pydantic import Field, model_validator

from .base import DomainModel
from .journal import AnyTreasuryEvent
from .snapshot import TreasurySnapshot


class TreasuryReportCFG(DomainModel):
    """Configuration for one founder's treasury statement workbook.

    Example:
        config = TreasuryReportCFG.from_service(service, "founder_alice")
        TreasuryWorkbookRenderer(config).render("alice_statement.xlsx")
    """

    snapshot: TreasurySnapshot = Field(
        description="Replayed treasury state the statement reports on"
    )

    events: List[AnyTreasuryEvent] = Field(
        default_factory=list,
        description="Journal events for the Activity sheet (same founder as the snapshot)"
    )

    title: Optional[str] = Field(
        default=None,
        description="Statement title (default: '<founder> Treasury Statement')"
    )

    include_exit_quotes: bool = Field(
        default=True,
        description="Render the Exit Quotes sheet"
    )

    include_activity: bool = Field(
        default=True,
        description="Render the Activity sheet"
    )

    @model_validator(mode='after')
    def validate_events_match_founder(self) -> 'TreasuryReportCFG':
        strangers = {e.founder for e in self.events} - {self.snapshot.founder}
        if strangers:
            raise ValueError(
                f"Events for {sorted(strangers)} do not belong to {self.snapshot.founder}'s statement"
            )
        return self

    @property
    def resolved_title(self) -> str:
        return self.title or f"{self.snapshot.founder} Treasury Statement"

    @classmethod
    def from_service(cls, service, founder: str, **options) -> 'TreasuryReportCFG':
        """Build a report config from a TreasuryService's journal."""
        return cls(
            snapshot=service.snapshot(founder),
            events=service.events(founder),
            **options,
        )
