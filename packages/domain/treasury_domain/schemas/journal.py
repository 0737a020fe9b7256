"""Append-only audit journal of treasury events.

The journal is the event-sourced record of everything the service committed.
State is rebuilt by replaying events, never stored here.
"""

import threading
from datetime import datetime
from typing import Annotated, List, Optional, Type, TypeVar, Union

from pydantic import Field, PrivateAttr

from .base import DomainModel
from .events import (
    TreasuryEvent,
    TreasuryCreated,
    InvestmentAdmitted,
    ProposalCreated,
    VoteCast,
    FundsWithdrawn,
    PositionRedeemed,
    PositionConverted,
)
from .snapshot import TreasurySnapshot
from ..transactions import record_undo


AnyTreasuryEvent = Annotated[
    Union[
        TreasuryCreated,
        InvestmentAdmitted,
        ProposalCreated,
        VoteCast,
        FundsWithdrawn,
        PositionRedeemed,
        PositionConverted,
    ],
    Field(discriminator="event_type"),
]

E = TypeVar("E", bound=TreasuryEvent)


class TreasuryJournal(DomainModel):
    """Chronological history of treasury events (append-only).

    Example:
        journal = TreasuryJournal()
        journal.record(InvestmentAdmitted, founder="founder_alice",
                       occurred_at=now, investor="investor_a",
                       requested=25, admitted=20)

        snapshot = journal.snapshot("founder_alice")
        snapshot.positions  # {"investor_a": 20}
    """

    events: List[AnyTreasuryEvent] = Field(
        default_factory=list,
        description="Events in sequence order"
    )

    _lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)
    _next_sequence: int = PrivateAttr(default=0)

    def model_post_init(self, __context) -> None:
        if self.events:
            self._next_sequence = max(e.sequence for e in self.events) + 1

    def record(self, event_cls: Type[E], *, founder: str, occurred_at: datetime, **fields) -> E:
        """Build an event with the next sequence number and append it.

        Inside ``atomic()`` the append is undone if the operation aborts.
        """
        with self._lock:
            event = event_cls(
                sequence=self._next_sequence,
                founder=founder,
                occurred_at=occurred_at,
                **fields,
            )
            self._next_sequence += 1
            self.events.append(event)
        record_undo(lambda: self._discard(event))
        return event

    def _discard(self, event: TreasuryEvent) -> None:
        with self._lock:
            for i, existing in enumerate(self.events):
                if existing is event:
                    del self.events[i]
                    break

    def events_for(self, founder: str) -> List[TreasuryEvent]:
        with self._lock:
            return [e for e in self.events if e.founder == founder]

    def snapshot(self, founder: str, as_of_sequence: Optional[int] = None) -> TreasurySnapshot:
        """Replay a founder's events up to ``as_of_sequence`` (inclusive).

        Args:
            founder: Founder whose treasury to rebuild
            as_of_sequence: Last sequence to apply (None = all events)

        Returns:
            TreasurySnapshot with the replayed state
        """
        snapshot = TreasurySnapshot(founder=founder)
        for event in sorted(self.events_for(founder), key=lambda e: e.sequence):
            if as_of_sequence is not None and event.sequence > as_of_sequence:
                break
            event.apply(snapshot)
            snapshot.as_of_sequence = event.sequence
        return snapshot
