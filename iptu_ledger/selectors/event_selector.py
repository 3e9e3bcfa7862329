"""
Module: iptu_ledger.selectors.event_selector
Responsibility: Read-only queries over the ledger event log.
Architecture position: Ledger > Selectors.
"""

from sqlalchemy import select

from iptu_ledger.domain.dtos import RecordedEvent
from iptu_ledger.models.event import LedgerEvent, LedgerEventType
from iptu_ledger.selectors.base import BaseSelector


def to_recorded(event: LedgerEvent) -> RecordedEvent:
    event_type = event.event_type
    if isinstance(event_type, LedgerEventType):
        event_type = event_type.value
    return RecordedEvent(
        id=event.id,
        seq=event.seq,
        event_type=event_type,
        assessment_id=event.assessment_id,
        occurred_at=event.occurred_at,
        payload=dict(event.payload),
        hash=event.hash,
    )


class EventSelector(BaseSelector):
    """Queries over ledger events, always in sequence order."""

    def list_events(
        self,
        event_type: LedgerEventType | str | None = None,
        assessment_id: str | None = None,
    ) -> list[RecordedEvent]:
        stmt = select(LedgerEvent)
        if event_type is not None:
            value = event_type.value if isinstance(event_type, LedgerEventType) else event_type
            stmt = stmt.where(LedgerEvent.event_type == value)
        if assessment_id is not None:
            stmt = stmt.where(LedgerEvent.assessment_id == assessment_id)
        stmt = stmt.order_by(LedgerEvent.seq)
        return [to_recorded(e) for e in self.session.execute(stmt).scalars().all()]

    def latest(self) -> RecordedEvent | None:
        stmt = select(LedgerEvent).order_by(LedgerEvent.seq.desc()).limit(1)
        event = self.session.execute(stmt).scalar_one_or_none()
        return to_recorded(event) if event else None

    def count(self) -> int:
        return len(self.session.execute(select(LedgerEvent.id)).all())
