"""
EventLog -- append-only, hash-chained ledger event log.

Responsibility:
    Persists ledger events (TreasuryUpdated, AdminTransferred,
    AssessmentCreated, InstallmentPaid, FundsForwarded) as ``LedgerEvent``
    rows and validates the hash chain.

Invariants enforced:
    - Sequence monotonicity via SequenceService (never raw SQL max+1).
    - Chain integrity: ``hash = H(event_type | assessment_id | payload_hash | prev_hash)``.
    - Append-only: rows are never modified or deleted (db/immutability.py).

Failure modes:
    - EventChainBrokenError: a recomputed hash does not match the stored
      one, or prev_hash does not match the predecessor's hash.

Audit relevance:
    Events are written inside the caller's SAVEPOINT, so an operation that
    fails after emitting an event leaves no trace of that event.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from iptu_ledger.domain.clock import Clock, SystemClock
from iptu_ledger.domain.dtos import RecordedEvent
from iptu_ledger.domain.events import LedgerEventData
from iptu_ledger.exceptions import EventChainBrokenError
from iptu_ledger.logging_config import get_logger
from iptu_ledger.models.event import LedgerEvent, LedgerEventType
from iptu_ledger.selectors.event_selector import EventSelector, to_recorded
from iptu_ledger.services.base import BaseService
from iptu_ledger.services.sequence_service import SequenceService
from iptu_ledger.utils.hashing import hash_ledger_event, hash_payload

logger = get_logger("services.event_log")


class EventLog(BaseService):
    """
    Append-only event log.

    Contract:
        ``append`` flushes one LedgerEvent row in the caller's transaction
        and returns its DTO.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._sequences = SequenceService(session)

    def _last_hash(self) -> str | None:
        stmt = select(LedgerEvent.hash).order_by(LedgerEvent.seq.desc()).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def append(
        self,
        event: LedgerEventData,
        assessment_id: str | None = None,
    ) -> RecordedEvent:
        """
        Append an event to the log.

        Args:
            event: The event to record.
            assessment_id: Overrides the assessment the event is indexed
                under (e.g. FundsForwarded emitted by a payment).
        """
        assessment_id = assessment_id or event.assessment_id
        payload = event.to_payload()
        payload_hash = hash_payload(payload)
        prev_hash = self._last_hash()
        seq = self._sequences.next_value(SequenceService.LEDGER_EVENT)

        row = LedgerEvent(
            seq=seq,
            event_type=event.event_type.value,
            assessment_id=assessment_id,
            occurred_at=self._clock.now(),
            payload=payload,
            payload_hash=payload_hash,
            prev_hash=prev_hash,
            hash=hash_ledger_event(
                event.event_type.value, assessment_id, payload_hash, prev_hash
            ),
        )
        self.session.add(row)
        self.session.flush()

        logger.info(
            "ledger_event_recorded",
            extra={
                "event_type": event.event_type.value,
                "seq": seq,
                "event_assessment_id": assessment_id,
            },
        )
        return to_recorded(row)

    def verify_chain(self) -> bool:
        """
        Validate the entire event chain.

        Raises:
            EventChainBrokenError: If validation fails at any point.
        """
        events = self.session.execute(
            select(LedgerEvent).order_by(LedgerEvent.seq)
        ).scalars().all()

        prev_hash: str | None = None
        for event in events:
            if event.prev_hash != prev_hash:
                logger.critical("event_chain_broken", extra={"seq": event.seq})
                raise EventChainBrokenError(
                    event.seq, prev_hash or "GENESIS", event.prev_hash or "GENESIS"
                )

            payload_hash = hash_payload(event.payload)
            event_type = getattr(event.event_type, "value", event.event_type)
            expected = hash_ledger_event(
                event_type, event.assessment_id, payload_hash, event.prev_hash
            )
            if payload_hash != event.payload_hash or expected != event.hash:
                logger.critical("event_chain_broken", extra={"seq": event.seq})
                raise EventChainBrokenError(event.seq, expected, event.hash)

            prev_hash = event.hash

        logger.info("event_chain_valid", extra={"event_count": len(events)})
        return True

    def list_events(
        self,
        event_type: LedgerEventType | str | None = None,
        assessment_id: str | None = None,
    ) -> list[RecordedEvent]:
        """Recorded events in sequence order, optionally filtered."""
        return EventSelector(self.session).list_events(event_type, assessment_id)
