"""
Event sequence numbers.

Each named sequence is one ``sequence_counters`` row.  A value is taken by
locking that row (``FOR UPDATE`` on backends that support it) and bumping
it, so two writers can never see the same number and numbering never
depends on ``max(seq) + 1`` over the event table.  The bump belongs to the
caller's transaction: if the caller rolls back, the number is handed out
again.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from iptu_ledger.logging_config import get_logger
from iptu_ledger.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """Flush-only allocator over the counter table."""

    LEDGER_EVENT = "ledger_event"

    def __init__(self, session: Session):
        self._session = session

    def next_value(self, name: str) -> int:
        """Return the next value of ``name``, starting at 1."""
        counter = self._lock(name)
        if counter is None:
            self._create(name)
            counter = self._lock(name)

        counter.current_value += 1
        self._session.flush()
        logger.debug("sequence_allocated", extra={"sequence_name": name, "value": counter.current_value})
        return counter.current_value

    def _lock(self, name: str) -> SequenceCounter | None:
        stmt = (
            select(SequenceCounter)
            .where(SequenceCounter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._session.scalars(stmt).one_or_none()

    def _create(self, name: str) -> None:
        # Savepoint: losing the insert race must not abort the caller's work
        try:
            with self._session.begin_nested():
                self._session.add(SequenceCounter(name=name, current_value=0))
                self._session.flush()
        except IntegrityError:
            logger.debug("sequence_counter_created_concurrently", extra={"sequence_name": name})
