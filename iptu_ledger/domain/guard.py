"""
ReentrancyGuard -- two-state (idle / busy) mutual exclusion.

Responsibility:
    Rejects any mutating ledger operation that begins while a fund-moving
    operation is in flight.  The fund-moving call (``ValueTransfer.send``)
    can run arbitrary recipient code, and that code may try to call back
    into the ledger.

Contract:
    - ``hold(operation)`` moves idle -> busy for the duration of the block
      and back to idle on exit, whether the block succeeded or raised.
    - Entering ``hold`` or calling ``ensure_idle`` while busy raises
      ``ReentrantCallError`` immediately.  There is no blocking and no
      queuing.
    - Reads never consult the guard.
"""

import threading
from contextlib import contextmanager
from typing import Iterator

from iptu_ledger.exceptions import ReentrantCallError
from iptu_ledger.logging_config import get_logger

logger = get_logger("domain.guard")


class ReentrancyGuard:
    """Busy flag backed by a non-blocking lock acquire."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._holder: str | None = None

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    @property
    def holder(self) -> str | None:
        """Name of the operation currently holding the guard."""
        return self._holder

    def ensure_idle(self, operation: str) -> None:
        """Raise if a guarded operation is in flight."""
        if self._lock.locked():
            self._reject(operation)

    @contextmanager
    def hold(self, operation: str) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            self._reject(operation)
        self._holder = operation
        try:
            yield
        finally:
            self._holder = None
            self._lock.release()

    def _reject(self, operation: str) -> None:
        logger.warning(
            "reentrant_call_rejected",
            extra={"rejected_operation": operation, "holder": self._holder},
        )
        raise ReentrantCallError(operation)


# Shared by every AssessmentLedger constructed without an explicit guard,
# so a second ledger instance cannot sidestep a payment in flight.
_ledger_guard = ReentrancyGuard()


def ledger_guard() -> ReentrancyGuard:
    """The process-wide guard."""
    return _ledger_guard
