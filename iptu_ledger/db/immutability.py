"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

A paid installment can never be unmarked, an event can never be rewritten,
and an assessment persists indefinitely once created.  AssessmentLedger
never attempts any of these, but a caller holding the same Session could.
These listeners intercept such changes before the SQL reaches the database.

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_*_delete() --------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

Savepoint rollbacks performed by AssessmentLedger do not go through these
events; they undo rows written in the same call, which is the only way a
payment or event row ever disappears.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity             | Rule
-------------------|-----------------------------------------------------------
LedgerEvent        | Always immutable, never deleted
InstallmentPayment | Always immutable, never deleted
Assessment         | Structural fields frozen; paid counters never decrease;
                   | never deleted.  is_active may change.

===============================================================================
USAGE
===============================================================================

    from iptu_ledger.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect

from iptu_ledger.exceptions import ImmutabilityViolationError
from iptu_ledger.logging_config import get_logger

logger = get_logger("db.immutability")

# Fields fixed at assessment creation
ASSESSMENT_STRUCTURAL_FIELDS = frozenset({
    "registration_code",
    "taxpayer",
    "year",
    "total_amount",
    "installment_count",
    "installment_amount",
})

# Counters that may only grow
ASSESSMENT_MONOTONIC_FIELDS = frozenset({"paid_count", "paid_amount"})


def _blocked(entity_type: str, entity_id: str, operation: str, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
    )


def _check_event_immutability(mapper, connection, target):
    _blocked("LedgerEvent", str(target.id), "UPDATE",
             "Ledger events are immutable and cannot be modified")


def _check_event_delete(mapper, connection, target):
    _blocked("LedgerEvent", str(target.id), "DELETE",
             "Ledger events cannot be deleted")


def _check_payment_immutability(mapper, connection, target):
    _blocked("InstallmentPayment", str(target.id), "UPDATE",
             "Paid installments cannot be modified")


def _check_payment_delete(mapper, connection, target):
    _blocked("InstallmentPayment", str(target.id), "DELETE",
             "Paid installments cannot be unmarked")


def _check_assessment_immutability(mapper, connection, target):
    """
    Block structural edits and counter decreases on an Assessment.

    Uses attribute history so the check sees the value being replaced.
    """
    state = inspect(target)

    for field in ASSESSMENT_STRUCTURAL_FIELDS:
        history = state.attrs[field].history
        if history.has_changes() and history.deleted:
            _blocked("Assessment", target.id, "UPDATE",
                     f"Field '{field}' is fixed at creation")

    for field in ASSESSMENT_MONOTONIC_FIELDS:
        history = state.attrs[field].history
        if history.has_changes() and history.deleted and history.added:
            old, new = history.deleted[0], history.added[0]
            if old is not None and new is not None and new < old:
                _blocked("Assessment", target.id, "UPDATE",
                         f"Field '{field}' cannot decrease ({old} -> {new})")


def _check_assessment_delete(mapper, connection, target):
    _blocked("Assessment", target.id, "DELETE",
             "Assessments persist indefinitely once created")


_LISTENERS = (
    ("LedgerEvent", "before_update", _check_event_immutability),
    ("LedgerEvent", "before_delete", _check_event_delete),
    ("InstallmentPayment", "before_update", _check_payment_immutability),
    ("InstallmentPayment", "before_delete", _check_payment_delete),
    ("Assessment", "before_update", _check_assessment_immutability),
    ("Assessment", "before_delete", _check_assessment_delete),
)


def _models() -> dict:
    from iptu_ledger.models.assessment import Assessment, InstallmentPayment
    from iptu_ledger.models.event import LedgerEvent

    return {
        "Assessment": Assessment,
        "InstallmentPayment": InstallmentPayment,
        "LedgerEvent": LedgerEvent,
    }


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners (idempotent).
    """
    models = _models()
    for model_name, event_name, listener_fn in _LISTENERS:
        target = models[model_name]
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that intentionally violate
    immutability rules to verify detection.
    """
    models = _models()
    for model_name, event_name, listener_fn in _LISTENERS:
        target = models[model_name]
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
