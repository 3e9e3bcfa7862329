"""
Immutable DTOs returned by the ledger.

Services and selectors return these instead of ORM entities so callers
never hold objects attached to the ledger's Session.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class AssessmentSummary:
    """All assessment fields except the paid-set."""

    id: str
    registration_code: str
    taxpayer: str
    year: int
    total_amount: int
    installment_count: int
    installment_amount: int
    paid_count: int
    paid_amount: int
    active: bool

    @property
    def outstanding_amount(self) -> int:
        return self.total_amount - self.paid_amount

    @property
    def is_fully_paid(self) -> bool:
        return self.paid_count == self.installment_count


@dataclass(frozen=True)
class PaymentRecord:
    """One paid installment."""

    assessment_id: str
    installment_number: int
    payer: str
    amount: int
    paid_at: datetime


@dataclass(frozen=True)
class InstallmentReceipt:
    """Result of a successful installment payment."""

    assessment_id: str
    installment_number: int
    payer: str
    amount: int
    paid_at: datetime
    forwarded_to: str
    transfer_reference: str | None
    paid_count: int
    paid_amount: int


@dataclass(frozen=True)
class RecordedEvent:
    """An event as stored in the ledger event log."""

    id: UUID
    seq: int
    event_type: str
    assessment_id: str | None
    occurred_at: datetime
    payload: dict[str, Any]
    hash: str
