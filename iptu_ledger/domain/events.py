"""
Ledger events -- immutable records of what the ledger did.

Each event is a frozen dataclass.  ``EventLog`` persists them as
``LedgerEvent`` rows; ``to_payload()`` is the canonical JSON form that is
hashed into the event chain.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, ClassVar

from iptu_ledger.models.event import LedgerEventType


@dataclass(frozen=True)
class LedgerEventData:
    """Base for all ledger events."""

    event_type: ClassVar[LedgerEventType]

    @property
    def assessment_id(self) -> str | None:
        return None

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        for key, value in payload.items():
            if isinstance(value, datetime):
                payload[key] = value.isoformat()
        return payload


@dataclass(frozen=True)
class TreasuryUpdated(LedgerEventData):
    event_type: ClassVar[LedgerEventType] = LedgerEventType.TREASURY_UPDATED

    old: str
    new: str


@dataclass(frozen=True)
class AdminTransferred(LedgerEventData):
    event_type: ClassVar[LedgerEventType] = LedgerEventType.ADMIN_TRANSFERRED

    old: str
    new: str


@dataclass(frozen=True)
class AssessmentCreated(LedgerEventData):
    event_type: ClassVar[LedgerEventType] = LedgerEventType.ASSESSMENT_CREATED

    id: str
    registration_code: str
    taxpayer: str
    year: int
    total: int
    installment_count: int
    installment_amount: int

    @property
    def assessment_id(self) -> str | None:
        return self.id


@dataclass(frozen=True)
class InstallmentPaid(LedgerEventData):
    event_type: ClassVar[LedgerEventType] = LedgerEventType.INSTALLMENT_PAID

    id: str
    installment_number: int
    payer: str
    amount: int
    timestamp: datetime

    @property
    def assessment_id(self) -> str | None:
        return self.id


@dataclass(frozen=True)
class FundsForwarded(LedgerEventData):
    event_type: ClassVar[LedgerEventType] = LedgerEventType.FUNDS_FORWARDED

    to: str
    amount: int
