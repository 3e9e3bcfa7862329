"""
IPTU Ledger - municipal property-tax assessments and installment payments.

The treasury records yearly assessments per property, taxpayers pay them
in equal installments, and every payment is forwarded to the treasury in
the same call.

Entry point:
    from iptu_ledger import AssessmentLedger, StaticCaller

    ledger = AssessmentLedger.bootstrap(session, transfer, admin, treasury)
"""

from iptu_ledger.config import LedgerConfig, load_config
from iptu_ledger.domain.clock import Clock, DeterministicClock, SystemClock
from iptu_ledger.domain.dtos import (
    AssessmentSummary,
    InstallmentReceipt,
    PaymentRecord,
    RecordedEvent,
)
from iptu_ledger.domain.guard import ReentrancyGuard
from iptu_ledger.domain.identity import CallerIdentity, StaticCaller
from iptu_ledger.domain.transfer import (
    InMemoryValueTransfer,
    ValueTransfer,
    ValueTransferError,
)
from iptu_ledger.exceptions import IptuLedgerError
from iptu_ledger.services.ledger_service import AssessmentLedger

__version__ = "0.1.0"

__all__ = [
    "AssessmentLedger",
    "LedgerConfig",
    "load_config",
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "AssessmentSummary",
    "InstallmentReceipt",
    "PaymentRecord",
    "RecordedEvent",
    "ReentrancyGuard",
    "CallerIdentity",
    "StaticCaller",
    "ValueTransfer",
    "ValueTransferError",
    "InMemoryValueTransfer",
    "IptuLedgerError",
]
