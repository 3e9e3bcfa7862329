"""Domain layer -- pure values, collaborators and events."""

from iptu_ledger.domain.clock import Clock, DeterministicClock, SystemClock
from iptu_ledger.domain.dtos import (
    AssessmentSummary,
    InstallmentReceipt,
    PaymentRecord,
    RecordedEvent,
)
from iptu_ledger.domain.guard import ReentrancyGuard
from iptu_ledger.domain.identity import (
    NULL_IDENTITY,
    CallerIdentity,
    Identity,
    StaticCaller,
    is_null_identity,
)
from iptu_ledger.domain.transfer import (
    InMemoryValueTransfer,
    TransferReceipt,
    ValueTransfer,
    ValueTransferError,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "AssessmentSummary",
    "InstallmentReceipt",
    "PaymentRecord",
    "RecordedEvent",
    "ReentrancyGuard",
    "Identity",
    "NULL_IDENTITY",
    "CallerIdentity",
    "StaticCaller",
    "is_null_identity",
    "ValueTransfer",
    "ValueTransferError",
    "TransferReceipt",
    "InMemoryValueTransfer",
]
