"""ORM models for the IPTU ledger."""

from iptu_ledger.models.assessment import Assessment, InstallmentPayment
from iptu_ledger.models.event import LedgerEvent, LedgerEventType
from iptu_ledger.models.role import LedgerRole, LedgerRoleName
from iptu_ledger.models.sequence import SequenceCounter

__all__ = [
    "Assessment",
    "InstallmentPayment",
    "LedgerEvent",
    "LedgerEventType",
    "LedgerRole",
    "LedgerRoleName",
    "SequenceCounter",
]
