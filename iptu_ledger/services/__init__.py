"""Write services for the IPTU ledger."""

from iptu_ledger.services.base import BaseService
from iptu_ledger.services.event_log import EventLog
from iptu_ledger.services.ledger_service import AssessmentLedger
from iptu_ledger.services.role_registry import RoleRegistry
from iptu_ledger.services.sequence_service import SequenceService

__all__ = [
    "BaseService",
    "AssessmentLedger",
    "EventLog",
    "RoleRegistry",
    "SequenceService",
]
