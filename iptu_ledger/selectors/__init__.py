"""Read-only selectors for the IPTU ledger."""

from iptu_ledger.selectors.assessment_selector import AssessmentSelector
from iptu_ledger.selectors.event_selector import EventSelector

__all__ = ["AssessmentSelector", "EventSelector"]
