"""Utility functions for the IPTU ledger."""

from iptu_ledger.utils.hashing import (
    canonicalize_json,
    compute_assessment_id,
    hash_ledger_event,
    hash_payload,
)
from iptu_ledger.utils.validation import is_positive_int, is_strict_int

__all__ = [
    "canonicalize_json",
    "compute_assessment_id",
    "hash_ledger_event",
    "hash_payload",
    "is_positive_int",
    "is_strict_int",
]
