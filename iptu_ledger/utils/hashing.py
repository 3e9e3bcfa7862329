"""
Deterministic hashing utilities.

All hashing in the ledger must be deterministic and reproducible.  The
assessment identifier and the event chain are both derived here.
"""

import hashlib
import json
from datetime import date, datetime
from typing import Any
from uuid import UUID


def _json_serializer(obj: Any) -> Any:
    """
    Custom JSON serializer for types not natively supported.

    Raises:
        TypeError: If object type is not supported.
    """
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, bytes):
        return obj.hex()

    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonicalize_json(data: dict | list | Any) -> str:
    """
    Convert data to canonical JSON string.

    Keys are sorted, no whitespace, special types handled consistently.
    """
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        default=_json_serializer,
    )


def hash_payload(payload: dict) -> str:
    """
    Compute SHA-256 hash of a payload.

    Returns:
        Hex-encoded SHA-256 hash (64 characters).
    """
    canonical = canonicalize_json(payload)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def compute_assessment_id(registration_code: str, year: int) -> str:
    """
    Deterministic assessment identifier for ``(registration_code, year)``.

    The taxpayer is not part of the key: one property has at most one
    assessment per year, whoever owes it.
    """
    return hash_payload({"registration_code": registration_code, "year": int(year)})


def hash_ledger_event(
    event_type: str,
    assessment_id: str | None,
    payload_hash: str,
    prev_hash: str | None,
) -> str:
    """
    Compute the chained hash of a ledger event.

    The hash includes the previous event's hash, creating a
    tamper-evident chain.
    """
    components = [
        event_type,
        assessment_id or "",
        payload_hash,
        prev_hash or "GENESIS",
    ]
    data = "|".join(components)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()
