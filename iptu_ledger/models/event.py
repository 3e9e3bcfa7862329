"""
Module: iptu_ledger.models.event
Responsibility: ORM persistence for the append-only ledger event log
    (TreasuryUpdated, AdminTransferred, AssessmentCreated, InstallmentPaid,
    FundsForwarded).
Architecture position: Ledger > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only; no UPDATE or DELETE (ORM listeners in db/immutability.py).
    - seq is strictly monotonic, allocated by SequenceService.
    - Hash chain: hash = H(event_type | assessment_id | payload_hash | prev_hash).
      Validated by EventLog.verify_chain().

Audit relevance:
    Events written during an operation that later fails are rolled back
    together with the operation's state changes, so the log only ever
    contains effects that actually happened.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import JSON, BigInteger, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from iptu_ledger.db.base import Base, UUIDString


class LedgerEventType(str, Enum):
    """Types of ledger events."""

    TREASURY_UPDATED = "TreasuryUpdated"
    ADMIN_TRANSFERRED = "AdminTransferred"
    ASSESSMENT_CREATED = "AssessmentCreated"
    INSTALLMENT_PAID = "InstallmentPaid"
    FUNDS_FORWARDED = "FundsForwarded"


class LedgerEvent(Base):
    """
    One entry of the ledger event log.

    Contract:
        Rows are never updated or deleted.  Each row's hash covers the
        previous row's hash, so any retroactive edit is detectable.
    """

    __tablename__ = "ledger_events"

    __table_args__ = (
        Index("idx_event_type", "event_type"),
        Index("idx_event_assessment", "assessment_id"),
    )

    id: Mapped[UUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )

    seq: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        unique=True,
    )

    event_type: Mapped[LedgerEventType] = mapped_column(
        String(50),
        nullable=False,
    )

    # Null for events that are not about a single assessment
    assessment_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
    )

    payload_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    prev_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    @property
    def is_genesis(self) -> bool:
        return self.prev_hash is None

    def __repr__(self) -> str:
        return f"<LedgerEvent #{self.seq} {self.event_type}>"
