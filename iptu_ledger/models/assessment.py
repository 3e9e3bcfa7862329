"""
Module: iptu_ledger.models.assessment
Responsibility: ORM persistence for yearly property-tax assessments and the
    installments paid against them.
Architecture position: Ledger > Models.  May import from db/base.py only.

Invariants enforced:
    - One assessment per (registration_code, year): the primary key is the
      deterministic hash of that pair, and uq_assessment_code_year backs it.
    - installment_amount * installment_count == total_amount (validated by
      AssessmentLedger at creation, never re-validated).
    - A paid installment is a row in installment_payments; the unique
      constraint uq_payment_installment makes double payment impossible
      even if the service check were bypassed.
    - paid_count == number of payment rows and
      paid_amount == paid_count * installment_amount.

Failure modes:
    - IntegrityError on duplicate (registration_code, year) or duplicate
      (assessment_id, installment_number).
    - ImmutabilityViolationError (db/immutability.py) on structural edits,
      payment row edits, or any delete.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from iptu_ledger.db.base import Base, TrackedBase, UUIDString

ASSESSMENT_ID_LENGTH = 64
IDENTITY_LENGTH = 128


class Assessment(TrackedBase):
    """
    One year's IPTU obligation for one property.

    Contract:
        Created once by the treasury role; afterwards only the paid
        counters (via payments) and is_active (via admin) change.
        Assessments are never deleted.

    Non-goals:
        - Does NOT check roles or amounts; AssessmentLedger does.
    """

    __tablename__ = "assessments"

    __table_args__ = (
        UniqueConstraint("registration_code", "year", name="uq_assessment_code_year"),
        Index("idx_assessment_taxpayer", "taxpayer"),
        Index("idx_assessment_year", "year"),
    )

    id: Mapped[str] = mapped_column(
        String(ASSESSMENT_ID_LENGTH),
        primary_key=True,
    )

    # Cadastral identifier of the property
    registration_code: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    taxpayer: Mapped[str] = mapped_column(
        String(IDENTITY_LENGTH),
        nullable=False,
    )

    year: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Amounts are in the smallest currency unit
    total_amount: Mapped[int] = mapped_column(nullable=False)

    installment_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    installment_amount: Mapped[int] = mapped_column(nullable=False)

    paid_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    paid_amount: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    payments: Mapped[list["InstallmentPayment"]] = relationship(
        back_populates="assessment",
        order_by="InstallmentPayment.installment_number",
    )

    @property
    def is_fully_paid(self) -> bool:
        return self.paid_count == self.installment_count

    def __repr__(self) -> str:
        return (
            f"<Assessment {self.registration_code}/{self.year}: "
            f"{self.paid_count}/{self.installment_count} paid>"
        )


class InstallmentPayment(Base):
    """
    A paid installment.  Append-only: rows are never updated or deleted.
    """

    __tablename__ = "installment_payments"

    __table_args__ = (
        UniqueConstraint(
            "assessment_id", "installment_number", name="uq_payment_installment"
        ),
        Index("idx_payment_payer", "payer"),
    )

    id: Mapped[UUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )

    assessment_id: Mapped[str] = mapped_column(
        String(ASSESSMENT_ID_LENGTH),
        ForeignKey("assessments.id"),
        nullable=False,
    )

    installment_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    payer: Mapped[str] = mapped_column(
        String(IDENTITY_LENGTH),
        nullable=False,
    )

    amount: Mapped[int] = mapped_column(nullable=False)

    paid_at: Mapped[datetime] = mapped_column(nullable=False)

    assessment: Mapped[Assessment] = relationship(back_populates="payments")

    def __repr__(self) -> str:
        return f"<InstallmentPayment {self.assessment_id}#{self.installment_number}>"
