"""
Module: iptu_ledger.selectors.assessment_selector
Responsibility: Read-only queries over assessments and their paid
    installments.
Architecture position: Ledger > Selectors.

Failure modes:
    - AssessmentNotFoundError for unknown ids.
    - InvalidInstallmentError for installment numbers outside
      [1, installment_count].
"""

from sqlalchemy import select

from iptu_ledger.domain.dtos import AssessmentSummary, PaymentRecord
from iptu_ledger.exceptions import AssessmentNotFoundError, InvalidInstallmentError
from iptu_ledger.models.assessment import Assessment, InstallmentPayment
from iptu_ledger.selectors.base import BaseSelector
from iptu_ledger.utils.validation import is_strict_int


def to_summary(assessment: Assessment) -> AssessmentSummary:
    """Convert an ORM Assessment to its summary DTO."""
    return AssessmentSummary(
        id=assessment.id,
        registration_code=assessment.registration_code,
        taxpayer=assessment.taxpayer,
        year=assessment.year,
        total_amount=assessment.total_amount,
        installment_count=assessment.installment_count,
        installment_amount=assessment.installment_amount,
        paid_count=assessment.paid_count,
        paid_amount=assessment.paid_amount,
        active=assessment.is_active,
    )


class AssessmentSelector(BaseSelector):
    """Read side of the assessment ledger."""

    def _get(self, assessment_id: str) -> Assessment:
        assessment = self.session.get(Assessment, assessment_id)
        if assessment is None:
            raise AssessmentNotFoundError(assessment_id)
        return assessment

    def exists(self, assessment_id: str) -> bool:
        return self.session.get(Assessment, assessment_id) is not None

    def get_summary(self, assessment_id: str) -> AssessmentSummary:
        """
        Summary of an assessment.

        Raises:
            AssessmentNotFoundError: If the assessment does not exist.
        """
        return to_summary(self._get(assessment_id))

    def _paid_numbers(self, assessment_id: str) -> set[int]:
        stmt = select(InstallmentPayment.installment_number).where(
            InstallmentPayment.assessment_id == assessment_id
        )
        return set(self.session.execute(stmt).scalars().all())

    def is_installment_paid(self, assessment_id: str, installment_number: int) -> bool:
        """
        Whether one installment is paid.

        Raises:
            AssessmentNotFoundError: If the assessment does not exist.
            InvalidInstallmentError: If the number is not an integer within
                the assessment.
        """
        assessment = self._get(assessment_id)
        count = assessment.installment_count
        if not is_strict_int(installment_number) or not 1 <= installment_number <= count:
            raise InvalidInstallmentError(
                assessment_id, installment_number, assessment.installment_count
            )
        stmt = select(InstallmentPayment.id).where(
            InstallmentPayment.assessment_id == assessment_id,
            InstallmentPayment.installment_number == installment_number,
        )
        return self.session.execute(stmt).first() is not None

    def list_paid_installments(self, assessment_id: str) -> list[bool]:
        """
        Paid flags for installments 1..installment_count, in order.

        Index ``i`` of the result is installment ``i + 1``.
        """
        assessment = self._get(assessment_id)
        paid = self._paid_numbers(assessment_id)
        return [n in paid for n in range(1, assessment.installment_count + 1)]

    def list_payments(self, assessment_id: str) -> list[PaymentRecord]:
        """Payment records of an assessment, by installment number."""
        self._get(assessment_id)
        stmt = (
            select(InstallmentPayment)
            .where(InstallmentPayment.assessment_id == assessment_id)
            .order_by(InstallmentPayment.installment_number)
        )
        return [
            PaymentRecord(
                assessment_id=p.assessment_id,
                installment_number=p.installment_number,
                payer=p.payer,
                amount=p.amount,
                paid_at=p.paid_at,
            )
            for p in self.session.execute(stmt).scalars().all()
        ]

    def list_by_taxpayer(
        self,
        taxpayer: str,
        year: int | None = None,
    ) -> list[AssessmentSummary]:
        """Assessments owed by a taxpayer, ordered by year then code."""
        stmt = select(Assessment).where(Assessment.taxpayer == taxpayer)
        if year is not None:
            stmt = stmt.where(Assessment.year == year)
        stmt = stmt.order_by(Assessment.year, Assessment.registration_code)
        return [to_summary(a) for a in self.session.execute(stmt).scalars().all()]
