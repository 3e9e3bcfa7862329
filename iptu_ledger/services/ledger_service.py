"""
AssessmentLedger -- IPTU assessments, installment payments and fund forwarding.

Responsibility:
    Owns the assessment/payment state machine: the treasury creates yearly
    assessments, taxpayers pay installments of exactly the installment
    amount, and every payment is forwarded to the treasury within the
    same call.  The admin manages activation flags and the role holders,
    and can sweep funds that reached custody outside the payment path.

Architecture position:
    Ledger > Services -- imperative shell.  Collaborators are injected:
    ``ValueTransfer`` (custody -> treasury), ``Clock`` (payment timestamps)
    and, per call, ``CallerIdentity``.

Invariants enforced:
    - installment_amount * installment_count == total_amount at creation.
    - One assessment per (registration_code, year), whoever the taxpayer.
    - paid_count == |paid installments| and
      paid_amount == paid_count * installment_amount.
    - A paid installment is never re-paid or unmarked.
    - Atomicity: each mutating call runs in a SAVEPOINT.  If anything
      fails -- in particular the forward to the treasury -- every row the
      call wrote, events included, is rolled back.
    - Re-entrancy: pay_installment and sweep_residual_balance hold the
      ReentrancyGuard for their whole duration; every mutating call made
      while it is held fails with ReentrantCallError.  Reads are not gated.

Failure modes:
    UnauthorizedError, InvalidParamsError, AssessmentAlreadyExistsError,
    AssessmentNotFoundError, AssessmentNotActiveError,
    InvalidInstallmentError, InstallmentAlreadyPaidError, WrongAmountError,
    WrongPayerError, TransferFailedError, ReentrantCallError.  All are
    terminal; nothing is retried here.

Usage:
    with session_scope() as session:
        ledger = AssessmentLedger(session, transfer, clock)
        assessment_id = ledger.create_assessment(
            StaticCaller(treasury), "0123.045.0067-8", taxpayer, 2025, 1000, 4,
        )
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from iptu_ledger.config import LedgerConfig
from iptu_ledger.domain.clock import Clock, SystemClock
from iptu_ledger.domain.dtos import (
    AssessmentSummary,
    InstallmentReceipt,
    PaymentRecord,
)
from iptu_ledger.domain.events import (
    AdminTransferred,
    AssessmentCreated,
    FundsForwarded,
    InstallmentPaid,
    TreasuryUpdated,
)
from iptu_ledger.domain.guard import ReentrancyGuard, ledger_guard
from iptu_ledger.domain.identity import CallerIdentity, Identity, is_null_identity
from iptu_ledger.domain.transfer import TransferReceipt, ValueTransfer, ValueTransferError
from iptu_ledger.exceptions import (
    AssessmentAlreadyExistsError,
    AssessmentNotActiveError,
    AssessmentNotFoundError,
    InstallmentAlreadyPaidError,
    InvalidInstallmentError,
    InvalidParamsError,
    IptuLedgerError,
    TransferFailedError,
    UnauthorizedError,
    WrongAmountError,
    WrongPayerError,
)
from iptu_ledger.logging_config import LogContext, get_logger
from iptu_ledger.models.assessment import Assessment, InstallmentPayment
from iptu_ledger.models.role import LedgerRoleName
from iptu_ledger.selectors.assessment_selector import AssessmentSelector
from iptu_ledger.services.base import BaseService
from iptu_ledger.services.event_log import EventLog
from iptu_ledger.services.role_registry import RoleRegistry
from iptu_ledger.utils.hashing import compute_assessment_id
from iptu_ledger.utils.validation import is_positive_int, is_strict_int

logger = get_logger("services.ledger")


class AssessmentLedger(BaseService):
    """
    The IPTU assessment ledger.

    Contract:
        Callers supply a ``Session``, a ``ValueTransfer`` and optionally a
        ``Clock``, a ``ReentrancyGuard`` (the process-wide one by default)
        and a ``LedgerConfig``.
        The ledger flushes inside SAVEPOINTs and never commits; the caller
        owns the outer transaction.

    Guarantees:
        - Every mutating method applies all of its effects (rows, events,
          fund transfer) or none of them.
        - Methods return DTOs, never ORM entities.
    """

    def __init__(
        self,
        session: Session,
        transfer: ValueTransfer,
        clock: Clock | None = None,
        guard: ReentrancyGuard | None = None,
        config: LedgerConfig | None = None,
    ):
        super().__init__(session)
        self._transfer = transfer
        self._clock = clock or SystemClock()
        self._guard = guard if guard is not None else ledger_guard()
        self._config = config or LedgerConfig.with_defaults()
        self._roles = RoleRegistry(session)
        self._events = EventLog(session, self._clock)
        self._selector = AssessmentSelector(session)

    @classmethod
    def bootstrap(
        cls,
        session: Session,
        transfer: ValueTransfer,
        admin: str,
        treasury: str,
        clock: Clock | None = None,
        guard: ReentrancyGuard | None = None,
        config: LedgerConfig | None = None,
    ) -> AssessmentLedger:
        """
        Initialize the admin and treasury roles and return a ledger.

        Raises:
            InvalidParamsError: null identity, or roles already initialized.
        """
        RoleRegistry(session).initialize(admin, treasury)
        return cls(session, transfer, clock=clock, guard=guard, config=config)

    @property
    def guard(self) -> ReentrancyGuard:
        return self._guard

    # =========================================================================
    # Internals
    # =========================================================================

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        """Run the block in a SAVEPOINT; any exception rolls it back."""
        with self.session.begin_nested():
            yield

    def _require_role(self, caller_id: Identity, role: LedgerRoleName) -> None:
        holder = self._roles.holder(role)
        if caller_id != holder:
            logger.warning(
                "unauthorized_call",
                extra={"required_role": role.value},
            )
            raise UnauthorizedError(caller_id, role.value)

    def _load(self, assessment_id: str) -> Assessment:
        assessment = self.session.get(Assessment, assessment_id)
        if assessment is None:
            raise AssessmentNotFoundError(assessment_id)
        return assessment

    def _forward(self, to: Identity, amount: int) -> TransferReceipt:
        """
        Send ``amount`` from custody to ``to``.

        Transfer and ledger errors raised by ``send`` (including a rejected
        re-entry from the recipient) become TransferFailedError; anything
        else propagates unchanged.
        """
        try:
            receipt = self._transfer.send(to, amount)
        except (ValueTransferError, IptuLedgerError) as exc:
            reason = getattr(exc, "reason", None) or str(exc) or type(exc).__name__
            logger.error(
                "funds_forward_failed",
                extra={"to": to, "amount": amount, "reason": reason},
            )
            raise TransferFailedError(to, amount, reason) from exc
        logger.info("funds_forwarded", extra={"to": to, "amount": amount})
        return receipt

    def _validate_assessment_params(
        self,
        registration_code: str,
        taxpayer: str,
        year: int,
        total_amount: int,
        installment_count: int,
    ) -> None:
        if not isinstance(registration_code, str) or not registration_code.strip():
            raise InvalidParamsError("registration_code", "must not be empty")
        max_length = self._config.registration_code_max_length
        if len(registration_code) > max_length:
            raise InvalidParamsError(
                "registration_code", f"longer than {max_length} characters"
            )
        if is_null_identity(taxpayer):
            raise InvalidParamsError("taxpayer", "must not be the null identity")
        if not is_positive_int(year):
            raise InvalidParamsError("year", f"must be a positive integer, got {year!r}")
        if not is_positive_int(total_amount):
            raise InvalidParamsError(
                "total_amount", f"must be a positive integer, got {total_amount!r}"
            )
        if not is_positive_int(installment_count):
            raise InvalidParamsError(
                "installment_count",
                f"must be a positive integer, got {installment_count!r}",
            )

    # =========================================================================
    # Assessments
    # =========================================================================

    def create_assessment(
        self,
        caller: CallerIdentity,
        registration_code: str,
        taxpayer: str,
        year: int,
        total_amount: int,
        installment_count: int,
    ) -> str:
        """
        Record a new yearly assessment.  Treasury only.

        Returns:
            The assessment id, derived from (registration_code, year).

        Raises:
            ReentrantCallError: a guarded operation is in flight.
            UnauthorizedError: caller is not the treasury.
            InvalidParamsError: empty code, null taxpayer, zero year, amount
                or count, or total not divisible by installment_count.
            AssessmentAlreadyExistsError: the key is already assessed,
                active or not.
        """
        operation = "create_assessment"
        caller_id = caller.current()
        with LogContext.bind(operation=operation, caller=caller_id):
            self._guard.ensure_idle(operation)
            self._require_role(caller_id, LedgerRoleName.TREASURY)
            self._validate_assessment_params(
                registration_code, taxpayer, year, total_amount, installment_count
            )

            assessment_id = compute_assessment_id(registration_code, year)
            if self._selector.exists(assessment_id):
                raise AssessmentAlreadyExistsError(assessment_id, registration_code, year)

            installment_amount = total_amount // installment_count
            if installment_amount * installment_count != total_amount:
                raise InvalidParamsError(
                    "total_amount",
                    f"{total_amount} is not divisible into {installment_count} "
                    f"equal installments",
                )

            try:
                with self._atomic():
                    self.session.add(
                        Assessment(
                            id=assessment_id,
                            registration_code=registration_code,
                            taxpayer=taxpayer,
                            year=year,
                            total_amount=total_amount,
                            installment_count=installment_count,
                            installment_amount=installment_amount,
                            paid_count=0,
                            paid_amount=0,
                            is_active=True,
                        )
                    )
                    self.session.flush()
                    self._events.append(
                        AssessmentCreated(
                            id=assessment_id,
                            registration_code=registration_code,
                            taxpayer=taxpayer,
                            year=year,
                            total=total_amount,
                            installment_count=installment_count,
                            installment_amount=installment_amount,
                        )
                    )
            except IntegrityError as exc:
                # Lost a race with a concurrent creator of the same key
                raise AssessmentAlreadyExistsError(
                    assessment_id, registration_code, year
                ) from exc

            logger.info(
                "assessment_created",
                extra={
                    "new_assessment_id": assessment_id,
                    "registration_code": registration_code,
                    "year": year,
                    "total_amount": total_amount,
                    "installment_count": installment_count,
                    "installment_amount": installment_amount,
                },
            )
            return assessment_id

    def set_active(self, caller: CallerIdentity, assessment_id: str, active: bool) -> None:
        """
        Enable or disable payments on an assessment.  Admin only.

        Raises:
            ReentrantCallError, UnauthorizedError, AssessmentNotFoundError.
        """
        operation = "set_active"
        caller_id = caller.current()
        with LogContext.bind(operation=operation, caller=caller_id, assessment_id=assessment_id):
            self._guard.ensure_idle(operation)
            self._require_role(caller_id, LedgerRoleName.ADMIN)
            assessment = self._load(assessment_id)
            with self._atomic():
                assessment.is_active = bool(active)
                self.session.flush()
            logger.info("assessment_active_set", extra={"active": bool(active)})

    # =========================================================================
    # Payments
    # =========================================================================

    def pay_installment(
        self,
        caller: CallerIdentity,
        assessment_id: str,
        installment_number: int,
        amount: int,
    ) -> InstallmentReceipt:
        """
        Pay one installment and forward the funds to the treasury.

        ``amount`` is the value attached to the call; it must equal the
        installment amount exactly.

        Raises:
            ReentrantCallError: a guarded operation is in flight.
            AssessmentNotFoundError, AssessmentNotActiveError,
            InvalidInstallmentError, InstallmentAlreadyPaidError,
            WrongAmountError, WrongPayerError: checked in this order.
            TransferFailedError: forwarding failed; nothing was recorded.
        """
        operation = "pay_installment"
        payer = caller.current()
        with LogContext.bind(operation=operation, caller=payer, assessment_id=assessment_id):
            with self._guard.hold(operation):
                assessment = self._load(assessment_id)
                if not assessment.is_active:
                    raise AssessmentNotActiveError(assessment_id)
                if (
                    not is_strict_int(installment_number)
                    or installment_number < 1
                    or installment_number > assessment.installment_count
                ):
                    raise InvalidInstallmentError(
                        assessment_id, installment_number, assessment.installment_count
                    )
                if self._selector.is_installment_paid(assessment_id, installment_number):
                    raise InstallmentAlreadyPaidError(assessment_id, installment_number)
                if not is_strict_int(amount) or amount != assessment.installment_amount:
                    raise WrongAmountError(
                        assessment_id, assessment.installment_amount, amount
                    )
                if payer != assessment.taxpayer:
                    raise WrongPayerError(assessment_id, payer, assessment.taxpayer)

                treasury = self._roles.holder(LedgerRoleName.TREASURY)
                paid_at = self._clock.now()

                try:
                    with self._atomic():
                        self.session.add(
                            InstallmentPayment(
                                assessment_id=assessment_id,
                                installment_number=installment_number,
                                payer=payer,
                                amount=amount,
                                paid_at=paid_at,
                            )
                        )
                        assessment.paid_count += 1
                        assessment.paid_amount += amount
                        self.session.flush()
                        self._events.append(
                            InstallmentPaid(
                                id=assessment_id,
                                installment_number=installment_number,
                                payer=payer,
                                amount=amount,
                                timestamp=paid_at,
                            )
                        )
                        transfer_receipt = self._forward(treasury, amount)
                        self._events.append(
                            FundsForwarded(to=treasury, amount=amount),
                            assessment_id=assessment_id,
                        )
                        paid_count = assessment.paid_count
                        paid_amount = assessment.paid_amount
                except IntegrityError as exc:
                    # A concurrent session paid the same installment first
                    raise InstallmentAlreadyPaidError(
                        assessment_id, installment_number
                    ) from exc

                logger.info(
                    "installment_paid",
                    extra={
                        "installment_number": installment_number,
                        "amount": amount,
                        "paid_count": paid_count,
                        "paid_amount": paid_amount,
                    },
                )
                return InstallmentReceipt(
                    assessment_id=assessment_id,
                    installment_number=installment_number,
                    payer=payer,
                    amount=amount,
                    paid_at=paid_at,
                    forwarded_to=treasury,
                    transfer_reference=transfer_receipt.reference,
                    paid_count=paid_count,
                    paid_amount=paid_amount,
                )

    def sweep_residual_balance(self, caller: CallerIdentity) -> int:
        """
        Forward everything held in custody to the treasury.  Admin only.

        Custody normally holds nothing between calls; this recovers funds
        that arrived outside the payment path.

        Returns:
            The amount swept (0 when custody was empty).

        Raises:
            ReentrantCallError, UnauthorizedError, TransferFailedError.
        """
        operation = "sweep_residual_balance"
        caller_id = caller.current()
        with LogContext.bind(operation=operation, caller=caller_id):
            with self._guard.hold(operation):
                self._require_role(caller_id, LedgerRoleName.ADMIN)
                balance = self._transfer.balance()
                if balance <= 0:
                    logger.info("residual_sweep_skipped", extra={"balance": balance})
                    return 0

                treasury = self._roles.holder(LedgerRoleName.TREASURY)
                with self._atomic():
                    self._forward(treasury, balance)
                    self._events.append(FundsForwarded(to=treasury, amount=balance))

                logger.info("residual_balance_swept", extra={"amount": balance})
                return balance

    # =========================================================================
    # Roles
    # =========================================================================

    def get_admin(self) -> Identity:
        return self._roles.holder(LedgerRoleName.ADMIN)

    def get_treasury(self) -> Identity:
        return self._roles.holder(LedgerRoleName.TREASURY)

    def update_treasury(self, caller: CallerIdentity, new_treasury: str) -> None:
        """
        Point the treasury role at a new account.  Admin only.

        Raises:
            ReentrantCallError, UnauthorizedError, InvalidParamsError.
        """
        operation = "update_treasury"
        caller_id = caller.current()
        with LogContext.bind(operation=operation, caller=caller_id):
            self._guard.ensure_idle(operation)
            self._require_role(caller_id, LedgerRoleName.ADMIN)
            if is_null_identity(new_treasury):
                raise InvalidParamsError("new_treasury", "must not be the null identity")
            with self._atomic():
                old = self._roles.assign(LedgerRoleName.TREASURY, new_treasury)
                self._events.append(TreasuryUpdated(old=old, new=new_treasury))

    def transfer_admin(self, caller: CallerIdentity, new_admin: str) -> None:
        """
        Hand the admin role to another identity.  Admin only.

        Raises:
            ReentrantCallError, UnauthorizedError, InvalidParamsError.
        """
        operation = "transfer_admin"
        caller_id = caller.current()
        with LogContext.bind(operation=operation, caller=caller_id):
            self._guard.ensure_idle(operation)
            self._require_role(caller_id, LedgerRoleName.ADMIN)
            if is_null_identity(new_admin):
                raise InvalidParamsError("new_admin", "must not be the null identity")
            with self._atomic():
                old = self._roles.assign(LedgerRoleName.ADMIN, new_admin)
                self._events.append(AdminTransferred(old=old, new=new_admin))

    # =========================================================================
    # Reads (never gated by the guard)
    # =========================================================================

    def get_summary(self, assessment_id: str) -> AssessmentSummary:
        return self._selector.get_summary(assessment_id)

    def is_installment_paid(self, assessment_id: str, installment_number: int) -> bool:
        return self._selector.is_installment_paid(assessment_id, installment_number)

    def list_paid_installments(self, assessment_id: str) -> list[bool]:
        return self._selector.list_paid_installments(assessment_id)

    def list_payments(self, assessment_id: str) -> list[PaymentRecord]:
        return self._selector.list_payments(assessment_id)

    def list_by_taxpayer(
        self,
        taxpayer: str,
        year: int | None = None,
    ) -> list[AssessmentSummary]:
        return self._selector.list_by_taxpayer(taxpayer, year)

    @staticmethod
    def assessment_id_for(registration_code: str, year: int) -> str:
        """The id an assessment for (registration_code, year) has or would have."""
        return compute_assessment_id(registration_code, year)
