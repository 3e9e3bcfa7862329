"""
Exception hierarchy: codes and structured attributes.
"""

import pytest

from iptu_ledger import exceptions as exc


class TestCodes:

    @pytest.mark.parametrize(
        "cls, code",
        [
            (exc.UnauthorizedError, "UNAUTHORIZED"),
            (exc.RolesNotInitializedError, "ROLES_NOT_INITIALIZED"),
            (exc.InvalidParamsError, "INVALID_PARAMS"),
            (exc.AssessmentAlreadyExistsError, "ALREADY_EXISTS"),
            (exc.AssessmentNotFoundError, "NOT_FOUND"),
            (exc.AssessmentNotActiveError, "NOT_ACTIVE"),
            (exc.InvalidInstallmentError, "INVALID_INSTALLMENT"),
            (exc.InstallmentAlreadyPaidError, "ALREADY_PAID"),
            (exc.WrongAmountError, "WRONG_AMOUNT"),
            (exc.WrongPayerError, "WRONG_PAYER"),
            (exc.TransferFailedError, "TRANSFER_FAILED"),
            (exc.ReentrantCallError, "REENTRANT"),
            (exc.ImmutabilityViolationError, "IMMUTABILITY_VIOLATION"),
            (exc.EventChainBrokenError, "EVENT_CHAIN_BROKEN"),
        ],
    )
    def test_code(self, cls, code):
        assert cls.code == code
        assert issubclass(cls, exc.IptuLedgerError)


class TestHierarchy:

    def test_categories(self):
        assert issubclass(exc.UnauthorizedError, exc.AccessError)
        assert issubclass(exc.AssessmentNotFoundError, exc.AssessmentError)
        assert issubclass(exc.WrongPayerError, exc.PaymentError)
        assert issubclass(exc.TransferFailedError, exc.TransferError)
        assert issubclass(exc.ReentrantCallError, exc.ConcurrencyError)
        assert issubclass(exc.ImmutabilityViolationError, exc.ImmutabilityError)
        assert issubclass(exc.EventChainBrokenError, exc.AuditError)

    def test_structured_attributes(self):
        error = exc.InvalidInstallmentError("a" * 64, 7, 4)
        assert error.installment_number == 7
        assert error.installment_count == 4
        assert "7" in str(error)
