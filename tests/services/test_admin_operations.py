"""
Admin-only operations: activation flag, role transfers and residual sweep.
"""

import pytest

from iptu_ledger.exceptions import (
    AssessmentNotFoundError,
    InvalidParamsError,
    TransferFailedError,
    UnauthorizedError,
)
from iptu_ledger.models.event import LedgerEventType
from iptu_ledger.utils.hashing import compute_assessment_id
from tests.conftest import ADMIN, OTHER, TREASURY


class TestSetActive:

    def test_toggles_flag(self, ledger, admin, create_assessment):
        assessment_id = create_assessment()
        ledger.set_active(admin, assessment_id, False)
        assert ledger.get_summary(assessment_id).active is False
        ledger.set_active(admin, assessment_id, True)
        assert ledger.get_summary(assessment_id).active is True

    def test_emits_no_event(self, ledger, admin, create_assessment, event_log):
        assessment_id = create_assessment()
        count = len(event_log.list_events())
        ledger.set_active(admin, assessment_id, False)
        assert len(event_log.list_events()) == count

    def test_treasury_cannot_toggle(self, ledger, treasury, create_assessment):
        assessment_id = create_assessment()
        with pytest.raises(UnauthorizedError) as exc_info:
            ledger.set_active(treasury, assessment_id, False)
        assert exc_info.value.required_role == "admin"
        assert ledger.get_summary(assessment_id).active is True

    def test_unknown_assessment(self, ledger, admin):
        with pytest.raises(AssessmentNotFoundError):
            ledger.set_active(admin, compute_assessment_id("missing", 2025), False)

    def test_unauthorized_checked_before_existence(self, ledger, stranger):
        with pytest.raises(UnauthorizedError):
            ledger.set_active(stranger, compute_assessment_id("missing", 2025), False)


class TestUpdateTreasury:

    def test_updates_and_emits(self, ledger, admin, event_log):
        ledger.update_treasury(admin, OTHER)

        assert ledger.get_treasury() == OTHER
        events = event_log.list_events(LedgerEventType.TREASURY_UPDATED)
        assert len(events) == 1
        assert events[0].payload == {"old": TREASURY, "new": OTHER}
        assert events[0].assessment_id is None

    def test_old_treasury_loses_create_rights(self, ledger, admin, treasury, create_assessment):
        ledger.update_treasury(admin, OTHER)
        with pytest.raises(UnauthorizedError):
            create_assessment()

    def test_rejects_null_identity(self, ledger, admin):
        for null in ("", "   ", "0x0000000000000000000000000000000000000000"):
            with pytest.raises(InvalidParamsError):
                ledger.update_treasury(admin, null)
        assert ledger.get_treasury() == TREASURY

    def test_treasury_cannot_update_itself(self, ledger, treasury):
        with pytest.raises(UnauthorizedError):
            ledger.update_treasury(treasury, OTHER)


class TestTransferAdmin:

    def test_transfers_and_emits(self, ledger, admin, stranger, create_assessment, event_log):
        ledger.transfer_admin(admin, OTHER)

        assert ledger.get_admin() == OTHER
        events = event_log.list_events(LedgerEventType.ADMIN_TRANSFERRED)
        assert events[0].payload == {"old": ADMIN, "new": OTHER}

        assessment_id = create_assessment()
        with pytest.raises(UnauthorizedError):
            ledger.set_active(admin, assessment_id, False)
        ledger.set_active(stranger, assessment_id, False)

    def test_rejects_null_identity(self, ledger, admin):
        with pytest.raises(InvalidParamsError):
            ledger.transfer_admin(admin, None)
        assert ledger.get_admin() == ADMIN

    def test_stranger_cannot_take_admin(self, ledger, stranger):
        with pytest.raises(UnauthorizedError):
            ledger.transfer_admin(stranger, OTHER)


class TestSweepResidualBalance:

    def test_sweeps_custody_to_treasury(self, ledger, admin, transfer, event_log):
        transfer.deposit(75)

        assert ledger.sweep_residual_balance(admin) == 75
        assert transfer.balance() == 0
        assert transfer.balance_of(TREASURY) == 75
        events = event_log.list_events(LedgerEventType.FUNDS_FORWARDED)
        assert events[-1].payload == {"to": TREASURY, "amount": 75}
        assert events[-1].assessment_id is None

    def test_zero_balance_is_noop(self, ledger, admin, transfer, event_log):
        assert ledger.sweep_residual_balance(admin) == 0
        assert transfer.sends == []
        assert event_log.list_events(LedgerEventType.FUNDS_FORWARDED) == []

    def test_admin_only(self, ledger, treasury, transfer):
        transfer.deposit(10)
        with pytest.raises(UnauthorizedError):
            ledger.sweep_residual_balance(treasury)
        assert transfer.balance() == 10

    def test_transfer_failure(self, ledger, admin, transfer, event_log):
        transfer.deposit(10)
        transfer.fail_next_sends("rail offline")
        with pytest.raises(TransferFailedError):
            ledger.sweep_residual_balance(admin)
        assert transfer.balance() == 10
        assert event_log.list_events(LedgerEventType.FUNDS_FORWARDED) == []
        assert ledger.guard.is_busy is False


class TestReads:

    def test_list_by_taxpayer(self, ledger, create_assessment):
        a = create_assessment(registration_code="B-2", year=2025)
        b = create_assessment(registration_code="A-1", year=2025)
        c = create_assessment(registration_code="A-1", year=2024)
        create_assessment(registration_code="Z-9", taxpayer=OTHER)

        assert [s.id for s in ledger.list_by_taxpayer(
            "0xB0B0000000000000000000000000000000000003"
        )] == [c, b, a]
        assert [s.id for s in ledger.list_by_taxpayer(
            "0xB0B0000000000000000000000000000000000003", year=2024
        )] == [c]

    def test_assessment_id_for(self, ledger, create_assessment):
        assessment_id = create_assessment(registration_code="X", year=2030)
        assert ledger.assessment_id_for("X", 2030) == assessment_id

    def test_reads_on_unknown_assessment(self, ledger):
        unknown = compute_assessment_id("missing", 2025)
        with pytest.raises(AssessmentNotFoundError):
            ledger.get_summary(unknown)
        with pytest.raises(AssessmentNotFoundError):
            ledger.is_installment_paid(unknown, 1)
        with pytest.raises(AssessmentNotFoundError):
            ledger.list_paid_installments(unknown)
