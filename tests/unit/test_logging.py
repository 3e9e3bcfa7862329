"""
Structured logging: JSON formatting and context propagation.
"""

import json
import logging
import threading
from io import StringIO

import pytest

from iptu_ledger.exceptions import WrongAmountError
from iptu_ledger.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


def _record(msg="event_name", exc_info=None, **extra):
    record = logging.LogRecord("iptu_ledger.test", logging.INFO, __file__, 1, msg, (), exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:

    def test_envelope_and_extra(self):
        payload = json.loads(StructuredFormatter().format(_record(amount=250)))
        assert payload["message"] == "event_name"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "iptu_ledger.test"
        assert payload["amount"] == 250

    def test_context_fields_merged(self):
        with LogContext.bind(operation="pay_installment", caller="0xB0B"):
            payload = json.loads(StructuredFormatter().format(_record()))
        assert payload["operation"] == "pay_installment"
        assert payload["caller"] == "0xB0B"
        assert LogContext.current() == {}

    def test_bound_context_wins_over_extra(self):
        with LogContext.bind(assessment_id="bound"):
            payload = json.loads(StructuredFormatter().format(_record(assessment_id="extra")))
        assert payload["assessment_id"] == "bound"

    def test_error_rendered_with_code_and_attrs(self):
        try:
            raise WrongAmountError("a" * 64, 250, 100)
        except WrongAmountError as exc:
            record = _record(exc_info=(type(exc), exc, exc.__traceback__))
        payload = json.loads(StructuredFormatter().format(record))
        assert payload["error"]["type"] == "WrongAmountError"
        assert payload["error"]["code"] == "WRONG_AMOUNT"
        assert payload["error"]["attrs"]["expected"] == 250
        assert payload["error"]["attrs"]["received"] == 100
        assert "Traceback" in payload["traceback"]

    def test_unserializable_extra_falls_back_to_str(self):
        payload = json.loads(StructuredFormatter().format(_record(thing=object())))
        assert payload["thing"].startswith("<object object")


class TestLogContext:

    def test_bind_restores_outer_values(self):
        with LogContext.bind(correlation_id="outer"):
            with LogContext.bind(correlation_id="inner", caller="0xB0B"):
                assert LogContext.current() == {"correlation_id": "inner", "caller": "0xB0B"}
            assert LogContext.current() == {"correlation_id": "outer"}

    def test_none_values_ignored(self):
        with LogContext.bind(assessment_id=None, operation="sweep_residual_balance"):
            assert LogContext.current() == {"operation": "sweep_residual_balance"}

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            with LogContext.bind(user="x"):
                pass

    def test_clear(self):
        with LogContext.bind(assessment_id="x"):
            LogContext.clear()
            assert LogContext.current() == {}

    def test_isolated_per_thread(self):
        seen = []
        with LogContext.bind(caller="main"):
            t = threading.Thread(target=lambda: seen.append(LogContext.current()))
            t.start()
            t.join(timeout=5)
        assert seen == [{}]


class TestConfigureLogging:

    def test_idempotent_single_handler(self):
        root = logging.getLogger("iptu_ledger")
        stream = StringIO()
        reset_logging()
        try:
            configure_logging(level=logging.INFO, stream=stream)
            configure_logging(level=logging.WARNING, stream=StringIO())
            json_handlers = [h for h in root.handlers if h.get_name() == "iptu_ledger.json"]
            assert len(json_handlers) == 1
            assert root.level == logging.WARNING

            get_logger("test").warning("something_happened", extra={"n": 1})
            payload = json.loads(stream.getvalue().strip())
            assert payload["message"] == "something_happened"
            assert payload["n"] == 1
        finally:
            reset_logging()
            configure_logging(level=logging.DEBUG)


def test_logger_namespace():
    assert get_logger("services.ledger").name == "iptu_ledger.services.ledger"
