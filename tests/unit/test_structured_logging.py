"""Tests for the structured logging system (paybook_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from paybook_kernel.exceptions import InvalidRecordStatusError
from paybook_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


class TestStructuredFormatter:

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_all_logs(stream)[0]
        assert record["message"] == "hello"
        assert record["level"] == "INFO"
        assert record["logger"] == "paybook.test"
        assert "ts" in record

    def test_extra_fields_are_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        record_id = uuid4()
        get_logger("test").info(
            "payroll_record_voided",
            extra={"record_uuid": record_id, "gross_pay": Decimal("1000.00")},
        )

        record = _parse_all_logs(stream)[0]
        assert record["record_uuid"] == str(record_id)
        assert record["gross_pay"] == "1000.00"

    def test_exception_attributes_are_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise InvalidRecordStatusError("r-1", "voided")
        except InvalidRecordStatusError:
            get_logger("test").error("void_failed", exc_info=True)

        record = _parse_all_logs(stream)[0]
        assert record["exc_type"] == "InvalidRecordStatusError"
        assert record["exc_code"] == "INVALID_RECORD_STATUS"
        assert record["exc_current_status"] == "voided"

    def test_configure_is_idempotent(self):
        handler, _ = _make_handler()
        configure_logging(handler=handler)
        configure_logging(handler=handler)
        assert len(logging.getLogger("paybook").handlers) == 1


class TestLogContext:

    def test_bound_fields_appear_in_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        company_id = uuid4()

        with LogContext.bind(company_id=company_id, actor_id=None):
            get_logger("test").info("inside")
        get_logger("test").info("outside")

        inside, outside = _parse_all_logs(stream)
        assert inside["company_id"] == str(company_id)
        assert "actor_id" not in inside
        assert "company_id" not in outside

    def test_nested_bind_restores_outer_value(self):
        with LogContext.bind(record_id="outer"):
            with LogContext.bind(record_id="inner"):
                assert LogContext.get_all()["record_id"] == "inner"
            assert LogContext.get_all()["record_id"] == "outer"
        assert "record_id" not in LogContext.get_all()

    def test_set_and_clear(self):
        LogContext.set(correlation_id="abc")
        assert LogContext.get_all() == {"correlation_id": "abc"}
        LogContext.clear()
        assert LogContext.get_all() == {}
