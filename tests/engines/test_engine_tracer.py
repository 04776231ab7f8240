"""Tests for @traced_engine and input fingerprints."""

from decimal import Decimal

import pytest

from paybook_engines.tracer import compute_input_fingerprint, traced_engine


@traced_engine("doubler", "0.1", fingerprint_fields=("amount",))
def _double(amount, note=None):
    return amount * 2


@traced_engine("failing", "0.1")
def _fail():
    raise ArithmeticError("boom")


class TestFingerprint:

    def test_deterministic(self):
        args = {"amount": Decimal("1.50"), "meta": {"b": 1, "a": 2}}
        assert compute_input_fingerprint(("amount", "meta"), args) == compute_input_fingerprint(
            ("amount", "meta"), dict(reversed(list(args.items())))
        )

    def test_dict_key_order_ignored(self):
        first = compute_input_fingerprint(("m",), {"m": {"a": 1, "b": 2}})
        second = compute_input_fingerprint(("m",), {"m": {"b": 2, "a": 1}})
        assert first == second

    def test_sensitive_to_value(self):
        assert compute_input_fingerprint(("x",), {"x": Decimal("1")}) != compute_input_fingerprint(
            ("x",), {"x": Decimal("2")}
        )

    def test_missing_argument_is_null(self):
        assert compute_input_fingerprint(("x",), {}) == compute_input_fingerprint(
            ("x",), {"x": None}
        )

    def test_sixteen_hex_chars(self):
        fp = compute_input_fingerprint(("x",), {"x": "y"})
        assert len(fp) == 16
        int(fp, 16)


class TestTracedEngine:

    def test_result_passes_through_and_trace_emitted(self, captured_logs):
        assert _double(Decimal("2.5")) == Decimal("5.0")

        traces = [r for r in captured_logs() if r["message"] == "engine_trace"]
        assert len(traces) == 1
        trace = traces[0]
        assert trace["engine_name"] == "doubler"
        assert trace["engine_version"] == "0.1"
        assert trace["input_fingerprint"] == compute_input_fingerprint(
            ("amount",), {"amount": Decimal("2.5")}
        )
        assert trace["level"] == "DEBUG"

    def test_keyword_and_positional_calls_share_fingerprint(self, captured_logs):
        _double(Decimal("3"))
        _double(amount=Decimal("3"))
        fps = [r["input_fingerprint"] for r in captured_logs() if r["message"] == "engine_trace"]
        assert fps[0] == fps[1]

    def test_exceptions_propagate_without_trace(self, captured_logs):
        with pytest.raises(ArithmeticError):
            _fail()
        assert not [r for r in captured_logs() if r["message"] == "engine_trace"]

    def test_wraps_preserves_name(self):
        assert _double.__name__ == "_double"
