"""Tests for the structured logging system (logistics_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from logistics_kernel.logging_config import (
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
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "logistics_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("pickup_confirmed", extra={"payment_lines": 2, "status": "delivered"})

        record = _parse_log(stream)
        assert record["payment_lines"] == 2
        assert record["status"] == "delivered"

    def test_decimal_serialized_as_string(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("amount", extra={"amount": Decimal("999999.50")})

        assert _parse_log(stream)["amount"] == "999999.50"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(correlation_id="abc-123", entity_type="parcel", entity_id="42")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["entity_type"] == "parcel"
        assert record["entity_id"] == "42"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_kernel_exception_code_extracted(self):
        """Kernel exceptions carry a .code attribute and structured fields."""
        from logistics_kernel.exceptions import PreconditionNotMetError

        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise PreconditionNotMetError("trip", "children_in_transit", (7, 8))
        except PreconditionNotMetError:
            get_logger("test").error("closure_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "PRECONDITION_NOT_MET"
        assert record["exc_type"] == "PreconditionNotMetError"
        assert record["exc_reason"] == "children_in_transit"
        assert record["exc_blocking_children"] == [7, 8]

    def test_uuid_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info("with_uuid", extra={"parcel_id": uid})

        assert _parse_log(stream)["parcel_id"] == str(uid)

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # default level is INFO, so the debug line is dropped
        assert len(logs) == 2
        for record in logs:
            assert {"ts", "level", "logger", "message"} <= set(record)


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", actor_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "actor_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner"):
            assert LogContext.get_all()["correlation_id"] == "inner"
        assert LogContext.get_all()["correlation_id"] == "outer"

    def test_bind_stringifies_values(self):
        with LogContext.bind(entity_id=17):
            assert LogContext.get_all()["entity_id"] == "17"
        assert "entity_id" not in LogContext.get_all()


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert len(logging.getLogger("logistics_kernel").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("services.pickup").name == "logistics_kernel.services.pickup"

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "logistics_kernel.deep.nested.module"


# ---------------------------------------------------------------------------
# Context bound by the services
# ---------------------------------------------------------------------------


class TestServiceLogContext:
    """Service calls bind the entity they act on for every nested log line."""

    @pytest.fixture
    def express_closure(self, closure_gateway, ledger, accounts, clock):
        from logistics_services.closure_service import ClosureService

        return ClosureService.for_express(closure_gateway, ledger, accounts, clock=clock)

    def test_trip_closure_lines_carry_the_trip(self, express_closure):
        from tests.conftest import make_cost, make_journey, make_parcel

        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        express_closure.close_journey(
            make_journey(id=20, wave_id=200), [make_parcel(status="delivered")], [make_cost()],
        )

        records = {r["message"]: r for r in _parse_all_logs(stream)}
        for message in ("cost_recorded", "journey_closed"):
            assert records[message]["entity_type"] == "trip"
            assert records[message]["entity_id"] == "20"
        assert records["cost_recorded"]["owner"] == "trip:20"
        assert LogContext.get_all() == {}

    def test_rejected_batch_logged_against_the_wave(self, express_closure):
        from logistics_kernel.exceptions import CostValidationError
        from tests.conftest import make_cost, make_journey, make_wave

        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        with pytest.raises(CostValidationError):
            express_closure.close_wave(
                make_wave(id=200),
                [make_journey(id=20, status="closed", wave_id=200)],
                [make_cost(account_id=9)],
            )

        record = next(r for r in _parse_all_logs(stream) if r["message"] == "closure_costs_rejected")
        assert record["entity_type"] == "express_wave"
        assert record["entity_id"] == "200"
        assert "costs[0].account_id" in record["field_errors"]
