"""Tests for the hoverhits exception hierarchy and error handler."""

from __future__ import annotations

import asyncio
import logging

import pytest

from hoverhits.errors import AnalysisStateError
from hoverhits.errors import BulkCountError
from hoverhits.errors import ConfigurationError
from hoverhits.errors import ErrorHandler
from hoverhits.errors import FrameFetchError
from hoverhits.errors import HoverHitsError
from hoverhits.errors import HoverHitsTimeoutError
from hoverhits.errors import TransportError
from hoverhits.errors import ValueNotReady
from hoverhits.errors import handle_error


class TestHoverHitsError:
    def test_defaults(self) -> None:
        error = HoverHitsError("something broke")

        assert str(error) == "something broke"
        assert error.error_code == "HoverHitsError"
        assert error.details == {}
        assert error.cause is None

    def test_cause_is_part_of_message(self) -> None:
        cause = ValueError("bad value")
        error = HoverHitsError("wrapper", cause=cause)
        assert str(error) == "wrapper (caused by: bad value)"

    def test_to_dict(self) -> None:
        error = HoverHitsError("msg", error_code="Custom", details={"k": 1})
        assert error.to_dict() == {"error": "Custom", "message": "msg", "details": {"k": 1}}


class TestSubclasses:
    def test_configuration_error(self) -> None:
        error = ConfigurationError("bad", config_key="debounce_ms")
        assert error.details == {"config_key": "debounce_ms"}
        assert error.error_code == "ConfigurationError"

    def test_transport_error_details(self) -> None:
        error = TransportError("down", operation="findPoints", analysis_id="a-1")

        assert error.operation == "findPoints"
        assert error.analysis_id == "a-1"
        assert error.details == {"operation": "findPoints", "analysis_id": "a-1"}

    def test_timeout_is_a_transport_error(self) -> None:
        error = HoverHitsTimeoutError("slow", timeout_seconds=5.0, operation="createAnalysis")

        assert isinstance(error, TransportError)
        assert error.error_code == "TimeoutError"
        assert error.details["timeout_seconds"] == 5.0
        assert error.operation == "createAnalysis"

    def test_frame_fetch_error(self) -> None:
        error = FrameFetchError("no frames", pause_id="pause-9")

        assert isinstance(error, TransportError)
        assert error.operation == "getFrames"
        assert error.error_code == "FrameFetchError"
        assert error.details == {"pause_id": "pause-9", "operation": "getFrames"}

    def test_analysis_state_error(self) -> None:
        error = AnalysisStateError("out of order", state="CREATED", operation="findPoints")
        assert error.details == {"state": "CREATED", "operation": "findPoints"}

    def test_bulk_count_error(self) -> None:
        error = BulkCountError("unsupported", source_id="src-1")
        assert error.source_id == "src-1"
        assert error.to_dict()["error"] == "BulkCountError"

    @pytest.mark.asyncio
    async def test_value_not_ready_carries_future(self) -> None:
        future = asyncio.get_running_loop().create_future()
        error = ValueNotReady("pause-1", future)

        assert error.future is future
        assert error.key == "pause-1"
        assert "pause-1" in str(error)


class TestErrorHandler:
    def test_handles_hoverhits_error(self, caplog) -> None:
        handler = ErrorHandler()

        with caplog.at_level(logging.ERROR):
            record = handler.handle_error(TransportError("down", operation="release"))

        assert record["error"] == "TransportError"
        assert record["details"]["operation"] == "release"
        assert "traceback" in record
        assert "down" in caplog.text

    def test_handles_plain_exception_with_context(self) -> None:
        record = ErrorHandler().handle_error(KeyError("x"), context={"line": 10})

        assert record["error"] == "KeyError"
        assert record["context"] == {"line": 10}

    def test_registered_handler_wins(self) -> None:
        handler = ErrorHandler()
        handler.register_handler(TransportError, lambda e: {"handled": e.operation})

        record = handler.handle_error(TransportError("x", operation="addLocation"))

        assert record == {"handled": "addLocation"}

    def test_failing_registered_handler_falls_back(self) -> None:
        handler = ErrorHandler()

        def broken(_error: Exception) -> dict:
            raise RuntimeError("handler bug")

        handler.register_handler(HoverHitsError, broken)
        record = handler.handle_error(HoverHitsError("original"))

        assert record["message"] == "original"

    def test_reraise(self) -> None:
        with pytest.raises(ValueError):
            handle_error(ValueError("again"), reraise=True)
