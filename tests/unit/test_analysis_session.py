"""Tests for AnalysisSession lifecycle and release guarantees."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from hoverhits.analysis import AnalysisSession
from hoverhits.analysis import AnalysisTracker
from hoverhits.errors import AnalysisStateError
from hoverhits.errors import HoverHitsTimeoutError
from hoverhits.errors import TransportError
from hoverhits.protocol.structures import AnalysisErrorKind
from hoverhits.protocol.structures import AnalysisRequest
from hoverhits.protocol.structures import AnalysisState
from hoverhits.protocol.structures import Location
from hoverhits.protocol.structures import PointRange
from hoverhits.protocol.structures import PointsReply
from tests.mocks import FakeAnalysisTransport

LOCATION = Location(source_id="src-1", line=10, column=4)
REQUEST = AnalysisRequest(session_id="session-1")


class TestAnalysisLifecycle:
    @pytest.mark.asyncio
    async def test_states_advance_in_order(self):
        transport = FakeAnalysisTransport({(10, 4): PointsReply(points=("p1", "p2", "p3"))})
        session = AnalysisSession(transport)

        handle = await session.create(REQUEST)
        assert handle.state is AnalysisState.CREATED
        await session.add_location(handle, LOCATION)
        assert handle.state is AnalysisState.LOCATION_ADDED
        assert handle.location == LOCATION

        result = await session.find_points(handle)
        assert handle.state is AnalysisState.POINTS_READY
        assert result.points == ("p1", "p2", "p3")
        assert result.error is None

        await session.release(handle)
        assert handle.state is AnalysisState.RELEASED
        assert transport.released == [handle.analysis_id]

    @pytest.mark.asyncio
    async def test_create_sends_request_params(self):
        transport = FakeAnalysisTransport()
        session = AnalysisSession(transport)
        request = AnalysisRequest(
            session_id="s", mapper="", effectful=True, range=PointRange(begin="1", end="9")
        )

        await session.create(request)

        assert transport.calls[0] == (
            "create",
            {"sessionId": "s", "mapper": "", "effectful": True, "range": {"begin": "1", "end": "9"}},
        )

    @pytest.mark.asyncio
    async def test_whole_recording_request_has_no_range(self):
        transport = FakeAnalysisTransport()
        await AnalysisSession(transport).create(REQUEST)
        assert "range" not in transport.calls[0][1]

    @pytest.mark.asyncio
    async def test_too_many_points_is_a_result(self):
        transport = FakeAnalysisTransport(
            {(10, 4): PointsReply(points=("p1",), too_many_points=True)}
        )
        session = AnalysisSession(transport)

        result = await session.count_points(REQUEST, LOCATION)

        assert result.error is AnalysisErrorKind.TOO_MANY_POINTS_TO_FIND
        assert result.points == ("p1",)
        assert transport.count("release") == 1

    @pytest.mark.asyncio
    async def test_find_points_before_add_location_fails_fast(self):
        transport = FakeAnalysisTransport()
        session = AnalysisSession(transport)
        handle = await session.create(REQUEST)

        with pytest.raises(AnalysisStateError) as exc_info:
            await session.find_points(handle)

        assert exc_info.value.state == "CREATED"
        assert transport.count("findPoints") == 0

    @pytest.mark.asyncio
    async def test_add_location_twice_fails(self):
        session = AnalysisSession(FakeAnalysisTransport())
        handle = await session.create(REQUEST)
        await session.add_location(handle, LOCATION)

        with pytest.raises(AnalysisStateError):
            await session.add_location(handle, LOCATION)

    @pytest.mark.asyncio
    async def test_operations_on_released_handle_fail(self):
        session = AnalysisSession(FakeAnalysisTransport())
        handle = await session.create(REQUEST)
        await session.release(handle)

        with pytest.raises(AnalysisStateError):
            await session.add_location(handle, LOCATION)


class TestRelease:
    @pytest.mark.asyncio
    async def test_release_is_idempotent(self):
        transport = FakeAnalysisTransport()
        session = AnalysisSession(transport)
        handle = await session.create(REQUEST)

        await session.release(handle)
        await session.release(handle)

        assert transport.count("release") == 1
        assert session.live_handles == []

    @pytest.mark.asyncio
    async def test_concurrent_release_calls_release_once(self):
        transport = FakeAnalysisTransport()
        session = AnalysisSession(transport)
        handle = await session.create(REQUEST)

        await asyncio.gather(session.release(handle), session.release(handle))

        assert transport.count("release") == 1

    @pytest.mark.asyncio
    async def test_release_failure_is_logged_not_raised(self, caplog):
        transport = FakeAnalysisTransport()
        transport.fail_on["release"] = ConnectionError("gone")
        session = AnalysisSession(transport)
        handle = await session.create(REQUEST)

        await session.release(handle)

        assert handle.is_released
        assert "Failed to release analysis" in caplog.text

    @pytest.mark.asyncio
    async def test_add_location_fault_still_releases(self):
        transport = FakeAnalysisTransport()
        transport.fail_on["addLocation"] = ConnectionError("reset")
        session = AnalysisSession(transport)

        with pytest.raises(TransportError) as exc_info:
            await session.count_points(REQUEST, LOCATION)

        assert exc_info.value.operation == "addLocation"
        assert isinstance(exc_info.value.cause, ConnectionError)
        assert transport.count("create") == 1
        assert transport.count("release") == 1

    @pytest.mark.asyncio
    async def test_find_points_fault_marks_errored_and_releases(self):
        transport = FakeAnalysisTransport()
        transport.fail_on["findPoints"] = RuntimeError("backend exploded")
        tracker = AnalysisTracker()
        session = AnalysisSession(transport, tracker=tracker)

        with pytest.raises(TransportError):
            await session.count_points(REQUEST, LOCATION)

        assert transport.count("release") == 1
        record = tracker.get(transport.created[0])
        assert record is not None
        assert record.error is AnalysisErrorKind.TRANSPORT

    @pytest.mark.asyncio
    async def test_create_fault_has_nothing_to_release(self):
        transport = FakeAnalysisTransport()
        transport.fail_on["create"] = TimeoutError()
        session = AnalysisSession(transport)

        with pytest.raises(HoverHitsTimeoutError):
            await session.count_points(REQUEST, LOCATION)

        assert transport.count("release") == 0

    @pytest.mark.asyncio
    async def test_open_releases_on_caller_exception(self):
        transport = FakeAnalysisTransport()
        session = AnalysisSession(transport)

        with pytest.raises(ValueError):
            async with session.open(REQUEST):
                raise ValueError("caller bug")

        assert transport.count("release") == 1

    @pytest.mark.asyncio
    async def test_open_releases_on_cancellation(self):
        transport = FakeAnalysisTransport()
        transport.gate = asyncio.Event()
        session = AnalysisSession(transport)

        task = asyncio.create_task(session.count_points(REQUEST, LOCATION))
        while transport.count("findPoints") == 0:
            await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert transport.count("release") == 1

    @pytest.mark.asyncio
    async def test_transport_errors_pass_through_unwrapped(self):
        transport = AsyncMock()
        original = TransportError("already classified", operation="createAnalysis")
        transport.create_analysis.side_effect = original
        session = AnalysisSession(transport)

        with pytest.raises(TransportError) as exc_info:
            await session.create(REQUEST)

        assert exc_info.value is original


class TestTrackerEvents:
    @pytest.mark.asyncio
    async def test_tracker_sees_every_step(self):
        transport = FakeAnalysisTransport({(10, 4): PointsReply(points=("p1",))})
        tracker = AnalysisTracker()
        seen = []
        for event in (
            "analysis_created",
            "analysis_points_requested",
            "analysis_points_received",
            "analysis_released",
        ):
            tracker.subscribe(event, lambda record, event=event: seen.append(event))
        session = AnalysisSession(transport, tracker=tracker)

        await session.count_points(REQUEST, LOCATION)

        assert seen == [
            "analysis_created",
            "analysis_points_requested",
            "analysis_points_received",
            "analysis_released",
        ]
        record = tracker.get("analysis-1")
        assert record is not None
        assert record.location == LOCATION
        assert record.points == ("p1",)

    @pytest.mark.asyncio
    async def test_too_many_points_is_recorded_as_error(self):
        transport = FakeAnalysisTransport({(10, 4): PointsReply(too_many_points=True)})
        tracker = AnalysisTracker()
        session = AnalysisSession(transport, tracker=tracker)

        await session.count_points(REQUEST, LOCATION)

        assert tracker.errored_locations() == [LOCATION]
