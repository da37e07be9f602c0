"""AnalysisSession: drives remote analysis jobs through their lifecycle.

A handle moves ``CREATED -> LOCATION_ADDED -> POINTS_REQUESTED ->
POINTS_READY | ERRORED -> RELEASED``. ``RELEASED`` is terminal and reachable
from every state. Server-side jobs hold resources until released, so callers
should acquire handles through :meth:`AnalysisSession.open`, which releases
on every exit path.

Typical use::

    async with session.open(request) as handle:
        await session.add_location(handle, location)
        result = await session.find_points(handle)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

from hoverhits.errors import AnalysisStateError
from hoverhits.errors import TransportError
from hoverhits.errors import TransportErrorContext
from hoverhits.protocol.structures import AnalysisErrorKind
from hoverhits.protocol.structures import AnalysisHandle
from hoverhits.protocol.structures import AnalysisResult
from hoverhits.protocol.structures import AnalysisState

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from hoverhits.analysis.tracker import AnalysisTracker
    from hoverhits.protocol.collaborators import AnalysisTransport
    from hoverhits.protocol.structures import AnalysisRequest
    from hoverhits.protocol.structures import Location

logger = logging.getLogger(__name__)


class AnalysisSession:
    """Owns the handles it creates until they are released."""

    def __init__(
        self,
        transport: AnalysisTransport,
        *,
        tracker: AnalysisTracker | None = None,
    ) -> None:
        self._transport = transport
        self._tracker = tracker
        self._live: dict[str, AnalysisHandle] = {}

    @property
    def live_handles(self) -> list[AnalysisHandle]:
        """Handles created by this session and not yet released."""
        return list(self._live.values())

    async def create(self, request: AnalysisRequest) -> AnalysisHandle:
        """Allocate a remote analysis job.

        Raises:
            TransportError: if the job could not be created.
        """
        with TransportErrorContext("createAnalysis"):
            analysis_id = await self._transport.create_analysis(request.to_params())

        handle = AnalysisHandle(analysis_id=analysis_id)
        self._live[analysis_id] = handle
        logger.debug("Created analysis %s (range=%s)", analysis_id, request.range)
        if self._tracker is not None:
            self._tracker.analysis_created(analysis_id)
        return handle

    async def add_location(self, handle: AnalysisHandle, location: Location) -> None:
        """Point the analysis at ``location``.

        Raises:
            AnalysisStateError: if the handle is not freshly created.
            TransportError: if the backend rejected the request.
        """
        self._expect(handle, AnalysisState.CREATED, "addLocation")
        with TransportErrorContext("addLocation", analysis_id=handle.analysis_id):
            await self._transport.add_location(handle.analysis_id, location)

        handle.location = location
        handle.state = AnalysisState.LOCATION_ADDED
        if self._tracker is not None:
            self._tracker.location_added(handle.analysis_id, location)

    async def find_points(self, handle: AnalysisHandle) -> AnalysisResult:
        """Run the analysis and collect the points where its location was hit.

        Too many points is reported in the result, not raised: the returned
        result then carries the partial points and
        ``AnalysisErrorKind.TOO_MANY_POINTS_TO_FIND``.

        Raises:
            AnalysisStateError: if no location was added first.
            TransportError: if the request failed; the handle is left ``ERRORED``.
        """
        self._expect(handle, AnalysisState.LOCATION_ADDED, "findPoints")
        handle.state = AnalysisState.POINTS_REQUESTED
        if self._tracker is not None:
            self._tracker.points_requested(handle.analysis_id)

        try:
            with TransportErrorContext("findPoints", analysis_id=handle.analysis_id):
                reply = await self._transport.find_points(handle.analysis_id)
        except TransportError:
            if not handle.is_released:
                handle.state = AnalysisState.ERRORED
            if self._tracker is not None:
                self._tracker.errored(handle.analysis_id, AnalysisErrorKind.TRANSPORT)
            raise

        points = tuple(reply.points)
        if reply.too_many_points:
            handle.state = AnalysisState.ERRORED
            if self._tracker is not None:
                self._tracker.errored(
                    handle.analysis_id, AnalysisErrorKind.TOO_MANY_POINTS_TO_FIND, points
                )
            logger.debug("Analysis %s found too many points", handle.analysis_id)
            return AnalysisResult(points=points, error=AnalysisErrorKind.TOO_MANY_POINTS_TO_FIND)

        handle.state = AnalysisState.POINTS_READY
        if self._tracker is not None:
            self._tracker.points_received(handle.analysis_id, points)
        logger.debug("Analysis %s found %d point(s)", handle.analysis_id, len(points))
        return AnalysisResult(points=points)

    async def release(self, handle: AnalysisHandle) -> None:
        """Free the server-side job. Safe to call more than once and from any state.

        A failing remote release is logged; it never replaces the outcome the
        caller is already propagating.
        """
        if handle.is_released:
            return
        # Mark first so a concurrent second call cannot issue another release.
        handle.state = AnalysisState.RELEASED
        self._live.pop(handle.analysis_id, None)
        try:
            await self._transport.release_analysis(handle.analysis_id)
        except Exception:
            logger.warning("Failed to release analysis %s", handle.analysis_id, exc_info=True)
        if self._tracker is not None:
            self._tracker.released(handle.analysis_id)

    @asynccontextmanager
    async def open(self, request: AnalysisRequest) -> AsyncIterator[AnalysisHandle]:
        """Create a handle and release it when the block exits, however it exits."""
        handle = await self.create(request)
        try:
            yield handle
        finally:
            await self.release(handle)

    async def count_points(self, request: AnalysisRequest, location: Location) -> AnalysisResult:
        """Run a complete analysis for one location.

        Raises:
            TransportError: from any step; the handle is released regardless.
        """
        async with self.open(request) as handle:
            await self.add_location(handle, location)
            return await self.find_points(handle)

    def _expect(self, handle: AnalysisHandle, state: AnalysisState, operation: str) -> None:
        if handle.state is not state:
            raise AnalysisStateError(
                f"Cannot {operation} on analysis {handle.analysis_id} in state {handle.state.name}",
                state=handle.state.name,
                operation=operation,
                details={"analysis_id": handle.analysis_id, "expected": state.name},
            )
