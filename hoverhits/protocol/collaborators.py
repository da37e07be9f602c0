"""Interfaces of the collaborators the core consumes.

Anything network-bound is a coroutine; lookups answered from UI state are
plain calls.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping
    from collections.abc import Sequence

    from hoverhits.protocol.structures import Frame
    from hoverhits.protocol.structures import Location
    from hoverhits.protocol.structures import PauseId
    from hoverhits.protocol.structures import PointRange
    from hoverhits.protocol.structures import PointsReply
    from hoverhits.protocol.structures import SourceId


class LocationResolver(Protocol):
    def resolve(self, source_id: SourceId, line: int) -> Location | None:
        """Return the first breakpointable position on ``line``, if any."""
        ...


class BreakpointIndex(Protocol):
    def has_enabled_breakpoint(self, location: Location) -> bool:
        ...


class FocusWindow(Protocol):
    def current(self) -> PointRange | None:
        """Return the focused execution-point range, or ``None`` for the whole recording."""
        ...


class IndexingStatus(Protocol):
    def is_indexed(self) -> bool:
        ...


class BulkLineCounter(Protocol):
    async def fetch(self, source_id: SourceId) -> Mapping[int, int]:
        """Return hit counts per line of a source.

        Raises:
            BulkCountError: if the counts cannot be computed for this source.
        """
        ...


class SessionProvider(Protocol):
    async def wait_for_session(self) -> str:
        """Return the recording session id once the session is ready."""
        ...


class AnalysisTransport(Protocol):
    """Remote analysis calls. Timeouts and retries are the transport's concern."""

    async def create_analysis(self, params: dict) -> str:
        """Create an analysis and return its id."""
        ...

    async def add_location(self, analysis_id: str, location: Location) -> None:
        ...

    async def find_points(self, analysis_id: str) -> PointsReply:
        ...

    async def release_analysis(self, analysis_id: str) -> None:
        ...


class FrameTransport(Protocol):
    async def get_frames(self, pause_id: PauseId) -> Sequence[Frame]:
        ...


__all__ = [
    "AnalysisTransport",
    "BreakpointIndex",
    "BulkLineCounter",
    "FocusWindow",
    "FrameTransport",
    "IndexingStatus",
    "LocationResolver",
    "SessionProvider",
]
