from __future__ import annotations

import asyncio
from dataclasses import dataclass
from dataclasses import field

from hoverhits.protocol.structures import Frame
from hoverhits.protocol.structures import Location
from hoverhits.protocol.structures import MappedLocation
from hoverhits.protocol.structures import PointRange
from hoverhits.protocol.structures import PointsReply
from hoverhits.protocol.structures import SourceDetails
from hoverhits.protocol.structures import SourcesState

# Expose names for import convenience in tests
__all__ = [
    "FakeAnalysisTransport",
    "FakeBreakpoints",
    "FakeBulkCounter",
    "FakeFocusWindow",
    "FakeFrameTransport",
    "FakeIndexing",
    "FakeResolver",
    "FakeSessions",
    "make_frame",
    "make_sources",
]


class FakeAnalysisTransport:
    """In-memory analysis backend.

    ``replies`` maps ``(line, column)`` to what find-points answers; unknown
    locations find no points. Set ``gate`` to hold every find-points call
    until the event is set.
    """

    def __init__(self, replies: dict[tuple[int, int], PointsReply] | None = None):
        self.replies = replies or {}
        self.calls: list[tuple] = []
        self.created: list[str] = []
        self.released: list[str] = []
        self.locations: dict[str, Location] = {}
        self.fail_on: dict[str, Exception] = {}
        self.gate: asyncio.Event | None = None
        self._next_id = 0

    async def create_analysis(self, params: dict) -> str:
        self.calls.append(("create", params))
        if "create" in self.fail_on:
            raise self.fail_on["create"]
        self._next_id += 1
        analysis_id = f"analysis-{self._next_id}"
        self.created.append(analysis_id)
        return analysis_id

    async def add_location(self, analysis_id: str, location: Location) -> None:
        self.calls.append(("addLocation", analysis_id, location))
        if "addLocation" in self.fail_on:
            raise self.fail_on["addLocation"]
        self.locations[analysis_id] = location

    async def find_points(self, analysis_id: str) -> PointsReply:
        self.calls.append(("findPoints", analysis_id))
        if self.gate is not None:
            await self.gate.wait()
        if "findPoints" in self.fail_on:
            raise self.fail_on["findPoints"]
        location = self.locations[analysis_id]
        return self.replies.get((location.line, location.column or 0), PointsReply())

    async def release_analysis(self, analysis_id: str) -> None:
        self.calls.append(("release", analysis_id))
        self.released.append(analysis_id)
        if "release" in self.fail_on:
            raise self.fail_on["release"]

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


@dataclass
class FakeResolver:
    """Resolves a line to a fixed column; lines in ``misses`` have no position."""

    columns: dict[int, int] = field(default_factory=dict)
    misses: set[int] = field(default_factory=set)
    url: str = "https://example.com/app.js"

    def resolve(self, source_id: str, line: int) -> Location | None:
        if line in self.misses:
            return None
        return Location(
            source_id=source_id, line=line, column=self.columns.get(line, 0), url=self.url
        )


@dataclass
class FakeBreakpoints:
    enabled: set[Location] = field(default_factory=set)

    def has_enabled_breakpoint(self, location: Location) -> bool:
        return location in self.enabled


@dataclass
class FakeFocusWindow:
    range: PointRange | None = None

    def current(self) -> PointRange | None:
        return self.range


@dataclass
class FakeIndexing:
    indexed: bool = True

    def is_indexed(self) -> bool:
        return self.indexed


class FakeSessions:
    def __init__(self, session_id: str = "session-1"):
        self.session_id = session_id

    async def wait_for_session(self) -> str:
        return self.session_id


class FakeBulkCounter:
    def __init__(self, counts: dict[int, int] | None = None, error: Exception | None = None):
        self.counts = counts or {}
        self.error = error
        self.calls: list[str] = []

    async def fetch(self, source_id: str) -> dict[int, int]:
        self.calls.append(source_id)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return dict(self.counts)


class FakeFrameTransport:
    def __init__(self, frames: dict[str, list[Frame]] | None = None):
        self.frames = frames or {}
        self.calls: list[str] = []
        self.failures: list[Exception] = []
        self.gate: asyncio.Event | None = None

    async def get_frames(self, pause_id: str) -> list[Frame]:
        self.calls.append(pause_id)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.failures:
            raise self.failures.pop(0)
        return list(self.frames.get(pause_id, []))


def make_frame(frame_id: str, *locations: tuple[str, int], name: str | None = "fn") -> Frame:
    return Frame(
        frame_id=frame_id,
        location=tuple(MappedLocation(source_id=s, line=line, column=0) for s, line in locations),
        function_name=name,
    )


def make_sources(*details: SourceDetails) -> SourcesState:
    return SourcesState(details={d.source_id: d for d in details})
