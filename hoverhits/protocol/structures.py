"""
Common object shapes shared by the analysis pipeline, the caches and the
frame projector: Location, AnalysisRequest, AnalysisResult, Frame, ...
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from enum import auto
from typing import TYPE_CHECKING
from typing import Any
from typing import Generic
from typing import TypeVar

if TYPE_CHECKING:
    from collections.abc import Mapping

V = TypeVar("V")

# Opaque ordinal identifying a moment in a recording.
ExecutionPoint = str
PauseId = str
FrameId = str
SourceId = str


# Location related types
@dataclass(frozen=True)
class Location:
    """A position in a source.

    ``column`` is ``None`` only on a location that has not been resolved to a
    breakpointable position yet. Resolved locations are used as dedupe and
    result-store keys, so equality is structural.
    """

    source_id: SourceId
    line: int
    column: int | None = None
    url: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.column is not None

    def with_column(self, column: int) -> Location:
        return Location(source_id=self.source_id, line=self.line, column=column, url=self.url)


@dataclass(frozen=True)
class PointRange:
    """An execution-point range restricting an analysis to part of a recording."""

    begin: ExecutionPoint
    end: ExecutionPoint


# Analysis related types
@dataclass(frozen=True)
class AnalysisRequest:
    """Parameters for creating a remote analysis.

    ``range`` is ``None`` when the whole recording is analysed.
    """

    session_id: str
    mapper: str = ""
    effectful: bool = True
    range: PointRange | None = None

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "sessionId": self.session_id,
            "mapper": self.mapper,
            "effectful": self.effectful,
        }
        if self.range is not None:
            params["range"] = {"begin": self.range.begin, "end": self.range.end}
        return params


class AnalysisState(Enum):
    """Lifecycle of a remote analysis handle."""

    CREATED = auto()
    LOCATION_ADDED = auto()
    POINTS_REQUESTED = auto()
    POINTS_READY = auto()
    ERRORED = auto()
    RELEASED = auto()


class AnalysisErrorKind(Enum):
    """Why an analysis result carries no (or only partial) points."""

    TOO_MANY_POINTS_TO_FIND = "TooManyPointsToFind"
    TRANSPORT = "TransportError"


@dataclass
class AnalysisHandle:
    """One remote analysis job.

    Owned by the :class:`~hoverhits.analysis.session.AnalysisSession` that
    created it until it is released. ``state`` is only ever advanced by that
    session.
    """

    analysis_id: str
    state: AnalysisState = AnalysisState.CREATED
    location: Location | None = None

    @property
    def is_released(self) -> bool:
        return self.state is AnalysisState.RELEASED


@dataclass(frozen=True)
class PointsReply:
    """What the remote transport answers to a find-points request."""

    points: tuple[ExecutionPoint, ...] = ()
    too_many_points: bool = False


@dataclass(frozen=True)
class AnalysisResult:
    """Execution points where a location was reached, or why they are missing."""

    points: tuple[ExecutionPoint, ...] = ()
    error: AnalysisErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def hit_count(self) -> int:
        return len(self.points)


# Hit-count display types
class HitCountState(Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class HitCountDisplay:
    """What the UI layer renders next to a hovered line number."""

    state: HitCountState
    text: str
    is_warning_level: bool = False


# Cache related types
@dataclass(frozen=True)
class CachedValue(Generic[V]):
    """Answer of a non-blocking cache lookup."""

    has_value: bool
    value: V | None = None


# Frame related types
@dataclass(frozen=True)
class MappedLocation:
    """One of the (possibly source-mapped) positions of a frame."""

    source_id: SourceId
    line: int
    column: int = 0


@dataclass(frozen=True)
class Frame:
    """A raw stack frame of a paused execution, as sent by the backend.

    ``location`` lists every mapped position of the frame, generated source
    first.
    """

    frame_id: FrameId
    location: tuple[MappedLocation, ...]
    function_name: str | None = None
    type: str = "call"
    this_object: Any = None


@dataclass(frozen=True)
class PauseAndFrameId:
    pause_id: PauseId
    frame_id: FrameId


@dataclass(frozen=True)
class SourceDetails:
    """Metadata about one source, used to present frames."""

    source_id: SourceId
    url: str | None = None
    kind: str = "scriptSource"
    is_blackboxed: bool = False

    @property
    def is_minified(self) -> bool:
        return self.kind == "prettyPrinted" or (self.url or "").endswith(".min.js")


@dataclass(frozen=True)
class SourcesState:
    """Known sources keyed by id."""

    details: Mapping[SourceId, SourceDetails] = field(default_factory=dict)

    def get(self, source_id: SourceId) -> SourceDetails | None:
        return self.details.get(source_id)


@dataclass(frozen=True)
class ProjectedFrame:
    """A frame prepared for the call-stack view.

    Built only by :func:`hoverhits.frames.projector.project` and never mutated.
    """

    id: FrameId
    protocol_id: FrameId
    pause_id: PauseId
    index: int
    display_name: str
    location: MappedLocation
    source: SourceDetails
    alternate_location: MappedLocation | None = None
    library: str | None = None
    this_object: Any = None


__all__ = [
    "AnalysisErrorKind",
    "AnalysisHandle",
    "AnalysisRequest",
    "AnalysisResult",
    "AnalysisState",
    "CachedValue",
    "ExecutionPoint",
    "Frame",
    "FrameId",
    "HitCountDisplay",
    "HitCountState",
    "Location",
    "MappedLocation",
    "PauseAndFrameId",
    "PauseId",
    "PointRange",
    "PointsReply",
    "ProjectedFrame",
    "SourceDetails",
    "SourceId",
    "SourcesState",
]
