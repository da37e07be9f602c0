"""Bookkeeping for analyses that have been started.

The tracker is the record of every analysis a session drove: which location
it was for, how far it got and what it found. Collaborators such as
telemetry subscribe to its events instead of wrapping the session.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import Callable

from hoverhits.protocol.structures import AnalysisErrorKind
from hoverhits.protocol.structures import AnalysisState
from hoverhits.utils.events import EventEmitter

if TYPE_CHECKING:
    from hoverhits.protocol.structures import ExecutionPoint
    from hoverhits.protocol.structures import Location

logger = logging.getLogger(__name__)

ANALYSIS_CREATED = "analysis_created"
ANALYSIS_POINTS_REQUESTED = "analysis_points_requested"
ANALYSIS_POINTS_RECEIVED = "analysis_points_received"
ANALYSIS_ERRORED = "analysis_errored"
ANALYSIS_RELEASED = "analysis_released"


@dataclass
class AnalysisRecord:
    analysis_id: str
    location: Location | None
    state: AnalysisState = AnalysisState.CREATED
    points: tuple[ExecutionPoint, ...] = ()
    error: AnalysisErrorKind | None = None
    extra: dict[str, Any] = field(default_factory=dict)


class AnalysisTracker:
    """Records the status of each analysis by id."""

    def __init__(self) -> None:
        self._records: dict[str, AnalysisRecord] = {}
        self._events = EventEmitter()

    def subscribe(self, event: str, listener: Callable[[AnalysisRecord], Any]) -> Callable[[], None]:
        return self._events.on(event, listener)

    def get(self, analysis_id: str) -> AnalysisRecord | None:
        return self._records.get(analysis_id)

    def records_for_location(self, location: Location) -> list[AnalysisRecord]:
        return [r for r in self._records.values() if r.location == location]

    def errored_locations(self) -> list[Location]:
        return [
            r.location
            for r in self._records.values()
            if r.error is not None and r.location is not None
        ]

    def analysis_created(self, analysis_id: str, location: Location | None = None) -> None:
        record = AnalysisRecord(analysis_id=analysis_id, location=location)
        self._records[analysis_id] = record
        self._events.emit(ANALYSIS_CREATED, record)

    def location_added(self, analysis_id: str, location: Location) -> None:
        record = self._require(analysis_id)
        if record is None:
            return
        record.location = location
        record.state = AnalysisState.LOCATION_ADDED

    def points_requested(self, analysis_id: str) -> None:
        record = self._require(analysis_id)
        if record is None:
            return
        record.state = AnalysisState.POINTS_REQUESTED
        self._events.emit(ANALYSIS_POINTS_REQUESTED, record)

    def points_received(self, analysis_id: str, points: tuple[ExecutionPoint, ...]) -> None:
        record = self._require(analysis_id)
        if record is None:
            return
        record.state = AnalysisState.POINTS_READY
        record.points = points
        self._events.emit(ANALYSIS_POINTS_RECEIVED, record)

    def errored(
        self,
        analysis_id: str,
        error: AnalysisErrorKind,
        points: tuple[ExecutionPoint, ...] = (),
    ) -> None:
        record = self._require(analysis_id)
        if record is None:
            return
        record.state = AnalysisState.ERRORED
        record.error = error
        record.points = points
        self._events.emit(ANALYSIS_ERRORED, record)

    def released(self, analysis_id: str) -> None:
        record = self._require(analysis_id)
        if record is None:
            return
        # Keep the last meaningful state; release is reported as an event only.
        self._events.emit(ANALYSIS_RELEASED, record)

    def _require(self, analysis_id: str) -> AnalysisRecord | None:
        record = self._records.get(analysis_id)
        if record is None:
            logger.debug("No record for analysis %s", analysis_id)
        return record
