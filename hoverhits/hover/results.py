"""Hit-count results keyed by location, and how they are shown."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import Callable

from hoverhits.config import HoverConfig
from hoverhits.protocol.structures import AnalysisErrorKind
from hoverhits.protocol.structures import HitCountDisplay
from hoverhits.protocol.structures import HitCountState
from hoverhits.utils.events import EventEmitter

if TYPE_CHECKING:
    from hoverhits.protocol.structures import AnalysisResult
    from hoverhits.protocol.structures import Location

logger = logging.getLogger(__name__)

RESULT_STORED = "result_stored"

INDEXING_TEXT = "Indexing…"
LOADING_TEXT = "Loading…"


def hits_text(count: int) -> str:
    return f"{count} hit{'' if count == 1 else 's'}"


def format_hit_count(
    result: AnalysisResult | None = None,
    count: int | None = None,
    *,
    indexed: bool = True,
    config: HoverConfig | None = None,
) -> HitCountDisplay:
    """Turn an analysis result (or a bulk line count) into display state.

    ``count`` takes precedence over the result's points when given. With
    neither, the line is still loading.
    """
    config = config or HoverConfig()
    if not indexed:
        return HitCountDisplay(HitCountState.LOADING, INDEXING_TEXT)

    if result is not None and result.error is not None:
        if result.error is AnalysisErrorKind.TOO_MANY_POINTS_TO_FIND:
            return HitCountDisplay(HitCountState.READY, config.too_many_points_text)
        return HitCountDisplay(HitCountState.ERROR, config.error_text)

    if count is None and result is not None:
        count = result.hit_count
    if count is None:
        return HitCountDisplay(HitCountState.LOADING, LOADING_TEXT)

    return HitCountDisplay(
        HitCountState.READY,
        hits_text(count),
        is_warning_level=count > config.warning_threshold,
    )


class HitCountStore:
    """Analysis results keyed by resolved location.

    A location's first stored result is kept; later results for the same
    location are ignored.
    """

    def __init__(self) -> None:
        self._results: dict[Location, AnalysisResult] = {}
        self._events = EventEmitter()

    def __contains__(self, location: Location) -> bool:
        return location in self._results

    def __len__(self) -> int:
        return len(self._results)

    def get(self, location: Location) -> AnalysisResult | None:
        return self._results.get(location)

    def put(self, location: Location, result: AnalysisResult) -> bool:
        if location in self._results:
            logger.debug("Result for %s already stored; keeping the first", location)
            return False
        self._results[location] = result
        self._events.emit(RESULT_STORED, location, result)
        return True

    def subscribe(
        self, listener: Callable[[Location, AnalysisResult], Any]
    ) -> Callable[[], None]:
        return self._events.on(RESULT_STORED, listener)
