"""HoverDispatcher: turns gutter hover events into hit-count results.

The UI calls :meth:`HoverDispatcher.on_line_enter` and
:meth:`HoverDispatcher.on_line_leave` from the event loop thread. Each enter
arms a debounce timer. Timers are never cancelled: when one fires it checks
whether its line is still the hovered line and does nothing otherwise.

When a timer's line is still hovered the dispatcher resolves the line to a
breakpointable location and then, unless something already covers it,
counts the hits either from the bulk per-source counter (heat-map mode) or
by running one remote analysis for that location.
A transport failure is shown for the hovered line but not stored, so the
next hover on that line counts again.

The hover target (``_current_line``, ``_anchor``, ``_hovered_location``) is
written only by the enter/leave handlers and by the firing path for the
still-current line; everything else reads it.
"""

from __future__ import annotations

import asyncio
from enum import Enum
import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import Callable

from hoverhits.config import get_config
from hoverhits.errors import TransportError
from hoverhits.errors import TransportErrorContext
from hoverhits.errors import async_handle_transport_errors
from hoverhits.errors import handle_error
from hoverhits.hover.results import HitCountStore
from hoverhits.hover.results import format_hit_count
from hoverhits.protocol.structures import AnalysisErrorKind
from hoverhits.protocol.structures import AnalysisRequest
from hoverhits.protocol.structures import AnalysisResult
from hoverhits.suspense.async_cache import AsyncCache
from hoverhits.utils.events import EventEmitter

if TYPE_CHECKING:
    from collections.abc import Mapping

    from hoverhits.analysis.session import AnalysisSession
    from hoverhits.config import HoverHitsConfig
    from hoverhits.protocol.collaborators import BreakpointIndex
    from hoverhits.protocol.collaborators import BulkLineCounter
    from hoverhits.protocol.collaborators import FocusWindow
    from hoverhits.protocol.collaborators import IndexingStatus
    from hoverhits.protocol.collaborators import LocationResolver
    from hoverhits.protocol.collaborators import SessionProvider
    from hoverhits.protocol.structures import HitCountDisplay
    from hoverhits.protocol.structures import Location
    from hoverhits.protocol.structures import SourceDetails
    from hoverhits.protocol.structures import SourceId

logger = logging.getLogger(__name__)

HIT_COUNT_PUBLISHED = "hit_count_published"
HOVER_CHANGED = "hover_changed"
MODE_CHANGED = "mode_changed"


class DispatchMode(Enum):
    """How hit counts are obtained. The only transition is HEAT_MAP -> PER_LOCATION."""

    HEAT_MAP = "heat_map"
    PER_LOCATION = "per_location"


class HoverDispatcher:
    """Debounces hovers and runs at most one hit count per location."""

    def __init__(
        self,
        *,
        resolver: LocationResolver,
        breakpoints: BreakpointIndex,
        sessions: SessionProvider,
        analysis: AnalysisSession,
        focus_window: FocusWindow | None = None,
        bulk_counter: BulkLineCounter | None = None,
        indexing: IndexingStatus | None = None,
        store: HitCountStore | None = None,
        config: HoverHitsConfig | None = None,
    ) -> None:
        self._config = config or get_config()
        self._resolver = resolver
        self._breakpoints = breakpoints
        self._sessions = sessions
        self._analysis = analysis
        self._focus_window = focus_window
        self._indexing = indexing
        self.store = store if store is not None else HitCountStore()

        self._bulk_counter = bulk_counter
        self._line_counts: AsyncCache[SourceId, Mapping[int, int]] | None = None
        if bulk_counter is not None:
            self._line_counts = AsyncCache(self._fetch_line_counts, name="line-counts")
        if self._config.code_heat_maps and self._line_counts is not None:
            self._mode = DispatchMode.HEAT_MAP
        else:
            self._mode = DispatchMode.PER_LOCATION

        self._source: SourceDetails | None = None
        self._current_line: int | None = None
        self._anchor: Any = None
        self._hovered_location: Location | None = None

        self._in_flight: set[Location] = set()
        # Transport failures, shown for the hovered line but counted again on the next hover.
        self._failed: dict[Location, AnalysisResult] = {}
        self._timers: set[asyncio.Future[None]] = set()
        self._tasks: set[asyncio.Task[None]] = set()
        self._events = EventEmitter()
        self._closed = False

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------
    @property
    def mode(self) -> DispatchMode:
        return self._mode

    @property
    def current_line(self) -> int | None:
        return self._current_line

    @property
    def anchor(self) -> Any:
        return self._anchor

    @property
    def hovered_location(self) -> Location | None:
        return self._hovered_location

    @property
    def in_flight(self) -> frozenset[Location]:
        return frozenset(self._in_flight)

    def subscribe(
        self, listener: Callable[[Location, HitCountDisplay], Any]
    ) -> Callable[[], None]:
        """Listen for hit counts published for the hovered location."""
        return self._events.on(HIT_COUNT_PUBLISHED, listener)

    def on(self, event: str, listener: Callable[..., Any]) -> Callable[[], None]:
        return self._events.on(event, listener)

    def select_source(self, source: SourceDetails | None) -> None:
        """Set the source whose gutter is being hovered."""
        if source != self._source:
            self.on_line_leave()
        self._source = source

    # ------------------------------------------------------------------
    # Hover events
    # ------------------------------------------------------------------
    def on_line_enter(self, line: int, anchor: Any = None) -> None:
        """Record ``line`` as the hover target and arm its debounce timer."""
        if self._closed:
            return
        self._current_line = line
        self._anchor = anchor
        self._hovered_location = self._resolve(line)
        self._events.emit(HOVER_CHANGED, line)

        loop = asyncio.get_running_loop()
        fired = loop.create_future()
        self._timers.add(fired)
        loop.call_later(self._config.hover.debounce_seconds, self._on_debounce_fired, line, fired)

    def on_line_leave(self) -> None:
        """Forget the hover target immediately."""
        if self._current_line is None and self._anchor is None:
            return
        self._current_line = None
        self._anchor = None
        self._hovered_location = None
        self._events.emit(HOVER_CHANGED, None)

    def _on_debounce_fired(self, line: int, fired: asyncio.Future[None]) -> None:
        self._timers.discard(fired)
        if not fired.done():
            fired.set_result(None)

        if self._closed or line != self._current_line or self._source is None:
            logger.debug("Debounce for line %d superseded", line)
            return

        task = asyncio.get_running_loop().create_task(
            self._count_line(self._source.source_id, line)
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            handle_error(error, context={"operation": "countHits"})  # type: ignore[arg-type]

    # ------------------------------------------------------------------
    # Counting
    # ------------------------------------------------------------------
    def _resolve(self, line: int) -> Location | None:
        if self._source is None:
            return None
        return self._resolver.resolve(self._source.source_id, line)

    def _is_current(self, source_id: SourceId, line: int) -> bool:
        return (
            line == self._current_line
            and self._source is not None
            and self._source.source_id == source_id
        )

    async def _count_line(self, source_id: SourceId, line: int) -> None:
        location = self._resolver.resolve(source_id, line)
        if location is None:
            logger.debug("No breakpointable position on line %d of %s", line, source_id)
            return
        if self._is_current(source_id, line):
            self._hovered_location = location

        if self._breakpoints.has_enabled_breakpoint(location):
            logger.debug("Enabled breakpoint at %s; not counting hits", location)
            return

        if self._mode is DispatchMode.HEAT_MAP:
            if await self._load_line_counts(source_id):
                self._publish(location)
                return

        await self._analyze_location(location)

    @async_handle_transport_errors("lineHitCounts")
    async def _fetch_line_counts(self, source_id: SourceId) -> Mapping[int, int]:
        return await self._bulk_counter.fetch(source_id)  # type: ignore[union-attr]

    async def _load_line_counts(self, source_id: SourceId) -> bool:
        if self._line_counts is None:
            return False
        try:
            await self._line_counts.get_or_fetch(source_id)
        except Exception as e:
            if self._mode is DispatchMode.HEAT_MAP:
                logger.warning(
                    "Line hit counts for %s unavailable, switching to per-location analysis: %s",
                    source_id,
                    e,
                )
                self._mode = DispatchMode.PER_LOCATION
                self._events.emit(MODE_CHANGED, self._mode)
            return False
        return True

    async def _analyze_location(self, location: Location) -> None:
        # Check and claim without awaiting in between.
        if location in self.store or location in self._in_flight:
            logger.debug("Hits for %s already known or being counted", location)
            return
        self._in_flight.add(location)
        self._failed.pop(location, None)
        try:
            result = await self._run_analysis(location)
        finally:
            self._in_flight.discard(location)

        if result.error is AnalysisErrorKind.TRANSPORT:
            self._failed[location] = result
        else:
            self.store.put(location, result)
        self._publish(location)

    async def _run_analysis(self, location: Location) -> AnalysisResult:
        try:
            with TransportErrorContext("waitForSession"):
                session_id = await self._sessions.wait_for_session()
            request = AnalysisRequest(
                session_id=session_id,
                mapper=self._config.analysis.mapper,
                effectful=self._config.analysis.effectful,
                range=self._focus_window.current() if self._focus_window is not None else None,
            )
            return await self._analysis.count_points(request, location)
        except TransportError as e:
            logger.warning("Hit count analysis for %s failed: %s", location, e)
        except Exception as e:
            handle_error(e, log_level=logging.WARNING, context={"location": str(location)})
        return AnalysisResult(error=AnalysisErrorKind.TRANSPORT)

    def _publish(self, location: Location) -> None:
        if location != self._hovered_location:
            logger.debug("Result for %s arrived after the hover moved on", location)
            return
        display = self.current_display()
        if display is not None:
            self._events.emit(HIT_COUNT_PUBLISHED, location, display)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    def current_display(self) -> HitCountDisplay | None:
        """What to show for the hovered line, or ``None`` to show nothing."""
        location = self._hovered_location
        if self._current_line is None or location is None:
            return None
        if self._breakpoints.has_enabled_breakpoint(location):
            return None

        indexed = self._indexing.is_indexed() if self._indexing is not None else True
        if self._mode is DispatchMode.HEAT_MAP and self._line_counts is not None:
            cached = self._line_counts.peek(location.source_id)
            count = cached.value.get(location.line, 0) if cached.value is not None else None
            return format_hit_count(count=count, indexed=indexed, config=self._config.hover)

        result = self.store.get(location)
        if result is None:
            result = self._failed.get(location)
        return format_hit_count(result, indexed=indexed, config=self._config.hover)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def wait_idle(self) -> None:
        """Wait until no debounce timer is armed and no count is running."""
        while self._timers or self._tasks:
            await asyncio.gather(*self._timers, *self._tasks, return_exceptions=True)

    async def close(self) -> None:
        """Stop reacting to hovers and wait for running counts to finish."""
        self._closed = True
        await self.wait_idle()
        if self._line_counts is not None:
            await self._line_counts.wait_idle()
