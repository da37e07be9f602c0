"""Stack frames of paused executions, cached per pause.

Raw frames come from an :class:`AsyncCache`; the ``pause_frames`` accessors
additionally run them through :func:`hoverhits.frames.projector.project`.
Projection happens on every call and is never cached here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hoverhits.errors import FrameFetchError
from hoverhits.errors import HoverHitsError
from hoverhits.errors import classify_transport_error
from hoverhits.frames.projector import project
from hoverhits.suspense.async_cache import AsyncCache

if TYPE_CHECKING:
    from hoverhits.protocol.collaborators import FrameTransport
    from hoverhits.protocol.structures import Frame
    from hoverhits.protocol.structures import PauseAndFrameId
    from hoverhits.protocol.structures import PauseId
    from hoverhits.protocol.structures import ProjectedFrame
    from hoverhits.protocol.structures import SourcesState

logger = logging.getLogger(__name__)


def _find_frame(frames: tuple[Frame, ...] | None, frame_id: str) -> Frame | None:
    if not frames:
        return None
    return next((frame for frame in frames if frame.frame_id == frame_id), None)


class FrameCache:
    """Frame accessors for one replay client."""

    def __init__(self, client: FrameTransport) -> None:
        self._client = client
        self.cache: AsyncCache[PauseId, tuple[Frame, ...]] = AsyncCache(
            self._fetch_frames, name="frames"
        )

    async def _fetch_frames(self, pause_id: PauseId) -> tuple[Frame, ...]:
        try:
            frames = await self._client.get_frames(pause_id)
        except HoverHitsError:
            raise
        except Exception as e:
            cause = classify_transport_error(e, operation="getFrames")
            raise FrameFetchError(
                f"Could not load frames for pause {pause_id}", pause_id=pause_id, cause=cause
            ) from e
        return tuple(frames)

    # ------------------------------------------------------------------
    # Raw frames
    # ------------------------------------------------------------------
    def get_frames_suspense(self, pause_id: PauseId) -> tuple[Frame, ...]:
        """Return cached frames or raise ``ValueNotReady`` while they load."""
        return self.cache.read(pause_id)

    async def get_frames_async(self, pause_id: PauseId) -> tuple[Frame, ...]:
        return await self.cache.get_or_fetch(pause_id)

    def get_frames_if_cached(self, pause_id: PauseId) -> tuple[Frame, ...] | None:
        cached = self.cache.peek(pause_id)
        return cached.value if cached.has_value else None

    def get_frame_suspense(self, pause_and_frame_id: PauseAndFrameId) -> Frame | None:
        frames = self.get_frames_suspense(pause_and_frame_id.pause_id)
        return _find_frame(frames, pause_and_frame_id.frame_id)

    async def get_frame_async(self, pause_and_frame_id: PauseAndFrameId) -> Frame | None:
        frames = await self.get_frames_async(pause_and_frame_id.pause_id)
        return _find_frame(frames, pause_and_frame_id.frame_id)

    # ------------------------------------------------------------------
    # Projected frames
    # ------------------------------------------------------------------
    def get_pause_frames_suspense(
        self, pause_id: PauseId, sources: SourcesState
    ) -> tuple[ProjectedFrame, ...]:
        return project(pause_id, self.get_frames_suspense(pause_id), sources)

    async def get_pause_frames_async(
        self, pause_id: PauseId, sources: SourcesState
    ) -> tuple[ProjectedFrame, ...]:
        return project(pause_id, await self.get_frames_async(pause_id), sources)

    def get_pause_frames_if_cached(
        self, pause_id: PauseId, sources: SourcesState
    ) -> tuple[ProjectedFrame, ...] | None:
        frames = self.get_frames_if_cached(pause_id)
        if frames is None:
            return None
        return project(pause_id, frames, sources)

    def get_pause_frame_suspense(
        self, pause_and_frame_id: PauseAndFrameId, sources: SourcesState
    ) -> ProjectedFrame | None:
        frame = self.get_frame_suspense(pause_and_frame_id)
        return self._project_one(pause_and_frame_id.pause_id, frame, sources)

    async def get_pause_frame_async(
        self, pause_and_frame_id: PauseAndFrameId, sources: SourcesState
    ) -> ProjectedFrame | None:
        frame = await self.get_frame_async(pause_and_frame_id)
        return self._project_one(pause_and_frame_id.pause_id, frame, sources)

    @staticmethod
    def _project_one(
        pause_id: PauseId, frame: Frame | None, sources: SourcesState
    ) -> ProjectedFrame | None:
        if frame is None:
            return None
        projected = project(pause_id, [frame], sources)
        return projected[0] if projected else None
