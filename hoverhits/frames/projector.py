"""Build call-stack view frames from raw backend frames.

:func:`project` is pure: it performs no I/O, caches nothing, and returns
equal output for equal input, so callers are free to memoize it. Input order
is preserved; the caller decides whether index 0 is the innermost frame.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from hoverhits.frames.libraries import library_from_url
from hoverhits.protocol.structures import ProjectedFrame

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hoverhits.protocol.structures import Frame
    from hoverhits.protocol.structures import MappedLocation
    from hoverhits.protocol.structures import PauseId
    from hoverhits.protocol.structures import SourcesState

ANONYMOUS_NAME = "<anonymous>"

_OBJECT_PROPERTY = re.compile(r"([\w$]+)$")
_ARRAY_PROPERTY = re.compile(r"\[(.*?)\]$")
_FUNCTION_PROPERTY = re.compile(r"(\w+)[/.<]*?$")
_ANONYMOUS_PROPERTY = re.compile(r"(\w+)\(\^\)$")


def simplify_display_name(name: str) -> str:
    """Shorten engine-generated names such as ``outer/inner<`` to ``inner``.

    Names containing whitespace have already been mapped and are returned
    unchanged.
    """
    if not name or re.search(r"\s", name):
        return name
    for pattern in (_OBJECT_PROPERTY, _ARRAY_PROPERTY, _FUNCTION_PROPERTY, _ANONYMOUS_PROPERTY):
        match = pattern.search(name)
        if match:
            return match.group(1)
    return name


def _preferred_location(
    locations: Sequence[MappedLocation], sources: SourcesState
) -> MappedLocation | None:
    # Mapped (original) locations follow the generated one; prefer the most
    # original known source that is not minified.
    known = [loc for loc in locations if sources.get(loc.source_id) is not None]
    if not known:
        return None
    for loc in reversed(known):
        details = sources.get(loc.source_id)
        if details is not None and not details.is_minified:
            return loc
    return known[-1]


def create_frame(
    sources: SourcesState,
    frame: Frame,
    pause_id: PauseId,
    index: int,
) -> ProjectedFrame | None:
    """Project one frame, or return ``None`` if none of its sources are known."""
    location = _preferred_location(frame.location, sources)
    if location is None:
        return None
    source = sources.get(location.source_id)
    if source is None:
        return None

    alternate = next((loc for loc in frame.location if loc != location), None)
    name = frame.function_name
    return ProjectedFrame(
        id=frame.frame_id,
        protocol_id=frame.frame_id,
        pause_id=pause_id,
        index=index,
        display_name=simplify_display_name(name) if name else ANONYMOUS_NAME,
        location=location,
        source=source,
        alternate_location=alternate,
        library=library_from_url(source.url),
        this_object=frame.this_object,
    )


def project(
    pause_id: PauseId,
    frames: Sequence[Frame],
    sources: SourcesState,
) -> tuple[ProjectedFrame, ...]:
    """Return the view frames for a pause.

    Frames whose source is unknown or blackboxed are left out; the others
    keep their input order and their input position as ``index``.
    """
    projected = []
    for index, frame in enumerate(frames):
        view = create_frame(sources, frame, pause_id, index)
        if view is None or view.source.is_blackboxed:
            continue
        projected.append(view)
    return tuple(projected)
