"""hoverhits - line hit counts on hover for replay debuggers."""

from hoverhits.analysis import AnalysisSession
from hoverhits.analysis import AnalysisTracker
from hoverhits.frames import project
from hoverhits.hover import HitCountStore
from hoverhits.hover import HoverDispatcher
from hoverhits.suspense import AsyncCache
from hoverhits.suspense import FrameCache

__all__ = [
    "AnalysisSession",
    "AnalysisTracker",
    "AsyncCache",
    "FrameCache",
    "HitCountStore",
    "HoverDispatcher",
    "__version__",
    "project",
]
__version__ = "0.1.0"
