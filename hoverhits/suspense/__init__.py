"""Suspense-style caches for backend data."""

from hoverhits.suspense.async_cache import AsyncCache
from hoverhits.suspense.async_cache import EntryStatus
from hoverhits.suspense.frame_cache import FrameCache

__all__ = ["AsyncCache", "EntryStatus", "FrameCache"]
