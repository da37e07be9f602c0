"""Hover-triggered hit counting."""

from hoverhits.hover.dispatcher import HIT_COUNT_PUBLISHED
from hoverhits.hover.dispatcher import HOVER_CHANGED
from hoverhits.hover.dispatcher import MODE_CHANGED
from hoverhits.hover.dispatcher import DispatchMode
from hoverhits.hover.dispatcher import HoverDispatcher
from hoverhits.hover.results import HitCountStore
from hoverhits.hover.results import format_hit_count
from hoverhits.hover.results import hits_text

__all__ = [
    "HIT_COUNT_PUBLISHED",
    "HOVER_CHANGED",
    "MODE_CHANGED",
    "DispatchMode",
    "HitCountStore",
    "HoverDispatcher",
    "format_hit_count",
    "hits_text",
]
