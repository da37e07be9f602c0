"""Call-stack frame presentation."""

from hoverhits.frames.libraries import library_from_url
from hoverhits.frames.projector import create_frame
from hoverhits.frames.projector import project
from hoverhits.frames.projector import simplify_display_name

__all__ = ["create_frame", "library_from_url", "project", "simplify_display_name"]
