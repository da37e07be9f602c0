"""Error handling for hoverhits."""

from hoverhits.errors.error_patterns import TransportErrorContext
from hoverhits.errors.error_patterns import async_handle_transport_errors
from hoverhits.errors.error_patterns import classify_transport_error
from hoverhits.errors.hoverhits_errors import AnalysisStateError
from hoverhits.errors.hoverhits_errors import BulkCountError
from hoverhits.errors.hoverhits_errors import ConfigurationError
from hoverhits.errors.hoverhits_errors import ErrorHandler
from hoverhits.errors.hoverhits_errors import FrameFetchError
from hoverhits.errors.hoverhits_errors import HoverHitsError
from hoverhits.errors.hoverhits_errors import HoverHitsTimeoutError
from hoverhits.errors.hoverhits_errors import TransportError
from hoverhits.errors.hoverhits_errors import ValueNotReady
from hoverhits.errors.hoverhits_errors import default_error_handler
from hoverhits.errors.hoverhits_errors import handle_error

__all__ = [
    "AnalysisStateError",
    "BulkCountError",
    "ConfigurationError",
    "ErrorHandler",
    "FrameFetchError",
    "HoverHitsError",
    "HoverHitsTimeoutError",
    "TransportError",
    "TransportErrorContext",
    "ValueNotReady",
    "async_handle_transport_errors",
    "classify_transport_error",
    "default_error_handler",
    "handle_error",
]
