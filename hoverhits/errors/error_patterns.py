"""Standardized error handling patterns for remote calls.

Transport implementations raise whatever their networking stack raises. The
decorators here turn those into :class:`TransportError` so the analysis and
cache layers only ever have to catch one family.
"""

from __future__ import annotations

import asyncio
from functools import wraps
import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable
    from collections.abc import Coroutine
    import types

from hoverhits.errors.hoverhits_errors import HoverHitsError
from hoverhits.errors.hoverhits_errors import HoverHitsTimeoutError
from hoverhits.errors.hoverhits_errors import TransportError

R = TypeVar("R")

logger = logging.getLogger(__name__)

# Exception types that indicate connectivity problems.
_CONNECTION_ERRORS = (ConnectionError, BrokenPipeError, EOFError, OSError)
# asyncio.TimeoutError is an alias of TimeoutError since Python 3.11.
_TIMEOUT_ERRORS = (TimeoutError, asyncio.TimeoutError)


def classify_transport_error(
    e: BaseException,
    *,
    operation: str,
    analysis_id: str | None = None,
) -> TransportError:
    """Classify a generic exception into the appropriate ``TransportError`` subtype.

    Uses ``isinstance`` checks against well-known stdlib exception
    hierarchies rather than inspecting the exception message string.
    """
    if isinstance(e, TransportError):
        return e

    error_msg = f"Error in remote operation {operation}: {e!s}"
    if isinstance(e, _TIMEOUT_ERRORS):
        return HoverHitsTimeoutError(
            error_msg, operation=operation, analysis_id=analysis_id, cause=e
        )
    if isinstance(e, _CONNECTION_ERRORS):
        return TransportError(
            error_msg,
            operation=operation,
            analysis_id=analysis_id,
            cause=e,
            details={"category": "connection"},
        )
    return TransportError(error_msg, operation=operation, analysis_id=analysis_id, cause=e)


def async_handle_transport_errors(
    operation: str | None = None,
    *,
    log_level: int = logging.DEBUG,
) -> Callable[
    [Callable[..., Coroutine[Any, Any, R]]], Callable[..., Coroutine[Any, Any, R]]
]:
    """Wrap a coroutine so any failure surfaces as :class:`TransportError`.

    Cancellation is never wrapped. Errors that are already part of the
    hoverhits hierarchy pass through untouched.

    Args:
        operation: Name of the remote operation being performed
        log_level: Logging level for wrapped exceptions
    """

    def decorator(
        func: Callable[..., Coroutine[Any, Any, R]],
    ) -> Callable[..., Coroutine[Any, Any, R]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> R:
            try:
                return await func(*args, **kwargs)
            except HoverHitsError:
                raise
            except Exception as e:
                wrapped_error = classify_transport_error(e, operation=operation or func.__name__)
                logger.log(log_level, str(wrapped_error), exc_info=True)
                raise wrapped_error from e

        return wrapper

    return decorator


class TransportErrorContext:
    """Context manager that re-raises any failure as a ``TransportError``."""

    def __init__(self, operation: str, *, analysis_id: str | None = None) -> None:
        self.operation = operation
        self.analysis_id = analysis_id

    def __enter__(self) -> None:
        return None

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> bool:
        if exc_val is None or not isinstance(exc_val, Exception):
            return False
        if isinstance(exc_val, HoverHitsError):
            return False
        wrapped_error = classify_transport_error(
            exc_val, operation=self.operation, analysis_id=self.analysis_id
        )
        raise wrapped_error from exc_val
