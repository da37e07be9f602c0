"""Centralized error handling for hoverhits.

This module provides a hierarchy of exceptions for the failures that can
occur while driving remote analyses and reading cached backend data, along
with utilities for error reporting and handling.
"""

from __future__ import annotations

import logging
import traceback
from typing import TYPE_CHECKING
from typing import Any

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class HoverHitsError(Exception):
    """Base exception for all hoverhits errors.

    All hoverhits-specific exceptions should inherit from this class to enable
    centralized error handling and reporting.
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a dictionary for collaborators and telemetry."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause!s})"
        return self.message


class ConfigurationError(HoverHitsError):
    """Raised when there's a configuration problem."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, error_code="ConfigurationError", details=details, **kwargs)
        self.config_key = config_key


class TransportError(HoverHitsError):
    """Raised when a remote analysis or frame request fails in transit."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        analysis_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation
        if analysis_id is not None:
            details["analysis_id"] = analysis_id
        error_code = kwargs.pop("error_code", "TransportError")
        super().__init__(message, error_code=error_code, details=details, **kwargs)
        self.operation = operation
        self.analysis_id = analysis_id


class HoverHitsTimeoutError(TransportError):
    """Raised when a remote operation times out."""

    def __init__(
        self,
        message: str,
        *,
        timeout_seconds: float | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if timeout_seconds is not None:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(message, error_code="TimeoutError", details=details, **kwargs)
        self.timeout_seconds = timeout_seconds


class AnalysisStateError(HoverHitsError):
    """Raised when an analysis handle is driven out of order."""

    def __init__(
        self,
        message: str,
        *,
        state: str | None = None,
        operation: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if state:
            details["state"] = state
        if operation:
            details["operation"] = operation
        super().__init__(message, error_code="AnalysisStateError", details=details, **kwargs)
        self.state = state
        self.operation = operation


class BulkCountError(HoverHitsError):
    """Raised when per-line hit counts for a whole source cannot be fetched."""

    def __init__(
        self,
        message: str,
        *,
        source_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if source_id:
            details["source_id"] = source_id
        super().__init__(message, error_code="BulkCountError", details=details, **kwargs)
        self.source_id = source_id


class FrameFetchError(TransportError):
    """Raised when the frames of a pause cannot be fetched."""

    def __init__(
        self,
        message: str,
        *,
        pause_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if pause_id:
            details["pause_id"] = pause_id
        super().__init__(
            message,
            operation="getFrames",
            error_code="FrameFetchError",
            details=details,
            **kwargs,
        )
        self.pause_id = pause_id


class ValueNotReady(HoverHitsError):
    """Raised by suspense-style readers when a cached value is still loading.

    The pending future is attached so callers can await it and retry.
    """

    def __init__(self, key: str, future: asyncio.Future[Any]) -> None:
        super().__init__(
            f"Value for {key!r} is not ready",
            error_code="ValueNotReady",
            details={"key": key},
        )
        self.key = key
        self.future = future


class ErrorHandler:
    """Centralized error handling and reporting."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self._error_handlers: dict[type[Exception], Callable[[Exception], Any]] = {}

    def register_handler(
        self,
        exception_type: type[Exception],
        handler: Callable[[Exception], Any],
    ) -> None:
        """Register a custom error handler for an exception type."""
        self._error_handlers[exception_type] = handler

    def handle_error(
        self,
        error: Exception,
        *,
        reraise: bool = False,
        log_level: int = logging.ERROR,
        context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Handle an error and return a standardized error record.

        Args:
            error: The exception to handle
            reraise: Whether to re-raise the exception after handling
            log_level: Logging level for the error
            context: Additional context information

        Returns:
            Dictionary with error information suitable for collaborators
        """
        error_msg = f"Error: {error!s}"
        if context:
            error_msg += f" (context: {context})"

        self.logger.log(log_level, error_msg, exc_info=error)

        for exc_type, handler in self._error_handlers.items():
            if isinstance(error, exc_type):
                try:
                    result = handler(error)
                    if isinstance(result, dict):
                        return result
                except Exception as handler_error:
                    self.logger.error(
                        "Error handler for %s failed: %s", exc_type.__name__, handler_error
                    )

        if isinstance(error, HoverHitsError):
            error_dict = error.to_dict()
        else:
            error_dict = {
                "error": error.__class__.__name__,
                "message": str(error),
                "details": {},
            }

        if context:
            error_dict["context"] = context

        error_dict["traceback"] = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )

        if reraise:
            raise error

        return error_dict


# Global error handler instance
default_error_handler = ErrorHandler()


def handle_error(
    error: Exception,
    *,
    reraise: bool = False,
    log_level: int = logging.ERROR,
    context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Handle an error using the default error handler."""
    return default_error_handler.handle_error(
        error, reraise=reraise, log_level=log_level, context=context
    )
