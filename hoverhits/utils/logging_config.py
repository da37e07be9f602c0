"""Logging setup for embedding applications and scripts."""

from __future__ import annotations

import logging

from hoverhits.config import HoverHitsConfig
from hoverhits.config import get_config

NAME_TO_LEVEL = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(config: HoverHitsConfig | None = None) -> logging.Logger:
    """Attach a console handler to the ``hoverhits`` logger.

    Only the package logger is touched so host applications keep control of
    the root logger. Calling this twice does not add a second handler.
    """
    config = config or get_config()
    package_logger = logging.getLogger("hoverhits")
    package_logger.setLevel(NAME_TO_LEVEL.get(config.log_level, logging.INFO))

    if not any(getattr(h, "_hoverhits_handler", False) for h in package_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._hoverhits_handler = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)
    return package_logger
