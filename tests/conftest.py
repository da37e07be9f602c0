from __future__ import annotations

# isort: skip-file
import logging
import sys
from pathlib import Path

import pytest

# Make ``tests.mocks`` importable regardless of how pytest was started.
_ROOT = str(Path(__file__).resolve().parent.parent)
if _ROOT not in sys.path:
    sys.path.insert(0, _ROOT)

from hoverhits.config import HoverHitsConfig  # noqa: E402
from hoverhits.config import reset_config  # noqa: E402

logger = logging.getLogger(__name__)


@pytest.fixture(autouse=True)
def _reset_global_config():
    """Keep process-wide configuration changes from leaking between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def fast_config() -> HoverHitsConfig:
    """Configuration with a short debounce so hover tests run quickly."""
    config = HoverHitsConfig()
    config.hover.debounce_ms = 10
    return config
