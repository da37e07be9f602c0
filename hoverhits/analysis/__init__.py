"""Remote analysis lifecycle and bookkeeping."""

from hoverhits.analysis.session import AnalysisSession
from hoverhits.analysis.tracker import AnalysisRecord
from hoverhits.analysis.tracker import AnalysisTracker

__all__ = ["AnalysisRecord", "AnalysisSession", "AnalysisTracker"]
