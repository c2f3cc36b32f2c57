"""Single-slot, process-wide holder for the most recent analysis."""

from __future__ import annotations

import logging

from takedown_insights.models import WorkbookAnalysis

logger = logging.getLogger(__name__)


class AnalysisStore:
    """Holds at most one :class:`WorkbookAnalysis`.

    Starts empty. :meth:`replace` is the only write path and swaps the whole
    object, so a reader sees either the previous analysis or the new one,
    never a half-built one. Concurrent uploads are not arbitrated: the last
    ``replace`` wins.
    """

    def __init__(self) -> None:
        self._current: WorkbookAnalysis | None = None

    def get(self) -> WorkbookAnalysis | None:
        return self._current

    def replace(self, analysis: WorkbookAnalysis) -> None:
        if not isinstance(analysis, WorkbookAnalysis):
            raise TypeError("analysis must be a WorkbookAnalysis")
        self._current = analysis
        logger.info("Stored analysis with %d records", analysis.total_count)

    def clear(self) -> None:
        self._current = None
        logger.info("Cleared stored analysis")

    @property
    def is_empty(self) -> bool:
        return self._current is None


default_store = AnalysisStore()
"""The process-wide store used by the HTTP app unless another is injected."""
