"""Document history for the editing session."""

from .history import DEFAULT_HISTORY_LIMIT, HistoryTimeline

__all__ = ["DEFAULT_HISTORY_LIMIT", "HistoryTimeline"]
