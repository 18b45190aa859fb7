"""Bounded linear undo/redo over whole-document snapshots."""

from __future__ import annotations

from typing import List, Optional, Tuple

DEFAULT_HISTORY_LIMIT = 50


class HistoryTimeline:
    """Snapshots plus a cursor; the cursor always indexes a stored snapshot.

    Recording after an undo discards the redo branch. Once ``limit`` is
    exceeded the oldest snapshots are evicted.
    """

    def __init__(self, *, limit: int = DEFAULT_HISTORY_LIMIT, initial: str = "") -> None:
        if limit < 1:
            raise ValueError("history limit must be at least 1")
        self._limit = limit
        self._snapshots: List[str] = [initial]
        self._index: int = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> str:
        return self._snapshots[self._index]

    def __len__(self) -> int:
        return len(self._snapshots)

    def snapshots(self) -> Tuple[str, ...]:
        return tuple(self._snapshots)

    def at_tail(self) -> bool:
        return self._index == len(self._snapshots) - 1

    def record(self, snapshot: str) -> bool:
        """Append ``snapshot``; returns ``False`` if it equals the current one."""

        if snapshot == self.current:
            return False
        if not self.at_tail():
            del self._snapshots[self._index + 1 :]
        self._snapshots.append(snapshot)
        overflow = len(self._snapshots) - self._limit
        if overflow > 0:
            del self._snapshots[:overflow]
        self._index = len(self._snapshots) - 1
        return True

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._snapshots) - 1

    def undo(self) -> Optional[str]:
        if not self.can_undo():
            return None
        self._index -= 1
        return self._snapshots[self._index]

    def redo(self) -> Optional[str]:
        if not self.can_redo():
            return None
        self._index += 1
        return self._snapshots[self._index]

    def reset(self, initial: str = "") -> None:
        self._snapshots = [initial]
        self._index = 0
