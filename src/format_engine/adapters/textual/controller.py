"""Adapter that wires an EditorSession into host UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence

from format_engine.errors import FormatError
from format_engine.jobs import FormatWorker
from format_engine.search import MatchRange
from format_engine.session import EditorSession, SearchState


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_buffer: Callable[[str], None]
    update_status: Callable[[str], None] = _noop
    update_matches: Callable[[Sequence[MatchRange], int], None] = _noop
    log: Callable[[str], None] = _noop


class TextualSessionAdapter:
    """Translates host actions into session calls and reflects the results."""

    def __init__(
        self,
        session: EditorSession,
        hooks: TextualUIHooks,
        *,
        worker: Optional[FormatWorker] = None,
    ) -> None:
        self.session = session
        self.hooks = hooks
        self.worker = worker
        self._actions: Dict[str, Callable[[], object]] = {
            "format": session.format,
            "minify": session.minify,
            "undo": session.undo,
            "redo": session.redo,
            "clear": session.clear,
            "next": session.next_match,
            "previous": session.previous_match,
            "replace": session.replace_current,
            "replace_all": session.replace_all,
        }
        self._subscribe_events()
        self.hooks.update_buffer(session.content)

    @property
    def actions(self) -> tuple[str, ...]:
        return tuple(self._actions)

    def handle_action(self, name: str) -> bool:
        """Run a named action; returns ``False`` if the action failed."""

        action = self._actions.get(name)
        if action is None:
            raise KeyError(f"Unknown action '{name}'")
        self.hooks.log(f"action -> {name}")
        try:
            action()
        except FormatError as exc:
            self.hooks.log(f"action <- {name} failed: {exc.describe()}")
            return False
        return True

    def handle_host_edit(self, text: str) -> None:
        if text != self.session.content:
            self.session.edit(text)

    def handle_paste(
        self, text: str, *, start: Optional[int] = None, end: Optional[int] = None
    ) -> None:
        """Paste ``text`` over the host selection ``[start, end)``."""

        self.session.paste(text, start=start, end=end, worker=self.worker)

    def handle_search(
        self,
        term: Optional[str] = None,
        *,
        replacement: Optional[str] = None,
        case_sensitive: Optional[bool] = None,
        use_regex: Optional[bool] = None,
    ) -> int:
        matches = self.session.search(
            term,
            replacement=replacement,
            case_sensitive=case_sensitive,
            use_regex=use_regex,
        )
        return len(matches)

    def _subscribe_events(self) -> None:
        bus = self.session.bus
        bus.subscribe("content.changed", self._on_content)
        bus.subscribe("status", self._on_status)
        bus.subscribe("search.updated", self._on_search)

    def _on_content(self, payload: object | None) -> None:
        if isinstance(payload, str):
            self.hooks.update_buffer(payload)

    def _on_status(self, payload: object | None) -> None:
        self.hooks.update_status(str(payload or ""))

    def _on_search(self, payload: object | None) -> None:
        if isinstance(payload, SearchState):
            self.hooks.update_matches(tuple(payload.matches), payload.index)


__all__ = ["TextualSessionAdapter", "TextualUIHooks"]
