"""Editing session: one document, its history, and its search state.

The session is the interactive path. Transforms and replacements go through
``_commit`` so every change the user can see is a history snapshot; undo and
redo move the cursor without recording.
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from format_engine.buffer import HistoryTimeline
from format_engine.errors import FormatError
from format_engine.formats import (
    Format,
    FormatRequest,
    format_document,
    indent_unit,
    minify_document,
)
from format_engine.jobs import (
    FormatJobRequest,
    FormatJobResponse,
    FormatWorker,
    detect_format,
    run_format_job,
    should_auto_format,
)
from format_engine.runtime import telemetry
from format_engine.search import (
    MatchRange,
    find_matches,
    is_valid_pattern,
    replace_all,
    replace_one,
)
from format_engine.settings import LAST_DOCUMENT_KEY, EngineSettings, KeyValueStore


class EventBus:
    """Minimal publish/subscribe hub between the session and its host."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Callable[[object], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[object], None]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in self._subscribers.get(event, []):
            callback(payload)


@dataclass(slots=True)
class SearchState:
    term: str = ""
    replacement: str = ""
    case_sensitive: bool = False
    use_regex: bool = False
    matches: List[MatchRange] = field(default_factory=list)
    index: int = 0

    @property
    def current(self) -> Optional[MatchRange]:
        if not self.matches:
            return None
        return self.matches[self.index]


@dataclass(frozen=True, slots=True)
class PendingPaste:
    """A pasted payload waiting for its format job."""

    job_id: int
    start: int
    text: str

    @property
    def end(self) -> int:
        return self.start + len(self.text)


class EditorSession:
    def __init__(
        self,
        *,
        settings: Optional[EngineSettings] = None,
        store: Optional[KeyValueStore] = None,
        bus: Optional[EventBus] = None,
        history: Optional[HistoryTimeline] = None,
    ) -> None:
        self.store = store
        if settings is None:
            settings = EngineSettings.load(store) if store else EngineSettings.from_env()
        self.settings = settings
        self.bus = bus or EventBus()
        self.history = history or HistoryTimeline(limit=settings.history_limit)
        self.search_state = SearchState()
        self.status = ""
        self._content = self.history.current
        self._pending: Optional[PendingPaste] = None

    @classmethod
    def restore(cls, store: KeyValueStore, **kwargs) -> "EditorSession":
        """Start a session from stored settings and the last saved document."""

        session = cls(store=store, **kwargs)
        last_document = store.get(LAST_DOCUMENT_KEY)
        if last_document:
            session._commit(last_document)
        return session

    @property
    def content(self) -> str:
        return self._content

    # -- internal -----------------------------------------------------------

    def _set_status(self, message: str) -> None:
        self.status = message
        self.bus.emit("status", message)

    def _show(self, text: str) -> None:
        self._content = text
        self._refresh_matches()
        self.bus.emit("content.changed", text)

    def _commit(self, text: str) -> bool:
        recorded = self.history.record(text)
        self._show(text)
        if self.store is not None:
            self.store.set(LAST_DOCUMENT_KEY, text)
        return recorded

    def _refresh_matches(self) -> None:
        state = self.search_state
        state.matches = find_matches(
            self._content, state.term, state.case_sensitive, state.use_regex
        )
        state.index = min(state.index, max(0, len(state.matches) - 1))
        self.bus.emit("search.updated", state)

    def _save_settings(self) -> None:
        if self.store is not None:
            self.settings.save(self.store)
        self.bus.emit("settings.changed", self.settings)

    # -- editing ------------------------------------------------------------

    def edit(self, text: str) -> bool:
        """Apply a typed change; any in-flight format job becomes stale."""

        self._pending = None
        return self._commit(text)

    def clear(self) -> None:
        self.edit("")
        self.search_state.index = 0
        self._set_status("Editor cleared")

    def undo(self) -> Optional[str]:
        snapshot = self.history.undo()
        if snapshot is not None:
            self._pending = None
            self._show(snapshot)
        return snapshot

    def redo(self) -> Optional[str]:
        snapshot = self.history.redo()
        if snapshot is not None:
            self._pending = None
            self._show(snapshot)
        return snapshot

    # -- settings -----------------------------------------------------------

    def set_language(self, language: "Format | str") -> None:
        self.settings.language = Format.from_name(language)
        self._save_settings()

    def set_indent(self, value: "int | str") -> None:
        self.settings.indent = indent_unit(value)
        self._save_settings()

    # -- transforms ---------------------------------------------------------

    def _transform(self, verb: str, transform: Callable[[FormatRequest], str]) -> str:
        if not self._content.strip():
            self._set_status(f"Nothing to {verb}")
            return self._content
        request = FormatRequest(
            self._content, self.settings.language, self.settings.indent
        )
        try:
            result = transform(request)
        except FormatError as exc:
            self._set_status(exc.describe())
            self.bus.emit("format.error", exc)
            raise
        self._pending = None
        self._commit(result)
        self._set_status(f"{self.settings.language.label} {verb} done")
        return result

    def format(self) -> str:
        """Pretty-print the document; on ``FormatError`` nothing changes."""

        return self._transform("format", format_document)

    def minify(self) -> str:
        return self._transform("minify", minify_document)

    def paste(
        self,
        text: str,
        *,
        start: Optional[int] = None,
        end: Optional[int] = None,
        worker: Optional[FormatWorker] = None,
    ) -> "Optional[Future[FormatJobResponse]]":
        """Insert ``text`` over ``[start, end)`` and auto-format the pasted part.

        Without offsets the text is appended. Only the pasted payload is sent
        to the formatter, and only when it looks like JSON or XML; payloads
        above ``settings.auto_format_limit`` are left raw until the user asks
        for ``format()``.

        The session is not thread-safe: a ``worker`` must deliver responses on
        the session's own thread (pass ``dispatch=`` such as Textual's
        ``call_from_thread`` when creating it).
        """

        content = self._content
        start = len(content) if start is None else max(0, min(start, len(content)))
        end = start if end is None else max(0, min(end, len(content)))
        start, end = min(start, end), max(start, end)
        self.edit(content[:start] + text + content[end:])

        detected = detect_format(text)
        if detected is None:
            return None
        self.set_language(detected)
        if not should_auto_format(text.strip(), self.settings.auto_format_limit):
            self._set_status(f"Large {detected.label} detected. Format it explicitly.")
            return None

        request = FormatJobRequest(text, detected, self.settings.indent)
        self._pending = PendingPaste(request.id, start, text)
        if worker is None:
            self.apply_job_response(run_format_job(request))
            return None
        self._set_status("Formatting...")
        return worker.submit(request, self.apply_job_response)

    def apply_job_response(self, response: FormatJobResponse) -> bool:
        """Swap the formatted payload in for the pasted text it came from."""

        pending = self._pending
        if pending is None or response.id != pending.job_id:
            telemetry.record_event(
                "session.stale_job", level="debug", data={"job_id": response.id}
            )
            return False
        self._pending = None
        if not response.ok:
            self._set_status(response.message)
            return False
        content = self._content
        self._commit(content[: pending.start] + response.content + content[pending.end :])
        label = response.format.label if response.format else "Document"
        self._set_status(f"{label} formatted")
        return True

    # -- search / replace ---------------------------------------------------

    def search(
        self,
        term: Optional[str] = None,
        *,
        replacement: Optional[str] = None,
        case_sensitive: Optional[bool] = None,
        use_regex: Optional[bool] = None,
    ) -> List[MatchRange]:
        state = self.search_state
        if term is not None:
            state.term = term
            state.index = 0
        if replacement is not None:
            state.replacement = replacement
        if case_sensitive is not None:
            state.case_sensitive = case_sensitive
        if use_regex is not None:
            state.use_regex = use_regex

        self._refresh_matches()
        if state.term and not is_valid_pattern(state.term, state.use_regex):
            self._set_status(f"Invalid pattern: {state.term}")
        elif state.term:
            self._set_status(f"{len(state.matches)} match(es)")
        return state.matches

    def clear_search(self) -> None:
        self.search_state.term = ""
        self.search_state.replacement = ""
        self.search_state.index = 0
        self._refresh_matches()

    def next_match(self) -> Optional[MatchRange]:
        state = self.search_state
        if state.matches:
            state.index = (state.index + 1) % len(state.matches)
            self.bus.emit("search.updated", state)
        return state.current

    def previous_match(self) -> Optional[MatchRange]:
        state = self.search_state
        if state.matches:
            state.index = (state.index - 1) % len(state.matches)
            self.bus.emit("search.updated", state)
        return state.current

    def replace_current(self) -> bool:
        state = self.search_state
        if not state.term or not state.matches:
            return False
        with telemetry.span(
            "session::replace_one", component="session", metadata={"index": state.index}
        ):
            outcome = replace_one(
                self._content, state.term, state.replacement, state.index, state.matches
            )
            self._commit(outcome.content)

        remaining = len(state.matches)
        state.index = max(0, min(outcome.index, remaining - 1))
        if remaining:
            self._set_status(f"Replaced ({remaining} remaining)")
        else:
            self._set_status("Replaced (no more matches)")
            self.clear_search()
        self.bus.emit("search.updated", state)
        return True

    def replace_all(self) -> int:
        state = self.search_state
        if not state.term:
            return 0
        if not is_valid_pattern(state.term, state.use_regex):
            self._set_status(f"Invalid pattern: {state.term}")
            return 0
        count = len(state.matches)
        with telemetry.span(
            "session::replace_all", component="session", metadata={"count": count}
        ):
            updated = replace_all(
                self._content,
                state.term,
                state.replacement,
                state.case_sensitive,
                state.use_regex,
            )
            self._commit(updated)
        self._set_status(f"Replaced {count} occurrence{'s' if count != 1 else ''}")
        self.clear_search()
        return count


__all__ = ["EditorSession", "EventBus", "PendingPaste", "SearchState"]
