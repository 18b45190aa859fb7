"""Executable Textual app that hosts the format engine."""

from __future__ import annotations

import argparse
import os
from typing import Optional, Sequence, Tuple

try:  # pragma: no cover - imported only when the app is run
    from textual import events
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.containers import Horizontal, Vertical
    from textual.message import Message
    from textual.widgets import Checkbox, Footer, Header, Input, Static, TextArea
    from textual.widgets.text_area import Selection
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use format_engine.adapters.textual.app"
    ) from exc

from format_engine.formats import Format, indent_unit
from format_engine.jobs import FormatWorker
from format_engine.runtime import telemetry
from format_engine.search import MatchRange
from format_engine.session import EditorSession
from format_engine.settings import EngineSettings, MemoryStore

from .controller import TextualSessionAdapter, TextualUIHooks


def location_for_offset(text: str, offset: int) -> Tuple[int, int]:
    """Translate a character offset into a TextArea ``(row, column)``."""

    row = text.count("\n", 0, offset)
    line_start = text.rfind("\n", 0, offset) + 1
    return (row, offset - line_start)


def offset_for_location(text: str, location: Tuple[int, int]) -> int:
    """Inverse of ``location_for_offset``; clamps past-the-end positions."""

    row, column = location
    lines = text.split("\n")
    row = max(0, min(row, len(lines) - 1))
    offset = sum(len(line) + 1 for line in lines[:row])
    return offset + max(0, min(column, len(lines[row])))


class DocumentArea(TextArea):
    """TextArea that routes pastes through the session so they land in history."""

    class Pasted(Message):
        def __init__(self, text: str) -> None:
            super().__init__()
            self.text = text

    async def _on_paste(self, event: events.Paste) -> None:
        event.stop()
        event.prevent_default()
        self.post_message(self.Pasted(event.text))


class FormatEngineApp(App[None]):
    """Editor screen: document, search/replace bar, status line."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#document {
		height: 1fr;
		border: round $accent;
	}

	#search-bar {
		height: auto;
	}

	#search-bar Input {
		width: 1fr;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        Binding("ctrl+b", "run('format')", "Beautify", priority=True),
        Binding("ctrl+e", "run('minify')", "Minify", priority=True),
        Binding("ctrl+z", "run('undo')", "Undo", priority=True),
        Binding("ctrl+y", "run('redo')", "Redo", priority=True),
        Binding("ctrl+l", "run('clear')", "Clear", priority=True),
        Binding("f3", "run('next')", "Next"),
        Binding("shift+f3", "run('previous')", "Previous"),
        Binding("ctrl+r", "run('replace')", "Replace", priority=True),
        Binding("ctrl+t", "run('replace_all')", "Replace all", priority=True),
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    def __init__(self, *, settings: Optional[EngineSettings] = None) -> None:
        super().__init__()
        self._settings = settings
        self.session: EditorSession | None = None
        self.adapter: TextualSessionAdapter | None = None
        self.worker: FormatWorker | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical():
            yield DocumentArea(id="document")
            with Horizontal(id="search-bar"):
                yield Input(placeholder="Search", id="search")
                yield Input(placeholder="Replace", id="replace")
                yield Checkbox("Aa", id="case")
                yield Checkbox(".*", id="regex")
        yield Static("", id="status-line")
        yield Footer()

    def on_mount(self) -> None:
        store = MemoryStore()
        if self._settings is not None:
            self._settings.save(store)
        self.session = EditorSession.restore(store)
        self.worker = FormatWorker(dispatch=self.call_from_thread)
        hooks = TextualUIHooks(
            update_buffer=self._update_buffer,
            update_status=self._update_status,
            update_matches=self._update_matches,
            log=telemetry.get_logger("format_engine.adapters.textual").debug,
        )
        self.adapter = TextualSessionAdapter(self.session, hooks, worker=self.worker)
        self._update_status(
            f"{self.session.settings.language.label} | indent "
            f"{self.session.settings.indent!r}"
        )

    def on_unmount(self) -> None:
        if self.worker:
            self.worker.shutdown(wait=False)

    def action_run(self, name: str) -> None:
        if self.adapter:
            self.adapter.handle_action(name)

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if self.adapter:
            self.adapter.handle_host_edit(event.text_area.text)

    def on_document_area_pasted(self, event: DocumentArea.Pasted) -> None:
        if not self.adapter:
            return
        area = self.query_one("#document", DocumentArea)
        start = offset_for_location(area.text, area.selection.start)
        end = offset_for_location(area.text, area.selection.end)
        self.adapter.handle_paste(event.text, start=start, end=end)

    def on_input_changed(self, event: Input.Changed) -> None:
        if not self.adapter:
            return
        if event.input.id == "search":
            self.adapter.handle_search(event.value)
        elif event.input.id == "replace":
            self.adapter.handle_search(replacement=event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if self.adapter and event.input.id == "search":
            self.adapter.handle_action("next")

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        if not self.adapter:
            return
        if event.checkbox.id == "case":
            self.adapter.handle_search(case_sensitive=event.value)
        elif event.checkbox.id == "regex":
            self.adapter.handle_search(use_regex=event.value)

    def _update_buffer(self, text: str) -> None:
        area = self.query_one("#document", DocumentArea)
        if area.text != text:
            area.load_text(text)

    def _update_status(self, status: str) -> None:
        self.query_one("#status-line", Static).update(status)

    def _update_matches(self, matches: Sequence[MatchRange], index: int) -> None:
        if not matches:
            return
        area = self.query_one("#document", DocumentArea)
        current = matches[index]
        area.selection = Selection(
            start=location_for_offset(area.text, current.start),
            end=location_for_offset(area.text, current.end),
        )


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the format engine editor.")
    parser.add_argument(
        "--language",
        choices=[fmt.value for fmt in Format],
        default=os.environ.get("FORMAT_ENGINE_LANGUAGE", "json"),
        help="Document format (default: json)",
    )
    parser.add_argument(
        "--indent",
        default=os.environ.get("FORMAT_ENGINE_INDENT", "2"),
        help="Indent per level: a number of spaces or 'tab' (default: 2)",
    )
    parser.add_argument(
        "--log-preset",
        choices=["development", "production", "quiet"],
        default=None,
        help="telelog preset to install before starting",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    if args.log_preset:
        telemetry.configure(preset=args.log_preset)
    settings = EngineSettings.from_env()
    settings.language = Format.from_name(args.language)
    settings.indent = indent_unit(args.indent)
    FormatEngineApp(settings=settings).run()


if __name__ == "__main__":  # pragma: no cover - manual run
    main()
