from __future__ import annotations

from concurrent.futures import Executor, Future
from typing import Callable, List

import pytest

from format_engine.errors import FormatError, InvalidStructuredData
from format_engine.formats import Format
from format_engine.jobs import FormatWorker
from format_engine.session import EditorSession, EventBus
from format_engine.settings import (
    INDENT_KEY,
    LANGUAGE_KEY,
    LAST_DOCUMENT_KEY,
    EngineSettings,
    MemoryStore,
)


class DeferredExecutor(Executor):
    def __init__(self) -> None:
        self.pending: List[tuple[Future, Callable, tuple]] = []

    def submit(self, fn: Callable, /, *args, **kwargs) -> Future:
        future: Future = Future()
        self.pending.append((future, fn, args))
        return future

    def release_all(self) -> None:
        for future, fn, args in self.pending:
            future.set_result(fn(*args))


def make_session(**overrides) -> EditorSession:
    settings = EngineSettings(**overrides)
    return EditorSession(settings=settings)


def test_format_then_undo_redo() -> None:
    session = make_session()
    session.edit('{"b":1,"a":2}')

    formatted = session.format()

    assert formatted == '{\n  "b": 1,\n  "a": 2\n}'
    assert session.content == formatted
    assert session.status == "JSON format done"
    assert session.undo() == '{"b":1,"a":2}'
    assert session.content == '{"b":1,"a":2}'
    assert session.redo() == formatted
    assert session.redo() is None


def test_failed_format_leaves_document_and_history_untouched() -> None:
    session = make_session()
    errors: List[object] = []
    session.bus.subscribe("format.error", errors.append)
    session.edit('{"a":')
    snapshots = session.history.snapshots()

    with pytest.raises(InvalidStructuredData):
        session.format()

    assert session.content == '{"a":'
    assert session.history.snapshots() == snapshots
    assert session.status.startswith("Invalid JSON")
    assert len(errors) == 1 and isinstance(errors[0], FormatError)


def test_format_xml_document() -> None:
    session = make_session(language=Format.XML, indent="    ")
    session.edit("<a><b>x</b><c/></a>")

    assert session.format() == "<a>\n    <b>x</b>\n    <c/>\n</a>"
    assert session.status == "XML format done"


def test_minify_json() -> None:
    session = make_session()
    session.edit('{\n  "a": [1, 2]\n}')

    assert session.minify() == '{"a":[1,2]}'
    assert session.status == "JSON minify done"


def test_nothing_to_format() -> None:
    session = make_session()
    session.edit("   ")

    assert session.format() == "   "
    assert session.status == "Nothing to format"
    assert len(session.history) == 2


def test_edit_after_undo_discards_redo() -> None:
    session = make_session()
    session.edit("a")
    session.edit("b")
    session.undo()

    session.edit("c")

    assert session.redo() is None
    assert session.history.snapshots() == ("", "a", "c")


def test_clear_records_empty_snapshot() -> None:
    session = make_session()
    session.edit("data")

    session.clear()

    assert session.content == ""
    assert session.status == "Editor cleared"
    assert session.undo() == "data"


def test_history_limit_comes_from_settings() -> None:
    session = make_session(history_limit=3)
    for text in ("a", "b", "c", "d"):
        session.edit(text)

    assert session.history.snapshots() == ("b", "c", "d")


def test_search_counts_and_cycles_matches() -> None:
    session = make_session()
    session.edit("a a a")

    matches = session.search("a")

    assert len(matches) == 3
    assert session.status == "3 match(es)"
    assert session.previous_match() == matches[2]
    assert session.next_match() == matches[0]
    assert session.next_match() == matches[1]


def test_search_follows_document_changes() -> None:
    session = make_session()
    session.edit("one")
    session.search("o")

    session.edit("foo boo")

    assert len(session.search_state.matches) == 4


def test_replace_current_updates_remaining_matches() -> None:
    session = make_session()
    session.edit("xxx")
    session.search("x", replacement="yy", case_sensitive=True)

    assert session.replace_current() is True
    assert session.content == "yyxx"
    assert session.status == "Replaced (2 remaining)"
    assert [m.start for m in session.search_state.matches] == [2, 3]
    assert session.undo() == "xxx"


def test_replacing_last_match_clears_search() -> None:
    session = make_session()
    session.edit("ab")
    session.search("a", replacement="b")

    session.replace_current()

    assert session.content == "bb"
    assert session.status == "Replaced (no more matches)"
    assert session.search_state.term == ""
    assert session.replace_current() is False


def test_replace_all_reports_count() -> None:
    session = make_session()
    session.edit("a a a")
    session.search("a", replacement="b")

    assert session.replace_all() == 3
    assert session.content == "b b b"
    assert session.status == "Replaced 3 occurrences"
    assert session.search_state.matches == []


def test_invalid_regex_reports_status() -> None:
    session = make_session()
    session.edit("a(b")

    assert session.search("(", use_regex=True) == []
    assert session.status == "Invalid pattern: ("
    assert session.replace_all() == 0
    assert session.content == "a(b"


def test_paste_auto_formats_detected_format() -> None:
    session = make_session(language=Format.CSS)

    session.paste("<root><item>1</item></root>")

    assert session.settings.language is Format.XML
    assert session.content == "<root>\n  <item>1</item>\n</root>"
    assert session.status == "XML formatted"
    assert session.undo() == "<root><item>1</item></root>"


def test_paste_of_unknown_text_is_left_alone() -> None:
    session = make_session()

    assert session.paste("just words") is None
    assert session.content == "just words"
    assert session.settings.language is Format.JSON


def test_large_paste_is_not_formatted() -> None:
    session = make_session(auto_format_limit=10)

    session.paste('{"a": 1, "b": 2}')

    assert session.content == '{"a": 1, "b": 2}'
    assert session.status == "Large JSON detected. Format it explicitly."


def test_paste_through_worker() -> None:
    executor = DeferredExecutor()
    session = make_session()
    worker = FormatWorker(executor)

    future = session.paste("[1,2]", worker=worker)

    assert future is not None
    assert session.status == "Formatting..."
    executor.release_all()
    assert session.content == "[\n  1,\n  2\n]"
    assert session.status == "JSON formatted"


def test_edit_while_formatting_discards_job_result() -> None:
    executor = DeferredExecutor()
    session = make_session()
    worker = FormatWorker(executor)

    session.paste("[1,2]", worker=worker)
    session.edit("typed meanwhile")
    executor.release_all()

    assert session.content == "typed meanwhile"


def test_settings_and_document_persist_to_store() -> None:
    store = MemoryStore()
    session = EditorSession(settings=EngineSettings(), store=store)

    session.set_language("yaml")
    session.set_indent("tab")
    session.edit("a: 1")

    assert store.get(LANGUAGE_KEY) == "yaml"
    assert store.get(INDENT_KEY) == "tab"
    assert store.get(LAST_DOCUMENT_KEY) == "a: 1"


def test_restore_reads_store() -> None:
    store = MemoryStore(
        {LANGUAGE_KEY: "yaml", INDENT_KEY: "4", LAST_DOCUMENT_KEY: "a: 1"}
    )

    session = EditorSession.restore(store)

    assert session.content == "a: 1"
    assert session.settings.language is Format.YAML
    assert session.settings.indent == "    "
    assert session.undo() == ""


def test_events_reach_subscribers() -> None:
    bus = EventBus()
    changes: List[object] = []
    statuses: List[object] = []
    bus.subscribe("content.changed", changes.append)
    bus.subscribe("status", statuses.append)
    session = EditorSession(settings=EngineSettings(), bus=bus)

    session.edit('{"a":1}')
    session.format()

    assert changes == ['{"a":1}', '{\n  "a": 1\n}']
    assert statuses == ["JSON format done"]


def test_paste_appends_to_existing_content() -> None:
    session = make_session()
    session.edit("line one\n")

    session.paste("hello")

    assert session.content == "line one\nhello"


def test_paste_replaces_selection() -> None:
    session = make_session()
    session.edit("hello world")

    session.paste("there", start=11, end=6)

    assert session.content == "hello there"


def test_paste_formats_only_the_pasted_payload() -> None:
    session = make_session()
    session.edit("a\nb")

    session.paste('{"k":1}', start=2)

    assert session.content == 'a\n{\n  "k": 1\n}b'
    assert session.status == "JSON formatted"
    assert session.undo() == 'a\n{"k":1}b'
    assert session.undo() == "a\nb"


def test_large_paste_keeps_surrounding_document() -> None:
    session = make_session(auto_format_limit=10)
    session.edit("keep ")

    session.paste('{"a": 1, "b": 2}')

    assert session.content == 'keep {"a": 1, "b": 2}'


def test_worker_results_wait_for_dispatch() -> None:
    executor = DeferredExecutor()
    queued: List[Callable[[], None]] = []
    session = make_session()
    session.edit("x")
    worker = FormatWorker(executor, dispatch=queued.append)

    session.paste("[1,2]", worker=worker)
    executor.release_all()

    assert session.content == "x[1,2]"
    assert len(queued) == 1
    queued.pop()()
    assert session.content == "x[\n  1,\n  2\n]"
