from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterator, List, Tuple

import pytest

from format_engine.formats import Format, FormatRequest, format_document
from format_engine.jobs import FormatJobRequest, run_format_job
from format_engine.runtime import telemetry

Record = Tuple[str, str, Dict[str, str]]


class RecordingLogger:
    """Stands in for a telelog logger and keeps what it was given."""

    def __init__(self) -> None:
        self.records: List[Record] = []
        self.context: Dict[str, str] = {}
        self.components: List[str] = []
        self.profiled: List[str] = []

    def add_context(self, key: str, value: str) -> None:
        self.context[key] = value

    def remove_context(self, key: str) -> None:
        self.context.pop(key, None)

    @contextmanager
    def track_component(self, name: str) -> Iterator[None]:
        self.components.append(name)
        yield

    @contextmanager
    def profile(self, name: str) -> Iterator[None]:
        self.profiled.append(name)
        yield

    def _record(self, level: str, message: str, pairs) -> None:
        self.records.append((level, message, dict(pairs)))

    def debug_with(self, message: str, pairs) -> None:
        self._record("debug", message, pairs)

    def info_with(self, message: str, pairs) -> None:
        self._record("info", message, pairs)

    def warning_with(self, message: str, pairs) -> None:
        self._record("warning", message, pairs)

    def error_with(self, message: str, pairs) -> None:
        self._record("error", message, pairs)

    def find(self, message: str, span_name: str) -> Record:
        for record in self.records:
            if record[1] == message and record[2].get("span") == span_name:
                return record
        raise AssertionError(f"no {message} for {span_name}: {self.records}")


@pytest.fixture
def recorder(monkeypatch: pytest.MonkeyPatch) -> RecordingLogger:
    logger = RecordingLogger()
    monkeypatch.setattr(telemetry, "get_logger", lambda name=None: logger)
    return logger


def test_span_done_carries_metadata(recorder: RecordingLogger) -> None:
    result = format_document(FormatRequest('{"a":1}', Format.JSON, "  "))

    level, _, payload = recorder.find("span::done", "formats::beautify")
    assert level == "debug"
    assert payload["component"] == "formats"
    assert payload["format"] == "json"
    assert payload["size"] == "7"
    assert payload["output_size"] == str(len(result))
    assert "elapsed_ms" in payload
    assert recorder.profiled == ["formats::beautify"]
    assert recorder.components == ["formats"]


def test_failed_job_reports_error_status(recorder: RecordingLogger) -> None:
    request = FormatJobRequest('{"a":', Format.JSON)

    response = run_format_job(request)

    assert not response.ok
    _, _, done = recorder.find("span::done", "jobs::format")
    assert done["status"] == "error"
    assert done["job_id"] == str(request.id)
    level, _, failed = recorder.find("span::fail", "formats::beautify")
    assert level == "error"
    assert failed["reason"]


def test_span_failure_is_logged_and_context_removed(recorder: RecordingLogger) -> None:
    with pytest.raises(RuntimeError):
        with telemetry.span("work", metadata={"doc": "a.json"}) as handle:
            assert recorder.context == {"doc": "a.json"}
            handle.add_metadata("step", 2)
            raise RuntimeError("broken")

    assert recorder.context == {}
    _, _, payload = recorder.find("span::fail", "work")
    assert payload == {"span": "work", "doc": "a.json", "step": "2", "reason": "broken"}
    assert not [r for r in recorder.records if r[1] == "span::done"]


def test_record_event_payload(recorder: RecordingLogger) -> None:
    telemetry.record_event("search.replace_failed", level="warning", data={"term": "("})

    assert recorder.records == [
        (
            "warning",
            "event::search.replace_failed",
            {"event": "search.replace_failed", "term": "("},
        )
    ]


def test_env_options_maps_variables() -> None:
    options = telemetry.env_options(
        {
            "FORMAT_ENGINE_LOG_LEVEL": "debug",
            "FORMAT_ENGINE_NO_COLOR": "1",
            "FORMAT_ENGINE_LOG_JSON": "true",
            "FORMAT_ENGINE_LOG_FILE": "engine.log",
            "FORMAT_ENGINE_LOG_BUFFERED": "yes",
            "FORMAT_ENGINE_LOG_BUFFER_SIZE": "64",
        }
    )

    assert options == {
        "min_level": "DEBUG",
        "console_output": True,
        "colored_output": False,
        "json_format": True,
        "file_output": "engine.log",
        "buffering": True,
        "buffer_size": 64,
    }


def test_env_options_without_console_skips_colour() -> None:
    options = telemetry.env_options({"FORMAT_ENGINE_DISABLE_CONSOLE": "on"})

    assert options == {"min_level": "INFO", "console_output": False}


def test_unknown_preset_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown preset"):
        telemetry.configure(preset="bogus")
