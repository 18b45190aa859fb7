"""Format jobs and the background worker boundary.

A job is a plain request/response pair so it can run on any executor. The
worker only remembers the newest request id: responses to older requests
are dropped instead of delivered.
"""

from __future__ import annotations

import itertools
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional

from format_engine.errors import FormatError
from format_engine.formats import Format, FormatRequest, format_document
from format_engine.runtime import telemetry

AUTO_FORMAT_LIMIT = 1_000_000

_request_ids = itertools.count(1)


def should_auto_format(text: str, limit: int = AUTO_FORMAT_LIMIT) -> bool:
    return len(text) <= limit


def detect_format(text: str) -> Optional[Format]:
    """Guess the format of pasted text from its first non-blank character."""

    trimmed = text.lstrip()
    if trimmed.startswith(("{", "[")):
        return Format.JSON
    if trimmed.startswith("<"):
        return Format.XML
    return None


@dataclass(frozen=True, slots=True)
class FormatJobRequest:
    content: str
    format: Format
    indent_unit: str = "  "
    id: int = field(default_factory=lambda: next(_request_ids))


@dataclass(frozen=True, slots=True)
class FormatJobResponse:
    status: str
    id: int
    content: str = ""
    format: Optional[Format] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, request: FormatJobRequest, content: str) -> "FormatJobResponse":
        return cls(status="success", id=request.id, content=content, format=request.format)

    @classmethod
    def error(cls, request: FormatJobRequest, message: str) -> "FormatJobResponse":
        return cls(status="error", id=request.id, message=message)


def run_format_job(request: FormatJobRequest) -> FormatJobResponse:
    with telemetry.span(
        "jobs::format",
        component="jobs",
        metadata={"job_id": request.id, "format": request.format.value},
    ) as handle:
        try:
            formatted = format_document(
                FormatRequest(request.content, request.format, request.indent_unit)
            )
        except FormatError as exc:
            handle.add_metadata("status", "error")
            return FormatJobResponse.error(request, exc.describe())
        handle.add_metadata("status", "success")
        return FormatJobResponse.success(request, formatted)


ResponseCallback = Callable[[FormatJobResponse], None]


class FormatWorker:
    """Runs format jobs off the interactive path.

    ``dispatch`` moves the callback onto the caller's thread (a UI host would
    pass its ``call_from_thread``); by default the callback runs wherever the
    future completes, which for the default pool is a worker thread. Callbacks
    that touch an ``EditorSession`` therefore need a ``dispatch``.
    """

    def __init__(
        self,
        executor: Optional[Executor] = None,
        *,
        dispatch: Optional[Callable[[Callable[[], None]], object]] = None,
    ) -> None:
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="format-worker"
        )
        self._dispatch = dispatch or (lambda fn: fn())
        self._latest_id: Optional[int] = None
        self._lock = threading.Lock()

    @property
    def latest_id(self) -> Optional[int]:
        return self._latest_id

    def is_current(self, request_id: int) -> bool:
        with self._lock:
            return request_id == self._latest_id

    def submit(
        self, request: FormatJobRequest, callback: ResponseCallback
    ) -> "Future[FormatJobResponse]":
        with self._lock:
            self._latest_id = request.id
        future = self._executor.submit(run_format_job, request)
        future.add_done_callback(lambda done: self._deliver(request, done, callback))
        return future

    def _deliver(
        self,
        request: FormatJobRequest,
        future: "Future[FormatJobResponse]",
        callback: ResponseCallback,
    ) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            telemetry.record_event(
                "jobs.crashed",
                level="error",
                data={"job_id": request.id, "error": repr(exc)},
            )
            response = FormatJobResponse.error(request, str(exc))
        else:
            response = future.result()

        if not self.is_current(response.id):
            telemetry.record_event(
                "jobs.stale", level="debug", data={"job_id": response.id}
            )
            return
        self._dispatch(lambda: callback(response))

    def shutdown(self, *, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> "FormatWorker":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.shutdown()
        return False


__all__ = [
    "AUTO_FORMAT_LIMIT",
    "FormatJobRequest",
    "FormatJobResponse",
    "FormatWorker",
    "detect_format",
    "run_format_job",
    "should_auto_format",
]
