"""Structured logging for the format engine, built on telelog.

Configuration is expressed as a mapping of telelog ``Config.with_<option>``
names to values: one mapping per named preset, plus one assembled from
``FORMAT_ENGINE_*`` environment variables when no preset is chosen.

Engine code only uses ``record_event`` for one-shot facts (a rejected regex,
a stale job) and ``span`` around transforms. A span logs ``span::done`` on
exit with everything attached through ``SpanHandle.add_metadata`` plus the
elapsed time, or ``span::fail`` when the block raises.
"""

from __future__ import annotations

import os
import time
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, MutableMapping, Optional, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "FORMAT_ENGINE_"
DEFAULT_LOGGER_NAME = os.getenv(f"{ENV_PREFIX}LOGGER", "format_engine")

PRESETS: Dict[str, Dict[str, Any]] = {
    "development": {"min_level": "DEBUG", "console_output": True, "colored_output": True},
    "production": {"min_level": "INFO", "console_output": False, "buffering": True},
    "quiet": {"min_level": "ERROR", "console_output": False},
}

_LOGGER_CACHE: MutableMapping[str, Any] = {}
_ACTIVE_CONFIG: Optional[Any] = None


def env_options(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Translate ``FORMAT_ENGINE_LOG_*`` variables into telelog options."""

    env = os.environ if environ is None else environ

    def flag(name: str) -> bool:
        return env.get(f"{ENV_PREFIX}{name}", "").lower() in {"1", "true", "yes", "on"}

    options: Dict[str, Any] = {
        "min_level": env.get(f"{ENV_PREFIX}LOG_LEVEL", "INFO").upper(),
        "console_output": not flag("DISABLE_CONSOLE"),
    }
    if options["console_output"]:
        options["colored_output"] = not flag("NO_COLOR")
    if flag("LOG_JSON"):
        options["json_format"] = True
    if env.get(f"{ENV_PREFIX}LOG_FILE"):
        options["file_output"] = env[f"{ENV_PREFIX}LOG_FILE"]
    if flag("LOG_BUFFERED"):
        options["buffering"] = True
        options["buffer_size"] = int(env.get(f"{ENV_PREFIX}LOG_BUFFER_SIZE", "2048"))
    return options


def _preset_options(preset: str) -> Dict[str, Any]:
    try:
        options = dict(PRESETS[preset.lower()])
    except KeyError:
        raise ValueError(f"Unknown preset '{preset}'.") from None
    if preset.lower() == "production":
        options["file_output"] = os.getenv(f"{ENV_PREFIX}LOG_FILE") or "format_engine.log"
    return options


def build_config(options: Mapping[str, Any]) -> Any:
    config = tl.Config()
    for option, value in options.items():
        getattr(config, f"with_{option}")(value)
    config.with_profiling(True)
    return config


def configure(*, config: Optional[Any] = None, preset: Optional[str] = None) -> None:
    """Install ``config`` or the named ``preset``; cached loggers are dropped."""

    global _ACTIVE_CONFIG
    if config is not None and preset:
        raise ValueError("Provide either `config` or `preset`, not both.")
    if preset:
        config = build_config(_preset_options(preset))
    _ACTIVE_CONFIG = config if config is not None else build_config(env_options())
    _LOGGER_CACHE.clear()


def get_logger(name: Optional[str] = None) -> Any:
    global _ACTIVE_CONFIG
    if _ACTIVE_CONFIG is None:
        _ACTIVE_CONFIG = build_config(env_options())
    logger_name = name or DEFAULT_LOGGER_NAME
    if logger_name not in _LOGGER_CACHE:
        _LOGGER_CACHE[logger_name] = tl.Logger.with_config(logger_name, _ACTIVE_CONFIG)
    return _LOGGER_CACHE[logger_name]


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple, set)):
        return repr(value)
    return str(value)


def _emit(logger: Any, level: str, message: str, payload: Mapping[str, Any]) -> None:
    level = level.lower()
    pairs = [(str(key), _text(value)) for key, value in payload.items()]
    structured = getattr(logger, f"{level}_with", None)
    if structured is not None:
        structured(message, pairs)
        return
    plain = getattr(logger, level, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    plain(f"{message} {dict(pairs)}")


def record_event(name: str, *, level: str = "info", data: Optional[Dict[str, Any]] = None) -> None:
    _emit(get_logger(), level, f"event::{name}", {"event": name, **(data or {})})


@dataclass
class SpanHandle:
    """Collects results of a spanned block; logged when the block ends."""

    name: str
    component: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value

    def payload(self, **extra: Any) -> Dict[str, Any]:
        data: Dict[str, Any] = {"span": self.name}
        if self.component:
            data["component"] = self.component
        data.update(self.metadata)
        data.update(extra)
        return data


@contextmanager
def span(
    name: str,
    *,
    component: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    level: str = "debug",
) -> Iterator[SpanHandle]:
    """Profile a block under ``name``; ``metadata`` is also logger context.

    Exceptions are logged as ``span::fail`` and re-raised. A block that
    completes logs ``span::done`` at ``level``.
    """

    log = get_logger()
    handle = SpanHandle(name=name, component=component, metadata=dict(metadata or {}))
    context = {key: _text(value) for key, value in (metadata or {}).items()}
    started = time.perf_counter()

    with ExitStack() as stack:
        for key, value in context.items():
            log.add_context(key, value)
            stack.callback(log.remove_context, key)
        if component:
            stack.enter_context(log.track_component(component))
        stack.enter_context(log.profile(name))
        try:
            yield handle
        except Exception as exc:
            _emit(log, "error", "span::fail", handle.payload(reason=str(exc)))
            raise
        elapsed_ms = round((time.perf_counter() - started) * 1000, 3)
        _emit(log, level, "span::done", handle.payload(elapsed_ms=elapsed_ms))


__all__ = [
    "PRESETS",
    "SpanHandle",
    "build_config",
    "configure",
    "env_options",
    "get_logger",
    "record_event",
    "span",
]
