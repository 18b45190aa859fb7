"""Engine settings and the key-value store they persist through."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Protocol

from format_engine.buffer import DEFAULT_HISTORY_LIMIT
from format_engine.formats import Format, indent_label, indent_unit
from format_engine.jobs import AUTO_FORMAT_LIMIT

ENV_PREFIX = "FORMAT_ENGINE_"

LANGUAGE_KEY = "language"
INDENT_KEY = "indent"
LAST_DOCUMENT_KEY = "last_document"


class KeyValueStore(Protocol):
    """String-keyed persistence owned by the host (browser storage, a file...)."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryStore:
    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def serialize(self) -> Mapping[str, str]:
        return dict(self._values)


def _parse_indent(raw: Optional[str], fallback: str) -> str:
    if raw is None:
        return fallback
    try:
        return indent_unit(raw)
    except ValueError:
        return fallback


def _parse_int(raw: Optional[str], fallback: int) -> int:
    if raw is None:
        return fallback
    try:
        return int(raw)
    except ValueError:
        return fallback


@dataclass(slots=True)
class EngineSettings:
    language: Format = Format.JSON
    indent: str = "  "
    auto_format_limit: int = AUTO_FORMAT_LIMIT
    history_limit: int = DEFAULT_HISTORY_LIMIT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        env = os.environ if environ is None else environ
        defaults = cls()
        language = env.get(f"{ENV_PREFIX}LANGUAGE")
        return cls(
            language=Format.from_name(language, default=Format.JSON)
            if language
            else defaults.language,
            indent=_parse_indent(env.get(f"{ENV_PREFIX}INDENT"), defaults.indent),
            auto_format_limit=_parse_int(
                env.get(f"{ENV_PREFIX}AUTO_FORMAT_LIMIT"), defaults.auto_format_limit
            ),
            history_limit=_parse_int(
                env.get(f"{ENV_PREFIX}HISTORY_LIMIT"), defaults.history_limit
            ),
        )

    @classmethod
    def load(
        cls, store: KeyValueStore, *, base: Optional["EngineSettings"] = None
    ) -> "EngineSettings":
        """Overlay stored language/indent on ``base`` (environment by default)."""

        settings = base or cls.from_env()
        language = store.get(LANGUAGE_KEY)
        if language:
            settings.language = Format.from_name(language, default=Format.JSON)
        settings.indent = _parse_indent(store.get(INDENT_KEY), settings.indent)
        return settings

    def save(self, store: KeyValueStore) -> None:
        store.set(LANGUAGE_KEY, self.language.value)
        store.set(INDENT_KEY, indent_label(self.indent))


__all__ = [
    "EngineSettings",
    "INDENT_KEY",
    "KeyValueStore",
    "LANGUAGE_KEY",
    "LAST_DOCUMENT_KEY",
    "MemoryStore",
]
