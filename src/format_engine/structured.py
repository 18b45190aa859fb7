"""JSON and YAML re-serialization.

Parsing and printing are delegated to ``json`` and PyYAML; this module only
configures them and turns their parse errors into ``InvalidStructuredData``.
"""

from __future__ import annotations

import json
import math
from typing import Any

import yaml

from format_engine.errors import InvalidStructuredData


class _NoAliasDumper(yaml.SafeDumper):
    """Expands repeated nodes inline instead of emitting ``&id``/``*id``."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidStructuredData(exc.msg, line=exc.lineno, source="JSON") from exc


def format_json(text: str, indent_unit: str = "  ") -> str:
    return json.dumps(parse_json(text), indent=indent_unit, ensure_ascii=False)


def minify_json(text: str) -> str:
    return json.dumps(parse_json(text), separators=(",", ":"), ensure_ascii=False)


def parse_yaml(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        line = mark.line + 1 if mark is not None else None
        problem = getattr(exc, "problem", None) or str(exc)
        raise InvalidStructuredData(problem, line=line, source="YAML") from exc


def yaml_indent_width(indent_unit: str) -> int:
    """PyYAML only accepts 2-9 space indents and YAML forbids tabs."""

    if indent_unit.strip(" ") == "" and 2 <= len(indent_unit) <= 9:
        return len(indent_unit)
    return 2


def _dump_yaml(value: Any, **options: Any) -> str:
    dumped = yaml.dump(
        value,
        Dumper=_NoAliasDumper,
        width=math.inf,
        sort_keys=False,
        allow_unicode=True,
        **options,
    )
    return dumped.rstrip("\n")


def format_yaml(text: str, indent_unit: str = "  ") -> str:
    return _dump_yaml(
        parse_yaml(text),
        indent=yaml_indent_width(indent_unit),
        default_flow_style=False,
    )


def minify_yaml(text: str) -> str:
    return _dump_yaml(parse_yaml(text), default_flow_style=True)


__all__ = [
    "format_json",
    "format_yaml",
    "minify_json",
    "minify_yaml",
    "parse_json",
    "parse_yaml",
    "yaml_indent_width",
]
