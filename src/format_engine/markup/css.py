"""Brace-block printer and minifier for CSS.

There is no validation step: malformed stylesheets come out as best-effort
text instead of raising.
"""

from __future__ import annotations

import re
from typing import List

_DELIMITER_SPACING = re.compile(r"\s*([{};])\s*")
_DELIMITERS = re.compile(r"([{};])")
_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")
_PUNCTUATION = re.compile(r"\s*([{};:])\s*")

_LINE_TERMINATORS = ("{", "}", ";")


def format_css(text: str, indent_unit: str = "  ") -> str:
    normalized = _DELIMITER_SPACING.sub(r" \1 ", text)
    lines: List[str] = []
    depth = 0
    after_content = False

    for part in _DELIMITERS.split(normalized):
        if part == "{":
            if after_content:
                lines[-1] += " {"
            else:
                lines.append(indent_unit * depth + "{")
            depth += 1
        elif part == "}":
            depth = max(0, depth - 1)
            lines.append(indent_unit * depth + "}")
        elif part == ";":
            if lines and not lines[-1].endswith(_LINE_TERMINATORS):
                lines[-1] += ";"
        else:
            content = part.strip()
            if content:
                lines.append(indent_unit * depth + content)
                after_content = True
            continue
        after_content = False

    return "\n".join(lines)


def minify_css(text: str) -> str:
    stripped = _COMMENT.sub("", text)
    stripped = _WHITESPACE.sub(" ", stripped)
    return _PUNCTUATION.sub(r"\1", stripped).strip()


__all__ = ["format_css", "minify_css"]
