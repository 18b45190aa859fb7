"""Indent-state pretty printer shared by XML and HTML."""

from __future__ import annotations

from typing import AbstractSet, Iterable, List, Optional

from .tokens import Token, TokenKind, tokenize
from .validation import MarkupValidator, ensure_valid


class _IndentState:
    """Tracks nesting depth and the pending open tag of a possible leaf."""

    def __init__(self, indent_unit: str) -> None:
        self.indent_unit = indent_unit
        self.depth = 0
        self.lines: List[str] = []
        self._open: Optional[str] = None
        self._text: Optional[str] = None

    def emit(self, line: str, *, indent: bool = True) -> None:
        prefix = self.indent_unit * self.depth if indent else ""
        self.lines.append(prefix + line)

    def hold_open(self, raw: str) -> None:
        self.flush()
        self._open = raw

    def text(self, text: str) -> None:
        if self._open is not None and self._text is None:
            self._text = text
            return
        self.flush()
        self.emit(text)

    def close(self, raw: str) -> None:
        if self._open is not None:
            # <b>x</b> and <b></b> stay on one line
            self.emit(self._open + (self._text or "") + raw)
            self._open = self._text = None
            return
        self.depth = max(0, self.depth - 1)
        self.emit(raw)

    def flush(self) -> None:
        if self._open is None:
            return
        self.emit(self._open)
        self.depth += 1
        if self._text is not None:
            self.emit(self._text)
        self._open = self._text = None


def render(tokens: Iterable[Token], indent_unit: str = "  ") -> str:
    state = _IndentState(indent_unit)
    for token in tokens:
        kind = token.kind
        if kind is TokenKind.TEXT:
            stripped = token.raw.strip()
            if stripped:
                state.text(stripped)
        elif kind is TokenKind.OPEN_TAG:
            state.hold_open(token.raw)
        elif kind is TokenKind.CLOSE_TAG:
            state.close(token.raw)
        elif kind is TokenKind.DECLARATION:
            state.flush()
            state.emit(token.raw, indent=False)
        else:
            state.flush()
            state.emit(token.raw)
    state.flush()
    return "\n".join(state.lines)


def pretty_print(
    markup: str,
    indent_unit: str = "  ",
    *,
    void_elements: AbstractSet[str] = frozenset(),
) -> str:
    return render(tokenize(markup, void_elements=void_elements), indent_unit)


def format_markup(
    text: str,
    indent_unit: str,
    validator: MarkupValidator,
    *,
    void_elements: AbstractSet[str] = frozenset(),
) -> str:
    """Validate ``text`` and pretty-print it; raises ``InvalidMarkup``."""

    ensure_valid(text, validator)
    return pretty_print(text, indent_unit, void_elements=void_elements)


__all__ = ["format_markup", "pretty_print", "render"]
