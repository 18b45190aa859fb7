"""Well-formedness checks that gate the markup printer and minifier."""

from __future__ import annotations

from dataclasses import dataclass
from html.parser import HTMLParser
from typing import AbstractSet, Optional, Protocol

from defusedxml import DefusedXmlException
from defusedxml import ElementTree

from format_engine.errors import InvalidMarkup, line_for_offset

from .tokens import HTML_VOID_ELEMENTS


@dataclass(frozen=True, slots=True)
class ValidationResult:
    ok: bool
    diagnostic: str = ""
    offset: Optional[int] = None

    @classmethod
    def passed(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def failed(cls, diagnostic: str, *, offset: Optional[int] = None) -> "ValidationResult":
        return cls(ok=False, diagnostic=diagnostic, offset=offset)


class MarkupValidator(Protocol):
    """Anything that can say whether a markup string is well formed."""

    def validate(self, text: str) -> ValidationResult:
        ...


def offset_for_position(text: str, line: int, column: int) -> int:
    """Convert a 1-based line and 0-based column into a character offset."""

    offset = 0
    for _ in range(max(0, line - 1)):
        newline = text.find("\n", offset)
        if newline == -1:
            return len(text)
        offset = newline + 1
    return min(offset + max(0, column), len(text))


class XmlValidator:
    """Parses the input with defusedxml and reports the first error."""

    def validate(self, text: str) -> ValidationResult:
        try:
            ElementTree.fromstring(text)
        except ElementTree.ParseError as exc:
            position = getattr(exc, "position", None)
            offset = offset_for_position(text, *position) if position else None
            return ValidationResult.failed(str(exc), offset=offset)
        except DefusedXmlException as exc:
            return ValidationResult.failed(f"{type(exc).__name__}: {exc}")
        return ValidationResult.passed()


class _TagBalance(HTMLParser):
    def __init__(self, void_elements: AbstractSet[str]) -> None:
        super().__init__(convert_charrefs=True)
        self.void_elements = void_elements
        self.open_tags: list[tuple[str, tuple[int, int]]] = []
        self.error: Optional[tuple[str, tuple[int, int]]] = None

    def handle_starttag(self, tag, attrs) -> None:
        if tag not in self.void_elements:
            self.open_tags.append((tag, self.getpos()))

    def handle_startendtag(self, tag, attrs) -> None:
        pass

    def handle_endtag(self, tag) -> None:
        if self.error is not None or tag in self.void_elements:
            return
        if not self.open_tags or self.open_tags[-1][0] != tag:
            self.error = (f"unexpected closing tag </{tag}>", self.getpos())
            return
        self.open_tags.pop()


class HtmlValidator:
    """Checks that every non-void HTML element is closed in order.

    Implicitly closed elements (``<p>``, ``<li>`` without end tags) are
    reported as unclosed: the printer treats HTML as XML-shaped markup.
    """

    def __init__(self, void_elements: AbstractSet[str] = HTML_VOID_ELEMENTS) -> None:
        self.void_elements = void_elements

    def validate(self, text: str) -> ValidationResult:
        checker = _TagBalance(self.void_elements)
        checker.feed(text)
        checker.close()
        if checker.error is not None:
            message, position = checker.error
        elif checker.open_tags:
            tag, position = checker.open_tags[-1]
            message = f"unclosed tag <{tag}>"
        else:
            return ValidationResult.passed()
        line, column = position
        return ValidationResult.failed(
            f"{message}: line {line}, column {column + 1}",
            offset=offset_for_position(text, line, column),
        )


def ensure_valid(text: str, validator: MarkupValidator) -> None:
    """Raise ``InvalidMarkup`` unless ``validator`` accepts ``text``."""

    result = validator.validate(text)
    if not result.ok:
        raise InvalidMarkup(result.diagnostic, line=line_for_offset(text, result.offset))


__all__ = [
    "HtmlValidator",
    "MarkupValidator",
    "ValidationResult",
    "XmlValidator",
    "ensure_valid",
    "offset_for_position",
]
