"""Format identifiers, requests, and the per-format handler table."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from format_engine.errors import Unsupported
from format_engine.markup import (
    HTML_VOID_ELEMENTS,
    HtmlValidator,
    XmlValidator,
    format_css,
    format_markup,
    minify_css,
    minify_markup,
)
from format_engine.runtime import telemetry
from format_engine.structured import format_json, format_yaml, minify_json, minify_yaml


class Format(Enum):
    JSON = "json"
    XML = "xml"
    HTML = "html"
    CSS = "css"
    YAML = "yaml"

    @classmethod
    def from_name(cls, name: "str | Format", default: Optional["Format"] = None) -> "Format":
        if isinstance(name, Format):
            return name
        key = str(name).strip().lower()
        if key == "yml":
            key = "yaml"
        for member in cls:
            if member.value == key:
                return member
        if default is not None:
            return default
        raise Unsupported(str(name))

    @property
    def label(self) -> str:
        return self.value.upper()


def indent_unit(value: "int | str") -> str:
    """Build the per-level indent string from ``2``, ``4``, ``"tab"`` or spaces."""

    if isinstance(value, int):
        if value < 0:
            raise ValueError("indent width cannot be negative")
        return " " * value
    if value in ("tab", "\t"):
        return "\t"
    if value.isdigit():
        return " " * int(value)
    if value and value.strip(" ") == "":
        return value
    raise ValueError(f"Unsupported indent '{value}'")


def indent_label(unit: str) -> str:
    return "tab" if unit == "\t" else str(len(unit))


@dataclass(frozen=True, slots=True)
class FormatRequest:
    text: str
    format: Format = Format.JSON
    indent_unit: str = "  "


@dataclass(frozen=True, slots=True)
class FormatHandler:
    beautify: Callable[[str, str], str]
    minify: Callable[[str], str]


def _xml_handler() -> FormatHandler:
    validator = XmlValidator()
    return FormatHandler(
        beautify=lambda text, unit: format_markup(text, unit, validator),
        minify=lambda text: minify_markup(text, validator),
    )


def _html_handler() -> FormatHandler:
    validator = HtmlValidator()
    return FormatHandler(
        beautify=lambda text, unit: format_markup(
            text, unit, validator, void_elements=HTML_VOID_ELEMENTS
        ),
        minify=lambda text: minify_markup(text, validator),
    )


_HANDLERS: Dict[Format, FormatHandler] = {
    Format.JSON: FormatHandler(beautify=format_json, minify=minify_json),
    Format.XML: _xml_handler(),
    Format.HTML: _html_handler(),
    Format.CSS: FormatHandler(beautify=format_css, minify=minify_css),
    Format.YAML: FormatHandler(beautify=format_yaml, minify=minify_yaml),
}


def register_handler(fmt: Format, handler: FormatHandler) -> None:
    _HANDLERS[fmt] = handler


def handler_for(fmt: "Format | str") -> FormatHandler:
    resolved = Format.from_name(fmt)
    try:
        return _HANDLERS[resolved]
    except KeyError as exc:
        raise Unsupported(resolved.value) from exc


def format_document(request: FormatRequest) -> str:
    """Pretty-print ``request.text``; raises a ``FormatError`` subclass on bad input."""

    handler = handler_for(request.format)
    with telemetry.span(
        "formats::beautify",
        component="formats",
        metadata={"format": request.format.value, "size": len(request.text)},
    ) as handle:
        result = handler.beautify(request.text, request.indent_unit)
        handle.add_metadata("output_size", len(result))
        return result


def minify_document(request: FormatRequest) -> str:
    handler = handler_for(request.format)
    with telemetry.span(
        "formats::minify",
        component="formats",
        metadata={"format": request.format.value, "size": len(request.text)},
    ) as handle:
        result = handler.minify(request.text)
        handle.add_metadata("output_size", len(result))
        return result


__all__ = [
    "Format",
    "FormatHandler",
    "FormatRequest",
    "format_document",
    "handler_for",
    "indent_label",
    "indent_unit",
    "minify_document",
    "register_handler",
]
