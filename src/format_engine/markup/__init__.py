"""Hand-rolled printers and minifiers for tag- and brace-based markup."""

from .css import format_css, minify_css
from .minify import minify_markup, strip_markup
from .printer import format_markup, pretty_print, render
from .tokens import HTML_VOID_ELEMENTS, Token, TokenKind, classify, tokenize
from .validation import (
    HtmlValidator,
    MarkupValidator,
    ValidationResult,
    XmlValidator,
    ensure_valid,
)

__all__ = [
    "HTML_VOID_ELEMENTS",
    "Token",
    "TokenKind",
    "classify",
    "tokenize",
    "render",
    "pretty_print",
    "format_markup",
    "format_css",
    "minify_css",
    "minify_markup",
    "strip_markup",
    "MarkupValidator",
    "ValidationResult",
    "XmlValidator",
    "HtmlValidator",
    "ensure_valid",
]
