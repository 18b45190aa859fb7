"""Typed failures raised by the formatting and minifying layer."""

from __future__ import annotations

from typing import Optional


class FormatError(RuntimeError):
    """Base class for transforms that refused to produce output."""

    def __init__(self, message: str, *, line: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.line = line

    def describe(self) -> str:
        if self.line is None:
            return self.message
        return f"{self.message} (line {self.line})"


class InvalidMarkup(FormatError):
    """Raised when the markup validator rejects XML/HTML input."""

    def __init__(self, diagnostic: str, *, line: Optional[int] = None) -> None:
        super().__init__(f"Invalid markup: {diagnostic}", line=line)
        self.diagnostic = diagnostic


class InvalidStructuredData(FormatError):
    """Raised when JSON or YAML input cannot be parsed."""

    def __init__(
        self, message: str, *, line: Optional[int] = None, source: str = "JSON"
    ) -> None:
        super().__init__(f"Invalid {source}: {message}", line=line)
        self.source = source


class Unsupported(FormatError):
    """Raised when a format name has no registered handler."""

    def __init__(self, format_name: str) -> None:
        super().__init__(f"Unsupported format '{format_name}'")
        self.format_name = format_name


def line_for_offset(text: str, offset: Optional[int]) -> Optional[int]:
    """Return the 1-based line containing ``offset``, or ``None``."""

    if offset is None or offset < 0:
        return None
    return text.count("\n", 0, min(offset, len(text))) + 1


__all__ = [
    "FormatError",
    "InvalidMarkup",
    "InvalidStructuredData",
    "Unsupported",
    "line_for_offset",
]
