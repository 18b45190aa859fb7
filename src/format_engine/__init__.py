"""Format, minify, search and replace engine for structured text documents."""

__all__ = [
    "adapters",
    "buffer",
    "errors",
    "formats",
    "jobs",
    "markup",
    "runtime",
    "search",
    "session",
    "settings",
    "structured",
]

__version__ = "0.1.0"
