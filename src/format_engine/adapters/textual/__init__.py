"""Textual host for the format engine."""

from .controller import TextualSessionAdapter, TextualUIHooks

__all__ = ["TextualSessionAdapter", "TextualUIHooks"]
