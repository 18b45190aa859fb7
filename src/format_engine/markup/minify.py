"""Whitespace and comment stripping for XML and HTML."""

from __future__ import annotations

import re

from .tokens import TokenKind, tokenize
from .validation import MarkupValidator, ensure_valid

_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")
_QUOTED = re.compile(r"""("[^"]*"|'[^']*')""")


def compact_tag(raw: str) -> str:
    """Collapse whitespace in a tag, leaving quoted attribute values alone."""

    pieces = _QUOTED.split(raw)
    # even indexes are outside quotes
    for i in range(0, len(pieces), 2):
        pieces[i] = _WHITESPACE.sub(" ", pieces[i])
    pieces[0] = "<" + pieces[0][1:].lstrip()
    if pieces[-1].endswith(">"):
        pieces[-1] = pieces[-1][:-1].rstrip() + ">"
    return "".join(pieces)


def strip_markup(text: str) -> str:
    """Minify without validating; callers own the well-formedness check."""

    parts = []
    for token in tokenize(_COMMENT.sub("", text)):
        if token.kind is TokenKind.TEXT:
            parts.append(_WHITESPACE.sub(" ", token.raw).strip())
        elif token.raw.startswith("<![CDATA["):
            parts.append(token.raw)
        else:
            parts.append(compact_tag(token.raw))
    return "".join(parts)


def minify_markup(text: str, validator: MarkupValidator) -> str:
    ensure_valid(text, validator)
    return strip_markup(text)


__all__ = ["compact_tag", "minify_markup", "strip_markup"]
