"""Tag tokenizer for XML-shaped markup.

The tokenizer knows about tag boundaries and nothing else. A ``>`` inside a
quoted attribute value does not end a tag. Whitespace-only text between two
tags is insignificant and dropped by ``normalize``; every other character
survives, so joining ``Token.raw`` over the whole stream gives back the
normalized input.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import AbstractSet, Iterator, List, Optional, Tuple

_TAG_NAME = re.compile(r"<\s*([A-Za-z_][\w:.-]*)")
# Tag body up to the first ``>`` outside single or double quotes.
_TAG_BODY = re.compile(r"""(?:[^>"']|"[^"]*"|'[^']*')*>""")

# Tag-like openers whose terminator is not the first ``>``.
_BLOCK_TERMINATORS = (("<!--", "-->"), ("<![CDATA[", "]]>"))

HTML_VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)


class TokenKind(Enum):
    OPEN_TAG = auto()
    CLOSE_TAG = auto()
    SELF_CLOSING_TAG = auto()
    DECLARATION = auto()
    COMMENT = auto()
    TEXT = auto()


@dataclass(frozen=True, slots=True)
class Token:
    """One tag or text run with its offsets into the normalized markup."""

    kind: TokenKind
    raw: str
    start: int
    end: int

    @property
    def is_tag(self) -> bool:
        return self.kind is not TokenKind.TEXT


def tag_name(raw: str) -> Optional[str]:
    match = _TAG_NAME.match(raw)
    return match.group(1) if match else None


def classify(raw: str, void_elements: AbstractSet[str] = frozenset()) -> TokenKind:
    """Map the text of one ``<...>`` tag onto its ``TokenKind``."""

    if raw.startswith("<?"):
        return TokenKind.DECLARATION
    if raw.startswith("<!"):
        return TokenKind.COMMENT
    if raw.startswith("</"):
        return TokenKind.CLOSE_TAG
    if raw.endswith("/>"):
        return TokenKind.SELF_CLOSING_TAG
    if void_elements:
        name = tag_name(raw)
        if name is not None and name.lower() in void_elements:
            return TokenKind.SELF_CLOSING_TAG
    return TokenKind.OPEN_TAG


def _tag_end(text: str, start: int) -> Optional[int]:
    """Return the end offset of the tag opening at ``start``.

    ``None`` means the ``<`` at ``start`` does not open a tag; ``-1`` means no
    ``>`` follows anywhere, so no later ``<`` can open one either.
    """

    for opener, terminator in _BLOCK_TERMINATORS:
        if text.startswith(opener, start):
            close = text.find(terminator, start + len(opener))
            if close != -1:
                return close + len(terminator)
            break

    body = _TAG_BODY.match(text, start + 1)
    if body is not None:
        close = body.end() - 1
    else:
        # unbalanced quote: fall back to the first ``>``
        close = text.find(">", start + 1)
        if close == -1:
            return -1
    if close == start + 1:
        return None
    return close + 1


def _runs(text: str) -> Iterator[Tuple[bool, int, int]]:
    """Yield ``(is_tag, start, end)`` for consecutive runs covering ``text``."""

    text_start = 0
    pos = 0
    while True:
        lt = text.find("<", pos)
        if lt == -1:
            break
        end = _tag_end(text, lt)
        if end == -1:
            break
        if end is None:
            pos = lt + 1
            continue
        if lt > text_start:
            yield False, text_start, lt
        yield True, lt, end
        pos = text_start = end

    if text_start < len(text):
        yield False, text_start, len(text)


def normalize(markup: str) -> str:
    """Drop whitespace-only text that sits between two tags."""

    runs = list(_runs(markup))
    kept: List[str] = []
    for i, (is_tag, start, end) in enumerate(runs):
        between_tags = 0 < i < len(runs) - 1 and runs[i - 1][0] and runs[i + 1][0]
        if not is_tag and between_tags and not markup[start:end].strip():
            continue
        kept.append(markup[start:end])
    return "".join(kept)


def tokenize(
    markup: str, *, void_elements: AbstractSet[str] = frozenset()
) -> Iterator[Token]:
    """Yield tag and text tokens covering ``normalize(markup)`` exactly."""

    text = normalize(markup)
    for is_tag, start, end in _runs(text):
        raw = text[start:end]
        kind = classify(raw, void_elements) if is_tag else TokenKind.TEXT
        yield Token(kind, raw, start, end)


__all__ = [
    "HTML_VOID_ELEMENTS",
    "Token",
    "TokenKind",
    "classify",
    "normalize",
    "tag_name",
    "tokenize",
]
