"""Literal and regex match finding over raw character offsets."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Pattern

from format_engine.runtime import telemetry

_REGEX_METACHARACTERS = re.compile(r"[.*+?^${}()|[\]\\]")


@dataclass(frozen=True, slots=True, order=True)
class MatchRange:
    """Half-open ``[start, end)`` offsets valid only for the string they came from."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    def shifted(self, delta: int) -> "MatchRange":
        return MatchRange(self.start + delta, self.end + delta)


def escape_literal(term: str) -> str:
    return _REGEX_METACHARACTERS.sub(r"\\\g<0>", term)


def compile_search(
    term: str, *, case_sensitive: bool = False, use_regex: bool = False
) -> Pattern[str]:
    """Compile ``term``; raises ``re.error`` for a bad regex."""

    source = term if use_regex else escape_literal(term)
    return re.compile(source, 0 if case_sensitive else re.IGNORECASE)


def is_valid_pattern(term: str, use_regex: bool = True) -> bool:
    if not use_regex or not term:
        return True
    try:
        re.compile(term)
    except re.error:
        return False
    return True


def find_matches(
    content: str,
    term: str,
    case_sensitive: bool = False,
    use_regex: bool = False,
) -> List[MatchRange]:
    """Return every non-overlapping hit of ``term`` in ``content``, in order.

    A regex that fails to compile yields ``[]`` just like a term with no hits;
    use ``is_valid_pattern`` to tell the two apart. Zero-width regex hits are
    skipped.
    """

    if not term:
        return []
    try:
        pattern = compile_search(term, case_sensitive=case_sensitive, use_regex=use_regex)
    except re.error as exc:
        telemetry.record_event(
            "search.invalid_pattern",
            level="warning",
            data={"term": term, "error": str(exc)},
        )
        return []
    return [
        MatchRange(match.start(), match.end())
        for match in pattern.finditer(content)
        if match.end() > match.start()
    ]


__all__ = [
    "MatchRange",
    "compile_search",
    "escape_literal",
    "find_matches",
    "is_valid_pattern",
]
