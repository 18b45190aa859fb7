"""Single-hit and global replacement."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence, Tuple

from format_engine.runtime import telemetry

from .matcher import MatchRange, compile_search, find_matches


@dataclass(frozen=True, slots=True)
class ReplaceOutcome:
    content: str
    index: int
    matches: Tuple[MatchRange, ...]


def replace_one(
    content: str,
    search_term: str,
    replace_term: str,
    index: int,
    matches: Sequence[MatchRange],
) -> ReplaceOutcome:
    """Splice ``replace_term`` over ``matches[index]`` and shift later ranges.

    The shifted ranges are exact for literal search only; after a regex
    replacement callers should run ``find_matches`` again.
    """

    ranges = tuple(matches)
    if not search_term or not 0 <= index < len(ranges):
        return ReplaceOutcome(content, index, ranges)

    target = ranges[index]
    updated = content[: target.start] + replace_term + content[target.end :]
    delta = len(replace_term) - len(target)
    shifted = ranges[: index + 1] + tuple(m.shifted(delta) for m in ranges[index + 1 :])
    new_index = index if index < len(ranges) - 1 else max(0, index - 1)
    return ReplaceOutcome(updated, new_index, shifted)


def replace_all(
    content: str,
    search_term: str,
    replace_term: str,
    case_sensitive: bool = False,
    use_regex: bool = False,
) -> str:
    """Replace every hit; returns ``content`` unchanged for a bad pattern.

    In regex mode ``replace_term`` is a template (``\\1``, ``\\g<name>``); in
    literal mode it is inserted verbatim. Zero-width regex hits are left
    untouched, matching ``find_matches``: ``x*`` over ``"ab"`` replaces
    nothing rather than inserting at every position.
    """

    if not search_term:
        return content
    try:
        pattern = compile_search(
            search_term, case_sensitive=case_sensitive, use_regex=use_regex
        )
        if use_regex:
            return pattern.sub(
                lambda m: m.expand(replace_term) if m.end() > m.start() else "",
                content,
            )
        return pattern.sub(lambda _m: replace_term, content)
    except (re.error, IndexError) as exc:
        telemetry.record_event(
            "search.replace_failed",
            level="warning",
            data={"term": search_term, "error": str(exc)},
        )
        return content


def count_matches(
    content: str, term: str, case_sensitive: bool = False, use_regex: bool = False
) -> int:
    return len(find_matches(content, term, case_sensitive, use_regex))


__all__ = ["ReplaceOutcome", "count_matches", "replace_all", "replace_one"]
