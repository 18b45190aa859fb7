"""Match finding and replacement over raw character offsets."""

from .matcher import (
    MatchRange,
    compile_search,
    escape_literal,
    find_matches,
    is_valid_pattern,
)
from .replace import ReplaceOutcome, count_matches, replace_all, replace_one

__all__ = [
    "MatchRange",
    "compile_search",
    "escape_literal",
    "find_matches",
    "is_valid_pattern",
    "ReplaceOutcome",
    "count_matches",
    "replace_all",
    "replace_one",
]
