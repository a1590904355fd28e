"""Case-insensitive string comparison helpers.

Comparison is done one character at a time under simple case folding, so a
folded copy of the haystack is never built and string lengths never change
(``"ß"`` does not turn into ``"ss"``).
"""

from __future__ import annotations

from functools import lru_cache


@lru_cache(maxsize=4096)
def fold_char(c: str) -> str:
    """Return the simple case fold of a single character."""
    folded = c.casefold()
    if len(folded) == 1:
        return folded
    # Full folding expands this character; fall back to a 1:1 mapping.
    lowered = c.lower()
    if len(lowered) == 1:
        return lowered
    return c


def _chars_equal_fold(a: str, b: str) -> bool:
    return a == b or fold_char(a) == fold_char(b)


def equal_fold(a: str, b: str) -> bool:
    """Report whether a and b are equal, ignoring letter case."""
    if len(a) != len(b):
        return False
    return all(_chars_equal_fold(x, y) for x, y in zip(a, b))


def _window_equal_fold(s: str, start: int, substr: str) -> bool:
    """Compare s[start:start+len(substr)] to substr without slicing."""
    for offset, c in enumerate(substr):
        if not _chars_equal_fold(s[start + offset], c):
            return False
    return True


def contains_fold(s: str, substr: str) -> bool:
    """Report whether s contains substr, ignoring letter case."""
    s_len, substr_len = len(s), len(substr)
    if s_len < substr_len:
        return False

    if s_len == substr_len:
        return equal_fold(s, substr)

    if not substr:
        return True

    first = substr[0]
    first_folded = fold_char(first)
    last_start = s_len - substr_len

    i = 0
    while i <= last_start:
        if _window_equal_fold(s, i, substr):
            return True

        # Skip to the next position that can start a match.
        i += 1
        while i <= last_start:
            c = s[i]
            if c == first or fold_char(c) == first_folded:
                break
            i += 1

    return False
