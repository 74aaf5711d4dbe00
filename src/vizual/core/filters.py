"""Include/exclude filtering of workspace-relative paths.

Patterns are shell globs with globstar. ``*``, ``?`` and ``[...]`` stay inside
one path segment, ``**`` spans any number of segments, and dotfiles match like
any other name. ``**/`` may stand for zero directories and a trailing ``/**``
also matches the directory itself, so ``**/node_modules/**`` rejects
``node_modules`` as well as everything below it.
"""

from __future__ import annotations

import re
from functools import lru_cache

from vizual.models import FilterConfig

_GLOBSTAR_DIR = "**/"
_TRAILING_GLOBSTAR = "/**"


def _translate_class(pattern: str, start: int) -> tuple[str, int] | None:
    end = start + 1
    if end < len(pattern) and pattern[end] in "!^":
        end += 1
    if end < len(pattern) and pattern[end] == "]":
        end += 1
    while end < len(pattern) and pattern[end] != "]":
        end += 1
    if end >= len(pattern):
        return None

    body = pattern[start + 1 : end]
    negate = body[:1] in ("!", "^")
    if negate:
        body = body[1:]
    body = body.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")
    return ("[^/" if negate else "[") + body + "]", end + 1


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> re.Pattern[str]:
    parts: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        at_segment_start = i == 0 or pattern[i - 1] == "/"
        if at_segment_start and pattern.startswith(_GLOBSTAR_DIR, i):
            parts.append("(?:[^/]+/)*")
            i += len(_GLOBSTAR_DIR)
        elif at_segment_start and pattern[i:] == "**":
            parts.append(".*")
            i = n
        elif pattern[i:] == _TRAILING_GLOBSTAR:
            parts.append("(?:/.*)?")
            i = n
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
            while i < n and pattern[i] == "*":
                i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        elif pattern[i] == "[" and (translated := _translate_class(pattern, i)) is not None:
            parts.append(translated[0])
            i = translated[1]
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts), re.DOTALL)


def matches_glob(relative_path: str, pattern: str) -> bool:
    return compile_glob(pattern).fullmatch(relative_path) is not None


def should_include(relative_path: str, filters: FilterConfig) -> bool:
    """Exclude wins over include; a path matching no include pattern is rejected."""
    if any(matches_glob(relative_path, p) for p in filters.exclude_patterns):
        return False
    return any(matches_glob(relative_path, p) for p in filters.include_patterns)
