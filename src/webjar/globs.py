"""Exclude-pattern matching for archive entries.

Patterns follow the ``ignore`` conventions of bower.json/.npmignore:

- ``**`` spans directories, ``*`` and ``?`` stay within one path segment
- a leading ``*`` or ``?`` never matches a dotfile; ``.*`` matches them explicitly
- a pattern without ``/`` matches at any depth, a leading ``/`` anchors it at the root
- a pattern matching a directory excludes everything below it
- ``!pattern`` re-includes; the last matching pattern wins
"""

import re
from typing import Iterable, List, Pattern, Tuple


def glob_to_regex(pattern: str) -> Pattern[str]:
    """Compile one glob (already stripped of ``!`` and anchoring rules) to a regex."""
    out: List[str] = []
    i, n = 0, len(pattern)
    while i < n:
        segment_start = i == 0 or pattern[i - 1] == "/"
        if pattern.startswith("**/", i):
            out.append("(?:[^/]*/)*")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append(r"(?!\.)[^/]*" if segment_start else "[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append(r"(?!\.)[^/]" if segment_start else "[^/]")
            i += 1
        elif pattern[i] == "[":
            end = pattern.find("]", i + 2)
            if end == -1:
                out.append(re.escape("["))
                i += 1
            else:
                body = pattern[i + 1:end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append("[" + body.replace("\\", "\\\\") + "]")
                i = end + 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("^" + "".join(out) + "$")


def _parent_paths(path: str) -> List[str]:
    parts = path.split("/")
    return ["/".join(parts[:k]) for k in range(len(parts), 0, -1)]


class ExcludeMatcher:
    """Decides whether a relative archive path is excluded."""

    def __init__(self, patterns: Iterable[str]):
        self._rules: List[Tuple[Pattern[str], bool]] = []
        for raw in patterns or []:
            rule = self._compile(raw)
            if rule is not None:
                self._rules.append(rule)

    @staticmethod
    def _compile(raw: str):
        pattern = (raw or "").strip()
        if not pattern or pattern.startswith("#"):
            return None
        negated = pattern.startswith("!")
        if negated:
            pattern = pattern[1:]
        if pattern.startswith("./"):
            pattern = pattern[2:]
        pattern = pattern.rstrip("/")
        if pattern.startswith("/"):
            pattern = pattern.lstrip("/")
        elif "/" not in pattern and not pattern.startswith("**"):
            pattern = "**/" + pattern
        if not pattern:
            return None
        return glob_to_regex(pattern), negated

    def __bool__(self) -> bool:
        return bool(self._rules)

    def is_excluded(self, path: str) -> bool:
        excluded = False
        candidates = _parent_paths(path.strip("/"))
        for regex, negated in self._rules:
            if any(regex.match(candidate) for candidate in candidates):
                excluded = not negated
        return excluded
