"""Structural version comparator used to order version indices.

Versions are split on ``.`` and ``-``.  Parts made only of ASCII digits
compare numerically with each other; every other pairing compares as
strings, and a missing trailing part counts as ``0``.

This is deliberately *not* semver precedence: ``1.0.0-beta`` sorts after
``1.0.0`` here (``"beta" > "0"``), whereas semver ranks pre-releases lower.
Existing registry contents are ordered by this rule, so it is kept as is.
"""

from __future__ import annotations

import re
from functools import cmp_to_key

_SEPARATORS_RE = re.compile(r"[.-]")
_NUMERIC_RE = re.compile(r"[0-9]+")


def parse_version(version: str) -> list[int | str]:
    """Split *version* into numeric and textual parts."""
    return [
        int(part) if _NUMERIC_RE.fullmatch(part) else part
        for part in _SEPARATORS_RE.split(version)
    ]


def compare_versions(a: str, b: str) -> int:
    """Return 1 if *a* is newer than *b*, -1 if older, 0 if equivalent."""
    left = parse_version(a)
    right = parse_version(b)
    for i in range(max(len(left), len(right))):
        lv = left[i] if i < len(left) else 0
        rv = right[i] if i < len(right) else 0
        if not (isinstance(lv, int) and isinstance(rv, int)):
            lv, rv = str(lv), str(rv)
        if lv != rv:
            return 1 if lv > rv else -1
    return 0


def is_not_older(previous: str, current: str) -> bool:
    """True when *previous* may appear before *current* in a newest-first list."""
    return compare_versions(previous, current) >= 0


def sort_newest_first(versions: list[str]) -> list[str]:
    return sorted(versions, key=cmp_to_key(compare_versions), reverse=True)


version_sort_key = cmp_to_key(compare_versions)
