"""Glob-style allow patterns over datapoint identifiers (`*` = any run of characters)."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Optional, Pattern


@lru_cache(maxsize=512)
def _compile(pattern: str) -> Pattern[str]:
    body = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.compile(f"^{body}$", re.IGNORECASE | re.DOTALL)


def matches(identifier: Optional[str], pattern: Optional[str]) -> bool:
    """
    True if `pattern` matches the whole of `identifier`, ignoring case.

    Literal characters match exactly (regex metacharacters such as `.` are escaped);
    each `*` matches zero or more characters. Empty inputs never match.
    """
    if not identifier or not pattern:
        return False
    return _compile(pattern).match(identifier) is not None
