"""
Step selection.

Expressions accepted (N = number of steps in the inventory):
- ''/None or 'all'  -> 0..N-1
- '3'               -> [3]
- '1-3'             -> [1, 2, 3] (inclusive, '3-1' is empty)
- '1 5 12'          -> [1, 5, 12]

Indices outside 0..N-1 are dropped silently.

License: MIT
"""

from __future__ import annotations

import re
from typing import List, Optional

from .errors import ParseError

_INDEX_RE = re.compile(r"[0-9]+")


def _to_index(token: str, expression: str, term: str = "") -> int:
    t = token.strip()
    if not _INDEX_RE.fullmatch(t):
        # an empty side of a range names the whole range term
        raise ParseError(t or term or token, expression)
    return int(t)


def resolve(expression: Optional[str], step_count: int) -> List[int]:
    """Resolve a step-selection expression into sorted, unique, in-range indices."""
    n = max(int(step_count), 0)
    text = (expression or "").strip()

    if not text or text.lower() == "all":
        return list(range(n))

    if "-" in text:
        start_s, end_s = text.split("-", 1)
        start = _to_index(start_s, text, text)
        end = _to_index(end_s, text, text)
        wanted = range(start, min(end, n - 1) + 1)
    else:
        wanted = [_to_index(tok, text) for tok in text.split()]

    return sorted({i for i in wanted if 0 <= i < n})
