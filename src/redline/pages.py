"""Page selection expressions such as ``1-5,10,15-20``."""
from __future__ import annotations

import re
from functools import lru_cache
from typing import FrozenSet, List, Optional

_RANGE_RE = re.compile(r"^([0-9]+)-([0-9]+)$")
_SINGLE_RE = re.compile(r"^[0-9]+$")


@lru_cache(maxsize=32)
def _parse(expression: str) -> FrozenSet[int]:
    pages = set()
    for token in expression.split(","):
        token = token.strip()
        match = _RANGE_RE.match(token)
        if match:
            start, end = int(match.group(1)), int(match.group(2))
            pages.update(range(start, end + 1))
        elif _SINGLE_RE.match(token):
            pages.add(int(token))
    return frozenset(pages)


def parse_page_ranges(expression: Optional[str]) -> List[int]:
    """Return the sorted, de-duplicated page numbers named by ``expression``.

    Tokens are separated by commas and are either a single number or an
    inclusive ``start-end`` range. Anything else is skipped without error, so
    ``"1-3,abc,5"`` selects ``[1, 2, 3, 5]``. A range written backwards
    (``"5-3"``) selects nothing.
    """

    if not expression:
        return []
    return sorted(_parse(expression))


def is_empty_selection(expression: Optional[str]) -> bool:
    return expression is None or not expression.strip()


def should_process_page(page_index: int, expression: Optional[str]) -> bool:
    """Return ``True`` when ``page_index`` is selected by ``expression``.

    An empty expression selects every page. A non-empty expression whose
    tokens are all malformed selects none.
    """

    if is_empty_selection(expression):
        return True
    return page_index in _parse(expression)
