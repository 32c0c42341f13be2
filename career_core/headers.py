from __future__ import annotations

import re
from typing import Iterable, List

# no-break, figure and narrow no-break spaces
_SPACE_LIKE = re.compile("[\u00a0\u2007\u202f]")
# zero-width characters and the BOM
_INVISIBLE = re.compile("[\u200b\u200c\u200d\ufeff]")
_WHITESPACE = re.compile(r"\s+")


def normalize_header(raw: object) -> str:
    """Canonical column name: trimmed, with any whitespace run collapsed to one space."""
    if raw is None:
        return ""
    s = _SPACE_LIKE.sub(" ", str(raw))
    s = _INVISIBLE.sub("", s)
    return _WHITESPACE.sub(" ", s).strip()


def normalize_headers(raw: Iterable[object]) -> List[str]:
    return [normalize_header(h) for h in raw]
