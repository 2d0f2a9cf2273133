"""Anchor detection: is the mobile (narrow viewport) context textually in scope?"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict


# Order is a deterministic tie-break, not a ranking: the first hit wins.
MOBILE_KEYWORDS = (
    "mobile",
    "phone",
    "tablet",
    "handheld",
    "iphone",
    "samsung galaxy",
    "android",
    "touch",
    "tap",
    "swipe",
    "pinch",
    "long-press",
    "mobile safari",
    "android chrome",
    "viewport",
    "screen size",
    "width",
)

_DIMENSION_RE = re.compile(r"\b[3-9]\d{2,3}px\b", re.IGNORECASE)


class AnchorResult(BaseModel):
    """Outcome of scanning free text for a mobile anchor."""
    mobile_in_scope: bool
    anchor_phrase: Optional[str] = None
    keyword: Optional[str] = None  # keyword that fired, or None for dimension anchors
    basis: Optional[str] = None  # "keyword" | "dimension"

    model_config = ConfigDict(frozen=True)


def detect_anchor(text: Optional[str]) -> AnchorResult:
    """Scan ``text`` for a mobile anchor.

    Keywords are matched as case-insensitive substrings in list order. On a hit
    the anchor phrase is the first line containing the keyword (stripped), or
    the keyword itself when no line matches. Without a keyword, a 3-4 digit
    pixel dimension (300px-9999px) anchors the mobile context.
    """
    source = "" if text is None else str(text)
    lower = source.lower()

    for keyword in MOBILE_KEYWORDS:
        if keyword not in lower:
            continue
        matching_line = next(
            (line for line in source.split("\n") if keyword in line.lower()),
            None,
        )
        phrase = matching_line.strip() if matching_line is not None else keyword
        return AnchorResult(
            mobile_in_scope=True,
            anchor_phrase=f'{phrase} [anchor-keyword: "{keyword}"]',
            keyword=keyword,
            basis="keyword",
        )

    match = _DIMENSION_RE.search(source)
    if match:
        return AnchorResult(
            mobile_in_scope=True,
            anchor_phrase=f"{match.group(0)} [anchor-dimension]",
            basis="dimension",
        )

    return AnchorResult(mobile_in_scope=False)
