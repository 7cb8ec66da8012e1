"""
Report date extraction.

Finds every date a report mentions in six textual formats, keeps the real
calendar dates inside the accepted year window and returns them unique and
ascending. A text without any valid date yields ``[today]``.
"""

import logging
import re
from datetime import date
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

MIN_YEAR = 2000
MAX_YEAR = 2030

_ABBR = r"(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)"
_FULL = r"(January|February|March|April|May|June|July|August|September|October|November|December)"

MONTHS = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}  # fmt: skip

# (pattern, field order) - order names which capture group holds y/m/d
DATE_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})"), "mdy"),
    (re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})"), "ymd"),
    (re.compile(_ABBR + r"\s+(\d{1,2}),?\s+(\d{4})", re.IGNORECASE), "Mdy"),
    (re.compile(r"(\d{1,2})\s+" + _ABBR + r"\s+(\d{4})", re.IGNORECASE), "dMy"),
    (re.compile(r"(\d{1,2})-(\d{1,2})-(\d{4})"), "mdy"),
    (re.compile(_FULL + r"\s+(\d{1,2}),?\s+(\d{4})", re.IGNORECASE), "Mdy"),
]


def _parse_match(groups: Tuple[str, ...], order: str) -> date:
    parts = {}
    for key, value in zip(order, groups):
        if key == "M":
            parts["m"] = MONTHS[value.lower()]
        else:
            parts[key] = int(value)
    return date(parts["y"], parts["m"], parts["d"])


def extract_dates(
    text: str,
    today: Optional[date] = None,
    min_year: int = MIN_YEAR,
    max_year: int = MAX_YEAR,
) -> List[date]:
    """
    Extract report dates from free text.

    Args:
        text: Document text
        today: Fallback date when nothing valid is found (defaults to date.today())
        min_year: Exclusive lower year bound
        max_year: Exclusive upper year bound

    Returns:
        Unique dates in ascending order, never empty
    """
    found = set()
    for pattern, order in DATE_PATTERNS:
        for match in pattern.finditer(text or ""):
            try:
                parsed = _parse_match(match.groups(), order)
            except ValueError:
                logger.debug(f"Skipping impossible date '{match.group(0)}'")
                continue
            if min_year < parsed.year < max_year:
                found.add(parsed)
            else:
                logger.debug(f"Skipping out-of-range date '{match.group(0)}'")

    dates = sorted(found)
    if not dates:
        fallback = today or date.today()
        logger.debug(f"No dates found in text, using {fallback.isoformat()}")
        return [fallback]

    logger.debug(f"Extracted {len(dates)} unique dates")
    return dates


class DateExtractor:
    """Date extraction bound to a configured year window."""

    def __init__(self, min_year: int = MIN_YEAR, max_year: int = MAX_YEAR):
        self.min_year = min_year
        self.max_year = max_year

    def extract(self, text: str, today: Optional[date] = None) -> List[date]:
        return extract_dates(text, today=today, min_year=self.min_year, max_year=self.max_year)
