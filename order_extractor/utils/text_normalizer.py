"""Text normalization helpers for values captured from order documents.

Partner documents mix full-width and half-width characters, use thousands
separators and write dates in several layouts. These helpers coerce captured
strings into the shapes an ExtractionRecord expects without ever raising.
"""

import math
import re
import unicodedata
from typing import Any

_LEADING_NUMBER = re.compile(r"^[+-]?\d+(?:\.\d+)?")

# (regex, group order as year/month/day indexes)
_DATE_LAYOUTS: list[tuple[re.Pattern, tuple[int, int, int]]] = [
    (re.compile(r"(\d{4})\s*[年/\-.]\s*(\d{1,2})\s*[月/\-.]\s*(\d{1,2})\s*日?"), (1, 2, 3)),
    (re.compile(r"(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})"), (3, 1, 2)),
]


def to_half_width(text: str) -> str:
    """Fold full-width digits, letters and punctuation to their ASCII forms."""
    return unicodedata.normalize("NFKC", text)


def parse_float(value: Any, default: float = 0.0) -> float:
    """Parse the leading number of a value, tolerating full-width digits.

    Args:
        value: A number, a numeric string such as "１２.５kg" or "1,200", or None

    Returns:
        The parsed float, or default when nothing numeric leads the value

    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        return float(value)

    text = to_half_width(str(value)).strip().replace(",", "")
    match = _LEADING_NUMBER.match(text)
    if not match:
        return default
    return float(match.group())


def parse_int(value: Any, default: int = 0) -> int:
    """Parse the leading integer part of a value (truncating decimals)."""
    number = parse_float(value, default=float("nan"))
    if not math.isfinite(number):
        return default
    return int(number)


def normalize_date(value: str) -> str:
    """Convert recognisable dates to YYYY-MM-DD, leaving others untouched."""
    if not value:
        return ""

    text = to_half_width(value).strip()
    for pattern, (year_idx, month_idx, day_idx) in _DATE_LAYOUTS:
        match = pattern.search(text)
        if match:
            year = match.group(year_idx)
            month = match.group(month_idx).zfill(2)
            day = match.group(day_idx).zfill(2)
            return f"{year}-{month}-{day}"
    return value.strip()
