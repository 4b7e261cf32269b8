"""Utility functions and helpers."""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional, Union

NON_NUMERIC_RE = re.compile(r'[^0-9.]')
WHITESPACE_RE = re.compile(r'\s+')
DATE_MDY_RE = re.compile(r'\b(\d{1,2})/(\d{1,2})/(\d{4})\b')
DOLLAR_RE = re.compile(r'\$\s*[0-9][0-9,]*(?:\.\d+)?')

# Monday=0 ... Sunday=6; the snapshot week is anchored on Friday.
FRIDAY = 4


def setup_logging(level: int = logging.INFO) -> None:
    """Configure logging with proper formatting.

    Args:
        level: Logging level (default: INFO)
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def clean_numeric(text: Optional[str]) -> Optional[float]:
    """Parse a displayed figure such as ``$137,800`` or ``4.73 mills`` as a float.

    Every character outside ``[0-9.]`` is dropped before parsing.

    Args:
        text: Raw cell text

    Returns:
        Parsed float, or None when nothing numeric remains
    """
    if text is None:
        return None

    cleaned = NON_NUMERIC_RE.sub('', str(text))
    if not cleaned:
        return None

    try:
        return float(cleaned)
    except ValueError:
        # e.g. "1.2.3" left over from a dotted label
        return None


def clean_text(text: Optional[str], truncate_at: Optional[str] = None) -> Optional[str]:
    """Normalize a displayed text value.

    Handles:
    - Trailing noise: everything from ``truncate_at`` onwards is removed
    - Markup artifacts: literal ``|`` characters are removed
    - Whitespace: runs are collapsed to one space and the ends trimmed

    Args:
        text: Raw cell text
        truncate_at: Marker after which the text is link or label noise

    Returns:
        Clean text, or None when nothing but whitespace remains
    """
    if text is None:
        return None

    text = str(text)

    if truncate_at:
        idx = text.find(truncate_at)
        if idx >= 0:
            text = text[:idx]

    text = text.replace('|', '')
    text = WHITESPACE_RE.sub(' ', text).strip()

    return text or None


def extract_dollar_amount(text: Optional[str]) -> Optional[float]:
    """Return the first ``$1,234`` style amount in a sentence.

    Labels like "Median Value as of 1/8/2026: $137,800" carry digits in the
    date too, so the amount is located before it is cleaned.
    """
    if not text:
        return None
    match = DOLLAR_RE.search(text)
    if not match:
        return None
    return clean_numeric(match.group(0))


def parse_as_of_date(text: Optional[str]) -> Optional[str]:
    """Find an ``M/D/YYYY`` date in a label and return it in ISO format.

    Args:
        text: Label text, e.g. "Value As Of 1/8/2026:"

    Returns:
        ISO date string ("2026-01-08") or None if no valid date is present
    """
    if not text:
        return None

    match = DATE_MDY_RE.search(text)
    if not match:
        return None

    month, day, year = (int(g) for g in match.groups())
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def snapshot_week(day: Union[date, datetime, str]) -> str:
    """Return the Friday that anchors the week a scrape happened in.

    Monday through Friday map to that week's Friday; Saturday and Sunday map
    back to the Friday just before.

    Args:
        day: Date, datetime, or ISO date/datetime string

    Returns:
        ISO date string of the anchoring Friday
    """
    if isinstance(day, str):
        # timestamps such as "2026-01-08 10:15:32.1234" only need their date part
        day = date.fromisoformat(day.strip()[:10])
    elif isinstance(day, datetime):
        day = day.date()

    # negative for Saturday and Sunday
    offset = FRIDAY - day.weekday()
    return (day + timedelta(days=offset)).isoformat()
