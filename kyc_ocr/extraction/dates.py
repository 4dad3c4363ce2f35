"""Date helpers for Ethiopian identity documents.

Three concerns live here:
    * Calendar conversion between Ethiopian and Gregorian years. This is a
      fixed +7/-7 year shift on the year component; month and day pass
      through untouched. Real Ethiopian dates near Meskerem (September) are
      off by one year under this model, and review screens rely on the shift
      being exactly invertible, so it stays fixed.
    * Formatting for display ("April 15, 2020") and for date inputs
      ("2020-04-15").
    * Pulling an Ethiopian-calendar date out of free OCR text carrying an
      "E.C." or "ዓ.ም" marker.

Every public function is total: malformed input yields "" (or the echoed
input for display formatting) and internal failures are logged, never raised.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as date_parser

logger = logging.getLogger("kyc.ocr")

ETHIOPIAN_YEAR_OFFSET = 7
ETHIOPIAN_MARKERS = ("E.C.", "ዓ.ም")

# ASCII digits only; \d would also accept other Unicode decimal digits
ISO_PARTS_RX = re.compile(r"^([0-9]{4,})-([0-9]{1,2})-([0-9]{1,2})$")
_MARKER = r"\s*(?:E\.C\.|ዓ\.ም)"
ISO_MARKED_RX = re.compile(r"([0-9]{4})-([0-9]{1,2})-([0-9]{1,2})" + _MARKER)
SLASH_MARKED_RX = re.compile(r"([0-9]{1,2})/([0-9]{1,2})/([0-9]{4})" + _MARKER)
DIGIT_RUN_RX = re.compile(r"[0-9]+")

# Components missing from a partial date ("2020", "February 2021") come from here
PARTIAL_DATE_DEFAULT = datetime(2001, 1, 1)


def _format_ymd(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def _shift_year(value: Any, delta: int) -> str:
    if not value or not isinstance(value, str):
        return ""
    try:
        m = ISO_PARTS_RX.match(value.strip())
        if not m:
            return ""
        year, month, day = (int(p) for p in m.groups())
        if not year or not month or not day:
            return ""
        shifted = year + delta
        if shifted < 1:
            logger.debug("date_shift_out_of_range value=%s delta=%d", value, delta)
            return ""
        return _format_ymd(shifted, month, day)
    except Exception as exc:
        logger.error("date_shift_error value=%r delta=%d err=%s", value, delta, exc)
        return ""


def to_gregorian(ethiopian_date: str) -> str:
    """Convert an Ethiopian ``YYYY-MM-DD`` date to Gregorian (year + 7).

    >>> to_gregorian("2013-04-15")
    '2020-04-15'
    """
    return _shift_year(ethiopian_date, ETHIOPIAN_YEAR_OFFSET)


def to_ethiopian(gregorian_date: str) -> str:
    """Convert a Gregorian ``YYYY-MM-DD`` date to Ethiopian (year - 7)."""
    return _shift_year(gregorian_date, -ETHIOPIAN_YEAR_OFFSET)


def parse_date(value: Any) -> Optional[datetime]:
    """Lenient date parse; returns None when the value is not a date.

    Missing month or day fall back to January 1st rather than today, so the
    result never depends on the clock. Timezone-aware values are normalised
    to UTC so the calendar day matches what an ISO serializer would emit.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = date_parser.parse(value, default=PARTIAL_DATE_DEFAULT)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed


def format_for_display(date_string: str) -> str:
    """Long-form rendering ("April 15, 2020"); unparsable input is echoed back."""
    if not date_string:
        return ""
    parsed = parse_date(date_string)
    if parsed is None:
        return date_string
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def format_for_input(date_string: str) -> str:
    """``YYYY-MM-DD`` rendering for date pickers; "" when unparsable."""
    parsed = parse_date(date_string)
    if parsed is None:
        return ""
    return parsed.date().isoformat()


def has_ethiopian_marker(text: Any) -> bool:
    if not isinstance(text, str):
        return False
    return any(marker in text for marker in ETHIOPIAN_MARKERS)


def extract_ethiopian_date(text: str) -> str:
    """Pull an Ethiopian ``YYYY-MM-DD`` date out of OCR text.

    Tried in order, first hit wins:
        1. ``YYYY-MM-DD`` followed by an E.C./ዓ.ም marker
        2. ``DD/MM/YYYY`` followed by a marker
        3. the first three digit runs read as year, month, day; the year
           must have four digits, month 1..12 and day 1..31 (no per-month
           day counts)
    """
    if not text or not isinstance(text, str):
        return ""
    try:
        m = ISO_MARKED_RX.search(text)
        if m:
            return f"{m.group(1)}-{m.group(2).zfill(2)}-{m.group(3).zfill(2)}"

        m = SLASH_MARKED_RX.search(text)
        if m:
            return f"{m.group(3)}-{m.group(2).zfill(2)}-{m.group(1).zfill(2)}"

        runs = DIGIT_RUN_RX.findall(text)
        if len(runs) >= 3:
            year, month, day = runs[:3]
            if len(year) == 4 and 1 <= int(month) <= 12 and 1 <= int(day) <= 31:
                return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
    except Exception as exc:
        logger.error("ethiopian_date_extract_error text=%r err=%s", text, exc)
    return ""
