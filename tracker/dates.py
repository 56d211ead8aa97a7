"""Display formatting and lenient parsing of application dates."""

import re
from datetime import date, datetime
from typing import Any, Optional

from openpyxl.utils.datetime import from_excel

ARABIC_INDIC_DIGITS = "٠١٢٣٤٥٦٧٨٩"
EXTENDED_ARABIC_INDIC_DIGITS = "۰۱۲۳۴۵۶۷۸۹"

_TO_ARABIC = str.maketrans("0123456789", ARABIC_INDIC_DIGITS)
_TO_LATIN = str.maketrans(
    ARABIC_INDIC_DIGITS + EXTENDED_ARABIC_INDIC_DIGITS, "0123456789" * 2
)

RLM = "\u200f"
# Bidi control characters that ar-EG output may contain.
_MARKS = re.compile("[\u200e\u200f\u061c\u202a-\u202e]")

_DAY_FIRST = re.compile(r"^(\d{1,2})\s*[/\-.،]\s*(\d{1,2})\s*[/\-.،]\s*(\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")


def format_display_date(value: Optional[date]) -> str:
    """Format a date the way the ar-EG locale shows it, e.g. ١٩‏/١٠‏/٢٠٢٦."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    text = f"{value.day}{RLM}/{value.month}{RLM}/{value.year}"
    return text.translate(_TO_ARABIC)


def parse_date(value: Any) -> Optional[date]:
    """Parse a spreadsheet or form date value.

    Accepts date/datetime objects, Excel serial numbers, ISO strings and
    day-first ``d/m/yyyy`` strings in Latin or Arabic-Indic digits.
    Returns None when nothing usable is found.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            converted = from_excel(value)
        except (ValueError, OverflowError, TypeError):
            return None
        if isinstance(converted, datetime):
            return converted.date()
        return converted if isinstance(converted, date) else None

    text = _MARKS.sub("", str(value)).translate(_TO_LATIN).strip()
    if not text:
        return None

    match = _ISO_DATE.match(text)
    if match:
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
        year, month, day = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    match = _DAY_FIRST.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    return None


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None
