"""
Formatting and parsing helpers shared by the estimate engine, the API and
the PDF export.

parse_number() is total: any input degrades to an integer magnitude, so a
value rendered by format_number() parses back to the same integer.
"""
import re
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

_NON_DIGIT_RE = re.compile(r"\D")

_MONTH_NAMES = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

_STATUS_COLORS = {
    "New": "#455a64",
    "In Progress": "#d84315",
    "Cancelled": "#b71c1c",
    "Complete": "#2e7d32",
}
_DEFAULT_STATUS_COLOR = "#455a64"

PROFIT_POSITIVE_COLOR = "#2e7d32"
PROFIT_NEGATIVE_COLOR = "#b71c1c"


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 → 3, -2.5 → -3)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_number(value: Any) -> int:
    """
    Parse a user-entered or display-formatted number.

    Keeps a single leading minus sign and discards every other non-digit
    character, so "1,234", "$1 234" and "1234" all read as 1234. Blank or
    digit-free input reads as 0.
    """
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    text = str(value).strip()
    negative = text.startswith("-")
    digits = _NON_DIGIT_RE.sub("", text[1:] if negative else text)
    if not digits:
        return 0
    number = int(digits)
    return -number if negative else number


def format_number(value: Optional[float]) -> str:
    """Render with thousands separators and no fractional digits, sign kept."""
    if value is None:
        return ""
    magnitude = round_half_away(abs(value))
    formatted = f"{magnitude:,}"
    return f"-{formatted}" if value < 0 and magnitude else formatted


def format_date(value: Any) -> str:
    """Render as '14 Feb 2025, 09:42'; empty string for blank or invalid input."""
    if not value:
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return ""
    if not isinstance(value, datetime):
        return ""
    return f"{value.day} {_MONTH_NAMES[value.month - 1]} {value.year}, {value:%H}:{value:%M}"


def profitability_color(profitability: float) -> str:
    return PROFIT_POSITIVE_COLOR if profitability >= 0 else PROFIT_NEGATIVE_COLOR


def status_color(status: Optional[str]) -> str:
    return _STATUS_COLORS.get(status or "", _DEFAULT_STATUS_COLOR)
