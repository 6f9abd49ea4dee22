"""
Simple utility functions for the import system
"""

import logging
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

from dateutil import parser as date_parser

from .config import MAX_FIELD_LENGTH

# Accepted legacy date layouts, tried in order before the free-form fallback
DATE_FORMATS = ["%Y-%m-%dT%H:%M:%S", "%Y-%m-%d", "%m/%d/%Y", "%d/%m/%Y"]

TIME_FORMATS = ["%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M:%S %p"]

# Two defaults that differ in every date part and in the hour; a component missing from
# the input takes the default, so the two parses disagree on it
_DEFAULT_DATE = datetime(1900, 1, 1)
_ALTERNATE_DATE = datetime(1904, 2, 2, 1)


def _fallback_parse(text: str) -> Optional[Tuple[datetime, datetime]]:
    try:
        return (date_parser.parse(text, default=_DEFAULT_DATE),
                date_parser.parse(text, default=_ALTERNATE_DATE))
    except (ValueError, OverflowError):
        return None


def setup_logging(level: str = "INFO", log_file: bool = True):
    """Setup logging configuration"""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(f'import_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def normalize_string(value: Optional[str]) -> Optional[str]:
    """Trim a value, treating blank strings as missing"""
    if value is None or not value.strip():
        return None
    return value.strip()


def first_non_blank(*values: Optional[str]) -> Optional[str]:
    """Return the first trimmed value that is not blank"""
    for value in values:
        normalized = normalize_string(value)
        if normalized is not None:
            return normalized
    return None


def truncate(value: Optional[str], limit: int = MAX_FIELD_LENGTH) -> Tuple[Optional[str], Optional[int]]:
    """Cut a value to the column width; returns the value and its original length when cut"""
    if value is None or len(value) <= limit:
        return value, None
    return value[:limit], len(value)


def parse_bool(value: Optional[str]) -> bool:
    """Permissive boolean: 1/true/yes are true, anything else false"""
    if value is None:
        return False
    return value.strip().lower() in ("1", "true", "yes")


def parse_int(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        return float(value.strip())
    except ValueError:
        return None


def parse_decimal(value: Optional[str]) -> Optional[Decimal]:
    if value is None or not value.strip():
        return None
    try:
        result = Decimal(value.strip())
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def float_to_decimal(value: Optional[float]) -> Optional[Decimal]:
    """Widen a legacy floating point value using its shortest round-trip representation"""
    if value is None:
        return None
    return Decimal(repr(value))


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a legacy date against the accepted layouts, then a free-form fallback"""
    if value is None or not value.strip():
        return None

    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    parsed = _fallback_parse(text)
    if parsed is None:
        return None
    first, second = parsed
    if first.date() != second.date():
        return None
    return first


def parse_time(value: Optional[str]) -> Optional[time]:
    """Parse a time of day; Access exports times as 1899-12-30T08:00:00 so datetimes are accepted"""
    if value is None or not value.strip():
        return None

    text = value.strip()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue

    parsed = _fallback_parse(text)
    if parsed is None:
        return None
    first, second = parsed
    if first.hour != second.hour:
        return None
    return first.time()


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")
