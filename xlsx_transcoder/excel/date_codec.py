from __future__ import annotations

import math
from datetime import datetime, timedelta

"""Excel serial date <-> calendar timestamp conversion.

Serial dates count days from 1899-12-30 (the 1900 date system base that
absorbs Excel's 1900 leap-year bug). The whole part is the day count, the
fractional part the time of day.
"""

__all__ = [
    "EXCEL_EPOCH",
    "DATE_DISPLAY_FORMAT",
    "EXCEL_DATE_NUMBER_FORMAT",
    "SECONDS_PER_DAY",
    "decode",
    "encode",
]

EXCEL_EPOCH = datetime(1899, 12, 30)
SECONDS_PER_DAY = 86400

# Display format for written date cells, and its Excel number-format spelling
DATE_DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"
EXCEL_DATE_NUMBER_FORMAT = "yyyy-mm-dd hh:mm:ss"


def _round_half_away_from_zero(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def decode(serial: float) -> datetime | None:
    """Convert an Excel serial date to a naive datetime.

    The fractional day is rounded to the nearest whole second, so 0.99999999
    of a day becomes midnight of the next day rather than 23:59:59.

    Args:
        serial: Excel serial date

    Returns:
        The calendar timestamp, or None when it cannot be represented
        (overflow, NaN, infinity).
    """
    if not math.isfinite(serial):
        return None
    days = math.trunc(serial)
    seconds = _round_half_away_from_zero((serial - days) * SECONDS_PER_DAY)
    try:
        return EXCEL_EPOCH + timedelta(days=days) + timedelta(seconds=seconds)
    except OverflowError:
        return None


def encode(value: datetime) -> float:
    """Convert a naive datetime back to an Excel serial date."""
    return (value - EXCEL_EPOCH) / timedelta(days=1)
