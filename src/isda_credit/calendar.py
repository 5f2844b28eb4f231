"""
Business day adjustment functions.
"""

from opendate import CustomCalendar, Date

from .dates import DateLike, to_date
from .enums import BadDayConvention


def is_business_day(d: DateLike, calendar: CustomCalendar | None = None) -> bool:
    """Check if a date is a business day."""
    return to_date(d, calendar).is_business_day()


def adjust_date(
    d: DateLike,
    convention: BadDayConvention = BadDayConvention.FOLLOWING,
    calendar: CustomCalendar | None = None,
) -> Date:
    """
    Adjust a date according to a bad day convention.

    Uses opendate's business day snapping:
    - .b.add(days=0) snaps forward to next business day
    - .b.subtract(days=0) snaps backward to previous business day

    MODIFIED_* variants check month boundary and reverse if crossed.

    Args:
        d: Date to adjust
        convention: Bad day convention to apply
        calendar: Holiday calendar, weekends only when omitted

    Returns
        Adjusted Date
    """
    d = to_date(d, calendar)
    if convention == BadDayConvention.NONE or d.is_business_day():
        return d

    if convention == BadDayConvention.FOLLOWING:
        return d.b.add(days=0)

    if convention == BadDayConvention.PRECEDING:
        return d.b.subtract(days=0)

    if convention == BadDayConvention.MODIFIED_FOLLOWING:
        adjusted = d.b.add(days=0)
        return d.b.subtract(days=0) if adjusted.month != d.month else adjusted

    if convention == BadDayConvention.MODIFIED_PRECEDING:
        adjusted = d.b.subtract(days=0)
        return d.b.add(days=0) if adjusted.month != d.month else adjusted

    raise ValueError(f'Unknown bad day convention: {convention}')


def add_business_days(
    d: DateLike,
    days: int,
    calendar: CustomCalendar | None = None,
) -> Date:
    """
    Move forward a number of business days.

    Three business days after a Sunday is the following Wednesday. Zero
    days returns the date unchanged, even on a holiday.
    """
    if days < 0:
        raise ValueError(f'Business day count must be non-negative, got {days}')
    od = to_date(d, calendar)
    if days == 0:
        return od
    return od.b.add(days=days)
