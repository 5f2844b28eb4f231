"""
Date utilities for CDS analytics.

Uses opendate.Date as the primary date type. Year fractions are signed so
that dates before the trade date map to negative times.
"""

from datetime import date, datetime
from typing import Union

from opendate import CustomCalendar, Date, register_calendar
from opendate import set_default_calendar

from .enums import DayCountConvention

# Setup weekends-only calendar as default
WEEKENDS_ONLY = CustomCalendar(
    name='WEEKENDS_ONLY',
    holidays=set(),
    weekmask='Mon Tue Wed Thu Fri',
)
register_calendar('WEEKENDS_ONLY', WEEKENDS_ONLY)
set_default_calendar('WEEKENDS_ONLY')


# Accept various date-like inputs
DateLike = Union[Date, date, datetime, str]


def make_calendar(name: str, holidays=()) -> CustomCalendar:
    """Register a weekday calendar with extra holidays and return it."""
    cal = CustomCalendar(
        name=name,
        holidays={to_date(h) for h in holidays},
        weekmask='Mon Tue Wed Thu Fri',
    )
    register_calendar(name, cal)
    return cal


def to_date(d: DateLike, calendar: CustomCalendar | None = None) -> Date:
    """Convert any date-like input to opendate.Date."""
    cal = calendar or WEEKENDS_ONLY
    if isinstance(d, Date):
        return d.calendar(cal)
    if isinstance(d, datetime):
        return Date.instance(d.date()).calendar(cal)
    if isinstance(d, date):
        return Date.instance(d).calendar(cal)
    if isinstance(d, str):
        result = Date.parse(d)
        if result is None:
            raise ValueError(f'Cannot parse date: {d}')
        return result.calendar(cal)
    raise TypeError(f'Expected Date, date, datetime, or string, got {type(d)}')


def days_between(start: DateLike, end: DateLike) -> int:
    """Signed number of calendar days from start to end."""
    return to_date(end).toordinal() - to_date(start).toordinal()


def year_fraction(
    start: DateLike,
    end: DateLike,
    convention: DayCountConvention = DayCountConvention.ACT_360,
) -> float:
    """
    Calculate the signed year fraction between two dates.

    Args:
        start: Start date
        end: End date
        convention: Day count convention to use

    Returns
        Year fraction as a float, negative when end is before start
    """
    d1 = to_date(start)
    d2 = to_date(end)
    if d2 < d1:
        return -year_fraction(d2, d1, convention)

    if convention == DayCountConvention.ACT_360:
        return days_between(d1, d2) / 360.0

    if convention == DayCountConvention.ACT_365F:
        return days_between(d1, d2) / 365.0

    if convention == DayCountConvention.THIRTY_360:
        y1, m1, d1_day = d1.year, d1.month, d1.day
        y2, m2, d2_day = d2.year, d2.month, d2.day
        if d1_day == 31:
            d1_day = 30
        if d2_day == 31 and d1_day >= 30:
            d2_day = 30
        return (360 * (y2 - y1) + 30 * (m2 - m1) + (d2_day - d1_day)) / 360.0

    raise ValueError(f'Unknown day count convention: {convention}')


def add_days(d: DateLike, days: int) -> Date:
    """Add calendar days to a date."""
    od = to_date(d)
    return od.add(days=days) if days >= 0 else od.subtract(days=-days)


def add_months(d: DateLike, months: int) -> Date:
    """Add months to a date, clamping to month end."""
    od = to_date(d)
    return od.add(months=months) if months >= 0 else od.subtract(months=-months)


def add_years(d: DateLike, years: int) -> Date:
    """Add years to a date."""
    od = to_date(d)
    return od.add(years=years) if years >= 0 else od.subtract(years=-years)
