"""
IMM (International Monetary Market) date logic.

IMM dates are the standard maturity and accrual anchors for CDS contracts:
the 20th of March, June, September and December. Index roll dates are the
20th of March and September.
"""

from opendate import Date

from .dates import DateLike, to_date
from .tenor import Tenor, parse_tenors

# Standard IMM months
IMM_MONTHS = (3, 6, 9, 12)

# Index roll months (March and September)
INDEX_ROLL_MONTHS = (3, 9)

# IMM day of month
IMM_DAY = 20


def is_imm_date(d: DateLike) -> bool:
    """
    Check if a date is an IMM date.

    Args:
        d: Date to check

    Returns
        True if the date is the 20th of March, June, September or December
    """
    d = to_date(d)
    return d.day == IMM_DAY and d.month in IMM_MONTHS


def is_index_roll_date(d: DateLike) -> bool:
    """True if the date is the 20th of March or September."""
    d = to_date(d)
    return d.day == IMM_DAY and d.month in INDEX_ROLL_MONTHS


def next_imm_date(d: DateLike) -> Date:
    """
    Find the first IMM date strictly after a date.

    Args:
        d: Reference date

    Returns
        Next IMM date
    """
    d = to_date(d)
    year, month, day = d.year, d.month, d.day
    if month % 3 == 0:
        if day < IMM_DAY:
            return to_date(Date(year, month, IMM_DAY))
        if month != 12:
            return to_date(Date(year, month + 3, IMM_DAY))
        return to_date(Date(year + 1, 3, IMM_DAY))
    return to_date(Date(year, (month // 3 + 1) * 3, IMM_DAY))


def previous_imm_date(d: DateLike) -> Date:
    """
    Find the last IMM date strictly before a date.

    Args:
        d: Reference date

    Returns
        Previous IMM date
    """
    d = to_date(d)
    year, month, day = d.year, d.month, d.day
    if month % 3 == 0:
        if day > IMM_DAY:
            return to_date(Date(year, month, IMM_DAY))
        if month != 3:
            return to_date(Date(year, month - 3, IMM_DAY))
        return to_date(Date(year - 1, 12, IMM_DAY))
    quarter_month = (month // 3) * 3
    if quarter_month == 0:
        return to_date(Date(year - 1, 12, IMM_DAY))
    return to_date(Date(year, quarter_month, IMM_DAY))


def next_index_roll_date(d: DateLike) -> Date:
    """Find the first index roll date (20 Mar or 20 Sep) strictly after a date."""
    d = to_date(d)
    year, month, day = d.year, d.month, d.day
    if month % 6 == 3:
        if day < IMM_DAY:
            return to_date(Date(year, month, IMM_DAY))
        if month == 3:
            return to_date(Date(year, 9, IMM_DAY))
        return to_date(Date(year + 1, 3, IMM_DAY))
    if month < 3:
        return to_date(Date(year, 3, IMM_DAY))
    if month < 9:
        return to_date(Date(year, 9, IMM_DAY))
    return to_date(Date(year + 1, 3, IMM_DAY))


def imm_date_set(base_imm_date: DateLike, tenors) -> list[Date]:
    """
    IMM dates a set of tenors after a base IMM date.

    Args:
        base_imm_date: An IMM date, typically next_imm_date(trade_date)
        tenors: Tenor strings or Tenor objects

    Returns
        base_imm_date + tenor for each tenor, in input order

    Raises
        ValueError: If base_imm_date is not an IMM date
    """
    base = to_date(base_imm_date)
    if not is_imm_date(base):
        raise ValueError(f'{base} is not an IMM date')
    return [tenor.add_to(base) for tenor in parse_tenors(tenors)]


def imm_date_sequence(start_imm_date: DateLike, n: int) -> list[Date]:
    """The n consecutive quarterly IMM dates starting at start_imm_date."""
    start = to_date(start_imm_date)
    if not is_imm_date(start):
        raise ValueError(f'{start} is not an IMM date')
    quarter = Tenor.of_months(3)
    return [quarter.add_to(start, i) for i in range(n)]
