"""
ISDA yield curve bootstrapping from market instruments.

Builds a YieldCurve from:
- Money market rates (simple interest, ACT/360)
- Par swap rates (fixed leg 30/360, semi-annual by default)

Instruments are solved in maturity order, one knot each, so that every
instrument reprices exactly off the finished curve. Knot times are
measured from the spot date and the curve is then moved to the trade
date, so curve time zero is the trade date like the CDS times.
"""

import logging
import math
from collections.abc import Sequence

import numpy as np
from opendate import CustomCalendar, Date

from .calendar import add_business_days, adjust_date
from .curves import YieldCurve
from .dates import DateLike, to_date, year_fraction
from .enums import BadDayConvention, DayCountConvention
from .exceptions import CalibrationError, ConvergenceError
from .root_finding import brent
from .tenor import Tenor

logger = logging.getLogger(__name__)

MONEY_MARKET = 'M'
SWAP = 'S'

_ZERO_RATE_BOUNDS = (-1.0, 1.0)


def _instrument_type(tenor: Tenor) -> str:
    # 12M is a deposit, 1Y a swap
    return SWAP if tenor.unit == 'Y' else MONEY_MARKET


def bootstrap_yield_curve(
    trade_date: DateLike,
    rates: Sequence[float],
    tenors: Sequence[Tenor | str],
    instrument_types: Sequence[str] | None = None,
    spot_days: int = 2,
    mm_day_count: DayCountConvention = DayCountConvention.ACT_360,
    swap_day_count: DayCountConvention = DayCountConvention.THIRTY_360,
    swap_interval: Tenor | str = '6M',
    curve_day_count: DayCountConvention = DayCountConvention.ACT_365F,
    bad_day: BadDayConvention = BadDayConvention.MODIFIED_FOLLOWING,
    calendar: CustomCalendar | None = None,
) -> YieldCurve:
    """
    Bootstrap an ISDA yield curve from money market and swap rates.

    Args:
        trade_date: Date of curve time zero
        rates: Market rate of each instrument as a decimal
        tenors: Tenor of each instrument from the spot date
        instrument_types: 'M' (money market) or 'S' (swap) per instrument.
            Day, week and month tenors default to money market, year
            tenors to swaps.
        spot_days: Business days from the trade date to the spot date
        mm_day_count: Accrual day count of the money market rates
        swap_day_count: Accrual day count of the swap fixed legs
        swap_interval: Fixed leg payment interval
        curve_day_count: Day count of the curve times
        bad_day: Adjustment of maturity and payment dates
        calendar: Holiday calendar, weekends only when omitted

    Returns
        YieldCurve whose time zero is the trade date

    Raises
        ValueError: On mismatched inputs or maturities out of order
        CalibrationError: If a swap cannot be repriced
    """
    n = len(rates)
    if n == 0:
        raise ValueError('At least one instrument is required')
    if len(tenors) != n:
        raise ValueError(f'Expected {n} tenors, got {len(tenors)}')
    tenors = [Tenor.parse(x) for x in tenors]
    if instrument_types is None:
        instrument_types = [_instrument_type(x) for x in tenors]
    elif len(instrument_types) != n:
        raise ValueError(f'Expected {n} instrument types, got {len(instrument_types)}')
    for kind in instrument_types:
        if kind not in {MONEY_MARKET, SWAP}:
            raise ValueError(f"Instrument type must be 'M' or 'S', got {kind!r}")
    swap_interval = Tenor.parse(swap_interval)
    if swap_interval.months == 0:
        raise ValueError(f'Swap interval must be a whole number of months, got {swap_interval}')

    trade_date = to_date(trade_date, calendar)
    spot_date = add_business_days(trade_date, spot_days, calendar)
    maturities = [adjust_date(x.add_to(spot_date), bad_day, calendar) for x in tenors]
    times = np.array([year_fraction(spot_date, d, curve_day_count) for d in maturities])
    if times[0] <= 0 or np.any(np.diff(times) <= 0):
        raise ValueError(f'Instrument maturities must be strictly ascending after spot {spot_date}')

    curve = YieldCurve(times, np.zeros(n))
    for i in range(n):
        if instrument_types[i] == MONEY_MARKET:
            accrual = year_fraction(spot_date, maturities[i], mm_day_count)
            zero_rate = math.log(1.0 + rates[i] * accrual) / times[i]
        else:
            payments = _swap_payments(
                spot_date, tenors[i], swap_interval, swap_day_count, curve_day_count, bad_day, calendar,
            )
            zero_rate = _solve_swap(curve, i, rates[i], payments, tenors[i])
        curve = curve.with_rate(zero_rate, i)
        logger.debug('Yield curve node %s %s: t=%.6f r=%.10f', instrument_types[i], tenors[i], times[i], zero_rate)

    offset = year_fraction(spot_date, trade_date, curve_day_count)
    return curve.with_offset(offset)


def _swap_payments(
    spot_date: Date,
    tenor: Tenor,
    interval: Tenor,
    day_count: DayCountConvention,
    curve_day_count: DayCountConvention,
    bad_day: BadDayConvention,
    calendar: CustomCalendar | None,
) -> list[tuple[float, float]]:
    """(payment time, accrual fraction) of each fixed leg payment.

    Unadjusted dates roll forward from spot, and accrual runs between
    adjusted dates.
    """
    periods, remainder = divmod(tenor.months, interval.months)
    if periods == 0 or remainder:
        raise ValueError(f'Swap tenor {tenor} is not a whole number of {interval} periods')
    payments = []
    start = spot_date
    for k in range(1, periods + 1):
        end = adjust_date(interval.add_to(spot_date, k), bad_day, calendar)
        payments.append((year_fraction(spot_date, end, curve_day_count), year_fraction(start, end, day_count)))
        start = end
    return payments


def _solve_swap(
    curve: YieldCurve,
    index: int,
    swap_rate: float,
    payments: list[tuple[float, float]],
    tenor: Tenor,
) -> float:
    """Zero rate at knot index that prices the swap at par."""

    def objective(z: float) -> float:
        trial = curve.with_rate(z, index)
        # Fixed leg plus notional at maturity, against par
        annuity = sum(yf * trial.discount_factor(t) for t, yf in payments)
        return swap_rate * annuity + trial.discount_factor(payments[-1][0]) - 1.0

    try:
        return brent(objective, *_ZERO_RATE_BOUNDS, tol=1e-14)
    except ConvergenceError as e:
        raise CalibrationError(f'Failed to bootstrap the {tenor} swap at {swap_rate}') from e


def yield_curve_from_zero_rates(
    trade_date: DateLike,
    dates: Sequence[DateLike],
    zero_rates: Sequence[float],
    day_count: DayCountConvention = DayCountConvention.ACT_365F,
) -> YieldCurve:
    """YieldCurve with continuously compounded zero rates at the given dates."""
    if len(dates) != len(zero_rates):
        raise ValueError(f'Dates and zero rates differ in length: {len(dates)} != {len(zero_rates)}')
    times = [year_fraction(trade_date, d, day_count) for d in dates]
    return YieldCurve(times, zero_rates)
