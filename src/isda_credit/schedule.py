"""
CDS premium leg schedule generation.

Generates the accrual periods of a CDS premium leg following ISDA
conventions:

- Dates are rolled from maturity backwards (initial stub) or from the
  start forwards (final stub) at the payment interval, 3M by default
- The first accrual start date is never business day adjusted
- Intermediate dates are adjusted and serve as both accrual end and
  payment date
- The final accrual end is maturity itself (plus one day when protection
  starts at the beginning of the day), while the final payment date is
  the adjusted maturity
"""

from dataclasses import dataclass

from opendate import CustomCalendar, Date

from .calendar import adjust_date
from .dates import DateLike, add_days, days_between, to_date, year_fraction
from .enums import BadDayConvention, DayCountConvention, StubConvention
from .tenor import Tenor


@dataclass(frozen=True)
class AccrualPeriod:
    """A single premium accrual period."""

    accrual_start: Date
    accrual_end: Date
    payment_date: Date


def generate_unadjusted_dates(
    start: DateLike,
    end: DateLike,
    interval: Tenor | str = '3M',
    stub: StubConvention = StubConvention.SHORT_INITIAL,
) -> list[Date]:
    """
    Unadjusted schedule dates from start to end, both included.

    Dates are generated as end - k * interval (initial stubs) or
    start + k * interval (final stubs), so month-end clamping never
    accumulates. A long stub merges the odd period into its neighbour.

    Args:
        start: Accrual start date
        end: Maturity date
        interval: Payment interval
        stub: Stub convention

    Returns
        Ascending list of dates

    Raises
        ValueError: If end is not after start
    """
    start = to_date(start)
    end = to_date(end)
    if end <= start:
        raise ValueError(f'End date {end} must be after start date {start}')
    interval = Tenor.parse(interval)

    if stub.is_initial:
        dates = []
        k = 0
        current = end
        while current > start:
            dates.append(current)
            k += 1
            current = interval.subtract_from(end, k)
        if current == start or not stub.is_long or len(dates) == 1:
            dates.append(start)
        else:
            dates[-1] = start
        return dates[::-1]

    dates = []
    k = 0
    current = start
    while current < end:
        dates.append(current)
        k += 1
        current = interval.add_to(start, k)
    if current == end or not stub.is_long or len(dates) == 1:
        dates.append(end)
    else:
        dates[-1] = end
    return dates


class PremiumLegSchedule:
    """
    The accrual periods of a CDS premium leg.

    Args:
        start: Accrual start date (not adjusted)
        end: Maturity date
        interval: Payment interval
        stub: Stub convention
        bad_day: Business day adjustment of intermediate and payment dates
        calendar: Holiday calendar, weekends only when omitted
        protect_start: If True protection starts at the beginning of the
            day, so the last period accrues through maturity inclusive
    """

    def __init__(
        self,
        start: DateLike,
        end: DateLike,
        interval: Tenor | str = '3M',
        stub: StubConvention = StubConvention.SHORT_INITIAL,
        bad_day: BadDayConvention = BadDayConvention.FOLLOWING,
        calendar: CustomCalendar | None = None,
        protect_start: bool = True,
    ):
        dates = generate_unadjusted_dates(start, end, interval, stub)
        self._periods = self._build_periods(dates, bad_day, calendar, protect_start)

    @staticmethod
    def _build_periods(dates, bad_day, calendar, protect_start) -> tuple[AccrualPeriod, ...]:
        periods = []
        acc_start = dates[0]
        for d in dates[1:-1]:
            adjusted = adjust_date(d, bad_day, calendar)
            periods.append(AccrualPeriod(acc_start, adjusted, adjusted))
            acc_start = adjusted
        last = dates[-1]
        acc_end = add_days(last, 1) if protect_start else last
        periods.append(AccrualPeriod(acc_start, acc_end, adjust_date(last, bad_day, calendar)))
        return tuple(periods)

    @classmethod
    def _from_periods(cls, periods) -> 'PremiumLegSchedule':
        schedule = object.__new__(cls)
        schedule._periods = tuple(periods)
        return schedule

    @property
    def periods(self) -> tuple[AccrualPeriod, ...]:
        return self._periods

    def __len__(self) -> int:
        return len(self._periods)

    def __iter__(self):
        return iter(self._periods)

    def __getitem__(self, index: int) -> AccrualPeriod:
        return self._periods[index]

    def truncate(self, stepin_date: DateLike) -> 'PremiumLegSchedule':
        """Drop the periods whose accrual ends on or before the step-in date."""
        stepin = to_date(stepin_date)
        return self._from_periods(p for p in self._periods if p.accrual_end > stepin)

    def _current_period(self, stepin: Date) -> AccrualPeriod | None:
        for p in self._periods:
            if p.accrual_start < stepin < p.accrual_end:
                return p
        return None

    def accrued_days(self, stepin_date: DateLike) -> int:
        """Days accrued in the period containing the step-in date."""
        stepin = to_date(stepin_date)
        period = self._current_period(stepin)
        return 0 if period is None else days_between(period.accrual_start, stepin)

    def accrued(
        self,
        stepin_date: DateLike,
        day_count: DayCountConvention = DayCountConvention.ACT_360,
    ) -> float:
        """Year fraction accrued from the start of the current period to step-in."""
        stepin = to_date(stepin_date)
        period = self._current_period(stepin)
        return 0.0 if period is None else year_fraction(period.accrual_start, stepin, day_count)
