"""
Analytic CDS descriptor.

CdsAnalytic turns the dates and conventions of a CDS into the year
fractions the analytic pricer works with. All times are signed year
fractions from the trade date under the curve day count (ACT/365F by
default), so dates before the trade date map to negative times.
"""

import copy
from dataclasses import dataclass, replace

from opendate import CustomCalendar, Date

from .dates import DateLike, add_days, to_date, year_fraction
from .enums import BadDayConvention, DayCountConvention, StubConvention
from .schedule import AccrualPeriod, PremiumLegSchedule
from .tenor import Tenor


@dataclass(frozen=True)
class CdsCoupon:
    """
    One premium payment expressed in curve time.

    Attributes
        payment_time: Time of the payment
        effective_start: Time from which default triggers accrual on
            default, one day early when protection starts at start of day
        effective_end: Time at which the survival probability for this
            coupon is observed
        year_frac: Accrual year fraction (accrual day count)
        yf_ratio: year_frac divided by the curve year fraction of the period
    """

    payment_time: float
    effective_start: float
    effective_end: float
    year_frac: float
    yf_ratio: float

    @classmethod
    def from_period(
        cls,
        trade_date: Date,
        period: AccrualPeriod,
        protect_start: bool = True,
        accrual_day_count: DayCountConvention = DayCountConvention.ACT_360,
        curve_day_count: DayCountConvention = DayCountConvention.ACT_365F,
    ) -> 'CdsCoupon':
        obs_offset = -1 if protect_start else 0
        eff_start = add_days(period.accrual_start, obs_offset)
        eff_end = add_days(period.accrual_end, obs_offset)
        year_frac = year_fraction(period.accrual_start, period.accrual_end, accrual_day_count)
        curve_frac = year_fraction(period.accrual_start, period.accrual_end, curve_day_count)
        return cls(
            payment_time=year_fraction(trade_date, period.payment_date, curve_day_count),
            effective_start=year_fraction(trade_date, eff_start, curve_day_count),
            effective_end=year_fraction(trade_date, eff_end, curve_day_count),
            year_frac=year_frac,
            yf_ratio=year_frac / curve_frac,
        )

    def with_offset(self, offset: float) -> 'CdsCoupon':
        """The same coupon with the time origin moved forward by offset."""
        return replace(
            self,
            payment_time=self.payment_time - offset,
            effective_start=self.effective_start - offset,
            effective_end=self.effective_end - offset,
        )


class CdsAnalytic:
    """
    Immutable description of a single CDS for analytic pricing.

    Args:
        trade_date: Trade date, time zero of the curves
        stepin_date: Protection and accrual become effective (usually T+1)
        cash_settle_date: Date upfront payments settle, the valuation point
        accrual_start_date: Start of the first accrual period, usually the
            previous IMM date; may be before the trade date
        maturity_date: End of protection
        pay_acc_on_default: Pay the premium accrued up to a default
        payment_interval: Coupon interval, 3M by default
        stub: Stub convention of the premium schedule
        protect_start: Protection starts at the beginning of the day
        recovery_rate: Recovery rate in [0, 1]
        bad_day: Business day adjustment of payment dates
        calendar: Holiday calendar, weekends only when omitted
        accrual_day_count: Day count of the premium accrual
        curve_day_count: Day count converting dates to curve times

    Raises
        ValueError: On dates out of order or a recovery rate outside [0, 1]
    """

    def __init__(
        self,
        trade_date: DateLike,
        stepin_date: DateLike,
        cash_settle_date: DateLike,
        accrual_start_date: DateLike,
        maturity_date: DateLike,
        pay_acc_on_default: bool = True,
        payment_interval: Tenor | str = '3M',
        stub: StubConvention = StubConvention.SHORT_INITIAL,
        protect_start: bool = True,
        recovery_rate: float = 0.4,
        bad_day: BadDayConvention = BadDayConvention.FOLLOWING,
        calendar: CustomCalendar | None = None,
        accrual_day_count: DayCountConvention = DayCountConvention.ACT_360,
        curve_day_count: DayCountConvention = DayCountConvention.ACT_365F,
    ):
        trade = to_date(trade_date)
        stepin = to_date(stepin_date)
        cash_settle = to_date(cash_settle_date)
        acc_start = to_date(accrual_start_date)
        maturity = to_date(maturity_date)

        if stepin < trade:
            raise ValueError(f'Step-in date {stepin} is before trade date {trade}')
        if cash_settle < trade:
            raise ValueError(f'Cash settle date {cash_settle} is before trade date {trade}')
        if maturity <= acc_start:
            raise ValueError(f'Maturity {maturity} must be after accrual start {acc_start}')
        if not 0.0 <= recovery_rate <= 1.0:
            raise ValueError(f'Recovery rate must be in [0, 1], got {recovery_rate}')

        self.trade_date = trade
        self.stepin_date = stepin
        self.cash_settle_date = cash_settle
        self.accrual_start_date = acc_start
        self.maturity_date = maturity
        self.pay_acc_on_default = pay_acc_on_default
        self.protect_start = protect_start
        self.recovery_rate = recovery_rate
        self.curve_day_count = curve_day_count

        def to_time(d: Date) -> float:
            return year_fraction(trade, d, curve_day_count)

        effective_start = max(stepin, acc_start)
        if protect_start:
            effective_start = add_days(effective_start, -1)

        self._acc_start = to_time(acc_start)
        self._effective_protection_start = to_time(effective_start)
        self._protection_end = to_time(maturity)
        self._valuation_time = to_time(cash_settle)

        schedule = PremiumLegSchedule(
            acc_start, maturity, payment_interval, stub, bad_day, calendar, protect_start,
        ).truncate(stepin)
        self._coupons = tuple(
            CdsCoupon.from_period(trade, p, protect_start, accrual_day_count, curve_day_count)
            for p in schedule
        )

        self._accrued_days = schedule.accrued_days(stepin)
        self._accrued = schedule.accrued(stepin, accrual_day_count)

    # Times

    @property
    def acc_start(self) -> float:
        """Accrual start time, negative for a seasoned CDS."""
        return self._acc_start

    @property
    def effective_protection_start(self) -> float:
        return self._effective_protection_start

    @property
    def protection_end(self) -> float:
        return self._protection_end

    @property
    def valuation_time(self) -> float:
        """Cash settle time, where upfront amounts are valued."""
        return self._valuation_time

    @property
    def lgd(self) -> float:
        """Loss given default, 1 - recovery."""
        return 1.0 - self.recovery_rate

    # Coupons

    @property
    def coupons(self) -> tuple[CdsCoupon, ...]:
        return self._coupons

    @property
    def num_payments(self) -> int:
        return len(self._coupons)

    def coupon(self, index: int) -> CdsCoupon:
        return self._coupons[index]

    @property
    def accrued_year_fraction(self) -> float:
        """Year fraction accrued from the current period start to step-in."""
        return self._accrued

    @property
    def accrued_days(self) -> int:
        return self._accrued_days

    def accrued_premium(self, fractional_coupon: float) -> float:
        """Accrued premium per unit notional for a coupon rate."""
        return self._accrued * fractional_coupon

    @property
    def is_expired(self) -> bool:
        """No protection or premium remains."""
        return self._protection_end <= 0.0 or not self._coupons

    # Copies

    def with_recovery_rate(self, recovery_rate: float) -> 'CdsAnalytic':
        if not 0.0 <= recovery_rate <= 1.0:
            raise ValueError(f'Recovery rate must be in [0, 1], got {recovery_rate}')
        cds = copy.copy(self)
        cds.recovery_rate = recovery_rate
        return cds

    def with_offset(self, offset: float) -> 'CdsAnalytic':
        """
        The same CDS with the time origin moved forward by offset years.

        Used to value a CDS on a curve whose time zero is later than the
        trade date, e.g. a forward curve.
        """
        cds = copy.copy(self)
        cds._acc_start = self._acc_start - offset
        cds._effective_protection_start = self._effective_protection_start - offset
        cds._protection_end = self._protection_end - offset
        cds._valuation_time = self._valuation_time - offset
        cds._coupons = tuple(c.with_offset(offset) for c in self._coupons)
        return cds

    def __repr__(self) -> str:
        return (
            f'CdsAnalytic(trade={self.trade_date}, stepin={self.stepin_date}, '
            f'settle={self.cash_settle_date}, start={self.accrual_start_date}, '
            f'maturity={self.maturity_date}, recovery={self.recovery_rate})'
        )
