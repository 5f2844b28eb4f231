"""
Factory for standard CDS descriptors.

Holds the market conventions shared by a set of CDSs (step-in lag, cash
settlement lag, payment interval, day counts, recovery rate...) and builds
CdsAnalytic instances for explicit dates, for standard IMM-dated single
names and for CDX-style index maturities. Conventions are changed with the
with_* methods, which return a new factory.
"""

from collections.abc import Sequence
from dataclasses import dataclass, replace

from opendate import CustomCalendar

from .calendar import add_business_days, adjust_date
from .cds import CdsAnalytic
from .dates import DateLike, add_days, to_date
from .enums import BadDayConvention, DayCountConvention, StubConvention
from .imm import next_imm_date, next_index_roll_date, previous_imm_date
from .tenor import Tenor

_THREE_MONTHS = Tenor.of_months(3)


@dataclass(frozen=True)
class CdsAnalyticFactory:
    """
    Builder of CdsAnalytic instances sharing the same conventions.

    The defaults are the ISDA standard model conventions.
    """

    stepin_days: int = 1
    cash_settle_days: int = 3
    pay_acc_on_default: bool = True
    payment_interval: Tenor = _THREE_MONTHS
    stub: StubConvention = StubConvention.SHORT_INITIAL
    protect_start: bool = True
    recovery_rate: float = 0.4
    bad_day: BadDayConvention = BadDayConvention.FOLLOWING
    calendar: CustomCalendar | None = None
    accrual_day_count: DayCountConvention = DayCountConvention.ACT_360
    curve_day_count: DayCountConvention = DayCountConvention.ACT_365F

    def __post_init__(self):
        if self.stepin_days < 0 or self.cash_settle_days < 0:
            raise ValueError('Step-in and cash settle lags must be non-negative')
        if not 0.0 <= self.recovery_rate <= 1.0:
            raise ValueError(f'Recovery rate must be in [0, 1], got {self.recovery_rate}')
        object.__setattr__(self, 'payment_interval', Tenor.parse(self.payment_interval))

    # Conventions

    def with_recovery_rate(self, recovery_rate: float) -> 'CdsAnalyticFactory':
        return replace(self, recovery_rate=recovery_rate)

    def with_stepin_days(self, days: int) -> 'CdsAnalyticFactory':
        return replace(self, stepin_days=days)

    def with_cash_settle_days(self, days: int) -> 'CdsAnalyticFactory':
        return replace(self, cash_settle_days=days)

    def with_pay_acc_on_default(self, pay: bool) -> 'CdsAnalyticFactory':
        return replace(self, pay_acc_on_default=pay)

    def with_payment_interval(self, interval: Tenor | str) -> 'CdsAnalyticFactory':
        return replace(self, payment_interval=Tenor.parse(interval))

    def with_stub(self, stub: StubConvention) -> 'CdsAnalyticFactory':
        return replace(self, stub=stub)

    def with_protect_start(self, protect_start: bool) -> 'CdsAnalyticFactory':
        return replace(self, protect_start=protect_start)

    def with_bad_day(self, bad_day: BadDayConvention) -> 'CdsAnalyticFactory':
        return replace(self, bad_day=bad_day)

    def with_calendar(self, calendar: CustomCalendar | None) -> 'CdsAnalyticFactory':
        return replace(self, calendar=calendar)

    def with_accrual_day_count(self, day_count: DayCountConvention) -> 'CdsAnalyticFactory':
        return replace(self, accrual_day_count=day_count)

    def with_curve_day_count(self, day_count: DayCountConvention) -> 'CdsAnalyticFactory':
        return replace(self, curve_day_count=day_count)

    # Builders

    def _build(self, trade, stepin, cash_settle, accrual_start, maturity) -> CdsAnalytic:
        return CdsAnalytic(
            trade_date=trade,
            stepin_date=stepin,
            cash_settle_date=cash_settle,
            accrual_start_date=accrual_start,
            maturity_date=maturity,
            pay_acc_on_default=self.pay_acc_on_default,
            payment_interval=self.payment_interval,
            stub=self.stub,
            protect_start=self.protect_start,
            recovery_rate=self.recovery_rate,
            bad_day=self.bad_day,
            calendar=self.calendar,
            accrual_day_count=self.accrual_day_count,
            curve_day_count=self.curve_day_count,
        )

    def make_cds(
        self,
        trade_date: DateLike,
        accrual_start_date: DateLike,
        maturity: DateLike | Sequence[DateLike],
    ) -> CdsAnalytic | list[CdsAnalytic]:
        """
        CDS with explicit accrual start and maturity.

        Step-in is trade date plus stepin_days calendar days and cash
        settlement is cash_settle_days business days after the trade date.
        A sequence of maturities returns a list.
        """
        trade = to_date(trade_date)
        stepin = add_days(trade, self.stepin_days)
        cash_settle = add_business_days(trade, self.cash_settle_days, self.calendar)
        if _is_sequence(maturity):
            return [self._build(trade, stepin, cash_settle, accrual_start_date, m) for m in maturity]
        return self._build(trade, stepin, cash_settle, accrual_start_date, maturity)

    def make_cds_from_tenor(
        self,
        trade_date: DateLike,
        accrual_start_date: DateLike,
        tenor: Tenor | str | Sequence[Tenor | str],
    ) -> CdsAnalytic | list[CdsAnalytic]:
        """CDS maturing the tenor after the (unadjusted) accrual start date."""
        start = to_date(accrual_start_date)
        return self.make_cds(trade_date, start, _map_tenors(tenor, lambda t: t.add_to(start)))

    def _imm_accrual_start(self, d, make_eff_bus_day: bool):
        start = previous_imm_date(d)
        return adjust_date(start, self.bad_day, self.calendar) if make_eff_bus_day else start

    def make_imm_cds(
        self,
        trade_date: DateLike,
        tenor: Tenor | str | Sequence[Tenor | str],
        make_eff_bus_day: bool = True,
    ) -> CdsAnalytic | list[CdsAnalytic]:
        """
        Standard IMM-dated CDS.

        Accrual starts on the IMM date before the trade date (business day
        adjusted when make_eff_bus_day) and maturity is the next IMM date
        after the trade date plus the tenor.
        """
        trade = to_date(trade_date)
        start = self._imm_accrual_start(trade, make_eff_bus_day)
        next_imm = next_imm_date(trade)
        return self.make_cds(trade, start, _map_tenors(tenor, lambda t: t.add_to(next_imm)))

    def make_cdx(
        self,
        trade_date: DateLike,
        tenor: Tenor | str | Sequence[Tenor | str],
    ) -> CdsAnalytic | list[CdsAnalytic]:
        """
        CDX-style index CDS.

        Maturity is the next index roll date plus the tenor less three
        months, e.g. a 5Y index traded in May 2013 matures 20 Jun 2018.
        """
        trade = to_date(trade_date)
        start = self._imm_accrual_start(trade, True)
        roll = next_index_roll_date(trade)
        return self.make_cds(
            trade, start, _map_tenors(tenor, lambda t: _THREE_MONTHS.subtract_from(t.add_to(roll))),
        )

    def make_forward_starting_cds(
        self,
        trade_date: DateLike,
        forward_start_date: DateLike,
        accrual_start_date: DateLike,
        maturity: DateLike | Sequence[DateLike],
    ) -> CdsAnalytic | list[CdsAnalytic]:
        """
        CDS entered into at a future date but valued on trade_date curves.

        Step-in and cash settlement are measured from the forward start.

        Raises
            ValueError: If the forward start is before the trade date
        """
        trade = to_date(trade_date)
        forward_start = to_date(forward_start_date)
        if forward_start < trade:
            raise ValueError(f'Forward start {forward_start} is before trade date {trade}')
        stepin = add_days(forward_start, self.stepin_days)
        cash_settle = add_business_days(forward_start, self.cash_settle_days, self.calendar)
        if _is_sequence(maturity):
            return [self._build(trade, stepin, cash_settle, accrual_start_date, m) for m in maturity]
        return self._build(trade, stepin, cash_settle, accrual_start_date, maturity)

    def make_forward_starting_imm_cds(
        self,
        trade_date: DateLike,
        forward_start_date: DateLike,
        tenor: Tenor | str | Sequence[Tenor | str],
    ) -> CdsAnalytic | list[CdsAnalytic]:
        """IMM-dated CDS whose dates roll from the forward start date."""
        forward_start = to_date(forward_start_date)
        start = self._imm_accrual_start(forward_start, True)
        next_imm = next_imm_date(forward_start)
        return self.make_forward_starting_cds(
            trade_date, forward_start, start, _map_tenors(tenor, lambda t: t.add_to(next_imm)),
        )

    def make_forward_starting_cdx(
        self,
        trade_date: DateLike,
        forward_start_date: DateLike,
        tenor: Tenor | str | Sequence[Tenor | str],
    ) -> CdsAnalytic | list[CdsAnalytic]:
        """CDX-style index CDS whose dates roll from the forward start date."""
        forward_start = to_date(forward_start_date)
        start = self._imm_accrual_start(forward_start, True)
        roll = next_index_roll_date(forward_start)
        return self.make_forward_starting_cds(
            trade_date, forward_start, start,
            _map_tenors(tenor, lambda t: _THREE_MONTHS.subtract_from(t.add_to(roll))),
        )


def _is_sequence(value) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, str)


def _map_tenors(tenor, fn):
    if _is_sequence(tenor):
        return [fn(Tenor.parse(t)) for t in tenor]
    return fn(Tenor.parse(tenor))


# Factory with the ISDA standard conventions
STANDARD_FACTORY = CdsAnalyticFactory()
