"""
Tests for CDS premium schedules, CdsAnalytic and the CDS factory.
"""

import pytest
from opendate import Date

from isda_credit import CdsAnalytic, CdsAnalyticFactory, DayCountConvention, PremiumLegSchedule, StubConvention
from isda_credit.schedule import generate_unadjusted_dates


class TestUnadjustedDates:
    """Tests for date rolling."""

    def test_short_initial_stub(self):
        dates = generate_unadjusted_dates(Date(2013, 2, 3), Date(2014, 3, 20))
        assert dates[0] == Date(2013, 2, 3)
        assert dates[1] == Date(2013, 3, 20)
        assert dates[-1] == Date(2014, 3, 20)
        assert len(dates) == 6

    def test_long_initial_stub(self):
        dates = generate_unadjusted_dates(Date(2013, 2, 3), Date(2014, 3, 20), stub=StubConvention.LONG_INITIAL)
        assert dates[:2] == [Date(2013, 2, 3), Date(2013, 6, 20)]
        assert len(dates) == 5

    def test_short_final_stub(self):
        dates = generate_unadjusted_dates(Date(2013, 3, 20), Date(2013, 10, 1), stub=StubConvention.SHORT_FINAL)
        assert dates == [Date(2013, 3, 20), Date(2013, 6, 20), Date(2013, 9, 20), Date(2013, 10, 1)]

    def test_long_final_stub(self):
        dates = generate_unadjusted_dates(Date(2013, 3, 20), Date(2013, 10, 1), stub=StubConvention.LONG_FINAL)
        assert dates == [Date(2013, 3, 20), Date(2013, 6, 20), Date(2013, 10, 1)]

    def test_regular_schedule_has_no_stub(self):
        dates = generate_unadjusted_dates(Date(2020, 3, 20), Date(2025, 3, 20))
        assert len(dates) == 21

    def test_end_before_start(self):
        with pytest.raises(ValueError):
            generate_unadjusted_dates(Date(2020, 3, 20), Date(2020, 3, 20))


class TestPremiumLegSchedule:
    """Tests for accrual periods."""

    @pytest.fixture
    def schedule(self):
        return PremiumLegSchedule(Date(2013, 3, 20), Date(2014, 3, 20))

    def test_first_start_not_adjusted(self):
        # 20 Oct 2013 is a Sunday
        schedule = PremiumLegSchedule(Date(2013, 10, 20), Date(2014, 3, 20))
        assert schedule[0].accrual_start == Date(2013, 10, 20)

    def test_periods_are_contiguous(self, schedule):
        assert schedule[2].accrual_end == Date(2013, 12, 20)
        assert schedule[1].accrual_end == Date(2013, 9, 20)
        assert schedule[2].accrual_start == Date(2013, 9, 20)

    def test_last_period_includes_maturity(self, schedule):
        last = schedule[-1]
        assert last.accrual_end == Date(2014, 3, 21)
        assert last.payment_date == Date(2014, 3, 20)

    def test_last_period_without_protect_start(self):
        schedule = PremiumLegSchedule(Date(2013, 3, 20), Date(2014, 3, 20), protect_start=False)
        assert schedule[-1].accrual_end == Date(2014, 3, 20)

    def test_weekend_payment_date(self):
        # 20 Jul 2013 is a Saturday
        schedule = PremiumLegSchedule(Date(2013, 4, 20), Date(2013, 10, 20), interval='3M')
        assert schedule[0].accrual_end == Date(2013, 7, 22)
        assert schedule[1].accrual_start == Date(2013, 7, 22)
        assert schedule[-1].payment_date == Date(2013, 10, 21)

    def test_truncate(self, schedule):
        truncated = schedule.truncate(Date(2013, 7, 1))
        assert len(truncated) == 3
        assert truncated[0].accrual_start == Date(2013, 6, 20)
        assert len(schedule) == 4

    def test_accrued(self, schedule):
        stepin = Date(2013, 7, 1)
        assert schedule.accrued_days(stepin) == 11
        assert abs(schedule.accrued(stepin) - 11 / 360) < 1e-15
        assert abs(schedule.accrued(stepin, DayCountConvention.ACT_365F) - 11 / 365) < 1e-15
        assert schedule.truncate(stepin).accrued(stepin) == schedule.accrued(stepin)

    def test_no_accrued_on_period_boundary(self, schedule):
        assert schedule.accrued_days(Date(2013, 6, 20)) == 0
        assert schedule.accrued(Date(2013, 6, 20)) == 0.0
        assert schedule.accrued(Date(2013, 3, 1)) == 0.0

    def test_iteration(self, schedule):
        periods = list(schedule)
        assert len(periods) == len(schedule.periods) == 4
        for prev, nxt in zip(periods, periods[1:]):
            assert prev.accrual_end == nxt.accrual_start


class TestCdsAnalytic:
    """Tests for the analytic CDS descriptor."""

    def test_times(self, cds1):
        assert cds1.effective_protection_start == 0.0
        assert abs(cds1.protection_end - 1794 / 365) < 1e-15
        assert abs(cds1.valuation_time - 3 / 365) < 1e-15
        assert abs(cds1.acc_start + 77 / 365) < 1e-15

    def test_seasoned_cds_accrued(self, cds1):
        """Step-in on 22 Apr, 33 days into the period starting 20 Mar."""
        assert cds1.accrued_days == 33
        assert abs(cds1.accrued_year_fraction - 33 / 360) < 1e-15
        assert abs(cds1.accrued_premium(0.01) - 0.01 * 33 / 360) < 1e-17

    def test_coupons(self, cds1):
        assert cds1.num_payments == 20
        first = cds1.coupon(0)
        assert abs(first.payment_time - 60 / 365) < 1e-15
        assert abs(first.year_frac - 92 / 360) < 1e-15
        assert abs(first.yf_ratio - 365 / 360) < 1e-14
        last = cds1.coupons[-1]
        assert abs(last.effective_end - cds1.protection_end) < 1e-15

    def test_not_expired(self, cds1):
        assert not cds1.is_expired
        assert abs(cds1.lgd - 0.6) < 1e-15

    def test_expired(self):
        cds = CdsAnalytic(
            Date(2019, 1, 7), Date(2019, 1, 8), Date(2019, 1, 10), Date(2018, 3, 20), Date(2018, 12, 20),
        )
        assert cds.is_expired
        assert cds.num_payments == 0

    def test_invalid_inputs(self):
        with pytest.raises(ValueError):
            CdsAnalytic(Date(2013, 4, 21), Date(2013, 4, 20), Date(2013, 4, 24), Date(2013, 3, 20), Date(2018, 3, 20))
        with pytest.raises(ValueError):
            CdsAnalytic(Date(2013, 4, 21), Date(2013, 4, 22), Date(2013, 4, 24), Date(2018, 3, 20), Date(2013, 3, 20))
        with pytest.raises(ValueError):
            CdsAnalytic(
                Date(2013, 4, 21), Date(2013, 4, 22), Date(2013, 4, 24), Date(2013, 3, 20), Date(2018, 3, 20),
                recovery_rate=1.5,
            )

    def test_with_recovery_rate(self, cds1):
        other = cds1.with_recovery_rate(0.25)
        assert other.recovery_rate == 0.25
        assert cds1.recovery_rate == 0.4
        assert other.coupons == cds1.coupons

    def test_with_offset(self, cds1):
        offset = 0.5
        moved = cds1.with_offset(offset)
        assert abs(moved.protection_end - (cds1.protection_end - offset)) < 1e-15
        assert abs(moved.coupon(3).payment_time - (cds1.coupon(3).payment_time - offset)) < 1e-15
        assert moved.accrued_year_fraction == cds1.accrued_year_fraction


class TestCdsAnalyticFactory:
    """Tests for the CDS factory."""

    def test_standard_dates(self, cds1):
        assert cds1.stepin_date == Date(2013, 4, 22)
        assert cds1.cash_settle_date == Date(2013, 4, 24)
        assert cds1.accrual_start_date == Date(2013, 2, 3)

    def test_make_cds_list(self, market_cds):
        assert len(market_cds) == 7
        assert all(isinstance(c, CdsAnalytic) for c in market_cds)
        assert market_cds[0].num_payments == 1

    def test_make_imm_cds(self, imm_pillars):
        assert [c.maturity_date for c in imm_pillars] == [
            Date(2011, 12, 20), Date(2012, 6, 20), Date(2014, 6, 20),
            Date(2016, 6, 20), Date(2018, 6, 20), Date(2021, 6, 20),
        ]
        # 20 Mar 2011 is a Sunday
        assert imm_pillars[0].accrual_start_date == Date(2011, 3, 21)

    def test_make_cds_from_tenor(self, factory):
        cds = factory.make_cds_from_tenor(Date(2013, 4, 21), Date(2013, 3, 20), '5Y')
        assert cds.accrual_start_date == Date(2013, 3, 20)
        assert cds.maturity_date == Date(2018, 3, 20)
        cdss = factory.make_cds_from_tenor(Date(2013, 4, 21), Date(2013, 3, 20), ['1Y', '3Y'])
        assert [c.maturity_date for c in cdss] == [Date(2014, 3, 20), Date(2016, 3, 20)]

    def test_make_imm_cds_unadjusted_start(self, factory):
        cds = factory.make_imm_cds(Date(2011, 6, 13), '5Y', make_eff_bus_day=False)
        assert cds.accrual_start_date == Date(2011, 3, 20)

    def test_make_cdx(self, factory):
        cds = factory.make_cdx(Date(2013, 5, 1), '5Y')
        assert cds.maturity_date == Date(2018, 6, 20)

    def test_forward_starting(self, factory):
        cds = factory.make_forward_starting_imm_cds(Date(2013, 4, 21), Date(2013, 7, 1), '5Y')
        assert cds.trade_date == Date(2013, 4, 21)
        assert cds.stepin_date == Date(2013, 7, 2)
        assert cds.maturity_date == Date(2018, 9, 20)
        assert cds.effective_protection_start > 0.0

    def test_forward_start_before_trade(self, factory):
        with pytest.raises(ValueError):
            factory.make_forward_starting_cds(Date(2013, 4, 21), Date(2013, 4, 1), Date(2013, 3, 20), Date(2018, 3, 20))

    def test_with_builders(self, factory):
        other = factory.with_recovery_rate(0.25).with_cash_settle_days(0)
        assert other.recovery_rate == 0.25
        assert factory.recovery_rate == 0.4
        cds = other.make_cds(Date(2013, 4, 21), Date(2013, 3, 20), Date(2018, 3, 20))
        assert cds.valuation_time == 0.0
        assert cds.recovery_rate == 0.25

    def test_invalid_recovery(self):
        with pytest.raises(ValueError):
            CdsAnalyticFactory(recovery_rate=-0.1)
