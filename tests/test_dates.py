"""
Tests for date utilities, business day adjustment and tenors.
"""

from datetime import date

import pytest
from opendate import Date

from isda_credit import BadDayConvention, DayCountConvention, Tenor
from isda_credit.calendar import add_business_days, adjust_date, is_business_day
from isda_credit.dates import add_months, days_between, make_calendar, to_date, year_fraction


class TestToDate:
    """Tests for date conversion."""

    def test_from_date(self):
        assert to_date(date(2020, 3, 15)) == Date(2020, 3, 15)

    def test_from_iso_string(self):
        d = to_date('2020-03-15')
        assert (d.year, d.month, d.day) == (2020, 3, 15)

    def test_invalid_type(self):
        with pytest.raises(TypeError):
            to_date(20200315)


class TestYearFraction:
    """Tests for day count conventions."""

    def test_act_360(self):
        assert abs(year_fraction(Date(2020, 1, 1), Date(2020, 4, 1), DayCountConvention.ACT_360) - 91 / 360) < 1e-15

    def test_act_365f(self):
        yf = year_fraction(Date(2020, 1, 1), Date(2021, 1, 1), DayCountConvention.ACT_365F)
        assert abs(yf - 366 / 365) < 1e-15

    def test_thirty_360(self):
        yf = year_fraction(Date(2020, 1, 15), Date(2020, 4, 15), DayCountConvention.THIRTY_360)
        assert abs(yf - 90 / 360) < 1e-15

    def test_thirty_360_month_end(self):
        """The 31st counts as the 30th."""
        yf = year_fraction(Date(2013, 5, 31), Date(2013, 7, 31), DayCountConvention.THIRTY_360)
        assert abs(yf - 60 / 360) < 1e-15

    def test_signed(self):
        yf = year_fraction(Date(2013, 4, 21), Date(2013, 2, 3), DayCountConvention.ACT_365F)
        assert abs(yf + 77 / 365) < 1e-15
        assert days_between(Date(2013, 4, 21), Date(2013, 2, 3)) == -77

    def test_from_string(self):
        assert DayCountConvention.from_string('ACT/365F') is DayCountConvention.ACT_365F
        with pytest.raises(ValueError):
            DayCountConvention.from_string('ACT/999')


class TestAdjustDate:
    """Tests for bad day conventions."""

    def test_adjust_none(self):
        assert adjust_date(Date(2020, 1, 18), BadDayConvention.NONE) == Date(2020, 1, 18)

    def test_adjust_following(self):
        assert adjust_date(Date(2020, 1, 18), BadDayConvention.FOLLOWING) == Date(2020, 1, 20)

    def test_adjust_preceding(self):
        assert adjust_date(Date(2020, 1, 18), BadDayConvention.PRECEDING) == Date(2020, 1, 17)

    def test_adjust_business_day_unchanged(self):
        assert adjust_date(Date(2020, 1, 31), BadDayConvention.MODIFIED_FOLLOWING) == Date(2020, 1, 31)

    def test_adjust_modified_following_crosses_month(self):
        """29 Feb 2020 is a Saturday, so following would leave the month."""
        assert adjust_date(Date(2020, 2, 29), BadDayConvention.MODIFIED_FOLLOWING) == Date(2020, 2, 28)

    def test_adjust_modified_preceding_crosses_month(self):
        """1 Mar 2020 is a Sunday."""
        assert adjust_date(Date(2020, 3, 1), BadDayConvention.MODIFIED_PRECEDING) == Date(2020, 3, 2)

    def test_holiday_calendar(self):
        cal = make_calendar('TEST_XMAS', holidays=[Date(2020, 12, 25)])
        assert not is_business_day(Date(2020, 12, 25), cal)
        assert adjust_date(Date(2020, 12, 25), BadDayConvention.FOLLOWING, cal) == Date(2020, 12, 28)


class TestAddBusinessDays:
    """Tests for business day arithmetic."""

    def test_add_over_weekend(self):
        # Friday plus one business day is Monday
        assert add_business_days(Date(2020, 1, 17), 1) == Date(2020, 1, 20)

    def test_add_from_sunday(self):
        assert add_business_days(Date(2013, 4, 21), 3) == Date(2013, 4, 24)

    def test_settlement_from_sunday_trade(self):
        assert add_business_days(Date(2011, 6, 19), 3) == Date(2011, 6, 22)

    def test_skips_holidays(self):
        cal = make_calendar('TEST_JULY4', holidays=[Date(2011, 7, 4)])
        assert add_business_days(Date(2011, 7, 1), 1, cal) == Date(2011, 7, 5)
        assert add_business_days(Date(2011, 7, 1), 1) == Date(2011, 7, 4)

    def test_add_zero(self):
        assert add_business_days(Date(2020, 1, 18), 0) == Date(2020, 1, 18)

    def test_negative_raises(self):
        with pytest.raises(ValueError):
            add_business_days(Date(2020, 1, 15), -1)


class TestTenor:
    """Tests for tenor parsing and arithmetic."""

    @pytest.mark.parametrize(('text', 'value', 'unit'), [
        ('1D', 1, 'D'), ('2W', 2, 'W'), ('6M', 6, 'M'), ('10Y', 10, 'Y'), (' 3m ', 3, 'M'),
    ])
    def test_parse(self, text, value, unit):
        tenor = Tenor.parse(text)
        assert (tenor.value, tenor.unit) == (value, unit)

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            Tenor.parse('M6')
        with pytest.raises(ValueError):
            Tenor(3, 'Q')

    def test_str_round_trip(self):
        assert str(Tenor.parse('5Y')) == '5Y'

    def test_months_and_years(self):
        assert Tenor.parse('2Y').months == 24
        assert Tenor.parse('18M').years == 1.5
        assert Tenor.parse('1W').months == 0

    def test_add_to_clamps_month_end(self):
        assert Tenor.parse('1M').add_to(Date(2020, 1, 31)) == Date(2020, 2, 29)
        assert add_months(Date(2020, 3, 31), -1) == Date(2020, 2, 29)

    def test_subtract_from(self):
        assert Tenor.parse('3M').subtract_from(Date(2018, 6, 20)) == Date(2018, 3, 20)

    def test_add_multiple(self):
        assert Tenor.parse('6M').add_to(Date(2013, 5, 31), 3) == Date(2014, 11, 30)
