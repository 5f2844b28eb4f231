"""
Tests for yield curve bootstrapping.
"""

import math

import numpy as np
import pytest
from opendate import Date

from isda_credit import DayCountConvention, Tenor, bootstrap_yield_curve, year_fraction
from isda_credit import yield_curve_from_zero_rates
from isda_credit.enums import BadDayConvention
from isda_credit.zero_curve import _swap_payments

SPOT = Date(2013, 5, 31)

TENORS = [
    '1M', '2M', '3M', '6M', '9M', '12M',
    '2Y', '3Y', '4Y', '5Y', '6Y', '7Y', '8Y', '9Y', '10Y', '12Y', '15Y', '20Y', '25Y', '30Y',
]

RATES = [
    0.00340055550701297, 0.00636929056400781, 0.0102617798438113, 0.0135851258907251,
    0.0162809551414651, 0.020583125112332, 0.0227369218210212, 0.0251978805237614,
    0.0273223815467694, 0.0310882447627048, 0.0358397743454067, 0.036047665095421,
    0.0415916567616181, 0.044066373237682, 0.046708518178509, 0.0491196954851753,
    0.0529297239911766, 0.0562025436376854, 0.0589772202773522, 0.0607471217692999,
]

# Money market knots (time, zero rate) from the ISDA spreadsheet
MM_KNOTS = [
    (0.0767123287671233, 0.00344732957665484),
    (0.167123287671233, 0.00645427070262317),
    (0.249315068493151, 0.010390833731528),
    (0.498630136986301, 0.0137267241507424),
    (0.747945205479452, 0.016406009142171),
    (0.997260273972603, 0.0206548075787697),
]


@pytest.fixture(scope='module')
def spot_curve():
    return bootstrap_yield_curve(SPOT, RATES, TENORS, spot_days=0)


class TestMoneyMarket:
    """Money market knots."""

    def test_knot_count(self, spot_curve):
        assert spot_curve.num_knots == len(TENORS)

    @pytest.mark.parametrize(('index', 'knot'), list(enumerate(MM_KNOTS)))
    def test_knots(self, spot_curve, index, knot):
        t, rate = knot
        assert abs(spot_curve.get_time(index) - t) < 1e-13
        assert abs(spot_curve.zero_rate(t) - rate) < 1e-10

    def test_simple_interest(self, spot_curve):
        # 3M matures 30 Aug 2013 as 31 Aug is a Saturday
        days = 91
        expected = math.log(1 + RATES[2] * days / 360) / (days / 365)
        assert abs(spot_curve.get_zero_rate_at_index(2) - expected) < 1e-15


class TestSwaps:
    """Swap knots."""

    def test_payment_schedule(self):
        payments = _swap_payments(
            SPOT, Tenor.parse('2Y'), Tenor.parse('6M'), DayCountConvention.THIRTY_360,
            DayCountConvention.ACT_365F, BadDayConvention.MODIFIED_FOLLOWING, None,
        )
        ends = [Date(2013, 11, 29), Date(2014, 5, 30), Date(2014, 11, 28), Date(2015, 5, 29)]
        starts = [SPOT] + ends[:-1]
        assert len(payments) == 4
        for (t, yf), start, end in zip(payments, starts, ends):
            assert abs(t - year_fraction(SPOT, end, DayCountConvention.ACT_365F)) < 1e-15
            assert abs(yf - year_fraction(start, end, DayCountConvention.THIRTY_360)) < 1e-15

    @pytest.mark.parametrize('index', range(6, len(TENORS)))
    def test_swaps_reprice(self, spot_curve, index):
        payments = _swap_payments(
            SPOT, Tenor.parse(TENORS[index]), Tenor.parse('6M'), DayCountConvention.THIRTY_360,
            DayCountConvention.ACT_365F, BadDayConvention.MODIFIED_FOLLOWING, None,
        )
        annuity = sum(yf * spot_curve.discount_factor(t) for t, yf in payments)
        final_df = spot_curve.discount_factor(payments[-1][0])
        assert abs(RATES[index] * annuity + final_df - 1.0) < 1e-12
        assert abs(payments[-1][0] - spot_curve.get_time(index)) < 1e-15

    def test_rates_rise(self, spot_curve):
        assert np.all(np.diff(spot_curve.zero_rates) > 0)

    def test_tenor_not_multiple_of_interval(self):
        with pytest.raises(ValueError):
            bootstrap_yield_curve(SPOT, [0.01, 0.02], ['6M', '18M'], ['M', 'S'], swap_interval='1Y')


class TestTradeDate:
    """The curve is measured from the trade date."""

    def test_offset_to_trade_date(self, spot_curve):
        trade_date = Date(2013, 5, 29)
        curve = bootstrap_yield_curve(trade_date, RATES, TENORS)
        s = year_fraction(trade_date, SPOT, DayCountConvention.ACT_365F)
        assert abs(s - 2 / 365) < 1e-15
        for t in [0.1, 0.5, 2.0, 10.0, 29.0]:
            assert abs(curve.forward_discount_factor(s, s + t) - spot_curve.discount_factor(t)) < 1e-14
        assert abs(curve.get_time(0) - (spot_curve.get_time(0) + s)) < 1e-15

    def test_weekend_trade_date(self):
        # Saturday trade, spot two business days later on Tuesday
        curve = bootstrap_yield_curve(Date(2013, 6, 1), RATES[:3], TENORS[:3])
        assert curve.num_knots == 3


class TestValidation:
    """Invalid bootstrap inputs."""

    def test_empty(self):
        with pytest.raises(ValueError):
            bootstrap_yield_curve(SPOT, [], [])

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            bootstrap_yield_curve(SPOT, RATES, TENORS[:3])
        with pytest.raises(ValueError):
            bootstrap_yield_curve(SPOT, RATES[:2], TENORS[:2], ['M'])

    def test_unknown_instrument_type(self):
        with pytest.raises(ValueError):
            bootstrap_yield_curve(SPOT, RATES[:2], TENORS[:2], ['M', 'X'])

    def test_unordered_tenors(self):
        with pytest.raises(ValueError):
            bootstrap_yield_curve(SPOT, [0.01, 0.02], ['3M', '1M'])


class TestFromZeroRates:
    """Yield curves from zero rates at dates."""

    def test_times(self):
        curve = yield_curve_from_zero_rates(SPOT, [Date(2014, 5, 31), Date(2018, 5, 31)], [0.01, 0.02])
        np.testing.assert_allclose(curve.knot_times, [1.0, 1826 / 365], rtol=0, atol=1e-15)
        np.testing.assert_allclose(curve.zero_rates, [0.01, 0.02], rtol=0, atol=1e-15)

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            yield_curve_from_zero_rates(SPOT, [Date(2014, 5, 31)], [0.01, 0.02])
