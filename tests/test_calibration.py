"""
Tests for credit curve calibration.
"""

import logging

import numpy as np
import pytest
from opendate import Date

from isda_credit import AccrualOnDefaultFormula, AnalyticCdsPricer, ArbitrageError, ArbitrageHandling
from isda_credit import CalibrationError, CdsAnalyticFactory, CdsQuote, CreditCurveCalibrator, DayCountConvention
from isda_credit import ParSpread, PointsUpFront, PriceType, QuotedSpread, Tenor, bootstrap_yield_curve
from isda_credit.calibration import quote_to_premium_and_puf
from isda_credit.enums import BadDayConvention

ALL_POLICIES = list(ArbitrageHandling)


@pytest.fixture
def inverted_pillars(factory, trade_date):
    return factory.make_cds(trade_date, trade_date, [Date(2014, 6, 20), Date(2018, 6, 20)])


@pytest.fixture
def inverted_spreads():
    """A 1Y spread far above the 5Y spread implies a negative forward hazard rate."""
    return [0.03, 0.004]


def assert_round_trip(pillars, premiums, yield_curve, credit_curve, puf=None, tol=1e-10):
    pricer = AnalyticCdsPricer()
    puf = np.zeros(len(pillars)) if puf is None else puf
    for cds, premium, upfront in zip(pillars, premiums, puf):
        pv = pricer.present_value(cds, yield_curve, credit_curve, premium, PriceType.CLEAN)
        assert abs(pv - upfront) < tol


class TestCalibrate:
    """Tests for the bootstrap."""

    @pytest.mark.parametrize('policy', ALL_POLICIES)
    def test_round_trip(self, policy, market_cds, market_spreads, yield_curve):
        curve = CreditCurveCalibrator(policy).calibrate(market_cds, market_spreads, yield_curve)
        assert curve.num_knots == len(market_cds)
        assert_round_trip(market_cds, market_spreads, yield_curve, curve)

    def test_knots_at_protection_end(self, market_cds, market_spreads, yield_curve):
        curve = CreditCurveCalibrator().calibrate(market_cds, market_spreads, yield_curve)
        np.testing.assert_array_equal(curve.knot_times, [c.protection_end for c in market_cds])

    def test_positive_forward_hazard_rates(self, market_cds, market_spreads, yield_curve):
        curve = CreditCurveCalibrator().calibrate(market_cds, market_spreads, yield_curve)
        assert np.all(np.diff(curve.rt_values) > 0)
        assert curve.rt_values[0] > 0

    def test_flat_spreads_give_flat_curve(self, market_cds, yield_curve):
        """Credit triangle: with flat spreads the hazard rate is close to s / (1 - R)."""
        curve = CreditCurveCalibrator().calibrate(market_cds, np.full(7, 0.01), yield_curve)
        rates = curve.hazard_rates
        assert np.all(np.abs(rates - 0.01 / 0.6) < 1e-3)

    def test_points_upfront_round_trip(self, market_cds, yield_curve):
        puf = [-0.001, 0.0, 0.004, 0.01, 0.02, 0.03, 0.05]
        curve = CreditCurveCalibrator().calibrate(market_cds, np.full(7, 0.01), yield_curve, puf)
        assert_round_trip(market_cds, np.full(7, 0.01), yield_curve, curve, puf)

    def test_single_pillar(self, cds1, yield_curve):
        curve = CreditCurveCalibrator().calibrate_single(cds1, 0.0095, yield_curve)
        assert curve.num_knots == 1
        assert_round_trip([cds1], [0.0095], yield_curve, curve)

    def test_accrual_formulae(self, market_cds, market_spreads, yield_curve):
        for formula in AccrualOnDefaultFormula:
            calibrator = CreditCurveCalibrator(formula=formula)
            curve = calibrator.calibrate(market_cds, market_spreads, yield_curve)
            pricer = AnalyticCdsPricer(formula)
            for cds, s in zip(market_cds, market_spreads):
                assert abs(pricer.present_value(cds, yield_curve, curve, s)) < 1e-10


class TestArbitrageHandling:
    """Tests for quotes implying a negative forward hazard rate."""

    def test_zero_hazard_rate_clamps(self, inverted_pillars, inverted_spreads, yield_curve, caplog):
        calibrator = CreditCurveCalibrator(ArbitrageHandling.ZERO_HAZARD_RATE)
        with caplog.at_level(logging.WARNING, logger='isda_credit.calibration'):
            curve = calibrator.calibrate(inverted_pillars, inverted_spreads, yield_curve)
        assert 'clamped to zero' in caplog.text
        t0, t1 = curve.knot_times
        assert abs(curve.rt_values[1] - curve.rt_values[0]) < 1e-15
        assert abs(curve.hazard_rate(0.5 * (t0 + t1))) < 1e-13
        # the first pillar still reprices
        assert_round_trip(inverted_pillars[:1], inverted_spreads[:1], yield_curve, curve)

    def test_zero_hazard_rate_survival_is_monotone(self, inverted_pillars, inverted_spreads, yield_curve):
        curve = CreditCurveCalibrator().calibrate(inverted_pillars, inverted_spreads, yield_curve)
        times = np.linspace(0.0, 8.0, 161)
        survival = np.array([curve.survival_probability(t) for t in times])
        assert np.all(np.diff(survival) <= 1e-15)

    def test_fail_raises(self, inverted_pillars, inverted_spreads, yield_curve):
        calibrator = CreditCurveCalibrator(ArbitrageHandling.FAIL)
        with pytest.raises(ArbitrageError):
            calibrator.calibrate(inverted_pillars, inverted_spreads, yield_curve)

    def test_arbitrage_error_is_calibration_error(self):
        assert issubclass(ArbitrageError, CalibrationError)

    def test_ignore_accepts_negative_forward(self, inverted_pillars, inverted_spreads, yield_curve, caplog):
        calibrator = CreditCurveCalibrator(ArbitrageHandling.IGNORE)
        with caplog.at_level(logging.WARNING, logger='isda_credit.calibration'):
            curve = calibrator.calibrate(inverted_pillars, inverted_spreads, yield_curve)
        assert 'accepted under IGNORE' in caplog.text
        assert curve.rt_values[1] < curve.rt_values[0]
        assert curve.hazard_rate(3.0) < 0.0
        assert_round_trip(inverted_pillars, inverted_spreads, yield_curve, curve)

    def test_ignore_logs_negative_first_pillar(self, market_cds, yield_curve, caplog):
        # a large upfront paid to the buyer needs a negative hazard rate
        pillars, premiums, puf = market_cds[2:3], [0.01], [-0.05]
        calibrator = CreditCurveCalibrator(ArbitrageHandling.IGNORE)
        with caplog.at_level(logging.WARNING, logger='isda_credit.calibration'):
            curve = calibrator.calibrate(pillars, premiums, yield_curve, puf)
        assert 'Pillar 0 implies a negative forward hazard rate; accepted under IGNORE' in caplog.text
        assert curve.hazard_rates[0] < 0.0
        assert_round_trip(pillars, premiums, yield_curve, curve, puf=puf)

    def test_policies_agree_without_arbitrage(self, market_cds, market_spreads, yield_curve):
        curves = [
            CreditCurveCalibrator(p).calibrate(market_cds, market_spreads, yield_curve) for p in ALL_POLICIES
        ]
        for curve in curves[1:]:
            np.testing.assert_allclose(curve.hazard_rates, curves[0].hazard_rates, rtol=0, atol=1e-12)

    def test_from_string(self):
        assert ArbitrageHandling.from_string('zero') is ArbitrageHandling.ZERO_HAZARD_RATE
        with pytest.raises(ValueError):
            ArbitrageHandling.from_string('clamp')


class TestValidation:
    """Tests for invalid calibration inputs."""

    def test_empty(self, yield_curve):
        with pytest.raises(ValueError):
            CreditCurveCalibrator().calibrate([], [], yield_curve)

    def test_mismatched_premiums(self, market_cds, yield_curve):
        with pytest.raises(ValueError):
            CreditCurveCalibrator().calibrate(market_cds, [0.01, 0.01], yield_curve)

    def test_mismatched_upfronts(self, market_cds, market_spreads, yield_curve):
        with pytest.raises(ValueError):
            CreditCurveCalibrator().calibrate(market_cds, market_spreads, yield_curve, [0.0])

    def test_unordered_maturities(self, market_cds, market_spreads, yield_curve):
        with pytest.raises(ValueError):
            CreditCurveCalibrator().calibrate(market_cds[::-1], market_spreads, yield_curve)

    def test_differing_protection_start(self, factory, trade_date, yield_curve):
        spot = factory.make_cds(trade_date, trade_date, Date(2015, 6, 20))
        forward = factory.make_forward_starting_cds(trade_date, Date(2013, 7, 1), Date(2013, 7, 1), Date(2018, 6, 20))
        with pytest.raises(ValueError):
            CreditCurveCalibrator().calibrate([spot, forward], [0.01, 0.01], yield_curve)

    def test_expired_pillar(self, factory, yield_curve):
        cds = factory.make_cds(Date(2019, 1, 7), Date(2018, 3, 20), Date(2018, 12, 20))
        with pytest.raises(ValueError):
            CreditCurveCalibrator().calibrate([cds], [0.01], yield_curve)


class TestQuotes:
    """Tests for calibration to quotes in any convention."""

    def test_premium_and_puf(self):
        assert quote_to_premium_and_puf(ParSpread(0.01)) == (0.01, 0.0)
        assert quote_to_premium_and_puf(QuotedSpread(0.01, 0.012)) == (0.012, 0.0)
        assert quote_to_premium_and_puf(PointsUpFront(0.01, 0.03)) == (0.01, 0.03)

    def test_unknown_quote(self):
        with pytest.raises(TypeError):
            quote_to_premium_and_puf(CdsQuote(0.01))

    def test_mixed_quotes(self, market_cds, yield_curve):
        quotes = [ParSpread(0.005), ParSpread(0.007)] + [PointsUpFront(0.01, x) for x in [-0.001, 0.0, 0.002, 0.004, 0.01]]
        curve = CreditCurveCalibrator().calibrate_from_quotes(market_cds, quotes, yield_curve)
        premiums = [0.005, 0.007] + [0.01] * 5
        puf = [0.0, 0.0, -0.001, 0.0, 0.002, 0.004, 0.01]
        assert_round_trip(market_cds, premiums, yield_curve, curve, puf)

    def test_quotes_length(self, market_cds, yield_curve):
        with pytest.raises(ValueError):
            CreditCurveCalibrator().calibrate_from_quotes(market_cds, [ParSpread(0.01)], yield_curve)


# ISDA standard model reference market: deposits to 12M, annual 30/360 swaps
REFERENCE_RATES = [
    0.00445, 0.009488, 0.012337, 0.017762, 0.01935, 0.020838, 0.01652, 0.02018, 0.023033, 0.02525, 0.02696,
    0.02825, 0.02931, 0.03017, 0.03092, 0.0316, 0.03231, 0.03367, 0.03419, 0.03411, 0.03412,
]
REFERENCE_TENORS = [
    '1M', '2M', '3M', '6M', '9M', '12M',
    '2Y', '3Y', '4Y', '5Y', '6Y', '7Y', '8Y', '9Y', '10Y', '11Y', '12Y', '15Y', '20Y', '25Y', '30Y',
]
PILLAR_TENORS = ['6M', '1Y', '3Y', '5Y', '7Y', '10Y']

# (trade date, accrual start, maturity anchor, rate scale, par spreads)
REFERENCE_CASES = {
    'standard': (
        Date(2011, 6, 19), Date(2011, 3, 21), Date(2011, 6, 20), 1.0,
        [0.00886315689995649, 0.00886315689995649, 0.0133044689825873,
         0.0171490070952563, 0.0183903639181293, 0.0194721890639724],
    ),
    'inverted': (
        Date(2011, 3, 21), Date(2011, 3, 20), Date(2011, 6, 20), 1.0,
        [0.027, 0.018, 0.012, 0.009, 0.007, 0.006],
    ),
    'low_rates': (
        Date(2014, 1, 14), Date(2013, 12, 20), Date(2014, 3, 20), 1.0e-3,
        [1.0e-4] * 6,
    ),
}

OBS_TIMES = [30 / 365, 90 / 365, 180 / 365, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12]

# Survival probabilities at OBS_TIMES from the ISDA standard model
EXPECTED_SURVIVAL = {
    ('standard', AccrualOnDefaultFormula.ORIGINAL_ISDA): [
        0.998772746815168, 0.996322757048216, 0.992659036212158, 0.985174753005029, 0.959541054444166,
        0.9345154655283, 0.897874320219939, 0.862605325653124, 0.830790530716993, 0.80016566917562,
        0.76968842828467, 0.740364207356242, 0.71215720464425, 0.685024855452902, 0.658926216751093,
    ],
    ('inverted', AccrualOnDefaultFormula.ORIGINAL_ISDA): [
        0.996266535762958, 0.988841371514657, 0.977807258018988, 0.96475844963628, 0.953395823781617,
        0.940590393592274, 0.933146036536171, 0.927501935763199, 0.924978347338877, 0.923516383873675,
        0.919646843289677, 0.914974439245307, 0.91032577405212, 0.905700727101315, 0.901099178396858,
    ],
    ('low_rates', AccrualOnDefaultFormula.ORIGINAL_ISDA): [
        0.999986111241871, 0.999958334304303, 0.999916670344636, 0.999831033196934, 0.999662094963152,
        0.999493185285761, 0.999324304350342, 0.999155451994703, 0.998986628218491, 0.998817832978659,
        0.998649066279251, 0.998480328100177, 0.998311618432194, 0.998142937270482, 0.997974284610226,
    ],
    ('standard', AccrualOnDefaultFormula.MARKIT_FIX): [
        0.998773616100865, 0.996325358510497, 0.992664220011069, 0.985181033285486, 0.959551128356433,
        0.934529141029508, 0.897893062747179, 0.862628725130658, 0.830817532293803, 0.800195970143901,
        0.76972190245315, 0.740400570243092, 0.712196187570045, 0.685066206017066, 0.658969697981512,
    ],
}


def reference_market(case):
    """Yield curve, pillar CDSs and par spreads of a reference case."""
    trade_date, accrual_start, anchor, scale, spreads = REFERENCE_CASES[case]
    yield_curve = bootstrap_yield_curve(
        trade_date,
        [r * scale for r in REFERENCE_RATES],
        REFERENCE_TENORS,
        spot_days=3,
        swap_day_count=DayCountConvention.THIRTY_360,
        swap_interval='1Y',
        bad_day=BadDayConvention.FOLLOWING,
    )
    maturities = [Tenor.parse(t).add_to(anchor) for t in PILLAR_TENORS]
    pillars = CdsAnalyticFactory().make_cds(trade_date, accrual_start, maturities)
    return yield_curve, pillars, spreads


class TestIsdaReferenceCurves:
    """Calibration against survival probabilities of the ISDA standard model."""

    @pytest.fixture(params=list(EXPECTED_SURVIVAL), ids=lambda k: f'{k[0]}-{k[1].name}')
    def reference(self, request):
        case, formula = request.param
        yield_curve, pillars, spreads = reference_market(case)
        calibrator = CreditCurveCalibrator(ArbitrageHandling.ZERO_HAZARD_RATE, formula)
        credit_curve = calibrator.calibrate(pillars, spreads, yield_curve)
        return request.param, yield_curve, pillars, spreads, credit_curve

    def test_survival_probabilities(self, reference):
        key, _, _, _, credit_curve = reference
        actual = [credit_curve.survival_probability(t) for t in OBS_TIMES]
        np.testing.assert_allclose(actual, EXPECTED_SURVIVAL[key], rtol=0, atol=1e-14)

    def test_pillars_reprice(self, reference):
        (_, formula), yield_curve, pillars, spreads, credit_curve = reference
        pricer = AnalyticCdsPricer(formula)
        for cds, spread in zip(pillars, spreads):
            pv = pricer.present_value(cds, yield_curve, credit_curve, spread, PriceType.CLEAN)
            assert abs(pv) < 1e-12

    def test_pillars_line_up(self, reference):
        _, _, pillars, _, credit_curve = reference
        np.testing.assert_array_equal(credit_curve.knot_times, [c.protection_end for c in pillars])

    def test_monotone_survival(self, reference):
        *_, credit_curve = reference
        survival = [credit_curve.survival_probability(t) for t in np.linspace(0.0, 12.0, 145)]
        assert np.all(np.diff(survival) < 0)

    def test_unadjusted_sunday_accrual_start(self):
        _, pillars, _ = reference_market('inverted')
        assert all(c.accrual_start_date == Date(2011, 3, 20) for c in pillars)
