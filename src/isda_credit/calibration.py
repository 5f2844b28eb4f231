"""
ISDA-compliant credit curve calibration.

Bootstraps a piecewise flat hazard rate curve from a strip of CDSs, one
knot per CDS at its protection end. Pillar i is solved holding knots
0..i-1 fixed, so that the CDS at pillar i has zero clean PV (or the
quoted points upfront) at its premium.

Each pillar is bracketed and then solved with a Newton-Raphson iteration
that uses the pricer's analytic credit sensitivity, falling back to
bisection whenever a Newton step would leave the bracket.
"""

import logging
from collections.abc import Sequence

import numpy as np

from .cds import CdsAnalytic
from .curves import CreditCurve, YieldCurve
from .enums import AccrualOnDefaultFormula, ArbitrageHandling, PriceType
from .exceptions import ArbitrageError, CalibrationError, ConvergenceError
from .pricer import AnalyticCdsPricer
from .quotes import CdsQuote, ParSpread, PointsUpFront, QuotedSpread
from .root_finding import bracket_root, newton_raphson

logger = logging.getLogger(__name__)

# Effective protection starts closer than this are treated as equal
_PROTECTION_START_TOL = 1e-12


class CreditCurveCalibrator:
    """
    Bootstraps CreditCurve instances from CDS quotes.

    Args:
        arbitrage_handling: What to do when a pillar implies a negative
            forward hazard rate, ZERO_HAZARD_RATE by default
        formula: Accrual on default formula of the pricer used in the fit
    """

    def __init__(
        self,
        arbitrage_handling: ArbitrageHandling = ArbitrageHandling.ZERO_HAZARD_RATE,
        formula: AccrualOnDefaultFormula = AccrualOnDefaultFormula.ORIGINAL_ISDA,
    ):
        self.arbitrage_handling = arbitrage_handling
        self.pricer = AnalyticCdsPricer(formula)

    @property
    def formula(self) -> AccrualOnDefaultFormula:
        return self.pricer.formula

    def __repr__(self) -> str:
        return (
            f'CreditCurveCalibrator(arbitrage_handling={self.arbitrage_handling.name}, '
            f'formula={self.formula.name})'
        )

    def calibrate(
        self,
        pillars: Sequence[CdsAnalytic],
        premiums: Sequence[float],
        yield_curve: YieldCurve,
        points_upfront: Sequence[float] | None = None,
    ) -> CreditCurve:
        """
        Calibrate a credit curve to a strip of CDSs.

        Args:
            pillars: Calibration CDSs, in ascending maturity order
            premiums: Running coupon of each CDS (its par spread when no
                upfront is quoted)
            yield_curve: Discount curve
            points_upfront: Upfront of each CDS as a fraction of notional
                (default: all zero)

        Returns
            CreditCurve with one knot per pillar at its protection end

        Raises
            ValueError: On mismatched inputs, differing protection starts or
                non-ascending maturities
            ArbitrageError: Under the FAIL policy when quotes imply a
                negative forward hazard rate
            CalibrationError: If a pillar cannot be solved
        """
        pillars = list(pillars)
        n = len(pillars)
        premiums = np.asarray(premiums, dtype=float)
        puf = np.zeros(n) if points_upfront is None else np.asarray(points_upfront, dtype=float)
        if n == 0:
            raise ValueError('At least one calibration instrument is required')
        if len(premiums) != n:
            raise ValueError(f'Expected {n} premiums, got {len(premiums)}')
        if len(puf) != n:
            raise ValueError(f'Expected {n} points upfront, got {len(puf)}')

        prot_start = pillars[0].effective_protection_start
        t = np.empty(n)
        for i, cds in enumerate(pillars):
            if abs(cds.effective_protection_start - prot_start) > _PROTECTION_START_TOL:
                raise ValueError(
                    f'All pillars must share the same protection start: pillar {i} starts '
                    f'at {cds.effective_protection_start}, pillar 0 at {prot_start}'
                )
            t[i] = cds.protection_end
            if t[i] <= 0.0:
                raise ValueError(f'Pillar {i} has already expired')
            if i > 0 and t[i] <= t[i - 1]:
                raise ValueError(
                    f'Pillar maturities must be strictly ascending: pillar {i} ends at '
                    f'{t[i]}, pillar {i - 1} at {t[i - 1]}'
                )

        guess = np.array([(premiums[i] + puf[i] / t[i]) / pillars[i].lgd for i in range(n)])
        curve = CreditCurve(t, guess)
        for i in range(n):
            curve = self._solve_pillar(i, pillars[i], premiums[i], puf[i], guess[i], curve, yield_curve)
        return curve

    def calibrate_single(
        self,
        cds: CdsAnalytic,
        premium: float,
        yield_curve: YieldCurve,
        points_upfront: float = 0.0,
    ) -> CreditCurve:
        """Flat (single knot) credit curve from one CDS."""
        return self.calibrate([cds], [premium], yield_curve, [points_upfront])

    def calibrate_from_quotes(
        self,
        pillars: Sequence[CdsAnalytic],
        quotes: Sequence[CdsQuote],
        yield_curve: YieldCurve,
    ) -> CreditCurve:
        """Calibrate to a strip of quotes in any convention."""
        if len(pillars) != len(quotes):
            raise ValueError(f'Expected {len(pillars)} quotes, got {len(quotes)}')
        premiums, puf = [], []
        for quote in quotes:
            premium, upfront = quote_to_premium_and_puf(quote)
            premiums.append(premium)
            puf.append(upfront)
        return self.calibrate(pillars, premiums, yield_curve, puf)

    def _solve_pillar(
        self,
        i: int,
        cds: CdsAnalytic,
        premium: float,
        puf: float,
        guess: float,
        curve: CreditCurve,
        yield_curve: YieldCurve,
    ) -> CreditCurve:
        pricer = self.pricer
        t_i = curve.get_time(i)

        def pv(x: float) -> float:
            trial = curve.with_rate(x, i)
            return pricer.present_value(cds, yield_curve, trial, premium, PriceType.CLEAN) - puf

        def pv_derivative(x: float) -> float:
            trial = curve.with_rate(x, i)
            return pricer.pv_credit_sensitivity(cds, yield_curve, trial, premium, i, PriceType.CLEAN)

        handling = self.arbitrage_handling
        try:
            if handling is ArbitrageHandling.IGNORE:
                lo, hi = sorted((0.8 * guess, 1.25 * guess))
                if hi - lo < 1e-8:
                    lo, hi = guess - 1e-4, guess + 1e-4
                lo, hi = bracket_root(pv, lo, hi)
                x = newton_raphson(pv, pv_derivative, lo, hi, x0=guess)
                prev_rt = 0.0 if i == 0 else curve.rt_values[i - 1]
                if x * t_i < prev_rt:
                    logger.warning(
                        'Pillar %d implies a negative forward hazard rate; accepted under IGNORE', i,
                    )
            elif handling in {ArbitrageHandling.FAIL, ArbitrageHandling.ZERO_HAZARD_RATE}:
                # rate at which the forward hazard rate over (t[i-1], t[i]] is zero
                min_value = 0.0 if i == 0 else curve.rt_values[i - 1] / t_i
                if pv(min_value) > 0.0:
                    if handling is ArbitrageHandling.FAIL:
                        raise ArbitrageError(
                            f'Pillar {i} implies a negative forward hazard rate '
                            f'(premium={premium}, puf={puf})'
                        )
                    logger.warning(
                        'Pillar %d implies a negative forward hazard rate; clamped to zero', i,
                    )
                    x = min_value
                else:
                    start = max(guess, min_value)
                    hi = 1.25 * start if start > 0.0 else start + 1e-4
                    lo, hi = bracket_root(pv, start, max(hi, start + 1e-8), min_x=min_value)
                    x = newton_raphson(pv, pv_derivative, lo, hi, x0=start)
            else:
                raise ValueError(f'Unknown arbitrage handling: {handling}')
        except ConvergenceError as e:
            raise CalibrationError(f'Failed to calibrate credit curve at pillar {i}: {e}') from e

        logger.debug('Calibrated pillar %d: t=%.6f, hazard rate=%.12f', i, t_i, x)
        return curve.with_rate(x, i)


def quote_to_premium_and_puf(quote: CdsQuote) -> tuple[float, float]:
    """Running premium and upfront to calibrate to for a quote."""
    if isinstance(quote, PointsUpFront):
        return quote.coupon, quote.puf
    if isinstance(quote, QuotedSpread):
        return quote.quoted_spread, 0.0
    if isinstance(quote, ParSpread):
        return quote.coupon, 0.0
    raise TypeError(f'Unknown quote convention: {type(quote).__name__}')


# Stateless default calibrator
DEFAULT_CALIBRATOR = CreditCurveCalibrator()
