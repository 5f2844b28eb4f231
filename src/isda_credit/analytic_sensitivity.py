"""
Analytic spread sensitivities.

The PV of a CDS depends on the market spreads only through the credit
curve nodes h. With J[j][i] = dS_i / dh_j, the sensitivity to the spreads
v = dV/dS solves

    J v = dV/dh

so no curve is rebuilt. The result is the limit of the finite difference
CS01 as the bump goes to zero.
"""

import logging
from collections.abc import Sequence

import numpy as np

from .calibration import CreditCurveCalibrator
from .cds import CdsAnalytic
from .converter import MarketQuoteConverter
from .curves import CreditCurve, YieldCurve
from .enums import AccrualOnDefaultFormula, ArbitrageHandling, PriceType
from .quotes import CdsQuote, ParSpread, PointsUpFront, QuotedSpread

logger = logging.getLogger(__name__)


class AnalyticSpreadSensitivityCalculator:
    """
    CS01 from the analytic credit sensitivities of the pricer.

    Values are per unit notional and per unit of spread.

    Args:
        formula: Accrual on default formula of the pricer and curve fits
        calibrator: Credit curve calibrator to use instead of a
            ZERO_HAZARD_RATE one with the same formula
    """

    def __init__(
        self,
        formula: AccrualOnDefaultFormula = AccrualOnDefaultFormula.ORIGINAL_ISDA,
        calibrator: CreditCurveCalibrator | None = None,
    ):
        if calibrator is None:
            calibrator = CreditCurveCalibrator(ArbitrageHandling.ZERO_HAZARD_RATE, formula)
        self.calibrator = calibrator
        self.pricer = calibrator.pricer
        self.converter = MarketQuoteConverter(calibrator.formula)

    # Parallel CS01

    def parallel_cs01(self, cds: CdsAnalytic, quote: CdsQuote, yield_curve: YieldCurve) -> float:
        """
        Parallel CS01 of a CDS from its own market quote, through a flat curve.

        Raises
            TypeError: For an unknown quote type
        """
        if isinstance(quote, PointsUpFront):
            return self.parallel_cs01_from_puf(cds, quote.coupon, yield_curve, quote.puf)
        if isinstance(quote, QuotedSpread):
            return self.parallel_cs01_from_par_spreads(cds, quote.coupon, yield_curve, [cds], [quote.quoted_spread])
        if isinstance(quote, ParSpread):
            return self.parallel_cs01_from_par_spreads(cds, quote.coupon, yield_curve, [cds], [quote.coupon])
        raise TypeError(f'Unknown quote convention: {type(quote).__name__}')

    def parallel_cs01_from_puf(self, cds: CdsAnalytic, coupon: float, yield_curve: YieldCurve, puf: float) -> float:
        """CS01 of a CDS quoted as points upfront, to its quoted spread."""
        credit_curve = self.calibrator.calibrate_single(cds, coupon, yield_curve, puf)
        dv_dh = self.pricer.pv_credit_sensitivity(cds, yield_curve, credit_curve, coupon, 0, PriceType.CLEAN)
        ds_dh = self.pricer.par_spread_credit_sensitivity(cds, yield_curve, credit_curve, 0)
        return dv_dh / ds_dh

    def parallel_cs01_from_par_spreads(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: YieldCurve,
        market_cds: Sequence[CdsAnalytic],
        par_spreads,
    ) -> float:
        """CS01 for a parallel shift of the par spreads the credit curve is built from."""
        credit_curve = self.calibrator.calibrate(market_cds, par_spreads, yield_curve)
        return self.parallel_cs01_from_credit_curve(cds, coupon, market_cds, yield_curve, credit_curve)

    def parallel_cs01_from_quoted_spreads(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: YieldCurve,
        market_cds: Sequence[CdsAnalytic],
        premiums,
        quoted_spreads,
    ) -> float:
        return float(np.sum(self.bucketed_cs01_from_quoted_spreads(
            cds, coupon, yield_curve, market_cds, premiums, quoted_spreads,
        )))

    def parallel_cs01_from_credit_curve(
        self,
        cds: CdsAnalytic,
        coupon: float,
        bucket_cds: Sequence[CdsAnalytic],
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        price_type: PriceType = PriceType.DIRTY,
    ) -> float:
        return float(np.sum(self.bucketed_cs01_from_credit_curve(
            cds, coupon, bucket_cds, yield_curve, credit_curve, price_type,
        )))

    # Bucketed CS01

    def bucketed_cs01_from_par_spreads(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: YieldCurve,
        market_cds: Sequence[CdsAnalytic],
        par_spreads,
    ) -> np.ndarray:
        credit_curve = self.calibrator.calibrate(market_cds, par_spreads, yield_curve)
        return self.bucketed_cs01_from_credit_curve(cds, coupon, market_cds, yield_curve, credit_curve)

    def bucketed_cs01_from_credit_curve(
        self,
        cds: CdsAnalytic,
        coupon: float,
        bucket_cds: Sequence[CdsAnalytic],
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        price_type: PriceType = PriceType.DIRTY,
    ) -> np.ndarray:
        """
        Sensitivity of the PV to the par spread of each bucket CDS.

        Args:
            cds: CDS to compute the CS01 of
            coupon: Coupon of that CDS
            bucket_cds: One CDS per credit curve knot, usually the curve's
                calibration instruments
            yield_curve: Discount curve
            credit_curve: Credit curve
            price_type: PV whose sensitivity is taken, DIRTY by default

        Raises
            ValueError: If the number of buckets differs from the number of
                credit curve knots
        """
        n = credit_curve.num_knots
        if len(bucket_cds) != n:
            raise ValueError(f'Expected one bucket CDS per credit curve knot ({n}), got {len(bucket_cds)}')
        if cds.is_expired:
            return np.zeros(n)
        v_lambda = np.array([
            self.pricer.pv_credit_sensitivity(cds, yield_curve, credit_curve, coupon, j, price_type) for j in range(n)
        ])
        jac = np.array([
            [self.pricer.par_spread_credit_sensitivity(bucket_cds[i], yield_curve, credit_curve, j) for i in range(n)]
            for j in range(n)
        ])
        logger.debug('Solving %dx%d spread Jacobian', n, n)
        return np.linalg.solve(jac, v_lambda)

    def bucketed_cs01_from_quoted_spreads(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: YieldCurve,
        market_cds: Sequence[CdsAnalytic],
        premiums,
        quoted_spreads,
    ) -> np.ndarray:
        """
        Sensitivity of the PV to the quoted spread of each market CDS.

        Each quoted spread sets the points upfront of its CDS through a flat
        curve, and the credit curve is fitted to those upfronts. The
        Jacobian entry dQS_i/dh_j is dPUF_i/dh_j over the dPUF_i/dQS_i of
        the CDS's own flat curve.
        """
        n = len(market_cds)
        premiums = np.full(n, float(premiums)) if np.ndim(premiums) == 0 else np.asarray(premiums, dtype=float)
        quoted_spreads = np.asarray(quoted_spreads, dtype=float)
        if len(premiums) != n or len(quoted_spreads) != n:
            raise ValueError(f'Expected {n} premiums and quoted spreads')

        puf = self.converter.quoted_spreads_to_puf(market_cds, premiums, yield_curve, quoted_spreads)
        credit_curve = self.calibrator.calibrate(market_cds, premiums, yield_curve, puf)
        if cds.is_expired:
            return np.zeros(n)

        pricer = self.pricer
        dpuf_dqs = np.empty(n)
        for i, c in enumerate(market_cds):
            flat = self.calibrator.calibrate_single(c, quoted_spreads[i], yield_curve)
            dpuf_dh = pricer.pv_credit_sensitivity(c, yield_curve, flat, premiums[i], 0, PriceType.CLEAN)
            dqs_dh = pricer.par_spread_credit_sensitivity(c, yield_curve, flat, 0)
            dpuf_dqs[i] = dpuf_dh / dqs_dh

        v_lambda = np.array([
            pricer.pv_credit_sensitivity(cds, yield_curve, credit_curve, coupon, j) for j in range(n)
        ])
        jac = np.array([
            [
                pricer.pv_credit_sensitivity(market_cds[i], yield_curve, credit_curve, premiums[i], j, PriceType.CLEAN)
                / dpuf_dqs[i]
                for i in range(n)
            ]
            for j in range(n)
        ])
        return np.linalg.solve(jac, v_lambda)


# Stateless default calculator
DEFAULT_ANALYTIC_CALCULATOR = AnalyticSpreadSensitivityCalculator()
