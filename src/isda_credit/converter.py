"""
Conversion between CDS quote conventions.

Single quote conversions (quoted spread <-> points upfront) go through a
flat hazard rate curve fitted to the one CDS. Full curve conversions
(par spreads <-> points upfront) calibrate one credit curve to all of the
quotes and reprice each CDS off it.
"""

from collections.abc import Sequence

import numpy as np

from .calibration import CreditCurveCalibrator
from .cds import CdsAnalytic
from .curves import CreditCurve, YieldCurve
from .enums import AccrualOnDefaultFormula, ArbitrageHandling, PriceType
from .quotes import CdsQuote, ParSpread, PointsUpFront, QuotedSpread


def _premiums(premium, n: int) -> np.ndarray:
    if np.ndim(premium) == 0:
        return np.full(n, float(premium))
    premiums = np.asarray(premium, dtype=float)
    if len(premiums) != n:
        raise ValueError(f'Expected {n} premiums, got {len(premiums)}')
    return premiums


def _check_length(values, n: int, what: str) -> np.ndarray:
    values = np.asarray(values, dtype=float)
    if len(values) == 0:
        raise ValueError(f'No {what} given')
    if len(values) != n:
        raise ValueError(f'Expected {n} {what}, got {len(values)}')
    return values


class MarketQuoteConverter:
    """
    Converts between par spreads, quoted spreads and points upfront.

    Args:
        formula: Accrual on default formula used for pricing and fitting
    """

    def __init__(self, formula: AccrualOnDefaultFormula = AccrualOnDefaultFormula.ORIGINAL_ISDA):
        self.calibrator = CreditCurveCalibrator(ArbitrageHandling.ZERO_HAZARD_RATE, formula)
        self.pricer = self.calibrator.pricer

    # Prices for a given credit curve

    @staticmethod
    def clean_price(puf: float) -> float:
        """Clean price per unit notional from points upfront."""
        return 1.0 - puf

    def clean_price_from_curve(
        self,
        cds: CdsAnalytic,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        coupon: float,
    ) -> float:
        return 1.0 - self.points_upfront(cds, coupon, yield_curve, credit_curve)

    def principal(
        self,
        notional: float,
        cds: CdsAnalytic,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        coupon: float,
    ) -> float:
        """Cash amount exchanged upfront, notional times the clean PV."""
        return notional * self.pricer.present_value(cds, yield_curve, credit_curve, coupon, PriceType.CLEAN)

    def points_upfront(
        self,
        cds: CdsAnalytic,
        premium: float,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
    ) -> float:
        """Clean PV per unit notional of a CDS paying premium."""
        return self.pricer.present_value(cds, yield_curve, credit_curve, premium, PriceType.CLEAN)

    def points_upfront_strip(
        self,
        cds: Sequence[CdsAnalytic],
        premiums,
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
    ) -> np.ndarray:
        """
        Points upfront of several CDSs off one credit curve.

        Args:
            cds: The CDSs
            premiums: One premium for all CDSs, or one per CDS
            yield_curve: Discount curve
            credit_curve: Survival curve
        """
        premiums = _premiums(premiums, len(cds))
        return np.array([
            self.points_upfront(c, p, yield_curve, credit_curve) for c, p in zip(cds, premiums)
        ])

    def par_spreads(
        self,
        cds: Sequence[CdsAnalytic],
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
    ) -> np.ndarray:
        return np.array([self.pricer.par_spread(c, yield_curve, credit_curve) for c in cds])

    # Single quote conversions, each through a flat credit curve

    def quoted_spread_to_puf(
        self,
        cds: CdsAnalytic,
        premium: float,
        yield_curve: YieldCurve,
        quoted_spread: float,
    ) -> float:
        credit_curve = self.calibrator.calibrate_single(cds, quoted_spread, yield_curve)
        return self.points_upfront(cds, premium, yield_curve, credit_curve)

    def puf_to_quoted_spread(
        self,
        cds: CdsAnalytic,
        premium: float,
        yield_curve: YieldCurve,
        puf: float,
    ) -> float:
        credit_curve = self.calibrator.calibrate_single(cds, premium, yield_curve, puf)
        return self.pricer.par_spread(cds, yield_curve, credit_curve)

    def convert(self, cds: CdsAnalytic, quote: CdsQuote, yield_curve: YieldCurve) -> CdsQuote:
        """
        Convert a quote between the quoted spread and points upfront conventions.

        A QuotedSpread becomes PointsUpFront and vice versa. A ParSpread is
        returned as points upfront at a zero upfront.

        Raises
            TypeError: For an unknown quote type
        """
        if isinstance(quote, QuotedSpread):
            return PointsUpFront(
                quote.coupon, self.quoted_spread_to_puf(cds, quote.coupon, yield_curve, quote.quoted_spread),
            )
        if isinstance(quote, PointsUpFront):
            return QuotedSpread(
                quote.coupon, self.puf_to_quoted_spread(cds, quote.coupon, yield_curve, quote.puf),
            )
        if isinstance(quote, ParSpread):
            return PointsUpFront(quote.coupon, 0.0)
        raise TypeError(f'Unknown quote convention: {type(quote).__name__}')

    def quoted_spreads_to_puf(
        self,
        cds: Sequence[CdsAnalytic],
        premiums,
        yield_curve: YieldCurve,
        quoted_spreads,
    ) -> np.ndarray:
        """Points upfront of each CDS, each from its own flat curve."""
        n = len(cds)
        quoted_spreads = _check_length(quoted_spreads, n, 'quoted spreads')
        premiums = _premiums(premiums, n)
        return np.array([
            self.quoted_spread_to_puf(cds[i], premiums[i], yield_curve, quoted_spreads[i]) for i in range(n)
        ])

    def puf_to_quoted_spreads(
        self,
        cds: Sequence[CdsAnalytic],
        premiums,
        yield_curve: YieldCurve,
        puf,
    ) -> np.ndarray:
        n = len(cds)
        puf = _check_length(puf, n, 'points upfront')
        premiums = _premiums(premiums, n)
        return np.array([
            self.puf_to_quoted_spread(cds[i], premiums[i], yield_curve, puf[i]) for i in range(n)
        ])

    # Full curve conversions, through one credit curve fitted to every quote

    def par_spreads_to_puf(
        self,
        cds: Sequence[CdsAnalytic],
        premiums,
        yield_curve: YieldCurve,
        par_spreads,
    ) -> np.ndarray:
        credit_curve = self.calibrator.calibrate(cds, par_spreads, yield_curve)
        return self.points_upfront_strip(cds, premiums, yield_curve, credit_curve)

    def puf_to_par_spreads(
        self,
        cds: Sequence[CdsAnalytic],
        premiums,
        yield_curve: YieldCurve,
        puf,
    ) -> np.ndarray:
        premiums = _premiums(premiums, len(cds))
        credit_curve = self.calibrator.calibrate(cds, premiums, yield_curve, puf)
        return self.par_spreads(cds, yield_curve, credit_curve)

    def par_spreads_to_quoted_spreads(
        self,
        cds: Sequence[CdsAnalytic],
        premiums,
        yield_curve: YieldCurve,
        par_spreads,
    ) -> np.ndarray:
        puf = self.par_spreads_to_puf(cds, premiums, yield_curve, par_spreads)
        return self.puf_to_quoted_spreads(cds, premiums, yield_curve, puf)

    def quoted_spreads_to_par_spreads(
        self,
        cds: Sequence[CdsAnalytic],
        premiums,
        yield_curve: YieldCurve,
        quoted_spreads,
    ) -> np.ndarray:
        puf = self.quoted_spreads_to_puf(cds, premiums, yield_curve, quoted_spreads)
        return self.puf_to_par_spreads(cds, premiums, yield_curve, puf)


# Stateless default converter
DEFAULT_CONVERTER = MarketQuoteConverter()
