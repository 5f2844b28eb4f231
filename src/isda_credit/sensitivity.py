"""
Finite difference (bump and reprice) spread sensitivities.

Every CS01 here is found by bumping market spreads, rebuilding the credit
curve and repricing the CDS, so it is exact for any finite bump. For small
bumps it approximates dV/dS, which AnalyticSpreadSensitivityCalculator
computes directly. Values are per unit notional and per unit of spread
(the PV difference divided by the bump) unless stated otherwise.
"""

import logging
from collections.abc import Sequence

import numpy as np

from .calibration import CreditCurveCalibrator
from .cds import CdsAnalytic
from .converter import MarketQuoteConverter
from .curves import CreditCurve, YieldCurve
from .enums import AccrualOnDefaultFormula, ArbitrageHandling, FiniteDifferenceType
from .enums import PriceType, ShiftType
from .quotes import CdsQuote, ParSpread, PointsUpFront, QuotedSpread

logger = logging.getLogger(__name__)

# Bumps at or below this size are rejected
MIN_BUMP = 1e-10


def _check_bump(bump: float) -> None:
    if abs(bump) <= MIN_BUMP:
        raise ValueError(f'Bump amount too small: {bump}')


def _check_spreads(spreads, n: int) -> np.ndarray:
    spreads = np.asarray(spreads, dtype=float)
    if len(spreads) == 0:
        raise ValueError('No spreads given')
    if len(spreads) != n:
        raise ValueError(f'Spreads length {len(spreads)} does not match the {n} curve CDSs')
    return spreads


def _bump_all(spreads: np.ndarray, amount: float, shift_type: ShiftType) -> np.ndarray:
    return np.array([shift_type.apply_shift(s, amount) for s in spreads])


def _bump_one(spreads: np.ndarray, amount: float, shift_type: ShiftType, index: int) -> np.ndarray:
    res = spreads.copy()
    res[index] = shift_type.apply_shift(res[index], amount)
    return res


def _check_ascending(cds: Sequence[CdsAnalytic], what: str) -> np.ndarray:
    t = np.array([c.protection_end for c in cds])
    if np.any(np.diff(t) <= 0):
        raise ValueError(f'{what} must be in ascending order of maturity')
    return t


class FiniteDifferenceSpreadSensitivityCalculator:
    """
    Bump and reprice CS01 of a CDS.

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

    # Parallel CS01 from the market quote of the CDS itself

    def parallel_cs01(self, cds: CdsAnalytic, quote: CdsQuote, yield_curve: YieldCurve, bump: float) -> float:
        """
        Parallel CS01 of a CDS from its own market quote.

        A points upfront quote is converted to a quoted spread, and that
        spread is bumped.

        Raises
            TypeError: For an unknown quote type
        """
        if isinstance(quote, QuotedSpread):
            return self.parallel_cs01_from_par_spreads(
                cds, quote.coupon, yield_curve, [cds], [quote.quoted_spread], bump, ShiftType.ABSOLUTE,
            )
        if isinstance(quote, PointsUpFront):
            return self.parallel_cs01_from_puf(cds, quote.coupon, yield_curve, quote.puf, bump)
        if isinstance(quote, ParSpread):
            return self.parallel_cs01_from_par_spreads(
                cds, quote.coupon, yield_curve, [cds], [quote.coupon], bump, ShiftType.ABSOLUTE,
            )
        raise TypeError(f'Unknown quote convention: {type(quote).__name__}')

    def parallel_cs01_from_puf(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: YieldCurve,
        puf: float,
        bump: float,
    ) -> float:
        """CS01 of a CDS quoted as points upfront, bumping its quoted spread."""
        _check_bump(bump)
        bumped_spread = self.converter.puf_to_quoted_spread(cds, coupon, yield_curve, puf) + bump
        bumped_curve = self.calibrator.calibrate_single(cds, bumped_spread, yield_curve)
        bumped_price = self.pricer.present_value(cds, yield_curve, bumped_curve, coupon)
        return (bumped_price - puf) / bump

    def parallel_cs01_from_spread(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: YieldCurve,
        market_spread: float,
        bump: float,
        shift_type: ShiftType = ShiftType.ABSOLUTE,
    ) -> float:
        """CS01 from a single market spread (par or quoted) of the CDS itself."""
        return self.parallel_cs01_from_par_spreads(
            cds, coupon, yield_curve, [cds], [market_spread], bump, shift_type,
        )

    def parallel_cs01_from_quoted_spread(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: YieldCurve,
        reference_cds: CdsAnalytic,
        quoted_spread: float,
        bump: float,
        shift_type: ShiftType = ShiftType.ABSOLUTE,
    ) -> float:
        """CS01 from the flat curve of a reference CDS, which is often the CDS itself."""
        return self.parallel_cs01_from_par_spreads(
            cds, coupon, yield_curve, [reference_cds], [quoted_spread], bump, shift_type,
        )

    # Parallel CS01 from a strip of pillar quotes

    def parallel_cs01_from_pillar_quotes(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: YieldCurve,
        market_cds: Sequence[CdsAnalytic],
        quotes: Sequence[CdsQuote],
        bump: float,
    ) -> float:
        """
        CS01 for a parallel shift of a strip of quotes in any convention.

        Par and quoted spreads are bumped directly; points upfront quotes
        are converted to quoted spreads, bumped and converted back.
        """
        _check_bump(bump)
        if len(market_cds) != len(quotes):
            raise ValueError(f'Quotes length {len(quotes)} does not match the {len(market_cds)} curve CDSs')
        base_curve = self.calibrator.calibrate_from_quotes(market_cds, quotes, yield_curve)
        base_price = self.pricer.present_value(cds, yield_curve, base_curve, coupon)
        bumped_quotes = self.bump_quotes(market_cds, quotes, yield_curve, bump)
        bumped_curve = self.calibrator.calibrate_from_quotes(market_cds, bumped_quotes, yield_curve)
        bumped_price = self.pricer.present_value(cds, yield_curve, bumped_curve, coupon)
        return (bumped_price - base_price) / bump

    def parallel_cs01_from_par_spreads(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: YieldCurve,
        market_cds: Sequence[CdsAnalytic],
        par_spreads,
        bump: float,
        shift_type: ShiftType = ShiftType.ABSOLUTE,
    ) -> float:
        """
        CS01 for a parallel shift of the par spreads the credit curve is built from.

        Args:
            cds: CDS to compute the CS01 of
            coupon: Coupon of that CDS
            yield_curve: Discount curve
            market_cds: Calibration CDSs
            par_spreads: Par spread of each calibration CDS
            bump: Size of the shift, 1e-4 for one basis point
            shift_type: ABSOLUTE adds the bump, RELATIVE scales by (1 + bump)

        Returns
            Difference of the dirty PVs divided by the bump

        Raises
            ValueError: On a bump too small or a spreads length mismatch
        """
        _check_bump(bump)
        spreads = _check_spreads(par_spreads, len(market_cds))
        bumped = _bump_all(spreads, bump, shift_type)
        diff = self._price_difference(cds, coupon, market_cds, bumped, spreads, yield_curve, PriceType.DIRTY)
        return diff / bump

    def parallel_cs01_from_credit_curve(
        self,
        cds: CdsAnalytic,
        coupon: float,
        pillar_cds: Sequence[CdsAnalytic],
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        bump: float,
    ) -> float:
        """CS01 for a parallel shift of the par spreads implied by a credit curve at pillar_cds."""
        _check_bump(bump)
        _check_ascending(pillar_cds, 'Pillars')
        implied = self.converter.par_spreads(pillar_cds, yield_curve, credit_curve)
        base_curve = self.calibrator.calibrate(pillar_cds, implied, yield_curve)
        base_price = self.pricer.present_value(cds, yield_curve, base_curve, coupon)
        bumped_curve = self.calibrator.calibrate(pillar_cds, implied + bump, yield_curve)
        price = self.pricer.present_value(cds, yield_curve, bumped_curve, coupon)
        return (price - base_price) / bump

    # Bucketed CS01

    def bucketed_cs01_from_pillar_quotes(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: YieldCurve,
        market_cds: Sequence[CdsAnalytic],
        quotes: Sequence[CdsQuote],
        bump: float,
    ) -> np.ndarray:
        """Bucketed CS01, bumping one quote at a time in its own convention."""
        _check_bump(bump)
        n = len(market_cds)
        if n != len(quotes):
            raise ValueError(f'Quotes length {len(quotes)} does not match the {n} curve CDSs')
        base_curve = self.calibrator.calibrate_from_quotes(market_cds, quotes, yield_curve)
        base_price = self.pricer.present_value(cds, yield_curve, base_curve, coupon)
        res = np.zeros(n)
        for i in range(n):
            bumped_quotes = list(quotes)
            bumped_quotes[i] = self.bump_quote(market_cds[i], quotes[i], yield_curve, bump)
            bumped_curve = self.calibrator.calibrate_from_quotes(market_cds, bumped_quotes, yield_curve)
            price = self.pricer.present_value(cds, yield_curve, bumped_curve, coupon)
            res[i] = (price - base_price) / bump
            logger.debug('Bucket %d of %d: CS01 %.12g', i, n, res[i])
        return res

    def bucketed_cs01_from_par_spreads(
        self,
        cds: CdsAnalytic,
        coupon: float,
        yield_curve: YieldCurve,
        market_cds: Sequence[CdsAnalytic],
        par_spreads,
        bump: float,
        shift_type: ShiftType = ShiftType.ABSOLUTE,
    ) -> np.ndarray:
        """
        Bucketed CS01: the CS01 to each calibration par spread in turn.

        Returns
            One dirty PV difference divided by the bump per calibration CDS
        """
        _check_bump(bump)
        n = len(market_cds)
        spreads = _check_spreads(par_spreads, n)
        base_curve = self.calibrator.calibrate(market_cds, spreads, yield_curve)
        base_price = self.pricer.present_value(cds, yield_curve, base_curve, coupon, PriceType.DIRTY)
        res = np.zeros(n)
        for i in range(n):
            bumped = _bump_one(spreads, bump, shift_type, i)
            bumped_curve = self.calibrator.calibrate(market_cds, bumped, yield_curve)
            price = self.pricer.present_value(cds, yield_curve, bumped_curve, coupon, PriceType.DIRTY)
            res[i] = (price - base_price) / bump
            logger.debug('Bucket %d of %d: CS01 %.12g', i, n, res[i])
        return res

    def bucketed_cs01_from_quoted_spreads(
        self,
        cds: CdsAnalytic | Sequence[CdsAnalytic],
        deal_spread: float,
        yield_curve: YieldCurve,
        market_cds: Sequence[CdsAnalytic],
        quoted_spreads,
        bump: float,
        shift_type: ShiftType = ShiftType.ABSOLUTE,
    ) -> np.ndarray:
        """
        Bucketed CS01 to quoted spreads, all calibration CDSs paying deal_spread.

        Each bumped quoted spread is converted to points upfront on its own
        flat curve before the full curve is rebuilt.

        Returns
            A vector for a single CDS, or a matrix with one row per CDS when
            a sequence of CDSs is given
        """
        _check_bump(bump)
        n = len(market_cds)
        spreads = _check_spreads(quoted_spreads, n)
        single = isinstance(cds, CdsAnalytic)
        trades = [cds] if single else list(cds)
        premiums = np.full(n, float(deal_spread))

        puf = self.converter.quoted_spreads_to_puf(market_cds, premiums, yield_curve, spreads)
        base_curve = self.calibrator.calibrate(market_cds, premiums, yield_curve, puf)
        base_prices = [
            self.pricer.present_value(c, yield_curve, base_curve, deal_spread, PriceType.DIRTY) for c in trades
        ]
        res = np.zeros((len(trades), n))
        for i in range(n):
            bumped_puf = puf.copy()
            bumped_spread = shift_type.apply_shift(spreads[i], bump)
            bumped_puf[i] = self.converter.quoted_spread_to_puf(market_cds[i], premiums[i], yield_curve, bumped_spread)
            bumped_curve = self.calibrator.calibrate(market_cds, premiums, yield_curve, bumped_puf)
            for j, c in enumerate(trades):
                price = self.pricer.present_value(c, yield_curve, bumped_curve, deal_spread, PriceType.DIRTY)
                res[j, i] = (price - base_prices[j]) / bump
        return res[0] if single else res

    def bucketed_cs01_from_pillar_spreads(
        self,
        cds: CdsAnalytic,
        coupon: float,
        bucket_cds: Sequence[CdsAnalytic],
        yield_curve: YieldCurve,
        pillar_cds: Sequence[CdsAnalytic],
        pillar_spreads,
        bump: float,
    ) -> np.ndarray:
        """Bucketed CS01 at bucket_cds of the credit curve fitted to par spreads at pillar_cds."""
        spreads = _check_spreads(pillar_spreads, len(pillar_cds))
        credit_curve = self.calibrator.calibrate(pillar_cds, spreads, yield_curve)
        return self.bucketed_cs01_from_credit_curve(cds, coupon, bucket_cds, yield_curve, credit_curve, bump)

    def bucketed_cs01_from_puf(
        self,
        cds: CdsAnalytic,
        quote: PointsUpFront,
        yield_curve: YieldCurve,
        bucket_cds: Sequence[CdsAnalytic],
        bump: float,
    ) -> np.ndarray:
        """Bucketed CS01 at bucket_cds of the flat curve implied by a points upfront quote."""
        credit_curve = self.calibrator.calibrate_single(cds, quote.coupon, yield_curve, quote.puf)
        return self.bucketed_cs01_from_credit_curve(cds, quote.coupon, bucket_cds, yield_curve, credit_curve, bump)

    def bucketed_cs01_from_credit_curve(
        self,
        cds: CdsAnalytic,
        coupon: float,
        bucket_cds: Sequence[CdsAnalytic],
        yield_curve: YieldCurve,
        credit_curve: CreditCurve,
        bump: float,
    ) -> np.ndarray:
        """
        Bucketed CS01 to the par spreads a credit curve implies at bucket_cds.

        The curve is refitted to its implied spreads, then each spread is
        bumped in turn. Buckets past the first one that covers the CDS
        maturity cannot move its price and are left at zero.

        Raises
            ValueError: On a bump too small or buckets out of order
        """
        _check_bump(bump)
        t = _check_ascending(bucket_cds, 'Buckets')
        n = len(bucket_cds)
        implied = self.converter.par_spreads(bucket_cds, yield_curve, credit_curve)
        last = min(int(np.searchsorted(t, cds.protection_end)), n - 1)

        base_curve = self.calibrator.calibrate(bucket_cds, implied, yield_curve)
        base_price = self.pricer.present_value(cds, yield_curve, base_curve, coupon)
        res = np.zeros(n)
        for i in range(last + 1):
            bumped = _bump_one(implied, bump, ShiftType.ABSOLUTE, i)
            bumped_curve = self.calibrator.calibrate(bucket_cds, bumped, yield_curve)
            price = self.pricer.present_value(cds, yield_curve, bumped_curve, coupon)
            res[i] = (price - base_price) / bump
            logger.debug('Bucket %d of %d: CS01 %.12g', i, n, res[i])
        return res

    # Raw finite differences

    def finite_difference_spread_sensitivity(
        self,
        cds: CdsAnalytic,
        coupon: float,
        price_type: PriceType,
        yield_curve: YieldCurve,
        market_cds: Sequence[CdsAnalytic],
        market_spreads,
        delta_spreads,
        fd_type: FiniteDifferenceType = FiniteDifferenceType.CENTRAL,
    ) -> float:
        """
        Price change for a shift of each market spread by its delta.

        Unlike the CS01 methods, the result is not divided by the shift.

        Args:
            cds: CDS to reprice
            coupon: Coupon of that CDS
            price_type: CLEAN or DIRTY price
            yield_curve: Discount curve
            market_cds: Calibration CDSs
            market_spreads: Par spread of each calibration CDS, all positive
            delta_spreads: Non-negative shift of each spread
            fd_type: CENTRAL (up minus down), FORWARD (up minus base) or
                BACKWARD (base minus down)

        Raises
            ValueError: On mismatched lengths, non-positive spreads, negative
                deltas, or a delta not below its spread unless FORWARD
        """
        n = len(market_cds)
        spreads = _check_spreads(market_spreads, n)
        deltas = np.asarray(delta_spreads, dtype=float)
        if len(deltas) != n:
            raise ValueError(f'Delta spreads length {len(deltas)} does not match the {n} curve CDSs')
        for i in range(n):
            if spreads[i] <= 0:
                raise ValueError(f'Spreads must be positive, got {spreads[i]} at {i}')
            if deltas[i] < 0:
                raise ValueError(f'Delta spreads must be non-negative, got {deltas[i]} at {i}')
            if fd_type is not FiniteDifferenceType.FORWARD and deltas[i] >= spreads[i]:
                raise ValueError('Delta spreads must be less than the spreads unless a forward difference is used')

        if fd_type is FiniteDifferenceType.CENTRAL:
            up, down = spreads + deltas, spreads - deltas
        elif fd_type is FiniteDifferenceType.FORWARD:
            up, down = spreads + deltas, spreads
        elif fd_type is FiniteDifferenceType.BACKWARD:
            up, down = spreads, spreads - deltas
        else:
            raise ValueError(f'Unknown finite difference type: {fd_type}')
        return self._price_difference(cds, coupon, market_cds, up, down, yield_curve, price_type)

    def _price_difference(self, cds, coupon, market_cds, spreads_up, spreads_down, yield_curve, price_type) -> float:
        curve_up = self.calibrator.calibrate(market_cds, spreads_up, yield_curve)
        curve_down = self.calibrator.calibrate(market_cds, spreads_down, yield_curve)
        up = self.pricer.present_value(cds, yield_curve, curve_up, coupon, price_type)
        down = self.pricer.present_value(cds, yield_curve, curve_down, coupon, price_type)
        return up - down

    # Quote bumping

    def bump_quote(self, cds: CdsAnalytic, quote: CdsQuote, yield_curve: YieldCurve, eps: float) -> CdsQuote:
        """
        Shift a quote's spread by eps, keeping its convention.

        Points upfront are shifted through their quoted spread.

        Raises
            TypeError: For an unknown quote type
        """
        if isinstance(quote, ParSpread):
            return ParSpread(quote.coupon + eps)
        if isinstance(quote, QuotedSpread):
            return QuotedSpread(quote.coupon, quote.quoted_spread + eps)
        if isinstance(quote, PointsUpFront):
            bumped = self.converter.puf_to_quoted_spread(cds, quote.coupon, yield_curve, quote.puf) + eps
            return PointsUpFront(quote.coupon, self.converter.quoted_spread_to_puf(cds, quote.coupon, yield_curve, bumped))
        raise TypeError(f'Unknown quote convention: {type(quote).__name__}')

    def bump_quotes(
        self,
        cds: Sequence[CdsAnalytic],
        quotes: Sequence[CdsQuote],
        yield_curve: YieldCurve,
        eps: float,
    ) -> list[CdsQuote]:
        return [self.bump_quote(c, q, yield_curve, eps) for c, q in zip(cds, quotes)]


# Stateless default calculator
DEFAULT_FD_CALCULATOR = FiniteDifferenceSpreadSensitivityCalculator()
