"""
Trade-level CS01.

A SpreadSensitivityCalculator calibrates a credit curve to a set of curve
instruments and returns the sensitivity of a trade's dirty PV to their par
spreads, per unit of spread and in trade currency: the per unit notional
value times the notional, the index factor and +1/-1 for a protection
buyer/seller. An index trade therefore has exactly the CS01 of its single
name equivalent scaled by its index factor.
"""

import logging
from abc import ABC, abstractmethod

import numpy as np

from .analytic_sensitivity import AnalyticSpreadSensitivityCalculator
from .calibration import CreditCurveCalibrator
from .curves import CreditCurve, YieldCurve
from .enums import AccrualOnDefaultFormula, ArbitrageHandling, PriceType, ShiftType
from .sensitivity import FiniteDifferenceSpreadSensitivityCalculator
from .trade import CdsIndexTrade, CdsTrade, CurveInstruments, CurveParameterSensitivity

logger = logging.getLogger(__name__)

ONE_BP = 1e-4


class SpreadSensitivityCalculator(ABC):
    """
    Base of the trade-level CS01 calculators.

    Args:
        formula: Accrual on default formula of the pricer and curve fits
        arbitrage_handling: Policy of the credit curve calibration
    """

    def __init__(
        self,
        formula: AccrualOnDefaultFormula = AccrualOnDefaultFormula.ORIGINAL_ISDA,
        arbitrage_handling: ArbitrageHandling = ArbitrageHandling.ZERO_HAZARD_RATE,
    ):
        self.calibrator = CreditCurveCalibrator(arbitrage_handling, formula)
        self.pricer = self.calibrator.pricer

    def calibrate(self, instruments: CurveInstruments, yield_curve: YieldCurve) -> CreditCurve:
        """Credit curve fitted to the par spreads of the instruments."""
        return self.calibrator.calibrate(instruments.pillars, instruments.par_spreads, yield_curve)

    def present_value(
        self,
        trade: CdsTrade | CdsIndexTrade,
        instruments: CurveInstruments,
        yield_curve: YieldCurve,
        price_type: PriceType = PriceType.DIRTY,
    ) -> float:
        """PV of the trade, valued at cash settle, off the curve fitted to the instruments."""
        credit_curve = self.calibrate(instruments, yield_curve)
        pv = self.pricer.present_value(trade.cds, yield_curve, credit_curve, trade.coupon, price_type)
        return trade.scale * pv

    def parallel_cs01(
        self,
        trade: CdsTrade | CdsIndexTrade,
        instruments: CurveInstruments,
        yield_curve: YieldCurve,
    ) -> float:
        """
        Sensitivity of the trade PV to a parallel shift of the instrument spreads.

        Multiply by ONE_BP for the PV change per basis point.
        """
        value = trade.scale * self._parallel(trade, instruments, yield_curve)
        logger.debug('Parallel CS01 %.10g for %s', value, trade.cds)
        return value

    def bucketed_cs01(
        self,
        trade: CdsTrade | CdsIndexTrade,
        instruments: CurveInstruments,
        yield_curve: YieldCurve,
    ) -> CurveParameterSensitivity:
        """Sensitivity of the trade PV to the spread of each instrument, labelled by instrument."""
        values = self._bucketed(trade, instruments, yield_curve)
        return CurveParameterSensitivity(instruments.labels, values).multiplied_by(trade.scale)

    @abstractmethod
    def _parallel(self, trade, instruments: CurveInstruments, yield_curve: YieldCurve) -> float:
        """Per unit notional parallel CS01."""

    @abstractmethod
    def _bucketed(self, trade, instruments: CurveInstruments, yield_curve: YieldCurve) -> np.ndarray:
        """Per unit notional bucketed CS01."""


class FiniteDifferenceCs01Calculator(SpreadSensitivityCalculator):
    """
    CS01 by bumping the instrument spreads and recalibrating.

    A forward difference of the dirty PV divided by the bump.

    Args:
        bump: Absolute spread bump, one basis point by default
    """

    def __init__(
        self,
        bump: float = ONE_BP,
        formula: AccrualOnDefaultFormula = AccrualOnDefaultFormula.ORIGINAL_ISDA,
        arbitrage_handling: ArbitrageHandling = ArbitrageHandling.ZERO_HAZARD_RATE,
    ):
        super().__init__(formula, arbitrage_handling)
        self.bump = bump
        self.calculator = FiniteDifferenceSpreadSensitivityCalculator(calibrator=self.calibrator)

    def _parallel(self, trade, instruments, yield_curve):
        return self.calculator.parallel_cs01_from_par_spreads(
            trade.cds, trade.coupon, yield_curve, instruments.pillars, instruments.par_spreads,
            self.bump, ShiftType.ABSOLUTE,
        )

    def _bucketed(self, trade, instruments, yield_curve):
        return self.calculator.bucketed_cs01_from_par_spreads(
            trade.cds, trade.coupon, yield_curve, instruments.pillars, instruments.par_spreads,
            self.bump, ShiftType.ABSOLUTE,
        )


class AnalyticCs01Calculator(SpreadSensitivityCalculator):
    """CS01 from the analytic credit sensitivities, without recalibration."""

    def __init__(
        self,
        formula: AccrualOnDefaultFormula = AccrualOnDefaultFormula.ORIGINAL_ISDA,
        arbitrage_handling: ArbitrageHandling = ArbitrageHandling.ZERO_HAZARD_RATE,
    ):
        super().__init__(formula, arbitrage_handling)
        self.calculator = AnalyticSpreadSensitivityCalculator(calibrator=self.calibrator)

    def _parallel(self, trade, instruments, yield_curve):
        return float(np.sum(self._bucketed(trade, instruments, yield_curve)))

    def _bucketed(self, trade, instruments, yield_curve):
        credit_curve = self.calibrate(instruments, yield_curve)
        return self.calculator.bucketed_cs01_from_credit_curve(
            trade.cds, trade.coupon, instruments.pillars, yield_curve, credit_curve,
        )
