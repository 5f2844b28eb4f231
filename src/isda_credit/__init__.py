"""
ISDA credit analytics - Pure Python Implementation

Yield and credit curves, credit curve calibration, analytic pricing and
spread sensitivities (CS01) for single name CDSs and CDS indices under the
ISDA Standard Model.

Basic Usage:
    >>> from isda_credit import CdsAnalyticFactory, CreditCurveCalibrator, YieldCurve
    >>> from isda_credit import CdsTrade, CurveInstruments, FiniteDifferenceCs01Calculator
    >>>
    >>> factory = CdsAnalyticFactory()
    >>> pillars = factory.make_imm_cds('2013-04-21', ['6M', '1Y', '3Y', '5Y', '7Y', '10Y'])
    >>> instruments = CurveInstruments(pillars, [0.005, 0.007, 0.008, 0.0095, 0.01, 0.0095])
    >>> yield_curve = YieldCurve.flat(0.05)
    >>>
    >>> trade = CdsTrade(pillars[3], coupon=0.01, notional=10_000_000)
    >>> cs01 = FiniteDifferenceCs01Calculator().parallel_cs01(trade, instruments, yield_curve)
    >>> print(f"CS01: {cs01 * 1e-4:.2f} per bp")
"""

__version__ = '1.0.0'

# Sensitivities
from .analytic_sensitivity import DEFAULT_ANALYTIC_CALCULATOR
from .analytic_sensitivity import AnalyticSpreadSensitivityCalculator
# Calendar
from .calendar import add_business_days, adjust_date, is_business_day
# Calibration
from .calibration import DEFAULT_CALIBRATOR, CreditCurveCalibrator
# CDS
from .cds import CdsAnalytic, CdsCoupon
from .converter import DEFAULT_CONVERTER, MarketQuoteConverter
from .cs01 import ONE_BP, AnalyticCs01Calculator, FiniteDifferenceCs01Calculator
from .cs01 import SpreadSensitivityCalculator
# Curves
from .curves import CreditCurve, IsdaCompliantCurve, YieldCurve
# Date utilities
from .dates import WEEKENDS_ONLY, add_days, add_months, add_years, make_calendar
from .dates import to_date, year_fraction
# Enumerations
from .enums import AccrualOnDefaultFormula, ArbitrageHandling, BadDayConvention
from .enums import DayCountConvention, FiniteDifferenceType, PriceType, ShiftType
from .enums import StubConvention
# Exceptions
from .exceptions import ArbitrageError, CalibrationError, ConvergenceError
from .exceptions import CreditAnalyticsError, CurveError
from .factory import STANDARD_FACTORY, CdsAnalyticFactory
# IMM dates
from .imm import imm_date_set, is_imm_date, next_imm_date, previous_imm_date
# Pricer
from .pricer import DEFAULT_PRICER, AnalyticCdsPricer
# Quotes
from .quotes import CdsQuote, ParSpread, PointsUpFront, QuotedSpread
# Schedule
from .schedule import AccrualPeriod, PremiumLegSchedule
from .sensitivity import DEFAULT_FD_CALCULATOR, FiniteDifferenceSpreadSensitivityCalculator
# Tenor parsing
from .tenor import Tenor, parse_tenor
# Trades
from .trade import CdsIndexTrade, CdsTrade, CurveInstruments, CurveParameterSensitivity
from .zero_curve import bootstrap_yield_curve, yield_curve_from_zero_rates

__all__ = [
    # Version
    '__version__',
    # Curves
    'IsdaCompliantCurve',
    'YieldCurve',
    'CreditCurve',
    'bootstrap_yield_curve',
    'yield_curve_from_zero_rates',
    # CDS
    'CdsAnalytic',
    'CdsCoupon',
    'CdsAnalyticFactory',
    'STANDARD_FACTORY',
    'AccrualPeriod',
    'PremiumLegSchedule',
    # Quotes
    'CdsQuote',
    'ParSpread',
    'QuotedSpread',
    'PointsUpFront',
    # Calibration and pricing
    'CreditCurveCalibrator',
    'DEFAULT_CALIBRATOR',
    'AnalyticCdsPricer',
    'DEFAULT_PRICER',
    'MarketQuoteConverter',
    'DEFAULT_CONVERTER',
    # Sensitivities
    'ONE_BP',
    'FiniteDifferenceSpreadSensitivityCalculator',
    'DEFAULT_FD_CALCULATOR',
    'AnalyticSpreadSensitivityCalculator',
    'DEFAULT_ANALYTIC_CALCULATOR',
    'SpreadSensitivityCalculator',
    'FiniteDifferenceCs01Calculator',
    'AnalyticCs01Calculator',
    'CdsTrade',
    'CdsIndexTrade',
    'CurveInstruments',
    'CurveParameterSensitivity',
    # Enums
    'AccrualOnDefaultFormula',
    'ArbitrageHandling',
    'BadDayConvention',
    'DayCountConvention',
    'FiniteDifferenceType',
    'PriceType',
    'ShiftType',
    'StubConvention',
    # Exceptions
    'CreditAnalyticsError',
    'CurveError',
    'CalibrationError',
    'ArbitrageError',
    'ConvergenceError',
    # Dates
    'WEEKENDS_ONLY',
    'make_calendar',
    'to_date',
    'year_fraction',
    'add_days',
    'add_months',
    'add_years',
    'add_business_days',
    'adjust_date',
    'is_business_day',
    'Tenor',
    'parse_tenor',
    'is_imm_date',
    'next_imm_date',
    'previous_imm_date',
    'imm_date_set',
]
