"""
Custom exceptions for the ISDA credit analytics library.
"""


class CreditAnalyticsError(Exception):
    """Base exception for all credit analytics errors."""


class CurveError(CreditAnalyticsError):
    """Error related to curve construction or interpolation."""


class CalibrationError(CurveError):
    """Error during credit or yield curve bootstrapping."""


class ArbitrageError(CalibrationError):
    """Market quotes imply a negative forward hazard rate."""


class ConvergenceError(CreditAnalyticsError):
    """Root finding failed to converge."""
