"""
Enumeration types for the ISDA credit analytics library.

These enums define the market conventions and the model switches used
across curve calibration, pricing and sensitivity calculation.
"""

from enum import Enum, auto


def _lookup(mapping: dict, s: str, what: str):
    key = s.upper().replace(' ', '').replace('_', '').replace('-', '')
    for k, v in mapping.items():
        if key == k.replace('_', ''):
            return v
    raise ValueError(f'Unknown {what}: {s}')


class DayCountConvention(Enum):
    """Day count conventions for calculating year fractions.

    Values correspond to opendate Interval.yearfrac() basis parameter:
    - 0 = US (NASD) 30/360
    - 2 = Actual/360
    - 3 = Actual/365
    """

    ACT_360 = 2       # Actual/360 - opendate basis=2
    ACT_365F = 3      # Actual/365 Fixed - opendate basis=3
    THIRTY_360 = 0    # US 30/360 - opendate basis=0

    @classmethod
    def from_string(cls, s: str) -> 'DayCountConvention':
        """Parse a day count convention from string."""
        mapping = {
            'ACT/360': cls.ACT_360,
            'ACT360': cls.ACT_360,
            'A360': cls.ACT_360,
            'ACT/365F': cls.ACT_365F,
            'ACT/365': cls.ACT_365F,
            'ACT365': cls.ACT_365F,
            'ACT365F': cls.ACT_365F,
            'A365F': cls.ACT_365F,
            '30/360': cls.THIRTY_360,
            '30U/360': cls.THIRTY_360,
            '30360': cls.THIRTY_360,
        }
        key = s.upper().replace(' ', '')
        if key not in mapping:
            raise ValueError(f'Unknown day count convention: {s}')
        return mapping[key]


class BadDayConvention(Enum):
    """Business day adjustment conventions."""

    NONE = auto()           # No adjustment
    FOLLOWING = auto()      # Move to next business day
    MODIFIED_FOLLOWING = auto()  # Move to next business day, unless it crosses month boundary
    PRECEDING = auto()      # Move to previous business day
    MODIFIED_PRECEDING = auto()  # Move to previous business day, unless it crosses month boundary

    @classmethod
    def from_string(cls, s: str) -> 'BadDayConvention':
        """Parse a bad day convention from string."""
        mapping = {
            'NONE': cls.NONE,
            'N': cls.NONE,
            'FOLLOWING': cls.FOLLOWING,
            'F': cls.FOLLOWING,
            'MODIFIED_FOLLOWING': cls.MODIFIED_FOLLOWING,
            'MODFOLLOWING': cls.MODIFIED_FOLLOWING,
            'MF': cls.MODIFIED_FOLLOWING,
            'PRECEDING': cls.PRECEDING,
            'P': cls.PRECEDING,
            'MODIFIED_PRECEDING': cls.MODIFIED_PRECEDING,
            'MODPRECEDING': cls.MODIFIED_PRECEDING,
            'MP': cls.MODIFIED_PRECEDING,
        }
        return _lookup(mapping, s, 'bad day convention')


class StubConvention(Enum):
    """Where the odd period of a premium leg schedule goes."""

    SHORT_INITIAL = auto()
    LONG_INITIAL = auto()
    SHORT_FINAL = auto()
    LONG_FINAL = auto()

    @property
    def is_initial(self) -> bool:
        """True when dates are generated backwards from maturity."""
        return self in {StubConvention.SHORT_INITIAL, StubConvention.LONG_INITIAL}

    @property
    def is_long(self) -> bool:
        return self in {StubConvention.LONG_INITIAL, StubConvention.LONG_FINAL}

    @classmethod
    def from_string(cls, s: str) -> 'StubConvention':
        """Parse a stub convention from string."""
        mapping = {
            'SHORT_INITIAL': cls.SHORT_INITIAL,
            'FRONT_SHORT': cls.SHORT_INITIAL,
            'F/S': cls.SHORT_INITIAL,
            'LONG_INITIAL': cls.LONG_INITIAL,
            'FRONT_LONG': cls.LONG_INITIAL,
            'F/L': cls.LONG_INITIAL,
            'SHORT_FINAL': cls.SHORT_FINAL,
            'BACK_SHORT': cls.SHORT_FINAL,
            'B/S': cls.SHORT_FINAL,
            'LONG_FINAL': cls.LONG_FINAL,
            'BACK_LONG': cls.LONG_FINAL,
            'B/L': cls.LONG_FINAL,
        }
        return _lookup(mapping, s, 'stub convention')


class ArbitrageHandling(Enum):
    """What the credit curve calibrator does when quotes imply a negative
    forward hazard rate between two pillars.

    IGNORE accepts the raw root, ZERO_HAZARD_RATE clamps the forward hazard
    rate of the offending segment to zero and FAIL raises ArbitrageError.
    """

    IGNORE = auto()
    ZERO_HAZARD_RATE = auto()
    FAIL = auto()

    @classmethod
    def from_string(cls, s: str) -> 'ArbitrageHandling':
        """Parse an arbitrage handling policy from string."""
        mapping = {
            'IGNORE': cls.IGNORE,
            'ZERO_HAZARD_RATE': cls.ZERO_HAZARD_RATE,
            'ZERO': cls.ZERO_HAZARD_RATE,
            'FAIL': cls.FAIL,
        }
        return _lookup(mapping, s, 'arbitrage handling')


class PriceType(Enum):
    """Clean prices exclude the premium accrued since the last coupon date."""

    CLEAN = auto()
    DIRTY = auto()

    @classmethod
    def from_string(cls, s: str) -> 'PriceType':
        """Parse a price type from string."""
        mapping = {'CLEAN': cls.CLEAN, 'DIRTY': cls.DIRTY, 'FULL': cls.DIRTY}
        return _lookup(mapping, s, 'price type')


class AccrualOnDefaultFormula(Enum):
    """Formula used for the premium accrued between coupon date and default.

    ORIGINAL_ISDA reproduces the ISDA standard model including its half-day
    bias, MARKIT_FIX is the Markit correction of that bias and CORRECT drops
    the bias while keeping the ISDA integral.
    """

    ORIGINAL_ISDA = auto()
    MARKIT_FIX = auto()
    CORRECT = auto()

    @property
    def omega(self) -> float:
        """Time offset added to the accrual start in the integral."""
        if self is AccrualOnDefaultFormula.ORIGINAL_ISDA:
            return 1.0 / 730.0
        return 0.0

    @classmethod
    def from_string(cls, s: str) -> 'AccrualOnDefaultFormula':
        """Parse an accrual on default formula from string."""
        mapping = {
            'ORIGINAL_ISDA': cls.ORIGINAL_ISDA,
            'ISDA': cls.ORIGINAL_ISDA,
            'MARKIT_FIX': cls.MARKIT_FIX,
            'MARKIT': cls.MARKIT_FIX,
            'CORRECT': cls.CORRECT,
        }
        return _lookup(mapping, s, 'accrual on default formula')


class ShiftType(Enum):
    """How a spread bump is applied."""

    ABSOLUTE = auto()   # s + amount
    RELATIVE = auto()   # s * (1 + amount)

    def apply_shift(self, value: float, amount: float) -> float:
        if self is ShiftType.ABSOLUTE:
            return value + amount
        return value * (1.0 + amount)

    @classmethod
    def from_string(cls, s: str) -> 'ShiftType':
        """Parse a shift type from string."""
        mapping = {'ABSOLUTE': cls.ABSOLUTE, 'RELATIVE': cls.RELATIVE}
        return _lookup(mapping, s, 'shift type')


class FiniteDifferenceType(Enum):
    """Direction of a finite difference."""

    FORWARD = auto()
    BACKWARD = auto()
    CENTRAL = auto()

    @classmethod
    def from_string(cls, s: str) -> 'FiniteDifferenceType':
        """Parse a finite difference type from string."""
        mapping = {
            'FORWARD': cls.FORWARD,
            'BACKWARD': cls.BACKWARD,
            'CENTRAL': cls.CENTRAL,
        }
        return _lookup(mapping, s, 'finite difference type')
