"""
Tenor parsing and date arithmetic.

A tenor is a period such as "3M", "1Y" or "10Y". Tenors label curve pillars
and bucketed sensitivities and set CDS maturities relative to IMM dates.
"""

import re
from dataclasses import dataclass

from opendate import Date

from .dates import DateLike, add_days, add_months, add_years, to_date

_TENOR_RE = re.compile(r'^(\d+)([DWMY])$')


@dataclass(frozen=True)
class Tenor:
    """
    A period of time.

    Attributes
        value: Numeric value (e.g., 3 for "3M")
        unit: Time unit ('D', 'W', 'M', 'Y')
    """

    value: int
    unit: str

    def __post_init__(self):
        if self.unit not in {'D', 'W', 'M', 'Y'}:
            raise ValueError(f'Invalid tenor unit: {self.unit}')
        if self.value < 0:
            raise ValueError(f'Tenor value must be non-negative: {self.value}')

    def __str__(self) -> str:
        return f'{self.value}{self.unit}'

    @classmethod
    def parse(cls, s: 'str | Tenor') -> 'Tenor':
        """
        Parse a tenor string such as "1D", "2W", "6M" or "10Y".

        Raises
            ValueError: If the string is not a tenor
        """
        if isinstance(s, Tenor):
            return s
        match = _TENOR_RE.match(s.strip().upper())
        if match is None:
            raise ValueError(f'Cannot parse tenor: {s}')
        return cls(int(match.group(1)), match.group(2))

    @classmethod
    def of_months(cls, months: int) -> 'Tenor':
        return cls(months, 'M')

    @classmethod
    def of_years(cls, years: int) -> 'Tenor':
        return cls(years, 'Y')

    @property
    def months(self) -> int:
        """Length in whole months, zero for day and week tenors."""
        if self.unit == 'M':
            return self.value
        if self.unit == 'Y':
            return 12 * self.value
        return 0

    @property
    def years(self) -> float:
        """Approximate length in years."""
        if self.unit == 'D':
            return self.value / 365.0
        if self.unit == 'W':
            return self.value * 7 / 365.0
        return self.months / 12.0

    def add_to(self, d: DateLike, times: int = 1) -> Date:
        """Add this tenor (times over) to a date. Month ends are clamped."""
        dt = to_date(d)
        n = self.value * times
        if self.unit == 'D':
            return add_days(dt, n)
        if self.unit == 'W':
            return add_days(dt, 7 * n)
        if self.unit == 'M':
            return add_months(dt, n)
        return add_years(dt, n)

    def subtract_from(self, d: DateLike, times: int = 1) -> Date:
        """Subtract this tenor (times over) from a date."""
        return self.add_to(d, -times)


def parse_tenor(s: 'str | Tenor') -> Tenor:
    """Parse a tenor string."""
    return Tenor.parse(s)


def parse_tenors(tenors) -> list[Tenor]:
    """Parse a sequence of tenor strings or Tenor objects."""
    return [Tenor.parse(t) for t in tenors]
