"""
CDS quote conventions.

A CDS can be quoted three ways:

- ParSpread: the coupon that gives the CDS zero clean PV
- QuotedSpread: a standard-coupon CDS quoted as the flat-curve spread
  equivalent to its upfront payment
- PointsUpFront: a standard-coupon CDS quoted as the upfront payment per
  unit notional
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CdsQuote:
    """Base of all quote conventions; coupon is the running coupon."""

    coupon: float


@dataclass(frozen=True)
class ParSpread(CdsQuote):
    """Par spread quote, the running coupon is the spread itself."""

    @property
    def spread(self) -> float:
        return self.coupon


@dataclass(frozen=True)
class QuotedSpread(CdsQuote):
    """Standard coupon plus the flat-curve spread that gives the same upfront."""

    quoted_spread: float


@dataclass(frozen=True)
class PointsUpFront(CdsQuote):
    """Standard coupon plus the upfront payment as a fraction of notional."""

    puf: float
