"""
Trades and curve instrument sets for trade-level CS01.

A trade adds the direction, notional and (for indices) the outstanding
index factor to a CdsAnalytic. CurveInstruments is the set of par-spread
quoted CDSs a credit curve is calibrated to, and labels the buckets of a
bucketed CS01.
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from .cds import CdsAnalytic
from .tenor import Tenor


class _Trade:
    notional: float
    buy: bool
    index_factor: float

    def _check_notional(self):
        if self.notional <= 0:
            raise ValueError(f'Notional must be positive, got {self.notional}')

    @property
    def sign(self) -> float:
        """+1 for a protection buyer, -1 for a seller."""
        return 1.0 if self.buy else -1.0

    @property
    def scale(self) -> float:
        """Multiplier from a per unit notional value to the trade's value."""
        return self.sign * self.notional * self.index_factor


@dataclass(frozen=True)
class CdsTrade(_Trade):
    """
    A single name CDS trade.

    Attributes
        cds: The CDS
        coupon: Running coupon as a decimal
        notional: Trade notional, positive
        buy: True when buying protection
    """

    cds: CdsAnalytic
    coupon: float
    notional: float
    buy: bool = True

    def __post_init__(self):
        self._check_notional()

    @property
    def index_factor(self) -> float:
        return 1.0


@dataclass(frozen=True)
class CdsIndexTrade(_Trade):
    """
    A homogeneous CDS index trade, priced as its single name equivalent
    scaled by the index factor.

    Attributes
        cds: The index CDS
        coupon: Running coupon as a decimal
        notional: Original index notional, positive
        index_factor: Outstanding fraction of the original notional, in (0, 1]
        buy: True when buying protection
    """

    cds: CdsAnalytic
    coupon: float
    notional: float
    index_factor: float
    buy: bool = True

    def __post_init__(self):
        self._check_notional()
        if not 0.0 < self.index_factor <= 1.0:
            raise ValueError(f'Index factor must be in (0, 1], got {self.index_factor}')


class CurveInstruments:
    """
    Par spread quoted CDSs a credit curve is calibrated to.

    Args:
        pillars: Calibration CDSs in ascending maturity order
        par_spreads: Par spread of each CDS
        tenors: Optional tenor of each CDS, used as bucket labels

    Raises
        ValueError: On mismatched lengths or non-ascending maturities
    """

    def __init__(self, pillars: Sequence[CdsAnalytic], par_spreads, tenors: Sequence[Tenor | str] | None = None):
        self.pillars = tuple(pillars)
        self.par_spreads = np.array(par_spreads, dtype=float)
        self.par_spreads.setflags(write=False)
        n = len(self.pillars)
        if n == 0:
            raise ValueError('At least one curve instrument is required')
        if len(self.par_spreads) != n:
            raise ValueError(f'Expected {n} par spreads, got {len(self.par_spreads)}')
        if tenors is not None and len(tenors) != n:
            raise ValueError(f'Expected {n} tenors, got {len(tenors)}')
        t = np.array([p.protection_end for p in self.pillars])
        if np.any(np.diff(t) <= 0):
            raise ValueError('Curve instrument maturities must be strictly ascending')
        self.tenors = None if tenors is None else tuple(Tenor.parse(x) for x in tenors)

    def __len__(self) -> int:
        return len(self.pillars)

    @property
    def labels(self) -> tuple[str, ...]:
        """Tenors when given, otherwise the maturity dates."""
        if self.tenors is not None:
            return tuple(str(x) for x in self.tenors)
        return tuple(str(p.maturity_date) for p in self.pillars)


class CurveParameterSensitivity:
    """
    Sensitivity to each parameter of a curve, labelled by parameter.

    Args:
        labels: One label per parameter
        values: One sensitivity per parameter
    """

    def __init__(self, labels: Sequence[str], values):
        values = np.array(values, dtype=float)
        if len(labels) != len(values):
            raise ValueError(f'Expected {len(labels)} values, got {len(values)}')
        values.setflags(write=False)
        self.labels = tuple(labels)
        self.values = values

    def total(self) -> float:
        return float(np.sum(self.values))

    def multiplied_by(self, factor: float) -> 'CurveParameterSensitivity':
        return CurveParameterSensitivity(self.labels, self.values * factor)

    def get(self, label: str) -> float:
        """Sensitivity of the parameter with the given label."""
        try:
            return float(self.values[self.labels.index(label)])
        except ValueError:
            raise KeyError(label) from None

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        body = ', '.join(f'{k}: {v:.6g}' for k, v in zip(self.labels, self.values))
        return f'CurveParameterSensitivity({body})'
