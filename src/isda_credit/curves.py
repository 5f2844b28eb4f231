"""
ISDA-compliant yield and credit curves.

Both curves are piecewise linear in r(t)·t between knots, which is flat
forward (piecewise constant instantaneous rate) interpolation:

- discount factor / survival probability: exp(-r(t) * t)
- before the first knot the zero rate is held at r[0]
- after the last knot the forward rate of the last segment is extended

Curves are immutable. Bumping a knot returns a new curve that shares the
(read-only) knot times with the original and owns its own rates.
"""

import math

import numpy as np


def _frozen(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


class IsdaCompliantCurve:
    """
    Curve defined by knot times and continuously compounded zero rates.

    Args:
        t: Knot times in years, strictly ascending, t[0] >= 0
        r: Zero rates at the knots

    Raises
        ValueError: On empty, mismatched or non-ascending knots
    """

    def __init__(self, t, r):
        t = np.atleast_1d(np.asarray(t, dtype=float))
        r = np.atleast_1d(np.asarray(r, dtype=float))
        if len(t) == 0:
            raise ValueError('Curve requires at least one knot')
        if len(t) != len(r):
            raise ValueError(f'Times and rates differ in length: {len(t)} != {len(r)}')
        if t[0] < 0:
            raise ValueError(f'First knot time must be non-negative, got {t[0]}')
        if np.any(np.diff(t) <= 0):
            raise ValueError(f'Knot times must be strictly ascending: {t}')
        self._t = _frozen(t)
        self._r = _frozen(r)
        self._rt = _frozen(r * t)

    @classmethod
    def _make(cls, t: np.ndarray, r: np.ndarray) -> 'IsdaCompliantCurve':
        # t is already validated and frozen, so it can be shared
        curve = object.__new__(cls)
        curve._t = t
        curve._r = _frozen(r)
        curve._rt = _frozen(curve._r * t)
        return curve

    @classmethod
    def from_rt(cls, t, rt) -> 'IsdaCompliantCurve':
        """Build a curve from knot times and r·t values (t[0] > 0)."""
        t = np.asarray(t, dtype=float)
        rt = np.asarray(rt, dtype=float)
        if len(t) == 0 or t[0] <= 0:
            raise ValueError('from_rt requires a first knot time > 0')
        return cls(t, rt / t)

    @classmethod
    def from_forward_rates(cls, t, forward_rates) -> 'IsdaCompliantCurve':
        """Build a curve whose forward rate is forward_rates[i] on (t[i-1], t[i]]."""
        t = np.asarray(t, dtype=float)
        f = np.asarray(forward_rates, dtype=float)
        if len(t) != len(f):
            raise ValueError(f'Times and forward rates differ in length: {len(t)} != {len(f)}')
        dt = np.diff(t, prepend=0.0)
        return cls.from_rt(t, np.cumsum(f * dt))

    @classmethod
    def flat(cls, rate: float, t: float = 1.0) -> 'IsdaCompliantCurve':
        """A single knot curve, flat at rate."""
        return cls([t], [rate])

    # Knots

    @property
    def knot_times(self) -> np.ndarray:
        return self._t

    @property
    def zero_rates(self) -> np.ndarray:
        """Zero rates at the knots."""
        return self._r

    @property
    def rt_values(self) -> np.ndarray:
        return self._rt

    @property
    def num_knots(self) -> int:
        return len(self._t)

    def get_time(self, index: int) -> float:
        return float(self._t[index])

    def get_zero_rate_at_index(self, index: int) -> float:
        return float(self._r[index])

    def _segment(self, t: float) -> tuple[int, bool]:
        """Index of the knot at or after t (last knot beyond the curve)
        and whether t falls exactly on it. Only valid for t > t[0]."""
        idx = int(np.searchsorted(self._t, t))
        n = len(self._t)
        if idx < n and self._t[idx] == t:
            return idx, True
        return min(idx, n - 1), False

    # Values

    def rt(self, t: float) -> float:
        """r(t)·t, the negative log of the discount factor."""
        if t <= self._t[0] or len(self._t) == 1:
            return float(self._r[0] * t)
        idx, exact = self._segment(t)
        if exact:
            return float(self._rt[idx])
        t1, t2 = self._t[idx - 1], self._t[idx]
        return float(((t2 - t) * self._rt[idx - 1] + (t - t1) * self._rt[idx]) / (t2 - t1))

    def zero_rate(self, t: float) -> float:
        """
        Continuously compounded zero rate at time t.

        Raises
            ValueError: If t is negative
        """
        if t < 0:
            raise ValueError(f'Time must be non-negative, got {t}')
        if t <= self._t[0]:
            return float(self._r[0])
        return self.rt(t) / t

    def forward_rate(self, t: float) -> float:
        """Instantaneous forward rate at t, using the segment to the left at a knot."""
        if t <= self._t[0] or len(self._t) == 1:
            return float(self._r[0])
        idx, _ = self._segment(t)
        return float((self._rt[idx] - self._rt[idx - 1]) / (self._t[idx] - self._t[idx - 1]))

    def discount_factor(self, t: float) -> float:
        """
        exp(-r(t)·t), in (0, 1] for non-negative rates.

        Raises
            ValueError: If t is negative
        """
        if t < 0:
            raise ValueError(f'Time must be non-negative, got {t}')
        return math.exp(-self.rt(t))

    # Node sensitivities

    def _check_node(self, node: int) -> None:
        if not 0 <= node < len(self._t):
            raise ValueError(f'Node {node} out of range [0, {len(self._t)})')

    def rt_and_sensitivity(self, t: float, node: int) -> tuple[float, float]:
        """r(t)·t and its derivative with respect to the zero rate at node."""
        self._check_node(node)
        if len(self._t) == 1 or t <= self._t[0]:
            return float(self._r[0] * t), (t if node == 0 else 0.0)
        idx, exact = self._segment(t)
        if exact:
            return float(self._rt[idx]), (t if node == idx else 0.0)
        t1, t2 = self._t[idx - 1], self._t[idx]
        dt = t2 - t1
        w1 = (t2 - t) / dt
        w2 = (t - t1) / dt
        value = float(w1 * self._rt[idx - 1] + w2 * self._rt[idx])
        if node == idx:
            return value, float(t2 * w2)
        if node == idx - 1:
            return value, float(t1 * w1)
        return value, 0.0

    def single_node_sensitivity(self, t: float, node: int) -> float:
        """d r(t) / d r[node]."""
        self._check_node(node)
        if t <= self._t[0]:
            return 1.0 if node == 0 else 0.0
        return self.rt_and_sensitivity(t, node)[1] / t

    def single_node_discount_factor_sensitivity(self, t: float, node: int) -> float:
        """d exp(-r(t)·t) / d r[node]."""
        value, sense = self.rt_and_sensitivity(t, node)
        return -sense * math.exp(-value)

    def node_sensitivity(self, t: float) -> np.ndarray:
        """Vector of d r(t) / d r[i] over all knots."""
        n = len(self._t)
        res = np.zeros(n)
        if t <= self._t[0] or n == 1:
            res[0] = 1.0
            return res
        idx, exact = self._segment(t)
        if exact:
            res[idx] = 1.0
            return res
        t1, t2 = self._t[idx - 1], self._t[idx]
        dt = t2 - t1
        res[idx - 1] = t1 * (t2 - t) / dt / t
        res[idx] = t2 * (t - t1) / dt / t
        return res

    # Copy-on-bump

    def with_rate(self, rate: float, index: int) -> 'IsdaCompliantCurve':
        """New curve with the zero rate at one knot replaced."""
        self._check_node(index)
        r = self._r.copy()
        r[index] = rate
        return type(self)._make(self._t, r)

    def with_rates(self, rates) -> 'IsdaCompliantCurve':
        """New curve on the same knots with all zero rates replaced."""
        rates = np.asarray(rates, dtype=float)
        if len(rates) != len(self._t):
            raise ValueError(f'Expected {len(self._t)} rates, got {len(rates)}')
        return type(self)._make(self._t, rates)

    def with_discount_factor(self, discount_factor: float, index: int) -> 'IsdaCompliantCurve':
        """New curve with the discount factor at one knot replaced."""
        if discount_factor <= 0:
            raise ValueError(f'Discount factor must be positive, got {discount_factor}')
        self._check_node(index)
        return self.with_rate(-math.log(discount_factor) / self._t[index], index)

    def with_offset(self, offset: float) -> 'IsdaCompliantCurve':
        """
        The same curve seen from a time origin moved by offset.

        Knots at or before a positive offset are dropped. A negative offset
        extends the first segment back at the first zero rate.
        """
        if offset == 0:
            return self
        cls = type(self)
        t, rt = self._t, self._rt
        if offset < t[0]:
            return cls.from_rt(t - offset, rt - self._r[0] * offset)
        if offset >= t[-1]:
            return cls([1.0], [self.forward_rate(t[-1])])
        index = int(np.searchsorted(t, offset, side='right'))
        eta = self.rt(offset)
        return cls.from_rt(t[index:] - offset, rt[index:] - eta)

    def __len__(self) -> int:
        return len(self._t)

    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return np.array_equal(self._t, other._t) and np.array_equal(self._r, other._r)

    __hash__ = None

    def __repr__(self) -> str:
        return f'{type(self).__name__}(t={self._t.tolist()}, r={self._r.tolist()})'


class YieldCurve(IsdaCompliantCurve):
    """
    Zero rate curve for discounting.

    Zero rates are continuously compounded: DF(t) = exp(-r(t) * t)
    """

    @classmethod
    def flat(cls, rate: float, t: float = 20.0) -> 'YieldCurve':
        return cls([t], [rate])

    def forward_discount_factor(self, t1: float, t2: float) -> float:
        """DF(t2) / DF(t1)."""
        return math.exp(self.rt(t1) - self.rt(t2))


class CreditCurve(IsdaCompliantCurve):
    """
    Credit curve for survival probabilities.

    The zero rates are average hazard rates, so the survival probability
    is Q(t) = exp(-h(t) * t) and the hazard rate is flat between knots.
    """

    @property
    def hazard_rates(self) -> np.ndarray:
        """Average hazard rates at the knots."""
        return self._r

    def survival_probability(self, t: float) -> float:
        """
        Calculate the survival probability at time t.

        Q(t) = exp(-h(t) * t)
        """
        return self.discount_factor(t)

    def default_probability(self, t: float) -> float:
        """Cumulative default probability 1 - Q(t)."""
        if t < 0:
            raise ValueError(f'Time must be non-negative, got {t}')
        return -math.expm1(-self.rt(t))

    def hazard_rate(self, t: float) -> float:
        """Instantaneous (forward) hazard rate at t."""
        return self.forward_rate(t)

    def average_hazard_rate(self, t: float) -> float:
        return self.zero_rate(t)

    def forward_survival_probability(self, t1: float, t2: float) -> float:
        """Q(t2) / Q(t1)."""
        return math.exp(self.rt(t1) - self.rt(t2))
