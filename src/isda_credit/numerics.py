"""
Numerical helpers for closed-form leg integration.

The premium and protection legs are integrated analytically between
consecutive knots of the yield and credit curves. Two things are needed
for that: the merged set of integration points, and the functions
epsilon, epsilon_p and epsilon_pp which replace expressions of the form
(exp(x) - 1) / x that are 0/0 at x = 0.
"""

from math import expm1, factorial

import numpy as np

# Two knots closer than half a day are treated as the same point.
INTEGRATION_TOL = 1.0 / 730.0

_EPS_COEFFS = [1.0 / factorial(n + 1) for n in range(0, 12)]
_EPS_P_COEFFS = [n / factorial(n + 1) for n in range(1, 21)]
_EPS_PP_COEFFS = [n * (n - 1) / factorial(n + 1) for n in range(2, 28)]


def _series(coeffs: list[float], x: float) -> float:
    total = 0.0
    for c in reversed(coeffs):
        total = total * x + c
    return total


def epsilon(x: float) -> float:
    """(exp(x) - 1) / x, equal to 1 at x = 0."""
    if abs(x) > 1e-5:
        return expm1(x) / x
    return _series(_EPS_COEFFS, x)


def epsilon_p(x: float) -> float:
    """First derivative of epsilon, equal to 1/2 at x = 0."""
    if abs(x) > 0.1:
        return ((x - 1.0) * expm1(x) + x) / (x * x)
    return _series(_EPS_P_COEFFS, x)


def epsilon_pp(x: float) -> float:
    """Second derivative of epsilon, equal to 1/3 at x = 0."""
    if abs(x) > 0.5:
        x2 = x * x
        return (expm1(x) * (x2 - 2.0 * x + 2.0) + x2 - 2.0 * x) / (x2 * x)
    return _series(_EPS_PP_COEFFS, x)


def _different(a: float, b: float) -> bool:
    return abs(a - b) > INTEGRATION_TOL


def truncate_set_exclusive(lower: float, upper: float, values) -> np.ndarray:
    """Sorted values strictly between lower and upper."""
    values = np.asarray(values, dtype=float)
    return values[(values > lower) & (values < upper)]


def truncate_set_inclusive(lower: float, upper: float, values) -> np.ndarray:
    """
    Points of a sorted set inside [lower, upper], with both ends included.

    A set point within INTEGRATION_TOL of an end is replaced by that end.
    """
    inner = list(truncate_set_exclusive(lower, upper, values))
    if not inner:
        return np.array([lower, upper])
    if _different(lower, inner[0]):
        inner.insert(0, lower)
    else:
        inner[0] = lower
    if _different(upper, inner[-1]):
        inner.append(upper)
    else:
        inner[-1] = upper
    return np.array(inner)


def integration_points(start: float, end: float, set_a, set_b) -> np.ndarray:
    """
    Merge two knot sets into the integration points between start and end.

    Args:
        start: First point, always kept
        end: Last point, always kept
        set_a: Knot times of the first curve
        set_b: Knot times of the second curve

    Returns
        Ascending points from start to end, none closer than INTEGRATION_TOL
    """
    combined = np.sort(np.concatenate([
        truncate_set_exclusive(start, end, set_a),
        truncate_set_exclusive(start, end, set_b),
    ]))
    points = [start]
    for p in combined:
        if _different(p, points[-1]):
            points.append(float(p))
    if _different(end, points[-1]):
        points.append(end)
    else:
        points[-1] = end
    return np.array(points)
