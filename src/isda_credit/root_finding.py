"""
Root finding algorithms for curve bootstrapping.

Credit curve calibration brackets each pillar's root first and then runs
a Newton-Raphson iteration safeguarded by bisection, so that an analytic
derivative is used where it helps and the bracket guarantees convergence.
Yield curve bootstrapping uses Brent's method.
"""

import logging
from collections.abc import Callable

from .exceptions import ConvergenceError

logger = logging.getLogger(__name__)

# Geometric expansion factor used when searching for a bracket
BRACKET_RATIO = 1.6


def bracket_root(
    f: Callable[[float], float],
    x1: float,
    x2: float,
    min_x: float = float('-inf'),
    max_x: float = float('inf'),
    max_steps: int = 50,
) -> tuple[float, float]:
    """
    Expand [x1, x2] until f changes sign across it.

    Args:
        f: Function to bracket
        x1: Initial lower point
        x2: Initial upper point, must exceed x1
        min_x: The lower point never goes below this
        max_x: The upper point never goes above this
        max_steps: Maximum number of expansions

    Returns
        (lower, upper) with f(lower) * f(upper) <= 0

    Raises
        ConvergenceError: If no bracket is found within the limits
    """
    if not x2 > x1:
        raise ValueError(f'Require x2 > x1, got x1={x1}, x2={x2}')
    x1 = max(x1, min_x)
    x2 = min(x2, max_x)
    f1 = f(x1)
    f2 = f(x2)
    lower_limit = x1 == min_x
    upper_limit = x2 == max_x

    for _ in range(max_steps):
        if f1 * f2 <= 0:
            return x1, x2
        if lower_limit and upper_limit:
            break
        if (abs(f1) < abs(f2) and not lower_limit) or upper_limit:
            x1 += BRACKET_RATIO * (x1 - x2)
            if x1 <= min_x:
                x1 = min_x
                lower_limit = True
            f1 = f(x1)
        else:
            x2 += BRACKET_RATIO * (x2 - x1)
            if x2 >= max_x:
                x2 = max_x
                upper_limit = True
            f2 = f(x2)
        logger.debug('Expanded bracket to [%s, %s]', x1, x2)

    raise ConvergenceError(
        f'Failed to bracket root: f({x1})={f1}, f({x2})={f2}'
    )


def newton_raphson(
    f: Callable[[float], float],
    df: Callable[[float], float],
    lower: float,
    upper: float,
    x0: float | None = None,
    tol: float = 1e-14,
    max_iter: int = 100,
) -> float:
    """
    Find a bracketed root with Newton-Raphson, falling back to bisection.

    A Newton step that would leave the bracket, or that is not shrinking
    fast enough, is replaced by a bisection step, so the iteration never
    diverges.

    Args:
        f: Function to find root of
        df: Derivative of f
        lower: Lower end of the bracket
        upper: Upper end of the bracket
        x0: Starting point inside the bracket (default: midpoint)
        tol: Relative step size at which the iteration stops
        max_iter: Maximum iterations

    Returns
        x such that f(x) ≈ 0

    Raises
        ConvergenceError: If f does not change sign over the bracket, or
            max_iter exceeded
    """
    f_lo = f(lower)
    if f_lo == 0.0:
        return lower
    f_hi = f(upper)
    if f_hi == 0.0:
        return upper
    if f_lo * f_hi > 0:
        raise ConvergenceError(
            f'Function values at bounds must have opposite signs: '
            f'f({lower})={f_lo}, f({upper})={f_hi}'
        )

    # x_neg always has f < 0, x_pos has f > 0
    x_neg, x_pos = (lower, upper) if f_lo < 0 else (upper, lower)

    x = 0.5 * (lower + upper) if x0 is None or not min(lower, upper) < x0 < max(lower, upper) else x0
    dx_old = abs(upper - lower)
    dx = dx_old
    fx = f(x)
    dfx = df(x)

    for _ in range(max_iter):
        if fx == 0.0:
            return x
        newton_out_of_range = ((x - x_pos) * dfx - fx) * ((x - x_neg) * dfx - fx) > 0
        if newton_out_of_range or abs(2.0 * fx) > abs(dx_old * dfx):
            dx_old = dx
            dx = 0.5 * (x_pos - x_neg)
            x = x_neg + dx
            if x == x_neg:
                return x
        else:
            dx_old = dx
            dx = fx / dfx
            prev = x
            x -= dx
            if x == prev:
                return x
        if abs(dx) < tol * max(1.0, abs(x)):
            return x
        fx = f(x)
        dfx = df(x)
        if fx < 0:
            x_neg = x
        else:
            x_pos = x

    raise ConvergenceError(f'Newton-Raphson did not converge in {max_iter} iterations')


def brent(
    f: Callable[[float], float],
    a: float,
    b: float,
    tol: float = 1e-12,
    max_iter: int = 100,
) -> float:
    """
    Find a root of f using Brent's method.

    Brent's method combines bisection, secant method, and inverse quadratic
    interpolation for guaranteed convergence with superlinear speed.

    Args:
        f: Function to find root of
        a: Lower bound of search interval (f(a) and f(b) must have opposite signs)
        b: Upper bound of search interval
        tol: Tolerance for convergence
        max_iter: Maximum number of iterations

    Returns
        x such that f(x) ≈ 0

    Raises
        ConvergenceError: If f(a) and f(b) have the same sign, or max_iter exceeded
    """
    fa = f(a)
    fb = f(b)

    if fa * fb > 0:
        raise ConvergenceError(
            f'Function values at bounds must have opposite signs: '
            f'f({a})={fa}, f({b})={fb}'
        )

    if abs(fa) < abs(fb):
        a, b = b, a
        fa, fb = fb, fa

    c, fc = a, fa
    mflag = True
    d = 0.0

    for _ in range(max_iter):
        if fb == 0.0 or abs(b - a) < tol:
            return b

        if fc not in {fa, fb}:
            # Inverse quadratic interpolation
            s = (
                a * fb * fc / ((fa - fb) * (fa - fc))
                + b * fa * fc / ((fb - fa) * (fb - fc))
                + c * fa * fb / ((fc - fa) * (fc - fb))
            )
        else:
            # Secant
            s = b - fb * (b - a) / (fb - fa)

        use_bisection = (
            not ((3 * a + b) / 4 < s < b or b < s < (3 * a + b) / 4)
            or (mflag and abs(s - b) >= abs(b - c) / 2)
            or (not mflag and abs(s - b) >= abs(c - d) / 2)
            or (mflag and abs(b - c) < tol)
            or (not mflag and abs(c - d) < tol)
        )
        if use_bisection:
            s = (a + b) / 2
        mflag = use_bisection

        fs = f(s)
        d, c, fc = c, b, fb

        if fa * fs < 0:
            b, fb = s, fs
        else:
            a, fa = s, fs

        if abs(fa) < abs(fb):
            a, b = b, a
            fa, fb = fb, fa

    raise ConvergenceError(f"Brent's method did not converge in {max_iter} iterations")
