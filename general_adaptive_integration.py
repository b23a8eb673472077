"""
general_adaptive_integration.py
===============================
Adaptive one-dimensional integration with embedded Gauss-Legendre rules.

Each interval is integrated with a 5-point and a 6-point Gauss-Legendre rule;
the 6-point value is the estimate and |G6 - G5| its error. The interval with
the largest error is bisected until the combined error

    err = sqrt(2 Σ err_i²)

satisfies err <= tol_abs or err <= tol_rel*|value|, or until `nsub`
intervals exist (CERNLIB RADAPT scheme).

Infinite ranges are mapped onto t ∈ (0, 1]:
    [a, ∞):   x = a + (1-t)/t,  dx = dt/t²
    (-∞, b]:  x = b - (1-t)/t,  dx = dt/t²
    (-∞, ∞):  x = (1-t)/t, integrand (f(x) + f(-x))/t²

The working precision is selected with `dtype` (np.float64 or
np.longdouble); nodes and weights are parsed from decimal strings at that
precision.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Tuple

import numpy as np

from general_errors import SUCCESS, EXC_EMAXITER, status_name

logger = logging.getLogger(__name__)

# =============================================================================
# GAUSS-LEGENDRE NODES AND WEIGHTS (positive half, 28 significant digits)
# =============================================================================
_GAUSS5_X = ("0.0",
             "0.5384693101056830910363144207",
             "0.9061798459386639927976268782")
_GAUSS5_W = ("0.5688888888888888888888888889",
             "0.4786286704993664680412915148",
             "0.2369268850561890875142640407")
_GAUSS6_X = ("0.2386191860831969086305017216",
             "0.6612093864662645136613995950",
             "0.9324695142031520278123015545")
_GAUSS6_W = ("0.4679139345726910473898703440",
             "0.3607615730481386075698335138",
             "0.1713244923791703450402961421")


@dataclass
class Subdivision:
    """One interval of the final adaptive partition."""
    low: float
    high: float
    value: float
    error: float


# =============================================================================
# INTEGRATOR INTERFACE
# =============================================================================
class Integrator(ABC):
    """
    One-dimensional integrator interface.

    Engines hold integrators by reference; any object implementing
    integ_err can be injected (see set_inte on the relativistic engines).
    """

    def __init__(self):
        self.status = SUCCESS

    @abstractmethod
    def integ_err(self, func: Callable, a: float, b: float) -> Tuple[float, float]:
        """Integrate func over [a, b], returning (value, error estimate)."""

    def integ(self, func: Callable, a: float, b: float) -> float:
        """Integrate func over [a, b], returning only the value."""
        return self.integ_err(func, a, b)[0]


# =============================================================================
# ADAPTIVE GAUSS 5/6 INTEGRATOR
# =============================================================================
class InteAdaptCern(Integrator):
    """
    Adaptive Gauss 5/6-point integrator (finite and infinite ranges).

    Attributes:
        nsub: Maximum number of subintervals
        nsubdiv: Number of equal subintervals to start from
        tol_rel: Relative tolerance
        tol_abs: Absolute tolerance
        dtype: Working floating-point type
    """

    def __init__(self, nsub: int = 100, tol_rel: float = 1.0e-8,
                 tol_abs: float = 1.0e-8, nsubdiv: int = 1, dtype=np.float64):
        super().__init__()
        if nsub < 1 or nsubdiv < 1:
            raise ValueError("nsub and nsubdiv must be at least 1")
        self.nsub = nsub
        self.nsubdiv = nsubdiv
        self.tol_rel = tol_rel
        self.tol_abs = tol_abs
        self.dtype = np.dtype(dtype).type
        self._x5 = [self.dtype(s) for s in _GAUSS5_X]
        self._w5 = [self.dtype(s) for s in _GAUSS5_W]
        self._x6 = [self.dtype(s) for s in _GAUSS6_X]
        self._w6 = [self.dtype(s) for s in _GAUSS6_W]
        self.subdivisions: List[Subdivision] = []

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------
    def integ_err(self, func: Callable, a: float, b: float) -> Tuple[float, float]:
        """
        Integrate func over [a, b]; either bound may be infinite.

        Args:
            func: Integrand taking and returning a scalar of `dtype`
            a: Lower bound (may be -inf)
            b: Upper bound (may be +inf)

        Returns:
            (value, error estimate). On budget exhaustion the best estimate is
            returned and self.status is set to EXC_EMAXITER.
        """
        one = self.dtype(1)
        a = self.dtype(a)
        b = self.dtype(b)

        if np.isnan(a) or np.isnan(b):
            raise ValueError("integration bounds must not be NaN")
        if a == b:
            self.subdivisions = []
            self.status = SUCCESS
            return self.dtype(0), self.dtype(0)
        if a > b:
            value, error = self.integ_err(func, b, a)
            return -value, error

        a_inf = np.isinf(a)
        b_inf = np.isinf(b)
        if not a_inf and not b_inf:
            return self._adapt(func, a, b)

        def tail(t):
            return (one - t) / t

        if a_inf and b_inf:
            def mapped(t):
                x = tail(t)
                return (func(x) + func(-x)) / (t * t)
        elif b_inf:
            def mapped(t):
                return func(a + tail(t)) / (t * t)
        else:
            def mapped(t):
                return func(b - tail(t)) / (t * t)
        return self._adapt(mapped, self.dtype(0), one)

    def get_nsubdivisions(self) -> int:
        """Number of subintervals used by the last integration."""
        return len(self.subdivisions)

    def get_subdivisions(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Subintervals of the last integration, ordered by lower bound.

        For infinite ranges the bounds refer to the mapped variable t.

        Returns:
            (low, high, value, error) arrays of `dtype`
        """
        ordered = sorted(self.subdivisions, key=lambda s: s.low)
        return tuple(np.array([getattr(s, name) for s in ordered], dtype=self.dtype)
                     for name in ("low", "high", "value", "error"))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------
    def _gauss56(self, func, lo, hi):
        """6-point estimate and |G6 - G5| on [lo, hi]."""
        two = self.dtype(2)
        c = (hi + lo) / two
        h = (hi - lo) / two
        x5, w5, x6, w6 = self._x5, self._w5, self._x6, self._w6

        s5 = w5[0] * func(c)
        for i in (1, 2):
            s5 += w5[i] * (func(c - h * x5[i]) + func(c + h * x5[i]))
        s6 = self.dtype(0)
        for i in (0, 1, 2):
            s6 += w6[i] * (func(c - h * x6[i]) + func(c + h * x6[i]))
        return h * s6, abs(h * (s6 - s5))

    def _adapt(self, func, a, b):
        width = (b - a) / self.dtype(self.nsubdiv)
        parts = []
        for i in range(self.nsubdiv):
            lo = a + width * self.dtype(i)
            hi = b if i == self.nsubdiv - 1 else a + width * self.dtype(i + 1)
            value, error = self._gauss56(func, lo, hi)
            parts.append(Subdivision(lo, hi, value, error))

        self.status = SUCCESS
        while True:
            total = sum((s.value for s in parts), self.dtype(0))
            err2 = sum((s.error * s.error for s in parts), self.dtype(0))
            total_err = np.sqrt(self.dtype(2) * err2)
            if total_err <= self.tol_abs or total_err <= self.tol_rel * abs(total):
                break
            if len(parts) >= self.nsub:
                self.status = EXC_EMAXITER
                logger.warning(
                    "Adaptive integration over [%s, %s] stopped after %d subintervals "
                    "(%s): value=%s, error=%s", a, b, len(parts),
                    status_name(self.status), total, total_err)
                break

            worst = max(range(len(parts)), key=lambda i: parts[i].error)
            lo, hi = parts[worst].low, parts[worst].high
            mid = (lo + hi) / self.dtype(2)
            v1, e1 = self._gauss56(func, lo, mid)
            v2, e2 = self._gauss56(func, mid, hi)
            parts[worst] = Subdivision(lo, mid, v1, e1)
            parts.append(Subdivision(mid, hi, v2, e2))

        self.subdivisions = parts
        return total, total_err


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    def oscillating(x, a=0.01):
        return -np.cos(1.0 / (x + a)) / (a + x)**2

    exact = np.sin(1.0 / 1.01) - np.sin(1.0 / 0.01)
    it = InteAdaptCern()
    val, err = it.integ_err(oscillating, 0.0, 1.0)
    print("Adaptive Gauss 5/6 integration")
    print("=" * 50)
    print(f"  value = {val:.15e}  exact = {exact:.15e}")
    print(f"  error estimate = {err:.3e}, subintervals = {it.get_nsubdivisions()}")

    itl = InteAdaptCern(dtype=np.longdouble)
    vall, errl = itl.integ_err(
        lambda x: oscillating(x, np.longdouble("0.01")), 0, 1)
    print(f"  long double: {vall}  (error {errl}), subintervals = {itl.get_nsubdivisions()}")

    val_inf, err_inf = it.integ_err(lambda x: np.exp(-x * x), -np.inf, np.inf)
    print(f"  ∫ exp(-x²) = {val_inf:.15f}  (√π = {np.sqrt(np.pi):.15f})")
