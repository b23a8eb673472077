"""
general_root_solvers.py
=======================
One-dimensional root solvers used to invert density relations.

Solvers:
    RootHybrids: derivative-free Powell hybrid method (MINPACK hybrd via
        scipy.optimize.root). Primary solver; needs only a starting point.
    RootBrent: Brent's method (scipy.optimize.brentq). Bracketing fallback;
        needs a sign change.

Both return (x, status). status is 0 on success; otherwise a GSL-style
code from general_errors. Whether non-convergence also raises is decided per
call with `raise_on_failure` (None falls back to the solver's `err_nonconv`).
"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional, Tuple

import numpy as np
from scipy.optimize import brentq, root

from general_errors import (SUCCESS, EXC_EFAILED, EXC_EMAXITER,
                            ConvergenceError, status_name)

logger = logging.getLogger(__name__)


class RootSolver(ABC):
    """
    Interface for scalar root solvers.

    Attributes:
        ntrial: Maximum number of iterations / function evaluations
        tol_rel: Relative tolerance on x
        tol_abs: Absolute tolerance (on x for bracketing, on f(x) otherwise)
        err_nonconv: Default for raise_on_failure
    """

    def __init__(self, ntrial: int = 100, tol_rel: float = 1.0e-10,
                 tol_abs: float = 1.0e-8, err_nonconv: bool = True):
        self.ntrial = ntrial
        self.tol_rel = tol_rel
        self.tol_abs = tol_abs
        self.err_nonconv = err_nonconv

    @abstractmethod
    def solve(self, x0: float, func: Callable[[float], float],
              raise_on_failure: Optional[bool] = None) -> Tuple[float, int]:
        """Find a root starting from x0."""

    @abstractmethod
    def solve_bkt(self, x1: float, x2: float, func: Callable[[float], float],
                  raise_on_failure: Optional[bool] = None) -> Tuple[float, int]:
        """Find a root inside the bracket [x1, x2]."""

    def _finish(self, x, status, message, raise_on_failure):
        if status != SUCCESS:
            should_raise = self.err_nonconv if raise_on_failure is None else raise_on_failure
            if should_raise:
                raise ConvergenceError(f"{type(self).__name__}: {message}", status)
            logger.debug("%s did not converge (%s): %s", type(self).__name__,
                         status_name(status), message)
        return x, status


# =============================================================================
# PRIMARY SOLVER: POWELL HYBRID
# =============================================================================
class RootHybrids(RootSolver):
    """Derivative-free hybrid solver (scipy.optimize.root, method='hybr')."""

    def solve(self, x0, func, raise_on_failure=None):
        """
        Find a root starting from x0.

        Convergence requires MINPACK success, a finite root and
        |func(x)| <= tol_abs.
        """
        def vec_func(v):
            return [func(float(v[0]))]

        sol = root(vec_func, [float(x0)], method="hybr", tol=self.tol_rel,
                   options={"maxfev": self.ntrial})
        x = float(sol.x[0])
        fx = float(np.asarray(sol.fun).reshape(-1)[0])

        if not np.isfinite(x) or not np.isfinite(fx):
            return self._finish(x, EXC_EFAILED, f"non-finite iterate x={x}, f={fx}",
                                raise_on_failure)
        if not sol.success:
            # status 2: maxfev reached
            status = EXC_EMAXITER if sol.status == 2 else EXC_EFAILED
            if abs(fx) <= self.tol_abs:
                return x, SUCCESS
            return self._finish(x, status, f"{sol.message} (x={x}, f={fx})", raise_on_failure)
        if abs(fx) > self.tol_abs:
            return self._finish(x, EXC_EFAILED, f"residual {fx} above tolerance at x={x}",
                                raise_on_failure)
        return x, SUCCESS

    def solve_bkt(self, x1, x2, func, raise_on_failure=None):
        """Start the hybrid iteration from the bracket midpoint."""
        return self.solve(0.5 * (x1 + x2), func, raise_on_failure)


# =============================================================================
# BRACKETING SOLVER: BRENT
# =============================================================================
class RootBrent(RootSolver):
    """
    Brent's method (scipy.optimize.brentq).

    Attributes:
        bracket_step: Initial half width used by solve() to search for a
            bracket around the starting point
    """

    def __init__(self, ntrial: int = 100, tol_rel: float = 1.0e-10,
                 tol_abs: float = 1.0e-12, err_nonconv: bool = True,
                 bracket_step: float = 1.0):
        super().__init__(ntrial=ntrial, tol_rel=tol_rel, tol_abs=tol_abs,
                         err_nonconv=err_nonconv)
        self.bracket_step = bracket_step

    def solve_bkt(self, x1, x2, func, raise_on_failure=None):
        f1 = func(x1)
        f2 = func(x2)
        if f1 == 0.0:
            return x1, SUCCESS
        if f2 == 0.0:
            return x2, SUCCESS
        if not (np.isfinite(f1) and np.isfinite(f2)) or np.sign(f1) == np.sign(f2):
            return self._finish(0.5 * (x1 + x2), EXC_EFAILED,
                                f"no sign change in [{x1}, {x2}] (f={f1}, {f2})",
                                raise_on_failure)

        x, info = brentq(func, x1, x2, xtol=self.tol_abs, rtol=max(self.tol_rel, 4.0 * np.finfo(float).eps),
                         maxiter=self.ntrial, full_output=True, disp=False)
        if not info.converged:
            return self._finish(float(x), EXC_EMAXITER, info.flag, raise_on_failure)
        return float(x), SUCCESS

    def solve(self, x0, func, raise_on_failure=None):
        """Widen [x0 - h, x0 + h] geometrically until it brackets a root, then bisect."""
        step = self.bracket_step * max(1.0, abs(x0))
        f0 = func(x0)
        if f0 == 0.0:
            return float(x0), SUCCESS
        for _ in range(self.ntrial):
            for x in (x0 - step, x0 + step):
                fx = func(x)
                if np.isfinite(fx) and np.isfinite(f0) and np.sign(fx) != np.sign(f0):
                    lo, hi = sorted((x0, x))
                    return self.solve_bkt(lo, hi, func, raise_on_failure)
            step *= 2.0
        return self._finish(float(x0), EXC_EMAXITER,
                            f"no bracket found around x0={x0}", raise_on_failure)


if __name__ == "__main__":
    print("Root solvers")
    print("=" * 50)
    f = lambda x: x**3 - 2.0 * x - 5.0
    print(f"  hybrids: {RootHybrids().solve(2.0, f)}")
    print(f"  brent (bracket): {RootBrent().solve_bkt(2.0, 3.0, f)}")
    print(f"  brent (search):  {RootBrent().solve(0.0, f)}")
    print(f"  no root, no raise: {RootHybrids().solve(1.0, lambda x: x*x + 1.0, raise_on_failure=False)}")
