"""
general_cubature.py
===================
Adaptive multidimensional integration of vector-valued integrands over
hyperrectangles.

Methods:
    1. h-adaptive (InteHCubature): global subdivision. Each region is
       integrated with the Genz-Malik degree 7/5 rule (dim >= 2) or the
       Gauss-Kronrod 7/15 rule (dim == 1); the region with the largest error
       is bisected along the dimension with the largest fourth difference.
    2. p-adaptive (IntePCubature): tensor-product Clenshaw-Curtis rules with
       nested levels; the dimension with the largest embedded error is
       refined and the reported error is the largest per-dimension embedded
       error. Function values are cached so nested points are evaluated
       once.

Integrands:
    func(x) -> fdim values for one point x of shape (dim,), or, when the
    integrator is constructed with vectorized=True,
    func(X) -> array (npts, fdim) for a batch X of shape (npts, dim).

Reference:
    Genz & Malik, J. Comput. Appl. Math. 6, 295 (1980)
    Berntsen, Espelid & Genz, ACM TOMS 17, 437 (1991)
    Piessens et al., QUADPACK (1983)
"""
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence

import numpy as np

from general_errors import SUCCESS, EXC_EMAXITER, EXC_EROUND, status_name

logger = logging.getLogger(__name__)

_EPS = np.finfo(np.float64).eps


# =============================================================================
# ERROR NORMS AND RESULTS
# =============================================================================
class ErrorNorm(Enum):
    """How the components of a vector integrand are tested for convergence."""
    INDIVIDUAL = 0   # every component separately
    PAIRED = 1       # consecutive pairs as complex numbers
    L2 = 2
    L1 = 3
    LINF = 4


@dataclass
class CubatureResult:
    """Integral estimate of a vector integrand."""
    value: np.ndarray           # (fdim,)
    error: np.ndarray           # (fdim,) error estimates
    status: int = SUCCESS       # 0 on convergence
    n_eval: int = 0             # integrand evaluations (points)

    @property
    def converged(self) -> bool:
        return self.status == SUCCESS


def _within(err, val, abs_tol, rel_tol):
    return err <= abs_tol or err <= abs(val) * rel_tol


def converged(val: np.ndarray, err: np.ndarray, abs_tol: float, rel_tol: float,
              norm: ErrorNorm = ErrorNorm.INDIVIDUAL) -> bool:
    """
    Test a vector estimate against absolute/relative tolerances.

    Args:
        val: Estimated integrals (fdim,)
        err: Error estimates (fdim,)
        abs_tol: Absolute tolerance
        rel_tol: Relative tolerance
        norm: Error norm

    Returns:
        True if err <= abs_tol or err <= rel_tol*|val| in the chosen norm
    """
    val = np.asarray(val, dtype=float)
    err = np.asarray(err, dtype=float)
    if norm is ErrorNorm.INDIVIDUAL:
        return all(_within(e, v, abs_tol, rel_tol) for v, e in zip(val, err))
    if norm is ErrorNorm.PAIRED:
        npairs = len(val) // 2
        for j in range(npairs):
            e = np.hypot(err[2 * j], err[2 * j + 1])
            v = np.hypot(val[2 * j], val[2 * j + 1])
            if not _within(e, v, abs_tol, rel_tol):
                return False
        if len(val) % 2 == 1:
            return _within(err[-1], val[-1], abs_tol, rel_tol)
        return True
    if norm is ErrorNorm.L2:
        return _within(np.sqrt(np.sum(err**2)), np.sqrt(np.sum(val**2)), abs_tol, rel_tol)
    if norm is ErrorNorm.L1:
        return _within(np.sum(np.abs(err)), np.sum(np.abs(val)), abs_tol, rel_tol)
    if norm is ErrorNorm.LINF:
        return _within(np.max(np.abs(err)), np.max(np.abs(val)), abs_tol, rel_tol)
    raise ValueError(f"Unknown error norm: {norm}")


# =============================================================================
# BASE CLASS (point evaluation, argument checks)
# =============================================================================
class _CubatureBase(ABC):
    """
    Shared evaluation machinery.

    Args:
        vectorized: Integrand takes a batch of points (npts, dim)
        use_parallel: Evaluate point batches on a thread pool
        n_workers: Thread count (None lets the executor decide)
    """

    def __init__(self, vectorized: bool = False, use_parallel: bool = False,
                 n_workers: Optional[int] = None):
        self.vectorized = vectorized
        self.use_parallel = use_parallel
        self.n_workers = n_workers

    @abstractmethod
    def integ(self, fdim: int, func: Callable, dim: int,
              xmin: Sequence[float], xmax: Sequence[float], max_eval: int = 0,
              abs_tol: float = 0.0, rel_tol: float = 1.0e-8,
              norm: ErrorNorm = ErrorNorm.INDIVIDUAL) -> CubatureResult:
        """Integrate an fdim-valued function over [xmin, xmax] in dim dimensions."""

    def _check_args(self, fdim, dim, xmin, xmax, max_eval, abs_tol, rel_tol):
        if fdim < 1 or dim < 1:
            raise ValueError(f"fdim and dim must be >= 1 (got fdim={fdim}, dim={dim})")
        xmin = np.asarray(xmin, dtype=float).reshape(-1)
        xmax = np.asarray(xmax, dtype=float).reshape(-1)
        if xmin.size != dim or xmax.size != dim:
            raise ValueError(f"xmin and xmax must have {dim} entries")
        if not (np.all(np.isfinite(xmin)) and np.all(np.isfinite(xmax))):
            raise ValueError("integration limits must be finite")
        if max_eval < 0 or abs_tol < 0 or rel_tol < 0:
            raise ValueError("max_eval and tolerances must be non-negative")
        if max_eval == 0 and abs_tol == 0 and rel_tol == 0:
            raise ValueError("zero tolerances require a positive max_eval")
        return xmin, xmax

    def _evaluate(self, func, points, fdim, pool):
        """Evaluate func on points (npts, dim), returning (npts, fdim)."""
        npts = points.shape[0]
        if self.vectorized:
            if pool is None:
                vals = np.asarray(func(points), dtype=float)
            else:
                chunks = [c for c in np.array_split(points, self._n_chunks(npts)) if len(c)]
                vals = np.concatenate([np.asarray(r, dtype=float).reshape(len(c), fdim)
                                       for c, r in zip(chunks, pool.map(func, chunks))])
        else:
            if pool is None:
                results = [func(p) for p in points]
            else:
                results = list(pool.map(func, points))
            vals = np.array([np.asarray(r, dtype=float).reshape(-1) for r in results])
        return vals.reshape(npts, fdim)

    def _n_chunks(self, npts):
        workers = self.n_workers or 4
        return max(1, min(npts, workers))

    def _executor(self):
        if self.use_parallel:
            return ThreadPoolExecutor(max_workers=self.n_workers)
        return None


# =============================================================================
# H-ADAPTIVE CUBATURE
# =============================================================================
# Gauss-Kronrod 15-point nodes (positive half) and weights, Gauss 7-point
# weights on the odd Kronrod nodes (QUADPACK qk15)
_XGK = np.array([
    0.991455371120812639206854697526329, 0.949107912342758524526189684047851,
    0.864864423359769072789712788640926, 0.741531185599394439863864773280788,
    0.586087235467691130294144845693013, 0.405845151377397166906606412076961,
    0.207784955007898467600689403773245, 0.000000000000000000000000000000000])
_WGK = np.array([
    0.022935322010529224963732008058970, 0.063092092629978553290700663189204,
    0.104790010322250183839876322541518, 0.140653259715525918745189590510238,
    0.169004726639267902826583426598550, 0.190350578064785409913256402421014,
    0.204432940075298892414161999234649, 0.209482141084727828012999174891714])
_WG = np.array([
    0.129484966168869693270611432679082, 0.279705391489276667901467771423780,
    0.381830050505118944950369775488975, 0.417959183673469387755102040816327])


class _GaussKronrod15:
    """1D Gauss-Kronrod 7/15 rule with the QUADPACK error heuristic."""

    npts = 15

    def __init__(self):
        # centre first, then (-x_j, +x_j) pairs
        offs = [0.0]
        for x in _XGK[:7]:
            offs.extend([-x, x])
        self.offsets = np.array(offs).reshape(-1, 1)

    def points(self, center, halfwidth):
        return center + self.offsets * halfwidth

    def apply(self, f, halfwidth):
        h = halfwidth[0]
        fc = f[0]
        f1 = f[1::2][:7]
        f2 = f[2::2][:7]
        resk = _WGK[7] * fc + np.tensordot(_WGK[:7], f1 + f2, axes=1)
        resg = _WG[3] * fc + np.tensordot(_WG[:3], (f1 + f2)[1::2], axes=1)
        reskh = 0.5 * resk
        resabs = _WGK[7] * np.abs(fc) + np.tensordot(_WGK[:7], np.abs(f1) + np.abs(f2), axes=1)
        resasc = (_WGK[7] * np.abs(fc - reskh)
                  + np.tensordot(_WGK[:7], np.abs(f1 - reskh) + np.abs(f2 - reskh), axes=1))
        result = resk * h
        resabs = resabs * abs(h)
        resasc = resasc * abs(h)
        err = np.abs((resk - resg) * h)

        scale = np.ones_like(err)
        mask = (resasc != 0.0) & (err != 0.0)
        scale[mask] = np.minimum(1.0, (200.0 * err[mask] / resasc[mask])**1.5)
        err = np.where(mask, resasc * scale, err)
        floor_mask = resabs > np.finfo(float).tiny / (50.0 * _EPS)
        err = np.where(floor_mask, np.maximum(50.0 * _EPS * resabs, err), err)
        return result, err, 0


class _GenzMalik:
    """Genz-Malik degree 7 rule with embedded degree 5 error estimate (dim >= 2)."""

    lambda2 = np.sqrt(9.0 / 70.0)
    lambda4 = np.sqrt(9.0 / 10.0)
    lambda5 = np.sqrt(9.0 / 19.0)

    def __init__(self, dim):
        d = float(dim)
        self.dim = dim
        self.weight1 = (12824.0 - 9120.0 * d + 400.0 * d * d) / 19683.0
        self.weight2 = 980.0 / 6561.0
        self.weight3 = (1820.0 - 400.0 * d) / 19683.0
        self.weight4 = 200.0 / 19683.0
        self.weight5 = 6859.0 / 19683.0 / 2.0**dim
        self.weightE1 = (729.0 - 950.0 * d + 50.0 * d * d) / 729.0
        self.weightE2 = 245.0 / 486.0
        self.weightE3 = (265.0 - 100.0 * d) / 1458.0
        self.weightE4 = 25.0 / 729.0
        self.ratio = (self.lambda2 / self.lambda4)**2

        eye = np.eye(dim)
        offs = [np.zeros((1, dim)),
                -self.lambda2 * eye, self.lambda2 * eye,
                -self.lambda4 * eye, self.lambda4 * eye]
        pairs = []
        for i, j in itertools.combinations(range(dim), 2):
            for si, sj in itertools.product((-1.0, 1.0), repeat=2):
                p = np.zeros(dim)
                p[i] = si * self.lambda4
                p[j] = sj * self.lambda4
                pairs.append(p)
        offs.append(np.array(pairs).reshape(-1, dim))
        corners = np.array(list(itertools.product((-1.0, 1.0), repeat=dim)))
        offs.append(self.lambda5 * corners)
        self.offsets = np.vstack(offs)
        self.npts = self.offsets.shape[0]
        self._n_pairs = len(pairs)

    def points(self, center, halfwidth):
        return center + self.offsets * halfwidth

    def apply(self, f, halfwidth):
        d = self.dim
        f0 = f[0]
        f2m, f2p = f[1:1 + d], f[1 + d:1 + 2 * d]
        f4m, f4p = f[1 + 2 * d:1 + 3 * d], f[1 + 3 * d:1 + 4 * d]
        start = 1 + 4 * d
        sum2 = np.sum(f2m + f2p, axis=0)
        sum3 = np.sum(f4m + f4p, axis=0)
        sum4 = np.sum(f[start:start + self._n_pairs], axis=0)
        sum5 = np.sum(f[start + self._n_pairs:], axis=0)

        # fourth difference along each axis, summed over components
        diff = np.sum(np.abs(f2m + f2p - 2.0 * f0 - self.ratio * (f4m + f4p - 2.0 * f0)), axis=1)

        vol = np.prod(2.0 * halfwidth)
        result = vol * (self.weight1 * f0 + self.weight2 * sum2 + self.weight3 * sum3
                        + self.weight4 * sum4 + self.weight5 * sum5)
        res5 = vol * (self.weightE1 * f0 + self.weightE2 * sum2
                      + self.weightE3 * sum3 + self.weightE4 * sum4)
        err = np.abs(res5 - result)

        maxdiff = np.max(diff)
        near = np.flatnonzero(diff >= maxdiff * (1.0 - 1.0e-10))
        split = int(near[np.argmax(halfwidth[near])])
        return result, err, split


@dataclass
class _Region:
    center: np.ndarray
    halfwidth: np.ndarray
    value: np.ndarray = None
    error: np.ndarray = None
    split_dim: int = 0


@dataclass(order=True)
class _HeapItem:
    priority: float
    order: int
    region: _Region = field(compare=False)


class InteHCubature(_CubatureBase):
    """h-adaptive cubature (global adaptive subdivision)."""

    def integ(self, fdim: int, func: Callable, dim: int,
              xmin: Sequence[float], xmax: Sequence[float], max_eval: int = 0,
              abs_tol: float = 0.0, rel_tol: float = 1.0e-8,
              norm: ErrorNorm = ErrorNorm.INDIVIDUAL) -> CubatureResult:
        """
        Integrate an fdim-valued function over the box [xmin, xmax].

        Args:
            fdim: Number of integrand components
            func: Integrand (see module docstring for signatures)
            dim: Number of dimensions
            xmin, xmax: Box corners
            max_eval: Maximum number of points (0 for no limit)
            abs_tol: Absolute tolerance
            rel_tol: Relative tolerance
            norm: Error norm for vector integrands

        Returns:
            CubatureResult; status is EXC_EMAXITER if the evaluation budget
            ran out and EXC_EROUND if regions became unsplittable
        """
        xmin, xmax = self._check_args(fdim, dim, xmin, xmax, max_eval, abs_tol, rel_tol)
        rule = _GaussKronrod15() if dim == 1 else _GenzMalik(dim)

        pool = self._executor()
        try:
            return self._run(rule, fdim, func, xmin, xmax, max_eval, abs_tol, rel_tol, norm, pool)
        finally:
            if pool is not None:
                pool.shutdown(wait=True)

    def _eval_regions(self, rule, func, regions, fdim, pool):
        pts = np.vstack([rule.points(r.center, r.halfwidth) for r in regions])
        vals = self._evaluate(func, pts, fdim, pool)
        for i, r in enumerate(regions):
            r.value, r.error, r.split_dim = rule.apply(
                vals[i * rule.npts:(i + 1) * rule.npts], r.halfwidth)
        return len(pts)

    def _run(self, rule, fdim, func, xmin, xmax, max_eval, abs_tol, rel_tol, norm, pool):
        first = _Region(center=0.5 * (xmin + xmax), halfwidth=0.5 * (xmax - xmin))
        n_eval = self._eval_regions(rule, func, [first], fdim, pool)

        counter = itertools.count()
        heap = [_HeapItem(-float(np.max(first.error)), next(counter), first)]
        val = first.value.copy()
        err = first.error.copy()
        status = SUCCESS

        while True:
            if converged(val, err, abs_tol, rel_tol, norm):
                break
            if max_eval and n_eval + 2 * rule.npts > max_eval:
                status = EXC_EMAXITER
                break
            item = heapq.heappop(heap)
            r = item.region
            k = r.split_dim
            if r.halfwidth[k] <= _EPS * max(1.0, abs(r.center[k])):
                heapq.heappush(heap, item)
                status = EXC_EROUND
                break

            val -= r.value
            err -= r.error
            hw = r.halfwidth.copy()
            hw[k] *= 0.5
            c1 = r.center.copy()
            c2 = r.center.copy()
            c1[k] -= hw[k]
            c2[k] += hw[k]
            r1 = _Region(center=c1, halfwidth=hw)
            r2 = _Region(center=c2, halfwidth=hw.copy())
            n_eval += self._eval_regions(rule, func, [r1, r2], fdim, pool)
            val += r1.value + r2.value
            err += r1.error + r2.error
            heapq.heappush(heap, _HeapItem(-float(np.max(r1.error)), next(counter), r1))
            heapq.heappush(heap, _HeapItem(-float(np.max(r2.error)), next(counter), r2))

        # re-sum to limit accumulated roundoff from the running totals
        val = np.sum([it.region.value for it in heap], axis=0)
        err = np.sum([it.region.error for it in heap], axis=0)
        if status != SUCCESS:
            logger.warning("h-adaptive cubature stopped (%s) after %d evaluations",
                           status_name(status), n_eval)
        return CubatureResult(value=val, error=err, status=status, n_eval=n_eval)


# =============================================================================
# P-ADAPTIVE CUBATURE (Clenshaw-Curtis)
# =============================================================================
def clenshaw_curtis_weights(level: int) -> np.ndarray:
    """
    Clenshaw-Curtis weights on [-1, 1] for 2^level + 1 nodes cos(kπ/2^level).

    Level 0 is the midpoint rule (single node, weight 2).
    """
    if level == 0:
        return np.array([2.0])
    n = 2**level
    k = np.arange(n + 1)
    j = np.arange(1, n // 2 + 1)
    b = np.full(j.shape, 2.0)
    b[-1] = 1.0
    c = np.full(k.shape, 2.0)
    c[0] = c[-1] = 1.0
    series = np.cos(2.0 * np.outer(k, j) * np.pi / n) @ (b / (4.0 * j * j - 1.0))
    return c / n * (1.0 - series)


def _embedded_weights(level: int) -> np.ndarray:
    """Level-1 weights placed on the level-l node set."""
    w = np.zeros(2**level + 1)
    if level == 1:
        w[1] = 2.0
    else:
        w[0::2] = clenshaw_curtis_weights(level - 1)
    return w


def _contract(F, weights):
    out = F
    for w in weights:
        out = np.tensordot(w, out, axes=([0], [0]))
    return out


class IntePCubature(_CubatureBase):
    """
    p-adaptive cubature with nested tensor-product Clenshaw-Curtis rules.

    Args:
        max_level: Highest refinement level per dimension (2^max_level + 1 nodes)
    """

    def __init__(self, max_level: int = 10, vectorized: bool = False,
                 use_parallel: bool = False, n_workers: Optional[int] = None):
        super().__init__(vectorized=vectorized, use_parallel=use_parallel, n_workers=n_workers)
        if max_level < 1:
            raise ValueError("max_level must be at least 1")
        self.max_level = max_level
        self._weights = [clenshaw_curtis_weights(l) for l in range(max_level + 1)]
        self._embedded = [None] + [_embedded_weights(l) for l in range(1, max_level + 1)]

    def _keys(self, level):
        """Node indices at the finest level for the nodes of `level`."""
        return [k * 2**(self.max_level - level) for k in range(2**level + 1)]

    def _node(self, key):
        n = 2**self.max_level
        return np.sin(np.pi * (n - 2 * key) / (2.0 * n))

    def integ(self, fdim: int, func: Callable, dim: int,
              xmin: Sequence[float], xmax: Sequence[float], max_eval: int = 0,
              abs_tol: float = 0.0, rel_tol: float = 1.0e-8,
              norm: ErrorNorm = ErrorNorm.INDIVIDUAL) -> CubatureResult:
        """
        Integrate an fdim-valued function over the box [xmin, xmax].

        Same arguments as InteHCubature.integ. status is EXC_EMAXITER when the
        evaluation budget or the per-dimension level cap is reached.
        """
        xmin, xmax = self._check_args(fdim, dim, xmin, xmax, max_eval, abs_tol, rel_tol)
        pool = self._executor()
        try:
            return self._run(fdim, func, dim, xmin, xmax, max_eval, abs_tol, rel_tol, norm, pool)
        finally:
            if pool is not None:
                pool.shutdown(wait=True)

    def _run(self, fdim, func, dim, xmin, xmax, max_eval, abs_tol, rel_tol, norm, pool):
        center = 0.5 * (xmin + xmax)
        halfwidth = 0.5 * (xmax - xmin)
        levels = [1] * dim
        cache = {}
        status = SUCCESS

        while True:
            keys = [self._keys(l) for l in levels]
            missing = [kk for kk in itertools.product(*keys) if kk not in cache]
            if missing:
                nodes = np.array([[self._node(k) for k in kk] for kk in missing])
                vals = self._evaluate(func, center + halfwidth * nodes, fdim, pool)
                for kk, v in zip(missing, vals):
                    cache[kk] = v

            shape = tuple(len(k) for k in keys)
            F = np.array([cache[kk] for kk in itertools.product(*keys)]).reshape(shape + (fdim,))
            weights = [self._weights[l] * halfwidth[i] for i, l in enumerate(levels)]
            val = _contract(F, weights)

            dim_err = np.zeros((dim, fdim))
            for i, l in enumerate(levels):
                lower = list(weights)
                lower[i] = self._embedded[l] * halfwidth[i]
                dim_err[i] = np.abs(val - _contract(F, lower))
            err = np.max(dim_err, axis=0)

            if converged(val, err, abs_tol, rel_tol, norm):
                break

            order = np.argsort(-np.sum(dim_err, axis=1), kind="stable")
            refine = next((int(i) for i in order if levels[i] < self.max_level), None)
            if refine is None:
                status = EXC_EMAXITER
                break
            new_shape = list(shape)
            new_shape[refine] = 2**(levels[refine] + 1) + 1
            if max_eval and int(np.prod(new_shape)) > max_eval:
                status = EXC_EMAXITER
                break
            levels[refine] += 1

        if status != SUCCESS:
            logger.warning("p-adaptive cubature stopped (%s) after %d evaluations, levels=%s",
                           status_name(status), len(cache), levels)
        return CubatureResult(value=val, error=err, status=status, n_eval=len(cache))


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    def gaussian_moments(x):
        g = np.exp(-((x[0] - 0.2)**2 + (x[1] - 0.5)**2))
        return [g, g * x[0]**2, g * x[0]**2 * x[1]**2]

    print("Adaptive cubature")
    print("=" * 50)
    for name, integrator in [("hcubature", InteHCubature()), ("pcubature", IntePCubature())]:
        res = integrator.integ(3, gaussian_moments, 2, [-2.0, -2.0], [2.0, 2.0],
                               max_eval=10000, rel_tol=1.0e-4)
        print(f"  {name}: value={res.value}, status={res.status}, n_eval={res.n_eval}")
    print("  reference: [3.067993, 1.569270, 1.056968]")
