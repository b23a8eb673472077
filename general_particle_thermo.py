"""
general_particle_thermo.py
==========================
Base classes for the particle thermodynamics engines.

ParticleThermo
    Root-solver injection and the fallback chain used to invert density
    relations:
        1. primary solver (RootHybrids) from the caller's guess
        2. symmetric bracket search around the guess + bracketing solver
        3. reseed from the Maxwell-Boltzmann estimate + primary solver
        4. ConvergenceError carrying the full input state

RelativisticThermo
    Shared machinery for relativistic ideal gases: regime selection on
    psi = (nu - ms)/T, momentum-space (degenerate) or scaled kinetic energy
    (non-degenerate) integration, density inversion and particle/antiparticle
    combinations. Subclasses provide the occupation-specific integrands.

Units: natural units (ℏ = c = k_B = 1).
"""
import copy
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional, Tuple

import numpy as np

from general_adaptive_integration import InteAdaptCern, Integrator
from general_errors import SUCCESS, EXC_EFAILED, ConvergenceError
from general_particles import ThermoParticle
from general_physics_constants import TWO_PI2
from general_root_solvers import RootBrent, RootHybrids, RootSolver
from classical_thermodynamics import ClassicalThermo
from thermo_parameters import ThermoParams, get_thermo_default

logger = logging.getLogger(__name__)


def describe_state(p: ThermoParticle, T: float) -> str:
    """One-line dump of the inputs of a thermodynamics calculation."""
    return (f"n={p.n!r}, m={p.m!r}, ms={p.ms!r}, T={T!r}, mu={p.mu!r}, nu={p.nu!r}, "
            f"non_interacting={p.non_interacting}, inc_rest_mass={p.inc_rest_mass}")


# =============================================================================
# SOLVER OWNERSHIP AND FALLBACK CHAIN
# =============================================================================
class ParticleThermo(ABC):
    """
    Base for engines that invert n(mu).

    Attributes:
        params: ThermoParams
        density_root: Primary solver (default RootHybrids, replace with
            set_density_root)
        bracket_root: Bracketing fallback (RootBrent)
        classical: Maxwell-Boltzmann engine used for reseeding
    """

    def __init__(self, params: Optional[ThermoParams] = None):
        self.params = params if params is not None else get_thermo_default()
        self.def_density_root = RootHybrids()
        self.density_root: RootSolver = self.def_density_root
        self.bracket_root: RootSolver = RootBrent()
        self.classical = ClassicalThermo()

    def set_density_root(self, root: RootSolver):
        """Use a caller-owned primary solver for density inversions."""
        self.density_root = root

    @abstractmethod
    def calc_mu(self, p: ThermoParticle, T: float) -> None:
        """Compute n, ε, s, P from the chemical potential."""

    @abstractmethod
    def calc_density(self, p: ThermoParticle, T: float) -> int:
        """Compute the chemical potential and ε, s, P from the density."""

    @staticmethod
    def _check_finite(p: ThermoParticle, T: float):
        values = (p.nu, p.n, p.energy_density, p.entropy_density, p.pressure)
        if not all(np.isfinite(v) for v in values):
            raise RuntimeError(f"Non-finite thermodynamic result: {describe_state(p, T)}, "
                               f"ed={p.energy_density}, s={p.entropy_density}, P={p.pressure}")

    def _solve_density(self, x0: float, residual: Callable[[float], float],
                       p: ThermoParticle, T: float,
                       reseed: Optional[Callable[[], float]] = None) -> float:
        """
        Find a root of residual(x) with the fallback chain.

        Args:
            x0: Initial guess
            residual: Dimensionless residual, decreasing or increasing in x
            p: Particle (for diagnostics only)
            T: Temperature (for diagnostics only)
            reseed: Returns an alternative starting point

        Raises:
            ConvergenceError: if every stage fails
        """
        x, status = self.density_root.solve(x0, residual, raise_on_failure=False)
        if status == SUCCESS:
            return x
        logger.debug("Primary density solver failed from x0=%g (status %d); "
                     "searching for a bracket", x0, status)

        half = abs(x0) if x0 != 0.0 else 1.0
        lo, hi = x0 - half, x0 + half
        f_lo, f_hi = residual(lo), residual(hi)
        n_expand = 0
        while not _brackets(f_lo, f_hi) and n_expand < self.params.n_bracket_expand:
            half *= 2.0
            lo, hi = x0 - half, x0 + half
            f_lo, f_hi = residual(lo), residual(hi)
            n_expand += 1

        if _brackets(f_lo, f_hi):
            x, status = self.bracket_root.solve_bkt(lo, hi, residual, raise_on_failure=False)
            if status == SUCCESS:
                return x
            logger.debug("Bracketing solver failed on [%g, %g] (status %d)", lo, hi, status)
        else:
            logger.debug("No sign change found after %d expansions (last bracket [%g, %g])",
                         n_expand, lo, hi)

        if reseed is not None:
            x1 = reseed()
            if np.isfinite(x1):
                logger.debug("Reseeding density solver from classical estimate x=%g", x1)
                x, status = self.density_root.solve(x1, residual, raise_on_failure=False)
                if status == SUCCESS:
                    return x

        raise ConvergenceError(
            f"{type(self).__name__}: density inversion failed ({describe_state(p, T)})",
            status if status != SUCCESS else EXC_EFAILED)


def _brackets(f1: float, f2: float) -> bool:
    return bool(np.isfinite(f1) and np.isfinite(f2) and f1 * f2 <= 0.0)


# =============================================================================
# RELATIVISTIC IDEAL GASES
# =============================================================================
class Regime(Enum):
    DEGENERATE = "degenerate"            # k ∈ [0, upper limit]
    NONDEGENERATE = "nondegenerate"      # u = (E - ms)/T ∈ [0, ∞)


class RelativisticThermo(ParticleThermo):
    """
    Regime-selecting integration for relativistic ideal gases.

    Attributes:
        nit: Integrator for the non-degenerate regime (range [0, ∞))
        dit: Integrator for the degenerate regime (finite range)
    """

    # Bose gases cannot exceed psi = 0
    allow_positive_psi = True
    # Whether T = 0 is handled by a closed form
    allow_zero_temperature = False

    def __init__(self, params: Optional[ThermoParams] = None):
        super().__init__(params)
        self.def_nit = InteAdaptCern(tol_abs=0.0)
        self.def_dit = InteAdaptCern(tol_abs=0.0)
        self.nit: Integrator = self.def_nit
        self.dit: Integrator = self.def_dit

    def set_inte(self, nit: Integrator, dit: Integrator):
        """Use caller-owned integrators for the non-degenerate and degenerate regimes."""
        self.nit = nit
        self.dit = dit

    @abstractmethod
    def _integrands(self, regime: Regime, ms: float, nu_tot: float, T: float) -> Tuple:
        """(density, energy, entropy) integrands for one state."""

    def calc_mu_zerot(self, p: ThermoParticle):
        raise ValueError(f"{type(self).__name__} requires T > 0")

    def calc_density_zerot(self, p: ThermoParticle):
        raise ValueError(f"{type(self).__name__} requires T > 0")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------
    def _check_temperature(self, T: float):
        if not np.isfinite(T) or T < 0.0 or (T == 0.0 and not self.allow_zero_temperature):
            raise ValueError(f"{type(self).__name__}: invalid temperature T={T}")

    @staticmethod
    def _check_masses(p: ThermoParticle):
        if p.m < 0.0 or p.ms < 0.0:
            raise ValueError(f"Negative mass: m={p.m}, ms={p.ms}")

    @staticmethod
    def nu_total(p: ThermoParticle) -> float:
        """Effective chemical potential including the rest mass."""
        return p.nu if p.inc_rest_mass else p.nu + p.m

    @staticmethod
    def _set_nu_total(p: ThermoParticle, nu_tot: float):
        p.nu = nu_tot if p.inc_rest_mass else nu_tot - p.m

    def psi(self, p: ThermoParticle, T: float) -> float:
        """Degeneracy parameter (nu - ms)/T with nu including the rest mass."""
        return (self.nu_total(p) - p.ms) / T

    def select_regime(self, psi: float) -> Regime:
        if psi < self.params.deg_limit:
            return Regime.NONDEGENERATE
        return Regime.DEGENERATE

    def _check_psi(self, psi: float, p: ThermoParticle, T: float):
        if not self.allow_positive_psi and psi > 0.0:
            raise ValueError(f"{type(self).__name__}: chemical potential above the effective "
                             f"mass (psi={psi}) ({describe_state(p, T)})")

    def upper_limit(self, ms: float, nu_tot: float, T: float) -> float:
        """Momentum cutoff of the degenerate integration."""
        arg = (self.params.upper_limit_fac * T + nu_tot)**2 - ms**2
        if arg <= 0.0:
            raise RuntimeError(f"Zero density in degenerate limit (ms={ms}, nu={nu_tot}, T={T})")
        return float(np.sqrt(arg))

    def surface_breaks(self, ms: float, nu_tot: float, T: float, ul: float) -> list:
        """
        Breakpoints of the degenerate momentum range [0, ul].

        The occupation is saturated outside |E - nu| <= occupation_limit*T, so
        the window around a Fermi surface inside the range gets its own
        interval; otherwise no Gauss node may land on the surface.
        """
        width = self.params.occupation_limit * T
        breaks = [0.0]
        for e in (nu_tot - width, nu_tot + width):
            if e > ms:
                k = float(np.sqrt(e * e - ms * ms))
                if breaks[-1] < k < ul:
                    breaks.append(k)
        breaks.append(ul)
        return breaks

    def _integ_pieces(self, func, breaks) -> float:
        return sum(self.dit.integ(func, lo, hi) for lo, hi in zip(breaks[:-1], breaks[1:]))

    def _raw_integrals(self, regime, ms, nu_tot, T, g, density_only=False):
        """(n, ε, s) with ε including the rest mass."""
        f_n, f_e, f_s = self._integrands(regime, ms, nu_tot, T)
        if regime is Regime.DEGENERATE:
            breaks = self.surface_breaks(ms, nu_tot, T, self.upper_limit(ms, nu_tot, T))
            prefac = g / TWO_PI2
            n = prefac * self._integ_pieces(f_n, breaks)
            if density_only:
                return float(n), 0.0, 0.0
            ed = prefac * self._integ_pieces(f_e, breaks)
            en = prefac * self._integ_pieces(f_s, breaks)
        else:
            prefac = g * T**3 / TWO_PI2
            n = prefac * self.nit.integ(f_n, 0.0, np.inf)
            if density_only:
                return float(n), 0.0, 0.0
            ed = prefac * T * self.nit.integ(f_e, 0.0, np.inf)
            en = prefac * self.nit.integ(f_s, 0.0, np.inf)
        return float(n), float(ed), float(en)

    def integrate_regime(self, p: ThermoParticle, T: float,
                         regime: Regime) -> Tuple[float, float, float]:
        """
        (n, ε, s) of the current state integrated in the given regime.

        ε excludes n*m when the rest mass is not included. The particle is
        not modified.
        """
        n, ed, en = self._raw_integrals(regime, float(p.ms), float(self.nu_total(p)),
                                        T, p.g)
        if not p.inc_rest_mass:
            ed -= n * p.m
        return n, ed, en

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------
    def calc_mu(self, p: ThermoParticle, T: float) -> None:
        """
        Compute n, ε, s and P from the chemical potential.

        Raises:
            ValueError: for invalid temperature, negative masses, or (bosons)
                a chemical potential above the effective mass
            RuntimeError: for non-finite results
        """
        self._check_temperature(T)
        p.sync_non_interacting()
        self._check_masses(p)
        if T == 0.0:
            self.calc_mu_zerot(p)
            return

        psi = self.psi(p, T)
        self._check_psi(psi, p, T)
        n, ed, en = self.integrate_regime(p, T, self.select_regime(psi))
        p.n = n
        p.energy_density = ed
        p.entropy_density = en
        p.pressure = -ed + T * en + p.mu * n
        self._check_finite(p, T)

    def nu_from_n(self, p: ThermoParticle, T: float) -> None:
        """
        Solve for the effective chemical potential reproducing p.n.

        The unknown is x = -psi. For Bose gases, trial values with x < 0 are
        mapped onto the continuous, monotone extension r(0) - x.
        """
        n_target = p.n
        ms = float(p.ms)
        g = p.g

        def density_residual(x):
            nu_tot = ms - x * T
            n = self._raw_integrals(self.select_regime(-x), ms, nu_tot, T, g,
                                    density_only=True)[0]
            return n / n_target - 1.0

        edge = []

        def residual(x):
            if self.allow_positive_psi or x >= 0.0:
                return density_residual(x)
            if not edge:
                edge.append(density_residual(0.0))
            return edge[0] - x

        def reseed():
            if ms <= 0.0:
                return np.nan
            guess = copy.copy(p)
            self.classical.calc_density(guess, T)
            return -(self.nu_total(guess) - ms) / T

        x = self._solve_density(-self.psi(p, T), residual, p, T, reseed=reseed)
        if not self.allow_positive_psi and x < 0.0:
            raise ConvergenceError(f"{type(self).__name__}: density {n_target} exceeds the "
                                   f"maximum at psi=0 ({describe_state(p, T)})")
        self._set_nu_total(p, ms - x * T)

    def calc_density(self, p: ThermoParticle, T: float) -> int:
        """
        Compute the chemical potential, ε, s and P from the density.

        Returns:
            0 on success

        Raises:
            ValueError: for invalid temperature, negative masses or n <= 0
            ConvergenceError: if the density cannot be inverted
        """
        self._check_temperature(T)
        p.sync_non_interacting()
        self._check_masses(p)
        if T == 0.0:
            self.calc_density_zerot(p)
            return SUCCESS
        if not p.n > 0.0:
            raise ValueError(f"{type(self).__name__}: density must be positive, got {p.n}")

        self.nu_from_n(p, T)
        if p.non_interacting:
            p.mu = p.nu

        _, ed, en = self.integrate_regime(p, T, self.select_regime(self.psi(p, T)))
        p.energy_density = ed
        p.entropy_density = en
        p.pressure = -ed + T * en + p.mu * p.n
        self._check_finite(p, T)
        return SUCCESS

    def pair_mu(self, p: ThermoParticle, T: float) -> None:
        """
        Particle plus antiparticle at the particle's chemical potential.

        n becomes the net density (particles minus antiparticles); ε, s and P
        are summed.
        """
        self.calc_mu(p, T)
        ap = p.anti()
        self.calc_mu(ap, T)
        p.n = p.n - ap.n
        p.energy_density += ap.energy_density
        p.entropy_density += ap.entropy_density
        p.pressure += ap.pressure

    def _pair_bracket(self, p: ThermoParticle, T: float) -> Optional[Tuple[float, float]]:
        """Bracket on nu_total/T for pair_density, or None to search for one."""
        return None

    def pair_density(self, p: ThermoParticle, T: float) -> int:
        """
        Solve for the chemical potential at which the net density
        (particles minus antiparticles) equals p.n, then fill ε, s, P.

        Returns:
            0 on success
        """
        self._check_temperature(T)
        p.sync_non_interacting()
        self._check_masses(p)
        n_target = p.n
        scale = abs(n_target) if n_target != 0.0 else p.g * T**3

        def set_state(q, x):
            self._set_nu_total(q, x * T)
            if q.non_interacting:
                q.mu = q.nu

        def residual(x):
            trial = copy.copy(p)
            set_state(trial, x)
            self.pair_mu(trial, T)
            return (trial.n - n_target) / scale

        bracket = self._pair_bracket(p, T)
        if bracket is None:
            x = self._solve_density(self.nu_total(p) / T, residual, p, T)
        else:
            x, status = self.bracket_root.solve_bkt(bracket[0], bracket[1], residual,
                                                    raise_on_failure=False)
            if status != SUCCESS:
                raise ConvergenceError(f"{type(self).__name__}: pair density inversion failed "
                                       f"({describe_state(p, T)})", status)
        set_state(p, x)
        self.pair_mu(p, T)
        return SUCCESS
