"""
fermion_rel_thermodynamics.py
=============================
Relativistic ideal Fermi gas (E = sqrt(k² + ms²)).

Same structure as the relativistic Bose gas: momentum integrals up to
k_max = sqrt((20 T + nu)² - ms²) when psi = (nu - ms)/T >= deg_limit,
scaled kinetic-energy integrals over [0, ∞) otherwise, with
f = 1/(e^{(E-nu)/T} + 1) and per-mode entropy -[f ln f + (1-f) ln(1-f)].
T = 0 uses the closed-form degenerate gas.

Units: natural units (ℏ = c = k_B = 1).
"""
import numpy as np
from numba import njit

from general_errors import SUCCESS
from general_fermi_integrals import relativistic_fermi_T0
from general_occupation_functions import fermi_function
from general_particles import Fermion
from general_particle_thermo import Regime, RelativisticThermo
from general_physics_constants import PI2


# =============================================================================
# DEGENERATE INTEGRANDS (momentum space)
# =============================================================================
@njit(cache=True, error_model="numpy")
def deg_density_fun(k, ms, nu, T, limit):
    E = np.hypot(k, ms)
    ret = k * k * fermi_function(E, nu, T, limit)
    if not np.isfinite(ret):
        return 0.0
    return ret


@njit(cache=True, error_model="numpy")
def deg_energy_fun(k, ms, nu, T, limit):
    E = np.hypot(k, ms)
    ret = k * k * E * fermi_function(E, nu, T, limit)
    if not np.isfinite(ret):
        return 0.0
    return ret


@njit(cache=True, error_model="numpy")
def deg_entropy_fun(k, ms, nu, T, limit):
    E = np.hypot(k, ms)
    f = fermi_function(E, nu, T, limit)
    ret = -k * k * (f * np.log(f) + (1.0 - f) * np.log(1.0 - f))
    if not np.isfinite(ret):
        return 0.0
    return ret


# =============================================================================
# NON-DEGENERATE INTEGRANDS (scaled kinetic energy u, z = eta + u - y > 0)
# =============================================================================
@njit(cache=True, error_model="numpy")
def density_fun(u, y, eta):
    ez = np.exp(y - eta - u)
    ret = (eta + u) * np.sqrt(u * u + 2.0 * eta * u) * ez / (1.0 + ez)
    if not np.isfinite(ret):
        return 0.0
    return ret


@njit(cache=True, error_model="numpy")
def energy_fun(u, y, eta):
    ez = np.exp(y - eta - u)
    ret = (eta + u)**2 * np.sqrt(u * u + 2.0 * eta * u) * ez / (1.0 + ez)
    if not np.isfinite(ret):
        return 0.0
    return ret


@njit(cache=True, error_model="numpy")
def entropy_fun(u, y, eta):
    z = eta + u - y
    ez = np.exp(-z)
    f = ez / (1.0 + ez)
    ret = (eta + u) * np.sqrt(u * u + 2.0 * eta * u) * (f * z + np.log1p(ez))
    if not np.isfinite(ret):
        return 0.0
    return ret


# =============================================================================
# ENGINE
# =============================================================================
class FermionRel(RelativisticThermo):
    """Relativistic fermion engine (finite and zero temperature)."""

    allow_positive_psi = True
    allow_zero_temperature = True

    def _integrands(self, regime, ms, nu_tot, T):
        if regime is Regime.DEGENERATE:
            lim = self.params.occupation_limit
            return (lambda k: deg_density_fun(k, ms, nu_tot, T, lim),
                    lambda k: deg_energy_fun(k, ms, nu_tot, T, lim),
                    lambda k: deg_entropy_fun(k, ms, nu_tot, T, lim))
        y = nu_tot / T
        eta = ms / T
        return (lambda u: density_fun(u, y, eta),
                lambda u: energy_fun(u, y, eta),
                lambda u: entropy_fun(u, y, eta))

    # =========================================================================
    # ZERO TEMPERATURE
    # =========================================================================
    def _fill_zerot(self, f: Fermion, nu_tot: float):
        kf, n, ed = relativistic_fermi_T0(nu_tot, float(f.ms), float(f.g))
        f.kf = float(kf)
        f.n = float(n)
        f.energy_density = float(ed)
        if not f.inc_rest_mass:
            f.energy_density -= f.n * f.m
        f.entropy_density = 0.0
        f.pressure = -f.energy_density + f.n * f.nu

    def calc_mu_zerot(self, f: Fermion):
        """T = 0 thermodynamics from the chemical potential."""
        self._fill_zerot(f, self.nu_total(f))

    def calc_density_zerot(self, f: Fermion):
        """T = 0 thermodynamics from the density."""
        if f.n < 0.0:
            raise ValueError(f"Density must be non-negative, got {f.n}")
        kf = np.cbrt(6.0 * PI2 * f.n / f.g)
        self._set_nu_total(f, float(np.hypot(kf, f.ms)))
        if f.non_interacting:
            f.mu = f.nu
        self._fill_zerot(f, self.nu_total(f))
        return SUCCESS


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    from classical_thermodynamics import ClassicalThermo
    from general_particles import make_electron
    from general_physics_constants import hc

    T = 10.0 / hc
    e_rel = make_electron()
    e_cl = make_electron()
    e_rel.n = e_cl.n = 1.0e-4
    FermionRel().calc_density(e_rel, T)
    ClassicalThermo().calc_density(e_cl, T)
    print("Electrons, n = 1e-4 fm⁻³, T = 10 MeV")
    print("=" * 50)
    print(f"  relativistic: mu = {e_rel.mu * hc:.6f} MeV, P = {e_rel.pressure * hc:.6e} MeV/fm³")
    print(f"  classical:    mu = {e_cl.mu * hc:.6f} MeV, P = {e_cl.pressure * hc:.6e} MeV/fm³")
    print(f"  ideal gas nT:                     {e_cl.n * T * hc:.6e} MeV/fm³")

    e_rel.mu = 0.5 * e_rel.m + 5.0 / hc
    FermionRel().pair_mu(e_rel, T)
    print(f"  pair at mu = {e_rel.mu * hc:.4f} MeV: net n = {e_rel.n:.6e} fm⁻³")
