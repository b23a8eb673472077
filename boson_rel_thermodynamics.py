"""
boson_rel_thermodynamics.py
===========================
Relativistic ideal Bose gas (E = sqrt(k² + ms²)) at finite temperature.

The degeneracy parameter psi = (nu - ms)/T must not exceed 0 (no condensate).

Degenerate regime (psi >= deg_limit): momentum integrals up to
k_max = sqrt((20 T + nu)² - ms²),

    n = g/(2π²) ∫ k² f dk
    ε = g/(2π²) ∫ k² E f dk
    s = g/(2π²) ∫ k² [(1+f) ln(1+f) - f ln f] dk,    f = 1/(e^{(E-nu)/T} - 1)

Non-degenerate regime (psi < deg_limit): u = (E - ms)/T ∈ [0, ∞),
y = nu/T, eta = ms/T, z = eta + u - y,

    n = g T³/(2π²) ∫ (eta+u) sqrt(u² + 2 eta u) f(z) du
    ε = g T⁴/(2π²) ∫ (eta+u)² sqrt(u² + 2 eta u) f(z) du
    s = g T³/(2π²) ∫ (eta+u) sqrt(u² + 2 eta u) [f z - ln(1 - e^{-z})] du

Pressure from P = -ε + T s + mu n. Non-finite integrand values are replaced
by zero.

Units: natural units (ℏ = c = k_B = 1).
"""
import numpy as np
from numba import njit

from general_occupation_functions import bose_function
from general_particles import Boson
from general_particle_thermo import Regime, RelativisticThermo


# =============================================================================
# DEGENERATE INTEGRANDS (momentum space)
# =============================================================================
@njit(cache=True, error_model="numpy")
def deg_density_fun(k, ms, nu, T, limit):
    E = np.hypot(k, ms)
    ret = k * k * bose_function(E, nu, T, limit)
    if not np.isfinite(ret):
        return 0.0
    return ret


@njit(cache=True, error_model="numpy")
def deg_energy_fun(k, ms, nu, T, limit):
    E = np.hypot(k, ms)
    ret = k * k * E * bose_function(E, nu, T, limit)
    if not np.isfinite(ret):
        return 0.0
    return ret


@njit(cache=True, error_model="numpy")
def deg_entropy_fun(k, ms, nu, T, limit):
    E = np.hypot(k, ms)
    nx = bose_function(E, nu, T, limit)
    ret = -k * k * (nx * np.log(nx) - (1.0 + nx) * np.log(1.0 + nx))
    if not np.isfinite(ret):
        return 0.0
    return ret


# =============================================================================
# NON-DEGENERATE INTEGRANDS (scaled kinetic energy u)
# =============================================================================
@njit(cache=True, error_model="numpy")
def _occupation(u, y, eta, cut):
    """1/(e^z - 1) with z = eta + u - y > 0."""
    if y - u > cut and eta - u > cut:
        return 1.0 / np.expm1(eta + u - y)
    # divided through by e^{eta+u}
    ez = np.exp(y - eta - u)
    return ez / (1.0 - ez)


@njit(cache=True, error_model="numpy")
def density_fun(u, y, eta, cut):
    ret = (eta + u) * np.sqrt(u * u + 2.0 * eta * u) * _occupation(u, y, eta, cut)
    if not np.isfinite(ret):
        return 0.0
    return ret


@njit(cache=True, error_model="numpy")
def energy_fun(u, y, eta, cut):
    ret = (eta + u)**2 * np.sqrt(u * u + 2.0 * eta * u) * _occupation(u, y, eta, cut)
    if not np.isfinite(ret):
        return 0.0
    return ret


@njit(cache=True, error_model="numpy")
def entropy_fun(u, y, eta, cut):
    if u - eta > cut and u - y > cut:
        return 0.0
    z = eta + u - y
    f = _occupation(u, y, eta, cut)
    ret = (eta + u) * np.sqrt(u * u + 2.0 * eta * u) * (f * z - np.log1p(-np.exp(-z)))
    if not np.isfinite(ret):
        return 0.0
    return ret


# =============================================================================
# ENGINE
# =============================================================================
class BosonRel(RelativisticThermo):
    """
    Relativistic boson engine.

    calc_mu / calc_density raise ValueError for T <= 0 and for chemical
    potentials above the effective mass.
    """

    allow_positive_psi = False
    allow_zero_temperature = False

    def _integrands(self, regime, ms, nu_tot, T):
        if regime is Regime.DEGENERATE:
            lim = self.params.occupation_limit
            return (lambda k: deg_density_fun(k, ms, nu_tot, T, lim),
                    lambda k: deg_energy_fun(k, ms, nu_tot, T, lim),
                    lambda k: deg_entropy_fun(k, ms, nu_tot, T, lim))
        y = nu_tot / T
        eta = ms / T
        cut = self.params.overflow_arg
        return (lambda u: density_fun(u, y, eta, cut),
                lambda u: energy_fun(u, y, eta, cut),
                lambda u: entropy_fun(u, y, eta, cut))

    def _pair_bracket(self, p: Boson, T: float):
        if p.ms <= 0.0:
            raise ValueError("pair_density needs a positive effective mass for bosons")
        edge = p.ms / T * (1.0 - 1.0e-10)
        return -edge, edge


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    from general_particles import make_pion
    from general_physics_constants import hc

    br = BosonRel()
    T = 100.0 / hc
    pion = make_pion()
    print("Relativistic pion gas, T = 100 MeV")
    print("=" * 50)
    for dmu in [-300.0, -50.0, -5.0]:
        pion.mu = pion.m + dmu / hc
        br.calc_mu(pion, T)
        print(f"  mu - m = {dmu:7.1f} MeV ({br.select_regime(br.psi(pion, T)).value:13s}): "
              f"n = {pion.n:.6e} fm⁻³, P = {pion.pressure * hc:.6e} MeV/fm³")

    n_in = pion.n
    pion.mu = 0.0
    br.calc_density(pion, T)
    print(f"  inverted n = {n_in:.6e}: mu - m = {(pion.mu - pion.m) * hc:.6f} MeV")

    pion.mu = 0.5 * pion.m
    br.pair_mu(pion, T)
    print(f"  pair at mu = m/2: net n = {pion.n:.6e}, P = {pion.pressure * hc:.6e} MeV/fm³")
