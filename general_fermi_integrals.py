"""
general_fermi_integrals.py
==========================
Fermi-Dirac integrals for nonrelativistic and relativistic fermion gases.

Contents:
    1. Complete Fermi-Dirac integrals F_j(y) in the GSL normalisation
           F_j(y) = 1/Γ(j+1) ∫₀^∞ t^j / (exp(t - y) + 1) dt
       evaluated with scipy.integrate.quad
    2. Analytic T=0 relativistic Fermi gas
    3. Direct momentum-space integration (scipy.quad) for validation

Units: natural units (ℏ = c = k_B = 1); momenta, masses and temperatures
share one unit (typically fm⁻¹), densities come out in that unit cubed.
"""
import numpy as np
import scipy.integrate as integrate
from scipy.special import expit, gamma
from numba import njit

from general_physics_constants import PI2, LOG_DBL_MIN

# Relative accuracy requested from quad
_QUAD_EPSREL = 1.0e-12
_QUAD_LIMIT = 200


# =============================================================================
# COMPLETE FERMI-DIRAC INTEGRALS
# =============================================================================
def fermi_dirac_integral(j: float, y: float) -> float:
    """
    Complete Fermi-Dirac integral F_j(y), normalised by Γ(j+1).

    For y <= 0 the factor e^y is pulled out of the integrand so the
    non-degenerate tail does not underflow; for y > 0 the range is split at the
    Fermi surface t = y.

    Args:
        j: Order (> -1)
        y: Degeneracy parameter (mu - m)/T

    Returns:
        F_j(y); 0.0 once e^y underflows

    Raises:
        ValueError: if j <= -1
    """
    if j <= -1.0:
        raise ValueError(f"Fermi-Dirac integral order must be > -1, got {j}")
    if not np.isfinite(y):
        if y > 0:
            return np.inf
        return 0.0
    if y < LOG_DBL_MIN:
        return 0.0

    norm = gamma(j + 1.0)
    if y <= 0.0:
        val = integrate.quad(lambda t: t**j * np.exp(-t) * expit(t - y), 0.0, np.inf,
                             epsabs=0.0, epsrel=_QUAD_EPSREL, limit=_QUAD_LIMIT)[0]
        return float(np.exp(y) * val / norm)

    def occupied(t):
        return t**j * expit(y - t)

    below = integrate.quad(occupied, 0.0, y,
                           epsabs=0.0, epsrel=_QUAD_EPSREL, limit=_QUAD_LIMIT)[0]
    above = integrate.quad(occupied, y, np.inf,
                           epsabs=0.0, epsrel=_QUAD_EPSREL, limit=_QUAD_LIMIT)[0]
    return float((below + above) / norm)


def fermi_dirac_half(y: float) -> float:
    """F_{1/2}(y) in the GSL normalisation."""
    return fermi_dirac_integral(0.5, y)


def fermi_dirac_3half(y: float) -> float:
    """F_{3/2}(y) in the GSL normalisation."""
    return fermi_dirac_integral(1.5, y)


# =============================================================================
# ANALYTIC LIMITING CASES
# =============================================================================
@njit(cache=True)
def relativistic_fermi_T0(nu, ms, g):
    """
    Exact results for a T=0 relativistic Fermi gas (particles only).

    Args:
        nu: Effective chemical potential including the rest mass
        ms: Effective mass
        g: Degeneracy

    Returns:
        (kF, n, e) with e including the rest-mass energy. Pressure follows
        from P = -e + n*mu.
    """
    if nu <= ms:
        return 0.0, 0.0, 0.0

    kF = np.sqrt(nu**2 - ms**2)
    log_term = np.log((kF + nu) / ms) if ms > 1e-12 else 0.0

    n_val = g * kF**3 / (6.0 * PI2)
    term_e_poly = (2.0 * kF**3 + ms**2 * kF) * nu
    e_val = (g / (16.0 * PI2)) * (term_e_poly - ms**4 * log_term)
    return kF, n_val, e_val


# =============================================================================
# DIRECT NUMERICAL INTEGRATION (VALIDATION)
# =============================================================================
def fermi_numerical(nu, T, ms, g):
    """
    Direct momentum-space integration (scipy.quad) for a relativistic Fermi
    gas without antiparticles. Slow but accurate reference.

    Returns:
        (n, P, e, s) with e including the rest-mass energy
    """
    prefactor = g / (2.0 * PI2)

    def distrib(E):
        return expit(-(E - nu) / T)

    def dn(k):
        return k**2 * distrib(np.hypot(k, ms))

    def dP(k):
        E = np.hypot(k, ms)
        return k**4 / (3.0 * E) * distrib(E)

    def de(k):
        E = np.hypot(k, ms)
        return k**2 * E * distrib(E)

    kmax = np.sqrt(max((abs(nu) + 40.0 * T)**2 - ms**2, (40.0 * T)**2))
    opts = dict(epsabs=0.0, epsrel=1.0e-11, limit=_QUAD_LIMIT)
    n_res = prefactor * integrate.quad(dn, 0.0, kmax, **opts)[0]
    P_res = prefactor * integrate.quad(dP, 0.0, kmax, **opts)[0]
    e_res = prefactor * integrate.quad(de, 0.0, kmax, **opts)[0]
    s_res = (P_res + e_res - nu * n_res) / T
    return n_res, P_res, e_res, s_res


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    print("Fermi-Dirac integrals")
    print("=" * 50)
    print(f"{'y':>8s} {'F_1/2':>16s} {'F_3/2':>16s}")
    for y in [-20.0, -2.0, 0.0, 2.0, 20.0]:
        print(f"{y:8.1f} {fermi_dirac_half(y):16.10e} {fermi_dirac_3half(y):16.10e}")

    print()
    print("T=0 relativistic gas vs quad at low T (nu=5, ms=1, g=2):")
    kF, n0, e0 = relativistic_fermi_T0(5.0, 1.0, 2.0)
    n1, P1, e1, s1 = fermi_numerical(5.0, 1.0e-3, 1.0, 2.0)
    print(f"  kF = {kF:.6f}")
    print(f"  n: T0 = {n0:.8e}  quad = {n1:.8e}")
    print(f"  e: T0 = {e0:.8e}  quad = {e1:.8e}")
