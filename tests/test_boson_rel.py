import copy

import numpy.testing as npt
import pytest

from boson_rel_thermodynamics import (BosonRel, deg_density_fun, deg_entropy_fun,
                                      energy_fun, entropy_fun)
from general_adaptive_integration import InteAdaptCern
from general_errors import ConvergenceError
from general_particle_thermo import Regime
from general_particles import Boson, make_pion
from general_physics_constants import hc

T100 = 100.0 / hc


class CountingInte(InteAdaptCern):
    def __init__(self):
        super().__init__(tol_abs=0.0)
        self.calls = 0

    def integ_err(self, func, a, b):
        self.calls += 1
        return super().integ_err(func, a, b)


def pion_at(psi, T=T100, **kwargs):
    p = make_pion(**kwargs)
    p.mu = p.m + psi * T if p.inc_rest_mass else psi * T
    return p


# =============================================================================
# INPUT VALIDATION
# =============================================================================
def test_chemical_potential_above_mass_raises():
    with pytest.raises(ValueError):
        BosonRel().calc_mu(pion_at(0.1), T100)


@pytest.mark.parametrize("T", [0.0, -1.0])
def test_non_positive_temperature_raises(T):
    br = BosonRel()
    with pytest.raises(ValueError):
        br.calc_mu(pion_at(-1.0), T)
    p = pion_at(-1.0)
    p.n = 0.01
    with pytest.raises(ValueError):
        br.calc_density(p, T)


def test_non_positive_density_raises():
    with pytest.raises(ValueError):
        BosonRel().calc_density(pion_at(-1.0), T100)


def test_density_above_condensation_raises():
    br = BosonRel()
    p = pion_at(-0.01)
    br.calc_mu(p, T100)
    q = pion_at(-1.0)
    q.n = 10.0 * p.n
    with pytest.raises(ConvergenceError):
        br.calc_density(q, T100)


# =============================================================================
# REGIMES
# =============================================================================
def test_regime_selection():
    br = BosonRel()
    assert br.select_regime(-0.5) is Regime.DEGENERATE
    assert br.select_regime(-0.2) is Regime.DEGENERATE
    assert br.select_regime(-0.51) is Regime.NONDEGENERATE


def test_branches_agree_at_threshold():
    br = BosonRel()
    p = pion_at(-0.5)
    deg = br.integrate_regime(p, T100, Regime.DEGENERATE)
    nondeg = br.integrate_regime(p, T100, Regime.NONDEGENERATE)
    npt.assert_allclose(deg, nondeg, rtol=1e-4)


def test_upper_limit_without_states_raises():
    with pytest.raises(RuntimeError, match="Zero density"):
        BosonRel().upper_limit(1.0, -0.5, 0.01)


def test_injected_integrators_are_used():
    br = BosonRel()
    nit, dit = CountingInte(), CountingInte()
    br.set_inte(nit, dit)
    br.calc_mu(pion_at(-3.0), T100)
    assert nit.calls == 3 and dit.calls == 0
    br.calc_mu(pion_at(-0.1), T100)
    assert nit.calls == 3 and dit.calls == 3


# =============================================================================
# THERMODYNAMICS
# =============================================================================
@pytest.mark.parametrize("psi", [-0.1, -2.0, -6.0])
def test_density_round_trip(psi):
    br = BosonRel()
    p = pion_at(psi)
    br.calc_mu(p, T100)
    q = pion_at(-1.0)
    q.n = p.n
    assert br.calc_density(q, T100) == 0
    npt.assert_allclose(q.mu, p.mu, atol=1e-6 * T100)
    npt.assert_allclose(q.pressure, p.pressure, rtol=1e-6)
    npt.assert_allclose(q.entropy_density, p.entropy_density, rtol=1e-6)


def test_round_trip_without_rest_mass():
    br = BosonRel()
    p = pion_at(-1.0, inc_rest_mass=False)
    br.calc_mu(p, T100)
    with_m = pion_at(-1.0)
    br.calc_mu(with_m, T100)
    npt.assert_allclose(p.n, with_m.n, rtol=1e-10)
    npt.assert_allclose(p.energy_density, with_m.energy_density - with_m.n * with_m.m,
                        rtol=1e-8)
    q = pion_at(-3.0, inc_rest_mass=False)
    q.n = p.n
    br.calc_density(q, T100)
    npt.assert_allclose(q.mu, p.mu, atol=1e-6 * T100)


def test_classical_limit():
    p = pion_at(-15.0)
    BosonRel().calc_mu(p, T100)
    # relativistic Boltzmann gas: P = n T for any mass
    npt.assert_allclose(p.pressure, p.n * T100, rtol=2e-6)


def test_bose_enhancement_over_classical():
    p = pion_at(-0.05)
    BosonRel().calc_mu(p, T100)
    assert p.pressure < p.n * T100


# =============================================================================
# PARTICLE / ANTIPARTICLE
# =============================================================================
def test_pair_at_zero_chemical_potential_is_neutral():
    p = pion_at(0.0)
    p.mu = 0.0
    single = copy.copy(p)
    br = BosonRel()
    br.calc_mu(single, T100)
    br.pair_mu(p, T100)
    assert p.n == 0.0
    npt.assert_allclose(p.pressure, 2.0 * single.pressure, rtol=1e-14)


def test_pair_mu_adds_antiparticles():
    br = BosonRel()
    p = pion_at(0.0)
    p.mu = 0.5 * p.m
    single = copy.copy(p)
    br.calc_mu(single, T100)
    br.pair_mu(p, T100)
    assert 0.0 < p.n < single.n
    assert p.pressure > single.pressure
    assert p.energy_density > single.energy_density


def test_pair_density_round_trip():
    br = BosonRel()
    p = pion_at(0.0)
    p.mu = 0.3 * p.m
    br.pair_mu(p, T100)
    q = pion_at(0.0)
    q.mu = 0.0
    q.n = p.n
    assert br.pair_density(q, T100) == 0
    npt.assert_allclose(q.mu, 0.3 * p.m, atol=1e-6 * T100)
    npt.assert_allclose(q.n, p.n, rtol=1e-7)
    npt.assert_allclose(q.pressure, p.pressure, rtol=1e-6)


def test_pair_at_fixed_density_carries_more_energy():
    br = BosonRel()
    single = pion_at(0.0)
    single.mu = 0.3 * single.m
    br.calc_mu(single, T100)
    q = pion_at(0.0)
    q.mu = 0.0
    q.n = single.n
    assert br.pair_density(q, T100) == 0
    npt.assert_allclose(q.n, single.n, rtol=1e-7)
    # antiparticles push the chemical potential up at equal net density
    assert single.mu < q.mu < q.m
    assert q.pressure + q.energy_density > single.pressure + single.energy_density
    assert q.pressure > single.pressure


def test_pair_density_needs_positive_mass():
    b = Boson(mass=0.0, degeneracy=1.0, number_density=0.01)
    with pytest.raises(ValueError):
        BosonRel().pair_density(b, T100)


# =============================================================================
# INTEGRANDS
# =============================================================================
def test_integrands_replace_non_finite_values():
    # pole of the occupation at E = nu
    assert deg_density_fun(0.0, 1.0, 1.0, 0.5, 40.0) == 0.0
    # saturated occupation: 0 * log(0)
    assert deg_entropy_fun(1.0e3, 1.0, 0.0, 0.5, 40.0) == 0.0
    # inf * 0 at huge kinetic energies
    assert energy_fun(1.0e300, 0.0, 1.0, 200.0) == 0.0
    assert entropy_fun(1.0e300, 0.0, 1.0, 200.0) == 0.0


def test_non_degenerate_entropy_integrand_is_positive():
    for u in [0.0, 0.1, 1.0, 10.0]:
        assert entropy_fun(u, 0.0, 1.4, 200.0) >= 0.0
    assert entropy_fun(1.0, 0.0, 1.4, 200.0) > 0.0
