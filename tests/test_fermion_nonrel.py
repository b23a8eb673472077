import numpy as np
import numpy.testing as npt
import pytest

from fermion_nonrel_thermodynamics import FermionNonrel
from general_errors import EXC_EFAILED, ConvergenceError
from general_particles import Fermion
from general_physics_constants import PI2, hc
from general_root_solvers import RootSolver

T10 = 10.0 / hc
M_N = 939.0 / hc


class FailingSolver(RootSolver):
    """Never converges; records how often it was asked."""

    def __init__(self):
        super().__init__()
        self.calls = 0

    def solve(self, x0, func, raise_on_failure=None):
        self.calls += 1
        return x0, EXC_EFAILED

    def solve_bkt(self, x1, x2, func, raise_on_failure=None):
        self.calls += 1
        return x1, EXC_EFAILED


def nucleon(y=0.0, T=T10, **kwargs):
    return Fermion(mass=M_N, degeneracy=2.0, chemical_potential=M_N + y * T, **kwargs)


# =============================================================================
# ZERO TEMPERATURE
# =============================================================================
def test_zero_temperature_from_mu():
    f = nucleon()
    f.mu = M_N + 0.1
    FermionNonrel().calc_mu(f, 0.0)
    kf = np.sqrt(2.0 * M_N * 0.1)
    npt.assert_allclose(f.kf, kf, rtol=1e-14)
    npt.assert_allclose(f.n, 2.0 * kf**3 / (6 * PI2), rtol=1e-14)
    npt.assert_allclose(f.energy_density, 2.0 * kf**5 / (20 * PI2 * M_N) + f.n * M_N, rtol=1e-14)
    npt.assert_allclose(f.pressure, -f.energy_density + f.n * f.nu, rtol=1e-12)
    assert f.entropy_density == 0.0


def test_zero_temperature_below_mass_is_empty():
    f = nucleon()
    f.mu = M_N - 0.1
    FermionNonrel().calc_mu(f, 0.0)
    assert f.kf == 0.0 and f.n == 0.0 and f.pressure == 0.0


def test_zero_temperature_from_density():
    f = nucleon()
    f.n = 0.16
    assert FermionNonrel().calc_density(f, 0.0) == 0
    npt.assert_allclose(f.kf, (3 * PI2 * 0.16)**(1 / 3), rtol=1e-14)
    npt.assert_allclose(f.mu, M_N + f.kf**2 / (2 * M_N), rtol=1e-14)
    g = nucleon()
    g.mu = f.mu
    FermionNonrel().calc_mu(g, 0.0)
    npt.assert_allclose(g.n, 0.16, rtol=1e-12)
    # kinetic pressure is 2/3 of the kinetic energy density
    npt.assert_allclose(f.pressure, 2 / 3 * (f.energy_density - f.n * M_N), rtol=1e-10)


# =============================================================================
# FINITE TEMPERATURE
# =============================================================================
@pytest.mark.parametrize("y", [-6.0, 0.0, 5.0])
def test_density_round_trip(y):
    fn = FermionNonrel()
    f = nucleon(y)
    fn.calc_mu(f, T10)
    g = nucleon(0.0)
    g.n = f.n
    assert fn.calc_density(g, T10) == 0
    npt.assert_allclose(g.mu - M_N, f.mu - M_N, atol=1e-6 * T10)
    npt.assert_allclose(g.pressure, f.pressure, rtol=1e-6)
    npt.assert_allclose(g.energy_density, f.energy_density, rtol=1e-8)
    npt.assert_allclose(g.entropy_density, f.entropy_density, rtol=1e-6)


@pytest.mark.parametrize("y", [-3.0, 2.0])
def test_thermodynamic_identity(y):
    f = nucleon(y)
    FermionNonrel().calc_mu(f, T10)
    npt.assert_allclose(f.pressure, -f.energy_density + T10 * f.entropy_density + f.nu * f.n,
                        rtol=1e-10)


def test_classical_limit():
    f = nucleon(-20.0)
    FermionNonrel().calc_mu(f, T10)
    npt.assert_allclose(f.pressure, f.n * T10, rtol=1e-8)
    npt.assert_allclose(f.energy_density - f.n * M_N, 1.5 * f.n * T10, rtol=1e-8)


def test_rest_mass_convention():
    with_m = nucleon(-1.0)
    without_m = Fermion(mass=M_N, degeneracy=2.0, inc_rest_mass=False,
                        chemical_potential=-1.0 * T10)
    fn = FermionNonrel()
    fn.calc_mu(with_m, T10)
    fn.calc_mu(without_m, T10)
    npt.assert_allclose(without_m.n, with_m.n, rtol=1e-12)
    npt.assert_allclose(without_m.pressure, with_m.pressure, rtol=1e-12)
    npt.assert_allclose(without_m.energy_density, with_m.energy_density - with_m.n * M_N,
                        rtol=1e-10)
    npt.assert_allclose(without_m.entropy_density, with_m.entropy_density, rtol=1e-10)


def test_far_initial_guess_converges():
    fn = FermionNonrel()
    f = nucleon(-2.0)
    fn.calc_mu(f, T10)
    g = nucleon(0.0)
    g.mu = M_N - 1.0e4 * T10
    g.n = f.n
    fn.calc_density(g, T10)
    npt.assert_allclose(g.mu, f.mu, atol=1e-6 * T10)


def test_interacting_keeps_mu():
    f = Fermion(mass=M_N, degeneracy=2.0, effective_mass=0.8 * M_N, non_interacting=False,
                chemical_potential=M_N + 0.5, effective_chemical_potential=M_N - T10)
    fn = FermionNonrel()
    fn.calc_mu(f, T10)
    n = f.n
    f.effective_chemical_potential = M_N
    fn.calc_density(f, T10)
    assert f.mu == M_N + 0.5
    npt.assert_allclose(f.nu, M_N - T10, atol=1e-6 * T10)
    npt.assert_allclose(f.n, n, rtol=1e-14)


# =============================================================================
# ERRORS AND FALLBACKS
# =============================================================================
def test_invalid_inputs():
    fn = FermionNonrel()
    with pytest.raises(ValueError):
        fn.calc_mu(nucleon(), -1.0)
    with pytest.raises(ValueError):
        fn.calc_density(nucleon(), -1.0)
    f = nucleon()
    f.n = 0.0
    with pytest.raises(ValueError):
        fn.calc_density(f, T10)
    g = Fermion(mass=M_N, degeneracy=2.0, effective_mass=-1.0, non_interacting=False)
    with pytest.raises(ValueError):
        fn.calc_mu(g, T10)
    g.n = 0.1
    with pytest.raises(ValueError):
        fn.calc_density(g, T10)


def test_bracket_fallback_rescues_failed_primary_solver():
    fn = FermionNonrel()
    failing = FailingSolver()
    fn.set_density_root(failing)
    f = nucleon(1.5)
    fn.calc_mu(f, T10)
    g = nucleon(-1.0)
    g.n = f.n
    fn.calc_density(g, T10)
    assert failing.calls == 1
    npt.assert_allclose(g.mu, f.mu, atol=1e-8 * T10)


def test_exhausted_fallbacks_raise_with_diagnostics():
    fn = FermionNonrel()
    fn.set_density_root(FailingSolver())
    fn.bracket_root = FailingSolver()
    f = nucleon()
    f.n = 1.0e-3
    with pytest.raises(ConvergenceError) as excinfo:
        fn.calc_density(f, T10)
    msg = str(excinfo.value)
    for key in ("n=", "m=", "ms=", "T=", "nu=", "non_interacting=", "inc_rest_mass="):
        assert key in msg
