import numpy as np
import numpy.testing as npt
import pytest

from classical_thermodynamics import ClassicalThermo
from general_particles import make_electron, make_nucleon
from general_physics_constants import PI, hc

T10 = 10.0 / hc


def test_ideal_gas_law():
    nuc = make_nucleon(chemical_potential=make_nucleon().mass - 5.0 * T10)
    ClassicalThermo().calc_mu(nuc, T10)
    npt.assert_allclose(nuc.n, 2.0 * (nuc.m * T10 / (2 * PI))**1.5 * np.exp(-5.0), rtol=1e-14)
    npt.assert_allclose(nuc.pressure, nuc.n * T10, rtol=1e-15)
    npt.assert_allclose(nuc.energy_density, 1.5 * nuc.n * T10 + nuc.n * nuc.m, rtol=1e-14)
    npt.assert_allclose(nuc.pressure,
                        -nuc.energy_density + T10 * nuc.entropy_density + nuc.nu * nuc.n,
                        rtol=1e-10)


@pytest.mark.parametrize("inc_rest_mass", [True, False])
def test_density_round_trip(inc_rest_mass):
    ct = ClassicalThermo()
    e = make_electron(inc_rest_mass=inc_rest_mass)
    e.n = 1.0e-4
    assert ct.calc_density(e, T10) == 0
    assert e.mu == e.nu
    n = e.n
    e.n = 0.0
    ct.calc_mu(e, T10)
    npt.assert_allclose(e.n, n, rtol=1e-12)
    npt.assert_allclose(e.pressure, n * T10, rtol=1e-12)


def test_entropy_per_particle_is_sackur_tetrode():
    nuc = make_nucleon()
    nuc.n = 1.0e-3
    ClassicalThermo().calc_density(nuc, T10)
    lam = 2.0 * (nuc.m * T10 / (2 * PI))**1.5
    npt.assert_allclose(nuc.entropy_density / nuc.n, 2.5 + np.log(lam / nuc.n), rtol=1e-12)


def test_zero_temperature_is_empty():
    nuc = make_nucleon(chemical_potential=10.0)
    ClassicalThermo().calc_mu(nuc, 0.0)
    assert nuc.n == 0.0 and nuc.pressure == 0.0


def test_invalid_inputs():
    ct = ClassicalThermo()
    with pytest.raises(ValueError):
        ct.calc_mu(make_nucleon(), -1.0)
    nuc = make_nucleon()
    with pytest.raises(ValueError):
        ct.calc_density(nuc, T10)
    nuc.n = 1.0e-3
    with pytest.raises(ValueError):
        ct.calc_density(nuc, 0.0)
