import pytest

from general_particles import Boson, Fermion, make_electron, make_nucleon, make_pion
from general_physics_constants import hc, m_electron


def test_defaults():
    f = Fermion(mass=2.0, degeneracy=2.0)
    assert f.effective_mass == 2.0
    assert f.non_interacting and f.inc_rest_mass
    assert f.kf == 0.0
    assert f.number_density == 0.0


@pytest.mark.parametrize("kwargs", [dict(mass=-1.0, degeneracy=2.0),
                                    dict(mass=1.0, degeneracy=0.0)])
def test_invalid_construction(kwargs):
    with pytest.raises(ValueError):
        Boson(**kwargs)


def test_sync_non_interacting():
    b = Boson(mass=1.0, degeneracy=1.0, effective_mass=0.7, chemical_potential=0.5,
              effective_chemical_potential=0.1)
    b.sync_non_interacting()
    assert b.nu == 0.5 and b.ms == 1.0

    b.non_interacting = False
    b.nu = 0.2
    b.ms = 0.8
    b.sync_non_interacting()
    assert b.nu == 0.2 and b.ms == 0.8


def test_anti_with_rest_mass():
    e = make_electron(chemical_potential=0.3, effective_chemical_potential=0.25,
                      number_density=1.0)
    a = e.anti()
    assert isinstance(a, Fermion)
    assert a.name == "e+"
    assert a.mu == -0.3 and a.nu == -0.25
    assert a.mass == e.mass and a.degeneracy == e.degeneracy
    assert a.number_density == 0.0
    # original untouched
    assert e.mu == 0.3


def test_anti_without_rest_mass():
    p = make_pion(inc_rest_mass=False, chemical_potential=0.1,
                  effective_chemical_potential=0.05)
    a = p.anti()
    assert a.name == "pi-"
    assert a.mu == pytest.approx(-0.1 - 2.0 * p.mass)
    assert a.nu == pytest.approx(-0.05 - 2.0 * p.mass)
    # the total chemical potentials are opposite
    assert a.mu + a.mass == pytest.approx(-(p.mu + p.mass))


def test_species_masses_in_inverse_fm():
    assert make_electron().mass == pytest.approx(m_electron / hc)
    assert make_nucleon().mass == pytest.approx(939.0 / hc, rel=1e-3)
    assert make_nucleon().anti().name == "N_bar"
