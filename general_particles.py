"""
general_particles.py
====================
Particle state containers for the thermodynamics engines.

A particle carries its static properties (mass, degeneracy), its chemical
potentials and the thermodynamic outputs written by an engine. Engines read
and write these fields in place; a particle never holds a reference to an
engine.

Conventions:
------------
- mass (m) is the rest mass, effective_mass (ms) the in-medium mass
- chemical_potential (mu) and effective_chemical_potential (nu) include the
  rest mass when inc_rest_mass is True, otherwise they are measured from m
- non_interacting particles have nu = mu and ms = m; engines enforce this at
  the start of every calculation
- all quantities in natural units (typically fm⁻¹ and powers thereof)
"""
import copy
from dataclasses import dataclass
from typing import Optional

from general_physics_constants import m_electron, m_nucleon, m_pion, mev_to_inv_fm


@dataclass
class ThermoParticle:
    """
    Thermodynamic state of one particle species.

    Attributes:
        mass: Rest mass m
        degeneracy: Spin (× colour) degeneracy g
        effective_mass: Effective mass ms (defaults to mass)
        chemical_potential: mu
        effective_chemical_potential: nu
        non_interacting: If True, nu = mu and ms = m are enforced
        inc_rest_mass: Whether mu, nu and energy_density include the rest mass
        number_density: n (output, or input for density inversions)
        energy_density: ε (output)
        entropy_density: s (output)
        pressure: P (output)
        name: Optional label
    """
    mass: float
    degeneracy: float
    effective_mass: Optional[float] = None
    chemical_potential: float = 0.0
    effective_chemical_potential: float = 0.0
    non_interacting: bool = True
    inc_rest_mass: bool = True
    number_density: float = 0.0
    energy_density: float = 0.0
    entropy_density: float = 0.0
    pressure: float = 0.0
    name: str = ""

    def __post_init__(self):
        if self.mass < 0.0:
            raise ValueError(f"Particle mass must be non-negative, got {self.mass}")
        if self.degeneracy <= 0.0:
            raise ValueError(f"Particle degeneracy must be positive, got {self.degeneracy}")
        if self.effective_mass is None:
            self.effective_mass = self.mass

    # Short aliases used in formulas
    @property
    def m(self) -> float:
        return self.mass

    @property
    def g(self) -> float:
        return self.degeneracy

    @property
    def ms(self) -> float:
        return self.effective_mass

    @ms.setter
    def ms(self, value: float):
        self.effective_mass = value

    @property
    def mu(self) -> float:
        return self.chemical_potential

    @mu.setter
    def mu(self, value: float):
        self.chemical_potential = value

    @property
    def nu(self) -> float:
        return self.effective_chemical_potential

    @nu.setter
    def nu(self, value: float):
        self.effective_chemical_potential = value

    @property
    def n(self) -> float:
        return self.number_density

    @n.setter
    def n(self, value: float):
        self.number_density = value

    def sync_non_interacting(self):
        """For non-interacting particles set nu = mu and ms = m."""
        if self.non_interacting:
            self.nu = self.mu
            self.ms = self.mass

    def anti(self, name: Optional[str] = None) -> "ThermoParticle":
        """
        Antiparticle with the same mass, degeneracy and flags.

        Chemical potentials flip sign; without the rest mass they are also
        shifted by -2m so that mu_anti + m = -(mu + m).
        """
        if name is None:
            if self.name.endswith("+"):
                name = self.name[:-1] + "-"
            elif self.name.endswith("-"):
                name = self.name[:-1] + "+"
            elif self.name.endswith("_bar"):
                name = self.name[:-4]
            elif self.name:
                name = self.name + "_bar"
        ap = copy.copy(self)
        ap.name = name or ""
        ap.number_density = 0.0
        ap.energy_density = 0.0
        ap.entropy_density = 0.0
        ap.pressure = 0.0
        if self.inc_rest_mass:
            ap.mu = -self.mu
            ap.nu = -self.nu
        else:
            ap.mu = -self.mu - 2.0 * self.mass
            ap.nu = -self.nu - 2.0 * self.mass
        return ap

    def __str__(self) -> str:
        return (f"{type(self).__name__}({self.name or '?'}: m={self.mass:.6g}, g={self.degeneracy:g}, "
                f"mu={self.mu:.6g}, n={self.number_density:.6e}, P={self.pressure:.6e})")


@dataclass
class Fermion(ThermoParticle):
    """
    Fermion state.

    Attributes:
        kf: Fermi momentum (set by zero-temperature calculations)
    """
    kf: float = 0.0


@dataclass
class Boson(ThermoParticle):
    """Boson state."""


# =============================================================================
# COMMON SPECIES (masses in fm⁻¹)
# =============================================================================
def make_electron(**kwargs) -> Fermion:
    """Electron: m = 0.511 MeV, g = 2."""
    return Fermion(mass=mev_to_inv_fm(m_electron), degeneracy=2.0, name="e-", **kwargs)


def make_nucleon(**kwargs) -> Fermion:
    """Nucleon with the average n/p mass, g = 2."""
    return Fermion(mass=mev_to_inv_fm(m_nucleon), degeneracy=2.0, name="N", **kwargs)


def make_pion(**kwargs) -> Boson:
    """Charged pion: m = 139.57 MeV, g = 1."""
    return Boson(mass=mev_to_inv_fm(m_pion), degeneracy=1.0, name="pi+", **kwargs)


if __name__ == "__main__":
    e = make_electron(chemical_potential=0.01)
    print(e)
    print(e.anti())
    pi = make_pion(inc_rest_mass=False, chemical_potential=0.1)
    print(pi)
    print(pi.anti())
