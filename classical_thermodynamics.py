"""
classical_thermodynamics.py
===========================
Maxwell-Boltzmann (classical, nonrelativistic) ideal gas.

    n = g (ms T / 2π)^{3/2} exp((nu - m)/T)
    P = n T
    ε = 3/2 n T (+ n m with the rest mass)
    s = (ε + P - n nu)/T

Used on its own as the dilute limit of the quantum gases and by the quantum
engines to reseed failed density inversions.

Units: natural units (ℏ = c = k_B = 1).
"""
import numpy as np

from general_errors import SUCCESS
from general_particles import ThermoParticle
from general_physics_constants import PI


class ClassicalThermo:
    """Classical ideal gas engine."""

    @staticmethod
    def _quantum_density(p: ThermoParticle, T: float) -> float:
        """g (ms T / 2π)^{3/2}."""
        return p.g * (p.ms * T / (2.0 * PI))**1.5

    @staticmethod
    def _kinetic_nu(p: ThermoParticle) -> float:
        return p.nu - p.m if p.inc_rest_mass else p.nu

    def _fill(self, p: ThermoParticle, T: float):
        p.pressure = p.n * T
        p.energy_density = 1.5 * p.n * T
        if p.inc_rest_mass:
            p.energy_density += p.n * p.m
        p.entropy_density = (p.energy_density + p.pressure - p.n * p.nu) / T

    def calc_mu(self, p: ThermoParticle, T: float) -> None:
        """
        Compute n, ε, s and P from the chemical potential.

        Raises:
            ValueError: if T < 0 or a mass is negative
        """
        if T < 0.0:
            raise ValueError(f"Temperature must be non-negative, got {T}")
        p.sync_non_interacting()
        if p.ms < 0.0:
            raise ValueError(f"Effective mass must be non-negative, got {p.ms}")
        if T == 0.0:
            p.n = 0.0
            p.energy_density = 0.0
            p.entropy_density = 0.0
            p.pressure = 0.0
            return
        p.n = self._quantum_density(p, T) * np.exp(self._kinetic_nu(p) / T)
        self._fill(p, T)

    def calc_density(self, p: ThermoParticle, T: float) -> int:
        """
        Compute the chemical potential, ε, s and P from the density.

        Returns:
            0 on success

        Raises:
            ValueError: if T <= 0, n <= 0 or ms <= 0
        """
        if T <= 0.0:
            raise ValueError(f"Temperature must be positive, got {T}")
        if not p.n > 0.0:
            raise ValueError(f"Density must be positive, got {p.n}")
        p.sync_non_interacting()
        if p.ms <= 0.0:
            raise ValueError(f"Effective mass must be positive, got {p.ms}")

        nu_kin = T * np.log(p.n / self._quantum_density(p, T))
        p.nu = nu_kin + p.m if p.inc_rest_mass else nu_kin
        if p.non_interacting:
            p.mu = p.nu
        self._fill(p, T)
        return SUCCESS


if __name__ == "__main__":
    from general_particles import make_electron, make_nucleon
    from general_physics_constants import hc

    T = 10.0 / hc
    for part in (make_nucleon(), make_electron()):
        part.n = 1.0e-4
        ClassicalThermo().calc_density(part, T)
        print(f"{part.name}: mu = {part.mu * hc:.4f} MeV, P = {part.pressure * hc:.6e} MeV/fm³, "
              f"P/(nT) = {part.pressure / (part.n * T):.6f}")
