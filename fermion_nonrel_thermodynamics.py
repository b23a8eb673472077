"""
fermion_nonrel_thermodynamics.py
================================
Nonrelativistic ideal Fermi gas (E = m + k²/2ms).

Finite temperature, with y = (nu - m)/T (rest mass included) or nu/T:

    n = g (2 ms T)^{3/2} / (4π²) · Γ(3/2) F_{1/2}(y)
    ε = g (2 ms)^{3/2} T^{5/2} / (4π²) · Γ(5/2) F_{3/2}(y)   (+ n m)
    P = 2/3 (ε - n m)
    s = (5/3 (ε - n m) - (nu - m) n) / T

with F_j the complete Fermi-Dirac integrals in the GSL normalisation.

Zero temperature (kF from the kinetic chemical potential or the density):

    n = g kF³ / (6π²),  ε = g kF⁵ / (20π² ms) (+ n m),  P = -ε + n nu,  s = 0

Units: natural units (ℏ = c = k_B = 1).
"""
import copy

import numpy as np

from general_errors import SUCCESS
from general_fermi_integrals import fermi_dirac_half, fermi_dirac_3half
from general_particles import Fermion
from general_particle_thermo import ParticleThermo
from general_physics_constants import PI2, SQRT_PI, LOG_DBL_MIN



class FermionNonrel(ParticleThermo):
    """Nonrelativistic fermion engine."""

    # =========================================================================
    # ZERO TEMPERATURE
    # =========================================================================
    def calc_mu_zerot(self, f: Fermion) -> None:
        """T = 0 thermodynamics from the chemical potential."""
        f.sync_non_interacting()
        nu_kin = f.nu - f.m if f.inc_rest_mass else f.nu
        if nu_kin > 0.0 and f.ms > 0.0:
            f.kf = np.sqrt(2.0 * f.ms * nu_kin)
        else:
            f.kf = 0.0
        self._fill_zerot(f)

    def calc_density_zerot(self, f: Fermion) -> None:
        """T = 0 thermodynamics from the density."""
        f.sync_non_interacting()
        if f.ms <= 0.0:
            raise ValueError(f"Effective mass must be positive at T=0, got {f.ms}")
        if f.n < 0.0:
            raise ValueError(f"Density must be non-negative, got {f.n}")
        f.kf = np.cbrt(6.0 * PI2 * f.n / f.g)
        f.nu = f.kf**2 / (2.0 * f.ms)
        if f.inc_rest_mass:
            f.nu += f.m
        if f.non_interacting:
            f.mu = f.nu
        self._fill_zerot(f)

    @staticmethod
    def _fill_zerot(f: Fermion):
        f.n = f.kf**3 * f.g / (6.0 * PI2)
        if f.kf > 0.0:
            f.energy_density = f.g * f.kf**5 / (20.0 * PI2 * f.ms)
        else:
            f.energy_density = 0.0
        if f.inc_rest_mass:
            f.energy_density += f.n * f.m
        f.pressure = -f.energy_density + f.n * f.nu
        f.entropy_density = 0.0

    # =========================================================================
    # FINITE TEMPERATURE
    # =========================================================================
    @staticmethod
    def _density_factor(ms: float, T: float, g: float) -> float:
        """n / F_{1/2}(y)."""
        return 0.5 * SQRT_PI * g * (2.0 * ms * T)**1.5 / (4.0 * PI2)

    def calc_mu(self, f: Fermion, T: float) -> None:
        """
        Compute n, ε, s and P from the chemical potential.

        Raises:
            ValueError: if T < 0 or ms < 0
            RuntimeError: for non-finite results
        """
        if T < 0.0:
            raise ValueError(f"FermionNonrel: temperature must be non-negative, got {T}")
        if T == 0.0:
            f.sync_non_interacting()
            if f.ms < 0.0:
                raise ValueError(f"Effective mass must be non-negative, got {f.ms}")
            self.calc_mu_zerot(f)
            return

        f.sync_non_interacting()
        if f.ms < 0.0:
            raise ValueError(f"Effective mass must be non-negative, got {f.ms}")

        rest = f.m if f.inc_rest_mass else 0.0
        y = (f.nu - rest) / T
        f.n = fermi_dirac_half(y) * self._density_factor(f.ms, T, f.g)
        f.energy_density = (fermi_dirac_3half(y) * 0.75 * SQRT_PI * f.g
                            * (2.0 * f.ms)**1.5 * T**2.5 / (4.0 * PI2))
        self._fill_from_energy(f, T, rest)
        self._check_finite(f, T)

    @staticmethod
    def _fill_from_energy(f: Fermion, T: float, rest: float):
        """ε above holds the kinetic part; add n m and derive s, P."""
        kinetic = f.energy_density
        f.energy_density = kinetic + f.n * rest
        f.entropy_density = (5.0 / 3.0 * kinetic - (f.nu - rest) * f.n) / T
        f.pressure = 2.0 / 3.0 * kinetic

    def nu_from_n(self, f: Fermion, T: float) -> None:
        """
        Solve for the effective chemical potential reproducing f.n.

        The unknown is x = -(nu - m)/T (or -nu/T without the rest mass).
        """
        rest = f.m if f.inc_rest_mass else 0.0
        x0 = -(f.nu - rest) / T
        # keep the guess where exp(-x) is still representable
        if x0 > -LOG_DBL_MIN * 0.9:
            x0 = -LOG_DBL_MIN / 2.0

        n_per_g = f.n / f.g
        factor = self._density_factor(f.ms, T, 1.0)

        def residual(x):
            if not np.isfinite(x) or -x < LOG_DBL_MIN:
                nden = 0.0
            else:
                nden = fermi_dirac_half(-x) * factor
            return nden / n_per_g - 1.0

        def reseed():
            guess = copy.copy(f)
            self.classical.calc_density(guess, T)
            return -(guess.nu - rest) / T

        x = self._solve_density(x0, residual, f, T, reseed=reseed)
        f.nu = -x * T + rest

    def calc_density(self, f: Fermion, T: float) -> int:
        """
        Compute the chemical potential, ε, s and P from the density.

        Returns:
            0 on success

        Raises:
            ValueError: for negative masses, T < 0 or n <= 0 at T > 0
            ConvergenceError: if the density cannot be inverted
        """
        if f.m < 0.0 or (not f.non_interacting and f.ms < 0.0):
            raise ValueError(f"Negative mass: m={f.m}, ms={f.ms}")
        if T < 0.0:
            raise ValueError(f"FermionNonrel: temperature must be non-negative, got {T}")
        if T == 0.0:
            self.calc_density_zerot(f)
            return SUCCESS
        if not f.n > 0.0:
            raise ValueError(f"FermionNonrel: density must be positive, got {f.n}")

        f.sync_non_interacting()
        if f.ms <= 0.0:
            raise ValueError(f"Effective mass must be positive, got {f.ms}")

        self.nu_from_n(f, T)
        if f.non_interacting:
            f.mu = f.nu

        rest = f.m if f.inc_rest_mass else 0.0
        y = (f.nu - rest) / T
        f.energy_density = (fermi_dirac_3half(y) * 0.75 * SQRT_PI * f.g
                            * (2.0 * f.ms)**1.5 * T**2.5 / (4.0 * PI2))
        self._fill_from_energy(f, T, rest)
        self._check_finite(f, T)
        return SUCCESS


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    from general_particles import make_nucleon
    from general_physics_constants import hc

    fn = FermionNonrel()
    T = 10.0 / hc
    nuc = make_nucleon()
    print("Nonrelativistic nucleon gas, T = 10 MeV")
    print("=" * 50)
    for n in [1.0e-4, 1.0e-2, 0.16]:
        nuc.n = n
        fn.calc_density(nuc, T)
        print(f"  n = {n:8.2e} fm⁻³: mu - m = {(nuc.mu - nuc.m) * hc:9.4f} MeV, "
              f"P = {nuc.pressure * hc:.5e} MeV/fm³, s/n = {nuc.entropy_density / n:.4f}")

    nuc.n = 0.16
    fn.calc_density(nuc, 0.0)
    print(f"  T = 0, n = 0.16: kF = {nuc.kf:.4f} fm⁻¹, P = {nuc.pressure * hc:.4f} MeV/fm³")
