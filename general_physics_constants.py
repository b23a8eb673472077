"""
general_physics_constants.py
============================
Physical constants, mathematical constants and floating-point limits shared by
the particle thermodynamics engines.

All engine formulas work in natural units (ℏ = c = k_B = 1). Inputs are
usually given in inverse femtometres, so MeV quantities are divided by ℏc
before use (e.g. the electron mass is m_electron / hc ≈ 2.59e-3 fm⁻¹).

Values from Particle Data Group (PDG) compilation.
"""
import numpy as np

# =============================================================================
# FUNDAMENTAL CONSTANTS (PDG values)
# =============================================================================
hc = 197.3269804              # MeV·fm (ℏc)

# =============================================================================
# PARTICLE MASSES (PDG values, MeV/c²)
# =============================================================================
m_neutron = 939.56542052      # MeV/c²
m_proton = 938.27208816       # MeV/c²
m_electron = 0.51099895000    # MeV/c²
m_pion = 139.57039            # MeV/c² (charged pion)
m_nucleon = (m_neutron + m_proton) / 2.0  # Average nucleon mass

# =============================================================================
# MATHEMATICAL CONSTANTS
# =============================================================================
PI = np.pi
PI2 = PI**2
TWO_PI2 = 2.0 * PI2
SQRT_PI = np.sqrt(PI)

# =============================================================================
# FLOATING-POINT LIMITS
# =============================================================================
# Natural log of the smallest normalised double (≈ -708.4). Exponentials of
# arguments below this underflow to zero.
LOG_DBL_MIN = float(np.log(np.finfo(np.float64).tiny))


# =============================================================================
# UNIT CONVERSION FUNCTIONS
# =============================================================================
def mev_to_inv_fm(x_mev: float) -> float:
    """Convert an energy or mass from MeV to fm⁻¹."""
    return x_mev / hc


def inv_fm_to_mev(x_fm: float) -> float:
    """Convert an energy or mass from fm⁻¹ to MeV."""
    return x_fm * hc


def inv_fm4_to_mev_fm3(x_fm4: float) -> float:
    """Convert a pressure or energy density from fm⁻⁴ to MeV/fm³."""
    return x_fm4 * hc


# =============================================================================
# SELF-TEST
# =============================================================================
if __name__ == "__main__":
    print("Physical Constants Module (PDG values)")
    print("=" * 50)
    print(f"ℏc = {hc:.6f} MeV·fm")
    print()
    print("Particle masses (MeV → fm⁻¹):")
    print(f"  m_e = {m_electron:.11f} MeV = {mev_to_inv_fm(m_electron):.6e} fm⁻¹")
    print(f"  m_N = {m_nucleon:.8f} MeV = {mev_to_inv_fm(m_nucleon):.6f} fm⁻¹")
    print(f"  m_π = {m_pion:.5f} MeV = {mev_to_inv_fm(m_pion):.6f} fm⁻¹")
    print()
    print(f"log(DBL_MIN) = {LOG_DBL_MIN:.6f}")
