"""
general_occupation_functions.py
===============================
Fermi-Dirac and Bose-Einstein occupation numbers with overflow-safe
saturation.

Both functions take x = (E - mu)/T and saturate outside |x| > limit:
    fermi_function: 0 above +limit, 1 below -limit
    bose_function:  0 above +limit, -1 below -limit

Near x = 0 the Bose function uses the Laurent expansion of 1/(e^x - 1) so no
cancellation occurs in e^x - 1.

Compiled with numba so they can be called from other compiled integrand
kernels. error_model="numpy" makes the pole at x = 0 return inf rather than
raising ZeroDivisionError.
"""
import numpy as np
from numba import njit

DEFAULT_LIMIT = 40.0
SERIES_LIMIT = 1.0e-3


@njit(cache=True, error_model="numpy")
def fermi_function(E, mu, T, limit=DEFAULT_LIMIT):
    """
    Fermi-Dirac occupation 1/(1 + exp((E - mu)/T)).

    Args:
        E: Single-particle energy
        mu: Chemical potential
        T: Temperature (> 0)
        limit: Saturation threshold on |x|

    Returns:
        Occupation in [0, 1]
    """
    x = (E - mu) / T
    if x > limit:
        return 0.0
    elif x < -limit:
        return 1.0
    return 1.0 / (1.0 + np.exp(x))


@njit(cache=True, error_model="numpy")
def bose_function(E, mu, T, limit=DEFAULT_LIMIT):
    """
    Bose-Einstein occupation 1/(exp((E - mu)/T) - 1).

    For |x| < 1e-3 the expansion
        1/x - 1/2 + x/12 - x³/720 + x⁵/30240 - x⁷/1209600
    is used.

    Args:
        E: Single-particle energy
        mu: Chemical potential
        T: Temperature (> 0)
        limit: Saturation threshold on |x|

    Returns:
        Occupation (positive for x > 0, divergent as x → 0)
    """
    x = (E - mu) / T
    if x > limit:
        return 0.0
    elif x < -limit:
        return -1.0
    elif abs(x) < SERIES_LIMIT:
        x2 = x * x
        return (1.0 / x - 0.5 + x / 12.0 - x * x2 / 720.0
                + x * x2 * x2 / 30240.0 - x * x2 * x2 * x2 / 1209600.0)
    return 1.0 / (np.exp(x) - 1.0)


if __name__ == "__main__":
    print("Occupation functions")
    print("=" * 50)
    print(f"{'x':>8s} {'fermi':>14s} {'bose':>14s}")
    for x in [-50.0, -5.0, -1.0e-4, 1.0e-4, 0.5, 5.0, 50.0]:
        print(f"{x:8.1e} {fermi_function(x, 0.0, 1.0):14.6e} "
              f"{bose_function(x, 0.0, 1.0):14.6e}")
