"""
thermo_parameters.py
====================
Parameter dataclasses for the particle thermodynamics engines.

These settings control regime selection and numerical safeguards shared by
the nonrelativistic and relativistic engines. Integrator and root solver
tolerances live on the injected integrator/solver objects themselves.
"""
from dataclasses import dataclass


@dataclass
class ThermoParams:
    """
    Tuning parameters for the thermodynamics engines.

    Attributes:
        name: Parameter set identifier
        deg_limit: Degeneracy threshold on psi = (nu - ms)/T. States with
            psi >= deg_limit are integrated over momentum on a finite range,
            states below it over scaled kinetic energy on [0, ∞)
        upper_limit_fac: Momentum cutoff factor; the degenerate integration
            stops at k = sqrt((upper_limit_fac*T + nu)² - ms²)
        occupation_limit: |x| beyond which occupation functions saturate
        overflow_arg: Exponent threshold at which non-degenerate integrands
            switch to their large-argument form
        n_bracket_expand: Maximum number of symmetric bracket widenings
            attempted after the primary density solver fails
    """
    name: str = "default"
    deg_limit: float = -0.5
    upper_limit_fac: float = 20.0
    occupation_limit: float = 40.0
    overflow_arg: float = 200.0
    n_bracket_expand: int = 10


def get_thermo_default() -> ThermoParams:
    """Get the default engine parameter set."""
    return ThermoParams(name="default")


def get_thermo_custom(
    deg_limit: float = -0.5, upper_limit_fac: float = 20.0,
    occupation_limit: float = 40.0, overflow_arg: float = 200.0,
    n_bracket_expand: int = 10, name: str = "custom"
) -> ThermoParams:
    """
    Create a custom engine parameter set.

    Raises:
        ValueError: if a cutoff or count is not positive
    """
    if upper_limit_fac <= 0.0:
        raise ValueError(f"upper_limit_fac must be positive, got {upper_limit_fac}")
    if occupation_limit <= 0.0 or overflow_arg <= 0.0:
        raise ValueError("occupation_limit and overflow_arg must be positive")
    if n_bracket_expand < 0:
        raise ValueError(f"n_bracket_expand must be >= 0, got {n_bracket_expand}")
    return ThermoParams(
        name=name, deg_limit=deg_limit, upper_limit_fac=upper_limit_fac,
        occupation_limit=occupation_limit, overflow_arg=overflow_arg,
        n_bracket_expand=n_bracket_expand
    )


if __name__ == "__main__":
    p = get_thermo_default()
    print("Thermodynamics engine parameters")
    print("=" * 50)
    for field_name, value in vars(p).items():
        print(f"  {field_name:18s} = {value}")
