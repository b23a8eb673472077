import pytest

from general_errors import EXC_EMAXITER, ConvergenceError, status_name
from general_physics_constants import (LOG_DBL_MIN, hc, inv_fm_to_mev, inv_fm4_to_mev_fm3,
                                       mev_to_inv_fm)
from thermo_parameters import ThermoParams, get_thermo_custom, get_thermo_default


def test_default_parameters():
    p = get_thermo_default()
    assert isinstance(p, ThermoParams)
    assert p.deg_limit == -0.5
    assert p.upper_limit_fac == 20.0
    assert p.occupation_limit == 40.0
    assert p.n_bracket_expand == 10


def test_custom_parameters():
    p = get_thermo_custom(deg_limit=-1.0, n_bracket_expand=3)
    assert p.name == "custom"
    assert p.deg_limit == -1.0 and p.n_bracket_expand == 3


@pytest.mark.parametrize("kwargs", [dict(upper_limit_fac=0.0),
                                    dict(occupation_limit=-1.0),
                                    dict(overflow_arg=0.0),
                                    dict(n_bracket_expand=-1)])
def test_custom_parameters_are_validated(kwargs):
    with pytest.raises(ValueError):
        get_thermo_custom(**kwargs)


def test_unit_conversions():
    assert mev_to_inv_fm(hc) == pytest.approx(1.0)
    assert inv_fm_to_mev(mev_to_inv_fm(10.0)) == pytest.approx(10.0)
    assert inv_fm4_to_mev_fm3(1.0) == pytest.approx(hc)
    assert LOG_DBL_MIN == pytest.approx(-708.396, abs=1e-3)


def test_convergence_error_carries_status():
    err = ConvergenceError("no root", EXC_EMAXITER)
    assert err.status == EXC_EMAXITER
    assert "maximum" in status_name(err.status)
    assert status_name(999) == "unknown status 999"
