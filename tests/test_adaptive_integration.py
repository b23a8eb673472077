import numpy as np
import numpy.testing as npt
import pytest

from general_adaptive_integration import InteAdaptCern
from general_errors import EXC_EMAXITER, SUCCESS


def oscillating(x, a=0.01):
    return -np.cos(1.0 / (x + a)) / (a + x)**2


def sin_recip(x):
    return np.sin(1.0 / (-x + 0.01)) * (-x + 0.01)**-2.0


def test_oscillating_integrand_double():
    it = InteAdaptCern()
    val, err = it.integ_err(oscillating, 0.0, 1.0)
    exact = np.sin(1.0 / 1.01) - np.sin(1.0 / 0.01)
    npt.assert_allclose(val, exact, rtol=1e-8)
    assert it.status == SUCCESS
    assert err < 1e-7
    # hard integrand: many subdivisions but within the default budget
    assert 10 < it.get_nsubdivisions() <= 100


def test_oscillating_integrand_long_double():
    it = InteAdaptCern(dtype=np.longdouble)
    a = np.longdouble("0.01")
    val, err = it.integ_err(lambda x: oscillating(x, a), 0, 1)
    exact = np.sin(1 / (1 + a)) - np.sin(1 / a)
    assert isinstance(val, np.longdouble)
    assert abs(val - exact) <= np.longdouble("1e-8") * abs(exact)


def test_subdivision_records_partition_the_range():
    it = InteAdaptCern()
    val, _ = it.integ_err(oscillating, 0.0, 1.0)
    low, high, values, errors = it.get_subdivisions()
    n = it.get_nsubdivisions()
    assert len(low) == len(high) == len(values) == len(errors) == n
    assert low[0] == 0.0 and high[-1] == 1.0
    npt.assert_array_equal(low[1:], high[:-1])
    npt.assert_allclose(values.sum(), val, rtol=1e-12)
    assert np.all(errors >= 0.0)


def test_upper_infinite_range():
    val, _ = InteAdaptCern().integ_err(lambda x: np.exp(-x), 0.0, np.inf)
    npt.assert_allclose(val, 1.0, rtol=1e-8)


def test_lower_infinite_range():
    # substitute w = 0.01 - x: ∫_{1.01}^∞ sin(1/w)/w² dw = 1 - cos(100/101)
    val, _ = InteAdaptCern().integ_err(sin_recip, -np.inf, -1.0)
    npt.assert_allclose(val, 1.0 - np.cos(100.0 / 101.0), rtol=1e-7)


def test_lower_infinite_range_long_double():
    it = InteAdaptCern(dtype=np.longdouble)
    val, _ = it.integ_err(sin_recip, -np.inf, -1.0)
    exact = 1 - np.cos(np.longdouble(100) / np.longdouble(101))
    assert abs(val - exact) <= 1e-7 * abs(exact)


def test_doubly_infinite_range():
    val, _ = InteAdaptCern().integ_err(lambda x: np.exp(-x * x), -np.inf, np.inf)
    npt.assert_allclose(val, np.sqrt(np.pi), rtol=1e-8)


def test_reversed_and_empty_ranges():
    it = InteAdaptCern()
    npt.assert_allclose(it.integ(np.cos, 1.0, 0.0), -np.sin(1.0), rtol=1e-10)
    assert it.integ(np.cos, 2.0, 2.0) == 0.0


def test_budget_exhaustion_returns_status_without_raising():
    it = InteAdaptCern(nsub=3, tol_rel=1e-12, tol_abs=0.0)
    val, err = it.integ_err(oscillating, 0.0, 1.0)
    assert it.status == EXC_EMAXITER
    assert it.get_nsubdivisions() == 3
    assert np.isfinite(val) and np.isfinite(err)


def test_initial_subdivisions():
    it = InteAdaptCern(nsubdiv=4)
    val = it.integ(lambda x: x**3, 0.0, 2.0)
    npt.assert_allclose(val, 4.0, rtol=1e-12)
    assert it.get_nsubdivisions() == 4


def test_invalid_construction():
    with pytest.raises(ValueError):
        InteAdaptCern(nsub=0)
