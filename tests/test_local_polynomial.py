"""Pytest tests for local polynomial regression."""

import numpy as np
import pytest

from holdersmooth.utils.local_polynomial import locpoly


class TestLocpoly:
    """Test local polynomial fits and derivatives."""

    def test_linear_function_is_reproduced(self):
        t = np.linspace(0, 1, 101)
        x = 2 + 3 * t
        grid, fitted = locpoly(t, x, bandwidth=0.05, drv=0, degree=1, gridsize=21)
        np.testing.assert_allclose(grid, np.linspace(0, 1, 21))
        np.testing.assert_allclose(fitted, 2 + 3 * grid, rtol=1e-8)

    def test_first_derivative_of_linear_function(self):
        t = np.linspace(0, 1, 101)
        _, fitted = locpoly(t, 2 + 3 * t, bandwidth=0.05, drv=1, gridsize=21)
        np.testing.assert_allclose(fitted, 3.0, rtol=1e-6)

    def test_second_derivative_of_quadratic(self):
        t = np.linspace(0, 1, 201)
        _, fitted = locpoly(t, t ** 2, bandwidth=0.05, drv=2, degree=2, gridsize=11)
        np.testing.assert_allclose(fitted, 2.0, rtol=1e-5)

    def test_range_sets_the_grid(self):
        t = np.linspace(0, 1, 101)
        grid, fitted = locpoly(t, t, bandwidth=0.05, degree=1, gridsize=11, range_x=(0.4, 0.6))
        np.testing.assert_allclose(grid, np.linspace(0.4, 0.6, 11))
        np.testing.assert_allclose(fitted, grid, rtol=1e-8)

    def test_sparse_support_gives_nan(self):
        t = np.array([0.0, 0.5, 1.0])
        x = np.array([1.0, 2.0, 3.0])
        grid, fitted = locpoly(t, x, bandwidth=0.01, degree=0, gridsize=5)
        assert fitted[0] == pytest.approx(1.0)
        assert fitted[2] == pytest.approx(2.0)
        assert np.isnan(fitted[1]) and np.isnan(fitted[3])

    def test_undefined_bandwidth_gives_nan(self):
        t = np.linspace(0, 1, 50)
        _, fitted = locpoly(t, t, bandwidth=np.nan, gridsize=7)
        assert np.all(np.isnan(fitted))

    def test_derivative_above_degree_raises_error(self):
        t = np.linspace(0, 1, 50)
        with pytest.raises(ValueError, match="must not exceed degree"):
            locpoly(t, t, bandwidth=0.1, drv=2, degree=1)

    def test_shape_mismatch_raises_error(self):
        with pytest.raises(ValueError, match="dimensions do not match"):
            locpoly(np.linspace(0, 1, 10), np.zeros(9), bandwidth=0.1)
