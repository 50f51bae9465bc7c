"""Pytest configuration and fixtures for the smoothing tests."""

import numpy as np
import pytest

from holdersmooth.curve_data import Curve, CurveSet


@pytest.fixture
def common_grid():
    """300 equally spaced sampling points on [0, 1]."""
    return np.linspace(0, 1, 300)


@pytest.fixture
def clean_sine_curve(common_grid):
    """sin(2 pi t) without noise."""
    return common_grid, np.sin(2 * np.pi * common_grid)


@pytest.fixture
def noisy_sine_curve(clean_sine_curve):
    """sin(2 pi t) with Gaussian noise of standard deviation 0.05."""
    t, clean_x = clean_sine_curve
    rng = np.random.default_rng(42)
    noisy_x = clean_x + 0.05 * rng.standard_normal(len(t))
    return t, noisy_x, clean_x


@pytest.fixture
def noisy_sine_set():
    """Three noisy sine curves of different sizes, keyed by name."""
    rng = np.random.default_rng(7)
    curves = {}
    for name, size in [('c', 120), ('a', 300), ('b', 200)]:
        t = np.sort(rng.uniform(0, 1, size))
        curves[name] = {'t': t, 'x': np.sin(2 * np.pi * t) + 0.05 * rng.standard_normal(size)}
    return curves


@pytest.fixture
def short_curve():
    """A curve too short for the neighbor windows of k0 = 5."""
    t = np.linspace(0, 1, 10)
    return CurveSet([Curve(t, np.cos(t))])


@pytest.fixture
def linear_curves():
    """Noise-free straight lines of slopes 1, 2 and 3 on a common grid."""
    t = np.linspace(0, 1, 101)
    return CurveSet([Curve(t, slope * t + 1) for slope in (1.0, 2.0, 3.0)])
