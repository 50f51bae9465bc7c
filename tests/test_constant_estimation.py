"""Pytest tests for Hölder constant estimation."""

import numpy as np
import pytest

from holdersmooth import estimate_L0_list, estimate_lambda, presmoothing
from holdersmooth.smoothing_pipeline.constant_estimation import ConstantEstimator, estimate_L0, nanmean
from holdersmooth.smoothing_pipeline.presmoothing import PresmoothedGrid


@pytest.fixture
def linear_grid():
    """Presmoothed grid of three straight lines through the origin."""
    t = np.linspace(0.45, 0.55, 11)
    return PresmoothedGrid(t0=0.5, t=t, x=np.vstack([slope * t for slope in (1.0, 2.0, 3.0)]))


class TestNanmean:
    """Test the nan-excluding mean."""

    def test_ignores_nan(self):
        assert nanmean([1.0, np.nan, 3.0]) == 2.0

    def test_all_undefined(self):
        assert np.isnan(nanmean([np.nan, np.nan]))


class TestEstimateLambda:
    """Test the constant from presmoothed grids."""

    def test_lines_at_regularity_one(self, linear_grid):
        np.testing.assert_allclose(estimate_lambda([linear_grid], 1.0), [2.0])

    def test_lines_at_regularity_one_half(self, linear_grid):
        np.testing.assert_allclose(estimate_lambda([linear_grid], 0.5), [2.0 * np.sqrt(0.05)])

    def test_undefined_curves_are_skipped(self, linear_grid):
        x = linear_grid.x.copy()
        x[0, :] = np.nan
        grid = PresmoothedGrid(t0=0.5, t=linear_grid.t, x=x)
        np.testing.assert_allclose(estimate_lambda([grid], 1.0), [2.5])


class TestEstimateL0:
    """Test the constant from neighbor windows."""

    def test_lines_without_noise(self, linear_curves):
        assert estimate_L0(linear_curves, 0.5, 1.0, 3, 0.0) == pytest.approx(2.0)

    def test_undefined_regularity(self, linear_curves):
        assert np.isnan(estimate_L0(linear_curves, 0.5, np.nan, 3, 0.0))

    def test_short_curve(self, short_curve):
        assert np.isnan(estimate_L0(short_curve, 0.5, 0.5, 5, 0.1))

    def test_noise_correction_is_clamped(self, linear_curves):
        # noise larger than the increments leaves a zero variation
        assert estimate_L0(linear_curves, 0.5, 1.0, 3, 10.0) == 0.0

    def test_list(self, linear_curves):
        L0 = estimate_L0_list(linear_curves, [0.3, 0.7], [1.0, 1.0], 3)
        np.testing.assert_allclose(L0, [2.0, 2.0])


class TestConstantEstimator:
    """Test the choice of estimate by strategy."""

    def test_continuous_uses_presmoothed_grids(self, linear_curves):
        grids = presmoothing(linear_curves, 0.5, degree=1)
        L0 = ConstantEstimator({'regularity_method': 'continuous'}).process(
            linear_curves, 0.5, 1.0, 3, np.zeros((3, 1)), presmoothed=grids)
        np.testing.assert_allclose(L0, [2.0], rtol=1e-6)

    def test_legacy_uses_neighbor_windows(self, linear_curves):
        L0 = ConstantEstimator({'regularity_method': 'legacy'}).process(
            linear_curves, [0.4, 0.6], [1.0, 1.0], 3, np.zeros((3, 2)))
        np.testing.assert_allclose(L0, [2.0, 2.0])
