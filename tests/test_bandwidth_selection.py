"""Pytest tests for bandwidth selection."""

import numpy as np
import pytest

from holdersmooth import estimate_b_list
from holdersmooth.curve_data import generate_fractional_brownian
from holdersmooth.smoothing_pipeline.bandwidth_selection import BandwidthSelector, estimate_b, mean_risk


class TestEstimateB:
    """Test the closed-form bandwidths."""

    def test_curve_closed_form(self):
        # epanechnikov: R(K) = 3/5, M(K, 1) = 3/8
        expected = (0.1 ** 2 * 0.6 / (2 * 1.0 * 1.0 * (3 / 8) ** 2 * 100)) ** (1 / 3)
        assert estimate_b(0.1, 1.0, 1.0, 100) == pytest.approx(expected, rel=1e-6)

    def test_decreases_with_the_number_of_samples(self):
        bandwidths = [estimate_b(0.1, 0.5, 1.0, n) for n in (10, 100, 1000, 10000)]
        assert np.all(np.diff(bandwidths) < 0)

    def test_increases_with_the_noise(self):
        assert estimate_b(0.05, 0.5, 1.0, 300) < estimate_b(0.2, 0.5, 1.0, 300)

    def test_mean_uses_all_samples(self):
        curve = estimate_b(0.1, 0.5, 1.0, 300)
        mean = estimate_b(0.1, 0.5, 1.0, 300, reason='mean', n_curves=50)
        assert mean == pytest.approx(estimate_b(0.1, 0.5, 1.0, 15000))
        assert mean < curve

    def test_covariance(self):
        b = estimate_b(0.1, 0.5, 1.0, 300, reason='covariance', n_curves=50, variance=0.5)
        assert np.isfinite(b) and b > 0

    @pytest.mark.parametrize("sigma,H0,L0", [
        (np.nan, 0.5, 1.0),
        (0.1, np.nan, 1.0),
        (0.1, 0.5, 0.0),
        (0.0, 0.5, 1.0),
        (0.1, 0.5, np.inf),
    ])
    def test_undefined_inputs(self, sigma, H0, L0):
        assert np.isnan(estimate_b(sigma, H0, L0, 100))

    def test_covariance_without_variance_raises_error(self):
        with pytest.raises(ValueError, match="requires a variance"):
            estimate_b(0.1, 0.5, 1.0, 300, reason='covariance', n_curves=10)

    def test_unknown_reason_raises_error(self):
        with pytest.raises(ValueError, match="Unknown bandwidth reason"):
            estimate_b(0.1, 0.5, 1.0, 300, reason='median')


class TestBandwidthSelector:
    """Test bandwidths for a set of curves."""

    @pytest.fixture
    def fbm_curves(self):
        return generate_fractional_brownian(N=20, M=100, H=0.5, sigma=0.05, seed=5)

    def test_curve_bandwidths_shape(self, fbm_curves):
        sigma = np.full((20, 2), 0.05)
        b = estimate_b_list(fbm_curves, [0.5, 0.6], [1.0, 1.2], sigma)
        assert b.shape == (20, 2)
        # common parameters and equal sizes give equal bandwidths
        np.testing.assert_allclose(b[:, 0], b[0, 0])

    def test_undefined_sigma_propagates(self, fbm_curves):
        sigma = np.full((20, 1), 0.05)
        sigma[3, 0] = np.nan
        b = estimate_b_list(fbm_curves, 0.5, 1.0, sigma)
        assert np.isnan(b[3, 0])
        assert np.isfinite(b[0, 0])

    def test_mean_bandwidths(self, fbm_curves):
        b = estimate_b_list(fbm_curves, [0.5, 0.6], [1.0, 1.2], [0.05, 0.05], reason='mean',
                            t0_list=[0.3, 0.7])
        assert b.shape == (2,)
        assert b[0] == pytest.approx(estimate_b(0.05, 0.5, 1.0, 100, reason='mean', n_curves=20))

    def test_grid_search_returns_a_grid_point(self, fbm_curves):
        grid = np.array([0.01, 0.05, 0.1, 0.2])
        selector = BandwidthSelector({'reason': 'mean', 'bandwidth_grid': grid, 'n_obs_min': 2})
        b = selector.process_set(fbm_curves, [0.5], 0.05, 0.5, 1.0)
        assert b[0] in grid

    def test_grid_search_with_undefined_parameters(self, fbm_curves):
        selector = BandwidthSelector({'reason': 'mean', 'bandwidth_grid': np.array([0.05, 0.1])})
        assert np.isnan(selector.process_set(fbm_curves, [0.5], np.nan, 0.5, 1.0)[0])

    def test_mean_risk_without_observations(self, fbm_curves):
        assert mean_risk(1e-9, fbm_curves, 0.5, 0.05, 0.5, 1.0, n_obs_min=5) == np.inf
