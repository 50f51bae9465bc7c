"""Pytest tests for the smoothing pipeline and its entry points."""

import logging

import numpy as np
import pytest

from holdersmooth import (
    SmoothingConfig,
    SmoothingPipeline,
    SmoothingResult,
    estimate_L0_list,
    smooth_curves,
    smooth_curves_mean,
    smooth_curves_regularity,
)
from holdersmooth.curve_data import (
    Curve,
    generate_fractional_brownian,
    generate_integrate_fractional_brownian,
)


def rms(values):
    return float(np.sqrt(np.mean(values ** 2)))


class TestSmoothCurves:
    """Test smoothing with one bandwidth per curve."""

    def test_noisy_sine(self, noisy_sine_curve):
        t, noisy_x, clean_x = noisy_sine_curve
        result = smooth_curves({'t': t, 'x': noisy_x}, t0_list=0.5, k0_list=15)

        assert isinstance(result, SmoothingResult)
        smooth = result.smooth[0]
        np.testing.assert_array_equal(smooth.t, t)
        assert np.all(np.isfinite(smooth.x))

        error = rms(smooth.x - clean_x)
        assert error < 0.05
        assert error < rms(noisy_x - clean_x)

    def test_parameter_shapes(self, noisy_sine_set):
        result = smooth_curves(noisy_sine_set, t0_list=[0.3, 0.5, 0.7], k0_list=3)
        assert result.parameter.sigma.shape == (3, 3)
        assert result.parameter.b.shape == (3, 3)
        assert result.parameter.H0.shape == (3,)
        assert result.parameter.L0.shape == (3,)

    def test_output_follows_input_order(self, noisy_sine_set):
        result = smooth_curves(noisy_sine_set, t0_list=0.5, k0_list=3)
        assert result.ids == ['c', 'a', 'b']
        assert [len(s) for s in result.smooth] == [120, 300, 200]
        assert list(result.to_dict()['smooth']) == ['c', 'a', 'b']

    def test_parallel_matches_serial(self, noisy_sine_set):
        U = np.linspace(0, 1, 51)
        serial = smooth_curves(noisy_sine_set, U=U, t0_list=[0.25, 0.75], k0_list=3)
        parallel = smooth_curves(noisy_sine_set, U=U, t0_list=[0.25, 0.75], k0_list=3, n_jobs=4)
        np.testing.assert_array_equal(serial.parameter.b, parallel.parameter.b)
        for a, b in zip(serial.smooth, parallel.smooth):
            np.testing.assert_array_equal(a.x, b.x)

    def test_common_evaluation_points(self, noisy_sine_set):
        U = np.linspace(0, 1, 21)
        result = smooth_curves(noisy_sine_set, U=U, t0_list=0.5, k0_list=3)
        for smooth in result.smooth:
            np.testing.assert_array_equal(smooth.t, U)

    @pytest.mark.parametrize("method", ['continuous', 'legacy'])
    def test_degenerate_curve_is_undefined(self, short_curve, method):
        result = smooth_curves(short_curve, t0_list=0.5, k0_list=5, regularity_method=method)
        assert np.isnan(result.parameter.sigma[0, 0])
        assert np.isnan(result.parameter.b[0, 0])
        assert np.all(np.isnan(result.smooth[0].x))
        if method == 'legacy':
            assert np.isnan(result.parameter.H0[0])

    def test_known_sigma(self, noisy_sine_curve):
        t, noisy_x, _ = noisy_sine_curve
        result = smooth_curves(Curve(t, noisy_x), t0_list=0.5, k0_list=15, sigma=0.05)
        np.testing.assert_array_equal(result.parameter.sigma, [[0.05]])

    @pytest.mark.parametrize("k0,t0,message", [
        (0, 0.5, "k0 must be at least 1"),
        (2, 1.5, r"t0 must lie in \[0, 1\]"),
        (2.7, 0.5, "k0 must be an integer"),
    ])
    def test_invalid_locations_raise_error(self, noisy_sine_set, k0, t0, message):
        with pytest.raises(ValueError, match=message):
            smooth_curves(noisy_sine_set, t0_list=t0, k0_list=k0)

    def test_logging(self, noisy_sine_set, caplog):
        with caplog.at_level(logging.INFO, logger='holdersmooth'):
            smooth_curves(noisy_sine_set, t0_list=0.5, k0_list=3, verbose=1)
        assert "Smoothing 3 curves" in caplog.text


class TestSmoothCurvesMean:
    """Test smoothing with the bandwidth of the mean."""

    @pytest.fixture
    def fbm_curves(self):
        return generate_fractional_brownian(N=50, M=200, H=0.5, sigma=0.05, seed=31)

    def test_shared_bandwidth_and_mean(self, fbm_curves):
        U = np.linspace(0, 1, 101)
        result = smooth_curves_mean(fbm_curves, U=U, t0_list=0.5, k0_list=4)
        assert result.parameter.b.shape == (1,)
        assert result.parameter.sigma.shape == (1,)
        assert result.mean is not None
        np.testing.assert_array_equal(result.mean.t, U)
        assert np.any(np.isfinite(result.mean.x))
        assert len(result.smooth) == 50

    def test_bandwidth_grid(self, fbm_curves):
        grid = np.linspace(0.01, 0.1, 10)
        result = smooth_curves_mean(fbm_curves, t0_list=[0.3, 0.7], k0_list=4, grid=grid)
        assert result.parameter.b.shape == (2,)
        assert np.all(np.isin(result.parameter.b, grid))
        assert result.mean is None

    def test_mean_bandwidth_is_smaller(self, fbm_curves):
        curve = smooth_curves(fbm_curves, t0_list=0.5, k0_list=4)
        mean = smooth_curves_mean(fbm_curves, t0_list=0.5, k0_list=4)
        assert mean.parameter.b[0] < np.nanmedian(curve.parameter.b[:, 0])


class TestSmoothCurvesRegularity:
    """Test smoothing of differentiable curves."""

    @pytest.fixture
    def smooth_set(self, common_grid):
        return generate_integrate_fractional_brownian(N=300, H=0.5, sigma=0.001, t=common_grid, seed=41)

    def test_regularity_above_one(self, smooth_set):
        result = smooth_curves_regularity(smooth_set, t0=0.5, k0=5)
        assert result.parameter.H0[0] > 1
        assert result.parameter.b.shape == (300, 1)
        assert len(result.smooth) == 300

    def test_shared_bandwidth(self, smooth_set):
        result = smooth_curves_regularity(smooth_set, t0=[0.4, 0.6], k0=5, reason='mean')
        assert result.parameter.b.shape == (2,)
        assert np.all(np.isfinite(result.parameter.b))

    def test_pipeline_uses_escalation(self, smooth_set):
        pipeline = SmoothingPipeline(SmoothingConfig(max_escalation=0))
        result = pipeline.smooth_curves_regularity(smooth_set, t0=0.5, k0=5)
        # no derivative absorbed
        assert result.parameter.H0[0] < 1.25

    def test_constant_from_neighbor_windows(self, smooth_set):
        result = smooth_curves_regularity(smooth_set, t0=0.5, k0=5)
        expected = estimate_L0_list(smooth_set, 0.5, result.parameter.H0, 5, result.parameter.sigma[:, 0])
        np.testing.assert_allclose(result.parameter.L0, expected)


class TestSmoothingConfig:
    """Test configuration validation."""

    def test_defaults(self):
        config = SmoothingConfig()
        assert config.kernel == 'epanechnikov'
        assert config.regularity_method == 'continuous'

    @pytest.mark.parametrize("kwargs,message", [
        ({'kernel': 'gaussian'}, "kernel must be one of"),
        ({'regularity_method': 'wavelet'}, "regularity_method must be one of"),
        ({'reason': 'median'}, "reason must be one of"),
        ({'gamma': 1.5}, "gamma must be in"),
        ({'max_escalation': 6}, "max_escalation must be between"),
        ({'sigma': -1.0}, "sigma must be non-negative"),
        ({'n_obs_min': 0}, "n_obs_min must be at least 1"),
        ({'bandwidth_grid': [0.1, -0.1]}, "bandwidth_grid must be"),
        ({'n_jobs': 0}, "n_jobs must be positive"),
    ])
    def test_invalid_parameters_raise_error(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            SmoothingConfig(**kwargs)

    def test_update(self):
        config = SmoothingConfig()
        assert config.update(kernel='biweight') is config
        assert config.kernel == 'biweight'
        with pytest.raises(ValueError, match="Unknown parameter"):
            config.update(bandwidth=0.1)
        with pytest.raises(ValueError, match="kernel must be one of"):
            config.update(kernel='cosine')

    def test_copy_is_independent(self):
        config = SmoothingConfig(verbose=1)
        copied = config.copy()
        copied.update(verbose=0)
        assert config.verbose == 1

    def test_config_subsets(self):
        config = SmoothingConfig(sigma=0.1, n_jobs=2)
        assert config.get_noise_config()['sigma'] == 0.1
        assert config.get_regularity_config()['regularity_method'] == 'continuous'
        assert config.get_estimation_config()['n_jobs'] == 2
