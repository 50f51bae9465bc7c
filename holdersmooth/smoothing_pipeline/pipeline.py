"""
Main Smoothing Pipeline

This module provides the SmoothingPipeline class that calls all the modular
estimation steps for adaptive curve smoothing, and the functional entry points
built on it.
"""

import logging
import numpy as np
from typing import Optional

from holdersmooth.curve_data.curve import CurveSet, ParameterEstimate, SmoothedCurve, SmoothingResult
from .config import SmoothingConfig
from .presmoothing import Presmoother, estimate_var
from .noise_estimation import NoiseEstimator
from .regularity_estimation import RegularityEstimator
from .constant_estimation import ConstantEstimator, nanmean
from .bandwidth_selection import BandwidthSelector
from .curve_estimation import CurveEstimator


logger = logging.getLogger(__name__)


class SmoothingPipeline:
    """
    Main pipeline class for adaptive curve smoothing.

    Each run goes through the same steps:
    1. Noise estimation
    2. Regularity estimation (direct or by escalation)
    3. Hölder constant estimation
    4. Bandwidth selection
    5. Curve estimation

    Example:
        config = SmoothingConfig(kernel='epanechnikov')
        pipeline = SmoothingPipeline(config)
        result = pipeline.smooth_curves(data, t0_list=[0.2, 0.5, 0.8], k0_list=6)
    """

    def __init__(self, config: Optional[SmoothingConfig] = None):
        """
        Initialize the smoothing pipeline.

        Args:
            config: Pipeline configuration object
        """
        self.config = config or SmoothingConfig()

        # Initialize processing modules
        self.presmoother = Presmoother(self.config.get_presmoothing_config())
        self.noise_estimator = NoiseEstimator(self.config.get_noise_config())
        self.regularity_estimator = RegularityEstimator(self.config.get_regularity_config())
        self.constant_estimator = ConstantEstimator(self.config.get_regularity_config())
        self.bandwidth_selector = BandwidthSelector(self.config.get_bandwidth_config())
        self.curve_estimator = CurveEstimator(self.config.get_estimation_config())

    def _prepare(self, data, t0_list, k0_list):
        data = CurveSet.coerce(data)
        t0_list, k0_list = np.broadcast_arrays(np.atleast_1d(np.asarray(t0_list, dtype=float)),
                                               np.atleast_1d(np.asarray(k0_list, dtype=float)))
        if np.any(k0_list != np.round(k0_list)):
            raise ValueError("k0 must be an integer")
        k0_list = k0_list.astype(int)
        if np.any(k0_list < 1):
            raise ValueError("k0 must be at least 1")
        if np.any((t0_list < 0) | (t0_list > 1)):
            raise ValueError("t0 must lie in [0, 1]")
        return data, t0_list, k0_list

    def _presmooth(self, data, t0_list):
        if self.config.regularity_method == 'continuous' or self.config.reason == 'covariance':
            return self.presmoother.process(data, t0_list, order=1, drv=0, degree=0)
        return None

    def estimate_parameters(self, data, t0_list=0.5, k0_list=2) -> ParameterEstimate:
        """
        Estimate sigma, H0, L0 and the bandwidth of each curve at each query location.

        Returns:
            ParameterEstimate with sigma and b of shape (n_curves, n_t0), H0 and L0 of shape (n_t0,)
        """
        data, t0_list, k0_list = self._prepare(data, t0_list, k0_list)
        presmoothed = self._presmooth(data, t0_list)

        sigma = self.noise_estimator.process(data, t0_list, k0_list)
        H0 = self.regularity_estimator.process(data, t0_list, k0_list, presmoothed=presmoothed)
        L0 = self.constant_estimator.process(data, t0_list, H0, k0_list, sigma, presmoothed=presmoothed)
        b = self.bandwidth_selector.process_curves(data, sigma, H0, L0)
        return ParameterEstimate(sigma=sigma, H0=H0, L0=L0, b=b)

    def estimate_parameters_mean(self, data, t0_list=0.5, k0_list=2, reason='mean') -> ParameterEstimate:
        """
        Estimate the parameters and the bandwidth shared by all curves at each query location.

        Returns:
            ParameterEstimate with arrays of shape (n_t0,); sigma averaged over the curves
        """
        data, t0_list, k0_list = self._prepare(data, t0_list, k0_list)
        presmoothed = self._presmooth(data, t0_list)
        if reason == 'covariance' and presmoothed is None:
            presmoothed = self.presmoother.process(data, t0_list, order=1, drv=0, degree=0)

        sigma_curves = self.noise_estimator.process(data, t0_list, k0_list)
        sigma = np.array([nanmean(column) for column in sigma_curves.T])
        H0 = self.regularity_estimator.process(data, t0_list, k0_list, presmoothed=presmoothed)
        L0 = self.constant_estimator.process(data, t0_list, H0, k0_list, sigma_curves, presmoothed=presmoothed)
        variance = estimate_var(presmoothed) if presmoothed is not None else None
        b = self.bandwidth_selector.process_set(data, t0_list, sigma, H0, L0, variance=variance, reason=reason)
        return ParameterEstimate(sigma=sigma, H0=H0, L0=L0, b=b)

    def smooth_curves(self, data, U=None, t0_list=0.5, k0_list=2) -> SmoothingResult:
        """
        Smooth each curve with its own bandwidth.

        Args:
            data: CurveSet or anything CurveSet.coerce accepts
            U: Common evaluation points; each curve's own sampling points when None
            t0_list: Query locations
            k0_list: Neighbor parameters, broadcast against t0_list

        Returns:
            SmoothingResult aligned with the input curves
        """
        data, t0_list, k0_list = self._prepare(data, t0_list, k0_list)
        if self.config.verbose > 0:
            logger.info("Smoothing %d curves at %d locations", len(data), len(t0_list))

        parameter = self.estimate_parameters(data, t0_list, k0_list)
        curves = self.curve_estimator.process(data, parameter.b, t0_list, U=U)
        return SmoothingResult(parameter=parameter, smooth=curves, ids=data.ids)

    def smooth_curves_mean(self, data, U=None, t0_list=0.5, k0_list=2) -> SmoothingResult:
        """
        Smooth the curves with the bandwidth suited to the estimation of their mean.

        Windows holding fewer than the configured n_obs_min observations give
        undefined estimates.

        When U is given, the pointwise mean of the smoothed curves, ignoring
        undefined values, is returned as well.

        Args:
            data: CurveSet or anything CurveSet.coerce accepts
            U: Common evaluation points; each curve's own sampling points when None
            t0_list: Query locations
            k0_list: Neighbor parameters, broadcast against t0_list

        Returns:
            SmoothingResult aligned with the input curves
        """
        data, t0_list, k0_list = self._prepare(data, t0_list, k0_list)
        if self.config.verbose > 0:
            logger.info("Smoothing %d curves for the mean at %d locations", len(data), len(t0_list))

        parameter = self.estimate_parameters_mean(data, t0_list, k0_list, reason='mean')
        curves = self.curve_estimator.process(data, parameter.b, t0_list, U=U)
        mean = None
        if U is not None:
            with np.errstate(invalid='ignore'):
                stacked = np.vstack([c.x for c in curves])
                counts = np.sum(~np.isnan(stacked), axis=0)
                totals = np.nansum(stacked, axis=0)
                values = np.where(counts > 0, totals / np.maximum(counts, 1), np.nan)
            mean = SmoothedCurve(t=np.asarray(U, dtype=float), x=values)
        return SmoothingResult(parameter=parameter, smooth=curves, ids=data.ids, mean=mean)

    def smooth_curves_regularity(self, data, U=None, t0=0.5, k0=2) -> SmoothingResult:
        """
        Smooth curves whose regularity may exceed 1.

        H0 is estimated by escalation over derivative orders. The bandwidth
        follows the configured reason: per curve for 'curve', shared otherwise.

        Args:
            data: CurveSet or anything CurveSet.coerce accepts
            U: Common evaluation points; each curve's own sampling points when None
            t0: Query location(s)
            k0: Neighbor parameter(s)

        Returns:
            SmoothingResult aligned with the input curves
        """
        data, t0_list, k0_list = self._prepare(data, t0, k0)
        if self.config.verbose > 0:
            logger.info("Smoothing %d curves of high regularity at %d locations", len(data), len(t0_list))

        presmoothed = self._presmooth(data, t0_list)
        sigma = self.noise_estimator.process(data, t0_list, k0_list)
        H0 = self.regularity_estimator.process_escalated(data, t0_list, k0_list)
        # escalated H0 may exceed 1, so L0 comes from the raw windows
        L0 = self.constant_estimator.process(data, t0_list, H0, k0_list, sigma, presmoothed=None)

        reason = self.config.reason
        if reason == 'curve':
            b = self.bandwidth_selector.process_curves(data, sigma, H0, L0)
        else:
            sigma_mean = np.array([nanmean(column) for column in sigma.T])
            if presmoothed is None:
                presmoothed = self.presmoother.process(data, t0_list, order=1, drv=0, degree=0)
            b = self.bandwidth_selector.process_set(data, t0_list, sigma_mean, H0, L0,
                                                    variance=estimate_var(presmoothed), reason=reason)

        curves = self.curve_estimator.process(data, b, t0_list, U=U)
        parameter = ParameterEstimate(sigma=sigma, H0=H0, L0=L0, b=b)
        return SmoothingResult(parameter=parameter, smooth=curves, ids=data.ids)


def smooth_curves(data, U=None, t0_list=0.5, k0_list=2, K='epanechnikov', **kwargs) -> SmoothingResult:
    """
    Non-parametric smoothing of a set of curves, one bandwidth per curve.

    Args:
        data: CurveSet or anything CurveSet.coerce accepts
        U: Evaluation points; each curve's own sampling points when None
        t0_list: Query locations at which the parameters are estimated
        k0_list: Neighbor parameters, a scalar is used for every t0
        K: Kernel name
        **kwargs: Further SmoothingConfig fields

    Returns:
        SmoothingResult with the parameters and the smoothed curves
    """
    config = SmoothingConfig(kernel=K, **kwargs)
    return SmoothingPipeline(config).smooth_curves(data, U=U, t0_list=t0_list, k0_list=k0_list)


def smooth_curves_mean(data, U=None, t0_list=0.5, k0_list=2, grid=None, nb_obs_minimal=2,
                       K='epanechnikov', **kwargs) -> SmoothingResult:
    """
    Non-parametric smoothing of a set of curves with the bandwidth of the mean.

    Args:
        data: CurveSet or anything CurveSet.coerce accepts
        U: Evaluation points; each curve's own sampling points when None
        t0_list: Query locations at which the parameters are estimated
        k0_list: Neighbor parameters, a scalar is used for every t0
        grid: Candidate bandwidths, the closed form is used when None
        nb_obs_minimal: Minimum number of observations in a kernel window
        K: Kernel name
        **kwargs: Further SmoothingConfig fields

    Returns:
        SmoothingResult with the parameters, the smoothed curves and, with U, their mean
    """
    config = SmoothingConfig(kernel=K, bandwidth_grid=grid, n_obs_min=nb_obs_minimal, reason='mean', **kwargs)
    return SmoothingPipeline(config).smooth_curves_mean(data, U=U, t0_list=t0_list, k0_list=k0_list)


def smooth_curves_regularity(data, U=None, t0=0.5, k0=2, K='epanechnikov', gamma=0.5, Gamma=1.0,
                             reason='curve', old=False, **kwargs) -> SmoothingResult:
    """
    Non-parametric smoothing of a set of curves whose regularity may exceed 1.

    Args:
        data: CurveSet or anything CurveSet.coerce accepts
        U: Evaluation points; each curve's own sampling points when None
        t0: Query location(s)
        k0: Neighbor parameter(s)
        K: Kernel name
        gamma: Presmoothing exponent
        Gamma: Exponent of the escalation threshold 1 - log(m)^(-Gamma)
        reason: 'curve', 'mean' or 'covariance'
        old: Use the legacy neighbor strategy instead of the continuous one
        **kwargs: Further SmoothingConfig fields

    Returns:
        SmoothingResult with the parameters and the smoothed curves
    """
    config = SmoothingConfig(kernel=K, gamma=gamma, escalation_gamma=Gamma, reason=reason,
                             regularity_method='legacy' if old else 'continuous', **kwargs)
    return SmoothingPipeline(config).smooth_curves_regularity(data, U=U, t0=t0, k0=k0)
