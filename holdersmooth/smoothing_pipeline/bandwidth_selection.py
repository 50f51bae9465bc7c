"""
Bandwidth Selection Module

This module turns the estimated noise level, regularity and Hölder constant
into the bandwidth minimizing the asymptotic risk of the kernel estimator.

With R(K) the integral of K^2 and M(K, H) the integral of |u|^H K(u), the risk
of a single curve estimate with n samples is

    L0^2 M(K, H0)^2 b^(2 H0) + sigma^2 R(K) / (n b)

and is minimized by b = (sigma^2 R(K) / (2 H0 L0^2 M(K, H0)^2 n))^(1 / (2 H0 + 1)).
For the mean the same form holds with n = N m samples in total. For the
covariance the variance term involves pairs of observations and var(X_t0).
"""

import logging
import numpy as np
from typing import Any, Dict

from holdersmooth.curve_data.curve import CurveSet
from holdersmooth.utils.kernels import get_kernel
from .noise_estimation import broadcast_sigma


logger = logging.getLogger(__name__)


def _defined(*values):
    return all(np.isfinite(v) and v > 0 for v in values)


def estimate_b(sigma, H0, L0, n, K='epanechnikov', reason='curve', n_curves=1, variance=None):
    """
    Closed-form bandwidth minimizing the asymptotic risk.

    Args:
        sigma (float): Noise standard deviation.
        H0 (float): Regularity.
        L0 (float): Hölder constant.
        n (float): Number of samples per curve (mean number for 'mean' and 'covariance').
        K (str or Kernel, optional): Kernel. Defaults to 'epanechnikov'.
        reason (str, optional): 'curve', 'mean' or 'covariance'. Defaults to 'curve'.
        n_curves (int, optional): Number of curves, used by 'mean' and 'covariance'.
        variance (float, optional): var(X_t0), required by 'covariance'.

    Returns:
        float: The bandwidth, nan when an input is undefined or non-positive.
    """
    kernel = get_kernel(K)
    if reason == 'covariance' and variance is None:
        raise ValueError("The covariance bandwidth requires a variance estimate")
    if reason not in ('curve', 'mean', 'covariance'):
        raise ValueError(f"Unknown bandwidth reason: {reason}")
    if not _defined(sigma, H0, L0, n, n_curves):
        return np.nan

    R = kernel.squared_integral()
    M = kernel.moment(H0)
    bias = 2 * H0 * L0 ** 2 * M ** 2

    if reason == 'curve':
        return float((sigma ** 2 * R / (bias * n)) ** (1 / (2 * H0 + 1)))
    if reason == 'mean':
        return float((sigma ** 2 * R / (bias * n_curves * n)) ** (1 / (2 * H0 + 1)))

    if not _defined(variance):
        return np.nan
    nume = sigma ** 2 * (sigma ** 2 + 2 * variance) * R ** 2
    deno = bias * variance * n_curves * n ** 2
    return float((nume / deno) ** (1 / (2 * H0 + 2)))


def mean_risk(b, data, t0, sigma, H0, L0, K='epanechnikov', n_obs_min=1, variance=0.0):
    """
    Estimated risk of the mean estimate at t0 for the bandwidth b.

    Only curves with at least n_obs_min samples in [t0 - b, t0 + b] count.

    Returns:
        float: The risk, inf when no curve has enough samples.
    """
    kernel = get_kernel(K)
    n_eff = sum(np.count_nonzero(np.abs(curve.t - t0) <= b) >= n_obs_min for curve in data)
    if n_eff == 0:
        return np.inf
    m = data.mean_size()
    variance = 0.0 if variance is None or np.isnan(variance) else variance
    bias = L0 ** 2 * kernel.moment(H0) ** 2 * b ** (2 * H0)
    return float(bias + sigma ** 2 * kernel.squared_integral() / (n_eff * m * b) + variance / n_eff)


class BandwidthSelector:
    """
    Handles bandwidth selection at a list of query locations.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the bandwidth selector.

        Args:
            config: Configuration dictionary containing bandwidth parameters
        """
        self.config = config
        self.verbose = config.get('verbose', 0)
        self.kernel = get_kernel(config.get('kernel', 'epanechnikov'))

    def process_curves(self, data, sigma, H0_list, L0_list) -> np.ndarray:
        """
        Bandwidth of each curve at each query location.

        Args:
            data: CurveSet or anything CurveSet.coerce accepts
            sigma: Noise estimates of shape (n_curves, n_t0)
            H0_list: H0 at each location
            L0_list: L0 at each location

        Returns:
            Array of shape (n_curves, n_t0)
        """
        data = CurveSet.coerce(data)
        H0_list, L0_list = np.broadcast_arrays(np.atleast_1d(H0_list), np.atleast_1d(L0_list))
        sigma = broadcast_sigma(sigma, len(data), len(H0_list))

        if self.verbose > 0:
            logger.info("Selecting curve bandwidths for %d curves at %d locations", len(data), len(H0_list))

        sizes = data.sizes()
        return np.array([
            [estimate_b(sigma[i, j], H0, L0, sizes[i], K=self.kernel, reason='curve')
             for j, (H0, L0) in enumerate(zip(H0_list, L0_list))]
            for i in range(len(data))
        ])

    def process_set(self, data, t0_list, sigma, H0_list, L0_list, variance=None, reason=None) -> np.ndarray:
        """
        Bandwidth common to all curves at each query location.

        Uses the closed form of the configured reason, or, for the mean with a
        bandwidth grid configured, the grid point of smallest estimated risk.

        Args:
            data: CurveSet or anything CurveSet.coerce accepts
            t0_list: Query locations
            sigma: Noise level at each location, common to the curves
            H0_list: H0 at each location
            L0_list: L0 at each location
            variance: var(X_t0) at each location
            reason: Overrides the configured reason

        Returns:
            Array of shape (n_t0,)
        """
        data = CurveSet.coerce(data)
        reason = reason or self.config.get('reason', 'mean')
        t0_list, sigma, H0_list, L0_list = np.broadcast_arrays(
            np.atleast_1d(t0_list), np.atleast_1d(sigma), np.atleast_1d(H0_list), np.atleast_1d(L0_list))
        if variance is not None:
            variance = np.broadcast_to(np.atleast_1d(variance), t0_list.shape)

        grid = self.config.get('bandwidth_grid')
        n_obs_min = self.config.get('n_obs_min', 1)
        m = data.mean_size()

        if self.verbose > 0:
            logger.info("Selecting %s bandwidths at %d locations", reason, len(t0_list))

        bandwidths = []
        for j, t0 in enumerate(t0_list):
            v = None if variance is None else variance[j]
            if reason == 'mean' and grid is not None:
                bandwidths.append(self._grid_search(data, t0, sigma[j], H0_list[j], L0_list[j], grid,
                                                    n_obs_min, v))
            else:
                bandwidths.append(estimate_b(sigma[j], H0_list[j], L0_list[j], m, K=self.kernel,
                                             reason=reason, n_curves=len(data), variance=v))
        return np.array(bandwidths)

    def _grid_search(self, data, t0, sigma, H0, L0, grid, n_obs_min, variance):
        if not _defined(sigma, H0, L0):
            return np.nan
        risks = [mean_risk(b, data, t0, sigma, H0, L0, self.kernel, n_obs_min, variance) for b in grid]
        if not np.any(np.isfinite(risks)):
            return np.nan
        best = float(np.asarray(grid)[int(np.argmin(risks))])
        if self.verbose > 1:
            logger.debug("Grid bandwidth at t0=%.3f: %.4g", t0, best)
        return best


def estimate_b_list(data, H0_list, L0_list, sigma, K='epanechnikov', reason='curve',
                    t0_list=None, variance=None):
    """
    Bandwidths for a set of curves.

    Args:
        data: CurveSet or anything CurveSet.coerce accepts
        H0_list: H0 at each query location
        L0_list: L0 at each query location
        sigma: For 'curve', noise per curve (and location); otherwise per location
        K: Kernel name
        reason: 'curve', 'mean' or 'covariance'
        t0_list: Query locations, needed for 'mean' and 'covariance'
        variance: var(X_t0) at each location, needed for 'covariance'

    Returns:
        np.ndarray: Shape (n_curves, n_t0) for 'curve', (n_t0,) otherwise.
    """
    selector = BandwidthSelector({'kernel': K, 'reason': reason})
    if reason == 'curve':
        return selector.process_curves(data, sigma, H0_list, L0_list)
    if t0_list is None:
        t0_list = np.zeros(np.atleast_1d(H0_list).shape)
    return selector.process_set(data, t0_list, sigma, H0_list, L0_list, variance=variance)
