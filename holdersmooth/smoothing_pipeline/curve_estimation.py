"""
Curve Estimation Module

This module evaluates the Nadaraya-Watson estimator of each curve on a target
grid, with the bandwidth selected at the nearest query location.
"""

import logging
import numpy as np
from typing import Any, Dict, List

from holdersmooth.curve_data.curve import Curve, CurveSet, SmoothedCurve
from holdersmooth.utils.kernels import get_kernel
from holdersmooth.utils.parallel import ordered_map


logger = logging.getLogger(__name__)


def bandwidth_at(U, b, t0_list):
    """
    Bandwidth used at each evaluation point: the one of the nearest t0.

    Args:
        U (np.ndarray): Evaluation points.
        b (float or array-like): A single bandwidth, or one per t0.
        t0_list (float or array-like): Query locations.

    Returns:
        np.ndarray: One bandwidth per evaluation point.
    """
    U = np.atleast_1d(np.asarray(U, dtype=float))
    b = np.atleast_1d(np.asarray(b, dtype=float))
    if b.size == 1:
        return np.full(U.shape, b[0])
    t0_list = np.atleast_1d(np.asarray(t0_list, dtype=float))
    if t0_list.size == 1:
        t0_list = np.broadcast_to(t0_list, b.shape)
    if t0_list.shape != b.shape:
        raise ValueError(f"b and t0_list dimensions do not match: {b.shape[0]} != {t0_list.shape[0]}")
    nearest = np.argmin(np.abs(U[:, None] - t0_list[None, :]), axis=1)
    return b[nearest]


def nadaraya_watson_weights(t, u, b, K='epanechnikov'):
    """
    Normalized kernel weights of the samples t for the estimate at u.

    Returns:
        np.ndarray or None: Weights summing to one, None when their sum is zero.
    """
    kernel = get_kernel(K)
    weights = kernel((np.asarray(t) - u) / b)
    total = np.sum(weights)
    if not total > 0:
        return None
    return weights / total


def estimate_curve(curve, U=None, b=0.05, t0_list=0.5, kernel='epanechnikov', n_obs_min=1):
    """
    Nadaraya-Watson estimate of a curve on the points U.

    The estimate at u is undefined (nan) when the bandwidth is undefined, or
    fewer than n_obs_min samples carry a positive weight.

    Args:
        curve (Curve or dict): The curve.
        U (array-like, optional): Evaluation points. Defaults to the sampling points.
        b (float or array-like): A single bandwidth, or one per t0.
        t0_list (float or array-like): Query locations matching b.
        kernel (str): Kernel name.
        n_obs_min (int): Minimum number of samples in the window.

    Returns:
        SmoothedCurve: Estimates aligned with U.
    """
    if not isinstance(curve, Curve):
        curve = Curve(curve['t'], curve['x'])
    K = get_kernel(kernel)
    U = curve.t if U is None else np.atleast_1d(np.asarray(U, dtype=float))
    bandwidths = bandwidth_at(U, b, t0_list)

    estimates = np.full(U.shape, np.nan)
    defined = np.isfinite(bandwidths) & (bandwidths > 0)
    if np.any(defined):
        with np.errstate(invalid='ignore', divide='ignore'):
            z = (curve.t[None, :] - U[defined, None]) / bandwidths[defined, None]
            weights = K(z)
            counts = np.count_nonzero(weights > 0, axis=1)
            totals = np.sum(weights, axis=1)
            values = weights @ curve.x / totals
        enough = (counts >= n_obs_min) & (totals > 0)
        estimates[np.flatnonzero(defined)[enough]] = values[enough]

    return SmoothedCurve(t=U, x=estimates)


class CurveEstimator:
    """
    Handles the kernel estimation of every curve of a set.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the curve estimator.

        Args:
            config: Configuration dictionary containing estimation parameters
        """
        self.config = config
        self.verbose = config.get('verbose', 0)
        self.kernel = get_kernel(config.get('kernel', 'epanechnikov'))

    def process(self, data, b, t0_list, U=None, n_obs_min=None) -> List[SmoothedCurve]:
        """
        Estimate every curve.

        Args:
            data: CurveSet or anything CurveSet.coerce accepts
            b: Bandwidths, shape (n_curves, n_t0) or (n_t0,) shared by all curves
            t0_list: Query locations matching the columns of b
            U: Common evaluation points, defaults to each curve's own sampling points
            n_obs_min: Overrides the configured minimum number of observations

        Returns:
            One SmoothedCurve per curve, in input order
        """
        data = CurveSet.coerce(data)
        t0_list = np.atleast_1d(t0_list)
        b = np.asarray(b, dtype=float)
        if b.ndim < 2:
            b = np.broadcast_to(np.atleast_1d(b), (len(data), len(t0_list)))
        n_obs_min = n_obs_min or self.config.get('n_obs_min', 1)

        if self.verbose > 0:
            logger.info("Estimating %d curves", len(data))

        def smooth(i):
            return estimate_curve(data[i], U=U, b=b[i], t0_list=t0_list, kernel=self.kernel,
                                  n_obs_min=n_obs_min)

        return ordered_map(smooth, range(len(data)), self.config.get('n_jobs', 1))
