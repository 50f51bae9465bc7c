"""
Hölder Constant Estimation Module

This module estimates the Hölder constant L0 which scales the local variation
of the curves at the estimated regularity H0.
"""

import logging
import numpy as np
from typing import Any, Dict

from holdersmooth.curve_data.curve import CurveSet
from holdersmooth.utils.neighbors import window_start, theta, spacing
from .noise_estimation import noise_window_size, broadcast_sigma
from .presmoothing import CENTER, LEFT, RIGHT


logger = logging.getLogger(__name__)


def nanmean(values):
    """Mean of the defined values, nan when there are none."""
    values = np.asarray(values, dtype=float)
    defined = values[~np.isnan(values)]
    return float(np.mean(defined)) if defined.size else np.nan


def estimate_lambda(presmoothed, H0_list):
    """
    Estimate the Hölder constant from presmoothed grids.

    For each curve, the increments between the window ends and t0 are
    normalized by |dt|^H0 and the larger of the two kept.

    Args:
        presmoothed (list): PresmoothedGrid objects, one per t0.
        H0_list (array-like): H0 estimate at each t0.

    Returns:
        np.ndarray: Estimate at each t0, nan-excluding mean across curves.
    """
    H0_list = np.broadcast_to(np.atleast_1d(np.asarray(H0_list, dtype=float)), (len(presmoothed),))
    estimates = []
    for grid, H0 in zip(presmoothed, H0_list):
        x, t = grid.x, grid.t
        with np.errstate(invalid='ignore'):
            inner = np.abs(x[:, CENTER] - x[:, LEFT]) / np.abs(t[CENTER] - t[LEFT]) ** H0
            outer = np.abs(x[:, RIGHT] - x[:, CENTER]) / np.abs(t[RIGHT] - t[CENTER]) ** H0
        estimates.append(nanmean(np.fmax(inner, outer)))
    return np.array(estimates)


def _scale_ratio(curve, idx, k, H0, sigma):
    variation = theta(curve.x, k, idx) - 2 * sigma ** 2
    dt = spacing(curve.t, k, idx)
    if np.isnan(variation) or not dt > 0:
        return np.nan
    return np.sqrt(max(variation, 0.0)) / dt ** H0


def estimate_L0(data, t0, H0, k0, sigma):
    """
    Estimate the Hölder constant from raw neighbor windows.

    Args:
        data: CurveSet or anything CurveSet.coerce accepts
        t0 (float): Query location.
        H0 (float): Regularity at t0.
        k0 (int): Neighbor parameter, the window holds 4 k0 - 2 points.
        sigma (float or array-like): Noise standard deviation, one per curve or common.

    Returns:
        float: The estimate, nan when no curve has a complete window.
    """
    data = CurveSet.coerce(data)
    k0 = int(k0)
    sigma = np.broadcast_to(np.asarray(sigma, dtype=float), (len(data),))
    if np.isnan(H0):
        return np.nan

    ratios = []
    for curve, s in zip(data, sigma):
        idx = window_start(curve.t, t0, noise_window_size(k0))
        inner = _scale_ratio(curve, idx, k0, H0, s)
        outer = _scale_ratio(curve, idx, 2 * k0 - 1, H0, s)
        ratios.append(np.fmax(inner, outer))
    return nanmean(ratios)


class ConstantEstimator:
    """
    Handles Hölder constant estimation at a list of query locations.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the constant estimator.

        Args:
            config: Configuration dictionary containing regularity parameters
        """
        self.config = config
        self.verbose = config.get('verbose', 0)

    def process(self, data, t0_list, H0_list, k0_list, sigma, presmoothed=None) -> np.ndarray:
        """
        Estimate L0 at each query location.

        The continuous method uses the presmoothed grids when they are given,
        the legacy method the raw neighbor windows.

        Args:
            data: CurveSet or anything CurveSet.coerce accepts
            t0_list: Query locations
            H0_list: H0 estimate at each location
            k0_list: Neighbor parameters
            sigma: Noise estimates of shape (n_curves, n_t0)
            presmoothed: Optional PresmoothedGrid list matching t0_list

        Returns:
            Array of shape (n_t0,)
        """
        data = CurveSet.coerce(data)
        t0_list, k0_list, H0_list = np.broadcast_arrays(
            np.atleast_1d(t0_list), np.atleast_1d(k0_list), np.atleast_1d(H0_list))
        sigma = broadcast_sigma(sigma, len(data), len(t0_list))

        if self.config.get('regularity_method') == 'continuous' and presmoothed is not None:
            if self.verbose > 0:
                logger.info("Estimating L0 from presmoothed grids")
            return estimate_lambda(presmoothed, H0_list)

        if self.verbose > 0:
            logger.info("Estimating L0 from neighbor windows")
        return np.array([
            estimate_L0(data, t0, H0, k0, sigma[:, j])
            for j, (t0, H0, k0) in enumerate(zip(t0_list, H0_list, k0_list))
        ])


def estimate_L0_list(data, t0_list, H0_list, k0_list=2, sigma=0.0):
    """
    Estimate L0 at each query location from raw neighbor windows.

    Args:
        data: CurveSet or anything CurveSet.coerce accepts
        t0_list: Query locations
        H0_list: H0 estimate at each location
        k0_list: Neighbor parameters, broadcast against t0_list
        sigma: Noise standard deviation, scalar or one per curve

    Returns:
        np.ndarray: Estimate at each query location.
    """
    data = CurveSet.coerce(data)
    t0_list, k0_list, H0_list = np.broadcast_arrays(
        np.atleast_1d(t0_list), np.atleast_1d(k0_list), np.atleast_1d(H0_list))
    return np.array([estimate_L0(data, t0, H0, k0, sigma) for t0, H0, k0 in zip(t0_list, H0_list, k0_list)])
