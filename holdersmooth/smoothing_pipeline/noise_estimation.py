"""
Noise Estimation Module

This module estimates the standard deviation of the observation noise of each
curve from differences of neighboring samples around a query location.
"""

import logging
import numpy as np
from typing import Any, Dict

from holdersmooth.curve_data.curve import CurveSet, KnownSigma, noise_level
from holdersmooth.utils.neighbors import window_indices
from holdersmooth.utils.parallel import ordered_map


logger = logging.getLogger(__name__)


def noise_window_size(k0):
    """Number of neighbors used for the noise estimate."""
    return 4 * int(k0) - 2


def broadcast_sigma(sigma, n_curves, n_t0):
    """
    Broadcast a noise estimate to shape (n_curves, n_t0).

    Accepts a scalar, one value per curve, or a full (n_curves, n_t0) array.
    """
    sigma = np.asarray(sigma, dtype=float)
    if sigma.ndim == 1:
        if sigma.shape[0] != n_curves:
            raise ValueError(f"sigma has {sigma.shape[0]} values for {n_curves} curves")
        sigma = sigma[:, None]
    return np.broadcast_to(sigma, (n_curves, n_t0))


def estimate_sigma(curve, t0, k0):
    """
    Estimate the noise standard deviation of one curve around t0.

    Samples of the window are paired in index order, (0, 1), (2, 3), ..., and
    sigma^2 is half the mean squared difference of the pairs.

    Args:
        curve (Curve): The curve.
        t0 (float): Query location.
        k0 (int): Neighbor parameter, the window holds 4 k0 - 2 points.

    Returns:
        float: The estimate, nan when the curve is too short.
    """
    idxs = window_indices(curve.t, t0, noise_window_size(k0))
    if idxs is None:
        return np.nan
    values = curve.x[idxs]
    diffs = values[1::2] - values[0:-1:2]
    variance = np.mean(diffs ** 2) / 2
    return float(np.sqrt(max(variance, 0.0)))


class NoiseEstimator:
    """
    Handles noise estimation for a set of curves.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the noise estimator.

        Args:
            config: Configuration dictionary containing noise parameters
        """
        self.config = config
        self.verbose = config.get('verbose', 0)

    def process(self, data, t0_list, k0_list) -> np.ndarray:
        """
        Estimate sigma for every curve at every query location.

        A known sigma in the configuration is returned as is.

        Args:
            data: CurveSet or anything CurveSet.coerce accepts
            t0_list: Query locations
            k0_list: Neighbor parameters, broadcast against t0_list

        Returns:
            Array of shape (n_curves, n_t0)
        """
        data = CurveSet.coerce(data)
        t0_list, k0_list = np.broadcast_arrays(np.atleast_1d(t0_list), np.atleast_1d(k0_list))

        noise = noise_level(self.config.get('sigma'))
        if isinstance(noise, KnownSigma):
            return np.full((len(data), len(t0_list)), noise.value)

        if self.verbose > 0:
            logger.info("Estimating noise of %d curves at %d locations", len(data), len(t0_list))

        def curve_sigma(curve):
            return [estimate_sigma(curve, t0, k0) for t0, k0 in zip(t0_list, k0_list)]

        return np.array(ordered_map(curve_sigma, data, self.config.get('n_jobs', 1)), dtype=float)


def estimate_sigma_list(data, t0, k0):
    """
    Estimate sigma of each curve at a single query location.

    Args:
        data: CurveSet or anything CurveSet.coerce accepts
        t0 (float): Query location.
        k0 (int): Neighbor parameter.

    Returns:
        np.ndarray: One estimate per curve, in input order.
    """
    data = CurveSet.coerce(data)
    return np.array([estimate_sigma(curve, t0, k0) for curve in data])
