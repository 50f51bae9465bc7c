"""
Presmoothing Module

This module computes stable local evaluations of each curve on a small grid
around the query locations. They feed the continuous-domain regularity
estimation and the Hölder constant estimation.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Any, Dict, List

from holdersmooth.curve_data.curve import CurveSet
from holdersmooth.utils.local_polynomial import locpoly
from holdersmooth.utils.parallel import ordered_map


logger = logging.getLogger(__name__)

GRID_SIZE = 11
CENTER, LEFT, RIGHT = 5, 0, 10  # 0-based positions of t0 and the window ends


@dataclass(frozen=True, eq=False)
class PresmoothedGrid:
    """
    Local evaluations of every curve on the grid [t0 - delta/2, t0 + delta/2].

    Attributes:
        t0: Query location.
        t: The common 11-point abscissa.
        x: Array of shape (n_curves, 11), nan where the local fit is undefined.
    """

    t0: float
    t: np.ndarray
    x: np.ndarray


def presmoothing_window(m, gamma):
    """Width delta = exp(-log(m)^gamma) of the presmoothing grid."""
    return float(np.exp(-np.log(m) ** gamma))


def naive_bandwidth(m, gamma, order):
    """Naive bandwidth min((delta / round(m))^(1 / (2 order + 1)), delta / log(1 + m))."""
    delta = presmoothing_window(m, gamma)
    return min((delta / round(m)) ** (1 / (2 * order + 1)), delta / np.log(1 + m))


class Presmoother:
    """
    Handles presmoothing of a set of curves around query locations.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the presmoother.

        Args:
            config: Configuration dictionary containing presmoothing parameters
        """
        self.config = config
        self.verbose = config.get('verbose', 0)

    def process(self, data, t0_list, order=1, drv=0, degree=0) -> List[PresmoothedGrid]:
        """
        Presmooth the curves around each query location.

        Args:
            data: CurveSet or anything CurveSet.coerce accepts
            t0_list: Query locations
            order: Assumed regularity of the curves, sets the naive bandwidth
            drv: Order of the derivative to estimate
            degree: Degree of the local polynomial

        Returns:
            One PresmoothedGrid per query location
        """
        data = CurveSet.coerce(data)
        t0_list = np.atleast_1d(np.asarray(t0_list, dtype=float))
        gamma = self.config.get('gamma', 0.5)

        m = data.mean_size()
        delta = presmoothing_window(m, gamma)
        # locpoly uses a Gaussian kernel, a third of the window is its standard deviation
        bandwidth = naive_bandwidth(m, gamma, order) / 3

        if self.verbose > 0:
            logger.info("Presmoothing %d curves at %d locations (drv=%d, degree=%d, bandwidth=%.4g)",
                        len(data), len(t0_list), drv, degree, bandwidth)

        results = []
        for t0 in t0_list:
            span = (t0 - delta / 2, t0 + delta / 2)

            def fit(curve, span=span):
                return locpoly(curve.t, curve.x, bandwidth=bandwidth, drv=drv, degree=degree,
                               gridsize=GRID_SIZE, range_x=span)

            fits = ordered_map(fit, data, self.config.get('n_jobs', 1))
            grid = fits[0][0]
            values = np.vstack([y for _, y in fits])
            results.append(PresmoothedGrid(t0=float(t0), t=grid, x=values))
        return results


def estimate_var(presmoothed):
    """
    Estimate var(X_t0) at each query location.

    Args:
        presmoothed (list): PresmoothedGrid objects from Presmoother.process.

    Returns:
        np.ndarray: Sample variance across curves of the value at t0.
    """
    variances = []
    for grid in presmoothed:
        center = grid.x[:, CENTER]
        center = center[~np.isnan(center)]
        variances.append(np.var(center, ddof=1) if center.size > 1 else np.nan)
    return np.array(variances)
