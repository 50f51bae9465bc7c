"""
Local polynomial regression with a Gaussian kernel.

Fits a polynomial of a given degree by weighted least squares around each
point of an equally spaced grid and returns the estimate of the requested
derivative at that point.
"""

import math
import numpy as np


# the Gaussian kernel is truncated at this many bandwidths
GAUSSIAN_TRUNCATION = 4.0


def locpoly(t, x, bandwidth, drv=0, degree=None, gridsize=401, range_x=None):
    """
    Estimate the drv-th derivative of a regression function by local polynomials.

    Args:
        t (np.ndarray): Sampling points.
        x (np.ndarray): Observed values.
        bandwidth (float): Standard deviation of the Gaussian kernel.
        drv (int, optional): Order of the derivative to estimate. Defaults to 0.
        degree (int, optional): Degree of the local polynomial. Defaults to drv + 1.
        gridsize (int, optional): Number of equally spaced grid points. Defaults to 401.
        range_x (tuple, optional): (start, end) of the grid. Defaults to the range of t.

    Returns:
        tuple: Grid points and estimated values. Values are nan where fewer than
        degree + 1 samples support the fit or the bandwidth is undefined.
    """
    t = np.asarray(t, dtype=float)
    x = np.asarray(x, dtype=float)
    if degree is None:
        degree = drv + 1
    if drv > degree:
        raise ValueError(f"drv ({drv}) must not exceed degree ({degree})")
    if t.shape != x.shape:
        raise ValueError(f"t and x dimensions do not match: {t.shape} != {x.shape}")

    if range_x is None:
        range_x = (np.min(t), np.max(t))
    grid = np.linspace(range_x[0], range_x[1], int(gridsize))
    fitted = np.full(grid.shape, np.nan)

    if not np.isfinite(bandwidth) or bandwidth <= 0:
        return grid, fitted

    factor = math.factorial(drv)
    for i, g in enumerate(grid):
        z = (t - g) / bandwidth
        support = np.abs(z) <= GAUSSIAN_TRUNCATION
        if np.count_nonzero(support) < degree + 1:
            continue

        # fit in the scaled distance z, rescale the coefficient afterwards
        w_sqrt = np.exp(-0.25 * z[support] ** 2)
        A = np.vander(z[support], degree + 1, increasing=True)
        try:
            beta, _, rank, _ = np.linalg.lstsq(A * w_sqrt[:, None], x[support] * w_sqrt, rcond=None)
        except np.linalg.LinAlgError:
            continue
        if rank < degree + 1:
            continue
        fitted[i] = factor * beta[drv] / bandwidth ** drv

    return grid, fitted
