"""
Neighbor windows around a query location and the squared differences
computed on them.
"""

import numpy as np


def window_start(t, t0, size):
    """
    Start index of the window made of the `size` sampling points closest to t0.

    Ties in distance are broken by the smallest index. Returns None when the
    curve holds fewer than `size` points.

    Args:
        t (np.ndarray): Sampling points, ascending.
        t0 (float): Query location.
        size (int): Number of neighbors.

    Returns:
        int or None: Smallest index among the neighbors.
    """
    size = int(size)
    if size < 1 or len(t) < size:
        return None
    order = np.argsort(np.abs(np.asarray(t) - t0), kind='stable')
    return int(np.min(order[:size]))


def window_indices(t, t0, size):
    """Sorted indices of the `size` nearest sampling points, or None."""
    size = int(size)
    if size < 1 or len(t) < size:
        return None
    order = np.argsort(np.abs(np.asarray(t) - t0), kind='stable')
    return np.sort(order[:size])


def theta(values, k, idx):
    """
    Squared difference (values[idx + 2k - 1] - values[idx + k])^2.

    Returns nan when the window start is undefined or runs off the end.
    """
    if idx is None:
        return np.nan
    hi = idx + 2 * k - 1
    lo = idx + k
    if hi >= len(values) or lo < 0:
        return np.nan
    return float((values[hi] - values[lo]) ** 2)


def spacing(t, k, idx):
    """Distance |t[idx + 2k - 1] - t[idx + k]| matching theta()."""
    if idx is None:
        return np.nan
    hi = idx + 2 * k - 1
    lo = idx + k
    if hi >= len(t) or lo < 0:
        return np.nan
    return float(abs(t[hi] - t[lo]))
