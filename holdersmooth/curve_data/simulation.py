"""
Synthetic curves with a known Hölder regularity.

Fractional Brownian motion with Hurst index H has local Hölder exponent H, its
primitive has exponent 1 + H. These generators are used to check that the
regularity estimators recover the exponent they are given.
"""

import numpy as np
from scipy import integrate, linalg

from .curve import Curve, CurveSet


def fbm_covariance(t, H):
    """Covariance matrix 0.5 * (s^2H + t^2H - |t - s|^2H) of fBm at points t."""
    t = np.asarray(t, dtype=float)
    s, u = np.meshgrid(t, t, indexing='ij')
    return 0.5 * (np.abs(s) ** (2 * H) + np.abs(u) ** (2 * H) - np.abs(s - u) ** (2 * H))


def _fbm_paths(t, H, n_paths, rng, L=1.0):
    """Draw n_paths fBm paths sampled at the common points t."""
    cov = fbm_covariance(t, H)
    # small jitter, the matrix is singular at t = 0
    cov[np.diag_indices_from(cov)] += 1e-10
    chol = linalg.cholesky(cov, lower=True)
    return L * rng.standard_normal((n_paths, len(t))) @ chol.T


def _sampling_points(M, rng, t=None):
    if t is not None:
        return np.asarray(t, dtype=float)
    return np.sort(rng.uniform(0, 1, M))


def generate_fractional_brownian(N=100, M=300, H=0.5, sigma=0.05, L=1.0, t=None, seed=None):
    """
    Generate noisy fractional Brownian motion curves.

    Args:
        N (int, optional): Number of curves. Defaults to 100.
        M (int, optional): Number of sampling points per curve. Defaults to 300.
        H (float, optional): Hurst index, the Hölder exponent. Defaults to 0.5.
        sigma (float, optional): Standard deviation of the Gaussian noise. Defaults to 0.05.
        L (float, optional): Hölder constant scaling the paths. Defaults to 1.
        t (np.ndarray, optional): Common sampling points. When None, each curve is
            sampled at M sorted uniform points.
        seed (int, optional): Seed of the random generator.

    Returns:
        CurveSet: The noisy curves.
    """
    rng = np.random.default_rng(seed)
    if t is not None:
        t = np.asarray(t, dtype=float)
        paths = _fbm_paths(t, H, N, rng, L)
        return CurveSet([Curve(t, p + sigma * rng.standard_normal(len(t))) for p in paths])

    curves = []
    for _ in range(N):
        ti = _sampling_points(M, rng)
        path = _fbm_paths(ti, H, 1, rng, L)[0]
        curves.append(Curve(ti, path + sigma * rng.standard_normal(M)))
    return CurveSet(curves)


def generate_integrate_fractional_brownian(N=100, M=300, H=0.5, sigma=0.01, L=1.0, t=None, seed=None):
    """
    Generate noisy integrated fractional Brownian motion curves (regularity 1 + H).

    The primitive is computed by the cumulative trapezoidal rule on the
    sampling points. Arguments are those of generate_fractional_brownian.
    """
    rng = np.random.default_rng(seed)
    curves = []
    common = t is not None
    if common:
        t = np.asarray(t, dtype=float)
        paths = _fbm_paths(t, H, N, rng, L)
    for i in range(N):
        ti = t if common else _sampling_points(M, rng)
        path = paths[i] if common else _fbm_paths(ti, H, 1, rng, L)[0]
        primitive = integrate.cumulative_trapezoid(path, ti, initial=0)
        curves.append(Curve(ti, primitive + sigma * rng.standard_normal(len(ti))))
    return CurveSet(curves)


def generate_piecewise_fractional_brownian(N=100, M=300, H=(0.2, 0.5, 0.8), sigma=0.05, L=1.0,
                                           t=None, seed=None):
    """
    Generate noisy curves whose regularity changes on equal-width segments of [0, 1].

    On segment j the increments are those of an fBm with Hurst index H[j]; the
    segments are glued so that each path is continuous.
    """
    rng = np.random.default_rng(seed)
    H = np.atleast_1d(np.asarray(H, dtype=float))
    breaks = np.linspace(0, 1, len(H) + 1)

    curves = []
    for _ in range(N):
        ti = _sampling_points(M, rng, t)
        path = np.zeros(len(ti))
        level = 0.0
        for j, h in enumerate(H):
            last = j == len(H) - 1
            mask = (ti >= breaks[j]) & ((ti <= breaks[j + 1]) if last else (ti < breaks[j + 1]))
            if not np.any(mask):
                continue
            local = ti[mask] - breaks[j]
            segment = _fbm_paths(local, h, 1, rng, L)[0]
            path[mask] = level + segment
            level = path[mask][-1]
        curves.append(Curve(ti, path + sigma * rng.standard_normal(len(ti))))
    return CurveSet(curves)
