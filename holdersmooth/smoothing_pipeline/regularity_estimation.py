"""
Regularity Estimation Module

This module estimates the local Hölder exponent H0 of a set of curves.

Two strategies are available:
- 'continuous': log-ratio of squared increments of presmoothed curves at two
  scales (Golovkine, Klutchnikoff and Patilea, 2021).
- 'legacy': log-ratio of differences of squared increments of the raw
  observations in a neighbor window (Golovkine, Klutchnikoff and Patilea, 2020).

For curves smoother than order 1, the escalation procedure moves to the next
derivative until the residual regularity falls below one, and reports the
number of derivatives absorbed plus the residual.
"""

import logging
import numpy as np
from typing import Any, Callable, Dict, NamedTuple

from holdersmooth.curve_data.curve import Curve, CurveSet, KnownSigma, noise_level
from holdersmooth.utils.local_polynomial import locpoly
from holdersmooth.utils.neighbors import window_start, theta
from holdersmooth.utils.parallel import ordered_map
from .config import MAX_ESCALATION
from .constant_estimation import nanmean, estimate_L0
from .bandwidth_selection import estimate_b
from .noise_estimation import estimate_sigma_list, noise_window_size
from .presmoothing import Presmoother, CENTER, LEFT, RIGHT


logger = logging.getLogger(__name__)

H0_FLOOR = 0.1
TWO_LOG_TWO = 2 * np.log(2)


class EscalationResult(NamedTuple):
    """Outcome of the escalation: derivatives absorbed and residual regularity."""

    iterations: int
    residual: float

    @property
    def value(self):
        return self.iterations + self.residual


def escalate(estimate_at: Callable[[int], float], threshold, max_iter=MAX_ESCALATION) -> EscalationResult:
    """
    Move to higher derivatives while the regularity looks larger than the threshold.

    Args:
        estimate_at: Maps a derivative order to the regularity estimated on that derivative.
        threshold: The loop stops once the estimate is at most this value.
        max_iter: Maximum number of derivative orders absorbed, at most 5.

    Returns:
        EscalationResult: (iterations, residual).
    """
    max_iter = min(int(max_iter), MAX_ESCALATION)
    estimate = estimate_at(0)
    cpt = 0
    while estimate > threshold and cpt < max_iter:
        estimate = estimate_at(cpt + 1)
        cpt += 1
    return EscalationResult(cpt, estimate)


def estimate_H0(presmoothed_x):
    """
    Continuous-domain estimate of H0 from presmoothed values.

    Args:
        presmoothed_x (np.ndarray): Array of shape (n_curves, 11).

    Returns:
        float: The estimate, floored at 0.1, nan when the grid is undefined.
    """
    x = np.asarray(presmoothed_x, dtype=float)
    a = nanmean((x[:, CENTER] - x[:, LEFT]) ** 2)
    b = nanmean((x[:, RIGHT] - x[:, LEFT]) ** 2)
    if np.isnan(a) or np.isnan(b):
        return np.nan
    if a <= 0 or b <= 0:
        return H0_FLOOR
    return max((np.log(b) - np.log(a)) / TWO_LOG_TWO, H0_FLOOR)


def estimate_H0_legacy(data, t0, k0, noise=None):
    """
    Discrete neighbor estimate of H0 at t0.

    When the differences of mean squared increments are not positive and
    ordered as the asymptotic theory requires, the estimate falls back to 1.

    Args:
        data: CurveSet or anything CurveSet.coerce accepts
        t0 (float): Query location.
        k0 (int): Neighbor parameter.
        noise (KnownSigma, UnknownSigma or float, optional): Noise level. Defaults to unknown.

    Returns:
        float: The estimate, floored at 0.1, nan when no curve has a complete window.
    """
    data = CurveSet.coerce(data)
    noise = noise_level(noise)
    k0 = int(k0)

    first_part = TWO_LOG_TWO
    second_part = 0.0

    if isinstance(noise, KnownSigma):
        idxs = [window_start(c.t, t0, noise_window_size(k0)) for c in data]
        a = nanmean([theta(c.x, 2 * k0 - 1, i) for c, i in zip(data, idxs)])
        b = nanmean([theta(c.x, k0, i) for c, i in zip(data, idxs)])
        if np.isnan(a) or np.isnan(b):
            return np.nan
        two_sigma2 = 2 * noise.value ** 2
        if (a - two_sigma2 > 0) and (b - two_sigma2 > 0) and (a - b > 0):
            first_part = np.log(a - two_sigma2)
            second_part = np.log(b - two_sigma2)
    else:
        idxs = [window_start(c.t, t0, 8 * k0 - 6) for c in data]
        a = nanmean([theta(c.x, 4 * k0 - 3, i) for c, i in zip(data, idxs)])
        b = nanmean([theta(c.x, 2 * k0 - 1, i) for c, i in zip(data, idxs)])
        c = nanmean([theta(c.x, k0, i) for c, i in zip(data, idxs)])
        if np.isnan(a) or np.isnan(b) or np.isnan(c):
            return np.nan
        if (a - b > 0) and (b - c > 0) and (a - 2 * b + c > 0):
            first_part = np.log(a - b)
            second_part = np.log(b - c)

    return max((first_part - second_part) / TWO_LOG_TWO, H0_FLOOR)


class RegularityEstimator:
    """
    Handles H0 estimation at a list of query locations, for the configured strategy.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the regularity estimator.

        Args:
            config: Configuration dictionary containing regularity parameters
        """
        self.config = config
        self.verbose = config.get('verbose', 0)
        self.method = config.get('regularity_method', 'continuous')
        self.presmoother = Presmoother(config)

    def process(self, data, t0_list, k0_list=2, presmoothed=None) -> np.ndarray:
        """
        Estimate H0 at each query location.

        Args:
            data: CurveSet or anything CurveSet.coerce accepts
            t0_list: Query locations
            k0_list: Neighbor parameters, used by the legacy strategy
            presmoothed: Optional PresmoothedGrid list, used by the continuous strategy

        Returns:
            Array of shape (n_t0,)
        """
        data = CurveSet.coerce(data)
        t0_list, k0_list = np.broadcast_arrays(np.atleast_1d(t0_list), np.atleast_1d(k0_list))

        if self.verbose > 0:
            logger.info("Estimating H0 at %d locations (%s)", len(t0_list), self.method)

        if self.method == 'continuous':
            if presmoothed is None:
                presmoothed = self.presmoother.process(data, t0_list, order=1, drv=0, degree=0)
            return np.array([estimate_H0(grid.x) for grid in presmoothed])

        noise = noise_level(self.config.get('sigma'))
        return np.array(ordered_map(
            lambda pair: estimate_H0_legacy(data, pair[0], pair[1], noise),
            list(zip(t0_list, k0_list)), self.config.get('n_jobs', 1)))

    def process_escalated(self, data, t0_list, k0_list=2) -> np.ndarray:
        """
        Estimate H0 at each query location for curves possibly smoother than order 1.

        Returns:
            Array of shape (n_t0,), each value is iterations + residual.
        """
        results = self.escalation_results(data, t0_list, k0_list)
        return np.array([r.value for r in results])

    def escalation_results(self, data, t0_list, k0_list=2):
        """EscalationResult at each query location."""
        data = CurveSet.coerce(data)
        t0_list, k0_list = np.broadcast_arrays(np.atleast_1d(t0_list), np.atleast_1d(k0_list))

        if self.verbose > 0:
            logger.info("Estimating H0 by escalation at %d locations (%s)", len(t0_list), self.method)

        if self.method == 'continuous':
            def run(pair):
                return self._escalate_continuous(data, pair[0])
        else:
            def run(pair):
                return self._escalate_legacy(data, pair[0], int(pair[1]))

        # the loops of distinct locations are independent
        results = ordered_map(run, list(zip(t0_list, k0_list)), self.config.get('n_jobs', 1))

        if self.verbose > 1:
            for t0, r in zip(t0_list, results):
                logger.debug("t0=%.3f: %d derivatives absorbed, residual %.3f", t0, r.iterations, r.residual)
        return results

    def _escalate_continuous(self, data, t0):
        m = data.mean_size()
        phi = np.log(m) ** (-self.config.get('escalation_gamma', 1.0))
        presmoother = Presmoother({**self.config, 'n_jobs': 1})

        def estimate_at(drv):
            if drv == 0:
                grids = presmoother.process(data, t0, order=1, drv=0, degree=0)
            else:
                grids = presmoother.process(data, t0, order=drv, drv=drv, degree=drv)
            return estimate_H0(grids[0].x)

        return escalate(estimate_at, 1 - phi, self.config.get('max_escalation', MAX_ESCALATION))

    def _escalate_legacy(self, data, t0, k0):
        noise = noise_level(self.config.get('sigma'))
        kernel = self.config.get('kernel', 'epanechnikov')
        eps = self.config.get('eps', 0.01)

        if isinstance(noise, KnownSigma):
            sigma = np.full(len(data), noise.value)
        else:
            sigma = estimate_sigma_list(data, t0, k0)
        state = {'H0': np.nan}

        def estimate_at(drv):
            if drv == 0:
                state['H0'] = estimate_H0_legacy(data, t0, k0, noise)
                return state['H0']
            L0 = estimate_L0(data, t0, 1.0, k0, sigma)
            H0 = (drv - 1) + state['H0']
            derivatives = []
            for curve, s in zip(data, sigma):
                b = estimate_b(s, H0, L0, len(curve), K=kernel, reason='curve')
                grid, values = locpoly(curve.t, curve.x, bandwidth=b, drv=drv, gridsize=len(curve))
                derivatives.append((grid, values))
            state['H0'] = estimate_H0_legacy(_as_curves(derivatives), t0, k0, noise)
            return state['H0']

        return escalate(estimate_at, 1 - eps, self.config.get('max_escalation', MAX_ESCALATION))


def _as_curves(pairs):
    """Curves built from (grid, values) pairs of local polynomial fits."""
    curves = []
    for grid, values in pairs:
        curves.append(Curve(np.clip(grid, 0, 1), values))
    return CurveSet(curves)


def estimate_H0_list(data, t0_list=0.5, k0_list=2, sigma=None, method='legacy', gamma=0.5, presmoothed=None):
    """
    Estimate H0 at each query location.

    Args:
        data: CurveSet or anything CurveSet.coerce accepts
        t0_list: Query locations
        k0_list: Neighbor parameters, broadcast against t0_list (legacy)
        sigma: Known noise standard deviation, None to estimate (legacy)
        method: 'legacy' or 'continuous'
        gamma: Presmoothing exponent (continuous)
        presmoothed: PresmoothedGrid list to reuse (continuous)

    Returns:
        np.ndarray: Estimate at each query location.
    """
    estimator = RegularityEstimator({'regularity_method': method, 'sigma': sigma, 'gamma': gamma})
    return estimator.process(data, t0_list, k0_list, presmoothed=presmoothed)


def estimate_H0_deriv_list(data, t0_list=0.5, k0_list=2, sigma=None, method='continuous',
                           gamma=0.5, Gamma=1.0, eps=0.01):
    """
    Estimate H0 at each query location when the curves may be differentiable.

    Args:
        data: CurveSet or anything CurveSet.coerce accepts
        t0_list: Query locations, preferably away from the bounds of [0, 1]
        k0_list: Neighbor parameters (legacy)
        sigma: Known noise standard deviation, None to estimate (legacy)
        method: 'continuous' or 'legacy'
        gamma: Presmoothing exponent (continuous)
        Gamma: Exponent of phi = log(m)^(-Gamma), threshold 1 - phi (continuous)
        eps: Threshold 1 - eps (legacy)

    Returns:
        np.ndarray: Estimate at each query location.
    """
    estimator = RegularityEstimator({
        'regularity_method': method, 'sigma': sigma, 'gamma': gamma,
        'escalation_gamma': Gamma, 'eps': eps,
    })
    return estimator.process_escalated(data, t0_list, k0_list)
