"""
Containers for noisy curves, their smoothed versions and the parameters
estimated along the way.
"""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union, Any


logger = logging.getLogger(__name__)


def _as_readonly_1d(values, name):
    array = np.array(values, dtype=float, ndmin=1)
    if array.ndim != 1:
        raise ValueError(f"{name} should be a 1D array, got shape {array.shape}")
    array.setflags(write=False)
    return array


class Curve:
    """
    A curve observed at ascending sampling points in [0, 1].

    Args:
        t (array-like): Sampling points.
        x (array-like): Observed values, same length as t.
    """

    __slots__ = ('t', 'x')

    def __init__(self, t, x):
        t = _as_readonly_1d(t, 't')
        x = _as_readonly_1d(x, 'x')
        if t.shape[0] != x.shape[0]:
            raise ValueError(f"t and x dimensions do not match: {t.shape[0]} != {x.shape[0]}")
        if t.shape[0] < 1:
            raise ValueError("A curve needs at least one sampling point")
        if not np.all(np.isfinite(t)):
            raise ValueError("Sampling points t must be finite")
        if np.any(np.diff(t) < 0):
            raise ValueError("Sampling points t must be in ascending order")
        if np.any(t < 0) or np.any(t > 1):
            raise ValueError("Sampling points t must lie in [0, 1]")
        if np.any(np.diff(t) == 0):
            logger.warning("Curve has tied sampling points, neighbor windows may be degenerate")
        object.__setattr__(self, 't', t)
        object.__setattr__(self, 'x', x)

    def __setattr__(self, name, value):
        raise AttributeError("Curve is immutable")

    def __len__(self):
        return self.t.shape[0]

    def __repr__(self):
        return f"Curve(n={len(self)})"

    def to_dict(self):
        return {'t': self.t.copy(), 'x': self.x.copy()}


class CurveSet:
    """
    Ordered collection of curves, keyed by an identifier.

    Insertion order is kept and every result computed from a CurveSet is
    aligned positionally with it.
    """

    def __init__(self, curves, ids=None):
        curves = [c if isinstance(c, Curve) else Curve(c['t'], c['x']) for c in curves]
        if len(curves) == 0:
            raise ValueError("A CurveSet needs at least one curve")
        if ids is None:
            ids = list(range(len(curves)))
        ids = list(ids)
        if len(ids) != len(curves):
            raise ValueError(f"ids and curves dimensions do not match: {len(ids)} != {len(curves)}")
        self._curves = tuple(curves)
        self._ids = tuple(ids)

    @classmethod
    def from_mapping(cls, mapping):
        """Build a CurveSet from {id: {'t': ..., 'x': ...}}."""
        return cls(list(mapping.values()), ids=list(mapping.keys()))

    @classmethod
    def coerce(cls, data):
        """
        Accept a CurveSet, a Curve, a mapping of curves or a sequence of curves.
        """
        if isinstance(data, CurveSet):
            return data
        if isinstance(data, Curve):
            return cls([data])
        if isinstance(data, dict):
            if set(data.keys()) == {'t', 'x'}:
                return cls([data])
            return cls.from_mapping(data)
        return cls(list(data))

    @property
    def ids(self):
        return list(self._ids)

    def __len__(self):
        return len(self._curves)

    def __iter__(self):
        return iter(self._curves)

    def __getitem__(self, index):
        return self._curves[index]

    def __repr__(self):
        return f"CurveSet(n_curves={len(self)}, mean_size={self.mean_size():.1f})"

    def sizes(self):
        """Number of samples of each curve."""
        return np.array([len(c) for c in self._curves])

    def mean_size(self):
        """Mean number of samples per curve."""
        return float(np.mean(self.sizes()))

    def to_mapping(self):
        return {i: c.to_dict() for i, c in zip(self._ids, self._curves)}


@dataclass(frozen=True, eq=False)
class SmoothedCurve:
    """Estimated values x at points t. Undefined estimates are nan."""

    t: np.ndarray
    x: np.ndarray

    def __post_init__(self):
        t = _as_readonly_1d(self.t, 't')
        x = _as_readonly_1d(self.x, 'x')
        if t.shape != x.shape:
            raise ValueError(f"t and x dimensions do not match: {t.shape[0]} != {x.shape[0]}")
        object.__setattr__(self, 't', t)
        object.__setattr__(self, 'x', x)

    def __len__(self):
        return self.t.shape[0]

    def to_dict(self):
        return {'t': self.t.copy(), 'x': self.x.copy()}


@dataclass(frozen=True)
class KnownSigma:
    """Noise standard deviation known in advance."""

    value: float

    def __post_init__(self):
        if not np.isfinite(self.value) or self.value < 0:
            raise ValueError(f"sigma must be a non-negative number, got {self.value}")


@dataclass(frozen=True)
class UnknownSigma:
    """Noise standard deviation to be estimated from the data."""


NoiseLevel = Union[KnownSigma, UnknownSigma]


def noise_level(sigma):
    """Map None or a number to the matching NoiseLevel."""
    if isinstance(sigma, (KnownSigma, UnknownSigma)):
        return sigma
    if sigma is None:
        return UnknownSigma()
    return KnownSigma(float(sigma))


@dataclass(frozen=True, eq=False)
class ParameterEstimate:
    """
    Parameters estimated for a smoothing run.

    Per-curve quantities have shape (n_curves, n_t0), per-location quantities
    shape (n_t0,). Undefined estimates are nan.
    """

    sigma: np.ndarray
    H0: np.ndarray
    L0: np.ndarray
    b: np.ndarray

    def to_dict(self):
        return {'sigma': self.sigma, 'H0': self.H0, 'L0': self.L0, 'b': self.b}


@dataclass(frozen=True, eq=False)
class SmoothingResult:
    """Parameters and smoothed curves, aligned with the input CurveSet."""

    parameter: ParameterEstimate
    smooth: List[SmoothedCurve]
    ids: List[Any] = field(default_factory=list)
    mean: Optional[SmoothedCurve] = None

    def to_dict(self) -> Dict[str, Any]:
        ids = self.ids if self.ids else list(range(len(self.smooth)))
        return {
            'parameter': self.parameter.to_dict(),
            'smooth': {i: s.to_dict() for i, s in zip(ids, self.smooth)},
        }
