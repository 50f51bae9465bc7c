"""holdersmooth curve containers and synthetic data"""

from .curve import (
    Curve,
    CurveSet,
    SmoothedCurve,
    ParameterEstimate,
    SmoothingResult,
    KnownSigma,
    UnknownSigma,
    noise_level,
)
from .simulation import (
    fbm_covariance,
    generate_fractional_brownian,
    generate_integrate_fractional_brownian,
    generate_piecewise_fractional_brownian,
)

__all__ = [
    'Curve',
    'CurveSet',
    'SmoothedCurve',
    'ParameterEstimate',
    'SmoothingResult',
    'KnownSigma',
    'UnknownSigma',
    'noise_level',
    'fbm_covariance',
    'generate_fractional_brownian',
    'generate_integrate_fractional_brownian',
    'generate_piecewise_fractional_brownian',
]
