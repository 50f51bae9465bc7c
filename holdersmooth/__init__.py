"""
HolderSmooth: adaptive smoothing of noisy curves driven by their local regularity.
"""

from .curve_data import (
    Curve,
    CurveSet,
    SmoothedCurve,
    ParameterEstimate,
    SmoothingResult,
    KnownSigma,
    UnknownSigma,
)
from .smoothing_pipeline import (
    SmoothingConfig,
    SmoothingPipeline,
    smooth_curves,
    smooth_curves_mean,
    smooth_curves_regularity,
)
from .smoothing_pipeline.presmoothing import Presmoother, estimate_var
from .smoothing_pipeline.noise_estimation import estimate_sigma_list
from .smoothing_pipeline.regularity_estimation import estimate_H0_list, estimate_H0_deriv_list
from .smoothing_pipeline.constant_estimation import estimate_lambda, estimate_L0_list
from .smoothing_pipeline.bandwidth_selection import estimate_b_list
from .smoothing_pipeline.curve_estimation import estimate_curve


def presmoothing(data, t0_list=0.5, gamma=0.5, order=1, drv=0, degree=0):
    """Presmooth the curves around each t0, see Presmoother.process."""
    return Presmoother({'gamma': gamma}).process(data, t0_list, order=order, drv=drv, degree=degree)


__version__ = '0.1.0'

__all__ = [
    'Curve',
    'CurveSet',
    'SmoothedCurve',
    'ParameterEstimate',
    'SmoothingResult',
    'KnownSigma',
    'UnknownSigma',
    'SmoothingConfig',
    'SmoothingPipeline',
    'smooth_curves',
    'smooth_curves_mean',
    'smooth_curves_regularity',
    'presmoothing',
    'estimate_var',
    'estimate_sigma_list',
    'estimate_H0_list',
    'estimate_H0_deriv_list',
    'estimate_lambda',
    'estimate_L0_list',
    'estimate_b_list',
    'estimate_curve',
]
