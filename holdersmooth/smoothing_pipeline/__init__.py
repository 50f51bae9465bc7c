"""
Adaptive Curve Smoothing Pipeline

Modular components:
- SmoothingPipeline: Main smoothing pipeline
- SmoothingConfig: Configuration of the pipeline

- Presmoother: Local polynomial evaluations around the query locations
- NoiseEstimator: Noise standard deviation from neighbor differences
- RegularityEstimator: Local Hölder exponent H0, with escalation for smooth curves
- ConstantEstimator: Hölder constant L0
- BandwidthSelector: Risk-minimizing bandwidth for curves, mean or covariance
- CurveEstimator: Nadaraya-Watson estimation of the curves
"""

from .config import SmoothingConfig
from .presmoothing import Presmoother, PresmoothedGrid, estimate_var
from .noise_estimation import NoiseEstimator, estimate_sigma, estimate_sigma_list
from .regularity_estimation import (
    RegularityEstimator,
    EscalationResult,
    escalate,
    estimate_H0,
    estimate_H0_legacy,
    estimate_H0_list,
    estimate_H0_deriv_list,
)
from .constant_estimation import ConstantEstimator, estimate_lambda, estimate_L0, estimate_L0_list
from .bandwidth_selection import BandwidthSelector, estimate_b, estimate_b_list
from .curve_estimation import CurveEstimator, estimate_curve
from .pipeline import SmoothingPipeline, smooth_curves, smooth_curves_mean, smooth_curves_regularity

__all__ = [
    'SmoothingConfig',
    'Presmoother',
    'PresmoothedGrid',
    'estimate_var',
    'NoiseEstimator',
    'estimate_sigma',
    'estimate_sigma_list',
    'RegularityEstimator',
    'EscalationResult',
    'escalate',
    'estimate_H0',
    'estimate_H0_legacy',
    'estimate_H0_list',
    'estimate_H0_deriv_list',
    'ConstantEstimator',
    'estimate_lambda',
    'estimate_L0',
    'estimate_L0_list',
    'BandwidthSelector',
    'estimate_b',
    'estimate_b_list',
    'CurveEstimator',
    'estimate_curve',
    'SmoothingPipeline',
    'smooth_curves',
    'smooth_curves_mean',
    'smooth_curves_regularity',
]
