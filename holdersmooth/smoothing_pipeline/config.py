"""
Smoothing Configuration

This module defines the configuration class for the smoothing pipeline.
"""

import copy
import numpy as np
from dataclasses import dataclass
from typing import Optional

from holdersmooth.utils.kernels import KERNEL_POWERS


REGULARITY_METHODS = ['legacy', 'continuous']
BANDWIDTH_REASONS = ['curve', 'mean', 'covariance']

# hard cap on the number of derivative orders absorbed by the escalation
MAX_ESCALATION = 5


@dataclass
class SmoothingConfig:
    """
    Configuration class for the adaptive curve smoothing pipeline.

    Parameters are grouped by the stage that consumes them.
    """

    # ============ Kernel Regression Parameters ============
    kernel: str = 'epanechnikov'  # 'uniform', 'epanechnikov', 'biweight', 'triweight'
    n_obs_min: int = 1

    # ============ Regularity Estimation Parameters ============
    regularity_method: str = 'continuous'  # 'continuous' (presmoothing) or 'legacy' (neighbor differences)
    gamma: float = 0.5  # presmoothing window exp(-log(m)^gamma)
    escalation_gamma: float = 1.0  # phi = log(m)^(-escalation_gamma)
    eps: float = 0.01  # legacy escalation threshold
    max_escalation: int = MAX_ESCALATION

    # ============ Noise Parameters ============
    sigma: Optional[float] = None  # None to estimate the noise

    # ============ Bandwidth Parameters ============
    reason: str = 'curve'  # 'curve', 'mean', 'covariance'
    bandwidth_grid: Optional[np.ndarray] = None

    # ============ General Parameters ============
    n_jobs: int = 1
    verbose: int = 0

    def __post_init__(self):
        """Post-initialization validation and setup."""
        self._validate_parameters()

    def _validate_parameters(self):
        """Validate configuration parameters."""
        if self.kernel not in KERNEL_POWERS:
            raise ValueError(f"kernel must be one of {list(KERNEL_POWERS)}")

        if self.regularity_method not in REGULARITY_METHODS:
            raise ValueError(f"regularity_method must be one of {REGULARITY_METHODS}")

        if self.reason not in BANDWIDTH_REASONS:
            raise ValueError(f"reason must be one of {BANDWIDTH_REASONS}")

        if not 0 < self.gamma < 1:
            raise ValueError("gamma must be in (0, 1)")

        if self.escalation_gamma <= 0:
            raise ValueError("escalation_gamma must be positive")

        if not 0 < self.eps < 1:
            raise ValueError("eps must be in (0, 1)")

        if not 0 <= self.max_escalation <= MAX_ESCALATION:
            raise ValueError(f"max_escalation must be between 0 and {MAX_ESCALATION}")

        if self.sigma is not None and (not np.isfinite(self.sigma) or self.sigma < 0):
            raise ValueError("sigma must be non-negative")

        if self.n_obs_min < 1:
            raise ValueError("n_obs_min must be at least 1")

        if self.bandwidth_grid is not None:
            grid = np.asarray(self.bandwidth_grid, dtype=float)
            if grid.ndim != 1 or grid.size == 0 or np.any(grid <= 0):
                raise ValueError("bandwidth_grid must be a non-empty 1D array of positive values")

        if self.n_jobs < 1:
            raise ValueError("n_jobs must be positive")

    def copy(self):
        """Create a deep copy of the configuration."""
        return copy.deepcopy(self)

    def update(self, **kwargs):
        """Update configuration parameters."""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
            else:
                raise ValueError(f"Unknown parameter: {key}")

        # Re-validate after updates
        self._validate_parameters()
        return self

    def get_presmoothing_config(self):
        """Get configuration subset for presmoothing."""
        return {
            'gamma': self.gamma,
            'n_jobs': self.n_jobs,
            'verbose': self.verbose
        }

    def get_noise_config(self):
        """Get configuration subset for noise estimation."""
        return {
            'sigma': self.sigma,
            'n_jobs': self.n_jobs,
            'verbose': self.verbose
        }

    def get_regularity_config(self):
        """Get configuration subset for regularity estimation."""
        return {
            'regularity_method': self.regularity_method,
            'gamma': self.gamma,
            'escalation_gamma': self.escalation_gamma,
            'eps': self.eps,
            'max_escalation': self.max_escalation,
            'sigma': self.sigma,
            'kernel': self.kernel,
            'n_jobs': self.n_jobs,
            'verbose': self.verbose
        }

    def get_bandwidth_config(self):
        """Get configuration subset for bandwidth selection."""
        return {
            'kernel': self.kernel,
            'reason': self.reason,
            'n_obs_min': self.n_obs_min,
            'bandwidth_grid': self.bandwidth_grid,
            'verbose': self.verbose
        }

    def get_estimation_config(self):
        """Get configuration subset for curve estimation."""
        return {
            'kernel': self.kernel,
            'n_obs_min': self.n_obs_min,
            'n_jobs': self.n_jobs,
            'verbose': self.verbose
        }
