"""
Kernels of the symmetric beta family used for kernel regression and the
constants entering the asymptotic risk of the bandwidth selection.

K_p(z) = (1 - z^2)^p / B(1/2, p + 1) on [-1, 1]:
    p = 0 uniform, p = 1 epanechnikov, p = 2 biweight, p = 3 triweight.
"""

import numpy as np
from functools import lru_cache
from scipy import integrate, special


KERNEL_POWERS = {
    'uniform': 0,
    'epanechnikov': 1,
    'biweight': 2,
    'triweight': 3,
}


class Kernel:
    """
    Compactly supported kernel of the beta family.

    Args:
        name (str): One of the keys of KERNEL_POWERS.
    """

    def __init__(self, name='epanechnikov'):
        if name not in KERNEL_POWERS:
            raise ValueError(f"kernel must be one of {list(KERNEL_POWERS)}, got {name!r}")
        self.name = name
        self.power = KERNEL_POWERS[name]
        self.normalization = 1.0 / special.beta(0.5, self.power + 1)

    def __repr__(self):
        return f"Kernel({self.name!r})"

    def __call__(self, z):
        z = np.asarray(z, dtype=float)
        inside = np.abs(z) <= 1
        return np.where(inside, self.normalization * np.clip(1 - z ** 2, 0, None) ** self.power, 0.0)

    def squared_integral(self):
        """R(K), the integral of K^2."""
        return _squared_integral(self.name)

    def moment(self, H):
        """M(K, H), the integral of |u|^H K(u)."""
        return _moment(self.name, float(H))


def get_kernel(kernel):
    """Return a Kernel from a name or pass a Kernel through."""
    if isinstance(kernel, Kernel):
        return kernel
    return Kernel(kernel)


@lru_cache(maxsize=None)
def _squared_integral(name):
    kernel = Kernel(name)
    value, _ = integrate.quad(lambda u: float(kernel(u)) ** 2, -1, 1)
    return value


@lru_cache(maxsize=1024)
def _moment(name, H):
    kernel = Kernel(name)
    # symmetric kernel
    value, _ = integrate.quad(lambda u: u ** H * float(kernel(u)), 0, 1)
    return 2 * value
