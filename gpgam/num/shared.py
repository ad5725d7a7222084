# gpgam/num/shared.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""Backend-independent helpers for gpgam.num."""

import math
from typing import Any, Callable, Union

from gpgam.config import get_config

Scalar = Union[int, float]
ArrayLike = Any

_LOG_2PI = math.log(2.0 * math.pi)


def get_dtype():
    return get_config().dtype_resolved


def derivative_finite_diff(
    f: Callable[[Scalar], ArrayLike], x: Scalar, h: Scalar
) -> ArrayLike:
    """
    5-point central difference derivative of f w.r.t. scalar x.
    f(x) must return a NumPy (or similar) array/matrix/tensor.
    """
    f_x_p2 = f(x + 2 * h)
    f_x_p1 = f(x + h)
    f_x_m1 = f(x - h)
    f_x_m2 = f(x - 2 * h)
    return (-f_x_p2 + 8 * f_x_p1 - 8 * f_x_m1 + f_x_m2) / (12.0 * h)


def log_normal_density_cholesky(f: ArrayLike, L: ArrayLike) -> ArrayLike:
    """
    Log-density of N(0, L L^T) at f, given the lower Cholesky factor L.

    .. math::
        \\log p(f) = -\\tfrac12 \\|L^{-1} f\\|^2 - \\sum_i \\log L_{ii}
                     - \\tfrac{n}{2} \\log(2\\pi)
    """
    import gpgam.num as gnp

    n = f.shape[0]
    w = gnp.solve_triangular(L, gnp.reshape(f, (-1, 1)), lower=True)
    quad = gnp.sum(w * w)
    half_logdet = gnp.sum(gnp.log(gnp.diag(L)))
    return -0.5 * quad - half_logdet - 0.5 * n * _LOG_2PI
