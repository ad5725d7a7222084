# gpgam/num/numpy_backend.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""NumPy numerical backend for gpgam.

This module defines the NumPy implementation of the gpgam.num API.
Gradients are obtained by finite differences.
"""

import builtins
from typing import Any, Callable, Tuple, Union
from gpgam.config import get_config, init_backend, get_logger
from .shared import derivative_finite_diff

Scalar = Union[int, float]
ArrayLike = Any

_gpgam_backend_: str = init_backend()
_config = get_config()
_logger = get_logger()
_logger.debug("Using backend: %s", _gpgam_backend_)

_LINALG_ERROR_KEYWORDS = (
    "singular",
    "not positive definite",
    "not positive-definite",
    "cholesky",
    "decomposition",
    "factorization",
    "ill-conditioned",
    "linalg",
    "lapack",
    "array must not contain infs or nans",
)


# -----------------------------------------------------
#
#                      NUMPY
#
# -----------------------------------------------------

import numpy
from numpy.typing import NDArray

_np_dtype = numpy.float64
_config.dtype_resolved = _np_dtype

ndarray = NDArray[numpy.floating]
from numpy import (
    copy,
    reshape,
    all,
    isfinite,
    concatenate,
    diag,
    sqrt,
    exp,
    log,
    sum,
    matmul,
)
from numpy.linalg import cholesky
from numpy import inf
from scipy.linalg import solve_triangular

# ..................................................


def safe_neginf():
    return -inf


# ..................................................

def is_linalg_exception(exc: Exception) -> bool:
    if isinstance(exc, numpy.linalg.LinAlgError):
        return True
    msg = str(exc).lower()
    return builtins.any(keyword in msg for keyword in _LINALG_ERROR_KEYWORDS)


# ..................................................

def asarray(x, dtype=None):
    if dtype is not None:
        return numpy.asarray(x, dtype=dtype)
    if isinstance(x, numpy.ndarray):
        if numpy.issubdtype(x.dtype, numpy.floating):
            return x.astype(_np_dtype, copy=False)
        return x
    out = numpy.asarray(x)
    if numpy.issubdtype(out.dtype, numpy.floating):
        return out.astype(_np_dtype, copy=False)
    return out


def eye(n, dtype=None):
    return numpy.eye(n, dtype=_np_dtype if dtype is None else dtype)


def asint(x):
    return numpy.asarray(x).astype(numpy.int64, copy=False)


def to_np(x):
    return numpy.asarray(x)


def to_scalar(x):
    return numpy.asarray(x).item()


def isarray(x):
    return isinstance(x, numpy.ndarray)


def detach(x):
    return x


# ..................................................

def value_and_grad(
    f: Callable[[ArrayLike], ArrayLike],
    x: ArrayLike,
    *,
    h: float = 1e-5,
) -> Tuple[ArrayLike, ArrayLike]:
    """Returns (y, grad_y) where y = f(x) is scalar.  Uses
    derivative_finite_diff on each coordinate (expects scalar
    input).

    """

    def _coerce_scalar_like(y_):
        if numpy.isscalar(y_):
            return y_
        if isarray(y_):
            if y_.ndim == 0:
                return y_
            if y_.size == 1:
                return reshape(y_, ())
        raise ValueError("f(x) must return a scalar.")

    x = asarray(x)
    y = _coerce_scalar_like(f(x))
    grad = numpy.zeros_like(x, dtype=_np_dtype)
    if not numpy.isfinite(y):
        return y, grad
    x_tmp = x.copy()
    for idx in range(x.shape[0]):
        xi = x[idx]

        def f_i(xi_scalar):
            x_tmp[idx] = xi_scalar
            return _coerce_scalar_like(f(x_tmp))

        grad[idx] = derivative_finite_diff(f_i, xi, h)
        x_tmp[idx] = x[idx]  # restore
    return y, grad


def pairwise_differences(x: ArrayLike, y: ArrayLike) -> ArrayLike:
    """Matrix of differences x_i - y_j for 1-D inputs."""
    return numpy.subtract.outer(numpy.ravel(x), numpy.ravel(y))


# ..................................................

# Build one global RNG (or let the user set the seed somewhere):
_np_rng = numpy.random.default_rng(seed=_config.seed)


def set_seed(seed: int) -> None:
    """Set the global NumPy generator seed."""
    global _np_rng
    _np_rng = numpy.random.default_rng(seed=seed)


def rand(*shape: int) -> ArrayLike:
    return _np_rng.random(shape, dtype=_np_dtype)


def randn(*shape: int) -> ArrayLike:
    return _np_rng.normal(loc=0, scale=1, size=shape).astype(_np_dtype, copy=False)

