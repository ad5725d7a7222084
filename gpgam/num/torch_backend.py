# gpgam/num/torch_backend.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""Torch numerical backend for gpgam.

This module defines the Torch implementation of the gpgam.num API.
Gradients are obtained by reverse-mode automatic differentiation.
"""

import builtins
from typing import Any, Union
from gpgam.config import get_config, init_backend, get_logger

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
    "cusolver",
)


# -----------------------------------------------------
#
#                      TORCH
#
# -----------------------------------------------------

import numpy
import torch

_torch_dtype = torch.float64
torch.set_default_dtype(_torch_dtype)
_config.dtype_resolved = _torch_dtype

from torch import tensor, is_tensor

ndarray = torch.Tensor

from torch import (
    reshape,
    isfinite,
    concatenate,
    diag,
    matmul,
)
from torch.linalg import cholesky

# ..................................................


def safe_neginf():
    return tensor(-float("inf"))


# ..................................................

_torch_linalg_error = (
    (torch.linalg.LinAlgError,) if hasattr(torch.linalg, "LinAlgError") else tuple()
)


def is_linalg_exception(exc: Exception) -> bool:
    if _torch_linalg_error and isinstance(exc, _torch_linalg_error):
        return True
    msg = str(exc).lower()
    return builtins.any(keyword in msg for keyword in _LINALG_ERROR_KEYWORDS)


# ..................................................

def _resolve_torch_dtype(dtype):
    if dtype is None:
        return None
    if isinstance(dtype, torch.dtype):
        return dtype
    if dtype is float:
        return _torch_dtype
    if dtype is int:
        return torch.long
    if dtype is bool:
        return torch.bool
    s = str(dtype).lower()
    if "float64" in s or "double" in s:
        return torch.float64
    if "int64" in s or "long" in s:
        return torch.int64
    if "bool" in s:
        return torch.bool
    return dtype


def asarray(x, dtype=None):
    dtype = _resolve_torch_dtype(dtype)
    if isinstance(x, torch.Tensor):
        if dtype is not None:
            return x if x.dtype == dtype else x.to(dtype=dtype)
        if x.is_floating_point() and x.dtype != _torch_dtype:
            return x.to(dtype=_torch_dtype)
        return x
    if isinstance(x, numpy.ndarray):
        x_ = torch.from_numpy(numpy.ascontiguousarray(x))
    else:
        x_ = torch.as_tensor(x)
    if dtype is not None:
        return x_ if x_.dtype == dtype else x_.to(dtype=dtype)
    if x_.is_floating_point() and x_.dtype != _torch_dtype:
        x_ = x_.to(dtype=_torch_dtype)
    return x_


def copy(x):
    return asarray(x).clone().detach()


def eye(n, dtype=None):
    return torch.eye(n, dtype=_resolve_torch_dtype(dtype) or _torch_dtype)


def asint(x):
    return asarray(x).to(torch.int64)


def to_np(x):
    if is_tensor(x):
        return x.detach().cpu().numpy()
    return numpy.asarray(x)


def to_scalar(x):
    if is_tensor(x):
        return x.item()
    return numpy.asarray(x).item()


def isarray(x):
    return torch.is_tensor(x)


def detach(x):
    return x.detach() if torch.is_tensor(x) else x


# ..................................................

def scalar_safe(f):
    def f_(x):
        if torch.is_tensor(x):
            return f(x)
        return f(torch.as_tensor(x, dtype=_torch_dtype))

    return f_


log = scalar_safe(torch.log)
exp = scalar_safe(torch.exp)
sqrt = scalar_safe(torch.sqrt)


def axis_to_dim(f):
    def f_(x, axis=None, **kwargs):
        if axis is None:
            return f(x, **kwargs)
        return f(x, dim=axis, **kwargs)

    return f_


all = axis_to_dim(torch.all)
sum = axis_to_dim(torch.sum)


# ..................................................

def value_and_grad(f, x):
    # Returns (y, grady) with y = f(x)
    with torch.enable_grad():
        x_ = asarray(x).detach().requires_grad_(True)
        y = f(x_)
        if not torch.is_tensor(y):
            y = torch.as_tensor(y, dtype=_torch_dtype)
        if y.ndim != 0:
            if y.numel() == 1:
                y = y.reshape(())
            else:
                raise ValueError("f(x) must return a scalar.")
        if not torch.isfinite(y) or not y.requires_grad:
            return y.detach(), torch.zeros_like(x_).detach()
        (g,) = torch.autograd.grad(y, x_, create_graph=False, allow_unused=True)
        if g is None:
            g = torch.zeros_like(x_)
    return y.detach(), g.detach()


# ..................................................

def pairwise_differences(x, y):
    """Matrix of differences x_i - y_j for 1-D inputs."""
    return x.reshape(-1, 1) - y.reshape(1, -1)


def solve_triangular(A, B, lower=False):
    return torch.linalg.solve_triangular(A, B, upper=not lower)


# ..................................................

# Build a global Torch Generator
_torch_gen = torch.Generator()
_torch_gen.manual_seed(_config.seed)


def set_seed(seed):
    """Set the global Torch generator seed."""
    global _torch_gen
    _torch_gen = torch.Generator()
    _torch_gen.manual_seed(seed)


def rand(*shape):
    return torch.rand(shape, generator=_torch_gen)


def randn(*shape):
    return torch.randn(shape, generator=_torch_gen)

