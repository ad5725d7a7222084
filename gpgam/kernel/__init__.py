# gpgam/kernel/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Gaussian Process kernels and prior distributions.

Modules
-------
exponentiated_quadratic
    Exponentiated-quadratic kernel and covariance builder.
priors
    Prior distributions for hyperparameters and coefficients.

Public API
-----------
- Kernel:
    exponentiated_quadratic_kernel, exponentiated_quadratic_covariance, add_jitter
- Priors:
    Flat, Normal, HalfNormal, LogNormal, Gamma, InvGamma, is_prior
"""

from .exponentiated_quadratic import (
    add_jitter,
    exponentiated_quadratic_covariance,
    exponentiated_quadratic_kernel,
)
from .priors import Flat, Gamma, HalfNormal, InvGamma, LogNormal, Normal, is_prior

__all__ = [
    # Kernel
    "exponentiated_quadratic_kernel",
    "exponentiated_quadratic_covariance",
    "add_jitter",
    # Priors
    "Flat",
    "Normal",
    "HalfNormal",
    "LogNormal",
    "Gamma",
    "InvGamma",
    "is_prior",
]
