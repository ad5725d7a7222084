# gpgam/kernel/exponentiated_quadratic.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Exponentiated-quadratic (squared-exponential) covariance.

.. math::
    K_{ij} = \\alpha^2 \\exp\\left(-\\frac{(x_i - y_j)^2}{2\\rho^2}\\right)

The covariance builders return the exact kernel, without nugget: diagonal
entries of K(x, x) equal :math:`\\alpha^2`. Jitter needed by a Cholesky
factorization is added by the caller, see :func:`add_jitter`.
"""
import math

import gpgam.num as gnp
from gpgam.errors import ValidationError


def _check_positive(value, name):
    v = float(gnp.to_scalar(gnp.detach(value))) if gnp.isarray(value) else float(value)
    if not (math.isfinite(v) and v > 0.0):
        raise ValidationError(f"{name} must be finite and strictly positive, got {v!r}.")


def exponentiated_quadratic_kernel(h):
    """Exponentiated-quadratic kernel.

    .. math::
        k(h) = \\exp(-h^2 / 2)

    Parameters
    ----------
    h : gnp.array
        Scaled distances :math:`|x - y| / \\rho`.

    Returns
    -------
    gnp.array
        Kernel values, same shape as h.
    """
    return gnp.exp(-0.5 * h**2)


def exponentiated_quadratic_covariance(x, y, rho, alpha):
    """Exponentiated-quadratic covariance between 1-D inputs.

    Parameters
    ----------
    x : gnp.array, shape (n,)
    y : gnp.array, shape (m,) or None
        If None (or ``y is x``), the covariance of x with itself.
    rho : float or 0-d gnp.array
        Length-scale, strictly positive.
    alpha : float or 0-d gnp.array
        Output scale (marginal standard deviation), strictly positive.

    Returns
    -------
    gnp.array, shape (n, m)
        Covariance matrix.

    Raises
    ------
    ValidationError
        If rho or alpha is not strictly positive.
    """
    _check_positive(rho, "length-scale rho")
    _check_positive(alpha, "output scale alpha")
    x = gnp.asarray(x).reshape(-1)
    y = x if y is None else gnp.asarray(y).reshape(-1)
    h = gnp.pairwise_differences(x, y) / rho
    return alpha**2 * exponentiated_quadratic_kernel(h)


def add_jitter(K, jitter):
    """Return K + jitter * I."""
    if jitter == 0.0:
        return K
    return K + jitter * gnp.eye(K.shape[0])
