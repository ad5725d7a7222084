# gpgam/errors.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Exceptions raised while building or evaluating an additive GP model.

GPGAMError
    Base class.
ValidationError
    Invalid inputs, raised before any covariance matrix is built.
CovarianceError
    A covariance matrix could not be factorized.
"""
import numpy as np


class GPGAMError(Exception):
    """Base class for gpgam errors."""


class ValidationError(GPGAMError, ValueError):
    """Invalid observation set, hyperparameter or configuration."""


class CovarianceError(GPGAMError, np.linalg.LinAlgError):
    """Cholesky factorization of a covariance matrix failed.

    Attributes
    ----------
    matrix : str
        Name of the latent effect the matrix belongs to ("f_k" or "f_site").
    site : int or None
        1-based site label for per-site matrices, None for the shared one.
    """

    def __init__(self, message, matrix, site=None):
        self.matrix = matrix
        self.site = site
        where = f"{matrix}" if site is None else f"{matrix}, site {site}"
        super().__init__(f"{message} [{where}]")
