# gpgam/model/identifiability.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Soft mean-zero penalty.

The intercept and the mean level of the shared smooth effect f(k) are not
separately identified. Adding

.. math::
    -\\lambda \\Big(\\sum_i b_0 + A_i b_1 + f_k(k_i)\\Big)^2

to the log-density nudges the combined effect towards a zero sum. This is a
regularization with a tunable strength, not a hard linear constraint: it
only approximately enforces mean-zero identifiability. Larger lambda
enforces it more strictly, lambda = 0 disables it.
"""
from gpgam.errors import ValidationError


def check_penalty(lam) -> float:
    try:
        lam = float(lam)
    except (TypeError, ValueError):
        raise ValidationError(f"penalty strength must be a number, got {lam!r}.") from None
    if not lam >= 0.0:
        raise ValidationError(f"penalty strength must be nonnegative, got {lam!r}.")
    return lam


def soft_mean_zero_penalty(total, lam):
    """Log-density term ``-lam * total**2``.

    Parameters
    ----------
    total : float or 0-d gnp.array
        Sum over observations of ``b0 + A * b1 + f_k``.
    lam : float
        Penalty strength, >= 0.

    Returns
    -------
    Same type as total. Zero when total is zero or lam is zero, strictly
    negative otherwise, decreasing in ``total**2``.
    """
    lam = check_penalty(lam)
    return -lam * total**2
