# gpgam/kernel/priors.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Prior distributions for GP hyperparameters and regression coefficients.

Classes
-------
Flat
    Improper uniform prior (on the real line or the positive half line).
Normal
    Gaussian prior on a real quantity.
HalfNormal
    Half-Gaussian prior on a positive quantity.
LogNormal
    Log-normal prior on a positive quantity.
Gamma
    Gamma prior (shape, rate) on a positive quantity.
InvGamma
    Inverse-gamma prior (shape, scale) on a positive quantity. A common
    choice for GP length-scales, since it puts little mass near zero.

Each prior provides ``logpdf(x)``, written with ``gpgam.num`` so that it is
differentiable under the torch backend, a ``support`` tag and a
``typical_value()`` used to initialize samplers.
"""
import math
from dataclasses import dataclass

import gpgam.num as gnp

_HALF_LOG_2PI = 0.5 * math.log(2.0 * math.pi)


def _require_positive(**kwargs):
    for name, value in kwargs.items():
        if not (isinstance(value, (int, float)) and value > 0.0):
            raise ValueError(f"{name} must be a positive number, got {value!r}.")


@dataclass(frozen=True)
class Flat:
    """Improper uniform prior; log-density is zero on the support."""

    support: str = "real"

    def __post_init__(self):
        if self.support not in ("real", "positive"):
            raise ValueError("support must be 'real' or 'positive'.")

    def logpdf(self, x):
        return 0.0 * x

    def typical_value(self):
        return 0.0 if self.support == "real" else 1.0


@dataclass(frozen=True)
class Normal:
    loc: float = 0.0
    scale: float = 1.0
    support = "real"

    def __post_init__(self):
        _require_positive(scale=self.scale)

    def logpdf(self, x):
        t = (x - self.loc) / self.scale
        return -0.5 * t**2 - math.log(self.scale) - _HALF_LOG_2PI

    def typical_value(self):
        return float(self.loc)


@dataclass(frozen=True)
class HalfNormal:
    scale: float = 1.0
    support = "positive"

    def __post_init__(self):
        _require_positive(scale=self.scale)

    def logpdf(self, x):
        t = x / self.scale
        return -0.5 * t**2 + math.log(2.0) - math.log(self.scale) - _HALF_LOG_2PI

    def typical_value(self):
        # median of the half-normal
        return 0.6744897501960817 * self.scale


@dataclass(frozen=True)
class LogNormal:
    mu: float = 0.0
    sigma: float = 1.0
    support = "positive"

    def __post_init__(self):
        _require_positive(sigma=self.sigma)

    def logpdf(self, x):
        logx = gnp.log(x)
        t = (logx - self.mu) / self.sigma
        return -0.5 * t**2 - logx - math.log(self.sigma) - _HALF_LOG_2PI

    def typical_value(self):
        return math.exp(self.mu)


@dataclass(frozen=True)
class Gamma:
    shape: float = 2.0
    rate: float = 1.0
    support = "positive"

    def __post_init__(self):
        _require_positive(shape=self.shape, rate=self.rate)

    def logpdf(self, x):
        const = self.shape * math.log(self.rate) - math.lgamma(self.shape)
        return const + (self.shape - 1.0) * gnp.log(x) - self.rate * x

    def typical_value(self):
        return self.shape / self.rate


@dataclass(frozen=True)
class InvGamma:
    shape: float = 5.0
    scale: float = 5.0
    support = "positive"

    def __post_init__(self):
        _require_positive(shape=self.shape, scale=self.scale)

    def logpdf(self, x):
        const = self.shape * math.log(self.scale) - math.lgamma(self.shape)
        return const - (self.shape + 1.0) * gnp.log(x) - self.scale / x

    def typical_value(self):
        # mode
        return self.scale / (self.shape + 1.0)


PRIORS = (Flat, Normal, HalfNormal, LogNormal, Gamma, InvGamma)


def is_prior(obj):
    return isinstance(obj, PRIORS)
