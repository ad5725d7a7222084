# gpgam/model/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Additive GP regression model.

Modules
-------
data
    ObservationSet: validated (y, A, k, site) records.
hyperparameters
    Fixed values or priors for the GP hyperparameters.
layout
    Named blocks of the flat unconstrained parameter vector.
identifiability
    Soft mean-zero penalty.
additive
    AdditiveGPModel and its options.
"""

from gpgam.errors import CovarianceError, GPGAMError, ValidationError

from .data import ObservationSet
from .hyperparameters import HYPERPARAMETER_NAMES, Fixed, HyperparameterConfig
from .layout import Normalization, ParameterLayout
from .identifiability import soft_mean_zero_penalty
from .additive import DEFAULT_IDENTIFIABILITY_PENALTY, AdditiveGPModel, ModelConfig

__all__ = [
    "ObservationSet",
    "HYPERPARAMETER_NAMES",
    "Fixed",
    "HyperparameterConfig",
    "Normalization",
    "ParameterLayout",
    "soft_mean_zero_penalty",
    "DEFAULT_IDENTIFIABILITY_PENALTY",
    "AdditiveGPModel",
    "ModelConfig",
    "GPGAMError",
    "ValidationError",
    "CovarianceError",
]
