# gpgam/__init__.py

from . import config
from . import num
from . import kernel
from . import model
from . import misc
from . import stan
from . import fit
from .errors import CovarianceError, GPGAMError, ValidationError
from .kernel.priors import Flat, Gamma, HalfNormal, InvGamma, LogNormal, Normal
from .model import (
    DEFAULT_IDENTIFIABILITY_PENALTY,
    AdditiveGPModel,
    Fixed,
    HyperparameterConfig,
    ModelConfig,
    ObservationSet,
)
from .fit import Posterior, PointEstimate, find_map, sample

__version__ = config.get_config().version

__all__ = [
    "num",
    "kernel",
    "model",
    "fit",
    "stan",
    "ObservationSet",
    "HyperparameterConfig",
    "Fixed",
    "ModelConfig",
    "AdditiveGPModel",
    "DEFAULT_IDENTIFIABILITY_PENALTY",
    "Flat",
    "Normal",
    "HalfNormal",
    "LogNormal",
    "Gamma",
    "InvGamma",
    "sample",
    "find_map",
    "Posterior",
    "PointEstimate",
    "GPGAMError",
    "ValidationError",
    "CovarianceError",
    "__version__",
]
