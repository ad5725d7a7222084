# gpgam/model/hyperparameters.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Hyperparameters of the two GP effects.

Four options are recognized:

- ``rho_k``, ``alpha_k``: length-scale and output scale of the shared
  smooth effect f(k);
- ``rho_ks``, ``alpha_ks``: length-scale and output scale of the per-site
  smooth effect f(k, site).

Each option is either ``Fixed(value)`` (passed as data) or a prior from
``gpgam.kernel.priors`` (sampled with the other parameters). The same model
code serves both modes.
"""
from dataclasses import dataclass
import math
import numbers
from typing import Dict, List

from gpgam.errors import ValidationError
from gpgam.kernel.priors import Flat, is_prior

HYPERPARAMETER_NAMES = ("rho_k", "alpha_k", "rho_ks", "alpha_ks")


@dataclass(frozen=True)
class Fixed:
    """A hyperparameter held at a fixed, strictly positive value."""

    value: float

    def __post_init__(self):
        try:
            v = float(self.value)
        except (TypeError, ValueError):
            raise ValidationError(f"Fixed value must be a number, got {self.value!r}.") from None
        if not (math.isfinite(v) and v > 0.0):
            raise ValidationError(f"Fixed value must be finite and strictly positive, got {v!r}.")
        object.__setattr__(self, "value", v)


def _coerce(name, option):
    if isinstance(option, Fixed):
        return option
    if is_prior(option):
        if option.support != "positive" or isinstance(option, Flat):
            raise ValidationError(
                f"{name}: prior must be a proper distribution on the positive half line."
            )
        return option
    if isinstance(option, numbers.Real) and not isinstance(option, bool):
        return Fixed(option)
    raise ValidationError(
        f"{name} must be a positive number, a Fixed value or a prior, got {option!r}."
    )


class HyperparameterConfig:
    """Fixed values or priors for rho_k, alpha_k, rho_ks, alpha_ks.

    Examples
    --------
    >>> from gpgam.kernel.priors import InvGamma, HalfNormal
    >>> hp = HyperparameterConfig(rho_k=1.0, alpha_k=1.0,
    ...                           rho_ks=InvGamma(5.0, 5.0), alpha_ks=HalfNormal(1.0))
    >>> hp.estimated_names()
    ['rho_ks', 'alpha_ks']
    """

    def __init__(self, rho_k, alpha_k, rho_ks, alpha_ks):
        self._options = {
            "rho_k": _coerce("rho_k", rho_k),
            "alpha_k": _coerce("alpha_k", alpha_k),
            "rho_ks": _coerce("rho_ks", rho_ks),
            "alpha_ks": _coerce("alpha_ks", alpha_ks),
        }

    def __repr__(self):
        parts = ", ".join(f"{n}={self._options[n]!r}" for n in HYPERPARAMETER_NAMES)
        return f"HyperparameterConfig({parts})"

    def __getitem__(self, name):
        return self._options[name]

    def is_fixed(self, name: str) -> bool:
        return isinstance(self._options[name], Fixed)

    def fixed_values(self) -> Dict[str, float]:
        return {n: s.value for n, s in self._options.items() if isinstance(s, Fixed)}

    def estimated_names(self) -> List[str]:
        return [n for n in HYPERPARAMETER_NAMES if not self.is_fixed(n)]

    def all_fixed(self) -> bool:
        return not self.estimated_names()

    def resolve(self, name: str, sampled: Dict[str, object]):
        """Value of a hyperparameter: the fixed value or the sampled one."""
        option = self._options[name]
        if isinstance(option, Fixed):
            return option.value
        return sampled[name]
