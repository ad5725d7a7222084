# gpgam/model/data.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Observation set of the additive GP model.

Each record carries a response ``y``, a covariate ``A`` entering linearly,
a covariate ``k`` entering through smooth GP effects, and a site label in
``[1, S]``. Everything is validated on construction, so that a malformed
set never reaches covariance construction.
"""
from typing import Any, Dict, List, Mapping

import numpy as np

from gpgam.config import get_logger
from gpgam.errors import ValidationError

_logger = get_logger()


def _as_float_vector(x, name):
    a = np.asarray(x, dtype=float)
    if a.ndim != 1:
        raise ValidationError(f"{name} must be one-dimensional, got shape {a.shape}.")
    if not np.all(np.isfinite(a)):
        raise ValidationError(f"{name} contains non-finite values.")
    return a


def _as_label_vector(x):
    a = np.asarray(x)
    if a.ndim != 1:
        raise ValidationError(f"site must be one-dimensional, got shape {a.shape}.")
    if a.size > 0 and not np.issubdtype(a.dtype, np.integer):
        try:
            as_int = np.rint(a.astype(float))
        except (TypeError, ValueError) as e:
            raise ValidationError("site labels must be integers.") from e
        if not np.all(as_int == a):
            raise ValidationError("site labels must be integers.")
        a = as_int
    return a.astype(np.int64)


class ObservationSet:
    """Validated observation set.

    Parameters
    ----------
    y, A, k : array_like, shape (n,)
        Response, linear covariate and smooth covariate.
    site : array_like of int, shape (n,)
        Site labels in ``[1, n_sites]``.
    n_sites : int, optional
        Number of sites S. Defaults to ``max(site)``.

    Raises
    ------
    ValidationError
        On empty input, length mismatch, non-finite values, labels outside
        ``[1, n_sites]``, sites without observations, or duplicate ``k``
        values within a site.
    """

    def __init__(self, y, A, k, site, n_sites=None):
        self.y = _as_float_vector(y, "y")
        self.A = _as_float_vector(A, "A")
        self.k = _as_float_vector(k, "k")
        self.site = _as_label_vector(site)

        n = self.y.shape[0]
        if n < 1:
            raise ValidationError("At least one observation is required (N >= 1).")
        for name in ("A", "k", "site"):
            if getattr(self, name).shape[0] != n:
                raise ValidationError(
                    f"{name} has length {getattr(self, name).shape[0]}, expected {n}."
                )

        if n_sites is None:
            n_sites = int(self.site.max())
        if int(n_sites) != n_sites or n_sites < 1:
            raise ValidationError(f"n_sites must be a positive integer, got {n_sites!r}.")
        self._n_sites = int(n_sites)

        self.validate()
        self._site_indices = [
            np.flatnonzero(self.site == s) for s in range(1, self._n_sites + 1)
        ]

    def __repr__(self):
        return f"<gpgam.ObservationSet n_obs={self.n_obs} n_sites={self.n_sites}>"

    @property
    def n_obs(self) -> int:
        return int(self.y.shape[0])

    @property
    def n_sites(self) -> int:
        return self._n_sites

    def validate(self):
        """Check site labels and per-site covariates; raise ValidationError."""
        bad = (self.site < 1) | (self.site > self._n_sites)
        if np.any(bad):
            labels = sorted(set(self.site[bad].tolist()))
            raise ValidationError(
                f"site labels must lie in [1, {self._n_sites}], got {labels}."
            )
        counts = np.bincount(self.site, minlength=self._n_sites + 1)[1:]
        empty = [s + 1 for s in np.flatnonzero(counts == 0).tolist()]
        if empty:
            raise ValidationError(f"sites without observations: {empty}.")
        for s in range(1, self._n_sites + 1):
            ks = self.k[self.site == s]
            if np.unique(ks).shape[0] != ks.shape[0]:
                raise ValidationError(
                    f"duplicate k values within site {s}: its covariance matrix "
                    "would be singular."
                )
        if np.unique(self.k).shape[0] != self.k.shape[0]:
            _logger.debug(
                "k has duplicate values across sites; the shared covariance "
                "relies on jitter to be factorized."
            )

    def site_indices(self, s: int) -> np.ndarray:
        """0-based row indices of the observations of site s (1-based label)."""
        if not 1 <= s <= self._n_sites:
            raise ValidationError(f"site must lie in [1, {self._n_sites}], got {s}.")
        return self._site_indices[s - 1]

    def site_sizes(self) -> List[int]:
        return [int(idx.shape[0]) for idx in self._site_indices]

    def site_order(self) -> np.ndarray:
        """Row indices grouped by site, site 1 first."""
        return np.concatenate(self._site_indices)

    # ------------------------------------------------------------------
    # Stan-style input schema
    # ------------------------------------------------------------------
    @classmethod
    def from_stan_data(cls, data: Mapping[str, Any]) -> "ObservationSet":
        """Build from a mapping with keys N, y, A, k, S, site."""
        missing = [key for key in ("N", "y", "A", "k", "S", "site") if key not in data]
        if missing:
            raise ValidationError(f"missing keys in data: {missing}.")
        obs = cls(data["y"], data["A"], data["k"], data["site"], n_sites=data["S"])
        if int(data["N"]) != obs.n_obs:
            raise ValidationError(
                f"N={data['N']} does not match the length of y ({obs.n_obs})."
            )
        return obs

    def to_stan_data(self) -> Dict[str, Any]:
        return {
            "N": self.n_obs,
            "y": self.y.tolist(),
            "A": self.A.tolist(),
            "k": self.k.tolist(),
            "S": self.n_sites,
            "site": self.site.tolist(),
        }
