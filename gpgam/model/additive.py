# gpgam/model/additive.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Additive Gaussian-process regression model.

.. math::
    y_i \\sim \\mathcal{N}\\big(b_0 + A_i b_1 + f_k(k_i) + f_{site}[s_i](k_i),
    \\ \\sigma\\big)

with

- :math:`f_k \\sim \\mathcal{GP}(0, K_{\\rho_k, \\alpha_k})` evaluated at all
  N values of k,
- for each site s, :math:`f_{site}[s] \\sim \\mathcal{GP}(0, K_{\\rho_{ks},
  \\alpha_{ks}})` evaluated at the k values of site s only,

where K is the exponentiated-quadratic covariance. The interaction effect is
stored as S separate vectors, one per site, sized to that site's number of
observations. Each observation receives the value of its own site's vector,
which is the row-wise sum over site columns of an N x S matrix whose
entries outside a site's own rows are structurally absent.

The model is stateless: :meth:`AdditiveGPModel.log_density` evaluates the
unnormalized log posterior at a flat unconstrained vector q and is meant to
be handed to a sampler or an optimizer.
"""
from dataclasses import dataclass, field
import math
from typing import Dict, List, Optional

import numpy as np
from scipy.linalg import solve_triangular

import gpgam.num as gnp
from gpgam.config import get_logger
from gpgam.errors import CovarianceError, ValidationError
from gpgam.kernel.exponentiated_quadratic import (
    add_jitter,
    exponentiated_quadratic_covariance,
)
from gpgam.kernel.priors import Flat, is_prior
from .data import ObservationSet
from .hyperparameters import HYPERPARAMETER_NAMES, HyperparameterConfig
from .identifiability import check_penalty, soft_mean_zero_penalty
from .layout import Normalization, ParameterLayout

_logger = get_logger()

_LOG_2PI = math.log(2.0 * math.pi)

DEFAULT_IDENTIFIABILITY_PENALTY = 1e-4
PARAMETERIZATIONS = ("non_centered", "centered")


@dataclass
class ModelConfig:
    """Options of :class:`AdditiveGPModel`.

    Attributes
    ----------
    identifiability_penalty : float
        Strength lambda of the soft mean-zero penalty. 0 disables it;
        ``DEFAULT_IDENTIFIABILITY_PENALTY`` (1e-4) is a mild setting.
    jitter : float
        Absolute value added to covariance diagonals before Cholesky
        factorization.
    parameterization : str
        "non_centered" samples f = L z with z standard normal; "centered"
        samples f directly.
    b0_prior, b1_prior : prior
        Priors on the intercept and the slope (real support).
    sigma_prior : prior
        Prior on the noise standard deviation (positive support).
    """

    identifiability_penalty: float = 0.0
    jitter: float = 1e-8
    parameterization: str = "non_centered"
    b0_prior: object = field(default_factory=Flat)
    b1_prior: object = field(default_factory=Flat)
    sigma_prior: object = field(default_factory=lambda: Flat("positive"))

    def __post_init__(self):
        self.identifiability_penalty = check_penalty(self.identifiability_penalty)
        if not float(self.jitter) >= 0.0:
            raise ValidationError(f"jitter must be nonnegative, got {self.jitter!r}.")
        self.jitter = float(self.jitter)
        if self.parameterization not in PARAMETERIZATIONS:
            raise ValidationError(
                f"parameterization must be one of {PARAMETERIZATIONS}, "
                f"got {self.parameterization!r}."
            )
        for name in ("b0_prior", "b1_prior"):
            prior = getattr(self, name)
            if not is_prior(prior) or prior.support != "real":
                raise ValidationError(f"{name} must be a prior on the real line.")
        if not is_prior(self.sigma_prior) or self.sigma_prior.support != "positive":
            raise ValidationError("sigma_prior must be a prior on the positive half line.")


class AdditiveGPModel:
    """Bayesian additive GP regression model.

    Parameters
    ----------
    data : ObservationSet or mapping
        Observations. A mapping is read with
        :meth:`ObservationSet.from_stan_data`.
    hyperparameters : HyperparameterConfig or mapping
        Fixed values or priors for rho_k, alpha_k, rho_ks, alpha_ks.
    config : ModelConfig, optional

    Raises
    ------
    ValidationError
        Invalid data, hyperparameters or options.
    CovarianceError
        A covariance matrix built from fixed hyperparameters cannot be
        factorized. The error names the matrix and the site.

    Examples
    --------
    >>> import gpgam
    >>> data = gpgam.ObservationSet(y=[0.1, 0.4, -0.2, 0.3], A=[0, 0, 0, 0],
    ...                             k=[0, 1, 2, 3], site=[1, 1, 1, 1])
    >>> hp = gpgam.HyperparameterConfig(rho_k=1.0, alpha_k=1.0,
    ...                                 rho_ks=1.0, alpha_ks=1.0)
    >>> model = gpgam.AdditiveGPModel(data, hp)
    >>> lp = model.log_density(model.initial_point())
    """

    def __init__(self, data, hyperparameters, config: Optional[ModelConfig] = None):
        if not isinstance(data, ObservationSet):
            data = ObservationSet.from_stan_data(data)
        if not isinstance(hyperparameters, HyperparameterConfig):
            hyperparameters = HyperparameterConfig(**hyperparameters)
        self.data = data
        self.hyperparameters = hyperparameters
        self.config = config if config is not None else ModelConfig()

        self._y = gnp.asarray(data.y)
        self._A = gnp.asarray(data.A)
        self._k = gnp.asarray(data.k)
        self._site_k = [
            gnp.asarray(data.k[data.site_indices(s)])
            for s in range(1, data.n_sites + 1)
        ]
        self._site_sizes = data.site_sizes()
        self._offsets = np.concatenate([[0], np.cumsum(self._site_sizes)]).tolist()
        # position of each observation in the site-grouped vector
        self._inverse_order = gnp.asint(np.argsort(data.site_order()))

        self.layout = self._build_layout()
        _logger.debug(
            "AdditiveGPModel: N=%d, S=%d, dim=%d, estimated hyperparameters=%s",
            data.n_obs,
            data.n_sites,
            self.layout.dim,
            self.hyperparameters.estimated_names(),
        )
        # Cholesky factors of covariances built from fixed hyperparameters
        self._fixed_L_k = None
        self._fixed_L_sites = None
        self.check_covariances()

    def __repr__(self):
        return (
            f"<gpgam.AdditiveGPModel n_obs={self.data.n_obs} "
            f"n_sites={self.data.n_sites} dim={self.dim}>"
        )

    def __str__(self):
        lam = self.config.identifiability_penalty
        return (
            f"Additive GP model:\n"
            f"  Observations: {self.data.n_obs}, sites: {self.data.n_sites}\n"
            f"  Hyperparameters: {self.hyperparameters}\n"
            f"  Parameterization: {self.config.parameterization}\n"
            f"  Identifiability penalty: {lam if lam > 0 else 'disabled'}\n"
            f"  Unconstrained dimension: {self.dim}"
        )

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------
    @property
    def non_centered(self) -> bool:
        return self.config.parameterization == "non_centered"

    @property
    def dim(self) -> int:
        return self.layout.dim

    def _build_layout(self) -> ParameterLayout:
        n = self.data.n_obs
        suffix = "_std" if self.non_centered else ""
        layout = ParameterLayout()
        layout.add("b0", scalar=True)
        layout.add("b1", scalar=True)
        layout.add("f_k" + suffix, size=n)
        # per-site vectors, concatenated site by site
        layout.add("f_site" + suffix, size=n)
        layout.add("sigma", normalization=Normalization.LOG, scalar=True)
        for name in self.hyperparameters.estimated_names():
            layout.add(name, normalization=Normalization.LOG, scalar=True)
        return layout

    def split_sites(self, x) -> List:
        """Split a site-grouped vector of length N into S per-site vectors."""
        return [x[a:b] for a, b in zip(self._offsets[:-1], self._offsets[1:])]

    def scatter_sites(self, f_site):
        """Per-site vectors -> length-N vector in observation order."""
        return gnp.concatenate(list(f_site))[self._inverse_order]

    def interaction_matrix(self, f_site) -> np.ndarray:
        """N x S NumPy matrix with NaN outside each site's own rows."""
        out = np.full((self.data.n_obs, self.data.n_sites), np.nan)
        for s, values in enumerate(f_site):
            out[self.data.site_indices(s + 1), s] = gnp.to_np(values)
        return out

    # ------------------------------------------------------------------
    # Covariances
    # ------------------------------------------------------------------
    def shared_covariance(self, rho, alpha):
        """N x N covariance of f_k over all k values."""
        return exponentiated_quadratic_covariance(self._k, None, rho, alpha)

    def site_covariances(self, rho, alpha) -> List:
        """One covariance matrix per site, over that site's k values."""
        return [
            exponentiated_quadratic_covariance(k_s, None, rho, alpha)
            for k_s in self._site_k
        ]

    def _cholesky(self, K, matrix, site=None):
        try:
            L = gnp.cholesky(add_jitter(K, self.config.jitter))
        except Exception as e:
            if gnp.is_linalg_exception(e):
                raise CovarianceError(
                    f"Cholesky factorization failed (jitter={self.config.jitter:g})",
                    matrix=matrix,
                    site=site,
                ) from e
            raise
        if not bool(gnp.all(gnp.isfinite(L))):
            raise CovarianceError(
                "Cholesky factor has non-finite entries", matrix=matrix, site=site
            )
        return L

    def _shared_factor(self, rho, alpha):
        return self._cholesky(self.shared_covariance(rho, alpha), "f_k")

    def _site_factors(self, rho, alpha) -> List:
        return [
            self._cholesky(K, "f_site", site=s + 1)
            for s, K in enumerate(self.site_covariances(rho, alpha))
        ]

    def _cholesky_factors(self, hp):
        """Cholesky factors of the shared and per-site covariances.

        Factors of covariances whose hyperparameters are both fixed are
        computed once, at construction, and reused.
        """
        if self._fixed_L_k is not None:
            L_k = self._fixed_L_k
        else:
            L_k = self._shared_factor(hp["rho_k"], hp["alpha_k"])
        if self._fixed_L_sites is not None:
            L_sites = self._fixed_L_sites
        else:
            L_sites = self._site_factors(hp["rho_ks"], hp["alpha_ks"])
        return L_k, L_sites

    def check_covariances(
        self, rho_k=None, alpha_k=None, rho_ks=None, alpha_ks=None
    ) -> None:
        """Factorize the covariance matrices, raising CovarianceError on failure.

        Missing arguments default to the fixed hyperparameter values. A pair
        (shared or per-site) that is not fully known is skipped. Factors
        obtained from fixed values only are kept for later density
        evaluations.
        """
        given = {"rho_k": rho_k, "alpha_k": alpha_k, "rho_ks": rho_ks, "alpha_ks": alpha_ks}
        fixed = self.hyperparameters.fixed_values()
        hp = {n: given[n] if given[n] is not None else fixed.get(n) for n in given}
        if hp["rho_k"] is not None and hp["alpha_k"] is not None:
            L_k = self._shared_factor(hp["rho_k"], hp["alpha_k"])
            if rho_k is None and alpha_k is None:
                self._fixed_L_k = L_k
        if hp["rho_ks"] is not None and hp["alpha_ks"] is not None:
            L_sites = self._site_factors(hp["rho_ks"], hp["alpha_ks"])
            if rho_ks is None and alpha_ks is None:
                self._fixed_L_sites = L_sites

    # ------------------------------------------------------------------
    # Unconstrained vector <-> natural parameters
    # ------------------------------------------------------------------
    def _natural(self, q):
        values = self.layout.unpack(q)
        hp = {n: self.hyperparameters.resolve(n, values) for n in HYPERPARAMETER_NAMES}
        L_k, L_sites = self._cholesky_factors(hp)
        if self.non_centered:
            f_k = gnp.matmul(L_k, values["f_k_std"])
            f_site = [
                gnp.matmul(L, z)
                for L, z in zip(L_sites, self.split_sites(values["f_site_std"]))
            ]
        else:
            f_k = values["f_k"]
            f_site = self.split_sites(values["f_site"])
        params = {
            "b0": values["b0"],
            "b1": values["b1"],
            "f_k": f_k,
            "f_site": f_site,
            "sigma": values["sigma"],
        }
        params.update(hp)
        return params, values, L_k, L_sites

    def unpack(self, q) -> Dict[str, object]:
        """Natural parameters at q.

        Returns a dict with b0, b1, sigma, the four hyperparameters (fixed
        or sampled), f_k (length N, observation order) and f_site (list of
        S per-site vectors).
        """
        params, _, _, _ = self._natural(gnp.asarray(q))
        return params

    def pack(self, params: Dict[str, object]) -> np.ndarray:
        """Unconstrained vector of natural parameters (inverse of unpack)."""
        values = {
            "b0": params["b0"],
            "b1": params["b1"],
            "sigma": params["sigma"],
        }
        for name in self.hyperparameters.estimated_names():
            values[name] = params[name]
        f_site = np.concatenate([gnp.to_np(v) for v in params["f_site"]])
        f_k = gnp.to_np(params["f_k"])
        if self.non_centered:
            hp = {
                n: self.hyperparameters.resolve(n, params) for n in HYPERPARAMETER_NAMES
            }
            L_k, L_sites = self._cholesky_factors(hp)
            values["f_k_std"] = _solve_lower(L_k, f_k)
            values["f_site_std"] = np.concatenate(
                [
                    _solve_lower(L, v)
                    for L, v in zip(L_sites, self.split_sites(f_site))
                ]
            )
        else:
            values["f_k"] = f_k
            values["f_site"] = f_site
        return self.layout.pack(values)

    def initial_point(self) -> np.ndarray:
        """A starting point: b0 = mean(y), b1 = 0, zero latent effects,
        sigma = std(y), and typical prior values of estimated hyperparameters."""
        y = self.data.y
        sd = float(np.std(y))
        values = {
            "b0": float(np.mean(y)),
            "b1": 0.0,
            "sigma": sd if sd > 0.0 else 1.0,
        }
        n = self.data.n_obs
        suffix = "_std" if self.non_centered else ""
        values["f_k" + suffix] = np.zeros(n)
        values["f_site" + suffix] = np.zeros(n)
        for name in self.hyperparameters.estimated_names():
            values[name] = self.hyperparameters[name].typical_value()
        return self.layout.pack(values)

    # ------------------------------------------------------------------
    # Density
    # ------------------------------------------------------------------
    def linear_predictor(self, params):
        """b0 + A * b1 + f_k + (each observation's own site effect)."""
        return (
            params["b0"]
            + self._A * params["b1"]
            + params["f_k"]
            + self.scatter_sites(params["f_site"])
        )

    def _log_prior_scalars(self, params):
        cfg = self.config
        lp = (
            cfg.b0_prior.logpdf(params["b0"])
            + cfg.b1_prior.logpdf(params["b1"])
            + cfg.sigma_prior.logpdf(params["sigma"])
        )
        for name in self.hyperparameters.estimated_names():
            lp = lp + self.hyperparameters[name].logpdf(params[name])
        return lp

    def log_prior(self, params):
        """Log prior density at natural parameters.

        GP priors ``f_k ~ MVN(0, K_k)`` and ``f_site[s] ~ MVN(0, K_s)``, plus
        the priors on coefficients, noise and estimated hyperparameters.
        """
        L_k, L_sites = self._cholesky_factors(params)
        lp = self._log_prior_scalars(params)
        lp = lp + gnp.log_normal_density_cholesky(params["f_k"], L_k)
        for L, f in zip(L_sites, params["f_site"]):
            lp = lp + gnp.log_normal_density_cholesky(f, L)
        return lp

    def log_likelihood(self, params):
        """Sum of independent Normal(mu_i, sigma) log-densities."""
        sigma = params["sigma"]
        r = (self._y - self.linear_predictor(params)) / sigma
        n = self.data.n_obs
        return -0.5 * gnp.sum(r * r) - n * gnp.log(sigma) - 0.5 * n * _LOG_2PI

    def identifiability_term(self, params):
        """Soft mean-zero penalty ``-lambda * sum(b0 + A b1 + f_k)**2``."""
        total = gnp.sum(params["b0"] + self._A * params["b1"] + params["f_k"])
        return soft_mean_zero_penalty(total, self.config.identifiability_penalty)

    def log_density(self, q):
        """Unnormalized log posterior at the unconstrained vector q.

        Includes the log-Jacobian of the log transforms. In the non-centered
        parameterization, the GP priors are expressed on the standardized
        latent vectors.
        """
        q = gnp.asarray(q)
        params, values, L_k, L_sites = self._natural(q)
        lp = self._log_prior_scalars(params)
        if self.non_centered:
            lp = lp + _log_std_normal(values["f_k_std"])
            lp = lp + _log_std_normal(values["f_site_std"])
        else:
            lp = lp + gnp.log_normal_density_cholesky(params["f_k"], L_k)
            for L, f in zip(L_sites, params["f_site"]):
                lp = lp + gnp.log_normal_density_cholesky(f, L)
        lp = lp + self.log_likelihood(params)
        if self.config.identifiability_penalty > 0.0:
            lp = lp + self.identifiability_term(params)
        return lp + self.layout.log_abs_det_jacobian(q)

    def negative_log_density(self, q):
        return -self.log_density(q)


def _log_std_normal(z):
    n = z.shape[0]
    return -0.5 * gnp.sum(z * z) - 0.5 * n * _LOG_2PI


def _solve_lower(L, b):
    return solve_triangular(gnp.to_np(L), np.asarray(b, dtype=float), lower=True)
