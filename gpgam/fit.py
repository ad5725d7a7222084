# gpgam/fit.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Inference for AdditiveGPModel.

sample
    Posterior draws with NUTS. A single blocking call; chains run one after
    the other. Non-convergence (R-hat, ESS, divergences) is logged as a
    warning and recorded in ``Posterior.warnings``; draws are always
    returned.
find_map
    Posterior mode on the unconstrained scale with scipy.optimize.

Convention
----------
The sampler and the optimizer see ``log_prob(q) = model.log_density(q)``.
Numerical failures while evaluating it (a covariance matrix that cannot be
factorized at a proposed point, an out-of-range hyperparameter) give
``log_prob = -inf``, so that the proposal is rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional

import numpy as np
from scipy.optimize import minimize

import gpgam.num as gnp
from gpgam.config import get_logger
from gpgam.errors import GPGAMError, ValidationError
from gpgam.kernel.priors import Flat, HalfNormal
from gpgam.mcmc.nuts import NUTSOptions, nuts_sample
from gpgam.model.additive import AdditiveGPModel
from gpgam.modeldiagnosis.convergence import diagnose
from gpgam.modeldiagnosis.summary import summary_table

_logger = get_logger()

_INIT_SCALE = 0.1
_INIT_ATTEMPTS = 100


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------


def _make_log_prob(model: AdditiveGPModel) -> Callable:
    def log_prob(q):
        try:
            return model.log_density(q)
        except GPGAMError:
            return gnp.safe_neginf()
        except Exception as e:
            if gnp.is_linalg_exception(e):
                return gnp.safe_neginf()
            raise

    return log_prob


def _is_finite_at(log_prob, q) -> bool:
    v = float(gnp.to_scalar(gnp.detach(log_prob(gnp.asarray(q)))))
    return np.isfinite(v)


def _initial_states(model: AdditiveGPModel, log_prob, chains: int, init) -> np.ndarray:
    """Starting points of shape (chains, dim)."""
    dim = model.dim
    if init is None:
        q0 = model.initial_point()
        states = np.empty((chains, dim))
        for c in range(chains):
            for _ in range(_INIT_ATTEMPTS):
                q = q0 + _INIT_SCALE * gnp.to_np(gnp.randn(dim))
                if _is_finite_at(log_prob, q):
                    break
            else:
                raise GPGAMError(
                    f"No starting point with a finite log-density after "
                    f"{_INIT_ATTEMPTS} attempts."
                )
            states[c] = q
        return states

    if isinstance(init, dict):
        init = model.pack(init)
    states = np.asarray(gnp.to_np(init), dtype=float)
    if states.ndim == 1:
        states = np.tile(states, (chains, 1))
    if states.shape != (chains, dim):
        raise ValidationError(f"init must have shape ({dim},) or ({chains}, {dim}).")
    for c in range(chains):
        if not _is_finite_at(log_prob, states[c]):
            raise ValidationError(f"log-density is not finite at the initial state of chain {c + 1}.")
    return states


def natural_parameters(model: AdditiveGPModel, q) -> Dict[str, Any]:
    """NumPy view of model.unpack(q).

    Scalars become floats; f_k and f_site are length-N vectors in
    observation order (f_site holds each observation's own site effect).
    """
    params = model.unpack(q)
    out = {}
    for name in ("b0", "b1", "sigma", "rho_k", "alpha_k", "rho_ks", "alpha_ks"):
        out[name] = float(gnp.to_scalar(gnp.detach(gnp.asarray(params[name]))))
    out["f_k"] = gnp.to_np(gnp.detach(params["f_k"]))
    out["f_site"] = gnp.to_np(gnp.detach(model.scatter_sites(params["f_site"])))
    return out


# ---------------------------------------------------------------------
# Posterior
# ---------------------------------------------------------------------


class Posterior:
    """Posterior draws of an additive GP model.

    Attributes
    ----------
    model : AdditiveGPModel
    raw : ndarray, shape (chains, draws, dim)
        Unconstrained draws.
    draws : dict
        Natural-scale draws shaped (chains, draws) for b0, b1, sigma and
        estimated hyperparameters, (chains, draws, N) for f_k and f_site.
    sampler_info : dict
        NUTS traces.
    diagnostics : dict
        Output of :func:`gpgam.modeldiagnosis.diagnose`.
    warnings : list of str
    """

    def __init__(self, model, raw, sampler_info=None, diagnostics=None):
        self.model = model
        self.raw = np.asarray(raw, dtype=float)
        self.sampler_info = sampler_info if sampler_info is not None else {}
        self.diagnostics = diagnostics if diagnostics is not None else {}
        self.warnings: List[str] = list(self.diagnostics.get("warnings", []))
        self.draws = self._natural_draws()

    def __repr__(self):
        return (
            f"<gpgam.Posterior chains={self.num_chains} draws={self.num_draws} "
            f"warnings={len(self.warnings)}>"
        )

    @property
    def num_chains(self) -> int:
        return self.raw.shape[0]

    @property
    def num_draws(self) -> int:
        return self.raw.shape[1]

    def _natural_draws(self) -> Dict[str, np.ndarray]:
        n_chains, n_draws, _ = self.raw.shape
        blocks = self.model.layout.unpack_draws(self.raw)
        names = ["b0", "b1", "sigma"] + self.model.hyperparameters.estimated_names()
        draws = {name: blocks[name] for name in names}
        # latent effects need the Cholesky factors, draw by draw
        n = self.model.data.n_obs
        draws["f_k"] = np.empty((n_chains, n_draws, n))
        draws["f_site"] = np.empty((n_chains, n_draws, n))
        for c in range(n_chains):
            for t in range(n_draws):
                params = self.model.unpack(self.raw[c, t])
                draws["f_k"][c, t] = gnp.to_np(gnp.detach(params["f_k"]))
                draws["f_site"][c, t] = gnp.to_np(
                    gnp.detach(self.model.scatter_sites(params["f_site"]))
                )
        return draws

    def _pooled(self, name) -> np.ndarray:
        x = self.draws[name]
        return x.reshape((-1,) + x.shape[2:])

    def mean(self, name: str):
        return np.mean(self._pooled(name), axis=0)

    def quantile(self, name: str, q):
        return np.quantile(self._pooled(name), q, axis=0)

    def site_effect(self, site: int) -> np.ndarray:
        """Draws of f_site for one site, shaped (chains, draws, n_s)."""
        return self.draws["f_site"][:, :, self.model.data.site_indices(site)]

    def interaction_matrix(self) -> np.ndarray:
        """Posterior mean of f_site as an N x S matrix, NaN off-site."""
        m = self.mean("f_site")
        per_site = [m[self.model.data.site_indices(s)] for s in range(1, self.model.data.n_sites + 1)]
        return self.model.interaction_matrix(per_site)

    def summary(self, names=None):
        return summary_table(self, names)


@dataclass
class PointEstimate:
    """Result of :func:`find_map`."""

    q: np.ndarray
    params: Dict[str, Any]
    log_density: float
    success: bool
    message: str
    n_iter: int


# ---------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------


def sample(
    model: AdditiveGPModel,
    num_samples: int = 1000,
    num_warmup: Optional[int] = None,
    chains: int = 4,
    seed: Optional[int] = None,
    init=None,
    options: Optional[NUTSOptions] = None,
    rhat_threshold: float = 1.01,
    min_ess: float = 100.0,
) -> Posterior:
    """Draw from the posterior of ``model`` with NUTS.

    Parameters
    ----------
    model : AdditiveGPModel
    num_samples : int
        Draws kept per chain.
    num_warmup : int, optional
        Warmup iterations per chain. Defaults to ``options.num_warmup``
        (1000 for the default options).
    chains : int
        Number of chains, run sequentially.
    seed : int, optional
        Seeds the gpgam.num generator before drawing initial states.
    init : array_like or dict, optional
        Unconstrained starting point(s), shape (dim,) or (chains, dim), or a
        dict of natural parameters as returned by ``model.unpack``. Defaults
        to ``model.initial_point()`` plus small Gaussian perturbations.
    options : NUTSOptions, optional
        Sampler settings. num_warmup and seed, when given to this
        function, take precedence.
    rhat_threshold, min_ess : float
        Thresholds for convergence warnings.

    Returns
    -------
    Posterior
    """
    if chains < 1:
        raise ValidationError("chains must be at least 1.")
    if num_samples < 1:
        raise ValidationError("num_samples must be at least 1.")
    if num_warmup is not None and num_warmup < 0:
        raise ValidationError("num_warmup must be nonnegative.")
    if seed is not None:
        gnp.set_seed(seed)
    opts = options if options is not None else NUTSOptions(verbose=0)
    if num_warmup is not None:
        opts = replace(opts, num_warmup=num_warmup)
    if seed is not None:
        opts = replace(opts, seed=seed)

    log_prob = _make_log_prob(model)
    q0 = _initial_states(model, log_prob, chains, init)

    _logger.info(
        "Sampling: %d chains, %d warmup + %d draws, dim=%d", chains, opts.num_warmup, num_samples, model.dim
    )
    samples, info = nuts_sample(
        log_prob=log_prob,
        q_init=gnp.asarray(q0),
        num_samples=num_samples,
        options=opts,
    )
    raw = np.swapaxes(samples, 0, 1)  # (chains, num_samples, dim)

    diagnostics = diagnose(
        raw,
        info,
        names=model.layout.flat_names(),
        rhat_threshold=rhat_threshold,
        min_ess=min_ess,
        max_depth=opts.max_depth,
    )
    for msg in diagnostics["warnings"]:
        _logger.warning(msg)

    return Posterior(model, raw, sampler_info=info, diagnostics=diagnostics)


def find_map(
    model: AdditiveGPModel,
    init=None,
    method: str = "L-BFGS-B",
    options: Optional[dict] = None,
) -> PointEstimate:
    """Maximize ``model.log_density`` over the unconstrained vector.

    The mode is taken on the unconstrained scale, Jacobian included. With a
    flat or half-normal prior on sigma, the density may grow without bound
    as sigma goes to zero and the latent effects interpolate the data; a
    LogNormal or InvGamma prior on sigma keeps the mode well defined.
    """
    if isinstance(model.config.sigma_prior, (Flat, HalfNormal)):
        _logger.warning(
            "find_map: the sigma prior does not vanish at zero; the posterior "
            "mode may not exist."
        )
    log_prob = _make_log_prob(model)
    q0 = _initial_states(model, log_prob, 1, init)[0]

    def fun(q):
        v, g = gnp.value_and_grad(lambda x: -log_prob(x), gnp.asarray(q))
        v = float(gnp.to_scalar(v))
        if not np.isfinite(v):
            return np.inf, np.zeros_like(q)
        return v, np.asarray(gnp.to_np(g), dtype=float)

    res = minimize(fun, q0, jac=True, method=method, options=options)
    if not res.success:
        _logger.warning("find_map: optimizer did not converge: %s", res.message)
    return PointEstimate(
        q=np.asarray(res.x),
        params=natural_parameters(model, res.x),
        log_density=float(-res.fun),
        success=bool(res.success),
        message=str(res.message),
        n_iter=int(getattr(res, "nit", 0)),
    )
