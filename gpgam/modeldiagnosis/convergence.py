# gpgam/modeldiagnosis/convergence.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Convergence diagnostics for MCMC draws.

Defines
-------
split_rhat
    Gelman-Rubin potential scale reduction factor on split chains.
effective_sample_size
    Effective sample size, delegated to ArviZ.
diagnose
    R-hat, ESS, divergences and tree-depth saturation of a NUTS run, with
    human-readable warnings.

All functions take draws shaped (chains, draws) or (chains, draws, dim).
Non-convergence is reported, never raised.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import arviz as az
import numpy as np


def _as_3d(x) -> np.ndarray:
    x = np.asarray(x, dtype=float)
    if x.ndim == 2:
        return x[:, :, None]
    if x.ndim != 3:
        raise ValueError("draws must have shape (chains, draws) or (chains, draws, dim).")
    return x


def _squeeze(out: np.ndarray, ndim: int):
    return out[0] if ndim == 2 else out


def split_rhat(x) -> np.ndarray:
    """Split-chain R-hat.

    Each chain is cut in two halves (the middle draw is dropped for odd
    lengths), then the Gelman-Rubin statistic

    .. math::
        \\hat R = \\sqrt{\\frac{\\frac{n-1}{n} W + \\frac{1}{n} B}{W}}

    is computed over the 2 * chains half-chains. Constant draws give 1.0
    when all half-chains agree and +inf otherwise. Fewer than 4 draws give
    NaN.
    """
    ndim = np.ndim(x)
    x = _as_3d(x)
    n_chains, n_draws, dim = x.shape
    half = n_draws // 2
    if half < 2:
        return _squeeze(np.full(dim, np.nan), ndim)
    block = np.concatenate([x[:, :half, :], x[:, n_draws - half :, :]], axis=0)

    chain_means = np.mean(block, axis=1)
    chain_vars = np.var(block, axis=1, ddof=1)
    W = np.mean(chain_vars, axis=0)
    B = half * np.var(chain_means, axis=0, ddof=1)
    var_post = ((half - 1) / half) * W + B / half

    rhat = np.empty(dim)
    for j in range(dim):
        if W[j] > 0.0:
            rhat[j] = np.sqrt(var_post[j] / W[j])
        else:
            rhat[j] = 1.0 if B[j] == 0.0 else np.inf
    return _squeeze(rhat, ndim)


def effective_sample_size(x, method: str = "bulk") -> np.ndarray:
    """Multi-chain effective sample size, computed by :func:`arviz.ess`.

    ``method`` is passed to arviz. The default "bulk" is the rank-normalized
    estimate reported as ``ess_bulk`` by ``arviz.summary``; "mean" gives the
    classical estimate on the raw draws. Fewer than 4 draws per chain or
    constant draws give NaN.
    """
    ndim = np.ndim(x)
    x = _as_3d(x)
    _, n_draws, dim = x.shape
    ess = np.full(dim, np.nan)
    if n_draws < 4:
        return _squeeze(ess, ndim)
    varying = np.ptp(x.reshape(-1, dim), axis=0) > 0.0
    if np.any(varying):
        dataset = az.convert_to_dataset({"q": x[:, :, varying]})
        ess[varying] = np.asarray(az.ess(dataset, method=method)["q"].values, dtype=float)
    return _squeeze(ess, ndim)


def diagnose(
    raw,
    sampler_info: Optional[Dict[str, Any]] = None,
    names: Optional[Sequence[str]] = None,
    rhat_threshold: float = 1.01,
    min_ess: float = 100.0,
    max_depth: Optional[int] = None,
) -> Dict[str, Any]:
    """Diagnose a run.

    Parameters
    ----------
    raw : array_like, shape (chains, draws, dim)
        Unconstrained draws.
    sampler_info : dict, optional
        NUTS traces (``divergent``, ``tree_depth``) shaped (draws, chains).
    names : sequence of str, optional
        One label per coordinate.
    rhat_threshold : float
        R-hat values above it trigger a warning.
    min_ess : float
        ESS values below it trigger a warning.
    max_depth : int, optional
        Maximum tree depth, to count saturated transitions.

    Returns
    -------
    dict
        ``r_hat``, ``ess`` (arrays of shape (dim,)), ``n_divergent``,
        ``n_max_depth``, ``ok`` (bool) and ``warnings`` (list of str).
    """
    raw = _as_3d(raw)
    dim = raw.shape[2]
    if names is None:
        names = [f"q[{i + 1}]" for i in range(dim)]
    r_hat = split_rhat(raw)
    ess = effective_sample_size(raw)

    warnings: List[str] = []
    bad = [names[i] for i in range(dim) if np.isfinite(r_hat[i]) and r_hat[i] > rhat_threshold]
    bad += [names[i] for i in range(dim) if np.isinf(r_hat[i])]
    if bad:
        worst = float(np.nanmax(r_hat))
        warnings.append(
            f"{len(bad)} of {dim} coordinates have R-hat > {rhat_threshold} "
            f"(max {worst:.3g}): {', '.join(bad[:5])}{' ...' if len(bad) > 5 else ''}"
        )
    low = [names[i] for i in range(dim) if np.isfinite(ess[i]) and ess[i] < min_ess]
    if low:
        warnings.append(
            f"{len(low)} of {dim} coordinates have an effective sample size "
            f"below {min_ess:g} (min {float(np.nanmin(ess)):.3g})"
        )

    n_divergent = 0
    n_max_depth = 0
    if sampler_info is not None:
        if "divergent" in sampler_info:
            n_divergent = int(np.sum(np.asarray(sampler_info["divergent"])))
            if n_divergent > 0:
                total = int(np.asarray(sampler_info["divergent"]).size)
                warnings.append(
                    f"{n_divergent} of {total} transitions after warmup were divergent"
                )
        if max_depth is not None and "tree_depth" in sampler_info:
            n_max_depth = int(np.sum(np.asarray(sampler_info["tree_depth"]) >= max_depth))
            if n_max_depth > 0:
                warnings.append(
                    f"{n_max_depth} transitions hit the maximum tree depth {max_depth}"
                )

    return {
        "r_hat": r_hat,
        "ess": ess,
        "n_divergent": n_divergent,
        "n_max_depth": n_max_depth,
        "ok": not warnings,
        "warnings": warnings,
    }
