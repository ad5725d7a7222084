# gpgam/modeldiagnosis/plotting.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Plotting helpers for NUTS runs and fitted smooth effects.

Defines
-------
plot_nuts_diagnostics
    Step size, acceptance statistic and divergence traces.
plot_trace
    Per-chain traces of a scalar parameter.
plot_smooth
    Posterior mean and 90% band of f_k, or of f_k + f_site for one site.

Notes
-----
Matplotlib is imported inside this module. Other diagnosis submodules do
not import matplotlib.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

import numpy as np

import matplotlib.pyplot as plt


def moving_average(y, window: int):
    if window <= 1:
        return y
    return np.convolve(y, np.ones(window) / window, mode="valid")


def _chain_mean(x) -> np.ndarray:
    x = np.asarray(x, dtype=float)
    return np.mean(x, axis=1) if x.ndim > 1 else x


def plot_nuts_diagnostics(
    info: Dict[str, Any],
    window: int = 50,
    show: bool = True,
    save_dir: Optional[str] = None,
):
    """Plot warmup and sampling traces of a NUTS run.

    Parameters
    ----------
    info : dict
        ``sampler_info`` returned by nuts_sample.
    window : int
        Moving-average window overlaid on acceptance traces.
    show : bool
        Call plt.show() at the end.
    save_dir : str, optional
        If given, each figure is saved there as a PNG file.

    Returns
    -------
    list of matplotlib.figure.Figure
    """
    panels = [
        ("warmup_step_size", "warmup iteration", "step size", False),
        ("warmup_accept_stat", "warmup iteration", "mean accept stat", True),
        ("warmup_divergent", "warmup iteration", "divergence rate", False),
        ("accept_stat", "sample iteration", "mean accept stat", True),
        ("divergent", "sample iteration", "divergence rate", False),
    ]
    if save_dir is not None:
        os.makedirs(save_dir, exist_ok=True)

    figs = []
    for key, xlabel, ylabel, smooth in panels:
        y = _chain_mean(info[key])
        fig = plt.figure()
        plt.plot(y)
        if smooth and window > 1 and len(y) >= window:
            plt.plot(np.arange(window - 1, len(y)), moving_average(y, window))
        plt.xlabel(xlabel)
        plt.ylabel(ylabel)
        figs.append(fig)
        if save_dir is not None:
            fig.savefig(os.path.join(save_dir, f"{key}.png"), dpi=150)

    if show:
        plt.show()
    return figs


def plot_trace(posterior, name: str, show: bool = True):
    """Trace of a scalar draw, one line per chain."""
    x = np.asarray(posterior.draws[name])
    if x.ndim != 2:
        raise ValueError(f"{name} is not a scalar parameter.")
    fig = plt.figure()
    for c in range(x.shape[0]):
        plt.plot(x[c], label=f"chain {c + 1}", linewidth=0.8)
    plt.xlabel("draw")
    plt.ylabel(name)
    plt.legend()
    if show:
        plt.show()
    return fig


def plot_smooth(posterior, site: Optional[int] = None, show: bool = True):
    """Posterior of the smooth effect against k.

    With ``site=None``, plots f_k over all observations. With a site
    label, plots f_k + f_site over that site's observations.
    """
    data = posterior.model.data
    f = np.asarray(posterior.draws["f_k"])
    idx = np.arange(data.n_obs)
    title = "f(k)"
    if site is not None:
        idx = data.site_indices(site)
        f = f + np.asarray(posterior.draws["f_site"])
        title = f"f(k) + f(k, site {site})"

    k = data.k[idx]
    order = np.argsort(k)
    pooled = f.reshape(-1, f.shape[-1])[:, idx][:, order]
    lo, mid, hi = np.quantile(pooled, [0.05, 0.5, 0.95], axis=0)

    fig = plt.figure()
    plt.fill_between(k[order], lo, hi, alpha=0.3, label="90% interval")
    plt.plot(k[order], mid, label="posterior median")
    plt.xlabel("k")
    plt.ylabel(title)
    plt.title(title)
    plt.legend()
    if show:
        plt.show()
    return fig
