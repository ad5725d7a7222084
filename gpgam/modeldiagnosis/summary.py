# gpgam/modeldiagnosis/summary.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Posterior summary tables.
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence

import numpy as np

from gpgam.misc.dataframe import DataFrame

from .convergence import effective_sample_size, split_rhat

SUMMARY_COLUMNS = ["mean", "sd", "q5", "q50", "q95", "r_hat", "ess"]


def flatten_draws(draws: Dict[str, np.ndarray], names: Optional[Sequence[str]] = None):
    """Flatten named draws (chains, draws, ...) into labeled scalar series.

    Returns (labels, array of shape (chains, draws, n_labels)). Vector
    quantities get 1-based labels such as ``f_k[3]``.
    """
    if names is None:
        names = list(draws)
    labels = []
    columns = []
    for name in names:
        x = np.asarray(draws[name], dtype=float)
        n_chains, n_draws = x.shape[:2]
        if x.ndim == 2:
            labels.append(name)
            columns.append(x[:, :, None])
        else:
            flat = x.reshape(n_chains, n_draws, -1)
            labels.extend(f"{name}[{i + 1}]" for i in range(flat.shape[2]))
            columns.append(flat)
    return labels, np.concatenate(columns, axis=2)


def summary_table(posterior, names: Optional[Sequence[str]] = None) -> DataFrame:
    """Mean, sd, 5% / 50% / 95% quantiles, split R-hat and ESS per coordinate.

    Parameters
    ----------
    posterior : gpgam.fit.Posterior
    names : sequence of str, optional
        Entries of ``posterior.draws`` to include. Defaults to all of them.
    """
    labels, x = flatten_draws(posterior.draws, names)
    pooled = x.reshape(-1, x.shape[2])
    data = np.column_stack(
        [
            np.mean(pooled, axis=0),
            np.std(pooled, axis=0, ddof=1) if pooled.shape[0] > 1 else np.zeros(pooled.shape[1]),
            np.quantile(pooled, 0.05, axis=0),
            np.quantile(pooled, 0.50, axis=0),
            np.quantile(pooled, 0.95, axis=0),
            split_rhat(x),
            effective_sample_size(x),
        ]
    )
    return DataFrame(data, SUMMARY_COLUMNS, labels)
