# gpgam/modeldiagnosis/__init__.py
"""
Model diagnosis utilities for gpgam.

Defines
-------
This package groups helpers for:
- convergence diagnostics of MCMC draws (split R-hat, ESS)
- posterior summary tables
- plotting helpers

Public API
----------
The most common entry points are re-exported at package level.
Importing `gpgam.modeldiagnosis` does not import matplotlib. Plotting
functions are imported lazily via the `plotting` submodule.

Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
Copyright (c) 2022-2026, CentraleSupelec
License: GPLv3 (see LICENSE)
"""

from __future__ import annotations

from .convergence import diagnose, effective_sample_size, split_rhat
from .summary import SUMMARY_COLUMNS, flatten_draws, summary_table

__all__ = [
    "split_rhat",
    "effective_sample_size",
    "diagnose",
    "summary_table",
    "flatten_draws",
    "SUMMARY_COLUMNS",
]

# Lazy access to plotting functions to avoid importing matplotlib on import.
_PLOTTING_EXPORTS = {
    "plot_nuts_diagnostics",
    "plot_trace",
    "plot_smooth",
}


def __getattr__(name: str):
    if name in _PLOTTING_EXPORTS:
        from . import plotting as _plotting

        obj = getattr(_plotting, name)
        globals()[name] = obj  # cache for subsequent lookups
        return obj
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(list(__all__) + list(_PLOTTING_EXPORTS))
