# gpgam/mcmc/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Markov chain Monte Carlo samplers for gpgam.

Public API
----------
nuts_sample, nuts_transition
    NUTS transition kernel and sampling driver.
NUTSOptions
    Configuration for NUTS warmup and adaptation policies.
make_warmup_windows
    Mass adaptation windows used during warmup.
"""
from __future__ import annotations

import importlib

__all__ = [
    "nuts_sample",
    "nuts_transition",
    "NUTSOptions",
    "make_warmup_windows",
]

_EXPORT_TO_MODULE = {
    "nuts_sample": "nuts",
    "nuts_transition": "nuts",
    "NUTSOptions": "nuts",
    "make_warmup_windows": "nuts",
}


def __getattr__(name: str):
    module_name = _EXPORT_TO_MODULE.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = importlib.import_module(f"{__name__}.{module_name}")
    obj = getattr(module, name)
    globals()[name] = obj
    return obj


def __dir__():
    return sorted(set(globals().keys()) | set(__all__))
