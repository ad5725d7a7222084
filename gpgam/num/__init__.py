# gpgam/num/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""Numerical backend dispatcher for gpgam."""

from gpgam.config import init_backend

from . import shared as _shared

_gpgam_backend_ = init_backend()

if _gpgam_backend_ == "numpy":
    from . import numpy_backend as _backend
elif _gpgam_backend_ == "torch":
    from . import torch_backend as _backend
else:
    raise RuntimeError(
        "Please set the GPGAM_BACKEND environment variable to 'numpy' or 'torch'."
    )

# Re-export backend API.
for _name in dir(_backend):
    if _name.startswith("__"):
        continue
    globals()[_name] = getattr(_backend, _name)

# Re-export backend-independent helpers from shared.py.
get_dtype = _shared.get_dtype
derivative_finite_diff = _shared.derivative_finite_diff
log_normal_density_cholesky = _shared.log_normal_density_cholesky
