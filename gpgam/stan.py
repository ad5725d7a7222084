# gpgam/stan.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Stan program of the additive GP model.

The same model can be handed to a Stan back end instead of the built-in
sampler. Hyperparameters are passed as data, the interaction effect is
stored as one vector of length N holding the S per-site vectors
back to back (rows grouped by site, see ``site_order``).

Examples
--------
>>> import gpgam
>>> code = gpgam.stan.stan_program(identifiability_penalty=1e-4)
>>> data = gpgam.stan.stan_data(obs, gpgam.HyperparameterConfig(1.0, 1.0, 1.0, 1.0))
"""
from typing import Any, Dict, Optional

from gpgam.errors import ValidationError
from gpgam.model.data import ObservationSet
from gpgam.model.hyperparameters import HYPERPARAMETER_NAMES, HyperparameterConfig
from gpgam.model.identifiability import check_penalty

_DATA_BLOCK = """\
data {
  int<lower=1> N;
  vector[N] y;
  vector[N] A;
  array[N] real k;
  int<lower=1> S;
  array[N] int<lower=1, upper=S> site;
  array[S] int<lower=1> site_size;
  array[N] int<lower=1, upper=N> site_order;
  real<lower=0> rho_k;
  real<lower=0> alpha_k;
  real<lower=0> rho_ks;
  real<lower=0> alpha_ks;
  real<lower=0> jitter;
}
"""

_PARAMETERS_BLOCK = """\
parameters {
  real b0;
  real b1;
  vector[N] f_k;
  vector[N] f_site;
  real<lower=0> sigma;
}
"""

_MODEL_BLOCK = """\
model {
  vector[N] f_site_obs;
  int pos = 1;
  f_k ~ multi_normal_cholesky(rep_vector(0, N), L_k);
  for (s in 1:S) {
    int n_s = site_size[s];
    array[n_s] int idx = segment(site_order, pos, n_s);
    matrix[n_s, n_s] L_s = cholesky_decompose(
      add_diag(gp_exp_quad_cov(k[idx], alpha_ks, rho_ks), jitter));
    segment(f_site, pos, n_s) ~ multi_normal_cholesky(rep_vector(0, n_s), L_s);
    f_site_obs[idx] = segment(f_site, pos, n_s);
    pos += n_s;
  }
  y ~ normal(b0 + A * b1 + f_k + f_site_obs, sigma);
"""

_PENALTY_LINE = "  target += -lambda * square(sum(b0 + A * b1 + f_k));\n"


def stan_program(identifiability_penalty: Optional[float] = None) -> str:
    """Stan code of the model with fixed hyperparameters.

    Parameters
    ----------
    identifiability_penalty : float, optional
        If given, the soft mean-zero penalty with this strength is added to
        the target. None gives the plain model.
    """
    transformed = [
        "transformed data {",
        "  matrix[N, N] L_k = cholesky_decompose(",
        "    add_diag(gp_exp_quad_cov(k, alpha_k, rho_k), jitter));",
    ]
    model = _MODEL_BLOCK
    if identifiability_penalty is not None:
        lam = check_penalty(identifiability_penalty)
        transformed.append(f"  real lambda = {lam!r};")
        model += _PENALTY_LINE
    transformed.append("}\n")
    return _DATA_BLOCK + "\n".join(transformed) + _PARAMETERS_BLOCK + model + "}\n"


def stan_data(
    data: ObservationSet, hyperparameters: HyperparameterConfig, jitter: float = 1e-8
) -> Dict[str, Any]:
    """Data mapping matching :func:`stan_program`.

    Raises
    ------
    ValidationError
        If a hyperparameter is not fixed.
    """
    if not hyperparameters.all_fixed():
        raise ValidationError(
            "the Stan program takes hyperparameters as data; estimated "
            f"hyperparameters are not supported: {hyperparameters.estimated_names()}"
        )
    out = data.to_stan_data()
    out["site_size"] = data.site_sizes()
    out["site_order"] = (data.site_order() + 1).tolist()
    fixed = hyperparameters.fixed_values()
    for name in HYPERPARAMETER_NAMES:
        out[name] = fixed[name]
    out["jitter"] = float(jitter)
    return out
