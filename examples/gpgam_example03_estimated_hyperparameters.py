"""
Additive GP regression with priors on the GP hyperparameters: the
length-scales and output scales are sampled with the other parameters.

Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
Copyright (c) 2022-2026, CentraleSupelec
License: GPLv3 (see LICENSE)
"""

import numpy as np

import gpgam
from gpgam.mcmc import NUTSOptions


def main(num_samples=300, num_warmup=300, chains=2):
    rng = np.random.default_rng(3)
    k = np.tile(np.linspace(0.0, 4.0, 8), 3)
    site = np.repeat([1, 2, 3], 8)
    A = rng.uniform(-1.0, 1.0, size=k.shape[0])
    y = 1.0 - 0.5 * A + np.cos(1.5 * k) + 0.2 * (site - 2) * k + 0.1 * rng.normal(size=k.shape[0])
    data = gpgam.ObservationSet(y=y, A=A, k=k, site=site)

    hp = gpgam.HyperparameterConfig(
        rho_k=gpgam.InvGamma(5.0, 5.0),
        alpha_k=gpgam.HalfNormal(1.0),
        rho_ks=gpgam.InvGamma(5.0, 5.0),
        alpha_ks=gpgam.HalfNormal(0.5),
    )
    model = gpgam.AdditiveGPModel(
        data, hp, gpgam.ModelConfig(sigma_prior=gpgam.LogNormal(np.log(0.1), 1.0))
    )
    print(model)

    posterior = gpgam.sample(
        model,
        num_samples=num_samples,
        num_warmup=num_warmup,
        chains=chains,
        seed=2,
        options=NUTSOptions(max_depth=6, verbose=0),
    )
    print(posterior.summary(["sigma", "rho_k", "alpha_k", "rho_ks", "alpha_ks"]))
    print("posterior mean of f(k, site), N x S, NaN outside each site:")
    print(np.round(posterior.interaction_matrix(), 3))
    return posterior


if __name__ == "__main__":
    main()
