"""
Additive GP regression with fixed hyperparameters, sampled with NUTS.

Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
Copyright (c) 2022-2026, CentraleSupelec
License: GPLv3 (see LICENSE)
"""

import numpy as np

import gpgam
from gpgam.mcmc import NUTSOptions


def generate_data(n_per_site=10, n_sites=2, seed=0):
    rng = np.random.default_rng(seed)
    k = np.tile(np.linspace(0.0, 5.0, n_per_site), n_sites)
    site = np.repeat(np.arange(1, n_sites + 1), n_per_site)
    A = rng.normal(size=k.shape[0])
    shift = 0.4 * (site - 1)
    y = 0.5 + 0.8 * A + np.sin(k) + shift * np.cos(k) + 0.1 * rng.normal(size=k.shape[0])
    return gpgam.ObservationSet(y=y, A=A, k=k, site=site)


def main(num_samples=300, num_warmup=300, chains=2, show=True):
    data = generate_data()
    hp = gpgam.HyperparameterConfig(rho_k=1.0, alpha_k=1.0, rho_ks=1.0, alpha_ks=0.5)
    config = gpgam.ModelConfig(
        identifiability_penalty=gpgam.DEFAULT_IDENTIFIABILITY_PENALTY,
        sigma_prior=gpgam.HalfNormal(1.0),
    )
    model = gpgam.AdditiveGPModel(data, hp, config)
    print(model)

    posterior = gpgam.sample(
        model,
        num_samples=num_samples,
        num_warmup=num_warmup,
        chains=chains,
        seed=1,
        options=NUTSOptions(max_depth=6, verbose=1, log_every=100),
    )
    print(posterior.summary(["b0", "b1", "sigma"]))
    for w in posterior.warnings:
        print("warning:", w)

    if show:
        from gpgam.modeldiagnosis import plot_nuts_diagnostics, plot_smooth

        plot_nuts_diagnostics(posterior.sampler_info, show=False)
        plot_smooth(posterior, show=False)
        plot_smooth(posterior, site=2, show=True)
    return posterior


if __name__ == "__main__":
    main()
