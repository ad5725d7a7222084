"""
Exponentiated-quadratic covariance: matrices for a few length-scales and a
check of the shared and per-site covariances of a small additive model.

Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
Copyright (c) 2022-2026, CentraleSupelec
License: GPLv3 (see LICENSE)
"""

import numpy as np
import matplotlib.pyplot as plt

import gpgam
import gpgam.num as gnp
from gpgam.kernel import exponentiated_quadratic_covariance


def main(show=True):
    k = gnp.asarray(np.linspace(0.0, 5.0, 30))

    fig, axes = plt.subplots(1, 3, figsize=(10, 3))
    for ax, rho in zip(axes, [0.3, 1.0, 3.0]):
        K = gnp.to_np(exponentiated_quadratic_covariance(k, None, rho, 1.0))
        ax.imshow(K, vmin=0.0, vmax=1.0)
        ax.set_title(f"rho = {rho}")

    K = gnp.to_np(exponentiated_quadratic_covariance([0.0, 1.0, 2.0, 3.0], None, 1.0, 1.0))
    print("K[0, 1] =", K[0, 1], " exp(-0.5) =", np.exp(-0.5))
    print("K[0, 2] =", K[0, 2], " exp(-2)   =", np.exp(-2.0))

    data = gpgam.ObservationSet(
        y=[0.2, 0.1, -0.3, 0.4, 0.0],
        A=[0.0] * 5,
        k=[0.0, 1.0, 2.0, 0.5, 1.5],
        site=[1, 1, 1, 2, 2],
    )
    hp = gpgam.HyperparameterConfig(rho_k=1.0, alpha_k=1.0, rho_ks=0.5, alpha_ks=0.3)
    model = gpgam.AdditiveGPModel(data, hp)
    print(model)
    for s, K_s in enumerate(model.site_covariances(0.5, 0.3), start=1):
        print(f"site {s}: covariance of size {K_s.shape[0]}")

    if show:
        plt.show()


if __name__ == "__main__":
    main()
