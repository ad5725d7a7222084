import logging

import numpy as np
import pytest

import gpgam
from gpgam.errors import ValidationError
from gpgam.fit import natural_parameters
from gpgam.mcmc import NUTSOptions
from gpgam.misc.dataframe import DataFrame


def tiny_model(**config):
    data = gpgam.ObservationSet(
        y=[0.4, -0.2, 0.9, 0.1, 0.6],
        A=[1.0, -0.5, 0.3, 0.0, -1.0],
        k=[0.0, 0.5, 1.0, 1.5, 2.0],
        site=[1, 2, 1, 2, 1],
    )
    hp = gpgam.HyperparameterConfig(rho_k=1.0, alpha_k=1.0, rho_ks=1.0, alpha_ks=0.5)
    config.setdefault("sigma_prior", gpgam.LogNormal(np.log(0.3), 1.0))
    return gpgam.AdditiveGPModel(data, hp, gpgam.ModelConfig(**config))


@pytest.fixture(scope="module")
def posterior():
    model = tiny_model(identifiability_penalty=gpgam.DEFAULT_IDENTIFIABILITY_PENALTY)
    return gpgam.sample(
        model,
        num_samples=30,
        num_warmup=30,
        chains=2,
        seed=0,
        options=NUTSOptions(max_depth=5, verbose=0),
    )


def test_posterior_shapes(posterior):
    n = posterior.model.data.n_obs
    assert posterior.num_chains == 2
    assert posterior.num_draws == 30
    assert posterior.raw.shape == (2, 30, posterior.model.dim)
    assert posterior.draws["b0"].shape == (2, 30)
    assert posterior.draws["f_k"].shape == (2, 30, n)
    assert posterior.draws["f_site"].shape == (2, 30, n)
    assert np.all(posterior.draws["sigma"] > 0.0)
    assert "rho_k" not in posterior.draws


def test_posterior_views(posterior):
    assert posterior.site_effect(1).shape == (2, 30, 3)
    assert posterior.site_effect(2).shape == (2, 30, 2)
    M = posterior.interaction_matrix()
    assert M.shape == (5, 2)
    assert np.isnan(M[1, 0]) and np.isnan(M[0, 1])
    assert np.isfinite(M[0, 0]) and np.isfinite(M[1, 1])
    assert posterior.mean("f_k").shape == (5,)
    q = posterior.quantile("sigma", [0.05, 0.95])
    assert q[0] <= q[1]


def test_posterior_diagnostics(posterior):
    assert isinstance(posterior.warnings, list)
    assert all(isinstance(w, str) for w in posterior.warnings)
    assert posterior.diagnostics["r_hat"].shape == (posterior.model.dim,)
    assert posterior.sampler_info["divergent"].shape == (30, 2)
    table = posterior.summary(["b0", "b1", "sigma"])
    assert isinstance(table, DataFrame)
    assert table.rownames == ["b0", "b1", "sigma"]
    assert table["sigma", "mean"] > 0.0


def test_draws_match_natural_parameters(posterior):
    params = natural_parameters(posterior.model, posterior.raw[1, 7])
    assert params["b1"] == pytest.approx(posterior.draws["b1"][1, 7])
    assert np.allclose(params["f_site"], posterior.draws["f_site"][1, 7])
    assert np.allclose(params["f_k"], posterior.draws["f_k"][1, 7])
    layout = posterior.model.layout
    assert np.allclose(posterior.draws["sigma"], np.exp(posterior.raw[:, :, layout.slice("sigma")][..., 0]))
    assert np.array_equal(posterior.draws["b0"], posterior.raw[:, :, layout.slice("b0")][..., 0])


def test_sample_with_estimated_hyperparameters():
    data = gpgam.ObservationSet(y=[0.1, 0.5, -0.3, 0.2], A=[0.0] * 4, k=[0.0, 1.0, 2.0, 3.0], site=[1, 1, 2, 2])
    hp = gpgam.HyperparameterConfig(
        rho_k=gpgam.InvGamma(5.0, 5.0), alpha_k=gpgam.HalfNormal(1.0), rho_ks=1.0, alpha_ks=0.5
    )
    model = gpgam.AdditiveGPModel(data, hp, gpgam.ModelConfig(sigma_prior=gpgam.HalfNormal(1.0)))
    post = gpgam.sample(
        model, num_samples=10, num_warmup=10, chains=1, seed=1, options=NUTSOptions(max_depth=4, verbose=0)
    )
    assert post.draws["rho_k"].shape == (1, 10)
    assert np.all(post.draws["alpha_k"] > 0.0)


def test_sample_arguments():
    model = tiny_model()
    with pytest.raises(ValidationError):
        gpgam.sample(model, chains=0)
    with pytest.raises(ValidationError):
        gpgam.sample(model, num_samples=0)
    with pytest.raises(ValidationError):
        gpgam.sample(model, num_samples=5, num_warmup=0, chains=2, init=np.zeros(3))


def test_sample_keeps_warmup_from_options():
    model = tiny_model()
    options = NUTSOptions(num_warmup=7, max_depth=3, verbose=0)
    post = gpgam.sample(model, num_samples=3, chains=1, seed=2, options=options)
    assert post.sampler_info["warmup_step_size"].shape == (7,)
    assert post.sampler_info["divergent"].shape == (3, 1)

    post = gpgam.sample(model, num_samples=3, num_warmup=4, chains=1, seed=2, options=options)
    assert post.sampler_info["warmup_step_size"].shape == (4,)
    with pytest.raises(ValidationError):
        gpgam.sample(model, num_warmup=-1, options=options)


def test_find_map():
    model = tiny_model()
    q0 = model.initial_point()
    estimate = gpgam.find_map(model, init=q0)
    assert estimate.q.shape == (model.dim,)
    assert np.isfinite(estimate.log_density)
    assert estimate.log_density >= float(model.log_density(q0)) - 1e-8
    assert estimate.params["sigma"] > 0.0
    assert estimate.params["f_site"].shape == (5,)


def test_find_map_warns_on_flat_sigma_prior(caplog):
    model = tiny_model(sigma_prior=gpgam.Flat("positive"))
    with caplog.at_level(logging.WARNING, logger="gpgam"):
        gpgam.find_map(model, options={"maxiter": 5})
    assert any("mode may not exist" in r.getMessage() for r in caplog.records)
