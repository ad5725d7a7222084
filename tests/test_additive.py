import unittest

import numpy as np
import pytest
from scipy import stats

import gpgam
import gpgam.num as gnp
from gpgam.errors import CovarianceError, ValidationError
from gpgam.kernel.priors import HalfNormal, InvGamma, LogNormal


def small_data():
    return gpgam.ObservationSet(
        y=[0.3, -0.1, 0.5, 0.2, -0.4, 0.1],
        A=[0.5, -1.0, 0.2, 1.5, 0.0, -0.3],
        k=[0.0, 0.3, 1.0, 1.4, 2.0, 2.6],
        site=[1, 2, 1, 2, 1, 2],
    )


def fixed_hp():
    return gpgam.HyperparameterConfig(rho_k=1.0, alpha_k=1.2, rho_ks=0.8, alpha_ks=0.5)


def natural_point(model):
    rng = np.random.default_rng(0)
    n = model.data.n_obs
    sizes = model.data.site_sizes()
    return {
        "b0": 0.2,
        "b1": -0.4,
        "sigma": 0.7,
        "f_k": rng.normal(size=n),
        "f_site": [0.3 * rng.normal(size=m) for m in sizes],
    }


def scalar(x):
    return float(gnp.to_scalar(gnp.detach(x)))


class TestAdditiveModel(unittest.TestCase):
    def setUp(self):
        self.data = small_data()
        self.model = gpgam.AdditiveGPModel(self.data, fixed_hp())

    def test_dimension(self):
        # b0, b1, f_k, f_site, sigma
        self.assertEqual(self.model.dim, 2 + 2 * 6 + 1)
        names = self.model.layout.flat_names()
        self.assertEqual(names[0], "b0")
        self.assertEqual(names[-1], "log(sigma)")
        self.assertIn("f_site_std[6]", names)

    def test_shared_covariance(self):
        K = gnp.to_np(self.model.shared_covariance(1.0, 1.2))
        self.assertEqual(K.shape, (6, 6))
        self.assertAlmostEqual(K[0, 1], 1.44 * np.exp(-0.5 * 0.3**2))

    def test_site_covariances(self):
        Ks = self.model.site_covariances(0.8, 0.5)
        self.assertEqual([K.shape[0] for K in Ks], [3, 3])
        K1 = gnp.to_np(Ks[0])
        self.assertAlmostEqual(K1[0, 1], 0.25 * np.exp(-0.5 / 0.64))

    def test_scatter_sites(self):
        f_site = [gnp.asarray(np.array([10.0, 11.0, 12.0])), gnp.asarray(np.array([20.0, 21.0, 22.0]))]
        out = gnp.to_np(self.model.scatter_sites(f_site))
        self.assertEqual(out.tolist(), [10.0, 20.0, 11.0, 21.0, 12.0, 22.0])

    def test_interaction_matrix(self):
        M = self.model.interaction_matrix([np.array([1.0, 2.0, 3.0]), np.array([4.0, 5.0, 6.0])])
        self.assertEqual(M.shape, (6, 2))
        self.assertTrue(np.all(np.isnan(M[[1, 3, 5], 0])))
        self.assertTrue(np.all(np.isnan(M[[0, 2, 4], 1])))
        self.assertEqual(np.nansum(M, axis=1).tolist(), [1.0, 4.0, 2.0, 5.0, 3.0, 6.0])

    def test_pack_then_unpack(self):
        point = natural_point(self.model)
        params = self.model.unpack(self.model.pack(point))
        self.assertAlmostEqual(scalar(params["sigma"]), 0.7)
        np.testing.assert_allclose(gnp.to_np(params["f_k"]), point["f_k"], atol=1e-8)
        for got, expected in zip(params["f_site"], point["f_site"]):
            np.testing.assert_allclose(gnp.to_np(got), expected, atol=1e-8)
        self.assertEqual(params["rho_k"], 1.0)

    def test_log_likelihood(self):
        point = natural_point(self.model)
        params = self.model.unpack(self.model.pack(point))
        mu = (
            point["b0"]
            + self.data.A * point["b1"]
            + point["f_k"]
            + gnp.to_np(self.model.scatter_sites([gnp.asarray(v) for v in point["f_site"]]))
        )
        expected = np.sum(stats.norm(mu, 0.7).logpdf(self.data.y))
        self.assertAlmostEqual(scalar(self.model.log_likelihood(params)), expected, places=6)

    def test_log_density_finite_at_initial_point(self):
        q0 = self.model.initial_point()
        self.assertEqual(q0.shape, (self.model.dim,))
        self.assertTrue(np.isfinite(scalar(self.model.log_density(q0))))
        v, g = gnp.value_and_grad(self.model.negative_log_density, gnp.asarray(q0))
        self.assertTrue(np.all(np.isfinite(gnp.to_np(g))))

    def test_mapping_inputs(self):
        model = gpgam.AdditiveGPModel(
            self.data.to_stan_data(),
            {"rho_k": 1.0, "alpha_k": 1.2, "rho_ks": 0.8, "alpha_ks": 0.5},
        )
        q0 = self.model.initial_point()
        self.assertAlmostEqual(scalar(model.log_density(q0)), scalar(self.model.log_density(q0)))


def test_centered_and_non_centered_agree():
    data = small_data()
    nc = gpgam.AdditiveGPModel(data, fixed_hp())
    c = gpgam.AdditiveGPModel(data, fixed_hp(), gpgam.ModelConfig(parameterization="centered"))
    point = natural_point(nc)
    q_nc, q_c = nc.pack(point), c.pack(point)

    p_nc, p_c = nc.unpack(q_nc), c.unpack(q_c)
    assert scalar(nc.log_likelihood(p_nc)) == pytest.approx(scalar(c.log_likelihood(p_c)))
    assert scalar(nc.log_prior(p_nc)) == pytest.approx(scalar(c.log_prior(p_c)))

    # the two densities differ by the log-determinant of f = L z
    _, _, L_k, L_sites = nc._natural(gnp.asarray(q_nc))
    logdet = sum(np.sum(np.log(np.diag(gnp.to_np(L)))) for L in [L_k] + L_sites)
    diff = scalar(nc.log_density(q_nc)) - scalar(c.log_density(q_c))
    assert diff == pytest.approx(logdet, rel=1e-8, abs=1e-8)


def test_identifiability_penalty_term():
    data = small_data()
    lam = gpgam.DEFAULT_IDENTIFIABILITY_PENALTY
    plain = gpgam.AdditiveGPModel(data, fixed_hp())
    penalized = gpgam.AdditiveGPModel(data, fixed_hp(), gpgam.ModelConfig(identifiability_penalty=lam))
    point = natural_point(plain)
    q = plain.pack(point)
    total = np.sum(point["b0"] + data.A * point["b1"] + point["f_k"])
    diff = scalar(penalized.log_density(q)) - scalar(plain.log_density(q))
    assert diff == pytest.approx(-lam * total**2, rel=1e-6, abs=1e-12)
    assert diff < 0.0


def test_estimated_hyperparameters():
    hp = gpgam.HyperparameterConfig(
        rho_k=InvGamma(5.0, 5.0), alpha_k=HalfNormal(1.0), rho_ks=0.8, alpha_ks=HalfNormal(0.5)
    )
    model = gpgam.AdditiveGPModel(
        small_data(), hp, gpgam.ModelConfig(sigma_prior=LogNormal(0.0, 1.0))
    )
    assert model.dim == 2 + 2 * 6 + 1 + 3
    assert model.layout.flat_names()[-3:] == ["log(rho_k)", "log(alpha_k)", "log(alpha_ks)"]
    q0 = model.initial_point()
    assert np.isfinite(scalar(model.log_density(q0)))
    params = model.unpack(q0)
    assert scalar(params["rho_k"]) == pytest.approx(5.0 / 6.0)
    assert params["rho_ks"] == 0.8


def test_singular_shared_covariance():
    # a huge length-scale rounds every entry to alpha**2
    data = gpgam.ObservationSet(y=[0.0, 1.0, 0.5, 0.2], A=[0.0] * 4, k=[0.0, 1.0, 0.0, 1.0], site=[1, 1, 2, 2])
    hp = gpgam.HyperparameterConfig(rho_k=1e9, alpha_k=1.0, rho_ks=1.0, alpha_ks=1.0)
    with pytest.raises(CovarianceError) as excinfo:
        gpgam.AdditiveGPModel(data, hp, gpgam.ModelConfig(jitter=0.0))
    assert excinfo.value.matrix == "f_k"
    assert excinfo.value.site is None
    # jitter makes it factorizable
    gpgam.AdditiveGPModel(data, hp)


def test_singular_site_covariance():
    data = gpgam.ObservationSet(y=[0.0, 1.0, 0.5], A=[0.0] * 3, k=[0.0, 1.0, 2.0], site=[1, 2, 2])
    hp = gpgam.HyperparameterConfig(rho_k=1.0, alpha_k=1.0, rho_ks=1e9, alpha_ks=1.0)
    with pytest.raises(CovarianceError) as excinfo:
        gpgam.AdditiveGPModel(data, hp, gpgam.ModelConfig(jitter=0.0))
    assert excinfo.value.matrix == "f_site"
    assert excinfo.value.site == 2
    assert "site 2" in str(excinfo.value)
    assert isinstance(excinfo.value, np.linalg.LinAlgError)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"parameterization": "whitened"},
        {"identifiability_penalty": -1.0},
        {"jitter": -1e-8},
        {"sigma_prior": gpgam.Normal(0.0, 1.0)},
        {"b0_prior": HalfNormal(1.0)},
    ],
)
def test_invalid_model_config(kwargs):
    with pytest.raises(ValidationError):
        gpgam.ModelConfig(**kwargs)


def count_factorizations(monkeypatch):
    calls = []
    cholesky = gnp.cholesky

    def counting(K):
        calls.append(K.shape[0])
        return cholesky(K)

    monkeypatch.setattr(gnp, "cholesky", counting)
    return calls


def test_fixed_factors_are_reused(monkeypatch):
    calls = count_factorizations(monkeypatch)
    model = gpgam.AdditiveGPModel(small_data(), fixed_hp())
    # shared covariance, then one per site
    assert calls == [6, 3, 3]

    q0 = gnp.asarray(model.initial_point())
    gnp.value_and_grad(model.negative_log_density, q0)
    model.unpack(q0)
    model.pack(natural_point(model))
    assert len(calls) == 3

    # explicit values are checked but do not replace the stored factors
    model.check_covariances(rho_k=2.0, alpha_k=1.0)
    assert calls[3:] == [6, 3, 3]
    L_k, _ = model._cholesky_factors(model.hyperparameters.fixed_values())
    K = gnp.to_np(model.shared_covariance(1.0, 1.2))
    L = gnp.to_np(L_k)
    assert np.allclose(L @ L.T, K, atol=1e-6)


def test_estimated_factors_are_recomputed(monkeypatch):
    calls = count_factorizations(monkeypatch)
    hp = gpgam.HyperparameterConfig(rho_k=InvGamma(5.0, 5.0), alpha_k=1.2, rho_ks=0.8, alpha_ks=0.5)
    model = gpgam.AdditiveGPModel(small_data(), hp)
    assert calls == [3, 3]

    q0 = model.initial_point()
    model.log_density(q0)
    model.log_density(q0)
    # only the shared covariance depends on a sampled value
    assert calls == [3, 3, 6, 6]


def test_single_site_scenario():
    data = {
        "N": 4,
        "y": [0.1, 0.4, -0.2, 0.3],
        "A": [0.0, 0.0, 0.0, 0.0],
        "k": [0.0, 1.0, 2.0, 3.0],
        "S": 1,
        "site": [1, 1, 1, 1],
    }
    hp = {"rho_k": 1.0, "alpha_k": 1.0, "rho_ks": 1.0, "alpha_ks": 1.0}
    model = gpgam.AdditiveGPModel(data, hp)
    assert model.dim == 2 + 2 * 4 + 1

    K = gnp.to_np(model.shared_covariance(1.0, 1.0))
    assert np.allclose(np.diag(K), 1.0)
    assert K[0, 1] == pytest.approx(np.exp(-0.5))
    assert K[0, 2] == pytest.approx(np.exp(-2.0))
    (K_site,) = model.site_covariances(1.0, 1.0)
    assert np.allclose(gnp.to_np(K_site), K)

    q0 = model.initial_point()
    assert np.isfinite(scalar(model.log_density(q0)))
    params = model.unpack(q0)
    assert len(params["f_site"]) == 1
    assert gnp.to_np(params["f_site"][0]).shape == (4,)
    # A is identically zero, so b1 does not enter the likelihood
    moved = dict(params, b1=5.0)
    assert scalar(model.log_likelihood(moved)) == pytest.approx(scalar(model.log_likelihood(params)))


def test_mapping_with_out_of_range_label():
    data = {
        "N": 4,
        "y": [0.1, 0.4, -0.2, 0.3],
        "A": [0.0, 0.0, 0.0, 0.0],
        "k": [0.0, 1.0, 2.0, 3.0],
        "S": 1,
        "site": [1, 1, 2, 1],
    }
    hp = {"rho_k": 1.0, "alpha_k": 1.0, "rho_ks": 1.0, "alpha_ks": 1.0}
    with pytest.raises(ValidationError, match="site labels"):
        gpgam.AdditiveGPModel(data, hp)
