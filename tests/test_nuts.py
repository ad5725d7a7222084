import numpy as np
import pytest

import gpgam.num as gnp
from gpgam.mcmc import NUTSOptions, make_warmup_windows, nuts_sample
from gpgam.mcmc.nuts import find_reasonable_step_size, leapfrog, potential_and_grad


def gaussian_log_prob(q):
    # N(mu, diag(s**2))
    mu = np.array([1.0, -2.0])
    s = np.array([1.0, 0.5])
    r = (q - mu) / s
    return -0.5 * gnp.sum(r * r)


def test_warmup_windows():
    windows = make_warmup_windows(1000)
    assert windows[0][0] == 75
    assert windows[-1][1] == 950
    for (a, b), (c, d) in zip(windows[:-1], windows[1:]):
        assert b == c
    assert make_warmup_windows(10) == []
    small = make_warmup_windows(100)
    assert small[0][0] == 15 and small[-1][1] == 90


def test_options_validation():
    with pytest.raises(ValueError):
        NUTSOptions(target_accept=1.5)
    with pytest.raises(ValueError):
        NUTSOptions(max_depth=0)


def test_leapfrog_conserves_energy():
    q = gnp.asarray(np.array([0.0, 0.0]))
    p = gnp.asarray(np.array([0.5, -0.3]))
    inv_mass = gnp.asarray(np.ones(2))
    U0, g0 = potential_and_grad(gaussian_log_prob, q)
    H0 = U0 + 0.5 * float(np.sum(p * p))
    q1, p1, U1, _ = leapfrog(gaussian_log_prob, q, p, g0, 1e-3, inv_mass)
    H1 = U1 + 0.5 * float(np.sum(gnp.to_np(p1) ** 2))
    assert abs(H1 - H0) < 1e-3


def test_reasonable_step_size():
    eps = find_reasonable_step_size(
        gaussian_log_prob, gnp.asarray(np.zeros(2)), gnp.asarray(np.ones(2))
    )
    assert 1e-3 < eps < 1e2


def test_gaussian_target():
    q_init = np.zeros((2, 2))
    samples, info = nuts_sample(
        gaussian_log_prob, q_init, num_samples=400, num_warmup=300, seed=0, verbose=0
    )
    assert samples.shape == (400, 2, 2)
    flat = samples.reshape(-1, 2)
    assert np.allclose(np.mean(flat, axis=0), [1.0, -2.0], atol=0.25)
    assert np.allclose(np.std(flat, axis=0), [1.0, 0.5], rtol=0.3)

    assert info["accept_stat"].shape == (400, 2)
    assert info["warmup_accept_stat"].shape == (300, 2)
    assert info["mass_diag_final"].shape == (2,)
    assert float(info["step_size_final"]) > 0.0
    assert not np.any(info["divergent"])


def test_options_object():
    opts = NUTSOptions(num_warmup=50, max_depth=4, verbose=0, seed=3)
    samples, info = nuts_sample(gaussian_log_prob, np.zeros((1, 2)), num_samples=20, options=opts)
    assert samples.shape == (20, 1, 2)
    assert np.all(info["tree_depth"] <= 4)
    assert info["warmup_step_size"].shape == (50,)


def test_bad_initial_shape():
    with pytest.raises(ValueError):
        nuts_sample(gaussian_log_prob, np.zeros(2), num_samples=10, num_warmup=0, verbose=0)
