import pytest

import gpgam
from gpgam.errors import ValidationError
from gpgam.stan import stan_data, stan_program


def obs():
    return gpgam.ObservationSet(
        y=[0.1, 0.2, 0.3], A=[1.0, 0.0, 1.0], k=[0.0, 0.5, 1.0], site=[2, 1, 2]
    )


def test_program_blocks():
    code = stan_program()
    for block in ("data {", "transformed data {", "parameters {", "model {"):
        assert block in code
    assert "multi_normal_cholesky" in code
    assert "segment(f_site, pos, n_s)" in code
    assert "lambda" not in code


def test_program_with_penalty():
    code = stan_program(identifiability_penalty=1e-4)
    assert "real lambda = 0.0001;" in code
    assert "target += -lambda * square(sum(b0 + A * b1 + f_k));" in code
    with pytest.raises(ValidationError):
        stan_program(identifiability_penalty=-1.0)


def test_data():
    hp = gpgam.HyperparameterConfig(rho_k=1.0, alpha_k=2.0, rho_ks=0.5, alpha_ks=0.3)
    d = stan_data(obs(), hp)
    assert d["N"] == 3 and d["S"] == 2
    assert d["site_size"] == [1, 2]
    assert d["site_order"] == [2, 1, 3]
    assert d["alpha_k"] == 2.0
    assert d["jitter"] == 1e-8


def test_data_requires_fixed_hyperparameters():
    hp = gpgam.HyperparameterConfig(rho_k=gpgam.InvGamma(5.0, 5.0), alpha_k=1.0, rho_ks=1.0, alpha_ks=1.0)
    with pytest.raises(ValidationError, match="rho_k"):
        stan_data(obs(), hp)
