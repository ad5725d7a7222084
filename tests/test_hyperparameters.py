import numpy as np
import pytest

from gpgam.errors import ValidationError
from gpgam.kernel.priors import Flat, HalfNormal, InvGamma, Normal
from gpgam.model import Fixed, HyperparameterConfig


def test_all_fixed():
    hp = HyperparameterConfig(rho_k=1.0, alpha_k=2, rho_ks=Fixed(0.5), alpha_ks=0.3)
    assert hp.all_fixed()
    assert hp.fixed_values() == {"rho_k": 1.0, "alpha_k": 2.0, "rho_ks": 0.5, "alpha_ks": 0.3}
    assert hp.estimated_names() == []


def test_mixed():
    hp = HyperparameterConfig(
        rho_k=1.0, alpha_k=1.0, rho_ks=InvGamma(5.0, 5.0), alpha_ks=HalfNormal(1.0)
    )
    assert not hp.all_fixed()
    assert hp.estimated_names() == ["rho_ks", "alpha_ks"]
    assert hp.is_fixed("rho_k")
    assert isinstance(hp["rho_ks"], InvGamma)
    assert hp.resolve("rho_k", {}) == 1.0
    assert hp.resolve("rho_ks", {"rho_ks": 0.7}) == 0.7


@pytest.mark.parametrize("bad", [0.0, -1.0, float("inf"), float("nan"), True, "1.0", Flat("positive"), Normal(0.0, 1.0)])
def test_invalid_specifications(bad):
    with pytest.raises(ValidationError):
        HyperparameterConfig(rho_k=bad, alpha_k=1.0, rho_ks=1.0, alpha_ks=1.0)


def test_fixed_rejects_nonpositive_and_infinite():
    with pytest.raises(ValidationError):
        Fixed(0.0)
    with pytest.raises(ValidationError):
        Fixed(float("inf"))


def test_numpy_scalars_are_fixed_values():
    hp = HyperparameterConfig(
        rho_k=np.int64(2), alpha_k=np.float32(0.5), rho_ks=np.float64(1.5), alpha_ks=3
    )
    assert hp.all_fixed()
    assert hp["rho_k"] == Fixed(2.0)
    assert hp.fixed_values() == {"rho_k": 2.0, "alpha_k": 0.5, "rho_ks": 1.5, "alpha_ks": 3.0}
