import math

import pytest
from scipy import stats

from gpgam.kernel.priors import Flat, Gamma, HalfNormal, InvGamma, LogNormal, Normal, is_prior


@pytest.mark.parametrize(
    "prior, reference, x",
    [
        (Normal(1.0, 2.0), stats.norm(1.0, 2.0), 0.3),
        (HalfNormal(1.5), stats.halfnorm(scale=1.5), 0.8),
        (LogNormal(0.2, 0.5), stats.lognorm(s=0.5, scale=math.exp(0.2)), 1.7),
        (Gamma(2.0, 3.0), stats.gamma(a=2.0, scale=1.0 / 3.0), 0.4),
        (InvGamma(5.0, 5.0), stats.invgamma(a=5.0, scale=5.0), 1.2),
    ],
)
def test_logpdf_matches_scipy(prior, reference, x):
    assert float(prior.logpdf(x)) == pytest.approx(reference.logpdf(x), rel=1e-10)


def test_flat_prior():
    assert Flat().logpdf(3.0) == 0.0
    assert Flat().support == "real"
    assert Flat("positive").typical_value() == 1.0
    with pytest.raises(ValueError):
        Flat("interval")


def test_supports():
    assert Normal().support == "real"
    for prior in (HalfNormal(), LogNormal(), Gamma(), InvGamma()):
        assert prior.support == "positive"
        assert prior.typical_value() > 0.0


def test_invalid_parameters():
    with pytest.raises(ValueError):
        HalfNormal(-1.0)
    with pytest.raises(ValueError):
        InvGamma(0.0, 1.0)


def test_is_prior():
    assert is_prior(InvGamma())
    assert not is_prior(1.0)
