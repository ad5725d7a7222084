import numpy as np
import pytest

from gpgam.errors import ValidationError
from gpgam.model import ObservationSet


def make(**overrides):
    fields = dict(
        y=[0.1, 0.2, 0.3, 0.4, 0.5],
        A=[1.0, 0.0, 1.0, 0.0, 1.0],
        k=[0.0, 0.0, 1.0, 1.0, 2.0],
        site=[1, 2, 1, 2, 1],
    )
    fields.update(overrides)
    return ObservationSet(**fields)


def test_site_bookkeeping():
    obs = make()
    assert obs.n_obs == 5
    assert obs.n_sites == 2
    assert obs.site_sizes() == [3, 2]
    assert obs.site_indices(1).tolist() == [0, 2, 4]
    assert obs.site_indices(2).tolist() == [1, 3]
    assert obs.site_order().tolist() == [0, 2, 4, 1, 3]


def test_site_label_out_of_range():
    with pytest.raises(ValidationError):
        make(site=[1, 2, 1, 3, 1], n_sites=2)
    with pytest.raises(ValidationError):
        make(site=[0, 2, 1, 2, 1])


def test_empty_site():
    with pytest.raises(ValidationError, match="without observations"):
        make(site=[1, 3, 1, 3, 1], n_sites=3)


def test_duplicate_k_within_site():
    with pytest.raises(ValidationError, match="duplicate"):
        make(k=[0.0, 0.0, 0.0, 1.0, 2.0])


def test_duplicate_k_across_sites_is_allowed():
    obs = make()
    assert np.unique(obs.k).shape[0] < obs.n_obs


def test_length_mismatch_and_non_finite():
    with pytest.raises(ValidationError):
        make(A=[1.0, 0.0])
    with pytest.raises(ValidationError):
        make(y=[0.1, np.nan, 0.3, 0.4, 0.5])
    with pytest.raises(ValidationError):
        make(y=[], A=[], k=[], site=[])


def test_non_integer_site_labels():
    with pytest.raises(ValidationError):
        make(site=[1, 2, 1.5, 2, 1])
    assert make(site=[1.0, 2.0, 1.0, 2.0, 1.0]).n_sites == 2


def test_non_numeric_site_labels():
    with pytest.raises(ValidationError, match="integers"):
        make(site=["a", "b", "a", "b", "a"])
    with pytest.raises(ValidationError, match="integers"):
        make(site=[1, None, 1, 2, 1])


def test_stan_data_round_trip():
    obs = make()
    d = obs.to_stan_data()
    assert d["N"] == 5 and d["S"] == 2
    again = ObservationSet.from_stan_data(d)
    assert np.array_equal(again.k, obs.k)
    assert np.array_equal(again.site, obs.site)


def test_from_stan_data_checks():
    d = make().to_stan_data()
    d["N"] = 4
    with pytest.raises(ValidationError):
        ObservationSet.from_stan_data(d)
    del d["S"]
    with pytest.raises(ValidationError, match="missing"):
        ObservationSet.from_stan_data(d)


def test_from_stan_data_label_out_of_range():
    d = {
        "N": 4,
        "y": [0.1, 0.4, -0.2, 0.3],
        "A": [0.0, 0.0, 0.0, 0.0],
        "k": [0.0, 1.0, 2.0, 3.0],
        "S": 1,
        "site": [1, 1, 2, 1],
    }
    with pytest.raises(ValidationError, match=r"\[1, 1\]"):
        ObservationSet.from_stan_data(d)
