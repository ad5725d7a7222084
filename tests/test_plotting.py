from types import SimpleNamespace

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

import gpgam
from gpgam.modeldiagnosis import plot_nuts_diagnostics, plot_smooth, plot_trace
from gpgam.modeldiagnosis.plotting import moving_average


def fake_posterior():
    rng = np.random.default_rng(0)
    data = gpgam.ObservationSet(y=[0.0, 1.0, 2.0, 3.0], A=[0.0] * 4, k=[0.0, 1.0, 2.0, 3.0], site=[1, 2, 1, 2])
    draws = {
        "b0": rng.normal(size=(2, 20)),
        "f_k": rng.normal(size=(2, 20, 4)),
        "f_site": rng.normal(size=(2, 20, 4)),
    }
    return SimpleNamespace(model=SimpleNamespace(data=data), draws=draws)


def test_moving_average():
    assert np.allclose(moving_average(np.arange(5.0), 2), [0.5, 1.5, 2.5, 3.5])


def test_nuts_diagnostics(tmp_path):
    info = {
        "warmup_step_size": np.linspace(1.0, 0.1, 60),
        "warmup_accept_stat": np.full((60, 2), 0.8),
        "warmup_divergent": np.zeros((60, 2), dtype=bool),
        "accept_stat": np.full((60, 2), 0.8),
        "divergent": np.zeros((60, 2), dtype=bool),
    }
    figs = plot_nuts_diagnostics(info, window=10, show=False, save_dir=str(tmp_path))
    assert len(figs) == 5
    assert (tmp_path / "accept_stat.png").exists()


def test_trace_and_smooth():
    post = fake_posterior()
    plot_trace(post, "b0", show=False)
    with pytest.raises(ValueError):
        plot_trace(post, "f_k", show=False)
    plot_smooth(post, show=False)
    plot_smooth(post, site=2, show=False)
