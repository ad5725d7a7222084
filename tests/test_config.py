import logging

import pytest

import gpgam
from gpgam import config


def test_backend():
    assert config.get_backend() in ("numpy", "torch")
    with pytest.raises(ValueError):
        config.set_backend("jax")


def test_logger_and_version():
    logger = config.get_logger()
    assert logger.name == "gpgam"
    config.set_log_level(logging.WARNING)
    assert logger.level == logging.WARNING
    config.set_log_level(logging.INFO)
    assert isinstance(gpgam.__version__, str)


def test_config_update():
    cfg = config.get_config()
    with pytest.raises(AttributeError):
        cfg.update(unknown_option=1)
    assert "backend" in repr(cfg)


def test_backend_dtype():
    import gpgam.num as gnp

    assert gnp.get_dtype() is not None
    x = gnp.asarray([1.0, 2.0])
    assert gnp.to_np(x).dtype.name == "float64"
